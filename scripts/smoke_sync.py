"""
Smoke run for tablesync against a live Postgres.

Runs one synchronization pass plus a second data page for the first table,
then prints every update the workflow produced.

Usage:
    POSTGRES_DSN="dbname=demo user=postgres host=localhost" \
        python scripts/smoke_sync.py --config configs/postgres.yaml
"""

import argparse
import asyncio
import json
import sys

from tablesync.factory import dispatcher_from_config
from tablesync.messages import ErrorNotification, FetchTableData, FetchTables, serialize_update


async def run(config: str, favorite_id: str | None) -> int:
    dispatcher = dispatcher_from_config(config)
    async with dispatcher:
        dispatcher.submit(FetchTables(favorite_id=favorite_id))
        await dispatcher.join()

        names = dispatcher.store.names
        if names:
            outcome = await dispatcher.submit(
                FetchTableData(table_name=names[0], start_index=dispatcher.loader.page_size)
            )
            print(f"second page for {names[0]}: ok={outcome.ok}")

    updates = dispatcher.drain()
    failures = 0
    for update in updates:
        if isinstance(update, ErrorNotification):
            failures += 1
        print(json.dumps(serialize_update(update), default=str)[:300])

    print(f"\n{len(updates)} updates, {failures} error notification(s)")
    print(f"tables: {', '.join(dispatcher.store.names) or '(none)'}")
    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default="configs/postgres.yaml")
    parser.add_argument("--favorite-id", default=None)
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.config, args.favorite_id)))


if __name__ == "__main__":
    main()
