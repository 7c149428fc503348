import asyncio
import logging
from typing import Any, List, Sequence

import psycopg
from psycopg.rows import dict_row

from adapters.db.base import QueryGateway
from tablesync.errors.exceptions import DatabaseError
from tablesync.types import QueryResult

log = logging.getLogger(__name__)


class PostgresAdapter(QueryGateway):
    name = "postgres"
    dialect = "postgres"

    def __init__(self, dsn: str, connect_timeout: int = 10):
        """
        DSN example:
        "dbname=demo user=postgres password=postgres host=localhost port=5432"
        """
        self.dsn = dsn
        self.connect_timeout = connect_timeout

    def _execute_sync(self, query: str, params: Sequence[Any]) -> QueryResult:
        # autocommit so DROP/TRUNCATE take effect without an explicit commit
        with psycopg.connect(
            self.dsn,
            autocommit=True,
            connect_timeout=self.connect_timeout,
            row_factory=dict_row,
        ) as conn:
            with conn.cursor() as cur:
                log.debug("Executing SQL: %s", " ".join(query.split()))
                cur.execute(query, list(params) or None)
                desc = cur.description
                if desc is None:
                    return QueryResult(rows=[], columns=[])
                rows = cur.fetchall() or []
                cols: List[str] = [d.name for d in desc]
                return QueryResult(rows=[dict(r) for r in rows], columns=cols)

    async def execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        try:
            result = await asyncio.to_thread(self._execute_sync, query, params)
        except psycopg.OperationalError as e:
            raise DatabaseError.unavailable(str(e).strip()) from e
        except psycopg.Error as e:
            raise DatabaseError(message=str(e).strip()) from e
        log.info("Query executed successfully. Returned %d rows.", len(result.rows))
        return result

    async def ping(self) -> None:
        await self.execute("SELECT 1")
