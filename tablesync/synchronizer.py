from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List

from adapters.db.base import QueryGateway
from tablesync import queries
from tablesync.constraints import ConstraintResolver
from tablesync.messages import (
    FavoritesQuantityUpdated,
    FetchTableData,
    FetchTables,
    GetTableSchema,
    Request,
    TableSelected,
    TablesFetchedFlag,
    TablesLoaded,
    Update,
)
from tablesync.types import Table

logger = logging.getLogger(__name__)


def _uuid_id(table_name: str) -> str:
    return uuid.uuid4().hex


class SchemaSynchronizer:
    """
    One synchronization pass:
      table list → TablesLoaded → first table data + schema → constraints.

    Follow-on loads are submitted to their own lanes; constraint resolution
    runs inline, so the pass is only over once every ConstraintSet is out.
    """

    name = "fetch_tables"

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        emit: Callable[[Update], None],
        submit: Callable[[Request], Any],
        constraints: ConstraintResolver,
        schema: str = "public",
        id_factory: Callable[[str], str] | None = None,
    ):
        self.gateway = gateway
        self.emit = emit
        self.submit = submit
        self.constraints = constraints
        self.schema = schema
        self.id_factory = id_factory or _uuid_id

    async def run(self, request: FetchTables) -> None:
        sql, params = queries.list_tables(self.schema)
        result = await self.gateway.execute(sql, params)

        names: List[str] = []
        tables: Dict[str, Table] = {}
        for row in result.rows:
            name = row["table_name"]
            if name in tables:
                continue
            names.append(name)
            tables[name] = Table(id=self.id_factory(name), table_name=name)

        self.emit(TablesLoaded(names=names, map=tables))
        self.emit(TablesFetchedFlag(value=True))

        if request.favorite_id:
            self.emit(
                FavoritesQuantityUpdated(
                    favorite_id=request.favorite_id, quantity=len(names)
                )
            )

        logger.info("Tables loaded", extra={"count": len(names), "schema": self.schema})
        if not names:
            return

        first = tables[names[0]]
        self.emit(TableSelected(name=first.table_name))
        self.submit(FetchTableData(table_name=first.table_name))
        self.submit(
            GetTableSchema(id=first.id, table_name=first.table_name, is_fetched=False)
        )
        await self.constraints.run(tables)
