from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from adapters.db.base import QueryGateway
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from tablesync import queries
from tablesync.messages import GetTableSchema, TableSchemaSet, Update

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    name = "get_schema"

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        emit: Callable[[Update], None],
        schema: str = "public",
        metrics: Metrics | None = None,
    ):
        self.gateway = gateway
        self.emit = emit
        self.schema = schema
        self.metrics: Metrics = metrics or NoOpMetrics()

    async def run(self, request: GetTableSchema) -> bool:
        """Fetch column metadata once per table. Returns False when skipped."""
        if request.is_fetched:
            logger.debug(
                "Schema already fetched, skipping",
                extra={"table_id": request.id, "table": request.table_name},
            )
            self.metrics.inc_introspection_skip()
            return False

        sql, params = queries.table_columns(self.schema, request.table_name)
        result = await self.gateway.execute(sql, params)

        structure_table: Dict[int, Dict[str, Any]] = {
            index: dict(row) for index, row in enumerate(result.rows)
        }
        self.emit(TableSchemaSet(id=request.id, structure_table=structure_table))
        return True
