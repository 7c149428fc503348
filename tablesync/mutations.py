from __future__ import annotations

import logging
from typing import Callable

from adapters.db.base import QueryGateway
from tablesync import queries
from tablesync.errors.exceptions import DatabaseError
from tablesync.messages import (
    DialogHidden,
    DropTable,
    ErrorNotification,
    RequestOutcome,
    SelectionReset,
    TableDropped,
    TableTruncated,
    TruncateTable,
    Update,
)

logger = logging.getLogger(__name__)


class MutationExecutor:
    """
    Destructive table operations. The caller is responsible for having
    obtained user confirmation before submitting a request.

    Database failures are reported as an ErrorModal notification and leave
    the in-memory model untouched so the user can retry.
    """

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        emit: Callable[[Update], None],
        schema: str = "public",
    ):
        self.gateway = gateway
        self.emit = emit
        self.schema = schema

    def _fail(self, op: str, table_name: str, error: DatabaseError) -> RequestOutcome:
        logger.info(
            "%s failed: %s", op, error, extra={"table": table_name, "code": error.code}
        )
        self.emit(ErrorNotification(error=error))
        return RequestOutcome(ok=False, error=error)

    async def drop(self, request: DropTable) -> RequestOutcome:
        sql, params = queries.drop_table(self.schema, request.table_name, request.parameters)
        try:
            await self.gateway.execute(sql, params)
        except DatabaseError as e:
            return self._fail("DROP", request.table_name, e)

        if request.current_table_name == request.selected_table_id:
            self.emit(SelectionReset())
        self.emit(TableDropped(id=request.selected_table_id))
        self.emit(DialogHidden())
        logger.info("Table dropped", extra={"table": request.table_name})
        return RequestOutcome(ok=True)

    async def truncate(self, request: TruncateTable) -> RequestOutcome:
        sql, params = queries.truncate_table(
            self.schema, request.table_name, request.parameters
        )
        try:
            await self.gateway.execute(sql, params)
        except DatabaseError as e:
            return self._fail("TRUNCATE", request.table_name, e)

        self.emit(TableTruncated(id=request.selected_table_id))
        self.emit(DialogHidden())
        logger.info("Table truncated", extra={"table": request.table_name})
        return RequestOutcome(ok=True)
