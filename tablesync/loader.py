from __future__ import annotations

import logging
from typing import Callable

from adapters.db.base import QueryGateway
from tablesync import queries
from tablesync.messages import DataForMeasureSet, FetchTableData, TableDataSet, Update
from tablesync.normalize import measure_data, normalize_page

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class TableDataLoader:
    """
    Loads one page of rows for a table.

    The first page (no start index) also yields measurement data, emitted
    ahead of the rows so the consumer can size columns before they land.
    """

    name = "fetch_table_data"

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        emit: Callable[[Update], None],
        schema: str = "public",
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.gateway = gateway
        self.emit = emit
        self.schema = schema
        self.page_size = page_size

    async def run(self, request: FetchTableData) -> None:
        table_name = request.table_name
        first_page = not request.start_index
        sql, params = queries.table_page(
            self.schema, table_name, self.page_size, request.start_index
        )
        result = await self.gateway.execute(sql, params)

        if first_page:
            self.emit(DataForMeasureSet(table_name=table_name, data=measure_data(result)))

        self.emit(
            TableDataSet(
                table_name=table_name,
                data=normalize_page(result, request.start_index),
                start_index=request.start_index,
            )
        )
        logger.debug(
            "Table page loaded",
            extra={
                "table": table_name,
                "start_index": request.start_index,
                "row_count": len(result.rows),
            },
        )

        if request.on_complete is not None:
            request.on_complete()
