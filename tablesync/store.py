from __future__ import annotations

import copy
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from tablesync.messages import (
    ConstraintSet,
    DataForMeasureSet,
    ErrorNotification,
    FavoritesQuantityUpdated,
    SelectionReset,
    TableDataSet,
    TableDropped,
    TableSchemaSet,
    TableSelected,
    TablesFetchedFlag,
    TablesLoaded,
    TableTruncated,
    Update,
)
from tablesync.errors.exceptions import WorkflowError
from tablesync.types import Table

logger = logging.getLogger(__name__)


class TableStore:
    """
    Shared in-memory schema model, mutated only by applying updates.

    Table entries are created by ``TablesLoaded`` and removed by
    ``TableDropped``; every other update edits fields of an existing entry.
    Updates that name a table no longer present are stale and ignored.
    """

    def __init__(self) -> None:
        self.names: List[str] = []
        self.tables: Dict[str, Table] = {}
        self.selected_table: Optional[str] = None
        self.tables_fetched: bool = False
        self.favorite_quantities: Dict[str, int] = {}
        self.last_error: Optional[WorkflowError] = None
        self._reducers: Dict[type, Callable[[Any], None]] = {
            TablesLoaded: self._tables_loaded,
            TablesFetchedFlag: self._tables_fetched_flag,
            FavoritesQuantityUpdated: self._favorites_quantity,
            TableSelected: self._table_selected,
            TableDataSet: self._table_data,
            DataForMeasureSet: self._data_for_measure,
            TableSchemaSet: self._table_schema,
            ConstraintSet: self._constraint,
            TableDropped: self._table_dropped,
            TableTruncated: self._table_truncated,
            SelectionReset: self._selection_reset,
            ErrorNotification: self._error,
        }

    # ---------------------------- lookups ----------------------------
    def get(self, table_name: str) -> Optional[Table]:
        return self.tables.get(table_name)

    def by_id(self, table_id: str) -> Optional[Table]:
        for table in self.tables.values():
            if table.id == table_id:
                return table
        # Tables addressed before an id was assigned use their name.
        return self.tables.get(table_id)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "names": list(self.names),
            "tables": {name: asdict(t) for name, t in self.tables.items()},
            "selected_table": self.selected_table,
            "tables_fetched": self.tables_fetched,
            "favorite_quantities": dict(self.favorite_quantities),
        }

    # ---------------------------- reducer ----------------------------
    def apply(self, update: Update) -> None:
        reducer = self._reducers.get(type(update))
        if reducer is None:
            # DialogHidden and friends carry no model state.
            return
        reducer(update)

    def _tables_loaded(self, u: TablesLoaded) -> None:
        self.names = list(u.names)
        self.tables = {name: copy.deepcopy(u.map[name]) for name in u.names}

    def _tables_fetched_flag(self, u: TablesFetchedFlag) -> None:
        self.tables_fetched = u.value

    def _favorites_quantity(self, u: FavoritesQuantityUpdated) -> None:
        self.favorite_quantities[u.favorite_id] = u.quantity

    def _table_selected(self, u: TableSelected) -> None:
        self.selected_table = u.name

    def _selection_reset(self, u: SelectionReset) -> None:
        self.selected_table = None

    def _error(self, u: ErrorNotification) -> None:
        self.last_error = u.error

    def _table_data(self, u: TableDataSet) -> None:
        table = self.get(u.table_name)
        if table is None:
            logger.debug("Ignoring stale table data", extra={"table": u.table_name})
            return
        seen_rows = set(table.rows_ids)
        for row_id in u.data.rows_ids:
            if row_id not in seen_rows:
                table.rows_ids.append(row_id)
                seen_rows.add(row_id)
            table.rows[row_id] = dict(u.data.rows[row_id])
        seen_fields = set(table.fields_ids)
        for field_id in u.data.fields_ids:
            if field_id not in seen_fields:
                table.fields_ids.append(field_id)
                seen_fields.add(field_id)
            table.fields[field_id] = dict(u.data.fields[field_id])

    def _data_for_measure(self, u: DataForMeasureSet) -> None:
        table = self.get(u.table_name)
        if table is None:
            logger.debug("Ignoring stale measure data", extra={"table": u.table_name})
            return
        table.data_for_measure = dict(u.data)

    def _table_schema(self, u: TableSchemaSet) -> None:
        table = self.by_id(u.id)
        if table is None:
            logger.debug("Ignoring stale table schema", extra={"table_id": u.id})
            return
        if table.is_fetched:
            logger.debug("Schema already fetched", extra={"table_id": u.id})
            return
        table.structure_table = dict(u.structure_table)
        table.is_fetched = True

    def _constraint(self, u: ConstraintSet) -> None:
        table = self.by_id(u.record.table_id)
        if table is None:
            logger.debug(
                "Ignoring stale constraint", extra={"table_id": u.record.table_id}
            )
            return
        table.constraints = u.record

    def _table_dropped(self, u: TableDropped) -> None:
        table = self.by_id(u.id)
        if table is None:
            return
        del self.tables[table.table_name]
        self.names = [n for n in self.names if n != table.table_name]
        if self.selected_table == table.table_name:
            self.selected_table = None

    def _table_truncated(self, u: TableTruncated) -> None:
        table = self.by_id(u.id)
        if table is None:
            return
        table.rows_ids = []
        table.rows = {}
