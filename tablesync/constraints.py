from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from adapters.db.base import QueryGateway
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from tablesync import queries
from tablesync.errors.exceptions import ResolutionError
from tablesync.messages import ConstraintSet, ErrorNotification, Update
from tablesync.types import Constraint, Table

logger = logging.getLogger(__name__)


def find_table_id(tables: Mapping[str, Table], table_name: str) -> Optional[str]:
    """Linear scan for the first table named ``table_name``; None when absent."""
    for table in tables.values():
        if table.table_name == table_name:
            return table.id
    return None


class ConstraintResolver:
    """
    Loads the foreign keys declared in ``schema`` and attaches each one to
    the in-memory table that owns it.

    One ConstraintSet is emitted per resolved table id, in first-seen order.
    When several constraints belong to the same table the last one wins.
    """

    name = "constraints"

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        emit: Callable[[Update], None],
        schema: str = "public",
        metrics: Metrics | None = None,
    ):
        self.gateway = gateway
        self.schema = schema
        self.emit = emit
        self.metrics: Metrics = metrics or NoOpMetrics()

    @staticmethod
    def resolve(
        rows: List[Mapping[str, Any]], tables: Mapping[str, Table]
    ) -> tuple[List[Constraint], List[str]]:
        """Return (constraints in emission order, unresolved table names)."""
        by_table: Dict[str, Constraint] = {}
        unresolved: List[str] = []
        for row in rows:
            table_name = row.get("table_name")
            table_id = find_table_id(tables, table_name) if table_name else None
            if table_id is None:
                unresolved.append(str(table_name))
                continue
            # dict keeps first-insertion order, so overwriting keeps the slot
            by_table[table_id] = Constraint.from_row(row, table_id)
        return list(by_table.values()), unresolved

    async def run(self, tables: Mapping[str, Table]) -> List[Constraint]:
        sql, params = queries.foreign_keys(self.schema)
        result = await self.gateway.execute(sql, params)

        constraints, unresolved = self.resolve(result.rows, tables)
        for record in constraints:
            self.emit(ConstraintSet(record=record))

        if unresolved:
            logger.warning(
                "Dropped %d foreign key(s) referencing unknown tables",
                len(unresolved),
                extra={"tables": unresolved},
            )
            self.metrics.inc_constraints_unresolved(count=len(unresolved))
            self.emit(
                ErrorNotification(
                    error=ResolutionError(
                        message=(
                            "Could not resolve foreign keys for tables: "
                            + ", ".join(sorted(set(unresolved)))
                        ),
                        details=unresolved,
                    )
                )
            )

        logger.debug(
            "Constraints resolved",
            extra={"resolved": len(constraints), "unresolved": len(unresolved)},
        )
        return constraints
