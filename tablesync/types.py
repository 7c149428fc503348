from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


# =====================
# Gateway contract
# =====================


@dataclass(frozen=True)
class QueryResult:
    rows: List[Dict[str, Any]]
    columns: List[str] = field(default_factory=list)


# =====================
# In-memory schema model
# =====================


@dataclass(frozen=True)
class Constraint:
    """One foreign-key constraint, resolved to the owning table's id."""

    constraint_name: Optional[str]
    constraint_type: Optional[str]
    table_name: str
    column_name: Optional[str]
    is_deferrable: Optional[str]
    initially_deferred: Optional[str]
    match_type: Optional[str]
    on_update: Optional[str]
    on_delete: Optional[str]
    references_table: Optional[str]
    references_field: Optional[str]
    table_id: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any], table_id: str) -> "Constraint":
        return cls(
            constraint_name=row.get("constraint_name"),
            constraint_type=row.get("constraint_type"),
            table_name=row["table_name"],
            column_name=row.get("column_name"),
            is_deferrable=row.get("is_deferrable"),
            initially_deferred=row.get("initially_deferred"),
            match_type=row.get("match_type"),
            on_update=row.get("on_update"),
            on_delete=row.get("on_delete"),
            references_table=row.get("references_table"),
            references_field=row.get("references_field"),
            table_id=table_id,
        )


@dataclass
class Table:
    id: str
    table_name: str
    is_fetched: bool = False
    data_for_measure: Dict[str, Any] = field(default_factory=dict)
    rows_ids: List[int] = field(default_factory=list)
    rows: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    fields_ids: List[str] = field(default_factory=list)
    fields: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    structure_table: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    constraints: Optional[Constraint] = None


@dataclass(frozen=True)
class TableData:
    """One normalized page of rows for a table."""

    rows_ids: List[int]
    rows: Dict[int, Dict[str, Any]]
    fields_ids: List[str]
    fields: Dict[str, Dict[str, Any]]
