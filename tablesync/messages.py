"""
Typed messages crossing the workflow boundary.

Requests flow from the collaborator into the dispatcher lanes; updates flow
from the components back out through the dispatcher's outbox.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from tablesync.errors.exceptions import WorkflowError
from tablesync.types import Constraint, Table, TableData


# =====================
# Inbound requests
# =====================


@dataclass(frozen=True)
class MutationParameters:
    cascade: bool = False
    restart_identity: bool = False


@dataclass(frozen=True)
class FetchTables:
    favorite_id: Optional[str] = None


@dataclass(frozen=True)
class FetchTableData:
    table_name: str
    start_index: Optional[int] = None
    on_complete: Optional[Callable[[], None]] = field(default=None, compare=False)


@dataclass(frozen=True)
class GetTableSchema:
    id: str
    table_name: str
    is_fetched: bool = False


@dataclass(frozen=True)
class DropTable:
    table_name: str
    selected_table_id: str
    parameters: Optional[MutationParameters] = None
    current_table_name: Optional[str] = None


@dataclass(frozen=True)
class TruncateTable:
    table_name: str
    selected_table_id: str
    parameters: Optional[MutationParameters] = None


Request = Union[FetchTables, FetchTableData, GetTableSchema, DropTable, TruncateTable]


@dataclass(frozen=True)
class RequestOutcome:
    ok: bool
    error: Optional[WorkflowError] = None


# =====================
# Outbound updates
# =====================


@dataclass(frozen=True)
class TablesLoaded:
    names: List[str]
    map: Dict[str, Table]


@dataclass(frozen=True)
class TablesFetchedFlag:
    value: bool


@dataclass(frozen=True)
class FavoritesQuantityUpdated:
    favorite_id: str
    quantity: int


@dataclass(frozen=True)
class TableSelected:
    name: str


@dataclass(frozen=True)
class TableDataSet:
    table_name: str
    data: TableData
    start_index: Optional[int] = None


@dataclass(frozen=True)
class DataForMeasureSet:
    table_name: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class TableSchemaSet:
    id: str
    structure_table: Dict[int, Dict[str, Any]]


@dataclass(frozen=True)
class ConstraintSet:
    record: Constraint


@dataclass(frozen=True)
class TableDropped:
    id: str


@dataclass(frozen=True)
class TableTruncated:
    id: str


@dataclass(frozen=True)
class SelectionReset:
    pass


@dataclass(frozen=True)
class DialogHidden:
    pass


@dataclass(frozen=True)
class ErrorNotification:
    error: WorkflowError
    component: str = "ErrorModal"


Update = Union[
    TablesLoaded,
    TablesFetchedFlag,
    FavoritesQuantityUpdated,
    TableSelected,
    TableDataSet,
    DataForMeasureSet,
    TableSchemaSet,
    ConstraintSet,
    TableDropped,
    TableTruncated,
    SelectionReset,
    DialogHidden,
    ErrorNotification,
]


def serialize_update(update: Update) -> Dict[str, Any]:
    """Convert an update to a JSON-friendly ``{"type", "payload"}`` dict."""
    if isinstance(update, ErrorNotification):
        payload: Dict[str, Any] = {
            "component": update.component,
            "error": update.error.to_dict(),
        }
    else:
        payload = {}
        for f in fields(update):
            value = getattr(update, f.name)
            if is_dataclass(value) and not isinstance(value, type):
                value = asdict(value)
            elif isinstance(value, dict):
                value = {
                    k: asdict(v) if is_dataclass(v) and not isinstance(v, type) else v
                    for k, v in value.items()
                }
            payload[f.name] = value
    return {"type": type(update).__name__, "payload": payload}
