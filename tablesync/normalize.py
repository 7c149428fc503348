from __future__ import annotations

from typing import Any, Dict, List, Optional

from tablesync.types import QueryResult, TableData


def _columns(result: QueryResult) -> List[str]:
    if result.columns:
        return list(result.columns)
    return list(result.rows[0].keys()) if result.rows else []


def normalize_page(result: QueryResult, start_index: Optional[int] = None) -> TableData:
    """
    Split a result page into ordered ids plus id -> record maps.

    Row ids are absolute positions (start_index + i), so consecutive pages
    of the same table never reuse an id.
    """
    offset = start_index or 0
    rows_ids: List[int] = []
    rows: Dict[int, Dict[str, Any]] = {}
    for i, row in enumerate(result.rows):
        row_id = offset + i
        rows_ids.append(row_id)
        rows[row_id] = dict(row)

    fields_ids = _columns(result)
    fields = {name: {"name": name, "index": i} for i, name in enumerate(fields_ids)}
    return TableData(rows_ids=rows_ids, rows=rows, fields_ids=fields_ids, fields=fields)


def measure_data(result: QueryResult) -> Dict[str, Any]:
    """Per column, the value with the longest text rendering (for width sizing)."""
    widest: Dict[str, Any] = {}
    lengths: Dict[str, int] = {}
    for name in _columns(result):
        widest[name] = None
        lengths[name] = -1
    for row in result.rows:
        for name, value in row.items():
            size = len("" if value is None else str(value))
            if size > lengths.get(name, -1):
                lengths[name] = size
                widest[name] = value
    return widest
