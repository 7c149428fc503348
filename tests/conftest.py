from __future__ import annotations

import asyncio
import itertools
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from adapters.metrics.noop import NoOpMetrics
from tablesync.errors.exceptions import DatabaseError
from tablesync.types import QueryResult


class FakeGateway:
    """
    Scripted query gateway.

    Rules are matched in registration order by substring on the
    whitespace-normalized query; unmatched queries return an empty result.
    Every call yields to the event loop once, like a real round-trip.
    """

    name = "fake"
    dialect = "postgres"

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self._rules: List[Tuple[str, Optional[QueryResult], Optional[Exception]]] = []
        self.ping_error: Optional[Exception] = None

    def on(
        self,
        needle: str,
        rows: Optional[List[Dict[str, Any]]] = None,
        *,
        columns: Optional[List[str]] = None,
        error: Optional[Exception] = None,
    ) -> "FakeGateway":
        rows = rows or []
        if columns is None:
            columns = list(rows[0].keys()) if rows else []
        result = None if error else QueryResult(rows=rows, columns=columns)
        self._rules.append((needle.lower(), result, error))
        return self

    def queries(self, needle: str = "") -> List[str]:
        return [q for q, _ in self.calls if needle.lower() in q.lower()]

    async def execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        normalized = " ".join(query.split())
        self.calls.append((normalized, tuple(params)))
        await asyncio.sleep(0)
        for needle, result, error in self._rules:
            if needle in normalized.lower():
                if error is not None:
                    raise error
                return result  # type: ignore[return-value]
        return QueryResult(rows=[], columns=[])

    async def ping(self) -> None:
        if self.ping_error is not None:
            raise self.ping_error


class RecordingMetrics(NoOpMetrics):
    """Counts component metrics; lane metrics stay no-ops."""

    def __init__(self) -> None:
        self.skips = 0
        self.unresolved = 0

    def inc_introspection_skip(self) -> None:
        self.skips += 1

    def inc_constraints_unresolved(self, *, count: int) -> None:
        self.unresolved += count


def table_rows(*names: str) -> List[Dict[str, Any]]:
    return [{"table_name": n} for n in names]


def fk_row(table_name: str, constraint_name: str, **overrides: Any) -> Dict[str, Any]:
    row = {
        "constraint_name": constraint_name,
        "constraint_type": "FOREIGN KEY",
        "table_name": table_name,
        "column_name": "user_id",
        "is_deferrable": "NO",
        "initially_deferred": "NO",
        "match_type": "NONE",
        "on_update": "NO ACTION",
        "on_delete": "CASCADE",
        "references_table": "users",
        "references_field": "id",
    }
    row.update(overrides)
    return row


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def seq_ids():
    """Deterministic table ids: T1, T2, ..."""
    counter = itertools.count(1)
    return lambda _name: f"T{next(counter)}"


@pytest.fixture
def db_error():
    return lambda message: DatabaseError(message=message)
