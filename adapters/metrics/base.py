from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

Lane = Literal["fetch_tables", "fetch_table_data", "get_schema", "drop_table", "truncate_table"]


class Metrics(ABC):
    @abstractmethod
    def observe_lane_duration_ms(self, *, lane: Lane, dt_ms: float) -> None: ...

    @abstractmethod
    def inc_lane_request(self, *, lane: Lane, ok: bool) -> None: ...

    @abstractmethod
    def inc_lane_error(self, *, lane: Lane, error_code: str) -> None: ...

    @abstractmethod
    def inc_introspection_skip(self) -> None: ...

    @abstractmethod
    def inc_constraints_unresolved(self, *, count: int) -> None: ...
