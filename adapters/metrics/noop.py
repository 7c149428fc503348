from __future__ import annotations

from adapters.metrics.base import Metrics


class NoOpMetrics(Metrics):
    def observe_lane_duration_ms(self, *, lane: str, dt_ms: float) -> None:
        return

    def inc_lane_request(self, *, lane: str, ok: bool) -> None:
        return

    def inc_lane_error(self, *, lane: str, error_code: str) -> None:
        return

    def inc_introspection_skip(self) -> None:
        return

    def inc_constraints_unresolved(self, *, count: int) -> None:
        return
