from __future__ import annotations

from prometheus_client import Counter, Histogram
from tablesync.prom import REGISTRY

from adapters.metrics.base import Lane, Metrics

LANES = ("fetch_tables", "fetch_table_data", "get_schema", "drop_table", "truncate_table")

# -----------------------------------------------------------------------------
# Lane-level metrics
# -----------------------------------------------------------------------------
lane_duration_ms = Histogram(
    "lane_duration_ms",
    "Duration (ms) of each request handled by a dispatcher lane",
    ["lane"],
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000),
    registry=REGISTRY,
)

lane_requests_total = Counter(
    "lane_requests_total",
    "Count of handled requests labeled by lane and ok",
    ["lane", "ok"],
    registry=REGISTRY,
)

lane_errors_total = Counter(
    "lane_errors_total",
    "Count of failed requests labeled by lane and error_code",
    ["lane", "error_code"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Component metrics
# -----------------------------------------------------------------------------
introspection_skips_total = Counter(
    "introspection_skips_total",
    "Schema introspection requests skipped because the table was already fetched",
    registry=REGISTRY,
)

constraints_unresolved_total = Counter(
    "constraints_unresolved_total",
    "Foreign-key constraints dropped because their table could not be resolved",
    registry=REGISTRY,
)


class PrometheusMetrics(Metrics):
    def observe_lane_duration_ms(self, *, lane: Lane, dt_ms: float) -> None:
        lane_duration_ms.labels(lane=lane).observe(float(dt_ms))

    def inc_lane_request(self, *, lane: Lane, ok: bool) -> None:
        lane_requests_total.labels(lane=lane, ok=("true" if ok else "false")).inc()

    def inc_lane_error(self, *, lane: Lane, error_code: str) -> None:
        lane_errors_total.labels(lane=lane, error_code=str(error_code)).inc()

    def inc_introspection_skip(self) -> None:
        introspection_skips_total.inc()

    def inc_constraints_unresolved(self, *, count: int) -> None:
        constraints_unresolved_total.inc(count)


# -----------------------------------------------------------------------------
# Label priming to keep /metrics stable
# -----------------------------------------------------------------------------
for lane in LANES:
    for ok in ("true", "false"):
        lane_requests_total.labels(lane=lane, ok=ok).inc(0)
