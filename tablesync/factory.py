from __future__ import annotations

import os
from typing import Any, Callable, Dict, Optional, cast

import yaml  # type: ignore[import-untyped]
from dotenv import load_dotenv

from adapters.db.base import QueryGateway
from adapters.db.postgres_adapter import PostgresAdapter
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from tablesync.dispatcher import WorkflowDispatcher
from tablesync.loader import DEFAULT_PAGE_SIZE

load_dotenv()


# ------------------------------ helpers ------------------------------ #
def _require_str(value: Any, *, name: str) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config {name} must be a non-empty string")
    return value.strip()


def _require_positive_int(value: Any, *, name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Config {name} must be an integer") from None
    if parsed <= 0:
        raise ValueError(f"Config {name} must be positive")
    return parsed


def _build_gateway(adapter_cfg: Dict[str, Any]) -> QueryGateway:
    kind = (adapter_cfg.get("kind") or "postgres").lower()
    if kind == "postgres":
        dsn = adapter_cfg.get("dsn") or os.getenv("POSTGRES_DSN")
        kwargs: Dict[str, Any] = {"dsn": _require_str(dsn, name="adapter.dsn")}
        if "connect_timeout" in adapter_cfg:
            kwargs["connect_timeout"] = _require_positive_int(
                adapter_cfg["connect_timeout"], name="adapter.connect_timeout"
            )
        return PostgresAdapter(**kwargs)
    raise ValueError(f"Unknown adapter kind: {kind}")


def _build_metrics(enabled: bool) -> Metrics:
    if not enabled:
        return NoOpMetrics()
    # imported lazily: importing registers the collectors
    from adapters.metrics.prometheus import PrometheusMetrics

    return PrometheusMetrics()


# ------------------------------ factory ------------------------------ #
def build_dispatcher(
    gateway: QueryGateway,
    *,
    schema: str = "public",
    page_size: int = DEFAULT_PAGE_SIZE,
    metrics_enabled: bool = True,
    id_factory: Optional[Callable[[str], str]] = None,
) -> WorkflowDispatcher:
    return WorkflowDispatcher(
        gateway,
        schema=_require_str(schema, name="workflow.schema"),
        page_size=_require_positive_int(page_size, name="workflow.page_size"),
        metrics=_build_metrics(metrics_enabled),
        id_factory=id_factory,
    )


def dispatcher_from_config(
    path: str, *, gateway: Optional[QueryGateway] = None
) -> WorkflowDispatcher:
    """
    Build a WorkflowDispatcher from YAML configuration.

    Expected shape::

        adapter:  {kind: postgres, dsn: "...", connect_timeout: 10}
        workflow: {schema: public, page_size: 100}
        metrics:  {enabled: true}

    A ``gateway`` argument overrides the adapter section.
    """
    with open(path, "r", encoding="utf-8") as fh:
        cfg: Dict[str, Any] = yaml.safe_load(fh) or {}

    adapter_cfg = cast(Dict[str, Any], cfg.get("adapter") or {})
    workflow_cfg = cast(Dict[str, Any], cfg.get("workflow") or {})
    metrics_cfg = cast(Dict[str, Any], cfg.get("metrics") or {})

    if gateway is None:
        gateway = _build_gateway(adapter_cfg)

    return build_dispatcher(
        gateway,
        schema=workflow_cfg.get("schema", "public"),
        page_size=workflow_cfg.get("page_size", DEFAULT_PAGE_SIZE),
        metrics_enabled=bool(metrics_cfg.get("enabled", True)),
    )
