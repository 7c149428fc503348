from prometheus_client import CollectorRegistry

# Process-wide registry, kept separate from the default one so that
# /metrics only exposes tablesync series.
REGISTRY = CollectorRegistry(auto_describe=True)
