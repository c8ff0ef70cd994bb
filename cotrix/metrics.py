"""Prometheus metrics for the coupon discovery service."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("cotrix", "Cotrix coupon discovery service info")
app_info.info({"version": "0.1.0", "name": "cotrix"})

# Request metrics
discovery_requests_total = Counter(
    "discovery_requests_total",
    "Total number of coupon discovery requests",
    ["status"],
)

discovery_duration_seconds = Histogram(
    "discovery_duration_seconds",
    "Time spent discovering coupon codes for one store URL",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

# Cache metrics
cache_lookups_total = Counter(
    "cache_lookups_total",
    "Total number of result cache lookups",
    ["result"],
)

# Adapter metrics
adapter_runs_total = Counter(
    "adapter_runs_total",
    "Total number of source adapter invocations",
    ["source", "status"],
)

adapter_candidates_total = Counter(
    "adapter_candidates_total",
    "Total number of candidate codes extracted",
    ["source", "method"],
)


def record_discovery(status: str, duration: float | None = None):
    """Record a finished discovery request."""
    discovery_requests_total.labels(status=status).inc()
    if duration is not None:
        discovery_duration_seconds.observe(duration)


def record_cache_lookup(hit: bool):
    """Record a result cache lookup."""
    cache_lookups_total.labels(result="hit" if hit else "miss").inc()


def record_adapter_run(source: str, status: str, candidates: int = 0, method: str = "structured"):
    """Record one adapter invocation and the candidates it produced."""
    adapter_runs_total.labels(source=source, status=status).inc()
    if candidates:
        adapter_candidates_total.labels(source=source, method=method).inc(candidates)
