"""Prometheus metrics for the verification pipeline."""

from prometheus_client import REGISTRY, Counter, Histogram

# Geocode cache metrics
GEOCODE_CACHE_LOOKUPS = Counter(
    "addressflow_geocode_cache_lookups_total",
    "Total number of geocode cache lookups",
    ["result"],  # hit, miss
)

# Provider resilience metrics
PROVIDER_RETRIES = Counter(
    "addressflow_provider_retries_total",
    "Total number of quota/rate-limit retries issued against providers",
)

PROVIDER_FAILURES = Counter(
    "addressflow_provider_failures_total",
    "Total number of provider calls degraded to an empty result",
    ["provider"],  # geocode, suggestions, tes
)

BUDGET_TIMEOUTS = Counter(
    "addressflow_budget_timeouts_total",
    "Total number of provider calls that exceeded their latency budget",
    ["provider"],
)

# Ordering guarantees
STALE_RESULTS_DISCARDED = Counter(
    "addressflow_stale_results_discarded_total",
    "Total number of asynchronous results discarded as out of date",
    ["source"],  # debounce, guard
)

# Save path
SAVE_DECISIONS = Counter(
    "addressflow_save_decisions_total",
    "Total number of save requests by decision",
    ["decision"],  # saved, failed, duplicate, no_changes
)

VERIFICATION_SECONDS = Histogram(
    "addressflow_verification_seconds",
    "Time spent producing a verification result",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)


def register_metrics() -> None:
    """Register metrics with Prometheus."""
    metrics = [
        GEOCODE_CACHE_LOOKUPS,
        PROVIDER_RETRIES,
        PROVIDER_FAILURES,
        BUDGET_TIMEOUTS,
        STALE_RESULTS_DISCARDED,
        SAVE_DECISIONS,
        VERIFICATION_SECONDS,
    ]
    for metric in metrics:
        try:
            REGISTRY.register(metric)
        except ValueError:
            # Metric already registered
            pass


# Register metrics on module import
register_metrics()
