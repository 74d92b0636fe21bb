"""
Prometheus metrics of the filter layer.

Counters are registered on the default registry and exposed by whatever
``/metrics`` endpoint the host application mounts. Code records metrics
through the ``MetricsCollector`` facade:

    from listing_filters.utils.metrics import MetricsCollector
    MetricsCollector.record_slug_lookup("slug", hit=True)
"""

from prometheus_client import REGISTRY, Counter


def _get_or_create_counter(
    name: str, doc: str, labels: list[str] | None = None
) -> Counter:
    """
    Get existing counter or create new one.

    Prevents duplicate registration errors during development with --reload.

    Args:
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.

    Returns:
        Counter instance.
    """
    try:
        return Counter(name, doc, labels or [])
    except ValueError:
        # Metric already exists, retrieve it from registry
        return REGISTRY._names_to_collectors[name]


slug_lookups_total = _get_or_create_counter(
    "listing_filter_slug_lookups_total",
    "Total slug store lookups",
    ["kind", "result"],  # kind: slug, filter_data; result: hit, miss
)

slugs_created_total = _get_or_create_counter(
    "listing_filter_slugs_created_total",
    "Total slug records created",
)

slug_collisions_total = _get_or_create_counter(
    "listing_filter_slug_collisions_total",
    "Total generated slug candidates that were already taken",
)

redirects_total = _get_or_create_counter(
    "listing_filter_redirects_total",
    "Total filter form submissions redirected to a slugged URL",
)


class MetricsCollector:
    """
    Centralized facade for the filter layer metrics.

    All methods are static for easy use without instantiation.
    """

    @staticmethod
    def record_slug_lookup(kind: str, hit: bool) -> None:
        """
        Record a slug store lookup.

        Args:
            kind: 'slug' (data -> slug) or 'filter_data' (slug -> data)
            hit: Whether a record was found
        """
        slug_lookups_total.labels(
            kind=kind, result="hit" if hit else "miss"
        ).inc()

    @staticmethod
    def record_slug_created() -> None:
        """Record a newly persisted slug."""
        slugs_created_total.inc()

    @staticmethod
    def record_slug_collision() -> None:
        """Record a generated slug candidate that was already taken."""
        slug_collisions_total.inc()

    @staticmethod
    def record_redirect() -> None:
        """Record a filter submission redirect."""
        redirects_total.inc()
