"""Application wide metrics utilities."""
from .definitions import (
    ACCESS_DENIED,
    COMMENTS_CREATED,
    DEFAULT_METRIC_DEFINITIONS,
    REQUEST_DURATION,
    STATUS_TRANSITIONS,
    TICKETS_CREATED,
    MetricDefinition,
)
from .registry import CounterMetric, DistributionMetric, MetricsRegistry

metrics_registry = MetricsRegistry()


def register_default_metrics(registry: MetricsRegistry | None = None) -> None:
    """Ensure all default metric definitions exist in the registry."""
    target = registry or metrics_registry
    for definition in DEFAULT_METRIC_DEFINITIONS:
        if definition.metric_type == "counter":
            target.counter(
                definition.name,
                description=definition.description,
                label_names=definition.label_names,
            )
        elif definition.metric_type == "distribution":
            target.distribution(
                definition.name,
                description=definition.description,
                label_names=definition.label_names,
            )
        else:  # pragma: no cover - defensive
            raise ValueError(f"Unsupported metric type: {definition.metric_type}")


register_default_metrics()

__all__ = [
    "ACCESS_DENIED",
    "COMMENTS_CREATED",
    "CounterMetric",
    "DistributionMetric",
    "MetricDefinition",
    "MetricsRegistry",
    "REQUEST_DURATION",
    "STATUS_TRANSITIONS",
    "TICKETS_CREATED",
    "metrics_registry",
    "register_default_metrics",
]
