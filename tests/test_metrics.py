import pytest

from apps.api.metrics import (
    REQUEST_DURATION,
    STATUS_TRANSITIONS,
    TICKETS_CREATED,
    MetricsRegistry,
    register_default_metrics,
)
from apps.api.metrics.registry import Metric


def test_default_metrics_are_registered():
    registry = MetricsRegistry()
    register_default_metrics(registry)

    snapshot = registry.snapshot()

    assert TICKETS_CREATED in snapshot
    assert STATUS_TRANSITIONS in snapshot
    assert REQUEST_DURATION in snapshot


def test_counter_tracks_labels_independently():
    registry = MetricsRegistry()
    counter = registry.counter(STATUS_TRANSITIONS, label_names=("from_status", "to_status"))

    counter.inc(labels={"from_status": "OPEN", "to_status": "IN_PROGRESS"})
    counter.inc(labels={"from_status": "OPEN", "to_status": "IN_PROGRESS"})
    counter.inc(labels={"from_status": "IN_PROGRESS", "to_status": "RESOLVED"})

    assert counter.value(labels={"from_status": "OPEN", "to_status": "IN_PROGRESS"}) == 2
    assert counter.value(labels={"from_status": "IN_PROGRESS", "to_status": "RESOLVED"}) == 1


def test_counter_rejects_negative_increment():
    counter = MetricsRegistry().counter(TICKETS_CREATED)

    with pytest.raises(ValueError):
        counter.inc(-1)


def test_distribution_timer_records_observation():
    distribution = MetricsRegistry().distribution(REQUEST_DURATION, label_names=("method",))

    with distribution.time(labels={"method": "GET"}):
        pass

    stats = distribution.snapshot()[("GET",)]
    assert stats["count"] == 1
    assert stats["min"] >= 0


def test_metric_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Metric("bare")  # type: ignore[abstract]
