"""Metric definitions used across the application."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MetricDefinition:
    """Describe a metric that should exist in the registry."""

    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


TICKETS_CREATED = "tickets_created_total"
STATUS_TRANSITIONS = "ticket_status_transitions_total"
ACCESS_DENIED = "ticket_access_denied_total"
COMMENTS_CREATED = "ticket_comments_created_total"
REQUEST_DURATION = "http_request_duration_seconds"

DEFAULT_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=TICKETS_CREATED,
        metric_type="counter",
        description="Total number of tickets created.",
    ),
    MetricDefinition(
        name=STATUS_TRANSITIONS,
        metric_type="counter",
        description="Accepted ticket status transitions.",
        label_names=("from_status", "to_status"),
    ),
    MetricDefinition(
        name=ACCESS_DENIED,
        metric_type="counter",
        description="Operations rejected by the access policy.",
        label_names=("operation",),
    ),
    MetricDefinition(
        name=COMMENTS_CREATED,
        metric_type="counter",
        description="Total number of ticket comments posted.",
    ),
    MetricDefinition(
        name=REQUEST_DURATION,
        metric_type="distribution",
        description="Duration of HTTP requests in seconds.",
        label_names=("method",),
    ),
)
