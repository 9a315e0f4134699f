"""History reconstruction: events, instance builders and node aggregation."""

from .builder import InstanceHistoryBuilder, replay
from .errors import HistoryError, OutOfOrderEventError
from .events import (
    EventType,
    InsertEvent,
    LifecycleEvent,
    PlacementEvent,
    StopEvent,
    StopReason,
    newest_first,
    parse_events,
)
from .models import HistoryState, InstanceHistory, Placement, Tenancy
from .nodes import NodeHistory, NodePlacement, NodeSetHistory, peak_concurrency
from .references import ImageReference, InstanceReference
from .set_builder import InstanceSetHistory, InstanceSetHistoryBuilder

__all__ = [
    "InstanceHistoryBuilder",
    "InstanceSetHistoryBuilder",
    "InstanceSetHistory",
    "NodeSetHistory",
    "replay",
    "parse_events",
    "newest_first",
    "peak_concurrency",
    "EventType",
    "InsertEvent",
    "StopEvent",
    "StopReason",
    "PlacementEvent",
    "LifecycleEvent",
    "HistoryState",
    "InstanceHistory",
    "Placement",
    "Tenancy",
    "NodeHistory",
    "NodePlacement",
    "ImageReference",
    "InstanceReference",
    "HistoryError",
    "OutOfOrderEventError",
]
