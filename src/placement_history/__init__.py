"""Placement history: reconstruct VM and node lifecycles from audit logs."""

from .history import InstanceHistoryBuilder, InstanceSetHistoryBuilder, NodeSetHistory
from .history.errors import HistoryError, OutOfOrderEventError
from .history.events import (
    EventType,
    InsertEvent,
    LifecycleEvent,
    PlacementEvent,
    StopEvent,
    StopReason,
    parse_events,
)
from .history.models import HistoryState, InstanceHistory, Placement, Tenancy
from .history.nodes import NodeHistory, NodePlacement
from .history.references import ImageReference, InstanceReference

__version__ = "0.1.0"

__all__ = [
    "EventType",
    "HistoryError",
    "HistoryState",
    "ImageReference",
    "InsertEvent",
    "InstanceHistory",
    "InstanceHistoryBuilder",
    "InstanceReference",
    "InstanceSetHistoryBuilder",
    "LifecycleEvent",
    "NodeHistory",
    "NodePlacement",
    "NodeSetHistory",
    "OutOfOrderEventError",
    "Placement",
    "PlacementEvent",
    "StopEvent",
    "StopReason",
    "Tenancy",
    "parse_events",
]
