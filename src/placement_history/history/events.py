"""Typed lifecycle events consumed by the history fold.

Events are a closed set of tagged variants. Callers that hold raw
payloads (for example decoded JSON) can validate them with
`parse_events`, which dispatches on the `type` field.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from ulid import ULID

from .references import ImageReference, InstanceReference


class EventType(StrEnum):
    INSERT = "INSERT"
    STOP = "STOP"
    SET_PLACEMENT = "SET_PLACEMENT"


class StopReason(StrEnum):
    """Audit-log operations that end a run of the instance."""

    STOP = "STOP"
    DELETE = "DELETE"
    TERMINATE_ON_HOST_MAINTENANCE = "TERMINATE_ON_HOST_MAINTENANCE"
    GUEST_SHUTDOWN = "GUEST_SHUTDOWN"


class _LifecycleEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(ULID()))
    instance_id: int
    timestamp: datetime


class InsertEvent(_LifecycleEventBase):
    type: Literal["INSERT"] = "INSERT"
    reference: InstanceReference | None = None
    image: ImageReference | None = None


class StopEvent(_LifecycleEventBase):
    type: Literal["STOP"] = "STOP"
    reason: StopReason = StopReason.STOP
    reference: InstanceReference | None = None


class PlacementEvent(_LifecycleEventBase):
    type: Literal["SET_PLACEMENT"] = "SET_PLACEMENT"
    node_id: str


LifecycleEvent = Annotated[
    InsertEvent | StopEvent | PlacementEvent,
    Field(discriminator="type"),
]

_events_adapter: TypeAdapter[list[LifecycleEvent]] = TypeAdapter(list[LifecycleEvent])


def parse_events(payloads: list[dict[str, Any]]) -> list[LifecycleEvent]:
    """Validate raw event payloads into typed events.

    Raises:
        pydantic.ValidationError: If a payload has an unknown type or
            is missing required fields.
    """
    return _events_adapter.validate_python(payloads)


def newest_first(events: list[LifecycleEvent]) -> list[LifecycleEvent]:
    """Sort events into the order expected by `replay` (newest first).

    The sort is stable, so events sharing a timestamp keep the order in
    which the log returned them.
    """
    return sorted(events, key=lambda e: e.timestamp, reverse=True)
