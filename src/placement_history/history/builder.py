"""Backward replay of one instance's lifecycle events.

Audit logs are read newest first, so the builder walks from the most
recent event towards the instance's creation. Each placement event
opens a segment that ends where the previously seen (newer) segment
starts, or at the last known stop. Consecutive placements on the same
node merge until a stop interrupts them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Self

import structlog

from .errors import HistoryError, OutOfOrderEventError
from .events import InsertEvent, PlacementEvent, StopEvent
from .models import HistoryState, InstanceHistory, Placement, Tenancy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .events import LifecycleEvent
    from .references import ImageReference, InstanceReference

log = structlog.get_logger(__name__)


@dataclass
class _OpenPlacement:
    node_id: str
    start: datetime
    end: datetime | None


@dataclass
class _ReplayState:
    upper_boundary: datetime | None = None
    open_placement: _OpenPlacement | None = None
    insert_seen: bool = False
    is_defunct: bool = False
    watermark: datetime | None = None
    # Newest first; reversed by build().
    placements: list[Placement] = field(default_factory=list)


class InstanceHistoryBuilder:
    """Folds lifecycle events for a single instance into an InstanceHistory.

    Use `for_existing_instance` when the instance still exists and its
    metadata is known from a live source, or `for_deleted_instance` when
    everything has to be recovered from the log.
    """

    def __init__(
        self,
        instance_id: int,
        *,
        reference: InstanceReference | None = None,
        image: ImageReference | None = None,
        tenancy: Tenancy = Tenancy.UNKNOWN,
        last_seen: datetime | None = None,
        exists: bool = False,
    ) -> None:
        self._instance_id = instance_id
        self._reference = reference
        self._image = image
        self._tenancy = tenancy
        self._exists = exists
        self._state = _ReplayState(upper_boundary=last_seen, watermark=last_seen)
        self._history: InstanceHistory | None = None

    @classmethod
    def for_existing_instance(
        cls,
        instance_id: int,
        reference: InstanceReference,
        image: ImageReference | None,
        last_seen: datetime,
        tenancy: Tenancy,
    ) -> Self:
        return cls(
            instance_id,
            reference=reference,
            image=image,
            tenancy=tenancy,
            last_seen=last_seen,
            exists=True,
        )

    @classmethod
    def for_deleted_instance(cls, instance_id: int) -> Self:
        return cls(instance_id)

    @property
    def instance_id(self) -> int:
        return self._instance_id

    @property
    def tenancy(self) -> Tenancy:
        return self._tenancy

    @property
    def is_defunct(self) -> bool:
        return self._state.is_defunct

    @property
    def is_more_information_needed(self) -> bool:
        """True while the instance's creation has not been found in the log."""
        return not self._exists and not self._state.insert_seen

    @property
    def state(self) -> HistoryState:
        if self._exists:
            return HistoryState.COMPLETE
        if self._tenancy == Tenancy.UNKNOWN:
            return HistoryState.MISSING_TENANCY
        if self._reference is None:
            return HistoryState.MISSING_NAME
        if self._image is None:
            return HistoryState.MISSING_IMAGE
        return HistoryState.COMPLETE

    def on_insert(
        self,
        timestamp: datetime,
        reference: InstanceReference | None,
        image: ImageReference | None,
    ) -> None:
        self._advance(timestamp)

        if self._tenancy == Tenancy.UNKNOWN:
            # No placement seen before creation: the instance ran on the fleet.
            self._tenancy = Tenancy.FLEET
        if self._reference is None:
            self._reference = reference
        if self._image is None:
            self._image = image

        self._close_open_placement()
        self._state.insert_seen = True

    def on_stop(self, timestamp: datetime, reference: InstanceReference | None) -> None:
        self._advance(timestamp)

        if self._reference is None:
            self._reference = reference

        self._close_open_placement()
        self._state.upper_boundary = timestamp

    def on_set_placement(self, node_id: str, timestamp: datetime) -> None:
        self._advance(timestamp)
        state = self._state

        if self._tenancy == Tenancy.UNKNOWN:
            self._tenancy = Tenancy.SOLE_TENANT

        current = state.open_placement
        if current is not None and current.node_id == node_id:
            current.start = timestamp
            log.debug(
                "history.placement_extended",
                instance_id=self._instance_id,
                node_id=node_id,
                start=timestamp.isoformat(),
            )
            return

        closed = self._close_open_placement()
        if closed is not None:
            end: datetime | None = closed.start
        else:
            end = self._boundary()

        if end is None:
            state.is_defunct = True
            log.warning(
                "history.defunct_placement",
                instance_id=self._instance_id,
                node_id=node_id,
                start=timestamp.isoformat(),
            )

        state.open_placement = _OpenPlacement(node_id=node_id, start=timestamp, end=end)
        log.debug(
            "history.placement_opened",
            instance_id=self._instance_id,
            node_id=node_id,
            start=timestamp.isoformat(),
            end=end.isoformat() if end else None,
        )

    def build(self) -> InstanceHistory:
        if self._history is not None:
            return self._history

        self._close_open_placement()
        self._history = InstanceHistory(
            instance_id=self._instance_id,
            reference=self._reference,
            state=self.state,
            image=self._image,
            tenancy=self._tenancy,
            placements=tuple(reversed(self._state.placements)),
            is_defunct=self._state.is_defunct,
        )
        return self._history

    def _advance(self, timestamp: datetime) -> None:
        if self._history is not None:
            msg = f"History for instance {self._instance_id} has already been built"
            raise HistoryError(msg)

        watermark = self._state.watermark
        if watermark is not None and timestamp > watermark:
            raise OutOfOrderEventError(self._instance_id, timestamp, watermark)
        self._state.watermark = timestamp

    def _boundary(self) -> datetime | None:
        boundary = self._state.upper_boundary
        placements = self._state.placements
        if boundary is not None and placements and placements[-1].start < boundary:
            # An insert does not move the boundary; never reach past a newer placement.
            return placements[-1].start
        return boundary

    def _close_open_placement(self) -> _OpenPlacement | None:
        current = self._state.open_placement
        if current is None:
            return None
        self._state.open_placement = None

        if current.end is not None and current.end <= current.start:
            log.debug(
                "history.empty_placement_dropped",
                instance_id=self._instance_id,
                node_id=current.node_id,
            )
            return current

        self._state.placements.append(
            Placement(node_id=current.node_id, start=current.start, end=current.end)
        )
        return current


def replay(builder: InstanceHistoryBuilder, events: Iterable[LifecycleEvent]) -> InstanceHistoryBuilder:
    """Apply events, newest first, to a builder.

    Args:
        builder: Builder for the instance the events belong to.
        events: Events in non-increasing timestamp order.

    Returns:
        The same builder, for chaining into `build()`.

    Raises:
        ValueError: If an event belongs to a different instance.
        OutOfOrderEventError: If an event is newer than its predecessor.
    """
    for event in events:
        if event.instance_id != builder.instance_id:
            msg = f"Event {event.id} belongs to instance {event.instance_id}, not {builder.instance_id}"
            raise ValueError(msg)

        match event:
            case InsertEvent():
                builder.on_insert(event.timestamp, event.reference, event.image)
            case StopEvent():
                builder.on_stop(event.timestamp, event.reference)
            case PlacementEvent():
                builder.on_set_placement(event.node_id, event.timestamp)

    return builder
