from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from .builder import InstanceHistoryBuilder, replay
from .models import HistoryState, InstanceHistory

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .events import LifecycleEvent
    from .models import Tenancy
    from .references import ImageReference, InstanceReference

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InstanceSetHistory:
    """Histories of all instances seen in one log scan."""

    instances: tuple[InstanceHistory, ...] = ()

    @property
    def complete(self) -> list[InstanceHistory]:
        return [i for i in self.instances if i.state == HistoryState.COMPLETE]

    @property
    def incomplete(self) -> list[InstanceHistory]:
        return [i for i in self.instances if i.state != HistoryState.COMPLETE]

    def instance(self, instance_id: int) -> InstanceHistory | None:
        for history in self.instances:
            if history.instance_id == instance_id:
                return history
        return None


@dataclass
class InstanceSetHistoryBuilder:
    """Routes a mixed, newest-first event stream to per-instance builders.

    Instances registered through `add_existing_instance` keep their live
    metadata. Any other instance id seen in the stream is treated as
    deleted and reconstructed from its events.
    """

    _builders: dict[int, InstanceHistoryBuilder] = field(default_factory=dict)
    _seen_event_ids: set[str] = field(default_factory=set)

    def add_existing_instance(
        self,
        instance_id: int,
        reference: InstanceReference,
        image: ImageReference | None,
        last_seen: datetime,
        tenancy: Tenancy,
    ) -> InstanceHistoryBuilder:
        if instance_id in self._builders:
            msg = f"Instance {instance_id} has already been registered"
            raise ValueError(msg)

        builder = InstanceHistoryBuilder.for_existing_instance(
            instance_id, reference, image, last_seen, tenancy
        )
        self._builders[instance_id] = builder
        return builder

    def builder(self, instance_id: int) -> InstanceHistoryBuilder:
        if instance_id not in self._builders:
            self._builders[instance_id] = InstanceHistoryBuilder.for_deleted_instance(instance_id)
        return self._builders[instance_id]

    def process(self, event: LifecycleEvent) -> None:
        # Consecutive log pages may overlap at their edges.
        if event.id in self._seen_event_ids:
            log.debug("history.duplicate_event", event_id=event.id, instance_id=event.instance_id)
            return
        self._seen_event_ids.add(event.id)

        replay(self.builder(event.instance_id), [event])

    def process_all(self, events: Iterable[LifecycleEvent]) -> None:
        for event in events:
            self.process(event)

    @property
    def instance_ids_needing_more_information(self) -> list[int]:
        """Ids of instances whose creation has not been found yet.

        A log reader uses this to decide whether to fetch an older page.
        """
        return sorted(
            instance_id
            for instance_id, builder in self._builders.items()
            if builder.is_more_information_needed
        )

    def build(self) -> InstanceSetHistory:
        histories = tuple(
            self._builders[instance_id].build() for instance_id in sorted(self._builders)
        )
        return InstanceSetHistory(instances=histories)
