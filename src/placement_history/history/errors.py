from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class HistoryError(Exception):
    """Base class for errors raised while reconstructing histories."""


class OutOfOrderEventError(HistoryError, ValueError):
    """An event was newer than one already replayed for the same instance."""

    def __init__(self, instance_id: int, timestamp: datetime, watermark: datetime) -> None:
        self.instance_id = instance_id
        self.timestamp = timestamp
        self.watermark = watermark
        super().__init__(
            f"Out-of-order event for instance {instance_id}: "
            f"{timestamp.isoformat()} is newer than {watermark.isoformat()}"
        )
