"""Immutable value records produced by history reconstruction."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator

from .references import ImageReference, InstanceReference


class Tenancy(StrEnum):
    UNKNOWN = "UNKNOWN"
    FLEET = "FLEET"
    SOLE_TENANT = "SOLE_TENANT"


class HistoryState(StrEnum):
    """How much of an instance's record could be established."""

    COMPLETE = "COMPLETE"
    MISSING_TENANCY = "MISSING_TENANCY"
    MISSING_NAME = "MISSING_NAME"
    MISSING_IMAGE = "MISSING_IMAGE"


class Placement(BaseModel):
    """Interval during which an instance ran on a node.

    `end` is None when no upper bound could be established (defunct
    instances). Otherwise `start < end` holds.
    """

    model_config = ConfigDict(frozen=True)

    node_id: str
    start: datetime
    end: datetime | None = None

    @model_validator(mode="after")
    def _check_interval(self) -> Self:
        if self.end is not None and self.end <= self.start:
            msg = f"Placement on '{self.node_id}' must end after it starts"
            raise ValueError(msg)
        return self

    @property
    def is_open_ended(self) -> bool:
        return self.end is None

    def overlaps(self, other: Placement) -> bool:
        """True if the half-open intervals share any instant."""
        self_end_after = self.end is None or other.start < self.end
        other_end_after = other.end is None or self.start < other.end
        return self_end_after and other_end_after


class InstanceHistory(BaseModel):
    model_config = ConfigDict(frozen=True)

    instance_id: int
    reference: InstanceReference | None = None
    state: HistoryState = HistoryState.MISSING_TENANCY
    image: ImageReference | None = None
    tenancy: Tenancy = Tenancy.UNKNOWN
    placements: tuple[Placement, ...] = ()
    is_defunct: bool = False

    @property
    def node_ids(self) -> set[str]:
        return {p.node_id for p in self.placements}
