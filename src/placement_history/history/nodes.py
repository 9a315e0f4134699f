"""Aggregation of instance placements by node.

Only sole-tenant instances occupy dedicated nodes, so fleet instances
and instances without placements are left out.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from itertools import groupby
from typing import TYPE_CHECKING, Self

import structlog

from .models import InstanceHistory, Tenancy

if TYPE_CHECKING:
    from collections.abc import Iterable

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NodePlacement:
    """A placement seen from the node's side, tagged with its instance."""

    instance: InstanceHistory
    start: datetime
    end: datetime | None = None

    @property
    def last_evidence(self) -> datetime:
        return self.end if self.end is not None else self.start


@dataclass(frozen=True)
class NodeHistory:
    node_id: str
    first_use: datetime
    last_use: datetime
    peak_concurrent_placements: int
    placements: tuple[NodePlacement, ...] = ()

    @property
    def instance_ids(self) -> set[int]:
        return {p.instance.instance_id for p in self.placements}


def peak_concurrency(placements: Iterable[NodePlacement]) -> int:
    """Maximum number of placements active at any instant.

    Intervals are half-open, so a placement ending exactly when another
    starts does not overlap it. Open-ended placements never end.
    """
    deltas: list[tuple[datetime, int]] = []
    for placement in placements:
        deltas.append((placement.start, 1))
        if placement.end is not None:
            deltas.append((placement.end, -1))

    deltas.sort(key=lambda d: d[0])

    running = 0
    peak = 0
    for _, group in groupby(deltas, key=lambda d: d[0]):
        running += sum(delta for _, delta in group)
        peak = max(peak, running)
    return peak


@dataclass(frozen=True)
class NodeSetHistory:
    nodes: tuple[NodeHistory, ...] = field(default_factory=tuple)

    def node(self, node_id: str) -> NodeHistory | None:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    @classmethod
    def from_instance_histories(
        cls,
        instances: Iterable[InstanceHistory],
        *,
        include_defunct: bool = True,
    ) -> Self:
        """Group placements by node and compute per-node usage.

        Args:
            instances: Built instance histories.
            include_defunct: Whether open-ended placements of defunct
                instances take part in the aggregation.

        Returns:
            NodeSetHistory with one entry per node, sorted by node id.
        """
        by_node: dict[str, list[NodePlacement]] = defaultdict(list)

        for instance in instances:
            if instance.tenancy == Tenancy.FLEET or not instance.placements:
                continue
            for placement in instance.placements:
                if placement.is_open_ended and not include_defunct:
                    continue
                by_node[placement.node_id].append(
                    NodePlacement(instance=instance, start=placement.start, end=placement.end)
                )

        nodes = []
        for node_id in sorted(by_node):
            placements = sorted(by_node[node_id], key=lambda p: p.start)
            nodes.append(
                NodeHistory(
                    node_id=node_id,
                    first_use=min(p.start for p in placements),
                    last_use=max(p.last_evidence for p in placements),
                    peak_concurrent_placements=peak_concurrency(placements),
                    placements=tuple(placements),
                )
            )

        log.info(
            "nodes.aggregated",
            node_count=len(nodes),
            placement_count=sum(len(n.placements) for n in nodes),
        )
        return cls(nodes=tuple(nodes))
