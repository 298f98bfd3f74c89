"""Identifiers and records shared across sessions, storage and orchestration."""

from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

TraceId = uuid.UUID


def new_trace_id() -> TraceId:
    """Return a fresh random trace identifier."""
    return uuid.uuid4()


@dataclass
class Provenance:
    """Where a change came from and which operation produced it."""

    source: str
    operation: str
    rationale: str | None = None


@dataclass
class GovernanceCheckpoint:
    """Outcome of one governance check."""

    label: str
    passed: bool
    details: str | None = None


@dataclass
class RDPoint:
    """One point of a reward/difficulty (rate/distortion) curve."""

    reward: float
    difficulty: float
    step: int = 0


@dataclass
class RDSeries:
    """An ordered sequence of RD points."""

    points: list[RDPoint] = field(default_factory=list)

    def add(self, p: RDPoint) -> None:
        self.points.append(p)

    def knee_index(self) -> int | None:
        """Index of the point farthest from the line joining the first and last points.

        Returns None when there are fewer than three points.
        """
        if len(self.points) < 3:
            return None
        first, last = self.points[0], self.points[-1]
        ax = last.difficulty - first.difficulty
        ay = last.reward - first.reward
        length = max(math.hypot(ax, ay), 1e-6)

        best_index: int | None = None
        best_dist = 0.0
        for index, point in enumerate(self.points[1:-1], start=1):
            vx = point.difficulty - first.difficulty
            vy = point.reward - first.reward
            dist = abs(ax * vy - ay * vx) / length
            if best_index is None or dist > best_dist:
                best_index, best_dist = index, dist
        return best_index

    def to_dict(self) -> dict[str, Any]:
        return {"points": [asdict(p) for p in self.points]}