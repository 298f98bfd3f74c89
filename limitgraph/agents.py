"""Agent interface and benchmark records."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from limitgraph.core.types import RDSeries


@dataclass
class AgentConfig:
    name: str
    objective: str


@dataclass
class AgentMetrics:
    coverage: float
    alignment: float
    distortion: float


class Agent(ABC):
    """An agent that advances one step at a time given a context."""

    def __init__(self, config: AgentConfig) -> None:
        self.config = config

    @abstractmethod
    def step(self, ctx: Any) -> AgentMetrics:
        """Advance the agent with ``ctx`` and report its metrics."""


@dataclass
class SerendipityTrace:
    """Labels for anomaly or defection branches found during a run."""

    branches: list[str] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class BenchmarkRun:
    trace: SerendipityTrace
    rd_series: RDSeries