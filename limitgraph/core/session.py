"""Sessions group traces produced under one configuration."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

SessionId = uuid.UUID


@dataclass
class SessionConfig:
    name: str
    max_concurrency: int
    allow_network: bool


@dataclass
class Session:
    """A configured session with a random identifier."""

    config: SessionConfig
    id: SessionId = field(default_factory=uuid.uuid4)