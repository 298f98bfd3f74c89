"""Storage interface and a JSON file backend laid out one directory per session."""

from __future__ import annotations

import dataclasses
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

from limitgraph.core.session import SessionId
from limitgraph.core.types import GovernanceCheckpoint, Provenance, RDSeries, TraceId


def _json_default(obj: Any) -> Any:
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _dump(obj: Any) -> str:
    """Encode a record or JSON value compactly."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    return json.dumps(obj, separators=(",", ":"), default=_json_default)


class Storage(ABC):
    """Persists traces, RD series, provenance and governance checkpoints."""

    @abstractmethod
    def persist_trace(self, session: SessionId, trace: TraceId, data: Any) -> None:
        """Store the data produced by one trace."""

    @abstractmethod
    def persist_rd_series(self, session: SessionId, series: RDSeries) -> None:
        """Store (replacing) the RD series of a session."""

    @abstractmethod
    def persist_provenance(
        self, session: SessionId, trace: TraceId, prov: Provenance
    ) -> None:
        """Record one provenance entry for a trace."""

    @abstractmethod
    def persist_checkpoint(
        self, session: SessionId, trace: TraceId, chk: GovernanceCheckpoint
    ) -> None:
        """Record one governance checkpoint for a trace."""


@dataclass
class FileStorage(Storage):
    """Writes JSON files under ``root/<session>/``."""

    root: str | Path

    def _session_dir(self, session: SessionId) -> Path:
        directory = Path(self.root) / str(session)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def _append_line(self, path: Path, obj: Any) -> None:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(_dump(obj))
            handle.write("\n")

    def persist_trace(self, session: SessionId, trace: TraceId, data: Any) -> None:
        path = self._session_dir(session) / f"trace-{trace}.json"
        path.write_text(_dump(data), encoding="utf-8")

    def persist_rd_series(self, session: SessionId, series: RDSeries) -> None:
        path = self._session_dir(session) / "rd-series.json"
        path.write_text(_dump(series), encoding="utf-8")

    def persist_provenance(
        self, session: SessionId, trace: TraceId, prov: Provenance
    ) -> None:
        self._append_line(self._session_dir(session) / f"prov-{trace}.jsonl", prov)

    def persist_checkpoint(
        self, session: SessionId, trace: TraceId, chk: GovernanceCheckpoint
    ) -> None:
        self._append_line(self._session_dir(session) / f"chk-{trace}.jsonl", chk)