"""Database-backed storage: SQLite tables and an embedded key-value store."""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from limitgraph.core.session import SessionId
from limitgraph.core.types import GovernanceCheckpoint, Provenance, RDSeries, TraceId
from limitgraph.storage.file_storage import Storage, _dump

_SCHEMA = """
CREATE TABLE IF NOT EXISTS traces (
    session_id TEXT NOT NULL,
    trace_id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (session_id, trace_id)
);
CREATE TABLE IF NOT EXISTS rd_series (
    session_id TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS provenance (
    session_id TEXT NOT NULL,
    trace_id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS checkpoints (
    session_id TEXT NOT NULL,
    trace_id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def _database_path(database_url: str) -> str:
    for prefix in ("sqlite://", "sqlite:"):
        if database_url.startswith(prefix):
            return database_url[len(prefix):]
    return database_url


class SqliteStorage(Storage):
    """Stores records as JSON text in SQLite tables.

    Accepts a plain path, ``:memory:``, or a ``sqlite:``-prefixed URL.
    """

    def __init__(self, database_url: str | Path) -> None:
        self._conn = sqlite3.connect(
            _database_path(str(database_url)), check_same_thread=False
        )
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.executescript(_SCHEMA)

    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        with self._lock, self._conn:
            self._conn.execute(sql, params)

    def persist_trace(self, session: SessionId, trace: TraceId, data: Any) -> None:
        self._execute(
            "INSERT INTO traces (session_id, trace_id, data) VALUES (?, ?, ?)",
            (str(session), str(trace), _dump(data)),
        )

    def persist_rd_series(self, session: SessionId, series: RDSeries) -> None:
        self._execute(
            "INSERT OR REPLACE INTO rd_series (session_id, data) VALUES (?, ?)",
            (str(session), _dump(series)),
        )

    def persist_provenance(
        self, session: SessionId, trace: TraceId, prov: Provenance
    ) -> None:
        self._execute(
            "INSERT INTO provenance (session_id, trace_id, data) VALUES (?, ?, ?)",
            (str(session), str(trace), _dump(prov)),
        )

    def persist_checkpoint(
        self, session: SessionId, trace: TraceId, chk: GovernanceCheckpoint
    ) -> None:
        self._execute(
            "INSERT INTO checkpoints (session_id, trace_id, data) VALUES (?, ?, ?)",
            (str(session), str(trace), _dump(chk)),
        )

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteStorage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class KVStorage(Storage):
    """Embedded key-value store kept in a directory.

    Keys are ``<prefix>:<session>[:<trace>]``; values are compact JSON.
    Writing an existing key replaces its value.
    """

    def __init__(self, path: str | Path) -> None:
        directory = Path(path)
        directory.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            directory / "kv.sqlite3", check_same_thread=False
        )
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value BLOB NOT NULL)"
            )

    @staticmethod
    def _make_key(prefix: str, session: SessionId, trace: TraceId | None = None) -> str:
        if trace is None:
            return f"{prefix}:{session}"
        return f"{prefix}:{session}:{trace}"

    def _insert(self, key: str, obj: Any) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, _dump(obj).encode("utf-8")),
            )

    def get(self, key: str) -> Any:
        """Decoded value stored under ``key``, or None if absent."""
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        return None if row is None else json.loads(row[0])

    def persist_trace(self, session: SessionId, trace: TraceId, data: Any) -> None:
        self._insert(self._make_key("trace", session, trace), data)

    def persist_rd_series(self, session: SessionId, series: RDSeries) -> None:
        self._insert(self._make_key("rd", session), series)

    def persist_provenance(
        self, session: SessionId, trace: TraceId, prov: Provenance
    ) -> None:
        self._insert(self._make_key("prov", session, trace), prov)

    def persist_checkpoint(
        self, session: SessionId, trace: TraceId, chk: GovernanceCheckpoint
    ) -> None:
        self._insert(self._make_key("chk", session, trace), chk)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> KVStorage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()