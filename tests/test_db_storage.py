import json
import sqlite3
import uuid

import pytest

from limitgraph.core.types import GovernanceCheckpoint, Provenance, RDPoint, RDSeries
from limitgraph.storage.db_storage import KVStorage, SqliteStorage


@pytest.fixture
def ids():
    return uuid.uuid4(), uuid.uuid4()


def _rows(db_path, sql):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def test_sqlite_trace_round_trip(tmp_path, ids):
    session_id, trace_id = ids
    db_path = tmp_path / "store.db"
    with SqliteStorage(str(db_path)) as storage:
        storage.persist_trace(session_id, trace_id, {"test": "sqlite_storage"})
    rows = _rows(db_path, "SELECT session_id, trace_id, data FROM traces")
    assert len(rows) == 1
    assert rows[0][0] == str(session_id)
    assert rows[0][1] == str(trace_id)
    assert json.loads(rows[0][2]) == {"test": "sqlite_storage"}


def test_sqlite_duplicate_trace_is_rejected(ids):
    session_id, trace_id = ids
    storage = SqliteStorage("sqlite::memory:")
    storage.persist_trace(session_id, trace_id, {"a": 1})
    with pytest.raises(sqlite3.IntegrityError):
        storage.persist_trace(session_id, trace_id, {"a": 2})
    storage.close()


def test_sqlite_rd_series_is_replaced(tmp_path, ids):
    session_id, _ = ids
    db_path = tmp_path / "rd.db"
    with SqliteStorage(f"sqlite://{db_path}") as storage:
        storage.persist_rd_series(session_id, RDSeries([RDPoint(0.5, 1.0)]))
        storage.persist_rd_series(
            session_id, RDSeries([RDPoint(0.5, 1.0), RDPoint(0.9, 3.0)])
        )
    rows = _rows(db_path, "SELECT data FROM rd_series")
    assert len(rows) == 1
    assert len(json.loads(rows[0][0])["points"]) == 2


def test_sqlite_provenance_and_checkpoints_accumulate(tmp_path, ids):
    session_id, trace_id = ids
    db_path = tmp_path / "log.db"
    with SqliteStorage(db_path) as storage:
        for op in ("add", "merge"):
            storage.persist_provenance(
                session_id, trace_id, Provenance(source="n", operation=op)
            )
        storage.persist_checkpoint(
            session_id, trace_id, GovernanceCheckpoint(label="no-jailbreak-merge", passed=True)
        )
    provenance = _rows(db_path, "SELECT data FROM provenance ORDER BY rowid")
    assert [json.loads(r[0])["operation"] for r in provenance] == ["add", "merge"]
    checkpoints = _rows(db_path, "SELECT data FROM checkpoints")
    assert json.loads(checkpoints[0][0])["label"] == "no-jailbreak-merge"


def test_kv_trace_round_trip(tmp_path, ids):
    session_id, trace_id = ids
    with KVStorage(tmp_path / "kv") as storage:
        storage.persist_trace(session_id, trace_id, {"test": "kv_storage"})
        assert storage.get(f"trace:{session_id}:{trace_id}") == {"test": "kv_storage"}


def test_kv_missing_key_returns_none(tmp_path):
    with KVStorage(tmp_path / "kv") as storage:
        assert storage.get("trace:missing") is None


def test_kv_rd_series_key_has_no_trace(tmp_path, ids):
    session_id, _ = ids
    with KVStorage(tmp_path / "kv") as storage:
        storage.persist_rd_series(session_id, RDSeries([RDPoint(0.7, 2.0)]))
        stored = storage.get(f"rd:{session_id}")
    assert stored["points"][0]["reward"] == 0.7


def test_kv_overwrites_and_persists_across_reopen(tmp_path, ids):
    session_id, trace_id = ids
    path = tmp_path / "kv"
    with KVStorage(path) as storage:
        storage.persist_checkpoint(
            session_id, trace_id, GovernanceCheckpoint(label="first", passed=False)
        )
        storage.persist_checkpoint(
            session_id, trace_id, GovernanceCheckpoint(label="second", passed=True)
        )
        storage.persist_provenance(
            session_id, trace_id, Provenance(source="s", operation="split")
        )
    with KVStorage(path) as reopened:
        assert reopened.get(f"chk:{session_id}:{trace_id}")["label"] == "second"
        assert reopened.get(f"prov:{session_id}:{trace_id}")["operation"] == "split"