import dataclasses
import json
import uuid

import pytest
from starlette.testclient import TestClient

from limitgraph.api import create_app


@pytest.fixture
def app(tmp_path):
    return create_app(tmp_path)


@pytest.fixture
def client(app):
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "version": "2.4.1",
        "service": "quantum-limit-graph-api",
    }


def test_create_trace_persists_data(client, tmp_path):
    session_id = uuid.uuid4()
    data = {"task": "example", "result": 42}
    response = client.post("/traces", json={"session_id": str(session_id), "data": data})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "created"
    trace_file = tmp_path / str(session_id) / f"trace-{body['trace_id']}.json"
    assert json.loads(trace_file.read_text(encoding="utf-8")) == data


def test_create_trace_rejects_bad_session_id(client):
    response = client.post("/traces", json={"session_id": "not-a-uuid", "data": {}})
    assert response.status_code == 400


def test_create_trace_requires_data(client):
    response = client.post("/traces", json={"session_id": str(uuid.uuid4())})
    assert response.status_code == 422


def test_malformed_json_is_bad_request(client):
    response = client.post(
        "/traces", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_append_provenance(client, tmp_path):
    session_id, trace_id = uuid.uuid4(), uuid.uuid4()
    response = client.post(
        f"/traces/{trace_id}/provenance",
        json={
            "session_id": str(session_id),
            "trace_id": str(trace_id),
            "provenance": {
                "agent": "agent-1",
                "action": "merge",
                "timestamp": "2024-01-01T00:00:00Z",
                "metadata": {"k": "v"},
            },
        },
    )
    assert response.status_code == 201
    path = tmp_path / str(session_id) / f"prov-{trace_id}.jsonl"
    record = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
    assert record["source"] == "agent-1"
    assert record["operation"] == "merge"
    assert json.loads(record["rationale"])["metadata"] == {"k": "v"}


def test_rd_knee_without_points(client):
    response = client.get("/rd/knee")
    assert response.json() == {"knee_point": None, "total_points": 0}


def test_rd_knee_matches_computation(app, client):
    rd = app.state.limit.rd_computation
    rd.compute_rd_curve([(1.0, 2.0), (0.5, 2.0), (0.25, 2.0), (0.1, 2.0)])
    body = client.get("/rd/knee").json()
    assert body["total_points"] == len(rd.series.points)
    assert body["knee_point"] == dataclasses.asdict(rd.find_knee_point())


def test_export_artifact_echoes_request(client):
    response = client.post(
        "/artifacts/export", json={"session_id": "abc", "format": "csv"}
    )
    body = response.json()
    assert body["session_id"] == "abc"
    assert body["format"] == "csv"
    assert body["artifacts"] == []


def test_flag_trace_updates_stats(client):
    trace_id = uuid.uuid4()
    response = client.post(
        "/governance/flag",
        json={
            "trace_id": str(trace_id),
            "flag_type": "jailbreak",
            "reason": "attempt",
            "severity": 10,
        },
    )
    assert response.status_code == 200
    stats = client.get("/governance/stats").json()["stats"]
    assert stats["total_flagged"] == 1
    assert stats["flag_Jailbreak"] == 1
    assert stats["total_quarantined"] == 1


@pytest.mark.parametrize("flag_type", ["unverified", "bogus"])
def test_flag_trace_rejects_unknown_type(client, flag_type):
    response = client.post(
        "/governance/flag",
        json={
            "trace_id": str(uuid.uuid4()),
            "flag_type": flag_type,
            "reason": "r",
            "severity": 3,
        },
    )
    assert response.status_code == 400
    assert client.get("/governance/stats").json()["stats"]["total_flagged"] == 0


def test_flag_trace_rejects_bad_severity(client):
    response = client.post(
        "/governance/flag",
        json={
            "trace_id": str(uuid.uuid4()),
            "flag_type": "anomaly",
            "reason": "r",
            "severity": 300,
        },
    )
    assert response.status_code == 422


def test_create_session(client):
    body = client.post("/sessions").json()
    assert str(uuid.UUID(body["session_id"])) == body["session_id"]
    assert body["name"].startswith("api-session-")


def test_get_session(client):
    session_id = str(uuid.uuid4())
    body = client.get(f"/sessions/{session_id}").json()
    assert body == {"session_id": session_id, "status": "active"}


def test_get_session_rejects_bad_id(client):
    assert client.get("/sessions/not-a-uuid").status_code == 400