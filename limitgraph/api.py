"""HTTP API over traces, provenance, RD analysis, governance and sessions."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from limitgraph.core.rd_computation import RDComputation
from limitgraph.core.session import Session, SessionConfig
from limitgraph.core.types import Provenance
from limitgraph.orchestration.orchestrator import (
    GovernancePolicy,
    Orchestrator,
    TraceFlag,
    TraceFlagInfo,
)
from limitgraph.storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

VERSION = "2.4.1"
SERVICE_NAME = "quantum-limit-graph-api"
DEFAULT_ROOT = "data/api"

_FLAG_TYPES = {
    "jailbreak": TraceFlag.JAILBREAK,
    "anomaly": TraceFlag.ANOMALY,
    "high_risk": TraceFlag.HIGH_RISK,
    "unsafe": TraceFlag.UNSAFE,
    "malicious": TraceFlag.MALICIOUS,
}

_MISSING = object()


@dataclass
class AppState:
    """Shared state behind the API handlers."""

    orchestrator: Orchestrator
    rd_computation: RDComputation = field(default_factory=RDComputation)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _state(request: Request) -> AppState:
    return request.app.state.limit


async def _body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="malformed JSON body") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=422, detail="request body must be an object")
    return body


def _field(body: dict[str, Any], key: str, kind: type | None = None) -> Any:
    value = body.get(key, _MISSING)
    if value is _MISSING:
        raise HTTPException(status_code=422, detail=f"missing field {key!r}")
    if kind is not None and not isinstance(value, kind):
        raise HTTPException(status_code=422, detail=f"invalid field {key!r}")
    return value


def _severity(body: dict[str, Any]) -> int:
    value = _field(body, "severity")
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise HTTPException(status_code=422, detail="invalid field 'severity'")
    return value


def _uuid(text: str) -> uuid.UUID:
    try:
        return uuid.UUID(text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"invalid id {text!r}") from exc


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "healthy", "version": VERSION, "service": SERVICE_NAME})


async def create_trace(request: Request) -> JSONResponse:
    body = await _body(request)
    raw_session = _field(body, "session_id", str)
    data = _field(body, "data")
    session_id = _uuid(raw_session)
    trace_id = uuid.uuid4()

    try:
        _state(request).orchestrator.storage.persist_trace(session_id, trace_id, data)
    except OSError as exc:
        logger.warning("Failed to persist trace: %s", exc)
        raise HTTPException(status_code=500) from exc

    logger.info("Created trace %s for session %s", trace_id, session_id)
    return JSONResponse({"trace_id": str(trace_id), "status": "created"})


async def append_provenance(request: Request) -> Response:
    body = await _body(request)
    raw_session = _field(body, "session_id", str)
    raw_trace = _field(body, "trace_id", str)
    data = _field(body, "provenance", dict)
    agent = _field(data, "agent", str)
    action = _field(data, "action", str)
    timestamp = _field(data, "timestamp", str)
    metadata = _field(data, "metadata")
    session_id = _uuid(raw_session)
    trace_id = _uuid(raw_trace)

    provenance = Provenance(
        source=agent,
        operation=action,
        rationale=json.dumps({"timestamp": timestamp, "metadata": metadata}),
    )
    try:
        _state(request).orchestrator.storage.persist_provenance(
            session_id, trace_id, provenance
        )
    except OSError as exc:
        logger.warning("Failed to persist provenance: %s", exc)
        raise HTTPException(status_code=500) from exc

    logger.info("Appended provenance to trace %s for session %s", trace_id, session_id)
    return Response(status_code=201)


async def get_rd_knee(request: Request) -> JSONResponse:
    rd = _state(request).rd_computation
    knee = rd.find_knee_point()
    total = len(rd.series.points)
    logger.info("RD knee detection: %d points, knee found: %s", total, knee is not None)
    return JSONResponse(
        {
            "knee_point": dataclasses.asdict(knee) if knee is not None else None,
            "total_points": total,
        }
    )


async def export_artifact(request: Request) -> JSONResponse:
    body = await _body(request)
    session_id = _field(body, "session_id", str)
    export_format = _field(body, "format", str)
    logger.info("Exporting artifacts for session %s in format %s", session_id, export_format)
    return JSONResponse(
        {
            "session_id": session_id,
            "format": export_format,
            "exported_at": _now(),
            "artifacts": [],
        }
    )


async def get_governance_stats(request: Request) -> JSONResponse:
    stats = _state(request).orchestrator.get_governance_stats()
    logger.info("Retrieved governance stats: %d entries", len(stats))
    return JSONResponse({"stats": stats})


async def flag_trace(request: Request) -> Response:
    body = await _body(request)
    raw_trace = _field(body, "trace_id", str)
    flag_type = _field(body, "flag_type", str)
    reason = _field(body, "reason", str)
    severity = _severity(body)
    trace_id = _uuid(raw_trace)

    flag = _FLAG_TYPES.get(flag_type)
    if flag is None:
        raise HTTPException(status_code=400, detail=f"unknown flag type {flag_type!r}")

    info = TraceFlagInfo(flag=flag, reason=reason, severity=severity, auto_detected=False)
    _state(request).orchestrator.flag_trace(trace_id, info)
    logger.info("Flagged trace %s with type %s", trace_id, flag_type)
    return Response(status_code=200)


async def create_session(request: Request) -> JSONResponse:
    session = Session(
        SessionConfig(
            name=f"api-session-{uuid.uuid4()}", max_concurrency=4, allow_network=False
        )
    )
    logger.info("Created session: %s", session.id)
    return JSONResponse(
        {
            "session_id": str(session.id),
            "name": session.config.name,
            "created_at": _now(),
        }
    )


async def get_session(request: Request) -> JSONResponse:
    session_id = request.path_params["session_id"]
    _uuid(session_id)
    return JSONResponse({"session_id": session_id, "status": "active"})


def create_app(root: str | Path = DEFAULT_ROOT) -> Starlette:
    """Build the API application, storing files under ``root``."""
    app = Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Route("/traces", create_trace, methods=["POST"]),
            Route("/traces/{trace_id}/provenance", append_provenance, methods=["POST"]),
            Route("/rd/knee", get_rd_knee, methods=["GET"]),
            Route("/artifacts/export", export_artifact, methods=["POST"]),
            Route("/governance/stats", get_governance_stats, methods=["GET"]),
            Route("/governance/flag", flag_trace, methods=["POST"]),
            Route("/sessions", create_session, methods=["POST"]),
            Route("/sessions/{session_id}", get_session, methods=["GET"]),
        ]
    )
    app.state.limit = AppState(
        orchestrator=Orchestrator(FileStorage(root), GovernancePolicy())
    )
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Serve the API."""
    parser = argparse.ArgumentParser(prog="limit-api", description="Serve the HTTP API.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--root", default=DEFAULT_ROOT, help="storage directory")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger.info("Starting API server on %s:%d", args.host, args.port)
    uvicorn.run(create_app(args.root), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())