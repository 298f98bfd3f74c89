"""Orchestration of runner tasks under a governance policy."""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
import uuid
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from limitgraph.core.runners import BackendRunner, RunnerOutput
from limitgraph.core.session import Session, SessionId
from limitgraph.core.types import GovernanceCheckpoint, Provenance, RDSeries, TraceId
from limitgraph.storage.file_storage import Storage

logger = logging.getLogger(__name__)


class GovernanceViolation(Exception):
    """Raised when a trace breaks the governance policy or is quarantined."""


class TraceFlag(Enum):
    JAILBREAK = "Jailbreak"
    ANOMALY = "Anomaly"
    HIGH_RISK = "HighRisk"
    UNSAFE = "Unsafe"
    UNVERIFIED = "Unverified"
    MALICIOUS = "Malicious"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TraceFlagInfo:
    flag: TraceFlag
    reason: str
    severity: int  # 1-10
    auto_detected: bool = False
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class GovernancePolicy:
    block_unsafe_merge: bool = True
    require_provenance: bool = True
    block_jailbreak_traces: bool = True
    block_anomaly_traces: bool = True
    max_anomaly_severity: int = 7
    require_human_review: bool = False
    auto_quarantine: bool = True
    block_malicious_traces: bool = True

    @classmethod
    def permissive(cls) -> GovernancePolicy:
        return cls(
            block_unsafe_merge=False,
            require_provenance=False,
            block_jailbreak_traces=False,
            block_anomaly_traces=False,
            max_anomaly_severity=10,
            require_human_review=False,
            auto_quarantine=False,
            block_malicious_traces=False,
        )

    @classmethod
    def strict(cls) -> GovernancePolicy:
        return cls(
            block_unsafe_merge=True,
            require_provenance=True,
            block_jailbreak_traces=True,
            block_anomaly_traces=True,
            max_anomaly_severity=5,
            require_human_review=True,
            auto_quarantine=True,
            block_malicious_traces=True,
        )

    def validate_trace(self, flags: Iterable[TraceFlagInfo]) -> None:
        """Raise GovernanceViolation on the first flag the policy blocks."""
        for info in flags:
            flag = info.flag
            if flag is TraceFlag.JAILBREAK and self.block_jailbreak_traces:
                raise GovernanceViolation(
                    f"Governance violation: Jailbreak detected - {info.reason}"
                )
            if flag is TraceFlag.ANOMALY and self.block_anomaly_traces:
                if info.severity > self.max_anomaly_severity:
                    raise GovernanceViolation(
                        f"Governance violation: Anomaly severity {info.severity} "
                        f"exceeds threshold {self.max_anomaly_severity} - {info.reason}"
                    )
            elif (
                flag in (TraceFlag.HIGH_RISK, TraceFlag.UNSAFE)
                and self.block_unsafe_merge
            ):
                raise GovernanceViolation(
                    f"Governance violation: Unsafe operation - {info.reason}"
                )
            elif flag is TraceFlag.UNVERIFIED and self.require_provenance:
                raise GovernanceViolation(
                    f"Governance violation: Missing provenance - {info.reason}"
                )
            elif flag is TraceFlag.MALICIOUS and self.block_malicious_traces:
                raise GovernanceViolation(
                    f"Governance violation: Malicious activity detected - {info.reason}"
                )


_JAILBREAK_PATTERNS = ("jailbreak", "ignore previous")
_MALICIOUS_PATTERNS = ("rm -rf", "drop table")


class Orchestrator:
    """Runs tasks on backends, tracks flagged and quarantined traces."""

    def __init__(self, storage: Storage, policy: GovernancePolicy | None = None) -> None:
        self.storage = storage
        self.policy = policy if policy is not None else GovernancePolicy()
        self._flagged: dict[TraceId, list[TraceFlagInfo]] = {}
        self._quarantined: dict[TraceId, str] = {}
        self._lock = threading.RLock()

    def run_agent_task(
        self, session: Session, runner: BackendRunner, task: Any
    ) -> tuple[TraceId, RunnerOutput]:
        """Screen, run and persist a task, recording a governance checkpoint."""
        trace_id = uuid.uuid4()
        self._detect_anomalies(trace_id, task)

        output = runner.run(task)
        self.storage.persist_trace(
            session.id,
            trace_id,
            {
                "runner": runner.kind.value,
                "output": dataclasses.asdict(output),
                "task": task,
            },
        )

        try:
            self._validate_trace_governance(trace_id)
            passed = True
        except GovernanceViolation:
            passed = False
        checkpoint = GovernanceCheckpoint(
            label="governance-check",
            passed=passed,
            details="Governance policy validation",
        )
        self.storage.persist_checkpoint(session.id, trace_id, checkpoint)
        return trace_id, output

    def flag_trace(self, trace_id: TraceId, flag_info: TraceFlagInfo) -> None:
        """Record a flag; quarantine the trace if the policy asks and severity >= 8."""
        with self._lock:
            self._flagged.setdefault(trace_id, []).append(flag_info)
        logger.warning(
            "Trace %s flagged: %s - %s", trace_id, flag_info.flag.value, flag_info.reason
        )
        if self.policy.auto_quarantine and flag_info.severity >= 8:
            self.quarantine_trace(trace_id, flag_info.reason)

    def get_trace_flags(self, trace_id: TraceId) -> list[TraceFlagInfo]:
        with self._lock:
            return list(self._flagged.get(trace_id, ()))

    def _validate_trace_governance(self, trace_id: TraceId) -> None:
        flags = self.get_trace_flags(trace_id)
        if flags:
            logger.warning("Trace %s has %d governance flags", trace_id, len(flags))
            self.policy.validate_trace(flags)

    def validate_merge(self, session_id: SessionId, trace_id: TraceId) -> None:
        """Raise GovernanceViolation if the trace may not be merged."""
        with self._lock:
            reason = self._quarantined.get(trace_id)
        if reason is not None:
            raise GovernanceViolation(
                f"Cannot merge quarantined trace {trace_id}: {reason}"
            )
        self._validate_trace_governance(trace_id)
        if self.policy.require_provenance:
            logger.info("Provenance check passed for trace %s", trace_id)

    def quarantine_trace(self, trace_id: TraceId, reason: str) -> None:
        with self._lock:
            self._quarantined[trace_id] = reason
        logger.warning("Trace %s quarantined: %s", trace_id, reason)

    def _detect_anomalies(self, trace_id: TraceId, task: Any) -> None:
        text = json.dumps(task, separators=(",", ":"), default=str).lower()
        if any(pattern in text for pattern in _JAILBREAK_PATTERNS):
            self.flag_trace(
                trace_id,
                TraceFlagInfo(
                    flag=TraceFlag.JAILBREAK,
                    reason="Potential jailbreak attempt detected",
                    severity=10,
                    auto_detected=True,
                ),
            )
        if any(pattern in text for pattern in _MALICIOUS_PATTERNS):
            self.flag_trace(
                trace_id,
                TraceFlagInfo(
                    flag=TraceFlag.MALICIOUS,
                    reason="Potentially malicious command detected",
                    severity=9,
                    auto_detected=True,
                ),
            )

    def record_provenance(
        self, session: Session, trace: TraceId, prov: Provenance
    ) -> None:
        self.storage.persist_provenance(session.id, trace, prov)

    def record_rd_series(self, session: Session, series: RDSeries) -> None:
        self.storage.persist_rd_series(session.id, series)

    def get_governance_stats(self) -> dict[str, int]:
        """Counts of flagged and quarantined traces, and of each flag kind."""
        with self._lock:
            stats = {
                "total_flagged": len(self._flagged),
                "total_quarantined": len(self._quarantined),
            }
            counts = Counter(
                info.flag.value for infos in self._flagged.values() for info in infos
            )
        stats.update({f"flag_{name}": count for name, count in counts.items()})
        return stats