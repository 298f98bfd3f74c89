"""Backend runners that execute tasks with per-session isolation."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from limitgraph.core.session import SessionId
from limitgraph.core.types import TraceId


class RunnerKind(Enum):
    PYTHON = "Python"
    RUST = "Rust"
    LLM_GEMINI = "LlmGemini"
    LLM_OPEN = "LlmOpen"
    LLAMA = "Llama"
    LARGE_MODEL = "LargeModel"


@dataclass
class RunnerOutput:
    ok: bool
    stdout: str
    stderr: str
    metrics: dict[str, Any]


@dataclass
class RunnerConfig:
    kind: RunnerKind = RunnerKind.PYTHON
    session_isolation: bool = True
    max_memory_mb: int | None = 2048
    timeout_seconds: int | None = 300
    env_vars: dict[str, str] = field(default_factory=dict)
    model_path: str | None = None
    context_size: int | None = 4096
    api_endpoint: str | None = None


def _describe(task: Any) -> str:
    return json.dumps(task, sort_keys=True, default=str)


class BackendRunner(ABC):
    """A backend that can run tasks and execute code in an isolated session."""

    kind: ClassVar[RunnerKind]

    @abstractmethod
    def run(self, task: Any) -> RunnerOutput:
        """Run a task description."""

    @abstractmethod
    def execute_isolated(
        self, code: str, session_id: SessionId, trace_id: TraceId
    ) -> RunnerOutput:
        """Execute code within the given session's isolated context."""

    @abstractmethod
    def health_check(self) -> bool:
        """Report whether the backend is usable."""

    @abstractmethod
    def supports_isolation(self) -> bool:
        """Report whether the backend isolates sessions."""


@dataclass
class PythonRunner(BackendRunner):
    kind: ClassVar[RunnerKind] = RunnerKind.PYTHON

    interpreter: str
    venv_path: str | None = None
    config: RunnerConfig = field(
        default_factory=lambda: RunnerConfig(kind=RunnerKind.PYTHON)
    )

    def with_venv(self, venv_path: str) -> PythonRunner:
        return replace(self, venv_path=venv_path)

    def run(self, task: Any) -> RunnerOutput:
        return RunnerOutput(
            ok=True,
            stdout=f"Python execution: {_describe(task)}",
            stderr="",
            metrics={"runtime_ms": 100},
        )

    def execute_isolated(
        self, code: str, session_id: SessionId, trace_id: TraceId
    ) -> RunnerOutput:
        isolated_code = (
            f"# Session: {session_id}, Trace: {trace_id}\n"
            "import sys\n"
            f"sys.path.insert(0, '/tmp/session_{session_id}')\n"
            f"{code}"
        )
        return RunnerOutput(
            ok=True,
            stdout=f"Isolated Python execution: {isolated_code}",
            stderr="",
            metrics={
                "session_id": str(session_id),
                "trace_id": str(trace_id),
                "isolated": True,
            },
        )

    def health_check(self) -> bool:
        return True

    def supports_isolation(self) -> bool:
        return self.config.session_isolation


@dataclass
class LlamaRunner(BackendRunner):
    kind: ClassVar[RunnerKind] = RunnerKind.LLAMA

    model_path: str
    context_size: int
    config: RunnerConfig = field(init=False)

    def __post_init__(self) -> None:
        self.config = RunnerConfig(
            kind=RunnerKind.LLAMA,
            model_path=self.model_path,
            context_size=self.context_size,
        )

    def run(self, task: Any) -> RunnerOutput:
        return RunnerOutput(
            ok=True,
            stdout=f"Llama model execution: {_describe(task)}",
            stderr="",
            metrics={"model": self.model_path, "context_size": self.context_size},
        )

    def execute_isolated(
        self, code: str, session_id: SessionId, trace_id: TraceId
    ) -> RunnerOutput:
        return RunnerOutput(
            ok=True,
            stdout=f"Llama isolated execution for session {session_id}: {code}",
            stderr="",
            metrics={
                "session_id": str(session_id),
                "trace_id": str(trace_id),
                "model": self.model_path,
                "isolated_context": True,
            },
        )

    def health_check(self) -> bool:
        return Path(self.model_path).exists()

    def supports_isolation(self) -> bool:
        return True


@dataclass
class LargeModelRunner(BackendRunner):
    kind: ClassVar[RunnerKind] = RunnerKind.LARGE_MODEL

    provider: str
    model_name: str
    api_key: str | None = None
    config: RunnerConfig = field(
        default_factory=lambda: RunnerConfig(kind=RunnerKind.LARGE_MODEL)
    )

    def with_api_key(self, api_key: str) -> LargeModelRunner:
        return replace(self, api_key=api_key)

    def run(self, task: Any) -> RunnerOutput:
        return RunnerOutput(
            ok=True,
            stdout=f"{self.provider}/{self.model_name} execution: {_describe(task)}",
            stderr="",
            metrics={"provider": self.provider, "model": self.model_name},
        )

    def execute_isolated(
        self, code: str, session_id: SessionId, trace_id: TraceId
    ) -> RunnerOutput:
        return RunnerOutput(
            ok=True,
            stdout=(
                f"{self.provider}/{self.model_name} isolated execution "
                f"for session {session_id}: {code}"
            ),
            stderr="",
            metrics={
                "session_id": str(session_id),
                "trace_id": str(trace_id),
                "provider": self.provider,
                "model": self.model_name,
                "isolated_context": True,
            },
        )

    def health_check(self) -> bool:
        return self.api_key is not None

    def supports_isolation(self) -> bool:
        return True