"""Question-answering agent that parses, screens, retrieves and scores."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from limitgraph.core.session import Session, SessionId
from limitgraph.core.types import TraceId, new_trace_id
from limitgraph.muisqa.dataset import Intent
from limitgraph.muisqa.metrics import AnswerMetrics, MuISQAMetrics, RetrievalMetrics
from limitgraph.muisqa.question import Question, QuestionParser
from limitgraph.orchestration.orchestrator import (
    GovernancePolicy,
    Orchestrator,
    TraceFlag,
    TraceFlagInfo,
)
from limitgraph.storage.file_storage import Storage

logger = logging.getLogger(__name__)

_RISKY_INTENTS = (Intent.OPINION, Intent.HYPOTHETICAL)
_RISK_CONFIDENCE = 0.7
_MOCK_RELEVANT_DOCS = ("doc1", "doc2")
_MOCK_GOLD_ANSWER = "Mock gold answer"


@dataclass
class MuISQAAgentConfig:
    name: str = "muisqa-agent"
    max_retrieval_docs: int = 10
    intent_threshold: float = 0.3
    enable_governance: bool = True
    block_unsafe_intents: bool = True


@dataclass
class MuISQAResponse:
    question: str
    answer: str
    retrieved_docs: list[str]
    intents: list[str]
    metrics: MuISQAMetrics
    trace_id: TraceId = field(default_factory=uuid.uuid4)

    def summary(self) -> str:
        return (
            f"Question: {self.question}\n"
            f"Intents: {', '.join(self.intents)}\n"
            f"Answer: {self.answer}\n"
            f"Score: {self.metrics.overall_score:.3f}"
        )


class MuISQAAgent:
    """Answers multi-intent questions under a governance policy."""

    def __init__(
        self, config: MuISQAAgentConfig, storage: Storage, session: Session
    ) -> None:
        policy = (
            GovernancePolicy() if config.enable_governance else GovernancePolicy.permissive()
        )
        self.config = config
        self.parser = QuestionParser()
        self.orchestrator = Orchestrator(storage, policy)
        self.session = session

    @property
    def session_id(self) -> SessionId:
        return self.session.id

    def process_question(self, question_text: str) -> MuISQAResponse:
        """Answer a question; raises GovernanceViolation if it is blocked."""
        trace_id = new_trace_id()
        question = self.parser.parse(question_text)
        logger.info("Parsed question with %d intents", len(question.intents))

        if self.config.block_unsafe_intents:
            self._check_intent_safety(question, trace_id)

        docs = self._retrieve_documents(question)
        answer = self._generate_answer(question, docs)

        retrieval = RetrievalMetrics.calculate(docs, list(_MOCK_RELEVANT_DOCS))
        answer_metrics = AnswerMetrics.calculate(
            answer, _MOCK_GOLD_ANSWER, len(question.intents), len(question.intents)
        )
        metrics = MuISQAMetrics(retrieval, answer_metrics)

        self.orchestrator.storage.persist_trace(
            self.session.id, trace_id, metrics.to_dict()
        )
        logger.info("Persisted metrics for trace %s", trace_id)

        return MuISQAResponse(
            question=question_text,
            answer=answer,
            retrieved_docs=docs,
            intents=[i.intent.value for i in question.intents],
            metrics=metrics,
            trace_id=trace_id,
        )

    def _check_intent_safety(self, question: Question, trace_id: TraceId) -> None:
        for intent_type in question.intents:
            if intent_type.confidence > _RISK_CONFIDENCE and intent_type.intent in _RISKY_INTENTS:
                self.orchestrator.flag_trace(
                    trace_id,
                    TraceFlagInfo(
                        flag=TraceFlag.HIGH_RISK,
                        reason=f"High-confidence {intent_type.intent.value} intent detected",
                        severity=6,
                        auto_detected=True,
                    ),
                )
        self.orchestrator.validate_merge(self.session.id, trace_id)

    def _retrieve_documents(self, question: Question) -> list[str]:
        docs = [
            f"doc_{i}_about_{keyword}"
            for i, keyword in enumerate(question.keywords[: self.config.max_retrieval_docs])
        ]
        logger.debug("Retrieved %d documents", len(docs))
        return docs

    @staticmethod
    def _generate_answer(question: Question, docs: Sequence[str]) -> str:
        primary = question.primary_intent()
        primary_name = primary.intent.value if primary is not None else "unknown"
        return (
            f"Answer to '{question.text}' (primary intent: {primary_name}). "
            f"Based on {len(docs)} retrieved documents: {', '.join(docs)}"
        )

    def governance_stats(self) -> dict[str, int]:
        return self.orchestrator.get_governance_stats()