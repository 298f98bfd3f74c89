import json

import pytest

from limitgraph.core.session import Session, SessionConfig
from limitgraph.muisqa.agent import MuISQAAgent, MuISQAAgentConfig, MuISQAResponse
from limitgraph.muisqa.metrics import AnswerMetrics, MuISQAMetrics, RetrievalMetrics
from limitgraph.orchestration.orchestrator import GovernanceViolation
from limitgraph.storage.file_storage import FileStorage

RISKY = "Suppose if we could, would we?"


def _agent(tmp_path, **config):
    session = Session(SessionConfig(name="test-session", max_concurrency=4, allow_network=False))
    return MuISQAAgent(MuISQAAgentConfig(**config), FileStorage(root=tmp_path), session)


def test_muisqa_agent(tmp_path):
    agent = _agent(tmp_path)
    response = agent.process_question("What is the difference between AI and ML?")
    assert response.answer
    assert response.intents
    assert response.metrics.overall_score >= 0.0


def test_response_content(tmp_path):
    agent = _agent(tmp_path)
    response = agent.process_question("What is the difference between AI and ML?")
    assert response.retrieved_docs == [
        "doc_0_about_what",
        "doc_1_about_difference",
        "doc_2_about_between",
    ]
    assert "factual" in response.intents
    assert "comparison" in response.intents
    assert response.answer.startswith(
        "Answer to 'What is the difference between AI and ML?' (primary intent: "
    )
    assert response.answer.endswith(
        "Based on 3 retrieved documents: doc_0_about_what, doc_1_about_difference, "
        "doc_2_about_between"
    )


def test_retrieval_limited_by_config(tmp_path):
    agent = _agent(tmp_path, max_retrieval_docs=2)
    response = agent.process_question("What are the benefits of machine learning today?")
    assert len(response.retrieved_docs) == 2


def test_metrics_persisted(tmp_path):
    agent = _agent(tmp_path)
    response = agent.process_question("How does quantum computing work?")
    path = tmp_path / str(agent.session_id) / f"trace-{response.trace_id}.json"
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["overall_score"] == pytest.approx(response.metrics.overall_score)


def test_risky_question_blocked(tmp_path):
    agent = _agent(tmp_path)
    with pytest.raises(GovernanceViolation):
        agent.process_question(RISKY)
    stats = agent.governance_stats()
    assert stats["total_flagged"] == 1
    assert stats["flag_HighRisk"] == 1
    assert stats["total_quarantined"] == 0


def test_risky_question_passes_when_governance_disabled(tmp_path):
    agent = _agent(tmp_path, enable_governance=False)
    response = agent.process_question(RISKY)
    assert "hypothetical" in response.intents
    assert agent.governance_stats()["total_flagged"] == 1


def test_risky_question_unchecked_when_blocking_disabled(tmp_path):
    agent = _agent(tmp_path, block_unsafe_intents=False)
    response = agent.process_question(RISKY)
    assert response.intents[0] == "hypothetical"
    assert agent.governance_stats()["total_flagged"] == 0


def test_response_summary():
    metrics = MuISQAMetrics(RetrievalMetrics(), AnswerMetrics())
    response = MuISQAResponse(
        question="Q?", answer="A.", retrieved_docs=[], intents=["factual", "causal"],
        metrics=metrics,
    )
    assert response.summary() == "Question: Q?\nIntents: factual, causal\nAnswer: A.\nScore: 0.000"