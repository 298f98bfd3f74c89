"""Command-line walkthrough of datasets, question parsing, the agent and governance."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from limitgraph.core.session import Session, SessionConfig
from limitgraph.muisqa.agent import MuISQAAgent, MuISQAAgentConfig
from limitgraph.muisqa.dataset import Intent, MuISQADataset
from limitgraph.muisqa.evaluation import (
    EvaluationMetrics,
    MultiIntentQuestion,
    SubIntent,
    evaluate,
    load_dataset,
)
from limitgraph.muisqa.question import QuestionParser
from limitgraph.orchestration.orchestrator import GovernanceViolation
from limitgraph.storage.file_storage import FileStorage

PARSING_QUESTIONS = (
    "What is the difference between AI and ML?",
    "How does quantum computing work and why is it important?",
    "Compare Python and Rust for systems programming",
    "If we could travel faster than light, what would happen?",
)

AGENT_QUESTIONS = (
    "What are the key differences between supervised and unsupervised learning?",
    "How can we implement a neural network from scratch?",
    "Compare the performance of different sorting algorithms",
)

RISKY_QUESTIONS = (
    "What do you think about this political issue?",
    "If we could hack into any system, what would you do?",
    "What is your opinion on this controversial topic?",
)

_SAMPLE_EVIDENCE = "dummy evidence"


def _session(name: str) -> Session:
    return Session(SessionConfig(name=name, max_concurrency=4, allow_network=False))


def _demo_dataset() -> None:
    print("--- Demo 1: Dataset Management ---")
    dataset = MuISQADataset.synthetic(20)
    print(f"Created synthetic dataset: {dataset.name}")

    stats = dataset.stats()
    print("Dataset statistics:")
    print(f"  Total entries: {stats.total_entries}")
    print(f"  Single-intent: {stats.single_intent_entries}")
    print(f"  Multi-intent: {stats.multi_intent_entries}")
    print("  Intent distribution:")
    for intent, count in stats.intent_distribution.items():
        print(f"    {intent}: {count}")

    print(f"Factual questions: {len(dataset.filter_by_intent(Intent.FACTUAL))}")
    print(f"Multi-intent entries: {len(dataset.multi_intent_entries())}")
    print("Dataset demo completed\n")


def _demo_question_parsing() -> None:
    print("--- Demo 2: Question Parsing ---")
    parser = QuestionParser()
    for text in PARSING_QUESTIONS:
        question = parser.parse(text)
        print(f"Question: {question.text}")
        print(f"  Intents ({len(question.intents)}):")
        for intent in question.intents:
            print(f"    {intent.intent.value} (confidence: {intent.confidence:.2f})")
        print(f"  Keywords: {', '.join(question.keywords)}")
        print(f"  Entities: {', '.join(question.entities)}")
        print()
    print("Question parsing demo completed\n")


def _print_stats(title: str, agent: MuISQAAgent) -> None:
    print(title)
    for key, value in agent.governance_stats().items():
        print(f"  {key}: {value}")


def _demo_agent_integration(data_dir: Path) -> None:
    print("--- Demo 3: Agent Integration ---")
    session = _session("muisqa-demo")
    print(f"Created session: {session.id}")

    config = MuISQAAgentConfig(name="demo-agent", max_retrieval_docs=5)
    agent = MuISQAAgent(config, FileStorage(data_dir / "muisqa-demo"), session)

    for text in AGENT_QUESTIONS:
        print(f"Processing: {text}")
        response = agent.process_question(text)
        metrics = response.metrics
        quality = (metrics.answer.bleu_score + metrics.answer.rouge_l) / 2.0
        print(f"  Trace ID: {response.trace_id}")
        print(f"  Intents: {', '.join(response.intents)}")
        print(f"  Retrieved docs: {len(response.retrieved_docs)}")
        print(f"  Overall score: {metrics.overall_score:.3f}")
        print(f"  Retrieval F1: {metrics.retrieval.f1_score:.3f}")
        print(f"  Answer quality: {quality:.3f}")
        print()

    _print_stats("Governance statistics:", agent)
    print("Agent integration demo completed\n")


def _demo_governance(data_dir: Path) -> None:
    print("--- Demo 4: Governance Integration ---")
    config = MuISQAAgentConfig(name="governance-agent", max_retrieval_docs=5)
    agent = MuISQAAgent(
        config, FileStorage(data_dir / "governance-demo"), _session("governance-demo")
    )

    for text in RISKY_QUESTIONS:
        print(f"Processing risky question: {text}")
        try:
            response = agent.process_question(text)
        except GovernanceViolation as exc:
            print(f"  Blocked by governance: {exc}")
        else:
            print(f"  Processed (score: {response.metrics.overall_score:.3f})")

    _print_stats("Final governance statistics:", agent)
    print("Governance demo completed\n")


def _evaluate_sample(path: Path) -> EvaluationMetrics:
    entries = load_dataset(path)
    if not entries:
        raise ValueError(f"dataset {path} has no entries")
    entry = entries[0]
    question = MultiIntentQuestion(
        text=entry.question,
        domain=entry.domain,
        intents=[
            SubIntent(text=text, retrieved_evidence=[_SAMPLE_EVIDENCE])
            for text in entry.sub_intents
        ],
    )
    return evaluate(question, entry.answers)


def _run_demos(data_dir: Path) -> None:
    print("=== MuISQA Demo ===\n")
    _demo_dataset()
    _demo_question_parsing()
    _demo_agent_integration(data_dir)
    _demo_governance(data_dir)
    print("\n=== All demos completed successfully! ===")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the demos, or evaluate the first entry of a sample file with --sample."""
    parser = argparse.ArgumentParser(
        prog="muisqa-demo",
        description="Demonstrate multi-intent question answering.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="directory under which traces are written (default: data)",
    )
    parser.add_argument(
        "--sample",
        type=Path,
        help="evaluate the first entry of this domain-tagged JSON sample instead",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    try:
        if args.sample is not None:
            metrics = _evaluate_sample(args.sample)
            print(
                f"Metrics: IRR={metrics.irr:g}, AA={metrics.aa:g}, "
                f"AC={metrics.ac:g}, Entropy={metrics.entropy:g}"
            )
        else:
            _run_demos(args.data_dir)
    except (OSError, ValueError, GovernanceViolation) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())