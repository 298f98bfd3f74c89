"""Retrieval and answer-quality metrics for multi-intent question answering."""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _f1(precision: float, recall: float) -> float:
    if precision + recall > 0.0:
        return 2.0 * (precision * recall) / (precision + recall)
    return 0.0


@dataclass
class RetrievalMetrics:
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    mrr: float = 0.0  # mean reciprocal rank
    ndcg: float = 0.0  # normalised discounted cumulative gain
    retrieved_count: int = 0
    relevant_count: int = 0

    @classmethod
    def calculate(
        cls, retrieved: Sequence[str], relevant: Sequence[str]
    ) -> RetrievalMetrics:
        """Score a ranked list of retrieved items against the relevant ones."""
        relevant_set = set(relevant)
        true_positives = len(set(retrieved) & relevant_set)
        retrieved_count = len(retrieved)
        relevant_count = len(relevant)

        precision = true_positives / retrieved_count if retrieved_count else 0.0
        recall = true_positives / relevant_count if relevant_count else 0.0

        return cls(
            precision=precision,
            recall=recall,
            f1_score=_f1(precision, recall),
            mrr=cls._mrr(retrieved, relevant_set),
            ndcg=cls._ndcg(retrieved, relevant_set, relevant_count),
            retrieved_count=retrieved_count,
            relevant_count=relevant_count,
        )

    @staticmethod
    def _mrr(retrieved: Sequence[str], relevant: set[str]) -> float:
        return next(
            (1.0 / rank for rank, item in enumerate(retrieved, start=1) if item in relevant),
            0.0,
        )

    @staticmethod
    def _ndcg(retrieved: Sequence[str], relevant: set[str], relevant_count: int) -> float:
        dcg = sum(
            1.0 / math.log2(i + 2)
            for i, item in enumerate(retrieved)
            if item in relevant
        )
        ideal = sum(
            1.0 / math.log2(i + 2) for i in range(min(relevant_count, len(retrieved)))
        )
        return dcg / ideal if ideal > 0.0 else 0.0


@dataclass
class AnswerMetrics:
    bleu_score: float = 0.0
    rouge_l: float = 0.0
    exact_match: bool = False
    semantic_similarity: float = 0.0
    intent_coverage: float = 0.0
    answer_length: int = 0

    @classmethod
    def calculate(
        cls, generated: str, gold: str, intents_covered: int, total_intents: int
    ) -> AnswerMetrics:
        """Compare a generated answer with a gold answer on whitespace tokens."""
        gen_tokens = generated.split()
        gold_tokens = gold.split()
        coverage = intents_covered / total_intents if total_intents > 0 else 0.0
        return cls(
            bleu_score=cls._bleu(gen_tokens, gold_tokens),
            rouge_l=cls._rouge_l(gen_tokens, gold_tokens),
            exact_match=generated.strip().lower() == gold.strip().lower(),
            semantic_similarity=cls._jaccard(gen_tokens, gold_tokens),
            intent_coverage=coverage,
            answer_length=len(generated.encode("utf-8")),
        )

    @staticmethod
    def _bleu(gen_tokens: list[str], gold_tokens: list[str]) -> float:
        if not gen_tokens or not gold_tokens:
            return 0.0
        gold_set = set(gold_tokens)
        matches = sum(1 for token in gen_tokens if token in gold_set)
        return matches / len(gen_tokens)

    @staticmethod
    def _lcs_length(a: list[str], b: list[str]) -> int:
        previous = [0] * (len(b) + 1)
        for token_a in a:
            current = [0]
            for j, token_b in enumerate(b, start=1):
                if token_a == token_b:
                    current.append(previous[j - 1] + 1)
                else:
                    current.append(max(previous[j], current[j - 1]))
            previous = current
        return previous[-1]

    @classmethod
    def _rouge_l(cls, gen_tokens: list[str], gold_tokens: list[str]) -> float:
        if not gen_tokens or not gold_tokens:
            return 0.0
        lcs = cls._lcs_length(gen_tokens, gold_tokens)
        return _f1(lcs / len(gen_tokens), lcs / len(gold_tokens))

    @staticmethod
    def _jaccard(gen_tokens: list[str], gold_tokens: list[str]) -> float:
        gen_set, gold_set = set(gen_tokens), set(gold_tokens)
        union = gen_set | gold_set
        return len(gen_set & gold_set) / len(union) if union else 0.0


@dataclass
class IntentMetrics:
    intent: str
    precision: float
    recall: float
    f1_score: float
    count: int


@dataclass
class MetricsSummary:
    overall_score: float
    retrieval_f1: float
    answer_quality: float
    intent_coverage: float
    num_intents: int


@dataclass
class MuISQAMetrics:
    """Combined retrieval and answer metrics with a weighted overall score."""

    retrieval: RetrievalMetrics = field(default_factory=RetrievalMetrics)
    answer: AnswerMetrics = field(default_factory=AnswerMetrics)
    per_intent_metrics: dict[str, IntentMetrics] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)
    overall_score: float = field(init=False)

    def __post_init__(self) -> None:
        retrieval_score = (self.retrieval.f1_score + self.retrieval.ndcg) / 2.0
        answer_score = (
            self.answer.bleu_score + self.answer.rouge_l + self.answer.semantic_similarity
        ) / 3.0
        self.overall_score = 0.4 * retrieval_score + 0.6 * answer_score

    def add_intent_metrics(self, intent: str, metrics: IntentMetrics) -> None:
        self.per_intent_metrics[intent] = metrics

    def summary(self) -> MetricsSummary:
        return MetricsSummary(
            overall_score=self.overall_score,
            retrieval_f1=self.retrieval.f1_score,
            answer_quality=(self.answer.bleu_score + self.answer.rouge_l) / 2.0,
            intent_coverage=self.answer.intent_coverage,
            num_intents=len(self.per_intent_metrics),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation, with the timestamp in ISO 8601."""
        data = dataclasses.asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data