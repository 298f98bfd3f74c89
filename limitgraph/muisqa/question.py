"""Question parsing: keyword-based intent extraction, keywords and entities."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from limitgraph.muisqa.dataset import Intent


@dataclass
class IntentType:
    """An intent together with the parser's confidence in it."""

    intent: Intent
    confidence: float


@dataclass
class Question:
    text: str
    intents: list[IntentType] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    entities: list[str] = field(default_factory=list)

    def primary_intent(self) -> IntentType | None:
        """The highest-confidence intent; the last one wins a tie."""
        if not self.intents:
            return None
        return max(reversed(self.intents), key=lambda i: i.confidence)

    def is_multi_intent(self) -> bool:
        return len(self.intents) > 1

    def intents_above_threshold(self, threshold: float) -> list[IntentType]:
        return [i for i in self.intents if i.confidence >= threshold]


_INTENT_KEYWORDS: dict[Intent, tuple[str, ...]] = {
    Intent.FACTUAL: ("what", "who", "when", "where", "which"),
    Intent.COMPARISON: ("compare", "difference", "versus", "vs", "better", "worse"),
    Intent.EXPLANATION: ("why", "how", "explain", "reason", "because"),
    Intent.PROCEDURAL: ("how to", "steps", "process", "procedure", "method"),
    Intent.OPINION: ("think", "believe", "opinion", "view", "perspective"),
    Intent.TEMPORAL: ("when", "before", "after", "during", "timeline"),
    Intent.CAUSAL: ("cause", "effect", "result", "lead to", "due to"),
    Intent.HYPOTHETICAL: ("if", "would", "could", "suppose", "imagine"),
}

_MAX_KEYWORDS = 10


class QuestionParser:
    """Extracts intents by substring matches against per-intent keyword lists."""

    def __init__(self) -> None:
        self.intent_keywords = {k: list(v) for k, v in _INTENT_KEYWORDS.items()}

    def parse(self, text: str) -> Question:
        lowered = text.lower()
        intents = []
        for intent, keywords in self.intent_keywords.items():
            matches = sum(1 for keyword in keywords if keyword in lowered)
            if matches:
                confidence = min(matches / len(keywords), 1.0)
                intents.append(IntentType(intent, confidence))
        intents.sort(key=lambda i: i.confidence, reverse=True)

        keywords = [w for w in lowered.split() if len(w.encode("utf-8")) > 3][
            :_MAX_KEYWORDS
        ]
        entities = [w for w in text.split() if w[0].isupper()]
        return Question(text=text, intents=intents, keywords=keywords, entities=entities)

    def parse_batch(self, texts: Iterable[str]) -> list[Question]:
        return [self.parse(t) for t in texts]