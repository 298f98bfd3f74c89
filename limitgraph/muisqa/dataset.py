"""Multi-intent question datasets: entries, loading, filtering and statistics."""

from __future__ import annotations

import csv
import json
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class Intent(Enum):
    """The kind of information a question (or part of one) is seeking."""

    FACTUAL = "factual"
    COMPARISON = "comparison"
    EXPLANATION = "explanation"
    PROCEDURAL = "procedural"
    OPINION = "opinion"
    TEMPORAL = "temporal"
    CAUSAL = "causal"
    HYPOTHETICAL = "hypothetical"

    @classmethod
    def parse(cls, s: str) -> Intent | None:
        """Case-insensitive lookup by name; None when the name is unknown."""
        try:
            return cls(s.lower())
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


def _intent_to_json(intent: Intent) -> str:
    return intent.name.capitalize()


def _intent_from_json(raw: Any) -> Intent:
    if isinstance(raw, str):
        for intent in Intent:
            if _intent_to_json(intent) == raw:
                return intent
    raise ValueError(f"Failed to parse JSON dataset: unknown intent {raw!r}")


@dataclass
class MuISQAEntry:
    """A single dataset question with its intents and optional context and answer."""

    id: str
    question: str
    intents: list[Intent]
    context: str | None = None
    gold_answer: str | None = None
    metadata: Any = field(default_factory=dict)

    def is_multi_intent(self) -> bool:
        return len(self.intents) > 1

    def primary_intent(self) -> Intent | None:
        """The first listed intent, if any."""
        return self.intents[0] if self.intents else None


def _entry_to_json(entry: MuISQAEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "question": entry.question,
        "intents": [_intent_to_json(i) for i in entry.intents],
        "context": entry.context,
        "gold_answer": entry.gold_answer,
        "metadata": entry.metadata,
    }


def _optional_str(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Failed to parse JSON dataset: {key!r} must be a string")
    return value


def _entry_from_json(record: Any) -> MuISQAEntry:
    if not isinstance(record, dict):
        raise ValueError("Failed to parse JSON dataset: entry must be an object")
    try:
        entry_id = record["id"]
        question = record["question"]
        raw_intents = record["intents"]
    except KeyError as exc:
        raise ValueError(f"Failed to parse JSON dataset: missing field {exc}") from exc
    if not isinstance(entry_id, str) or not isinstance(question, str):
        raise ValueError("Failed to parse JSON dataset: id and question must be strings")
    if not isinstance(raw_intents, list):
        raise ValueError("Failed to parse JSON dataset: intents must be a list")
    return MuISQAEntry(
        id=entry_id,
        question=question,
        intents=[_intent_from_json(raw) for raw in raw_intents],
        context=_optional_str(record, "context"),
        gold_answer=_optional_str(record, "gold_answer"),
        metadata=record.get("metadata"),
    )


def _name_from_path(path: Path) -> str:
    return path.stem or "unknown"


def _csv_optional(row: dict[str, Any], key: str) -> str | None:
    value = row.get(key)
    return value if value else None


@dataclass
class DatasetStats:
    total_entries: int
    single_intent_entries: int
    multi_intent_entries: int
    intent_distribution: dict[str, int]


@dataclass
class MuISQADataset:
    """A named collection of entries."""

    name: str
    entries: list[MuISQAEntry] = field(default_factory=list)

    @classmethod
    def from_json(cls, path: str | Path) -> MuISQADataset:
        """Load entries from a JSON array; the dataset is named after the file stem."""
        path = Path(path)
        content = path.read_text(encoding="utf-8")
        try:
            records = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse JSON dataset: {exc}") from exc
        if not isinstance(records, list):
            raise ValueError("Failed to parse JSON dataset: expected a list of entries")
        return cls(
            name=_name_from_path(path),
            entries=[_entry_from_json(record) for record in records],
        )

    @classmethod
    def from_csv(cls, path: str | Path) -> MuISQADataset:
        """Load entries from CSV with columns id, question, intents, context, gold_answer.

        ``intents`` is a comma-separated list; unknown names are skipped.
        Empty context or gold_answer fields are treated as absent.
        """
        path = Path(path)
        entries = []
        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            for row in reader:
                try:
                    entry_id = row["id"]
                    question = row["question"]
                    raw_intents = row["intents"]
                except KeyError as exc:
                    raise ValueError(
                        f"Failed to parse CSV record: missing field {exc}"
                    ) from exc
                if entry_id is None or question is None or raw_intents is None:
                    raise ValueError("Failed to parse CSV record: too few fields")
                intents = [
                    intent
                    for intent in (Intent.parse(part.strip()) for part in raw_intents.split(","))
                    if intent is not None
                ]
                entries.append(
                    MuISQAEntry(
                        id=entry_id,
                        question=question,
                        intents=intents,
                        context=_csv_optional(row, "context"),
                        gold_answer=_csv_optional(row, "gold_answer"),
                    )
                )
        return cls(name=_name_from_path(path), entries=entries)

    @classmethod
    def synthetic(cls, size: int) -> MuISQADataset:
        """Generate ``size`` entries cycling through three intent patterns."""
        patterns = (
            [Intent.FACTUAL, Intent.COMPARISON],
            [Intent.EXPLANATION, Intent.CAUSAL],
            [Intent.PROCEDURAL],
        )
        entries = [
            MuISQAEntry(
                id=f"q{i}",
                question=f"What is the answer to question {i}?",
                intents=list(patterns[i % 3]),
                context=f"Context for question {i}",
                gold_answer=f"Answer to question {i}",
            )
            for i in range(size)
        ]
        return cls(name="synthetic", entries=entries)

    def add_entry(self, entry: MuISQAEntry) -> None:
        self.entries.append(entry)

    def get_entry(self, entry_id: str) -> MuISQAEntry | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    def filter_by_intent(self, intent: Intent) -> list[MuISQAEntry]:
        return [e for e in self.entries if intent in e.intents]

    def multi_intent_entries(self) -> list[MuISQAEntry]:
        return [e for e in self.entries if e.is_multi_intent()]

    def stats(self) -> DatasetStats:
        total = len(self.entries)
        multi = len(self.multi_intent_entries())
        distribution = Counter(
            intent.value for entry in self.entries for intent in entry.intents
        )
        return DatasetStats(
            total_entries=total,
            single_intent_entries=total - multi,
            multi_intent_entries=multi,
            intent_distribution=dict(distribution),
        )

    def save_json(self, path: str | Path) -> None:
        """Write the entries as an indented JSON array."""
        Path(path).write_text(
            json.dumps([_entry_to_json(e) for e in self.entries], indent=2),
            encoding="utf-8",
        )