import pytest

from limitgraph.muisqa.dataset import Intent
from limitgraph.muisqa.question import IntentType, Question, QuestionParser


@pytest.fixture
def parser():
    return QuestionParser()


def test_question_parser(parser):
    question = parser.parse("What is the difference between AI and ML?")
    assert question.intents
    assert question.is_multi_intent()
    primary = question.primary_intent()
    assert primary.confidence > 0.0


def test_parse_intents_and_confidences(parser):
    question = parser.parse("What is the difference between AI and ML?")
    found = {i.intent: i.confidence for i in question.intents}
    assert set(found) == {Intent.FACTUAL, Intent.COMPARISON, Intent.HYPOTHETICAL}
    assert found[Intent.FACTUAL] == pytest.approx(0.2)
    assert found[Intent.COMPARISON] == pytest.approx(1 / 6)
    assert question.intents[-1].intent is Intent.COMPARISON
    confidences = [i.confidence for i in question.intents]
    assert confidences == sorted(confidences, reverse=True)


def test_intent_extraction(parser):
    q1 = parser.parse("How does quantum computing work?")
    assert any(i.intent is Intent.EXPLANATION for i in q1.intents)
    q2 = parser.parse("Compare Python and Rust")
    assert any(i.intent is Intent.COMPARISON for i in q2.intents)


def test_keyword_extraction(parser):
    question = parser.parse("What are the benefits of machine learning?")
    assert question.keywords
    assert any("benefits" in k or "machine" in k for k in question.keywords)
    assert question.keywords == ["what", "benefits", "machine", "learning?"]


def test_keywords_capped_at_ten(parser):
    text = " ".join(f"word{i}" for i in range(15))
    assert len(parser.parse(text).keywords) == 10


def test_entities_are_capitalised_words(parser):
    question = parser.parse("Compare Python and Rust")
    assert question.entities == ["Compare", "Python", "Rust"]


def test_no_intents(parser):
    question = parser.parse("hello there")
    assert question.intents == []
    assert question.primary_intent() is None
    assert not question.is_multi_intent()


def test_primary_intent_tie_prefers_last():
    question = Question(
        "x",
        intents=[
            IntentType(Intent.FACTUAL, 0.4),
            IntentType(Intent.CAUSAL, 0.4),
            IntentType(Intent.OPINION, 0.1),
        ],
    )
    assert question.primary_intent().intent is Intent.CAUSAL


def test_intents_above_threshold():
    question = Question(
        "x",
        intents=[IntentType(Intent.FACTUAL, 0.5), IntentType(Intent.OPINION, 0.2)],
    )
    assert [i.intent for i in question.intents_above_threshold(0.3)] == [Intent.FACTUAL]
    assert len(question.intents_above_threshold(0.2)) == 2


def test_parse_batch(parser):
    questions = parser.parse_batch(["Why now?", "Compare A vs B"])
    assert [q.text for q in questions] == ["Why now?", "Compare A vs B"]
    assert questions[0].intents[0].intent is Intent.EXPLANATION