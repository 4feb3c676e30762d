"""
Tests for quiz parsing and generation
"""
import json

import pytest

from pdfnotebook.core.errors import UpstreamGenerationError
from pdfnotebook.core.quiz import (
    ParseFailure,
    ParsedQuestions,
    QuizGenerator,
    build_quiz_prompt,
    parse_questions,
)
from pdfnotebook.core.retriever import RetrievedDocument

from tests.conftest import FakeGenerator

DOCS = [RetrievedDocument("d1", "cells.pdf", "Mitochondria produce ATP.")]

MCQ = {
    "id": "q1",
    "type": "mcq",
    "question": "Which organelle produces ATP?",
    "options": ["Nucleus", "Mitochondrion", "Ribosome", "Golgi"],
    "correct_answer": "Mitochondrion",
    "explanation": "Mitochondria run cellular respiration.",
    "difficulty": "easy",
}
SAQ = {
    "type": "saq",
    "question": "What does ATP stand for?",
    "correct_answer": "Adenosine triphosphate",
    "explanation": "ATP is the energy currency of the cell.",
    "difficulty": "medium",
}


def test_parses_plain_array():
    result = parse_questions(json.dumps([MCQ, SAQ]))

    assert isinstance(result, ParsedQuestions)
    assert [q.type for q in result.questions] == ["mcq", "saq"]
    assert result.questions[0].id == "q1"
    assert result.questions[1].id.startswith("question_")


def test_parses_fenced_object_with_questions_key():
    text = "```json\n" + json.dumps({"questions": [MCQ]}) + "\n```"
    result = parse_questions(text)
    assert isinstance(result, ParsedQuestions)
    assert len(result.questions) == 1


def test_extracts_array_from_surrounding_prose():
    text = "Sure! Here are your questions:\n" + json.dumps([SAQ]) + "\nGood luck."
    result = parse_questions(text)
    assert isinstance(result, ParsedQuestions)


def test_invalid_items_are_dropped():
    broken = dict(MCQ, options=["only one"])
    missing = {"type": "saq", "question": "No answer given?"}
    result = parse_questions(json.dumps([broken, missing, SAQ]))

    assert isinstance(result, ParsedQuestions)
    assert len(result.questions) == 1
    assert result.dropped == 2


def test_not_json_is_a_parse_failure():
    result = parse_questions("I cannot generate questions for this.")
    assert isinstance(result, ParseFailure)
    assert result.raw.startswith("I cannot")


def test_no_valid_items_is_a_parse_failure():
    result = parse_questions(json.dumps([{"type": "essay", "question": "?"}]))
    assert isinstance(result, ParseFailure)


def test_prompt_mentions_count_and_types():
    prompt = build_quiz_prompt(DOCS, 3, ["mcq", "laq"])
    assert "generate 3" in prompt
    assert "mcq:" in prompt and "laq:" in prompt
    assert "saq:" not in prompt
    assert "cells.pdf" in prompt


@pytest.mark.asyncio
async def test_generate_truncates_to_requested_count():
    generator = FakeGenerator(reply=json.dumps([MCQ, SAQ, dict(MCQ, id="q3")]))
    outcome = await QuizGenerator(generator).generate(DOCS, question_count=2)

    assert len(outcome.questions) == 2
    assert outcome.used_fallback is False
    assert outcome.message == "Generated 2 quiz questions successfully"


@pytest.mark.asyncio
async def test_unparseable_output_uses_fallback_questions():
    outcome = await QuizGenerator(FakeGenerator(reply="not json at all")).generate(DOCS)

    assert outcome.used_fallback is True
    assert len(outcome.questions) == 2
    assert outcome.message == "Generated fallback quiz questions due to parsing issues"


@pytest.mark.asyncio
async def test_upstream_failure_is_not_masked(failing_generator):
    with pytest.raises(UpstreamGenerationError):
        await QuizGenerator(failing_generator).generate(DOCS)
