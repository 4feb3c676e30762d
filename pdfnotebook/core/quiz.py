"""
Quiz generation: prompt, parse-then-validate, fallback questions
"""
import json
import re
import time
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from pdfnotebook.core.llm_client import Generator
from pdfnotebook.core.retriever import RetrievedDocument
from pdfnotebook.logger import logger
from pdfnotebook.metrics import QUIZ_COUNT

QuestionType = Literal["mcq", "saq", "laq"]
Difficulty = Literal["easy", "medium", "hard"]

TYPE_DESCRIPTIONS = {
    "mcq": "Multiple Choice Questions with exactly 4 options and one correct answer",
    "saq": "Short Answer Questions expecting 1-2 sentence answers",
    "laq": "Long Answer Questions expecting paragraph-length answers",
}

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")


class QuizQuestion(BaseModel):
    id: Optional[str] = None
    type: QuestionType
    question: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    correct_answer: str = Field(..., min_length=1)
    explanation: str = Field(..., min_length=1)
    difficulty: Difficulty

    @field_validator("question", "correct_answer", "explanation")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def mcq_needs_options(self):
        if self.type == "mcq":
            if not self.options or len(self.options) < 2:
                raise ValueError("mcq questions need at least two options")
        elif self.options is not None and not self.options:
            self.options = None
        return self


@dataclass
class ParsedQuestions:
    questions: List[QuizQuestion]
    dropped: int = 0


@dataclass
class ParseFailure:
    reason: str
    raw: str


ParseResult = Union[ParsedQuestions, ParseFailure]


@dataclass
class QuizOutcome:
    questions: List[QuizQuestion]
    message: str
    used_fallback: bool


def build_quiz_prompt(
    documents: Sequence[RetrievedDocument],
    question_count: int,
    types: Sequence[str],
) -> str:
    combined = "\n\n".join(f"Document: {doc.filename}\n{doc.text}" for doc in documents)
    type_lines = "\n".join(f"- {t}: {TYPE_DESCRIPTIONS[t]}" for t in types)
    return f"""Based on the following document content, generate {question_count} educational quiz questions.

Document Content:
{combined}

Requirements:
1. Use only these question types:
{type_lines}
2. Include questions of varying difficulty levels (easy, medium, hard)
3. Include a clear explanation for every correct answer
4. Focus on key concepts, main ideas, and important details from the documents

Return ONLY a valid JSON array of questions in this exact format:
[
  {{
    "id": "q1",
    "type": "mcq",
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correct_answer": "Exact correct option text",
    "explanation": "Why this is correct",
    "difficulty": "easy|medium|hard"
  }},
  {{
    "id": "q2",
    "type": "saq",
    "question": "Question text here?",
    "correct_answer": "Expected short answer",
    "explanation": "Explanation of the answer",
    "difficulty": "easy|medium|hard"
  }}
]
Return ONLY the JSON array, no other text."""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json fence from model output"""
    return _CODE_FENCE.sub("", text.strip()).strip()


def _decode(text: str) -> Any:
    cleaned = strip_code_fence(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = _ARRAY_SPAN.search(cleaned)
        if not match:
            raise
        return json.loads(match.group(0))


def parse_questions(text: str) -> ParseResult:
    """Decode model output and validate every question; never raises"""
    try:
        payload = _decode(text)
    except (json.JSONDecodeError, ValueError) as e:
        return ParseFailure(reason=f"response is not valid JSON: {e}", raw=text)

    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list):
        return ParseFailure(reason="response does not contain a question array", raw=text)

    stamp = int(time.time() * 1000)
    questions: List[QuizQuestion] = []
    dropped = 0
    for index, item in enumerate(payload):
        try:
            question = QuizQuestion.model_validate(item)
        except PydanticValidationError as e:
            dropped += 1
            logger.debug(f"Dropping invalid quiz question {index}: {e.error_count()} errors")
            continue
        if not question.id:
            question.id = f"question_{stamp}_{index}"
        questions.append(question)

    if not questions:
        return ParseFailure(reason=f"no valid questions among {len(payload)} items", raw=text)
    return ParsedQuestions(questions=questions, dropped=dropped)


def fallback_questions() -> List[QuizQuestion]:
    """Generic placeholder questions used when the model output is unusable"""
    stamp = int(time.time() * 1000)
    return [
        QuizQuestion(
            id=f"fallback_{stamp}_1",
            type="mcq",
            question="Based on the documents, what is the main topic discussed?",
            options=[
                "Primary concept from the document",
                "Secondary concept",
                "Unrelated topic A",
                "Unrelated topic B",
            ],
            correct_answer="Primary concept from the document",
            explanation="This is the main focus of the provided documents based on the content analysis.",
            difficulty="medium",
        ),
        QuizQuestion(
            id=f"fallback_{stamp}_2",
            type="saq",
            question="Summarize the key takeaway from the documents in 1-2 sentences.",
            correct_answer="The documents focus on important concepts that require understanding and application.",
            explanation="A good summary should capture the essential information and main themes presented.",
            difficulty="easy",
        ),
    ]


class QuizGenerator:
    def __init__(self, generator: Generator):
        self.generator = generator

    async def generate(
        self,
        documents: Sequence[RetrievedDocument],
        question_count: int = 5,
        types: Sequence[str] = ("mcq",),
    ) -> QuizOutcome:
        """
        Generate quiz questions from documents

        Unparseable model output is replaced by the fallback questions
        (reported through `used_fallback`). A failed model call is not
        masked and raises UpstreamGenerationError.
        """
        prompt = build_quiz_prompt(documents, question_count, types)
        raw = await self.generator.complete(prompt)

        result = parse_questions(raw)
        if isinstance(result, ParseFailure):
            QUIZ_COUNT.labels(outcome="fallback").inc()
            logger.warning(f"Quiz output unusable ({result.reason}); substituting fallback questions")
            return QuizOutcome(
                questions=fallback_questions(),
                message="Generated fallback quiz questions due to parsing issues",
                used_fallback=True,
            )

        QUIZ_COUNT.labels(outcome="parsed").inc()
        if result.dropped:
            logger.info(f"Dropped {result.dropped} invalid quiz questions")
        questions = result.questions[:question_count]
        return QuizOutcome(
            questions=questions,
            message=f"Generated {len(questions)} quiz questions successfully",
            used_fallback=False,
        )
