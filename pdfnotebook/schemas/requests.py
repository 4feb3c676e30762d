"""
Request schemas for API endpoints
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional


class CamelModel(BaseModel):
    """Accepts camelCase aliases from clients as well as field names"""
    model_config = ConfigDict(populate_by_name=True)


class CreateNotebookRequest(CamelModel):
    """Request schema for notebook creation"""
    title: str = Field(..., min_length=1, max_length=255, description="Notebook title")
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()


class EmbedStatusRequest(CamelModel):
    """Request schema for the embedding status probe"""
    document_id: str = Field(..., alias="documentId", min_length=1)


class ChatRequest(CamelModel):
    """Request schema for chat endpoint"""
    message: str = Field(..., min_length=1, max_length=4000, description="Question to ask")
    notebook_id: str = Field(..., alias="notebookId", min_length=1)
    selected_documents: Optional[List[str]] = Field(
        None,
        alias="selectedDocuments",
        description="Restrict context to these document IDs",
    )

    @field_validator('message')
    @classmethod
    def message_not_empty(cls, v):
        if not v.strip():
            raise ValueError('Message cannot be empty')
        return v.strip()


class QuizGenerateRequest(CamelModel):
    """Request schema for quiz generation"""
    notebook_id: str = Field(..., alias="notebookId", min_length=1)
    document_ids: List[str] = Field(default_factory=list, alias="documentIds")
    question_count: int = Field(5, alias="questionCount", ge=1, le=20)
    types: List[Literal["mcq", "saq", "laq"]] = Field(default_factory=lambda: ["mcq"])

    @model_validator(mode='after')
    def dedupe_types(self):
        # Keep caller order, default to mcq when emptied
        self.types = list(dict.fromkeys(self.types)) or ["mcq"]
        return self


class ProgressRequest(CamelModel):
    """Request schema for recording a quiz attempt"""
    notebook_id: str = Field(..., alias="notebookId", min_length=1)
    document_id: Optional[str] = Field(None, alias="documentId")
    quiz_topic: str = Field(..., alias="quizTopic", min_length=1, max_length=255)
    quiz_type: str = Field("mcq", alias="quizType", max_length=16)
    questions: List[Dict[str, Any]] = Field(..., min_length=1)
    user_answers: Any = Field(..., alias="userAnswers")
    score: float = Field(..., ge=0, le=100)
    total_questions: Optional[int] = Field(None, alias="totalQuestions", ge=0)
    correct_answers: Optional[int] = Field(None, alias="correctAnswers", ge=0)

    @model_validator(mode='after')
    def fill_counts(self):
        """Derive totals from the question list and score when not given"""
        if self.total_questions is None:
            self.total_questions = len(self.questions)
        if self.correct_answers is None:
            self.correct_answers = round(self.score / 100 * len(self.questions))
        return self


class VideoRequest(CamelModel):
    """Request schema for study-video recommendations"""
    topic: Optional[str] = Field(None, max_length=255)
    document_content: Optional[str] = Field(None, alias="documentContent")

    @model_validator(mode='after')
    def topic_or_content(self):
        self.topic = (self.topic or "").strip() or None
        self.document_content = (self.document_content or "").strip() or None
        if self.topic is None and self.document_content is None:
            raise ValueError('Topic or document content is required')
        return self
