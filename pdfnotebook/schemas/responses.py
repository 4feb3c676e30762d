"""
Response schemas for API endpoints
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class CamelResponse(BaseModel):
    """Serialized with camelCase aliases (FastAPI uses by_alias by default)"""
    model_config = ConfigDict(populate_by_name=True)


class NotebookInfo(CamelResponse):
    id: str
    title: str
    description: Optional[str] = None
    source_count: int = Field(0, alias="sourceCount")
    created_at: Optional[str] = Field(None, alias="createdAt")


class NotebookListResponse(BaseModel):
    notebooks: List[NotebookInfo]
    count: int


class DocumentInfo(CamelResponse):
    """Document metadata"""
    id: str
    notebook_id: str = Field(..., alias="notebookId")
    filename: str
    status: str
    file_size: int = Field(0, alias="fileSize")
    page_count: int = Field(0, alias="pageCount")
    created_at: Optional[str] = Field(None, alias="createdAt")


class DocumentListResponse(BaseModel):
    documents: List[DocumentInfo]
    count: int


class UploadResponse(CamelResponse):
    """Response from upload endpoint"""
    document_id: str = Field(..., alias="documentId")
    chunks_created: int = Field(..., alias="chunksCreated")
    page_count: int = Field(..., alias="pageCount")
    message: str = "Document uploaded and processed successfully"


class EmbedStatusResponse(CamelResponse):
    document_id: str = Field(..., alias="documentId")
    filename: str
    status: str
    is_embedded: bool = Field(..., alias="isEmbedded")
    has_chunks: bool = Field(..., alias="hasChunks")
    chunk_count: int = Field(0, alias="chunkCount")
    message: str


class ChatResponse(BaseModel):
    """Response from chat endpoint"""
    response: str
    sources: List[str] = Field(default_factory=list, description="IDs of the documents used as context")
    citations: List[Dict[str, Any]] = Field(default_factory=list)


class ChatMessageInfo(CamelResponse):
    id: int
    role: str
    content: str
    created_at: Optional[str] = Field(None, alias="createdAt")


class ChatHistoryResponse(BaseModel):
    messages: List[ChatMessageInfo]


class QuizQuestionOut(BaseModel):
    id: str
    type: str
    question: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: str
    difficulty: str


class QuizResponse(BaseModel):
    questions: List[QuizQuestionOut]
    message: str


class ProgressSavedResponse(CamelResponse):
    success: bool = True
    message: str = "Quiz attempt saved successfully."
    attempt_id: str = Field(..., alias="attemptId")


class ProgressStatistics(CamelResponse):
    total_attempts: int = Field(..., alias="totalAttempts")
    average_score: int = Field(..., alias="averageScore")
    total_correct_answers: int = Field(..., alias="totalCorrectAnswers")
    total_questions: int = Field(..., alias="totalQuestions")
    quiz_type_breakdown: Dict[str, int] = Field(default_factory=dict, alias="quizTypeBreakdown")
    recent_activity: List[Dict[str, Any]] = Field(default_factory=list, alias="recentActivity")


class ProgressResponse(BaseModel):
    success: bool = True
    attempts: List[Dict[str, Any]]
    statistics: ProgressStatistics


class SeedResponse(CamelResponse):
    seeded: bool
    notebook_ids: List[str] = Field(default_factory=list, alias="notebookIds")
    documents_created: int = Field(0, alias="documentsCreated")


class VideoOut(BaseModel):
    title: str
    search_query: str
    url: str


class VideoResponse(BaseModel):
    success: bool = True
    videos: List[VideoOut]
    message: str
