"""
SQLAlchemy models for database tables
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from pdfnotebook.core.database import Base

metadata = Base.metadata

STATUS_PROCESSING = "processing"
STATUS_READY = "ready"
STATUS_ERROR = "error"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notebook(Base):
    """A user-owned collection of documents"""
    __tablename__ = "notebooks"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Document(Base):
    """One uploaded file and its processing status"""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    notebook_id = Column(String(36), ForeignKey("notebooks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False)
    filename = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default=STATUS_PROCESSING)
    storage_path = Column(String(512), nullable=True)
    content_text = Column(Text, nullable=True)  # legacy full text / base64 payload
    file_size = Column(Integer, nullable=False, default=0)
    page_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_documents_notebook_created", "notebook_id", "created_at"),
    )


class DocumentChunk(Base):
    """Overlapping slice of a page's text plus its embedding"""
    __tablename__ = "document_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    page_number = Column(Integer, nullable=False)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_chunks_document_order", "document_id", "page_number", "chunk_index", unique=True),
    )


class ChatMessage(Base):
    """Append-only chat history, one row per turn"""
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notebook_id = Column(String(36), ForeignKey("notebooks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False)
    role = Column(String(16), nullable=False)  # user/assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class QuizAttempt(Base):
    """Append-only record of a completed quiz"""
    __tablename__ = "quiz_attempts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    notebook_id = Column(String(36), ForeignKey("notebooks.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="SET NULL"), nullable=True)
    quiz_topic = Column(String(255), nullable=False)
    quiz_type = Column(String(16), nullable=False, default="mcq")
    questions = Column(JSON, nullable=False)
    user_answers = Column(JSON, nullable=False)
    score = Column(Float, nullable=False)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
