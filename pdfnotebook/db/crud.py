"""
Async CRUD operations for database
"""
from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Dict, Any, Optional, Sequence

from pdfnotebook.db.models import (
    ChatMessage,
    Document,
    DocumentChunk,
    Notebook,
    QuizAttempt,
    STATUS_ERROR,
    STATUS_PROCESSING,
    STATUS_READY,
)
from pdfnotebook.logger import logger


# ---------------------------------------------------------------------------
# Notebooks
# ---------------------------------------------------------------------------

async def create_notebook(
    session: AsyncSession,
    user_id: str,
    title: str,
    description: Optional[str] = None,
) -> Notebook:
    notebook = Notebook(user_id=user_id, title=title, description=description)
    session.add(notebook)
    try:
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to create notebook for user {user_id}: {e}")
        raise
    logger.info(f"Created notebook {notebook.id} for user {user_id}")
    return notebook


async def get_notebook(session: AsyncSession, user_id: str, notebook_id: str) -> Optional[Notebook]:
    """Get a notebook only if it belongs to the user"""
    result = await session.execute(
        select(Notebook).where(Notebook.id == notebook_id, Notebook.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def list_notebooks(session: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
    """List a user's notebooks, newest first, with their document counts"""
    doc_counts = (
        select(Document.notebook_id, func.count(Document.id).label("source_count"))
        .group_by(Document.notebook_id)
        .subquery()
    )
    result = await session.execute(
        select(Notebook, func.coalesce(doc_counts.c.source_count, 0))
        .outerjoin(doc_counts, doc_counts.c.notebook_id == Notebook.id)
        .where(Notebook.user_id == user_id)
        .order_by(Notebook.created_at.desc())
    )
    return [
        {
            "id": notebook.id,
            "title": notebook.title,
            "description": notebook.description,
            "source_count": source_count,
            "created_at": notebook.created_at.isoformat() if notebook.created_at else None,
        }
        for notebook, source_count in result.all()
    ]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

async def create_document(
    session: AsyncSession,
    *,
    document_id: str,
    user_id: str,
    notebook_id: str,
    filename: str,
    file_size: int = 0,
    content_text: Optional[str] = None,
) -> Document:
    """Create a document row in processing status"""
    doc = Document(
        id=document_id,
        user_id=user_id,
        notebook_id=notebook_id,
        filename=filename,
        status=STATUS_PROCESSING,
        file_size=file_size,
        content_text=content_text,
    )
    session.add(doc)
    try:
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to create document {document_id}: {e}")
        raise
    logger.info(f"Created document {document_id} ({filename}) in notebook {notebook_id}")
    return doc


async def set_storage_path(session: AsyncSession, document_id: str, storage_path: str):
    await session.execute(
        update(Document).where(Document.id == document_id).values(storage_path=storage_path)
    )
    await session.commit()


async def mark_document_error(
    session: AsyncSession,
    document_id: str,
    page_count: Optional[int] = None,
):
    """Move a document to the terminal error state and drop any chunk rows"""
    values: Dict[str, Any] = {"status": STATUS_ERROR}
    if page_count is not None:
        values["page_count"] = page_count
    try:
        await session.execute(delete(DocumentChunk).where(DocumentChunk.document_id == document_id))
        await session.execute(update(Document).where(Document.id == document_id).values(**values))
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to mark document {document_id} as error: {e}")
        raise
    logger.warning(f"Document {document_id} marked as error")


async def persist_chunks_and_mark_ready(
    session: AsyncSession,
    document_id: str,
    chunk_rows: Sequence[Dict[str, Any]],
    page_count: int,
) -> int:
    """
    Insert every chunk row and flip the document to ready in one transaction

    Args:
        session: Database session
        document_id: Owning document
        chunk_rows: Dicts with page_number, chunk_index, content, embedding
        page_count: Number of extracted pages

    Returns:
        Number of chunk rows written
    """
    try:
        session.add_all(
            DocumentChunk(
                document_id=document_id,
                page_number=row["page_number"],
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=list(row["embedding"]),
            )
            for row in chunk_rows
        )
        await session.execute(
            update(Document)
            .where(Document.id == document_id)
            .values(status=STATUS_READY, page_count=page_count)
        )
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to persist chunks for document {document_id}: {e}")
        raise
    logger.info(f"Persisted {len(chunk_rows)} chunks for document {document_id}")
    return len(chunk_rows)


async def get_document(session: AsyncSession, user_id: str, document_id: str) -> Optional[Document]:
    """Get a document only if it belongs to the user"""
    result = await session.execute(
        select(Document).where(Document.id == document_id, Document.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def list_notebook_documents(session: AsyncSession, user_id: str, notebook_id: str) -> List[Document]:
    result = await session.execute(
        select(Document)
        .where(Document.notebook_id == notebook_id, Document.user_id == user_id)
        .order_by(Document.created_at.desc())
    )
    return list(result.scalars().all())


async def get_owned_documents(
    session: AsyncSession,
    user_id: str,
    notebook_id: str,
    document_ids: Sequence[str],
) -> List[Document]:
    """Documents among document_ids that belong to the user and notebook"""
    if not document_ids:
        return []
    result = await session.execute(
        select(Document).where(
            Document.id.in_(list(document_ids)),
            Document.user_id == user_id,
            Document.notebook_id == notebook_id,
        )
    )
    return list(result.scalars().all())


async def recent_ready_documents(
    session: AsyncSession,
    user_id: str,
    notebook_id: str,
    limit: int,
) -> List[Document]:
    result = await session.execute(
        select(Document)
        .where(
            Document.notebook_id == notebook_id,
            Document.user_id == user_id,
            Document.status == STATUS_READY,
        )
        .order_by(Document.created_at.desc(), Document.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_chunks(session: AsyncSession, document_id: str) -> int:
    result = await session.execute(
        select(func.count(DocumentChunk.id)).where(DocumentChunk.document_id == document_id)
    )
    return result.scalar() or 0


async def get_document_chunks(session: AsyncSession, document_id: str) -> List[DocumentChunk]:
    """All chunks of a document in page/index order"""
    result = await session.execute(
        select(DocumentChunk)
        .where(DocumentChunk.document_id == document_id)
        .order_by(DocumentChunk.page_number, DocumentChunk.chunk_index)
    )
    return list(result.scalars().all())


async def chunk_texts_by_document(
    session: AsyncSession,
    document_ids: Sequence[str],
) -> Dict[str, List[str]]:
    """Map document id -> chunk contents in page/index order"""
    texts: Dict[str, List[str]] = {doc_id: [] for doc_id in document_ids}
    if not document_ids:
        return texts
    result = await session.execute(
        select(DocumentChunk.document_id, DocumentChunk.content)
        .where(DocumentChunk.document_id.in_(list(document_ids)))
        .order_by(DocumentChunk.document_id, DocumentChunk.page_number, DocumentChunk.chunk_index)
    )
    for document_id, content in result.all():
        texts[document_id].append(content)
    return texts


async def delete_document(session: AsyncSession, user_id: str, document_id: str) -> Optional[Document]:
    """Delete a document and its chunks; returns the deleted row or None"""
    doc = await get_document(session, user_id, document_id)
    if doc is None:
        return None
    try:
        await session.execute(delete(DocumentChunk).where(DocumentChunk.document_id == document_id))
        await session.execute(delete(Document).where(Document.id == document_id))
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to delete document {document_id}: {e}")
        raise
    logger.info(f"Deleted document {document_id}")
    return doc


# ---------------------------------------------------------------------------
# Chat history
# ---------------------------------------------------------------------------

async def add_chat_turn(
    session: AsyncSession,
    user_id: str,
    notebook_id: str,
    question: str,
    answer: str,
):
    session.add_all([
        ChatMessage(notebook_id=notebook_id, user_id=user_id, role="user", content=question),
        ChatMessage(notebook_id=notebook_id, user_id=user_id, role="assistant", content=answer),
    ])
    try:
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to store chat turn for notebook {notebook_id}: {e}")
        raise


async def list_chat_messages(
    session: AsyncSession,
    user_id: str,
    notebook_id: str,
    limit: int = 100,
) -> List[ChatMessage]:
    """Most recent messages, returned oldest first"""
    result = await session.execute(
        select(ChatMessage)
        .where(ChatMessage.notebook_id == notebook_id, ChatMessage.user_id == user_id)
        .order_by(ChatMessage.id.desc())
        .limit(limit)
    )
    return list(reversed(result.scalars().all()))


# ---------------------------------------------------------------------------
# Quiz attempts
# ---------------------------------------------------------------------------

async def create_quiz_attempt(session: AsyncSession, **fields) -> QuizAttempt:
    attempt = QuizAttempt(**fields)
    session.add(attempt)
    try:
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to save quiz attempt: {e}")
        raise
    return attempt


async def list_quiz_attempts(
    session: AsyncSession,
    user_id: str,
    notebook_id: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    query = (
        select(QuizAttempt, Notebook.title, Document.filename)
        .join(Notebook, Notebook.id == QuizAttempt.notebook_id)
        .outerjoin(Document, Document.id == QuizAttempt.document_id)
        .where(QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.created_at.desc())
        .limit(limit)
    )
    if notebook_id:
        query = query.where(QuizAttempt.notebook_id == notebook_id)

    result = await session.execute(query)
    return [
        {
            "id": attempt.id,
            "created_at": attempt.created_at.isoformat() if attempt.created_at else None,
            "quiz_topic": attempt.quiz_topic,
            "quiz_type": attempt.quiz_type,
            "score": attempt.score,
            "total_questions": attempt.total_questions,
            "correct_answers": attempt.correct_answers,
            "notebook_id": attempt.notebook_id,
            "document_id": attempt.document_id,
            "notebook_title": notebook_title,
            "document_filename": filename,
        }
        for attempt, notebook_title, filename in result.all()
    ]


async def get_db_stats(session: AsyncSession) -> Dict[str, int]:
    """
    Get database statistics

    Returns:
        Dictionary with notebook, document and chunk counts
    """
    try:
        notebook_count = (await session.execute(select(func.count(Notebook.id)))).scalar() or 0
        doc_count = (await session.execute(select(func.count(Document.id)))).scalar() or 0
        chunk_count = (await session.execute(select(func.count(DocumentChunk.id)))).scalar() or 0
        return {
            "notebooks": notebook_count,
            "documents": doc_count,
            "chunks": chunk_count,
        }
    except Exception as e:
        logger.error(f"Failed to get DB stats: {e}")
        return {
            "notebooks": 0,
            "documents": 0,
            "chunks": 0,
        }
