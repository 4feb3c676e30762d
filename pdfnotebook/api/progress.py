"""
Quiz progress endpoints
"""
from collections import Counter
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotebook.core.errors import NotFoundError
from pdfnotebook.db import crud
from pdfnotebook.dependencies import get_current_user, get_session
from pdfnotebook.logger import logger
from pdfnotebook.schemas.requests import ProgressRequest
from pdfnotebook.schemas.responses import ProgressResponse, ProgressSavedResponse, ProgressStatistics

router = APIRouter()


def summarize_attempts(attempts: List[Dict[str, Any]]) -> ProgressStatistics:
    """Aggregate statistics over the returned attempts"""
    total = len(attempts)
    average = round(sum(a["score"] for a in attempts) / total) if total else 0
    return ProgressStatistics(
        total_attempts=total,
        average_score=average,
        total_correct_answers=sum(a["correct_answers"] for a in attempts),
        total_questions=sum(a["total_questions"] for a in attempts),
        quiz_type_breakdown=dict(Counter(a["quiz_type"] for a in attempts)),
        recent_activity=attempts[:5],
    )


@router.post("", response_model=ProgressSavedResponse)
async def save_progress(
    req: ProgressRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Record a completed quiz attempt"""
    notebook = await crud.get_notebook(session, user_id, req.notebook_id)
    if notebook is None:
        raise NotFoundError("Notebook not found or access denied")

    if req.document_id:
        doc = await crud.get_document(session, user_id, req.document_id)
        if doc is None or doc.notebook_id != req.notebook_id:
            raise NotFoundError("Document not found or access denied")

    attempt = await crud.create_quiz_attempt(
        session,
        user_id=user_id,
        notebook_id=req.notebook_id,
        document_id=req.document_id,
        quiz_topic=req.quiz_topic,
        quiz_type=req.quiz_type,
        questions=req.questions,
        user_answers=req.user_answers,
        score=req.score,
        total_questions=req.total_questions,
        correct_answers=req.correct_answers,
    )
    logger.info(f"Saved quiz attempt {attempt.id} (score={req.score}) for notebook {req.notebook_id}")
    return ProgressSavedResponse(attempt_id=attempt.id)


@router.get("", response_model=ProgressResponse)
async def get_progress(
    notebook_id: Optional[str] = Query(None, alias="notebookId"),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    attempts = await crud.list_quiz_attempts(session, user_id, notebook_id=notebook_id, limit=limit)
    return ProgressResponse(attempts=attempts, statistics=summarize_attempts(attempts))
