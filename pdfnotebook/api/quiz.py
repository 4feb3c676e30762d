"""
Quiz generation endpoint
"""
from fastapi import APIRouter, Depends

from pdfnotebook.core.errors import NotFoundError
from pdfnotebook.db import crud
from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services
from pdfnotebook.logger import logger
from pdfnotebook.schemas.requests import QuizGenerateRequest
from pdfnotebook.schemas.responses import QuizQuestionOut, QuizResponse

router = APIRouter()


@router.post("/generate", response_model=QuizResponse)
async def generate_quiz(
    req: QuizGenerateRequest,
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Generate quiz questions from notebook documents

    Without documentIds the most recent ready documents are used. Model
    output that cannot be parsed yields generic fallback questions.
    """
    async with services.database.session_factory() as session:
        notebook = await crud.get_notebook(session, user_id, req.notebook_id)
    if notebook is None:
        raise NotFoundError("Notebook not found")

    documents = await services.selector.select(user_id, req.notebook_id, req.document_ids)
    if not documents:
        raise NotFoundError("No documents found")

    outcome = await services.quiz_generator.generate(
        documents,
        question_count=req.question_count,
        types=req.types,
    )
    logger.info(
        f"Quiz for notebook {req.notebook_id}: {len(outcome.questions)} questions "
        f"(fallback={outcome.used_fallback})"
    )
    return QuizResponse(
        questions=[QuizQuestionOut(**question.model_dump()) for question in outcome.questions],
        message=outcome.message,
    )
