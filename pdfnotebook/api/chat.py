"""
Chat endpoints: answer questions from notebook documents
"""
from fastapi import APIRouter, Depends, Query, Request

from pdfnotebook.core.errors import NotFoundError
from pdfnotebook.core.llm_client import generate
from pdfnotebook.db import crud
from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services
from pdfnotebook.limiter import CHAT_RATE_LIMIT, limiter
from pdfnotebook.logger import logger
from pdfnotebook.metrics import CHAT_COUNT
from pdfnotebook.schemas.requests import ChatRequest
from pdfnotebook.schemas.responses import ChatHistoryResponse, ChatMessageInfo, ChatResponse

router = APIRouter()


async def _require_notebook(services: ServiceContainer, user_id: str, notebook_id: str):
    async with services.database.session_factory() as session:
        notebook = await crud.get_notebook(session, user_id, notebook_id)
    if notebook is None:
        raise NotFoundError("Notebook not found")
    return notebook


@router.post("", response_model=ChatResponse)
@limiter.limit(CHAT_RATE_LIMIT)
async def chat(
    request: Request,
    req: ChatRequest,
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Answer a question from the notebook's documents

    Process:
    1. Select context documents (explicit selection or most recent ready)
    2. Generate the answer with the LLM
    3. Store the question and answer in the chat history

    Returns:
        Answer text, the ids of the documents used, and an empty citation list
    """
    await _require_notebook(services, user_id, req.notebook_id)

    if req.selected_documents:
        logger.info(f"Restricting context to {len(req.selected_documents)} selected documents")
    documents = await services.selector.select(user_id, req.notebook_id, req.selected_documents)

    answer = await generate(services.generator, req.message, documents)

    async with services.database.session_factory() as session:
        await crud.add_chat_turn(session, user_id, req.notebook_id, req.message, answer)

    CHAT_COUNT.inc()
    logger.info(f"Answered question in notebook {req.notebook_id} from {len(documents)} documents")

    return ChatResponse(
        response=answer,
        sources=[doc.document_id for doc in documents],
        citations=[],
    )


@router.get("/history", response_model=ChatHistoryResponse)
async def chat_history(
    notebook_id: str = Query(..., alias="notebookId"),
    limit: int = Query(100, ge=1, le=500),
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    await _require_notebook(services, user_id, notebook_id)
    async with services.database.session_factory() as session:
        messages = await crud.list_chat_messages(session, user_id, notebook_id, limit=limit)
    return ChatHistoryResponse(
        messages=[
            ChatMessageInfo(
                id=message.id,
                role=message.role,
                content=message.content,
                created_at=message.created_at.isoformat() if message.created_at else None,
            )
            for message in messages
        ]
    )
