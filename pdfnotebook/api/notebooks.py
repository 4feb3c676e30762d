"""
Notebook endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotebook.core.errors import NotFoundError
from pdfnotebook.db import crud
from pdfnotebook.dependencies import get_current_user, get_session
from pdfnotebook.logger import logger
from pdfnotebook.schemas.requests import CreateNotebookRequest
from pdfnotebook.schemas.responses import (
    DocumentInfo,
    DocumentListResponse,
    NotebookInfo,
    NotebookListResponse,
)

router = APIRouter()


def _iso(value):
    return value.isoformat() if value else None


@router.post("", response_model=NotebookInfo, status_code=status.HTTP_201_CREATED)
async def create_notebook(
    req: CreateNotebookRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notebook = await crud.create_notebook(session, user_id, req.title, req.description)
    return NotebookInfo(
        id=notebook.id,
        title=notebook.title,
        description=notebook.description,
        source_count=0,
        created_at=_iso(notebook.created_at),
    )


@router.get("", response_model=NotebookListResponse)
async def list_notebooks(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """List the caller's notebooks, newest first"""
    rows = await crud.list_notebooks(session, user_id)
    notebooks = [NotebookInfo(**row) for row in rows]
    return NotebookListResponse(notebooks=notebooks, count=len(notebooks))


@router.get("/{notebook_id}/documents", response_model=DocumentListResponse)
async def list_documents(
    notebook_id: str,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    List a notebook's documents with their processing status
    """
    notebook = await crud.get_notebook(session, user_id, notebook_id)
    if notebook is None:
        raise NotFoundError("Notebook not found")

    documents = await crud.list_notebook_documents(session, user_id, notebook_id)
    logger.debug(f"Notebook {notebook_id} has {len(documents)} documents")
    return DocumentListResponse(
        documents=[
            DocumentInfo(
                id=doc.id,
                notebook_id=doc.notebook_id,
                filename=doc.filename,
                status=doc.status,
                file_size=doc.file_size or 0,
                page_count=doc.page_count or 0,
                created_at=_iso(doc.created_at),
            )
            for doc in documents
        ],
        count=len(documents),
    )
