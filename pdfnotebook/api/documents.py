"""
Document endpoints: embedding status, PDF download, deletion
"""
import base64
import binascii

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotebook.core.errors import NotFoundError
from pdfnotebook.db import crud
from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services, get_session
from pdfnotebook.logger import logger
from pdfnotebook.schemas.requests import EmbedStatusRequest
from pdfnotebook.schemas.responses import EmbedStatusResponse

router = APIRouter()


@router.post("/embed", response_model=EmbedStatusResponse)
async def embedding_status(
    req: EmbedStatusRequest,
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Report whether a document's chunks are embedded

    Check-only: embedding always happens during upload.
    """
    status = await services.pipeline.embedding_status(user_id, req.document_id)
    return EmbedStatusResponse(**{
        "document_id": status["documentId"],
        "filename": status["filename"],
        "status": status["status"],
        "is_embedded": status["isEmbedded"],
        "has_chunks": status["hasChunks"],
        "chunk_count": status["chunkCount"],
        "message": status["message"],
    })


@router.get("/{document_id}/pdf")
async def download_pdf(
    document_id: str,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    services: ServiceContainer = Depends(get_services),
):
    """
    Return the stored PDF

    Documents uploaded before file storage existed keep the PDF as base64
    in content_text.
    """
    doc = await crud.get_document(session, user_id, document_id)
    if doc is None:
        raise NotFoundError("Document not found or access denied")

    headers = {
        "Content-Disposition": f'inline; filename="{doc.filename}"',
        "Cache-Control": "private, max-age=3600",
        "X-Document-ID": document_id,
    }

    if doc.storage_path:
        payload = services.file_store.read(doc.storage_path)
        if payload is None:
            logger.error(f"Stored file missing for document {document_id}: {doc.storage_path}")
            raise NotFoundError("PDF file not available")
        headers["X-Document-Source"] = "storage"
        return Response(content=payload, media_type="application/pdf", headers=headers)

    if doc.content_text:
        try:
            payload = base64.b64decode(doc.content_text, validate=True)
        except (binascii.Error, ValueError):
            raise NotFoundError("PDF file not available")
        headers["X-Document-Source"] = "legacy-base64"
        return Response(content=payload, media_type="application/pdf", headers=headers)

    raise NotFoundError("PDF file not available")


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    services: ServiceContainer = Depends(get_services),
):
    """
    Delete a document, its chunks and its stored file
    """
    deleted = await crud.delete_document(session, user_id, document_id)
    if deleted is None:
        raise NotFoundError("Document not found")

    services.file_store.delete(deleted.storage_path)
    logger.info(f"Document {document_id} deleted")

    return {"message": "Document deleted successfully"}
