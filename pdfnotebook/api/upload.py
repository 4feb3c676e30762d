"""
PDF upload endpoint with validation and error handling
"""
import asyncio
import os

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from pdfnotebook.core.errors import NotFoundError, NotebookServiceError, ValidationError
from pdfnotebook.core.ingestion import IngestionFailed
from pdfnotebook.db import crud
from pdfnotebook.dependencies import ServiceContainer, get_current_user, get_services
from pdfnotebook.limiter import UPLOAD_RATE_LIMIT, limiter
from pdfnotebook.logger import logger
from pdfnotebook.schemas.responses import UploadResponse

router = APIRouter()

ALLOWED_EXTENSIONS = {".pdf"}
ALLOWED_CONTENT_TYPES = {"application/pdf"}


def validate_file(file: UploadFile) -> None:
    """
    Validate uploaded file

    Raises:
        HTTPException: If extension or content type is not PDF
    """
    filename = file.filename or ""
    ext = os.path.splitext(filename)[1].lower()

    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid content type. Must be application/pdf"
        )


def log_detached_failure(task: "asyncio.Future") -> None:
    """
    Retrieve the outcome of an ingestion task whose caller went away

    The pipeline has already marked the document; this only keeps the
    failure in the log instead of an unretrieved task exception.
    """
    if task.cancelled():
        return
    error = task.exception()
    if isinstance(error, IngestionFailed):
        logger.warning(
            f"Upload of document {error.document_id} failed during {error.stage} "
            f"after the client disconnected: {error.cause}"
        )
    elif error is not None:
        logger.error(f"Detached ingestion task failed: {type(error).__name__}: {error}")


@router.post("", response_model=UploadResponse)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_pdf(
    request: Request,
    file: UploadFile = File(..., description="PDF file to ingest"),
    notebook_id: str = Form(..., alias="notebookId"),
    user_id: str = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Upload a PDF into a notebook

    Process:
    1. Validate file type and size
    2. Create the document in processing status and store the file
    3. Extract, chunk and embed the text
    4. Persist the chunks and mark the document ready

    A failed run leaves the document in error status and returns the error.
    """
    validate_file(file)

    contents = await file.read()
    if not contents:
        raise ValidationError("Uploaded file is empty")

    max_size = services.settings.max_file_size_bytes
    if len(contents) > max_size:
        logger.warning(f"File {file.filename} exceeds size limit ({len(contents)} bytes)")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds {services.settings.MAX_FILE_SIZE_MB}MB limit"
        )

    async with services.database.session_factory() as session:
        notebook = await crud.get_notebook(session, user_id, notebook_id)
    if notebook is None:
        raise NotFoundError("Notebook not found")

    logger.info(f"Processing upload {file.filename} ({len(contents)} bytes) into notebook {notebook_id}")

    # A client disconnect must not leave the document in processing
    task = asyncio.ensure_future(
        services.pipeline.ingest_pdf(
            user_id=user_id,
            notebook_id=notebook_id,
            filename=file.filename,
            payload=contents,
        )
    )
    try:
        result = await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(log_detached_failure)
        raise
    except IngestionFailed as e:
        if isinstance(e.cause, NotebookServiceError):
            raise e.cause
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process {file.filename}"
        ) from e

    return UploadResponse(
        document_id=result.document_id,
        chunks_created=result.chunks_created,
        page_count=result.page_count,
    )
