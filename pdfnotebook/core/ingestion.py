"""
Document ingestion: extract -> chunk -> embed -> persist

A document is created in processing status and leaves it exactly once:
ready when every chunk was embedded and written, error otherwise. Chunk rows
and the ready flip share one transaction, so a failed run never leaves
chunks behind.
"""
import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pdfnotebook.core.chunker import ChunkingParams, PRIMARY_CHUNKING, SAMPLE_CHUNKING, chunk_pages
from pdfnotebook.core.embeddings import Embedder, embed_in_order
from pdfnotebook.core.errors import ExtractionError, NotFoundError
from pdfnotebook.core.pdf_extractor import PdfTextExtractor
from pdfnotebook.core.storage import LocalFileStore
from pdfnotebook.db import crud
from pdfnotebook.db.models import STATUS_READY
from pdfnotebook.logger import logger
from pdfnotebook.metrics import CHUNK_COUNT, INGEST_DURATION, INGEST_FAILURES, UPLOAD_COUNT, UPLOAD_PAGES


@dataclass
class IngestionResult:
    document_id: str
    status: str
    chunks_created: int
    page_count: int


@dataclass
class _Progress:
    stage: str


class IngestionFailed(Exception):
    """Raised by the pipeline after the document was moved to error status"""

    def __init__(self, document_id: str, stage: str, cause: BaseException):
        super().__init__(f"Ingestion of document {document_id} failed during {stage}: {cause}")
        self.document_id = document_id
        self.stage = stage
        self.cause = cause


class IngestionPipeline:
    """Runs one ingestion per call; holds no per-document state between calls"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        extractor: PdfTextExtractor,
        embedder: Embedder,
        file_store: Optional[LocalFileStore] = None,
        params: ChunkingParams = PRIMARY_CHUNKING,
        embed_concurrency: int = 1,
    ):
        self.session_factory = session_factory
        self.extractor = extractor
        self.embedder = embedder
        self.file_store = file_store
        self.params = params
        self.embed_concurrency = embed_concurrency

    async def ingest_pdf(
        self,
        *,
        user_id: str,
        notebook_id: str,
        filename: str,
        payload: bytes,
    ) -> IngestionResult:
        """
        Ingest an uploaded PDF

        Raises:
            IngestionFailed: The document exists with status error; `cause`
                holds the ExtractionError/EmbeddingError/other original error
        """
        document_id = str(uuid.uuid4())
        async with self.session_factory() as session:
            await crud.create_document(
                session,
                document_id=document_id,
                user_id=user_id,
                notebook_id=notebook_id,
                filename=filename,
                file_size=len(payload),
            )

        progress = _Progress(stage="storage")
        page_count: Optional[int] = None
        start = time.time()
        try:
            if self.file_store is not None:
                storage_path = self.file_store.save(document_id, filename, payload)
                async with self.session_factory() as session:
                    await crud.set_storage_path(session, document_id, storage_path)

            progress.stage = "extraction"
            pages = await asyncio.to_thread(self.extractor.extract, payload)
            page_count = len(pages)
            UPLOAD_PAGES.inc(page_count)

            result = await self._chunk_embed_persist(document_id, pages, self.params, progress)
        except (Exception, asyncio.CancelledError) as e:
            await self._fail(document_id, progress.stage, page_count, e)
            raise IngestionFailed(document_id, progress.stage, e) from e
        finally:
            INGEST_DURATION.observe(time.time() - start)

        UPLOAD_COUNT.inc()
        logger.info(
            f"[ingest_pdf] Document {document_id} ({filename}) ready: "
            f"{result.page_count} pages, {result.chunks_created} chunks"
        )
        return result

    async def ingest_text(
        self,
        *,
        user_id: str,
        notebook_id: str,
        filename: str,
        pages: Sequence[str],
        params: ChunkingParams = SAMPLE_CHUNKING,
        content_text: Optional[str] = None,
    ) -> IngestionResult:
        """Ingest already-extracted page texts (sample/synthetic content)"""
        document_id = str(uuid.uuid4())
        async with self.session_factory() as session:
            await crud.create_document(
                session,
                document_id=document_id,
                user_id=user_id,
                notebook_id=notebook_id,
                filename=filename,
                file_size=sum(len(page.encode("utf-8")) for page in pages),
                content_text=content_text,
            )

        progress = _Progress(stage="chunking")
        try:
            result = await self._chunk_embed_persist(document_id, list(pages), params, progress)
        except (Exception, asyncio.CancelledError) as e:
            await self._fail(document_id, progress.stage, len(pages), e)
            raise IngestionFailed(document_id, progress.stage, e) from e

        logger.info(f"[ingest_text] Document {document_id} ({filename}) ready: {result.chunks_created} chunks")
        return result

    async def _chunk_embed_persist(
        self,
        document_id: str,
        pages: List[str],
        params: ChunkingParams,
        progress: _Progress,
    ) -> IngestionResult:
        progress.stage = "chunking"
        drafts = chunk_pages(pages, params)
        if not drafts:
            raise ExtractionError(f"No usable text extracted ({len(pages)} pages, 0 chunks)")

        logger.info(f"Embedding {len(drafts)} chunks for document {document_id}")
        progress.stage = "embedding"
        vectors = await embed_in_order(
            self.embedder,
            [draft.content for draft in drafts],
            concurrency=self.embed_concurrency,
        )

        rows: List[Dict[str, Any]] = [
            {
                "page_number": draft.page_number,
                "chunk_index": draft.chunk_index,
                "content": draft.content,
                "embedding": vector,
            }
            for draft, vector in zip(drafts, vectors)
        ]

        progress.stage = "persistence"
        async with self.session_factory() as session:
            written = await crud.persist_chunks_and_mark_ready(
                session, document_id, rows, page_count=len(pages)
            )

        CHUNK_COUNT.inc(written)
        return IngestionResult(
            document_id=document_id,
            status=STATUS_READY,
            chunks_created=written,
            page_count=len(pages),
        )

    async def _fail(
        self,
        document_id: str,
        stage: str,
        page_count: Optional[int],
        error: BaseException,
    ):
        INGEST_FAILURES.labels(stage=stage).inc()
        logger.error(
            f"[ingest] Document {document_id} failed during {stage}: "
            f"{type(error).__name__}: {error}"
        )
        # The caller still gets IngestionFailed with the original cause
        try:
            async with self.session_factory() as session:
                await crud.mark_document_error(session, document_id, page_count=page_count)
        except Exception as write_error:
            logger.error(
                f"[ingest] Could not mark document {document_id} as error "
                f"(left in processing): {type(write_error).__name__}: {write_error}"
            )

    async def embedding_status(self, user_id: str, document_id: str) -> Dict[str, Any]:
        """
        Report whether a document already has embedded chunks

        Check-only: never re-ingests or changes status.
        """
        async with self.session_factory() as session:
            document = await crud.get_document(session, user_id, document_id)
            if document is None:
                raise NotFoundError("Document not found")
            chunk_count = await crud.count_chunks(session, document_id)

        is_embedded = chunk_count > 0
        return {
            "documentId": document_id,
            "filename": document.filename,
            "status": document.status,
            "isEmbedded": is_embedded,
            "hasChunks": is_embedded,
            "chunkCount": chunk_count,
            "message": "Document is already embedded" if is_embedded else "Document needs embedding",
        }

