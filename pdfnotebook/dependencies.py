"""
Service wiring and FastAPI dependencies
"""
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotebook.core.auth import IdentityProviderVerifier, TokenVerifier, parse_bearer
from pdfnotebook.core.chunker import ChunkingParams
from pdfnotebook.core.config import Settings
from pdfnotebook.core.embeddings import Embedder, SentenceTransformerEmbedder
from pdfnotebook.core.ingestion import IngestionPipeline
from pdfnotebook.core.llm_client import Generator, GroqGenerator
from pdfnotebook.core.pdf_extractor import PdfTextExtractor
from pdfnotebook.core.quiz import QuizGenerator
from pdfnotebook.core.retriever import RetrievalSelector
from pdfnotebook.core.storage import LocalFileStore
from pdfnotebook.core.videos import VideoRecommender
from pdfnotebook.db.session import Database
from pdfnotebook.logger import logger


@dataclass
class ServiceContainer:
    settings: Settings
    database: Database
    extractor: PdfTextExtractor
    embedder: Embedder
    generator: Generator
    verifier: TokenVerifier
    file_store: LocalFileStore
    pipeline: IngestionPipeline
    selector: RetrievalSelector
    quiz_generator: QuizGenerator
    video_recommender: VideoRecommender


def build_services(
    settings: Settings,
    *,
    database: Optional[Database] = None,
    extractor: Optional[PdfTextExtractor] = None,
    embedder: Optional[Embedder] = None,
    generator: Optional[Generator] = None,
    verifier: Optional[TokenVerifier] = None,
) -> ServiceContainer:
    """
    Build the process-wide services from settings

    Any collaborator passed explicitly replaces the default one, which is
    how tests swap in fakes.
    """
    database = database or Database(settings.DB_URL, echo=settings.SQL_ECHO)
    extractor = extractor or PdfTextExtractor(ocr_fallback=settings.OCR_FALLBACK)
    embedder = embedder or SentenceTransformerEmbedder(settings.EMBEDDING_MODEL)
    generator = generator or GroqGenerator(
        api_key=settings.GROQ_API_KEY,
        model=settings.GROQ_MODEL,
        max_tokens=settings.GROQ_MAX_TOKENS,
        temperature=settings.GROQ_TEMPERATURE,
    )
    verifier = verifier or IdentityProviderVerifier(
        settings.AUTH_URL,
        api_key=settings.AUTH_API_KEY,
        timeout=settings.AUTH_TIMEOUT_SECONDS,
    )
    file_store = LocalFileStore(settings.STORAGE_PATH)

    params = ChunkingParams(
        size=settings.CHUNK_SIZE,
        overlap=settings.CHUNK_OVERLAP,
        min_chars=settings.MIN_CHUNK_CHARS,
    )
    pipeline = IngestionPipeline(
        database.session_factory,
        extractor,
        embedder,
        file_store=file_store,
        params=params,
        embed_concurrency=settings.EMBED_CONCURRENCY,
    )
    selector = RetrievalSelector(database.session_factory, fallback_limit=settings.CONTEXT_DOCUMENT_LIMIT)

    logger.info(
        f"Services built (db={settings.DB_URL.split('://')[0]}, "
        f"chunking={params.size}/{params.overlap}, embed_concurrency={settings.EMBED_CONCURRENCY})"
    )
    return ServiceContainer(
        settings=settings,
        database=database,
        extractor=extractor,
        embedder=embedder,
        generator=generator,
        verifier=verifier,
        file_store=file_store,
        pipeline=pipeline,
        selector=selector,
        quiz_generator=QuizGenerator(generator),
        video_recommender=VideoRecommender(generator),
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    services: ServiceContainer = request.app.state.services
    async for session in services.database.session():
        yield session


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> str:
    """Resolve the caller's user id from the bearer token; 401 otherwise"""
    token = parse_bearer(authorization)
    services: ServiceContainer = request.app.state.services
    return await services.verifier.verify(token)
