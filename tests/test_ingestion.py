"""
Tests for the ingestion pipeline
"""
import asyncio

import pytest

from pdfnotebook.core.chunker import PRIMARY_CHUNKING
from pdfnotebook.core.errors import EmbeddingError, ExtractionError, NotFoundError
from pdfnotebook.core.ingestion import IngestionFailed, IngestionPipeline
from pdfnotebook.core.pdf_extractor import PdfTextExtractor
from pdfnotebook.core.storage import LocalFileStore
from pdfnotebook.db import crud
from pdfnotebook.db.models import STATUS_ERROR, STATUS_READY, Document

from tests.conftest import FakeEmbedder, FakeExtractor, make_text


def _pipeline(database, pages, embedder=None, file_store=None, concurrency=1):
    return IngestionPipeline(
        database.session_factory,
        FakeExtractor(pages),
        embedder or FakeEmbedder(),
        file_store=file_store,
        params=PRIMARY_CHUNKING,
        embed_concurrency=concurrency,
    )


async def _document(database, document_id):
    async with database.session_factory() as session:
        return await session.get(Document, document_id)


async def _only_document(database, notebook_id):
    async with database.session_factory() as session:
        docs = await crud.list_notebook_documents(session, "alice", notebook_id)
    assert len(docs) == 1
    return docs[0]


@pytest.mark.asyncio
async def test_pages_are_chunked_embedded_and_marked_ready(database, notebook_id, tmp_path):
    pipeline = _pipeline(
        database,
        [make_text(3000), make_text(100)],
        file_store=LocalFileStore(str(tmp_path / "files")),
    )

    result = await pipeline.ingest_pdf(
        user_id="alice", notebook_id=notebook_id, filename="notes.pdf", payload=b"%PDF-fake"
    )

    assert result.status == STATUS_READY
    assert result.chunks_created == 4
    assert result.page_count == 2

    doc = await _document(database, result.document_id)
    assert doc.status == STATUS_READY
    assert doc.page_count == 2
    assert doc.storage_path and doc.storage_path.endswith("notes.pdf")

    async with database.session_factory() as session:
        chunks = await crud.get_document_chunks(session, result.document_id)
    assert [(c.page_number, c.chunk_index) for c in chunks] == [(1, 0), (1, 1), (1, 2), (2, 0)]
    assert all(len(c.embedding) == 4 for c in chunks)


@pytest.mark.asyncio
async def test_embedding_failure_leaves_no_chunks(database, notebook_id):
    # 6000 characters -> 5 windows; the third embedding call fails
    embedder = FakeEmbedder(fail_on_call=3)
    pipeline = _pipeline(database, [make_text(6000)], embedder=embedder)

    with pytest.raises(IngestionFailed) as excinfo:
        await pipeline.ingest_pdf(
            user_id="alice", notebook_id=notebook_id, filename="big.pdf", payload=b"%PDF-fake"
        )

    assert isinstance(excinfo.value.cause, EmbeddingError)
    assert excinfo.value.stage == "embedding"

    doc = await _only_document(database, notebook_id)
    assert doc.status == STATUS_ERROR
    async with database.session_factory() as session:
        assert await crud.count_chunks(session, doc.id) == 0


@pytest.mark.asyncio
async def test_embedding_failure_with_concurrency_leaves_no_chunks(database, notebook_id):
    pipeline = _pipeline(database, [make_text(6000)], embedder=FakeEmbedder(fail_on_call=3), concurrency=3)

    with pytest.raises(IngestionFailed):
        await pipeline.ingest_pdf(
            user_id="alice", notebook_id=notebook_id, filename="big.pdf", payload=b"%PDF-fake"
        )

    doc = await _only_document(database, notebook_id)
    assert doc.status == STATUS_ERROR
    async with database.session_factory() as session:
        assert await crud.count_chunks(session, doc.id) == 0


@pytest.mark.asyncio
async def test_no_usable_text_is_an_extraction_error(database, notebook_id):
    embedder = FakeEmbedder()
    pipeline = _pipeline(database, ["", "   short   "], embedder=embedder)

    with pytest.raises(IngestionFailed) as excinfo:
        await pipeline.ingest_pdf(
            user_id="alice", notebook_id=notebook_id, filename="scan.pdf", payload=b"%PDF-fake"
        )

    assert isinstance(excinfo.value.cause, ExtractionError)
    assert embedder.calls == []
    doc = await _only_document(database, notebook_id)
    assert doc.status == STATUS_ERROR
    assert doc.page_count == 2


@pytest.mark.asyncio
async def test_unparseable_pdf_marks_error(database, notebook_id):
    pipeline = IngestionPipeline(database.session_factory, PdfTextExtractor(), FakeEmbedder())

    with pytest.raises(IngestionFailed) as excinfo:
        await pipeline.ingest_pdf(
            user_id="alice", notebook_id=notebook_id, filename="bad.pdf", payload=b"not a pdf"
        )

    assert isinstance(excinfo.value.cause, ExtractionError)
    assert excinfo.value.stage == "extraction"
    doc = await _only_document(database, notebook_id)
    assert doc.status == STATUS_ERROR


@pytest.mark.asyncio
async def test_same_pages_give_same_chunks(database, notebook_id):
    pages = [make_text(2500), make_text(400)]
    pipeline = _pipeline(database, pages)

    first = await pipeline.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="a.pdf", payload=b"x")
    second = await pipeline.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="a.pdf", payload=b"x")

    assert first.document_id != second.document_id
    async with database.session_factory() as session:
        one = await crud.get_document_chunks(session, first.document_id)
        two = await crud.get_document_chunks(session, second.document_id)
    assert [(c.page_number, c.chunk_index, c.content) for c in one] == [
        (c.page_number, c.chunk_index, c.content) for c in two
    ]


@pytest.mark.asyncio
async def test_concurrent_ingestions_are_independent(database, notebook_id):
    good = _pipeline(database, [make_text(2000)])
    bad = _pipeline(database, [make_text(2000)], embedder=FakeEmbedder(fail_on_call=1))

    results = await asyncio.gather(
        good.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="good.pdf", payload=b"x"),
        bad.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="bad.pdf", payload=b"x"),
        return_exceptions=True,
    )

    assert results[0].status == STATUS_READY
    assert isinstance(results[1], IngestionFailed)
    async with database.session_factory() as session:
        docs = {d.filename: d.status for d in await crud.list_notebook_documents(session, "alice", notebook_id)}
    assert docs == {"good.pdf": STATUS_READY, "bad.pdf": STATUS_ERROR}


@pytest.mark.asyncio
async def test_ingest_text_uses_given_params(database, notebook_id):
    pipeline = _pipeline(database, [])
    result = await pipeline.ingest_text(
        user_id="alice",
        notebook_id=notebook_id,
        filename="sample.pdf",
        pages=[make_text(1200)],
    )
    # Sample chunking: 500/50
    assert result.chunks_created == 3


@pytest.mark.asyncio
async def test_embedding_status_reports_chunks(database, notebook_id):
    pipeline = _pipeline(database, [make_text(800)])
    result = await pipeline.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="n.pdf", payload=b"x")

    status = await pipeline.embedding_status("alice", result.document_id)
    assert status["isEmbedded"] is True
    assert status["hasChunks"] is True
    assert status["chunkCount"] == 1
    assert status["status"] == STATUS_READY


@pytest.mark.asyncio
async def test_embedding_status_hides_foreign_documents(database, notebook_id):
    pipeline = _pipeline(database, [make_text(800)])
    result = await pipeline.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="n.pdf", payload=b"x")

    with pytest.raises(NotFoundError):
        await pipeline.embedding_status("bob", result.document_id)


@pytest.mark.asyncio
async def test_failed_error_write_keeps_original_cause(database, notebook_id, monkeypatch, caplog):
    async def database_down(session, document_id, page_count=None):
        raise RuntimeError("database is down")

    monkeypatch.setattr(crud, "mark_document_error", database_down)
    pipeline = _pipeline(database, [make_text(2000)], embedder=FakeEmbedder(fail_on_call=1))

    with pytest.raises(IngestionFailed) as excinfo:
        await pipeline.ingest_pdf(user_id="alice", notebook_id=notebook_id, filename="n.pdf", payload=b"x")

    assert isinstance(excinfo.value.cause, EmbeddingError)
    assert excinfo.value.stage == "embedding"
    assert "EmbeddingError" in caplog.text
    assert "database is down" in caplog.text
