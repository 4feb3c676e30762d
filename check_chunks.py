"""
Script to verify that documents have their chunks and embeddings
Run this when chat answers ignore a document
"""
import asyncio
import sys

from sqlalchemy import func, select

from pdfnotebook.core.config import Settings
from pdfnotebook.db import crud
from pdfnotebook.db.models import Document, DocumentChunk
from pdfnotebook.db.session import Database


async def check_chunks(limit: int = 5):
    settings = Settings()
    database = Database(settings.DB_URL)

    print("=" * 60)
    print("[Check] Document chunks")
    print("=" * 60)

    try:
        async with database.session_factory() as session:
            result = await session.execute(
                select(Document).order_by(Document.created_at.desc()).limit(limit)
            )
            documents = result.scalars().all()
            print(f"\n[DOC] Found {len(documents)} recent documents")

            for doc in documents:
                chunks = await crud.get_document_chunks(session, doc.id)
                print(f"\n  {doc.filename} ({doc.id})")
                print(f"    Status: {doc.status}, pages: {doc.page_count}")
                print(f"    Chunks: {len(chunks)}")
                if chunks:
                    first = chunks[0]
                    print(f"    First chunk preview: {first.content[:100].strip()!r}")
                    print(f"    Embedding dimensions: {len(first.embedding or [])}")
                elif doc.status == "ready":
                    print("    [ERROR] Document is ready but has no chunks")

            total = (await session.execute(select(func.count(DocumentChunk.id)))).scalar() or 0
            print(f"\n📦 Total chunks in database: {total}")
    finally:
        await database.close()

    print("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(check_chunks(int(sys.argv[1]) if len(sys.argv) > 1 else 5))
