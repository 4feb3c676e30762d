"""
Selection of document text used as generation context
"""
from typing import List, NamedTuple, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pdfnotebook.db import crud
from pdfnotebook.logger import logger

DEFAULT_DOCUMENT_LIMIT = 3


class RetrievedDocument(NamedTuple):
    document_id: str
    filename: str
    text: str


class RetrievalSelector:
    """
    Picks which documents' text goes into a prompt

    Explicit ids win; otherwise the most recently created ready documents
    of the notebook are used, capped to bound prompt size. This is plain
    selection, not similarity search.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        fallback_limit: int = DEFAULT_DOCUMENT_LIMIT,
    ):
        self.session_factory = session_factory
        self.fallback_limit = fallback_limit

    async def select(
        self,
        user_id: str,
        notebook_id: str,
        explicit_document_ids: Optional[Sequence[str]] = None,
    ) -> List[RetrievedDocument]:
        async with self.session_factory() as session:
            if explicit_document_ids:
                requested = list(dict.fromkeys(explicit_document_ids))
                found = await crud.get_owned_documents(session, user_id, notebook_id, requested)
                by_id = {doc.id: doc for doc in found}
                documents = [by_id[doc_id] for doc_id in requested if doc_id in by_id]
                skipped = len(requested) - len(documents)
                if skipped:
                    logger.info(f"Skipped {skipped} unknown or foreign document ids in notebook {notebook_id}")
            else:
                documents = await crud.recent_ready_documents(
                    session, user_id, notebook_id, self.fallback_limit
                )

            chunk_texts = await crud.chunk_texts_by_document(session, [doc.id for doc in documents])

        selected = []
        for doc in documents:
            parts = chunk_texts.get(doc.id) or []
            text = "\n\n".join(parts) if parts else (doc.content_text or "")
            if not text.strip():
                logger.debug(f"Document {doc.id} has no text yet (status={doc.status}); skipping")
                continue
            selected.append(RetrievedDocument(document_id=doc.id, filename=doc.filename, text=text))

        logger.info(f"Selected {len(selected)} documents as context for notebook {notebook_id}")
        return selected
