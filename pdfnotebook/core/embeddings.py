"""
Embedding generation for chunk text
"""
import asyncio
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from sentence_transformers import SentenceTransformer

from pdfnotebook.core.errors import EmbeddingError
from pdfnotebook.logger import logger
from pdfnotebook.metrics import EMBED_CALLS


class Embedder(ABC):
    """Turns one text into one fixed-length vector"""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this embedder returns"""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed a single text; raises EmbeddingError on failure"""


class SentenceTransformerEmbedder(Embedder):
    """Embedder backed by a sentence-transformers model, loaded on first use"""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model: Optional[SentenceTransformer] = None

    def _get_model(self) -> SentenceTransformer:
        """Get or initialize embedding model (lazy loading)"""
        if self._model is None:
            logger.info(f"Loading embedding model: {self.model_name}")
            start = time.time()

            model = SentenceTransformer(self.model_name)

            import torch
            if torch.cuda.is_available():
                model = model.to('cuda')
                logger.info("Using GPU for embeddings")
            else:
                model = model.to('cpu')

            self._model = model
            logger.info(f"Embedding model loaded in {time.time() - start:.2f}s")
        return self._model

    @property
    def dimension(self) -> int:
        return self._get_model().get_sentence_embedding_dimension()

    def _encode(self, text: str) -> List[float]:
        vector = self._get_model().encode(
            [text],
            convert_to_numpy=True,
            show_progress_bar=False,
        )[0]
        return [float(value) for value in vector.tolist()]

    async def embed(self, text: str) -> List[float]:
        try:
            vector = await asyncio.to_thread(self._encode, text)
        except Exception as e:
            EMBED_CALLS.labels(status="failure").inc()
            raise EmbeddingError(f"Embedding model {self.model_name} failed: {e}") from e

        if not vector:
            EMBED_CALLS.labels(status="failure").inc()
            raise EmbeddingError(f"Embedding model {self.model_name} returned an empty vector")

        EMBED_CALLS.labels(status="success").inc()
        return vector


async def embed_in_order(
    embedder: Embedder,
    texts: Sequence[str],
    concurrency: int = 1,
) -> List[List[float]]:
    """
    Embed texts and return vectors in the same order as the input

    Every request is paired with its source index and results are sorted by
    that index, so parallel completion order never leaks into the output.

    Raises:
        EmbeddingError: On the first failed call; outstanding calls are cancelled
    """
    if not texts:
        return []

    expected_dim: Optional[int] = None

    def _check(index: int, vector: List[float]) -> Tuple[int, List[float]]:
        nonlocal expected_dim
        if not isinstance(vector, (list, tuple)) or not vector:
            raise EmbeddingError(f"Malformed embedding for chunk {index}")
        if expected_dim is None:
            expected_dim = len(vector)
        elif len(vector) != expected_dim:
            raise EmbeddingError(
                f"Embedding dimension mismatch for chunk {index}: "
                f"{len(vector)} != {expected_dim}"
            )
        return index, list(vector)

    async def _embed_one(index: int, text: str, semaphore: asyncio.Semaphore) -> Tuple[int, List[float]]:
        async with semaphore:
            try:
                vector = await embedder.embed(text)
            except EmbeddingError:
                raise
            except Exception as e:
                raise EmbeddingError(f"Embedding call for chunk {index} failed: {e}") from e
            return index, vector

    semaphore = asyncio.Semaphore(max(concurrency, 1))
    indexed: List[Tuple[int, List[float]]] = []
    if concurrency <= 1:
        for index, text in enumerate(texts):
            _, vector = await _embed_one(index, text, semaphore)
            indexed.append(_check(index, vector))
    else:
        tasks = [
            asyncio.ensure_future(_embed_one(index, text, semaphore))
            for index, text in enumerate(texts)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        indexed = [_check(index, vector) for index, vector in results]

    indexed.sort(key=lambda pair: pair[0])
    return [vector for _, vector in indexed]
