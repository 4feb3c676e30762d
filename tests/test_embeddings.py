"""
Tests for ordered embedding fan-out
"""
import pytest

from pdfnotebook.core.embeddings import embed_in_order
from pdfnotebook.core.errors import EmbeddingError

from tests.conftest import FakeEmbedder


@pytest.mark.asyncio
async def test_results_follow_input_order_under_concurrency():
    texts = ["alpha one", "beta two words", "gamma", "delta four five six"]
    # Earlier texts finish last
    embedder = FakeEmbedder(delays={"alpha one": 0.05, "beta two words": 0.03, "gamma": 0.01})

    vectors = await embed_in_order(embedder, texts, concurrency=4)

    assert [v[0] for v in vectors] == [float(len(t)) for t in texts]


@pytest.mark.asyncio
async def test_sequential_matches_concurrent():
    texts = [f"chunk number {i}" for i in range(6)]
    sequential = await embed_in_order(FakeEmbedder(), texts, concurrency=1)
    concurrent = await embed_in_order(FakeEmbedder(), texts, concurrency=3)
    assert sequential == concurrent


@pytest.mark.asyncio
async def test_empty_input_makes_no_calls():
    embedder = FakeEmbedder()
    assert await embed_in_order(embedder, []) == []
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_failure_propagates_as_embedding_error():
    embedder = FakeEmbedder(fail_on_call=2)
    with pytest.raises(EmbeddingError):
        await embed_in_order(embedder, ["a text", "b text", "c text"])
    # Sequential mode stops at the failing call
    assert len(embedder.calls) == 2


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped():
    class Broken(FakeEmbedder):
        async def embed(self, text):
            raise RuntimeError("connection reset")

    with pytest.raises(EmbeddingError):
        await embed_in_order(Broken(), ["x"], concurrency=2)


@pytest.mark.asyncio
async def test_dimension_mismatch_is_rejected():
    class Ragged(FakeEmbedder):
        async def embed(self, text):
            return [1.0] * len(text)

    with pytest.raises(EmbeddingError):
        await embed_in_order(Ragged(), ["ab", "abc"])
