"""
Pytest fixtures for testing
"""
import asyncio
from io import BytesIO
from typing import Dict, List, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from reportlab.pdfgen import canvas

from pdfnotebook.core.auth import TokenVerifier
from pdfnotebook.core.config import Settings
from pdfnotebook.core.embeddings import Embedder
from pdfnotebook.core.errors import AuthenticationError, EmbeddingError, UpstreamGenerationError
from pdfnotebook.core.llm_client import Generator
from pdfnotebook.core.pdf_extractor import PdfTextExtractor
from pdfnotebook.db import crud
from pdfnotebook.db.session import Database
from pdfnotebook.dependencies import build_services
from pdfnotebook.limiter import limiter
from pdfnotebook.main import create_app

ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"


class FakeEmbedder(Embedder):
    """Deterministic vectors; optionally fails on the Nth call"""

    def __init__(self, dim: int = 4, fail_on_call: Optional[int] = None, delays: Optional[Dict[str, float]] = None):
        self.dim = dim
        self.fail_on_call = fail_on_call
        self.delays = delays or {}
        self.calls: List[str] = []

    @property
    def dimension(self) -> int:
        return self.dim

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise EmbeddingError(f"embedding backend unavailable (call {len(self.calls)})")
        delay = self.delays.get(text)
        if delay:
            await asyncio.sleep(delay)
        return [float(len(text)), float(len(text.split())), float(sum(map(ord, text[:10]))), 1.0][: self.dim]


class FakeGenerator(Generator):
    def __init__(self, reply: str = "Here is an answer from your documents.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeVerifier(TokenVerifier):
    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = tokens or {ALICE_TOKEN: "alice", BOB_TOKEN: "bob"}

    async def verify(self, token: str) -> str:
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthenticationError("Invalid or expired token")


class FakeExtractor:
    """Returns fixed pages for any payload"""

    def __init__(self, pages: Sequence[str]):
        self.pages = list(pages)

    def extract(self, payload: bytes) -> List[str]:
        return list(self.pages)


def make_text(length: int, seed: str = "The quick brown fox jumps over the lazy dog. ") -> str:
    repeated = seed * (length // len(seed) + 1)
    return repeated[:length]


def build_pdf(pages: Sequence[Sequence[str]]) -> bytes:
    """Render each page's lines with reportlab"""
    packet = BytesIO()
    can = canvas.Canvas(packet)
    for lines in pages:
        y = 750
        for line in lines:
            can.drawString(72, y, line)
            y -= 20
        can.showPage()
    can.save()
    return packet.getvalue()


@pytest.fixture
def sample_pdf_bytes():
    """A two-page PDF with enough text on each page to be chunked"""
    return build_pdf([
        [
            "Chapter 1: Photosynthesis converts light energy into chemical energy.",
            "Chlorophyll in the chloroplasts absorbs mostly red and blue light.",
        ],
        [
            "Chapter 2: Cellular respiration releases the energy stored in glucose.",
            "The mitochondria produce most of the ATP used by the cell.",
        ],
    ])


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        STORAGE_PATH=str(tmp_path / "storage"),
        ENVIRONMENT="test",
        GROQ_API_KEY="",
        AUTH_URL="http://auth.test",
        MAX_FILE_SIZE_MB=1,
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.DB_URL)
    await db.init_models()
    yield db
    await db.close()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def services(settings, database, embedder, generator):
    return build_services(
        settings,
        database=database,
        extractor=PdfTextExtractor(),
        embedder=embedder,
        generator=generator,
        verifier=FakeVerifier(),
    )


@pytest_asyncio.fixture
async def notebook_id(database):
    async with database.session_factory() as session:
        notebook = await crud.create_notebook(session, "alice", "Biology", "Cells and energy")
    return notebook.id


@pytest_asyncio.fixture
async def async_client(services):
    """Provide an async HTTP client for testing"""
    limiter.reset()
    app = create_app(services)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ALICE_TOKEN}"}


@pytest.fixture
def bob_headers():
    return {"Authorization": f"Bearer {BOB_TOKEN}"}


@pytest.fixture
def failing_generator():
    return FakeGenerator(error=UpstreamGenerationError("Generation request failed: upstream 503"))
