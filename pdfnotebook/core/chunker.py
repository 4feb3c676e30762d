"""
Text chunking with overlapping fixed-size windows
"""
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from pdfnotebook.core.errors import ConfigurationError

MIN_CHUNK_CHARS = 50


@dataclass(frozen=True)
class ChunkingParams:
    size: int
    overlap: int
    min_chars: int = MIN_CHUNK_CHARS


# Uploaded documents
PRIMARY_CHUNKING = ChunkingParams(size=1500, overlap=200)
# Short synthetic/sample content
SAMPLE_CHUNKING = ChunkingParams(size=500, overlap=50)


@dataclass(frozen=True)
class ChunkDraft:
    """A chunk ready for embedding; position is fixed before any I/O happens"""
    page_number: int  # 1-based
    chunk_index: int  # 0-based within the page
    content: str


def _validate(size: int, overlap: int):
    if size <= 0:
        raise ConfigurationError(f"Chunk size must be positive, got {size}")
    if overlap < 0:
        raise ConfigurationError(f"Chunk overlap must be non-negative, got {overlap}")
    if overlap >= size:
        raise ConfigurationError(
            f"Chunk overlap ({overlap}) must be smaller than chunk size ({size})"
        )


def iter_windows(text: str, size: int, overlap: int) -> Iterator[Tuple[int, str]]:
    """Yield (start offset, window) pairs; the last window may be shorter than size"""
    _validate(size, overlap)
    step = size - overlap
    start = 0
    while start < len(text):
        yield start, text[start:start + size]
        start += step


def chunk_text(
    text: str,
    size: int,
    overlap: int,
    min_chars: int = MIN_CHUNK_CHARS,
) -> List[str]:
    """
    Split text into overlapping windows

    Consecutive windows share `overlap` characters. Windows whose stripped
    length is below `min_chars` are dropped. Windows are returned unstripped.

    Raises:
        ConfigurationError: If overlap >= size, size <= 0 or overlap < 0
    """
    _validate(size, overlap)
    if not text:
        return []
    return [
        window
        for _, window in iter_windows(text, size, overlap)
        if len(window.strip()) >= min_chars
    ]


def chunk_pages(pages: Sequence[str], params: ChunkingParams = PRIMARY_CHUNKING) -> List[ChunkDraft]:
    """Chunk every page and number the results by page and in-page order"""
    drafts = []
    for page_number, page_text in enumerate(pages, 1):
        for chunk_index, content in enumerate(
            chunk_text(page_text or "", params.size, params.overlap, params.min_chars)
        ):
            drafts.append(ChunkDraft(page_number=page_number, chunk_index=chunk_index, content=content))
    return drafts
