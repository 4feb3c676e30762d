"""
PDF text extraction with optional OCR fallback
"""
import io
from typing import List

import pytesseract
from pdf2image import convert_from_bytes
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from pdfnotebook.core.errors import ExtractionError
from pdfnotebook.logger import logger

# Below this many non-whitespace characters for the whole file, OCR is attempted
MIN_NATIVE_TEXT_CHARS = 100


class PdfTextExtractor:
    """Turn raw PDF bytes into one text string per page, in page order"""

    def __init__(self, ocr_fallback: bool = False):
        self.ocr_fallback = ocr_fallback

    def extract(self, payload: bytes) -> List[str]:
        """
        Extract per-page text

        Args:
            payload: Raw PDF bytes

        Returns:
            List of page texts; pages without text are "" so numbering stays aligned

        Raises:
            ExtractionError: If the bytes are not a parseable PDF
        """
        pages = self._extract_with_pypdf(payload)

        native_chars = sum(len(text.strip()) for text in pages)
        if native_chars >= MIN_NATIVE_TEXT_CHARS or not self.ocr_fallback:
            logger.info(f"Extracted {len(pages)} pages ({native_chars} chars) using PyPDF2")
            return pages

        logger.warning(f"PyPDF2 extraction insufficient ({native_chars} chars), using OCR")
        try:
            ocr_pages = self._extract_with_ocr(payload)
        except Exception as e:
            logger.warning(f"OCR failed ({e}); keeping native extraction")
            return pages

        if len(ocr_pages) != len(pages):
            logger.warning(
                f"OCR page count {len(ocr_pages)} differs from PDF page count {len(pages)}; "
                f"keeping native extraction"
            )
            return pages

        logger.info(f"Extracted {len(ocr_pages)} pages using OCR")
        return ocr_pages

    def _extract_with_pypdf(self, payload: bytes) -> List[str]:
        if not payload:
            raise ExtractionError("Empty PDF payload")
        try:
            reader = PdfReader(io.BytesIO(payload))
            page_objects = list(reader.pages)
        except (PdfReadError, ValueError, KeyError, TypeError, OSError) as e:
            raise ExtractionError(f"Not a parseable PDF: {e}") from e

        pages = []
        for page_no, page in enumerate(page_objects, 1):
            try:
                page_text = page.extract_text() or ""
            except Exception as e:
                # A single unreadable page keeps its slot so page numbers stay aligned
                logger.warning(f"Failed to extract text from page {page_no}: {e}")
                page_text = ""
            pages.append(page_text)
        return pages

    def _extract_with_ocr(self, payload: bytes) -> List[str]:
        """Extract text using OCR (Tesseract)"""
        images = convert_from_bytes(payload)
        pages = []
        for page_no, image in enumerate(images, 1):
            page_text = pytesseract.image_to_string(image)
            pages.append(page_text)
            logger.debug(f"OCR page {page_no}: {len(page_text)} chars")
        return pages
