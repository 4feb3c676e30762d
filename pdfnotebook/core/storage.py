"""
Local file storage for uploaded PDFs
"""
import os
import re
from typing import Optional

from pdfnotebook.logger import logger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class LocalFileStore:
    """Stores raw uploads under a root directory as <document_id>_<filename>"""

    def __init__(self, root: str):
        self.root = root

    def save(self, document_id: str, filename: str, payload: bytes) -> str:
        os.makedirs(self.root, exist_ok=True)
        safe_name = _UNSAFE_CHARS.sub("_", os.path.basename(filename)) or "upload.pdf"
        file_path = os.path.join(self.root, f"{document_id}_{safe_name}")
        with open(file_path, "wb") as fh:
            fh.write(payload)
        logger.debug(f"Stored {len(payload)} bytes for document {document_id} at {file_path}")
        return file_path

    def read(self, storage_path: str) -> Optional[bytes]:
        """Read a stored file; None when it is missing or outside the root"""
        if not self._inside_root(storage_path) or not os.path.exists(storage_path):
            return None
        with open(storage_path, "rb") as fh:
            return fh.read()

    def delete(self, storage_path: Optional[str]):
        if not storage_path or not self._inside_root(storage_path):
            return
        try:
            os.remove(storage_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove stored file {storage_path}: {e}")

    def _inside_root(self, storage_path: str) -> bool:
        root = os.path.abspath(self.root)
        return os.path.commonpath([root, os.path.abspath(storage_path)]) == root
