import os
from pathlib import Path
from dotenv import load_dotenv

# pdfnotebook/core/config.py -> pdfnotebook/core -> pdfnotebook -> project root
project_root = Path(__file__).parent.parent.parent
env_path = project_root / '.env'

# Load environment variables from .env
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Process-wide configuration, read from the environment once at startup"""

    PROJECT_NAME: str = "PDF Notebook Service"

    def __init__(self, **overrides):
        self.DB_URL: str = os.getenv("DB_URL", "sqlite+aiosqlite:///./notebooks.db")
        self.SQL_ECHO: bool = _env_bool("SQL_ECHO", "False")
        self.STORAGE_PATH: str = os.getenv("STORAGE_PATH", "./storage")
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
        self.ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")

        # Generation
        self.GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
        self.GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
        self.GROQ_MAX_TOKENS: int = int(os.getenv("GROQ_MAX_TOKENS", "2048"))
        self.GROQ_TEMPERATURE: float = float(os.getenv("GROQ_TEMPERATURE", "0.2"))

        # Embeddings
        self.EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
        self.EMBED_CONCURRENCY: int = int(os.getenv("EMBED_CONCURRENCY", "1"))

        # Identity provider used to verify bearer tokens
        self.AUTH_URL: str = os.getenv("AUTH_URL", "")
        self.AUTH_API_KEY: str = os.getenv("AUTH_API_KEY", "")
        self.AUTH_TIMEOUT_SECONDS: float = float(os.getenv("AUTH_TIMEOUT_SECONDS", "5"))

        # Ingestion
        self.MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "50"))
        self.CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "1500"))
        self.CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "200"))
        self.MIN_CHUNK_CHARS: int = int(os.getenv("MIN_CHUNK_CHARS", "50"))
        self.OCR_FALLBACK: bool = _env_bool("OCR_FALLBACK", "False")

        # Retrieval
        self.CONTEXT_DOCUMENT_LIMIT: int = int(os.getenv("CONTEXT_DOCUMENT_LIMIT", "3"))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in {"dev", "development", "local"}

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024
