"""
Structured logging with credential and PII redaction
"""
import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler

# Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "./logs/app.log")
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5

# Patterns to redact
REDACT_PATTERNS = [
    (r'(?i)bearer\s+[A-Za-z0-9\-._~+/]+=*', 'Bearer [TOKEN-REDACTED]'),
    (r'\bgsk_[A-Za-z0-9]{8,}\b', '[API-KEY-REDACTED]'),  # Groq key
    (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', '[EMAIL-REDACTED]'),  # Email
]


class RedactingFormatter(logging.Formatter):
    """Formatter that masks tokens, API keys and email addresses"""

    def format(self, record: logging.LogRecord) -> str:
        redacted = super().format(record)
        for pattern, replacement in REDACT_PATTERNS:
            redacted = re.sub(pattern, replacement, redacted)
        return redacted


def setup_logger(name: str = "pdfnotebook") -> logging.Logger:
    """Setup logger with file and console handlers"""
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = RedactingFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (with rotation)
    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


# Create default logger
logger = setup_logger()
