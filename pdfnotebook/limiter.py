"""
Per-client rate limiting shared by the routers
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

UPLOAD_RATE_LIMIT = os.getenv("UPLOAD_RATE_LIMIT", "20/minute")
CHAT_RATE_LIMIT = os.getenv("CHAT_RATE_LIMIT", "60/minute")

limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
)
