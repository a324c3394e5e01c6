"""
Shared rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings


limiter = Limiter(key_func=get_remote_address)

# Applied per endpoint, e.g. "100/minute"
DEFAULT_RATE_LIMIT = f"{settings.rate_limit_requests}/minute"
