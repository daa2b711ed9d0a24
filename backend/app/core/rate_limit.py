"""Shared rate limiter for mutating endpoints"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

WRITE_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
