"""Shared slowapi limiter.

LLM endpoints: 10 requests/minute (costly API calls).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

LETTER_RATE_LIMIT = "10/minute"
