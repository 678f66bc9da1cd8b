"""Shared utility functions for the prior authorization backend."""

from .date_parser import parse_flexible_date, to_x12_date
from .sanitization import clean_code, sanitize_free_text

__all__ = ["clean_code", "parse_flexible_date", "sanitize_free_text", "to_x12_date"]
