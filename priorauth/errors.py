"""Error taxonomy for the prior authorization pipeline.

- FormatError: input fails a syntactic pattern (never reaches the network)
- ChecksumError: syntactically valid but fails a check digit (NPI)
- NotFoundError: well-formed query, no matching record
- TransportError: network/HTTP failure calling a service or dataset
- UnknownStateError: verification attempted but inconclusive (SAD check)
- DraftingRefusedError: letter requested for an MA or unsettled case
"""

from __future__ import annotations


class PriorAuthError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FormatError(PriorAuthError, ValueError):
    """Raised when an identifier or code fails its format pattern."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ChecksumError(PriorAuthError, ValueError):
    """Raised when an identifier is well-formed but its check digit is wrong."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(PriorAuthError):
    """Raised when a lookup is well-formed but matches no record."""

    def __init__(self, message: str, suggestions: list[str] | None = None) -> None:
        super().__init__(message)
        self.suggestions = suggestions or []


class TransportError(PriorAuthError):
    """Raised when an external service or dataset cannot be reached or parsed."""

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class UnknownStateError(PriorAuthError):
    """Raised when a verification ran but could not reach a conclusion."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DraftingRefusedError(PriorAuthError):
    """Raised when a letter is requested for a case that cannot have one yet."""
