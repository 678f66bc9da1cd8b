"""ICD-10-CM lookup against the NLM Clinical Table Search Service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import NotFoundError, TransportError
from priorauth.validation import validate_icd10_format

from .base_api import BaseAPIClient

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class ICD10LookupResult:
    code: str
    valid: bool
    # None when the code could not be checked against the code table
    billable: bool | None
    description: str | None = None
    error: str | None = None
    suggestions: list[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.billable is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "valid": self.valid,
            "billable": self.billable,
            "verified": self.verified,
            "description": self.description,
            "error": self.error,
            "suggestions": list(self.suggestions),
        }


class ICD10Client(BaseAPIClient):
    service = "nlm_icd10"

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(base_url or config.ICD10_API_URL, client, **kwargs)

    async def lookup(self, code: str) -> ICD10LookupResult:
        """Validate a diagnosis code and fetch its official description.

        Raises:
            FormatError: If the code is not ICD-10 shaped
            NotFoundError: If the code table has no exact match; carries
                up to three suggestions
        """
        icd = validate_icd10_format(code)
        formatted = icd.formatted

        try:
            data = await self._get_json(
                params={"sf": "code", "terms": formatted, "maxList": 5}
            )
        except TransportError as e:
            logger.warning(f"ICD-10 lookup for {formatted} unavailable: {e}")
            return ICD10LookupResult(
                code=formatted,
                valid=True,
                billable=None,
                error=f"Could not verify against ICD-10 database: {e.message}",
            )

        # [total, codes, extra, display strings]
        codes: list[str] = []
        display: list[Any] = []
        if isinstance(data, list):
            codes = data[1] if len(data) > 1 and isinstance(data[1], list) else []
            display = data[3] if len(data) > 3 and isinstance(data[3], list) else []

        index = next(
            (i for i, c in enumerate(codes) if str(c).replace(".", "") == icd.cleaned),
            None,
        )
        if index is None:
            raise NotFoundError(
                f"Code {formatted} not found in ICD-10-CM",
                suggestions=[str(c) for c in codes[:MAX_SUGGESTIONS]],
            )

        description = codes[index]
        if index < len(display) and display[index]:
            entry = display[index]
            description = entry[-1] if isinstance(entry, list) else entry

        return ICD10LookupResult(
            code=formatted,
            valid=True,
            billable=icd.billable,
            description=str(description),
            error=(
                None
                if icd.billable
                else "This is a header code. Use a more specific code for billing"
            ),
        )
