"""Per-version adapters for Medicare Coverage Database search records.

The search service has returned NCD/LCD records under two field layouts.
Each layout gets its own adapter; ``adapt_policy_record`` picks one by
inspecting the record and always returns a ``CoveragePolicy``.

Current layout::

    {"id", "title", "covered", "criteria", "documentation_requirements",
     "url", "mac_id"}

Legacy layout::

    {"ncd_id" | "lcd_id", "mac_id", "title", "covered", "criteria",
     "documentation_requirements", "url"}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CoveragePolicy:
    """Canonical NCD/LCD record."""

    identifier: str | None
    title: str
    covered: bool | None = None
    criteria: list[str] = field(default_factory=list)
    doc_requirements: list[str] = field(default_factory=list)
    url: str | None = None
    contractor_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identifier,
            "title": self.title,
            "covered": self.covered,
            "criteria": list(self.criteria),
            "doc_requirements": list(self.doc_requirements),
            "url": self.url,
            "contractor_id": self.contractor_id,
        }


@dataclass(frozen=True)
class Contractor:
    """Medicare Administrative Contractor serving a ZIP code."""

    contractor_id: str | None
    name: str | None
    jurisdiction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mac_id": self.contractor_id,
            "mac_name": self.name,
            "jurisdiction": self.jurisdiction,
        }


def _text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return [str(value)]


def _covered(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "covered"):
            return True
        if lowered in ("false", "no", "not covered"):
            return False
    return None


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def adapt_current_record(record: Mapping[str, Any]) -> CoveragePolicy:
    return CoveragePolicy(
        identifier=_optional_str(record.get("id")),
        title=str(record.get("title") or ""),
        covered=_covered(record.get("covered")),
        criteria=_text_list(record.get("criteria")),
        doc_requirements=_text_list(record.get("documentation_requirements")),
        url=_optional_str(record.get("url")),
        contractor_id=_optional_str(record.get("mac_id")),
    )


def adapt_legacy_record(record: Mapping[str, Any]) -> CoveragePolicy:
    identifier = record.get("ncd_id") or record.get("lcd_id")
    return CoveragePolicy(
        identifier=_optional_str(identifier),
        title=str(record.get("title") or ""),
        covered=_covered(record.get("covered")),
        criteria=_text_list(record.get("criteria")),
        doc_requirements=_text_list(record.get("documentation_requirements")),
        url=_optional_str(record.get("url")),
        contractor_id=_optional_str(record.get("mac_id")),
    )


def record_adapter(record: Mapping[str, Any]) -> Callable[[Mapping[str, Any]], CoveragePolicy]:
    """Select the adapter for one record's field layout."""
    if record.get("id"):
        return adapt_current_record
    if "ncd_id" in record or "lcd_id" in record:
        return adapt_legacy_record
    return adapt_current_record


def adapt_policy_record(record: Mapping[str, Any]) -> CoveragePolicy:
    return record_adapter(record)(record)


def adapt_policy_records(records: Any) -> list[CoveragePolicy]:
    """Normalize a ``results`` list, skipping entries that are not objects."""
    if not isinstance(records, list):
        raise ValueError("Coverage search results must be a list")
    return [adapt_policy_record(r) for r in records if isinstance(r, Mapping)]


def adapt_contractor_record(record: Mapping[str, Any]) -> Contractor:
    return Contractor(
        contractor_id=_optional_str(record.get("id") or record.get("mac_id")),
        name=_optional_str(record.get("name")),
        jurisdiction=_optional_str(record.get("jurisdiction")),
    )
