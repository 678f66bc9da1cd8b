"""Typed, indexed views over the reference datasets.

Each ``parse_*`` function accepts the decoded JSON document for one dataset
and returns an immutable lookup table. Malformed documents raise ValueError;
the loader turns that into a TransportError for the dataset.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from priorauth.utils import clean_code


@dataclass(frozen=True)
class PARequiredEntry:
    """One code on one CMS prior authorization list."""

    hcpcs: str
    list_name: str
    effective_date: str | None = None
    # None means the list applies nationally
    states: frozenset[str] | None = None

    @property
    def is_national(self) -> bool:
        return self.states is None

    def applies_to(self, state: str | None) -> bool:
        """National entries and unknown states always apply."""
        if self.states is None or not state:
            return True
        return state.upper() in self.states

    def to_dict(self) -> dict[str, Any]:
        return {
            "hcpcs": self.hcpcs,
            "list": self.list_name,
            "effectiveDate": self.effective_date,
            "states": sorted(self.states) if self.states is not None else None,
        }


@dataclass(frozen=True)
class PTPEdit:
    """A Procedure-to-Procedure bundling edit between two codes."""

    col1: str
    col2: str
    col1_desc: str = ""
    col2_desc: str = ""
    modifier: int = 0
    context: str = ""
    effective_date: str | None = None

    @property
    def override_allowed(self) -> bool:
        return self.modifier == 1


@dataclass(frozen=True)
class MUEEdit:
    """Medically Unlikely Edit: unit ceiling for one code."""

    cpt: str
    mue_value: int | None
    adjudication_type: str = ""
    rationale: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpt": self.cpt,
            "mueValue": self.mue_value,
            "adjudicationType": self.adjudication_type,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class SADEntry:
    """A drug code on a contractor's Self-Administered Drug exclusion list."""

    hcpcs: str
    description: str = ""
    contractor: str | None = None
    effective_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hcpcs": self.hcpcs,
            "description": self.description,
            "contractor": self.contractor,
            "effectiveDate": self.effective_date,
        }


@dataclass(frozen=True)
class PARequiredTable:
    entries: tuple[PARequiredEntry, ...]
    _by_code: Mapping[str, tuple[PARequiredEntry, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, list[PARequiredEntry]] = {}
        for entry in self.entries:
            index.setdefault(entry.hcpcs, []).append(entry)
        object.__setattr__(
            self, "_by_code", {code: tuple(items) for code, items in index.items()}
        )

    def matches(self, code: str) -> tuple[PARequiredEntry, ...]:
        return self._by_code.get(clean_code(code), ())

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class PTPEditTable:
    edits: tuple[PTPEdit, ...]
    _by_pair: Mapping[frozenset[str], PTPEdit] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[frozenset[str], PTPEdit] = {}
        for edit in self.edits:
            # First row wins when a pair is listed in both orientations
            index.setdefault(frozenset((edit.col1, edit.col2)), edit)
        object.__setattr__(self, "_by_pair", index)

    def find(self, code_a: str, code_b: str) -> PTPEdit | None:
        """Look up an edit for the pair in either column order."""
        a, b = clean_code(code_a), clean_code(code_b)
        if a == b:
            return None
        return self._by_pair.get(frozenset((a, b)))

    def __len__(self) -> int:
        return len(self.edits)


@dataclass(frozen=True)
class MUETable:
    edits: tuple[MUEEdit, ...]
    _by_code: Mapping[str, MUEEdit] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, MUEEdit] = {}
        for edit in self.edits:
            index.setdefault(edit.cpt, edit)
        object.__setattr__(self, "_by_code", index)

    def get(self, code: str) -> MUEEdit | None:
        return self._by_code.get(clean_code(code))

    def __len__(self) -> int:
        return len(self.edits)


@dataclass(frozen=True)
class SADTable:
    entries: tuple[SADEntry, ...]
    _by_code: Mapping[str, tuple[SADEntry, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, list[SADEntry]] = {}
        for entry in self.entries:
            index.setdefault(entry.hcpcs, []).append(entry)
        object.__setattr__(
            self, "_by_code", {code: tuple(items) for code, items in index.items()}
        )

    def search(self, code: str) -> list[dict[str, Any]]:
        """Return matching records in the same shape as the search service."""
        return [entry.to_dict() for entry in self._by_code.get(clean_code(code), ())]

    def __len__(self) -> int:
        return len(self.entries)


def _records(document: Any, key: str) -> Iterable[Mapping[str, Any]]:
    if not isinstance(document, Mapping):
        raise ValueError("Dataset document must be a JSON object")
    records = document.get(key)
    if not isinstance(records, list):
        raise ValueError(f"Dataset document is missing a '{key}' list")
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ValueError(f"Record {i} in '{key}' is not an object")
        yield record


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_pa_required(document: Any) -> PARequiredTable:
    """Parse ``{codes: [{hcpcs, list, effectiveDate?, states?}]}``."""
    entries = []
    for record in _records(document, "codes"):
        hcpcs = clean_code(record.get("hcpcs"))
        if not hcpcs:
            continue
        states = record.get("states")
        entries.append(
            PARequiredEntry(
                hcpcs=hcpcs,
                list_name=str(record.get("list") or "Unnamed PA list"),
                effective_date=_optional_str(record.get("effectiveDate")),
                states=(
                    frozenset(clean_code(s) for s in states)
                    if isinstance(states, list)
                    else None
                ),
            )
        )
    return PARequiredTable(tuple(entries))


def parse_ptp_edits(document: Any) -> PTPEditTable:
    """Parse ``{edits: [{col1, col2, col1Desc, col2Desc, modifier, context, effectiveDate}]}``."""
    edits = []
    for record in _records(document, "edits"):
        col1 = clean_code(record.get("col1"))
        col2 = clean_code(record.get("col2"))
        if not col1 or not col2:
            continue
        edits.append(
            PTPEdit(
                col1=col1,
                col2=col2,
                col1_desc=str(record.get("col1Desc") or ""),
                col2_desc=str(record.get("col2Desc") or ""),
                modifier=_int_or_none(record.get("modifier")) or 0,
                context=str(record.get("context") or ""),
                effective_date=_optional_str(record.get("effectiveDate")),
            )
        )
    return PTPEditTable(tuple(edits))


def parse_mue_edits(document: Any) -> MUETable:
    """Parse ``{edits: [{cpt, mueValue, adjudicationType, rationale}]}``."""
    edits = []
    for record in _records(document, "edits"):
        cpt = clean_code(record.get("cpt"))
        if not cpt:
            continue
        edits.append(
            MUEEdit(
                cpt=cpt,
                mue_value=_int_or_none(record.get("mueValue")),
                adjudication_type=str(record.get("adjudicationType") or ""),
                rationale=str(record.get("rationale") or ""),
            )
        )
    return MUETable(tuple(edits))


def parse_sad_list(document: Any) -> SADTable:
    """Parse ``{codes: [{hcpcs, description?, contractor?, effectiveDate?}]}``."""
    entries = []
    for record in _records(document, "codes"):
        hcpcs = clean_code(record.get("hcpcs") or record.get("code"))
        if not hcpcs:
            continue
        entries.append(
            SADEntry(
                hcpcs=hcpcs,
                description=str(record.get("description") or ""),
                contractor=_optional_str(record.get("contractor")),
                effective_date=_optional_str(record.get("effectiveDate")),
            )
        )
    return SADTable(tuple(entries))
