"""Data models for the evaluation engine."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from priorauth.models import Case

if TYPE_CHECKING:
    from priorauth.services import EvaluationServices


class EvaluationKind(str, Enum):
    """The five independent determinations made for every case."""

    ELIGIBILITY = "eligibility"
    PA_REQUIRED = "paRequired"
    COVERAGE = "coverage"
    NCCI = "ncci"
    SAD = "sad"


class ResultStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one evaluator for one evaluation round.

    A result carries a payload or an error message, never both.
    """

    kind: EvaluationKind
    status: ResultStatus
    generation: int
    payload: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.payload is not None and self.error is not None:
            raise ValueError("EvaluationResult cannot carry both a payload and an error")
        if self.status is ResultStatus.SUCCESS and self.payload is None:
            raise ValueError("A successful EvaluationResult requires a payload")
        if self.status is ResultStatus.ERROR and not self.error:
            raise ValueError("A failed EvaluationResult requires an error message")

    @classmethod
    def pending(cls, kind: EvaluationKind, generation: int) -> EvaluationResult:
        return cls(kind=kind, status=ResultStatus.PENDING, generation=generation)

    @classmethod
    def success(
        cls, kind: EvaluationKind, generation: int, payload: dict[str, Any]
    ) -> EvaluationResult:
        return cls(
            kind=kind, status=ResultStatus.SUCCESS, generation=generation, payload=payload
        )

    @classmethod
    def failure(cls, kind: EvaluationKind, generation: int, error: str) -> EvaluationResult:
        return cls(kind=kind, status=ResultStatus.ERROR, generation=generation, error=error)

    @property
    def settled(self) -> bool:
        return self.status is not ResultStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "generation": self.generation,
            "payload": self.payload,
            "error": self.error,
        }


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs shared by every evaluator in one round."""

    case: Case
    services: EvaluationServices
    config: dict[str, Any] = field(default_factory=dict)
    client_address: str | None = None


@dataclass
class CaseResults:
    """The five result slots of one evaluation round."""

    case_id: str
    generation: int
    slots: dict[EvaluationKind, EvaluationResult] = field(default_factory=dict)

    @classmethod
    def pending(
        cls,
        case_id: str,
        generation: int,
        kinds: Iterable[EvaluationKind] | None = None,
    ) -> CaseResults:
        kinds = list(EvaluationKind) if kinds is None else list(kinds)
        return cls(
            case_id=case_id,
            generation=generation,
            slots={kind: EvaluationResult.pending(kind, generation) for kind in kinds},
        )

    def record(self, result: EvaluationResult) -> None:
        if result.generation != self.generation:
            raise ValueError(
                f"Result for generation {result.generation} does not belong to "
                f"round {self.generation}"
            )
        self.slots[result.kind] = result

    def get(self, kind: EvaluationKind) -> EvaluationResult:
        return self.slots.get(kind) or EvaluationResult.pending(kind, self.generation)

    def payload(self, kind: EvaluationKind) -> dict[str, Any] | None:
        return self.get(kind).payload

    @property
    def settled(self) -> bool:
        return all(result.settled for result in self.slots.values())

    @property
    def eligibility_settled(self) -> bool:
        return self.get(EvaluationKind.ELIGIBILITY).settled

    @property
    def is_medicare_advantage(self) -> bool:
        """True once the eligibility slot has reported payer type MA."""
        eligibility = self.payload(EvaluationKind.ELIGIBILITY)
        return bool(eligibility) and eligibility.get("payer_type") == "MA"

    def to_dict(self) -> dict[str, Any]:
        return {
            "case_id": self.case_id,
            "generation": self.generation,
            "settled": self.settled,
            "results": {kind.value: result.to_dict() for kind, result in self.slots.items()},
        }
