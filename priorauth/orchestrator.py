"""Case orchestration: one live evaluation round per session.

Every submission starts a new generation. Evaluators from older generations
keep running to completion but their results are dropped on arrival, so a
superseded case can never leak into the current one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable

from priorauth.claude_client import LetterDraft, draft_letter
from priorauth.errors import DraftingRefusedError
from priorauth.letter import LetterFacts, assemble_letter_facts
from priorauth.models import Case
from priorauth.rules import (
    CaseResults,
    EvaluationContext,
    EvaluationKind,
    EvaluationResult,
    EvaluatorRegistry,
    launch_evaluators,
)
from priorauth.rules.engine import get_default_registry
from priorauth.services import EvaluationServices

logger = logging.getLogger(__name__)

LetterDrafter = Callable[[LetterFacts], Awaitable[LetterDraft]]

MA_CANCELLED_MESSAGE = "Not evaluated: patient is enrolled in Medicare Advantage"


class CaseOrchestrator:
    """Runs evaluation rounds for one session.

    Args:
        services: Shared service container
        registry: Evaluators to run (default evaluators if omitted)
        evaluator_timeout: Per-evaluator timeout in seconds
        cancel_on_medicare_advantage: Cancel still-running downstream
            evaluators once eligibility reports Medicare Advantage
        letter_drafter: Coroutine turning letter facts into a draft
    """

    def __init__(
        self,
        services: EvaluationServices,
        registry: EvaluatorRegistry | None = None,
        evaluator_timeout: float | None = None,
        cancel_on_medicare_advantage: bool = False,
        letter_drafter: LetterDrafter | None = None,
    ) -> None:
        self.services = services
        self.registry = registry if registry is not None else get_default_registry()
        self.evaluator_timeout = evaluator_timeout
        self.cancel_on_medicare_advantage = cancel_on_medicare_advantage
        self._letter_drafter = letter_drafter or draft_letter

        self._generation = 0
        self._case: Case | None = None
        self._results: CaseResults | None = None
        self._tasks: dict[EvaluationKind, asyncio.Task[EvaluationResult]] = {}
        self._letter_task: asyncio.Task[LetterDraft] | None = None
        self._letter_generation: int | None = None
        self._letter: LetterDraft | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def case(self) -> Case | None:
        return self._case

    @property
    def results(self) -> CaseResults | None:
        return self._results

    @property
    def letter(self) -> LetterDraft | None:
        return self._letter

    def submit(self, case: Case, client_address: str | None = None) -> int:
        """Start a new evaluation round for ``case`` and return its generation.

        Must be called from a running event loop. Any in-flight round is
        superseded. ``client_address`` is forwarded to the eligibility inquiry.
        """
        self._generation += 1
        generation = self._generation
        self._reset_letter()
        self._case = case
        self._results = CaseResults.pending(
            case.case_id,
            generation,
            kinds=[kind for kind, _ in self.registry.active_evaluators()],
        )
        logger.info(
            f"Submitting case {case.case_id} as generation {generation}: {case.summary()}"
        )
        context = EvaluationContext(
            case=case, services=self.services, client_address=client_address
        )
        self._tasks = launch_evaluators(
            context,
            generation,
            on_result=self._commit,
            registry=self.registry,
            timeout=self.evaluator_timeout,
        )
        return generation

    def new_case(self) -> None:
        """Drop the current case. Late results from it are discarded."""
        self._generation += 1
        self._case = None
        self._results = None
        self._tasks = {}
        self._reset_letter()

    def _reset_letter(self) -> None:
        self._letter_task = None
        self._letter_generation = None
        self._letter = None

    def _commit(self, result: EvaluationResult) -> bool:
        """Record a result if it belongs to the live round."""
        if result.generation != self._generation or self._results is None:
            logger.debug(
                f"Discarding stale {result.kind.value} result from generation "
                f"{result.generation} (current {self._generation})"
            )
            return False

        self._results.record(result)

        if (
            self.cancel_on_medicare_advantage
            and result.kind is EvaluationKind.ELIGIBILITY
            and self._results.is_medicare_advantage
        ):
            self._cancel_downstream(result.generation)
        return True

    def _cancel_downstream(self, generation: int) -> None:
        for kind, task in self._tasks.items():
            if kind is EvaluationKind.ELIGIBILITY or task.done():
                continue
            task.cancel()
            self._results.record(
                EvaluationResult.failure(kind, generation, MA_CANCELLED_MESSAGE)
            )
        logger.info(f"Generation {generation}: Medicare Advantage, downstream cancelled")

    async def wait(self) -> CaseResults | None:
        """Wait until the live round has settled and return its results.

        If a newer case is submitted while waiting, waits for that one.
        """
        while True:
            generation = self._generation
            tasks = list(self._tasks.values())
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)
            if generation == self._generation:
                return self._results

    async def draft_letter(self) -> LetterDraft:
        """Draft the medical necessity letter for the live case.

        The letter cites coverage policies, so a still-running coverage check
        is awaited before the facts are assembled. A request made while a
        draft for the same generation is in flight shares that draft. A failed
        draft is not kept, so asking again retries.

        Raises:
            DraftingRefusedError: No case, eligibility still pending, the
                patient has Medicare Advantage, or the case was replaced
                while waiting for coverage
        """
        self._check_letter_allowed()

        generation = self._generation
        coverage_task = self._tasks.get(EvaluationKind.COVERAGE)
        if coverage_task is not None and not coverage_task.done():
            await asyncio.wait({coverage_task})
            if generation != self._generation:
                raise DraftingRefusedError("Case was replaced before coverage completed")
            self._check_letter_allowed()

        if self._letter is not None and self._letter_generation == generation:
            return self._letter

        if self._letter_task is None or self._letter_generation != generation:
            facts = assemble_letter_facts(self._case, self._results)
            logger.info(
                f"Drafting letter for case {self._case.case_id} (generation {generation})"
            )
            self._letter_task = asyncio.create_task(self._letter_drafter(facts))
            self._letter_generation = generation

        task = self._letter_task
        try:
            draft = await asyncio.shield(task)
        finally:
            if task.done() and self._letter_task is task:
                self._letter_task = None

        if draft.ok and self._letter_generation == generation == self._generation:
            self._letter = draft
        return draft

    def _check_letter_allowed(self) -> None:
        if self._case is None or self._results is None:
            raise DraftingRefusedError("No case has been submitted")
        if not self._results.eligibility_settled:
            raise DraftingRefusedError("Eligibility check has not completed yet")
        if self._results.is_medicare_advantage:
            raise DraftingRefusedError(
                "Letters are not drafted for Medicare Advantage patients; "
                "MA plans have their own prior authorization process"
            )


class SessionStore:
    """In-memory orchestrators keyed by session id.

    Sessions idle for longer than ``idle_ttl`` seconds are expired, and once
    ``max_sessions`` is reached the least recently used session is evicted.
    Expired and evicted sessions drop their case through ``new_case()``.
    """

    def __init__(
        self,
        factory: Callable[[], CaseOrchestrator],
        max_sessions: int = 1000,
        idle_ttl: float | None = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self.max_sessions = max_sessions
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: OrderedDict[str, tuple[CaseOrchestrator, float]] = OrderedDict()

    def get(self, session_id: str) -> CaseOrchestrator | None:
        self._expire_idle()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        return self._touch(session_id, entry[0])

    def get_or_create(self, session_id: str) -> CaseOrchestrator:
        orchestrator = self.get(session_id)
        if orchestrator is not None:
            return orchestrator
        while len(self._sessions) >= self.max_sessions:
            evicted_id, (evicted, _) = self._sessions.popitem(last=False)
            evicted.new_case()
            logger.info(f"Evicted least recently used session {evicted_id}")
        return self._touch(session_id, self._factory())

    def discard(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry[0].new_case()
        return True

    def _touch(self, session_id: str, orchestrator: CaseOrchestrator) -> CaseOrchestrator:
        self._sessions[session_id] = (orchestrator, self._clock())
        self._sessions.move_to_end(session_id)
        return orchestrator

    def _expire_idle(self) -> None:
        if self.idle_ttl is None:
            return
        cutoff = self._clock() - self.idle_ttl
        # Oldest first: stop at the first session used after the cutoff
        while self._sessions:
            session_id, (orchestrator, last_used) = next(iter(self._sessions.items()))
            if last_used > cutoff:
                break
            del self._sessions[session_id]
            orchestrator.new_case()
            logger.info(f"Expired idle session {session_id}")

    def __len__(self) -> int:
        self._expire_idle()
        return len(self._sessions)
