"""Case submission, dashboard and letter routes.

Each session id owns one orchestrator, so one live case at a time.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from priorauth.dashboard import build_dashboard
from priorauth.rate_limit import LETTER_RATE_LIMIT, limiter
from priorauth.schemas import CaseSubmission
from priorauth.validation import validate_case

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["cases"])


def _orchestrator_or_404(request: Request, session_id: str):
    orchestrator = request.app.state.sessions.get(session_id)
    if orchestrator is None or orchestrator.case is None:
        raise HTTPException(status_code=404, detail=f"No active case for session {session_id}")
    return orchestrator


def _client_address(request: Request) -> str | None:
    """Caller address for the eligibility inquiry, honouring an upstream proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


@router.post("/{session_id}/cases", status_code=202)
async def submit_case(session_id: str, submission: CaseSubmission, request: Request):
    """Validate a case and start evaluating it.

    Any case already in flight for the session is superseded.
    """
    case = validate_case(submission.to_case())
    orchestrator = request.app.state.sessions.get_or_create(session_id)
    generation = orchestrator.submit(case, client_address=_client_address(request))
    return {"case_id": case.case_id, "generation": generation, "case": case.summary()}


@router.get("/{session_id}/dashboard")
async def get_dashboard(
    session_id: str,
    request: Request,
    wait: bool = Query(default=False, description="Block until every slot has settled"),
):
    """Return the gated dashboard for the session's live case."""
    orchestrator = _orchestrator_or_404(request, session_id)
    results = await orchestrator.wait() if wait else orchestrator.results
    if results is None:
        raise HTTPException(status_code=404, detail=f"No active case for session {session_id}")
    return build_dashboard(results).to_dict()


@router.post("/{session_id}/letter")
@limiter.limit(LETTER_RATE_LIMIT)
async def draft_letter(session_id: str, request: Request):
    """Draft a medical necessity letter for the session's live case.

    A second request while one is in flight shares the same draft.
    """
    orchestrator = _orchestrator_or_404(request, session_id)
    draft = await orchestrator.draft_letter()
    if not draft.ok:
        raise HTTPException(status_code=503, detail=draft.error)
    return {"case_id": orchestrator.case.case_id, "generation": orchestrator.generation, **draft.to_dict()}


@router.delete("/{session_id}")
async def discard_session(session_id: str, request: Request):
    """Start over: drop the session's case and ignore any late results."""
    discarded = request.app.state.sessions.discard(session_id)
    return {"session_id": session_id, "discarded": discarded}
