"""API route modules for the prior authorization service.

Routers:
- validation: identifier format checks and registry lookups (NPI, ICD-10, MAC)
- cases: case submission, gated dashboard, letter drafting
"""

from .cases import router as cases_router
from .validation import router as validation_router

__all__ = ["cases_router", "validation_router"]
