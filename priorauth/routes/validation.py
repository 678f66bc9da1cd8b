"""Identifier validation and registry lookup routes.

Validation endpoints are pure format checks and never call out. Lookup
endpoints validate first, then consult the external registry.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from priorauth.schemas import ICD10Request, MBIRequest, NPIRequest
from priorauth.validation import validate_icd10_format, validate_mbi, validate_npi, validate_zip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["validation"])


@router.post("/validate/mbi")
async def validate_mbi_endpoint(body: MBIRequest):
    """Validate an MBI and return its canonical hyphenated form."""
    return {"valid": True, "mbi": validate_mbi(body.mbi)}


@router.post("/validate/npi")
async def validate_npi_endpoint(body: NPIRequest):
    """Validate NPI format and Luhn check digit."""
    return {"valid": True, "npi": validate_npi(body.npi)}


@router.post("/validate/icd10")
async def validate_icd10_endpoint(body: ICD10Request):
    """Validate ICD-10-CM format only; see GET /api/icd10/{code} for existence."""
    code = validate_icd10_format(body.code)
    return {"valid": True, "code": code.formatted, "billable": code.billable}


@router.get("/npi/{npi}")
async def lookup_npi(npi: str, request: Request):
    """Validate an NPI and look it up in the NPPES registry."""
    cleaned = validate_npi(npi)
    services = request.app.state.services
    if services.nppes is None:
        raise HTTPException(status_code=503, detail="NPI registry client not configured")
    record = await services.nppes.lookup(cleaned)
    return record.to_dict()


@router.get("/icd10/{code}")
async def lookup_icd10(code: str, request: Request):
    """Look up an ICD-10-CM code and its description in the NLM code table."""
    services = request.app.state.services
    if services.icd10 is None:
        raise HTTPException(status_code=503, detail="ICD-10 client not configured")
    result = await services.icd10.lookup(code)
    return result.to_dict()


@router.get("/contractors/{zip_code}")
async def lookup_contractor(zip_code: str, request: Request):
    """Find the Medicare Administrative Contractor for a practice ZIP."""
    cleaned = validate_zip(zip_code, field="zip")
    contractor = await request.app.state.services.coverage.find_contractor(cleaned)
    if contractor is None:
        return {"found": False, "zip": cleaned, "mac_id": None, "mac_name": None, "jurisdiction": None}
    return {"found": True, "zip": cleaned, **contractor.to_dict()}
