"""Clients for the external registries the evaluators consult."""

from .adapters import (
    Contractor,
    CoveragePolicy,
    adapt_current_record,
    adapt_legacy_record,
    adapt_policy_record,
    adapt_policy_records,
)
from .base_api import BaseAPIClient, RateLimitError
from .coverage import CoverageRegistryClient
from .eligibility import (
    EligibilityClient,
    EligibilityResponse,
    build_eligibility_request,
    parse_271_response,
)
from .icd10 import ICD10Client, ICD10LookupResult
from .nppes import NPIRecord, NPIRegistryClient, parse_npi_result
from .static_sad import StaticSADRegistry

__all__ = [
    "BaseAPIClient",
    "Contractor",
    "CoveragePolicy",
    "CoverageRegistryClient",
    "EligibilityClient",
    "EligibilityResponse",
    "ICD10Client",
    "ICD10LookupResult",
    "NPIRecord",
    "NPIRegistryClient",
    "RateLimitError",
    "StaticSADRegistry",
    "adapt_current_record",
    "adapt_legacy_record",
    "adapt_policy_record",
    "adapt_policy_records",
    "build_eligibility_request",
    "parse_271_response",
    "parse_npi_result",
]
