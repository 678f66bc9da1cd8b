"""Shared configuration for the prior authorization backend.

This module centralizes environment variable access and default values
to prevent drift between modules.
"""

import os

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Reference datasets (local JSON path or http(s) URL)
DATA_DIR = os.getenv("PRIORAUTH_DATA_DIR", "./data")
PA_REQUIRED_SOURCE = os.getenv(
    "PA_REQUIRED_SOURCE", os.path.join(DATA_DIR, "pa-required-codes.json")
)
PTP_EDITS_SOURCE = os.getenv(
    "PTP_EDITS_SOURCE", os.path.join(DATA_DIR, "ncci-ptp.json")
)
MUE_EDITS_SOURCE = os.getenv(
    "MUE_EDITS_SOURCE", os.path.join(DATA_DIR, "ncci-mue.json")
)
# Unset means SAD status is checked against the CMS coverage search service
SAD_LIST_SOURCE = os.getenv("SAD_LIST_SOURCE") or None

# Load all datasets at startup instead of on first use
PRELOAD_DATASETS = os.getenv("PRELOAD_DATASETS", "false").lower() == "true"

# External services
CMS_COVERAGE_BASE_URL = os.getenv(
    "CMS_COVERAGE_BASE_URL",
    "https://www.cms.gov/medicare-coverage-database/search",
)
STEDI_ELIGIBILITY_URL = os.getenv(
    "STEDI_ELIGIBILITY_URL",
    "https://healthcare.us.stedi.com/2024-04-01/change/medicalnetwork/eligibility/v3",
)
NPPES_BASE_URL = os.getenv("NPPES_BASE_URL", "https://npiregistry.cms.hhs.gov/api/")
ICD10_API_URL = os.getenv(
    "ICD10_API_URL", "https://clinicaltables.nlm.nih.gov/api/icd10cm/v3/search"
)

# HTTP client behaviour
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
HTTP_MAX_RETRIES = int(os.getenv("HTTP_MAX_RETRIES", "2"))
HTTP_RETRY_DELAY_SECONDS = float(os.getenv("HTTP_RETRY_DELAY_SECONDS", "0.5"))

# Upper bound for a single evaluator within one evaluation round
EVALUATOR_TIMEOUT_SECONDS = float(os.getenv("EVALUATOR_TIMEOUT_SECONDS", "30"))

# Cancel still-running downstream evaluators once eligibility reports Medicare Advantage
CANCEL_ON_MEDICARE_ADVANTAGE = (
    os.getenv("CANCEL_ON_MEDICARE_ADVANTAGE", "false").lower() == "true"
)

# Session retention: case data is dropped once a session is evicted or idle too long
SESSION_MAX_COUNT = int(os.getenv("SESSION_MAX_COUNT", "1000"))
SESSION_IDLE_TTL_SECONDS = float(os.getenv("SESSION_IDLE_TTL_SECONDS", "3600"))
