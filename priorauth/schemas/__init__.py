"""Pydantic schemas for API request/response models."""

from .cases import CaseSubmission, ICD10Request, MBIRequest, NPIRequest

__all__ = ["CaseSubmission", "ICD10Request", "MBIRequest", "NPIRequest"]
