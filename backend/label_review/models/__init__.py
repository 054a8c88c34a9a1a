"""Pydantic models for stored records, extraction output and API schemas."""

from .schemas import (
    ApplicationStatus,
    DecisionStatus,
    Application,
    ExtractedLabelFields,
    ComparisonResultValue,
    OverallResultValue,
    FieldComparisonSchema,
    VerificationResultSchema,
    VerifyRequest,
    VerifyResponse,
    StatusRequest,
    StatusResponse,
    ApplicationListResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ApplicationStatus",
    "DecisionStatus",
    "Application",
    "ExtractedLabelFields",
    "ComparisonResultValue",
    "OverallResultValue",
    "FieldComparisonSchema",
    "VerificationResultSchema",
    "VerifyRequest",
    "VerifyResponse",
    "StatusRequest",
    "StatusResponse",
    "ApplicationListResponse",
    "ErrorResponse",
    "HealthResponse",
]
