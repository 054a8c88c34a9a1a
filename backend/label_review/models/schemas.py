"""Pydantic schemas for stored records, extraction output and the API."""

from enum import Enum
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class ApplicationStatus(str, Enum):
    """Review status of a filed application."""
    NOT_DONE = "not_done"
    PASSED = "passed"
    FAILED = "failed"


class DecisionStatus(str, Enum):
    """Statuses a reviewer may record."""
    PASSED = "passed"
    FAILED = "failed"


class CamelModel(BaseModel):
    """Base model using camelCase keys on the wire and on disk."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Application(CamelModel):
    """A filed label application, the baseline a label is verified against."""
    id: str = Field(..., min_length=1)
    brand_name: str
    fanciful_name: Optional[str] = None
    class_type: str
    abv: str = Field(..., description="Alcohol by volume as filed, e.g. \"45\"")
    net_contents: str
    government_warning: str
    bottler_name: str
    bottler_address: str
    country_of_origin: Optional[str] = None
    age_statement: Optional[str] = None
    allergens: list[str] = Field(default_factory=list)
    label_image_path: str
    status: ApplicationStatus = ApplicationStatus.NOT_DONE
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "app-001",
                "brandName": "Eagle Ridge",
                "fancifulName": None,
                "classType": "Straight Bourbon Whiskey",
                "abv": "45",
                "netContents": "750 mL",
                "governmentWarning": "GOVERNMENT WARNING: (1) According to the Surgeon General...",
                "bottlerName": "Eagle Ridge Distilling Co.",
                "bottlerAddress": "Bardstown, KY",
                "countryOfOrigin": None,
                "ageStatement": "4 years old",
                "allergens": [],
                "labelImagePath": "/labels/eagle-ridge.png",
                "status": "not_done",
                "notes": None,
            }
        }


class ExtractedLabelFields(CamelModel):
    """
    Fields read from a label image.

    Every key must be present in the extractor's response; a value is null
    when the field was not found on the label.
    """
    brand_name: Optional[str]
    fanciful_name: Optional[str]
    class_type: Optional[str]
    abv: Optional[str]
    net_contents: Optional[str]
    government_warning: Optional[str]
    bottler_name: Optional[str]
    bottler_address: Optional[str]
    country_of_origin: Optional[str]
    age_statement: Optional[str]


class ComparisonResultValue(str, Enum):
    """Per-field classification as exposed by the API."""
    PASS = "pass"
    FLAG = "flag"
    FAIL = "fail"
    NOT_FOUND = "not_found"


class OverallResultValue(str, Enum):
    """Overall verdict as exposed by the API."""
    PASS = "pass"
    FLAG = "flag"
    FAIL = "fail"


class FieldComparisonSchema(CamelModel):
    """Result for a single field comparison."""
    field_name: str
    application_value: Optional[str]
    label_value: Optional[str]
    result: ComparisonResultValue
    note: str

    class Config:
        json_schema_extra = {
            "example": {
                "fieldName": "Brand Name",
                "applicationValue": "Eagle Ridge",
                "labelValue": "EAGLE RIDGE",
                "result": "flag",
                "note": 'Formatting difference: "Eagle Ridge" vs "EAGLE RIDGE"',
            }
        }


class VerificationResultSchema(CamelModel):
    """Overall verification result for a label."""
    fields: list[FieldComparisonSchema]
    overall_result: OverallResultValue
    timestamp: str


class VerifyRequest(CamelModel):
    """Request body for label verification."""
    application_id: str = Field(..., min_length=1)


class VerifyResponse(CamelModel):
    """Response for label verification."""
    result: VerificationResultSchema
    cached: bool = False


class StatusRequest(CamelModel):
    """Request body for recording a reviewer decision."""
    application_id: str = Field(..., min_length=1)
    status: DecisionStatus
    verification_result: VerificationResultSchema


class StatusResponse(CamelModel):
    """Response after a decision has been persisted."""
    success: bool
    notes: str


class ApplicationListResponse(CamelModel):
    """All applications plus the number still awaiting review."""
    applications: list[Application]
    pending_count: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Application not found",
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    extraction_configured: bool
