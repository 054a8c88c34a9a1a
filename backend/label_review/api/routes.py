"""API route definitions."""

from fastapi import APIRouter, HTTPException, Request
import logging

from ..models import (
    Application,
    ApplicationListResponse,
    ApplicationStatus,
    ComparisonResultValue,
    ErrorResponse,
    FieldComparisonSchema,
    HealthResponse,
    OverallResultValue,
    StatusRequest,
    StatusResponse,
    VerificationResultSchema,
    VerifyRequest,
    VerifyResponse,
)
from ..services import (
    ApplicationNotFoundError,
    ApplicationStoreError,
    ComparisonResult,
    ExtractionError,
    FieldComparison,
    LabelImageError,
    LabelReviewService,
    OverallResult,
    VerificationResult,
)
from .. import __version__

logger = logging.getLogger(__name__)
router = APIRouter()


def get_review_service(request: Request) -> LabelReviewService:
    """Service instance built by create_app for this application."""
    return request.app.state.review_service


def result_to_schema(result: VerificationResult) -> VerificationResultSchema:
    """Convert a domain result into its API representation."""
    return VerificationResultSchema(
        fields=[
            FieldComparisonSchema(
                field_name=f.field_name,
                application_value=f.application_value,
                label_value=f.label_value,
                result=ComparisonResultValue(f.result.value),
                note=f.note,
            )
            for f in result.fields
        ],
        overall_result=OverallResultValue(result.overall_result.value),
        timestamp=result.timestamp,
    )


def schema_to_result(schema: VerificationResultSchema) -> VerificationResult:
    """Convert a submitted result back into the domain type."""
    return VerificationResult(
        fields=tuple(
            FieldComparison(
                field_name=f.field_name,
                application_value=f.application_value,
                label_value=f.label_value,
                result=ComparisonResult(f.result.value),
                note=f.note,
            )
            for f in schema.fields
        ),
        overall_result=OverallResult(schema.overall_result.value),
        timestamp=schema.timestamp,
    )


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request):
    """Check API health and whether extraction is configured."""
    service = get_review_service(request)
    return HealthResponse(
        status="healthy",
        version=__version__,
        extraction_configured=service.extractor.is_configured,
    )


@router.get(
    "/applications",
    response_model=ApplicationListResponse,
    responses={500: {"model": ErrorResponse, "description": "Store read failure"}},
    tags=["Applications"],
)
def list_applications(request: Request):
    """List all applications with the number still awaiting review."""
    service = get_review_service(request)
    try:
        applications = service.store.list_all()
        pending = service.store.pending_count()
    except ApplicationStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return ApplicationListResponse(applications=applications, pending_count=pending)


@router.get(
    "/applications/{application_id}",
    response_model=Application,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown application"},
        500: {"model": ErrorResponse, "description": "Store read failure"},
    },
    tags=["Applications"],
)
def get_application(application_id: str, request: Request):
    """Get a single application."""
    service = get_review_service(request)
    try:
        application = service.store.get_by_id(application_id)
    except ApplicationStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown application"},
        500: {"model": ErrorResponse, "description": "Label image or store failure"},
        502: {"model": ErrorResponse, "description": "AI extraction failure"},
    },
    tags=["Verification"],
)
def verify_label(body: VerifyRequest, request: Request):
    """
    Verify an application's label image against its filed data.

    Results are cached per application; a repeat request does not call the
    extraction service again.
    """
    service = get_review_service(request)

    try:
        outcome = service.verify(body.application_id)
    except ApplicationNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")
    except LabelImageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ExtractionError as e:
        logger.error(f"Extraction failed for {body.application_id} ({e.kind.value}): {e.message}")
        raise HTTPException(status_code=502, detail=e.message)
    except ApplicationStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return VerifyResponse(result=result_to_schema(outcome.result), cached=outcome.cached)


@router.post(
    "/status",
    response_model=StatusResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown application"},
        500: {"model": ErrorResponse, "description": "Store write failure"},
    },
    tags=["Verification"],
)
def update_status(body: StatusRequest, request: Request):
    """Record a reviewer's pass/fail decision for an application."""
    service = get_review_service(request)

    try:
        updated = service.record_decision(
            body.application_id,
            ApplicationStatus(body.status.value),
            schema_to_result(body.verification_result),
        )
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ApplicationStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return StatusResponse(success=True, notes=updated.notes or "")
