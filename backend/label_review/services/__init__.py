"""Services for field comparison, result caching, record storage, extraction and review."""

from .matchers import ComparisonResult, MatcherKind, fuzzy_match, numeric_match, strict_match
from .verification import (
    FieldComparator,
    FieldComparison,
    FieldDefinition,
    FIELD_DEFINITIONS,
    OverallResult,
    VerificationResult,
    compare_fields,
)
from .cache import ResultCache, InMemoryResultCache
from .store import ApplicationStore, ApplicationStoreError, ApplicationNotFoundError, build_notes
from .extraction import LabelExtractor, ExtractionError, ExtractionErrorKind
from .review import LabelReviewService, LabelImageError, VerificationOutcome

__all__ = [
    "ComparisonResult",
    "MatcherKind",
    "fuzzy_match",
    "numeric_match",
    "strict_match",
    "FieldComparator",
    "FieldComparison",
    "FieldDefinition",
    "FIELD_DEFINITIONS",
    "OverallResult",
    "VerificationResult",
    "compare_fields",
    "ResultCache",
    "InMemoryResultCache",
    "ApplicationStore",
    "ApplicationStoreError",
    "ApplicationNotFoundError",
    "build_notes",
    "LabelExtractor",
    "ExtractionError",
    "ExtractionErrorKind",
    "LabelReviewService",
    "LabelImageError",
    "VerificationOutcome",
]
