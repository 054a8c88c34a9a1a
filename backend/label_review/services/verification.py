"""Comparator for label fields extracted from an image against filed application data."""

from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence, Tuple
from dataclasses import dataclass
from enum import Enum
import logging

from .matchers import MATCHERS, ComparisonResult, MatcherKind

logger = logging.getLogger(__name__)


class OverallResult(str, Enum):
    """Worst-case verdict across every compared field."""
    PASS = "pass"
    FLAG = "flag"
    FAIL = "fail"


@dataclass(frozen=True)
class FieldComparison:
    """Result of comparing a single field."""
    field_name: str
    application_value: Optional[str]
    label_value: Optional[str]
    result: ComparisonResult
    note: str


@dataclass(frozen=True)
class VerificationResult:
    """Complete verification result. Immutable once produced."""
    fields: Tuple[FieldComparison, ...]
    overall_result: OverallResult
    timestamp: str


@dataclass(frozen=True)
class FieldDefinition:
    """What is compared for one field and which matcher compares it."""
    field_name: str
    application_value: Callable[[Any], Optional[str]]
    label_value: Callable[[Any], Optional[str]]
    matcher: MatcherKind


def _attr(name: str) -> Callable[[Any], Optional[str]]:
    return lambda obj: getattr(obj, name)


def _same_attr(field_name: str, attr: str, matcher: MatcherKind) -> FieldDefinition:
    return FieldDefinition(field_name, _attr(attr), _attr(attr), matcher)


# Order here is the order of the rows a reviewer sees.
FIELD_DEFINITIONS: Tuple[FieldDefinition, ...] = (
    _same_attr("Brand Name", "brand_name", MatcherKind.FUZZY),
    _same_attr("Fanciful Name", "fanciful_name", MatcherKind.FUZZY),
    _same_attr("Class/Type", "class_type", MatcherKind.FUZZY),
    _same_attr("ABV", "abv", MatcherKind.NUMERIC),
    _same_attr("Net Contents", "net_contents", MatcherKind.FUZZY),
    _same_attr("Government Warning", "government_warning", MatcherKind.STRICT),
    _same_attr("Bottler Name", "bottler_name", MatcherKind.FUZZY),
    _same_attr("Bottler Address", "bottler_address", MatcherKind.FUZZY),
    _same_attr("Country of Origin", "country_of_origin", MatcherKind.FUZZY),
    _same_attr("Age Statement", "age_statement", MatcherKind.FUZZY),
)


def overall_result_for(fields: Sequence[FieldComparison]) -> OverallResult:
    """
    Aggregate per-field results: fail dominates flag dominates pass.

    NOT_FOUND counts as a failure here but keeps its own per-field status.
    """
    overall = OverallResult.PASS
    for field in fields:
        if field.result in (ComparisonResult.FAIL, ComparisonResult.NOT_FOUND):
            return OverallResult.FAIL
        if field.result == ComparisonResult.FLAG:
            overall = OverallResult.FLAG
    return overall


class FieldComparator:
    """Compares extracted label fields against application data."""

    def __init__(self, definitions: Sequence[FieldDefinition] = FIELD_DEFINITIONS):
        self.definitions = tuple(definitions)

    def compare(self, application: Any, extracted: Any) -> VerificationResult:
        """
        Compare every defined field, in table order.

        Args:
            application: Filed application record
            extracted: Fields read from the label image

        Returns:
            VerificationResult with one FieldComparison per definition
        """
        fields = tuple(
            self._compare_field(definition, application, extracted)
            for definition in self.definitions
        )
        overall = overall_result_for(fields)

        logger.debug(
            f"Compared {len(fields)} fields -> {overall.value} "
            f"({sum(1 for f in fields if f.result != ComparisonResult.PASS)} not passing)"
        )

        return VerificationResult(
            fields=fields,
            overall_result=overall,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def _compare_field(
        self,
        definition: FieldDefinition,
        application: Any,
        extracted: Any,
    ) -> FieldComparison:
        app_value = definition.application_value(application)
        label_value = definition.label_value(extracted)

        if not app_value and not label_value:
            result, note = ComparisonResult.PASS, "Not applicable — field empty in both"
        elif not label_value:
            result, note = ComparisonResult.NOT_FOUND, "Field not found on label"
        elif not app_value:
            result, note = (
                ComparisonResult.FLAG,
                f'Label shows "{label_value}" but application has no value',
            )
        else:
            result, note = MATCHERS[definition.matcher](app_value, label_value)

        return FieldComparison(
            field_name=definition.field_name,
            application_value=app_value,
            label_value=label_value,
            result=result,
            note=note,
        )


_default_comparator = FieldComparator()


def compare_fields(application: Any, extracted: Any) -> VerificationResult:
    """Compare an application against extracted label fields using the default table."""
    return _default_comparator.compare(application, extracted)
