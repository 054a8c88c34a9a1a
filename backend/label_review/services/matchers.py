"""Field matchers used by the label comparator.

Each matcher takes the application value and the label value (both non-empty
strings) and returns a ``(result, note)`` pair. Matchers never return
``NOT_FOUND``; missing values are handled by the comparator before dispatch.
"""

import re
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

MISSING_WORD = "(missing)"

_WHITESPACE_RE = re.compile(r"\s+")
_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")


class ComparisonResult(str, Enum):
    """Classification of a single field comparison."""
    PASS = "pass"
    FLAG = "flag"
    FAIL = "fail"
    NOT_FOUND = "not_found"


MatchOutcome = Tuple[ComparisonResult, str]


class MatcherKind(str, Enum):
    """Comparison strategy applied to a field."""
    FUZZY = "fuzzy"
    NUMERIC = "numeric"
    STRICT = "strict"


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def fuzzy_match(app_value: str, label_value: str) -> MatchOutcome:
    """
    Compare free-text fields such as brand name or bottler address.

    - Same text once whitespace runs are collapsed: pass
    - Differs only in casing or whitespace placement: flag
    - Anything else: fail

    Casing counts as a formatting difference, so "Eagle Ridge" vs
    "eagle   ridge" is flagged for a reviewer rather than passed.
    """
    app_norm = _collapse_whitespace(app_value)
    label_norm = _collapse_whitespace(label_value)

    if app_norm == label_norm:
        return ComparisonResult.PASS, "Exact match"

    app_lower = app_norm.lower()
    label_lower = label_norm.lower()
    if (
        app_lower == label_lower
        or _WHITESPACE_RE.sub("", app_lower) == _WHITESPACE_RE.sub("", label_lower)
    ):
        return (
            ComparisonResult.FLAG,
            f'Formatting difference: "{app_value}" vs "{label_value}"',
        )

    return (
        ComparisonResult.FAIL,
        f'Mismatch: application says "{app_value}", label says "{label_value}"',
    )


def parse_number(text: str) -> Optional[float]:
    """
    Read the leading decimal number once non-numeric characters are dropped.

    "45% Alc./Vol." -> 45.0, "4.5.1" -> 4.5, "N/A" -> None
    """
    cleaned = _NON_NUMERIC_RE.sub("", text)
    match = _LEADING_NUMBER_RE.match(cleaned)
    if match is None:
        return None
    return float(match.group())


def format_number(value: float) -> str:
    """Render 45.0 as "45" and 4.5 as "4.5"."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def numeric_match(app_value: str, label_value: str) -> MatchOutcome:
    """Compare alcohol content. Equality is exact after parsing; no tolerance."""
    app_num = parse_number(app_value)
    label_num = parse_number(label_value)

    if app_num is None or label_num is None:
        return ComparisonResult.FAIL, "Could not parse numeric value"

    if app_num == label_num:
        return ComparisonResult.PASS, f"{format_number(app_num)}% matches"

    return (
        ComparisonResult.FAIL,
        f"ABV mismatch: application says {format_number(app_num)}%, "
        f"label says {format_number(label_num)}%",
    )


def strict_match(app_value: str, label_value: str) -> MatchOutcome:
    """
    Compare text that must be reproduced verbatim (the government warning).

    Words are diffed by position. Casing-only differences are flagged for a
    reviewer; any other wording change fails.
    """
    if app_value == label_value:
        return ComparisonResult.PASS, "Exact match"

    app_words = app_value.split()
    label_words = label_value.split()

    diffs = []
    for i in range(max(len(app_words), len(label_words))):
        a = app_words[i] if i < len(app_words) else MISSING_WORD
        b = label_words[i] if i < len(label_words) else MISSING_WORD
        if a != b:
            diffs.append((a, b))

    if not diffs:
        return ComparisonResult.PASS, "Exact match"

    listed = ", ".join(f'"{a}" → "{b}"' for a, b in diffs)

    if all(a.lower() == b.lower() for a, b in diffs):
        return ComparisonResult.FLAG, f"Minor differences: {listed}"

    return ComparisonResult.FAIL, f"Text differs: {listed}"


MATCHERS: Dict[MatcherKind, Callable[[str, str], MatchOutcome]] = {
    MatcherKind.FUZZY: fuzzy_match,
    MatcherKind.NUMERIC: numeric_match,
    MatcherKind.STRICT: strict_match,
}
