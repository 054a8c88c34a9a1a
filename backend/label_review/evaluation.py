"""Extraction accuracy and consistency evaluation.

Runs extraction and comparison several times for every application and scores
each field's classification two ways:

- accuracy: how often it equals the expected classification
- consistency: how often it equals its own most common classification

Usage:
    label-review-eval --expected data/expected-results.json --runs 10
"""

import argparse
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import get_settings
from .models import Application
from .services import (
    ApplicationStore,
    ComparisonResult,
    ExtractionError,
    FieldComparator,
    LabelExtractor,
    LabelImageError,
    OverallResult,
)
from .services.review import load_label_image

logger = logging.getLogger(__name__)

ExpectedResults = Dict[str, Dict[str, ComparisonResult]]


@dataclass
class RunRecord:
    """Field classifications from one extraction run."""
    application_id: str
    run: int
    fields: Dict[str, ComparisonResult] = field(default_factory=dict)
    overall_result: Optional[OverallResult] = None
    error: Optional[str] = None


@dataclass
class FieldScore:
    """Accuracy and consistency of one field across runs."""
    field_name: str
    expected: ComparisonResult
    runs: int
    accurate: int
    consistent: int
    observed: Dict[str, int]


@dataclass
class ApplicationScore:
    """Scores for every field of one application."""
    application_id: str
    successful_runs: int
    fields: List[FieldScore]

    @property
    def accurate(self) -> int:
        return sum(f.accurate for f in self.fields)

    @property
    def consistent(self) -> int:
        return sum(f.consistent for f in self.fields)

    @property
    def evaluations(self) -> int:
        return sum(f.runs for f in self.fields)


def load_expected_results(path: Path) -> ExpectedResults:
    """Load expected per-field classifications keyed by application id."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    raw.pop("_comment", None)
    return {
        app_id: {name: ComparisonResult(value) for name, value in fields.items()}
        for app_id, fields in raw.items()
    }


def score_runs(runs: Sequence[RunRecord], expected: ExpectedResults) -> List[ApplicationScore]:
    """
    Score successful runs against expected classifications.

    Errored runs are skipped. Applications without expectations or without a
    successful run are left out.
    """
    by_application: Dict[str, List[RunRecord]] = {}
    for run in runs:
        if run.error is None:
            by_application.setdefault(run.application_id, []).append(run)

    scores = []
    for application_id, app_runs in by_application.items():
        app_expected = expected.get(application_id)
        if not app_expected:
            continue

        field_scores = []
        for field_name, expected_result in app_expected.items():
            observed = [r.fields.get(field_name) for r in app_runs]
            counts = Counter(o.value if o else "missing" for o in observed)
            field_scores.append(FieldScore(
                field_name=field_name,
                expected=expected_result,
                runs=len(observed),
                accurate=sum(1 for o in observed if o == expected_result),
                consistent=counts.most_common(1)[0][1],
                observed=dict(counts),
            ))

        scores.append(ApplicationScore(
            application_id=application_id,
            successful_runs=len(app_runs),
            fields=field_scores,
        ))

    return scores


def run_evaluation(
    applications: Sequence[Application],
    extractor: LabelExtractor,
    labels_dir: Path,
    runs_per_application: int,
    comparator: Optional[FieldComparator] = None,
) -> List[RunRecord]:
    """Extract and compare every application's label runs_per_application times."""
    comparator = comparator or FieldComparator()
    records = []

    for application in applications:
        try:
            image_bytes, media_type = load_label_image(labels_dir, application.label_image_path)
        except LabelImageError as e:
            logger.error(f"Skipping {application.id}: {e}")
            continue

        for run in range(runs_per_application):
            logger.info(
                f"{application.brand_name} ({application.id}) "
                f"run {run + 1}/{runs_per_application}"
            )
            try:
                extracted = extractor.extract(image_bytes, media_type)
            except ExtractionError as e:
                records.append(RunRecord(application.id, run, error=e.message))
                continue

            result = comparator.compare(application, extracted)
            records.append(RunRecord(
                application_id=application.id,
                run=run,
                fields={f.field_name: f.result for f in result.fields},
                overall_result=result.overall_result,
            ))

    return records


def _pct(n: int, total: int) -> str:
    return f"{(n / total * 100):.0f}%" if total else "n/a"


def format_report(scores: Sequence[ApplicationScore], errors: int) -> str:
    """Render scores as a plain-text report."""
    lines = []
    if errors:
        lines.append(f"{errors} extraction errors encountered")
        lines.append("")

    for score in scores:
        lines.append(f"-- {score.application_id} ({score.successful_runs} successful runs) --")
        for f in score.fields:
            marker = "ok" if f.accurate == f.runs else "!!"
            lines.append(
                f"  {marker} {f.field_name:<20} expected {f.expected.value:<10} "
                f"accuracy {_pct(f.accurate, f.runs):>4}  "
                f"consistency {_pct(f.consistent, f.runs):>4}  {f.observed}"
            )
        lines.append("")

    total = sum(s.evaluations for s in scores)
    lines.append(f"Overall accuracy:    {_pct(sum(s.accurate for s in scores), total)}")
    lines.append(f"Overall consistency: {_pct(sum(s.consistent for s in scores), total)}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Evaluate label extraction accuracy and consistency.")
    parser.add_argument(
        "--expected",
        type=Path,
        default=settings.data_path.parent / "expected-results.json",
        help="JSON file of expected per-field results keyed by application id",
    )
    parser.add_argument(
        "--runs",
        type=int,
        default=settings.eval_runs_per_application,
        help="Extraction runs per application",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    applications = ApplicationStore(settings.data_path).list_all()
    expected = load_expected_results(args.expected)

    logger.info(
        f"Running {len(applications)} applications x {args.runs} runs = "
        f"{len(applications) * args.runs} evaluations"
    )
    records = run_evaluation(applications, LabelExtractor(settings), settings.labels_dir, args.runs)

    scores = score_runs(records, expected)
    print(format_report(scores, errors=sum(1 for r in records if r.error)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
