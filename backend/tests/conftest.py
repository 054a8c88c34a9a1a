"""Shared fixtures and builders for the test suite."""

import io
import json

import pytest
from PIL import Image

from label_review.models import Application, ExtractedLabelFields

WARNING_TEXT = (
    "GOVERNMENT WARNING: (1) According to the Surgeon General, women should not "
    "drink alcoholic beverages during pregnancy because of the risk of birth defects. "
    "(2) Consumption of alcoholic beverages impairs your ability to drive a car or "
    "operate machinery, and may cause health problems."
)


def make_application(app_id: str = "app-001", **overrides) -> Application:
    """Build an application with realistic defaults."""
    data = {
        "id": app_id,
        "brand_name": "Eagle Ridge",
        "fanciful_name": None,
        "class_type": "Straight Bourbon Whiskey",
        "abv": "45",
        "net_contents": "750 mL",
        "government_warning": WARNING_TEXT,
        "bottler_name": "Eagle Ridge Distilling Co.",
        "bottler_address": "Bardstown, KY",
        "country_of_origin": None,
        "age_statement": "4 years old",
        "label_image_path": f"/labels/{app_id}.png",
    }
    data.update(overrides)
    return Application(**data)


def make_extracted(application: Application = None, **overrides) -> ExtractedLabelFields:
    """Build extracted fields that mirror an application exactly unless overridden."""
    application = application or make_application()
    data = {
        name: getattr(application, name)
        for name in ExtractedLabelFields.model_fields
    }
    data.update(overrides)
    return ExtractedLabelFields(**data)


def write_applications(path, applications) -> None:
    """Write applications to a JSON store file in on-disk (camelCase) form."""
    payload = [a.model_dump(mode="json", by_alias=True) for a in applications]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def make_png_bytes(size=(200, 120)) -> bytes:
    """Create a small PNG image."""
    img = Image.new("RGB", size, color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeExtractor:
    """Extractor stand-in that returns canned fields and counts calls."""

    def __init__(self, fields: ExtractedLabelFields = None, error: Exception = None):
        self.fields = fields or make_extracted()
        self.error = error
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return True

    def extract(self, image_bytes: bytes, media_type: str) -> ExtractedLabelFields:
        self.calls.append((len(image_bytes), media_type))
        if self.error is not None:
            raise self.error
        return self.fields


@pytest.fixture
def application():
    """A single application."""
    return make_application()


@pytest.fixture
def data_file(tmp_path):
    """Store file seeded with three applications."""
    path = tmp_path / "applications.json"
    write_applications(path, [make_application(f"app-00{i}") for i in range(1, 4)])
    return path


@pytest.fixture
def labels_dir(tmp_path):
    """Labels directory holding a PNG for each seeded application."""
    labels = tmp_path / "public"
    (labels / "labels").mkdir(parents=True)
    for i in range(1, 4):
        (labels / "labels" / f"app-00{i}.png").write_bytes(make_png_bytes())
    return labels
