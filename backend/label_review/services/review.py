"""Review pipeline: cache check, extraction, comparison and decision recording."""

import io
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from PIL import Image

from ..models import Application, ApplicationStatus
from .cache import ResultCache
from .extraction import LabelExtractor
from .store import ApplicationNotFoundError, ApplicationStore
from .verification import FieldComparator, VerificationResult

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


class LabelImageError(Exception):
    """The label image for an application is missing or unreadable."""


@dataclass(frozen=True)
class VerificationOutcome:
    """A verification result and whether it came from the cache."""
    result: VerificationResult
    cached: bool


def load_label_image(
    labels_dir: Path,
    label_image_path: str,
    allowed_formats: Iterable[str] = MEDIA_TYPES.keys(),
) -> Tuple[bytes, str]:
    """
    Read a label image and determine its media type from its contents.

    Returns:
        Tuple of (image_bytes, media_type)

    Raises:
        LabelImageError: If the file is outside labels_dir, unreadable,
            or not an allowed image format
    """
    root = Path(labels_dir).resolve()
    path = (root / label_image_path.lstrip("/")).resolve()
    if root not in path.parents:
        raise LabelImageError(f"Label image path escapes labels directory: {label_image_path}")

    try:
        image_bytes = path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read label image {path}: {e}")
        raise LabelImageError("Failed to read label image") from e

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            image_format = img.format
            img.verify()
    except Exception as e:
        logger.error(f"Unable to decode label image {path}: {e}")
        raise LabelImageError(f"Unable to read label image: {e}") from e

    allowed = {f.upper() for f in allowed_formats}
    if image_format not in allowed or image_format not in MEDIA_TYPES:
        raise LabelImageError(
            f"Unsupported label image format {image_format}. "
            f"Allowed formats: {', '.join(sorted(allowed))}"
        )

    return image_bytes, MEDIA_TYPES[image_format]


class LabelReviewService:
    """Runs label verification for applications and records reviewer decisions."""

    def __init__(
        self,
        store: ApplicationStore,
        cache: ResultCache,
        extractor: LabelExtractor,
        labels_dir: Path,
        allowed_formats: Iterable[str] = MEDIA_TYPES.keys(),
        comparator: Optional[FieldComparator] = None,
    ):
        self.store = store
        self.cache = cache
        self.extractor = extractor
        self.labels_dir = Path(labels_dir)
        self.allowed_formats = tuple(allowed_formats)
        self.comparator = comparator or FieldComparator()
        self._locks_guard = threading.Lock()
        self._verify_locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, application_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._verify_locks.setdefault(application_id, threading.Lock())

    def verify(self, application_id: str) -> VerificationOutcome:
        """
        Verify an application's label, extracting at most once per process.

        Raises:
            ApplicationNotFoundError: If the application does not exist
            LabelImageError: If its label image cannot be used
            ExtractionError: If the extractor fails; nothing is cached
            ApplicationStoreError: If the store cannot be read
        """
        cached = self.cache.get(application_id)
        if cached is not None:
            logger.info(f"Cache hit for {application_id}")
            return VerificationOutcome(result=cached, cached=True)

        # Concurrent requests for one id wait here and reuse the first result
        with self._lock_for(application_id):
            cached = self.cache.get(application_id)
            if cached is not None:
                logger.info(f"Cache hit for {application_id} after waiting")
                return VerificationOutcome(result=cached, cached=True)

            application = self.store.get_by_id(application_id)
            if application is None:
                logger.warning(f"Verification requested for unknown application {application_id}")
                with self._locks_guard:
                    self._verify_locks.pop(application_id, None)
                raise ApplicationNotFoundError(application_id)

            image_bytes, media_type = load_label_image(
                self.labels_dir, application.label_image_path, self.allowed_formats
            )

            extracted = self.extractor.extract(image_bytes, media_type)
            result = self.comparator.compare(application, extracted)
            self.cache.set(application_id, result)

        logger.info(f"Verified {application_id}: {result.overall_result.value}")
        return VerificationOutcome(result=result, cached=False)

    def record_decision(
        self,
        application_id: str,
        status: ApplicationStatus,
        result: VerificationResult,
    ) -> Application:
        """Persist a reviewer decision. Re-deciding an application overwrites it."""
        return self.store.update_status(application_id, status, result)
