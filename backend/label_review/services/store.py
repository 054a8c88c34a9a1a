"""JSON-file store for filed label applications.

The whole collection lives in one file and is rewritten as a unit, so every
status update is a read-modify-write of the full file. Updates on one store
instance are serialized by a lock owned by that instance; a write replaces the
file atomically so readers never observe a partial collection.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from ..models import Application, ApplicationStatus
from .matchers import ComparisonResult
from .verification import VerificationResult

logger = logging.getLogger(__name__)

ALL_VERIFIED_NOTE = "All fields verified — exact match."

_applications_adapter = TypeAdapter(List[Application])


class ApplicationStoreError(Exception):
    """Reading or writing the applications file failed."""


class ApplicationNotFoundError(LookupError):
    """No application exists with the requested id."""

    def __init__(self, application_id: str):
        super().__init__(f"Application not found: {application_id}")
        self.application_id = application_id


def build_notes(result: VerificationResult) -> str:
    """Summarize every field that did not pass, or confirm a clean result."""
    issues = [
        f"{field.field_name}: {field.note}"
        for field in result.fields
        if field.result != ComparisonResult.PASS
    ]
    if not issues:
        return ALL_VERIFIED_NOTE
    return "; ".join(issues)


class ApplicationStore:
    """Durable collection of applications backed by a JSON file."""

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)
        self._write_lock = threading.Lock()

    def list_all(self) -> List[Application]:
        """Return every application in file order."""
        return self._read_all()

    def get_by_id(self, application_id: str) -> Optional[Application]:
        """Return the application with this id, or None."""
        for application in self._read_all():
            if application.id == application_id:
                return application
        return None

    def pending_count(self) -> int:
        """Number of applications still awaiting a reviewer decision."""
        return sum(
            1 for application in self._read_all()
            if application.status == ApplicationStatus.NOT_DONE
        )

    def update_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        result: VerificationResult,
    ) -> Application:
        """
        Record a reviewer decision and the derived notes.

        Args:
            application_id: Application to update
            status: Decision to record
            result: Verification result the decision was based on

        Returns:
            The updated application, already persisted

        Raises:
            ApplicationNotFoundError: If no application has this id
            ApplicationStoreError: If the file cannot be read or written
        """
        notes = build_notes(result)

        with self._write_lock:
            applications = self._read_all()

            index = next(
                (i for i, a in enumerate(applications) if a.id == application_id),
                None,
            )
            if index is None:
                logger.warning(f"Status update for unknown application {application_id}")
                raise ApplicationNotFoundError(application_id)

            updated = applications[index].model_copy(
                update={"status": ApplicationStatus(status), "notes": notes}
            )
            applications[index] = updated
            self._write_all(applications)

        logger.info(f"Application {application_id} marked {updated.status.value}")
        return updated

    def _read_all(self) -> List[Application]:
        try:
            raw = self.data_path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read {self.data_path}: {e}")
            raise ApplicationStoreError(f"Failed to read applications file: {e}") from e

        try:
            return _applications_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Invalid applications file {self.data_path}: {e}")
            raise ApplicationStoreError(
                "Corrupted applications file - failed to parse records"
            ) from e

    def _write_all(self, applications: List[Application]) -> None:
        payload = [
            a.model_dump(mode="json", by_alias=True) for a in applications
        ]

        # Temp file in the same directory so os.replace stays on one filesystem
        fd, tmp_path = tempfile.mkstemp(
            dir=self.data_path.parent,
            prefix=f".{self.data_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.data_path)
        except OSError as e:
            logger.error(f"Failed to write {self.data_path}: {e}")
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise ApplicationStoreError(f"Failed to write applications file: {e}") from e
