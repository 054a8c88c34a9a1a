"""Cache of completed verification results, keyed by application id.

A hit means the label has already been sent for extraction in this process,
so callers must return the cached result instead of extracting again.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging
import threading

from .verification import VerificationResult

logger = logging.getLogger(__name__)


class ResultCache(ABC):
    """Keyed store of verification results."""

    @abstractmethod
    def get(self, application_id: str) -> Optional[VerificationResult]:
        """Return the cached result, or None on a miss."""

    @abstractmethod
    def set(self, application_id: str, result: VerificationResult) -> None:
        """Store a result. A second set for the same id replaces the first."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every cached result."""


class InMemoryResultCache(ResultCache):
    """
    Process-lifetime cache backed by a dict.

    No eviction and no TTL: the record set is small and bounded.
    """

    def __init__(self):
        self._results: Dict[str, VerificationResult] = {}
        self._lock = threading.Lock()

    def get(self, application_id: str) -> Optional[VerificationResult]:
        with self._lock:
            return self._results.get(application_id)

    def set(self, application_id: str, result: VerificationResult) -> None:
        with self._lock:
            self._results[application_id] = result
        logger.debug(f"Cached verification result for {application_id}")

    def clear(self) -> None:
        with self._lock:
            self._results.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
