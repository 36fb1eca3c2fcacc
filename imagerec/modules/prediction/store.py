"""Process-local storage of prediction results with age-based expiry."""

import secrets
import threading
from datetime import datetime, timedelta, timezone

from imagerec.api.core.exceptions.base import ResultNotFoundError
from imagerec.modules.prediction.models import PredictionResult
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

RESULT_ID_BYTES = 8


class ResultStore:
    def __init__(self):
        self._results: dict[str, PredictionResult] = {}
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """64 random bits, hex encoded; re-drawn on collision with a stored id."""
        with self._lock:
            while True:
                result_id = secrets.token_hex(RESULT_ID_BYTES)
                if result_id not in self._results:
                    return result_id

    def put(self, result: PredictionResult) -> PredictionResult:
        with self._lock:
            self._results[result.id] = result
        return result

    def get(self, result_id: str) -> PredictionResult:
        with self._lock:
            result = self._results.get(result_id)
        if result is None:
            raise ResultNotFoundError(result_id)
        return result

    def sweep(self, max_age_seconds: float, now: datetime | None = None) -> int:
        """Remove results processed more than ``max_age_seconds`` ago."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=max_age_seconds)

        with self._lock:
            snapshot = list(self._results.items())

        expired = [
            (result_id, result)
            for result_id, result in snapshot
            if result.processed_at < cutoff
        ]

        removed = 0
        with self._lock:
            for result_id, result in expired:
                # Only drop the exact object we judged expired
                if self._results.get(result_id) is result:
                    del self._results[result_id]
                    removed += 1

        if removed:
            logger.info("Swept expired results", removed=removed)
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._results)

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
