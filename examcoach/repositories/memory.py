"""
In-memory repository adapters.

Used by tests and by hosts that keep state elsewhere and only need the
engine for a single request. Each store guards its dict with a lock so
concurrent requests for different learners can share one instance.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from examcoach.core.models import AttemptRecord, ExposureRecord, as_utc


class InMemoryAttemptHistory:
    """Attempt log kept in timestamp order."""

    def __init__(self, attempts: dict[str, list[AttemptRecord]] | None = None):
        self._lock = threading.Lock()
        self._attempts: dict[str, list[AttemptRecord]] = {}
        for learner_id, records in (attempts or {}).items():
            for record in records:
                self.append(learner_id, record)

    def get_attempts(self, learner_id: str) -> list[AttemptRecord]:
        with self._lock:
            return list(self._attempts.get(learner_id, []))

    def append(self, learner_id: str, attempt: AttemptRecord) -> None:
        with self._lock:
            records = self._attempts.setdefault(learner_id, [])
            if records and as_utc(attempt.timestamp) < as_utc(records[-1].timestamp):
                raise ValueError(
                    f"Attempt at {attempt.timestamp.isoformat()} is older than the "
                    f"latest recorded attempt for learner {learner_id}"
                )
            records.append(attempt)


class InMemoryExposureLedger:
    """Exposure ledger backed by a nested dict."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, dict[str, ExposureRecord]] = {}

    def get_all(self, learner_id: str) -> dict[str, ExposureRecord]:
        with self._lock:
            return {
                qid: replace(record)
                for qid, record in self._records.get(learner_id, {}).items()
            }

    def upsert(self, learner_id: str, record: ExposureRecord) -> None:
        with self._lock:
            self._records.setdefault(learner_id, {})[record.question_id] = replace(record)


class InMemorySkipCounters:
    """Skip counters backed by a nested dict."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: dict[str, dict[str, int]] = {}

    def get_counts(self, learner_id: str) -> dict[str, int]:
        with self._lock:
            return dict(self._counts.get(learner_id, {}))

    def increment(self, learner_id: str, topic_id: str) -> int:
        with self._lock:
            counts = self._counts.setdefault(learner_id, {})
            counts[topic_id] = counts.get(topic_id, 0) + 1
            return counts[topic_id]

    def clear(self, learner_id: str, topic_id: str) -> None:
        with self._lock:
            self._counts.get(learner_id, {}).pop(topic_id, None)
