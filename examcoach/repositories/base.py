"""
Repository ports.

The engine only talks to persistence through these narrow interfaces; hosts
inject whichever adapter fits (in-memory, SQLAlchemy, or their own).
"""

from __future__ import annotations

from typing import Protocol

from examcoach.core.models import AttemptRecord, ExposureRecord


class AttemptHistorySource(Protocol):
    """Append-only, timestamp-ordered attempt log keyed by learner."""

    def get_attempts(self, learner_id: str) -> list[AttemptRecord]:
        ...

    def append(self, learner_id: str, attempt: AttemptRecord) -> None:
        ...


class ExposureLedger(Protocol):
    """(learner, question) -> ExposureRecord."""

    def get_all(self, learner_id: str) -> dict[str, ExposureRecord]:
        """All records for a learner, keyed by question id. Returned records are copies."""
        ...

    def upsert(self, learner_id: str, record: ExposureRecord) -> None:
        ...


class SkipCounterStore(Protocol):
    """(learner, topic) -> times the learner bypassed that recommendation."""

    def get_counts(self, learner_id: str) -> dict[str, int]:
        ...

    def increment(self, learner_id: str, topic_id: str) -> int:
        ...

    def clear(self, learner_id: str, topic_id: str) -> None:
        ...
