"""
Exposure Filter (anti-repetition).

Selection side: a pure filter over the candidate pool.
- never shown            -> eligible
- shown >= max_times     -> excluded
- otherwise              -> eligible once min_days_since_seen have passed

Commit side: ExposureRecorder bumps the ledger once per completed
assessment. Writes for one learner are serialized; reads are not.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from datetime import datetime

from loguru import logger

from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import ExposureRecord, QuestionItem, utcnow
from examcoach.repositories.base import ExposureLedger


class ExposureFilter:
    """Removes questions seen too recently or too often."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def is_eligible(self, record: ExposureRecord | None, now: datetime) -> bool:
        if record is None or record.times_shown == 0:
            return True
        if record.times_shown >= self.config.max_times_shown:
            return False
        days = record.days_since_shown(now)
        if days is None:
            return True
        return days >= self.config.min_days_since_seen

    def filter(
        self,
        pool: Iterable[QuestionItem],
        ledger: Mapping[str, ExposureRecord],
        now: datetime | None = None,
    ) -> list[QuestionItem]:
        now = now or utcnow()
        pool = list(pool)
        eligible = [q for q in pool if self.is_eligible(ledger.get(q.id), now)]
        logger.debug(f"Exposure filter kept {len(eligible)}/{len(pool)} questions")
        return eligible


class ExposureRecorder:
    """Applies one assessment's exposures to a learner's ledger."""

    def __init__(self, ledger: ExposureLedger):
        self.ledger = ledger
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, learner_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(learner_id)
            if lock is None:
                lock = self._locks[learner_id] = threading.Lock()
            return lock

    def record(
        self,
        learner_id: str,
        question_ids: Iterable[str],
        assessment_id: str,
        now: datetime | None = None,
    ) -> list[ExposureRecord]:
        """
        Mark every question as shown once more.

        Args:
            learner_id: Learner whose ledger is updated
            question_ids: Questions the learner actually took (duplicates ignored)
            assessment_id: Assessment they belonged to
            now: Timestamp of the exposure (defaults to UTC now)

        Returns:
            The updated ExposureRecords
        """
        now = now or utcnow()
        unique_ids = list(dict.fromkeys(question_ids))

        with self._lock_for(learner_id):
            existing = self.ledger.get_all(learner_id)
            updated = []
            for question_id in unique_ids:
                record = existing.get(question_id) or ExposureRecord(question_id=question_id)
                record.mark_shown(now, assessment_id)
                self.ledger.upsert(learner_id, record)
                updated.append(record)

        logger.info(
            f"Recorded exposure of {len(updated)} questions for learner {learner_id} "
            f"(assessment {assessment_id})"
        )
        return updated
