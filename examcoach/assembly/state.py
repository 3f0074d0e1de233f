"""
Mutable working state threaded through the assembly pipeline.

Every constraint step reads and rewrites the same AssemblyState; the
engine turns the final state into an AssemblyResult.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass, field

from examcoach.core.bank import QuestionBank
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import (
    Bucket,
    QuestionItem,
    StructuralShortfall,
    ThemeGap,
    TopicUrgency,
)


def _empty_buckets() -> dict[Bucket, list[QuestionItem]]:
    return {Bucket.NON_VISUAL: [], Bucket.VISUAL: []}


@dataclass
class AssemblyState:
    """
    Working set for one assessment.

    Args:
        bank: Full question bank (the unfiltered pool)
        config: Engine thresholds and structure
        rng: Injected random source; all shuffling goes through it
        eligible: Exposure-filtered pool
        weak_topics: Every weak topic, most urgent first
        target_tier: Difficulty tier (1-10) the balancer aims for
    """

    bank: QuestionBank
    config: EngineConfig
    rng: random.Random
    eligible: list[QuestionItem]
    weak_topics: list[TopicUrgency] = field(default_factory=list)
    target_tier: int = 3

    # Filled in by the steps
    weak_candidates: list[QuestionItem] = field(default_factory=list)
    other_candidates: list[QuestionItem] = field(default_factory=list)
    buckets: dict[Bucket, list[QuestionItem]] = field(default_factory=_empty_buckets)
    weak_quota: dict[Bucket, int] = field(default_factory=dict)
    weak_selected_count: int = 0
    relaxed_ids: set[str] = field(default_factory=set)
    shortfalls: list[StructuralShortfall] = field(default_factory=list)
    theme_gaps: list[ThemeGap] = field(default_factory=list)
    eligible_ids: set[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.eligible_ids = {q.id for q in self.eligible}

    @property
    def focus_topics(self) -> list[str]:
        return [u.topic_id for u in self.weak_topics[: self.config.focus_topic_count]]

    def selected(self) -> list[QuestionItem]:
        return self.buckets[Bucket.NON_VISUAL] + self.buckets[Bucket.VISUAL]

    def selected_ids(self) -> set[str]:
        return {q.id for q in self.selected()}

    def is_weak_question(self, question: QuestionItem) -> bool:
        """True when the question trains one of the focus topics."""
        return any(self.bank.matches_topic(question, topic) for topic in self.focus_topics)

    def bucket_missing(self, bucket: Bucket) -> int:
        return self.config.bucket_size(bucket) - len(self.buckets[bucket])

    def unused(
        self,
        pool: Iterable[QuestionItem],
        bucket: Bucket,
        exclude: set[str] | None = None,
    ) -> list[QuestionItem]:
        """Questions of ``bucket`` from ``pool`` not yet selected (nor in ``exclude``)."""
        taken = self.selected_ids() | (exclude or set())
        return [q for q in pool if q.bucket == bucket and q.id not in taken]

    def add(self, question: QuestionItem) -> None:
        """Append to its bucket, noting when it came from outside the eligible pool."""
        self.buckets[question.bucket].append(question)
        if question.id not in self.eligible_ids:
            self.relaxed_ids.add(question.id)

    def remove(self, question: QuestionItem) -> None:
        self.buckets[question.bucket].remove(question)
        self.relaxed_ids.discard(question.id)

    def replace_bucket(self, bucket: Bucket, questions: list[QuestionItem]) -> None:
        self.buckets[bucket] = list(questions)
        self.relaxed_ids = {q.id for q in self.selected() if q.id not in self.eligible_ids}

    def refresh_shortfalls(self) -> list[StructuralShortfall]:
        self.shortfalls = [
            StructuralShortfall(
                bucket=bucket.value,
                required=self.config.bucket_size(bucket),
                filled=len(self.buckets[bucket]),
            )
            for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL)
            if self.bucket_missing(bucket) > 0
        ]
        return self.shortfalls
