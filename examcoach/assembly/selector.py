"""
Weighted Candidate Selector.

Splits the eligible pool into questions that train one of the focus
(weak) topics and everything else. Weak candidates are ranked by
weight = 100 - mastery, so the least-mastered topic is drawn first.

Topic matching goes through the bank's precomputed theme map; a question
matching several focus topics takes the first one in focus order.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from examcoach.assembly.state import AssemblyState
from examcoach.core.bank import QuestionBank
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import QuestionItem, TopicUrgency


@dataclass(frozen=True)
class WeightedCandidate:
    """A weak-topic question with its selection weight."""

    question: QuestionItem
    topic_id: str
    weight: float


@dataclass
class CandidatePartition:
    weak: list[WeightedCandidate] = field(default_factory=list)
    other: list[QuestionItem] = field(default_factory=list)

    @property
    def weak_questions(self) -> list[QuestionItem]:
        return [c.question for c in self.weak]


class WeightedCandidateSelector:
    """Partitions and ranks the eligible pool against the focus topics."""

    name = "select-candidates"

    def __init__(self, bank: QuestionBank, config: EngineConfig | None = None):
        self.bank = bank
        self.config = config or EngineConfig()

    def weight_for(self, urgency: TopicUrgency) -> float:
        mastery = urgency.mastery if urgency.attempt_count else self.config.default_weak_mastery
        return 100.0 - mastery

    def match_topic(
        self,
        question: QuestionItem,
        focus: Sequence[TopicUrgency],
    ) -> TopicUrgency | None:
        for urgency in focus:
            if self.bank.matches_topic(question, urgency.topic_id):
                return urgency
        return None

    def partition(
        self,
        pool: Iterable[QuestionItem],
        focus: Sequence[TopicUrgency],
        rng: random.Random,
    ) -> CandidatePartition:
        """
        Shuffle the pool, then split it into weak and other candidates.

        Args:
            pool: Exposure-filtered questions
            focus: Top-N weak topics, most urgent first
            rng: Random source; equal weights keep their shuffled order

        Returns:
            CandidatePartition with weak candidates sorted by weight (desc)
        """
        shuffled = list(pool)
        rng.shuffle(shuffled)

        partition = CandidatePartition()
        for question in shuffled:
            urgency = self.match_topic(question, focus)
            if urgency is None:
                partition.other.append(question)
            else:
                partition.weak.append(
                    WeightedCandidate(question, urgency.topic_id, self.weight_for(urgency))
                )

        # Stable sort keeps the shuffled order among equal weights
        partition.weak.sort(key=lambda c: -c.weight)

        logger.debug(
            f"Candidate partition: {len(partition.weak)} weak-topic, "
            f"{len(partition.other)} other"
        )
        return partition

    def apply(self, state: AssemblyState) -> None:
        if state.weak_candidates or state.other_candidates:
            return
        focus = state.weak_topics[: self.config.focus_topic_count]
        partition = self.partition(state.eligible, focus, state.rng)
        state.weak_candidates = partition.weak_questions
        state.other_candidates = partition.other
