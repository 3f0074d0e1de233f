"""
Difficulty Balancer.

Re-partitions each bucket across easy/medium/hard targets taken from the
difficulty band of the target tier, without changing bucket sizes.

Per bucket:
1. weak-topic questions are kept regardless of difficulty and count toward
   their cell; each cell then keeps up to its target from the rest of the
   assembled set (shuffled)
2. a short cell is topped up from unused eligible questions of the same
   type and difficulty
3. remaining slots take leftover assembled questions of the same type,
   then unused eligible ones, regardless of difficulty
4. final top-up by type only from the full bank
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from loguru import logger

from examcoach.assembly.state import AssemblyState
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import Bucket, DifficultyTier, QuestionItem


def difficulty_histogram(questions: Iterable[QuestionItem]) -> dict[str, int]:
    """Count of questions per difficulty, every tier present."""
    counts = Counter(q.difficulty for q in questions)
    return {tier.value: counts.get(tier, 0) for tier in DifficultyTier}


class DifficultyBalancer:
    """Matches the difficulty mix of each bucket to the target tier."""

    name = "difficulty"

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def targets_for(self, tier: int) -> dict[Bucket, dict[DifficultyTier, int]]:
        return {
            bucket: self.config.difficulty_targets(tier, bucket)
            for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL)
        }

    def balance_bucket(
        self,
        state: AssemblyState,
        bucket: Bucket,
        targets: dict[DifficultyTier, int],
    ) -> list[QuestionItem]:
        current = list(state.buckets[bucket])
        current_ids = {q.id for q in current}
        size = self.config.bucket_size(bucket)

        chosen: list[QuestionItem] = []
        chosen_ids: set[str] = set()

        def take(questions: Iterable[QuestionItem], limit: int) -> int:
            taken = 0
            for question in questions:
                if taken >= limit:
                    break
                if question.id in chosen_ids:
                    continue
                chosen.append(question)
                chosen_ids.add(question.id)
                taken += 1
            return taken

        # Weak-topic questions stay whatever their difficulty; they count toward their cells
        take((q for q in current if state.is_weak_question(q)), size)

        for tier, target in targets.items():
            cell = [q for q in current if q.difficulty == tier]
            state.rng.shuffle(cell)
            got = sum(1 for q in chosen if q.difficulty == tier)
            target = min(target, got + size - len(chosen))
            got += take(cell, target - got)
            if got < target:
                extra = [
                    q for q in state.eligible
                    if q.bucket == bucket and q.difficulty == tier and q.id not in current_ids
                ]
                state.rng.shuffle(extra)
                got += take(extra, target - got)
            if got < target:
                logger.debug(f"{bucket.value}/{tier.value} cell short: {got}/{target}")

        if len(chosen) < size:
            take((q for q in current if q.id not in chosen_ids), size - len(chosen))
        if len(chosen) < size:
            take((q for q in state.eligible if q.bucket == bucket), size - len(chosen))
        if len(chosen) < size:
            take(state.unused(state.bank, bucket, exclude=chosen_ids), size - len(chosen))

        return chosen[:size]

    def apply(self, state: AssemblyState) -> None:
        targets = self.targets_for(state.target_tier)
        for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL):
            state.replace_bucket(bucket, self.balance_bucket(state, bucket, targets[bucket]))
        state.refresh_shortfalls()

        logger.debug(
            f"Difficulty balanced for tier {state.target_tier}: "
            f"{difficulty_histogram(state.selected())}"
        )
