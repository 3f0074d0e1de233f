"""
Structural Assembler.

Fills the two fixed-size buckets (non-visual / visual):

1. Weak quota = floor(total * share), share by weak-topic count
   (1 -> 70%, 2-3 -> 60%, 4+ -> 50%), split across buckets in the
   exam's own non-visual/visual ratio.
2. Highest-weighted weak candidates fill each sub-quota.
3. Shortfalls are backfilled from the other candidates, then from the
   rest of the eligible pool.
4. Last resort: the exposure filter is relaxed and the unfiltered bank is
   used. Correct counts win over anti-repetition on small pools.

Anything still missing becomes a StructuralShortfall on the state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from examcoach.assembly.state import AssemblyState
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import Bucket, QuestionItem


@dataclass(frozen=True)
class WeakQuota:
    """How many questions should come from weak topics, per bucket."""

    total: int
    non_visual: int
    visual: int

    def for_bucket(self, bucket: Bucket) -> int:
        return self.visual if bucket == Bucket.VISUAL else self.non_visual


class StructuralAssembler:
    """Fills buckets from weighted candidates with backfill and relaxation."""

    name = "structure"

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def weak_quota(self, weak_topic_count: int) -> WeakQuota:
        share = self.config.weak_share(weak_topic_count)
        total = math.floor(self.config.total_questions * share)
        non_visual = math.floor(total * self.config.non_visual_ratio)
        return WeakQuota(total=total, non_visual=non_visual, visual=total - non_visual)

    def apply(self, state: AssemblyState) -> None:
        if not state.selected():
            self._fill_weak(state)

        for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL):
            self._backfill(state, bucket)

        for shortfall in state.refresh_shortfalls():
            logger.warning(
                f"Structural shortfall in {shortfall.bucket} bucket: "
                f"{shortfall.filled}/{shortfall.required}"
            )

    def _fill_weak(self, state: AssemblyState) -> None:
        quota = self.weak_quota(len(state.weak_topics))
        for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL):
            limit = min(quota.for_bucket(bucket), self.config.bucket_size(bucket))
            state.weak_quota[bucket] = limit
            picks = [q for q in state.weak_candidates if q.bucket == bucket][:limit]
            for question in picks:
                state.add(question)
            state.weak_selected_count += len(picks)

        logger.debug(
            f"Weak quota {quota.total} ({quota.non_visual}/{quota.visual}); "
            f"filled {state.weak_selected_count}"
        )

    def _backfill(self, state: AssemblyState, bucket: Bucket) -> None:
        sources: list[tuple[str, list[QuestionItem]]] = [
            ("other", state.other_candidates),
            ("eligible", state.eligible),
        ]
        for label, source in sources:
            missing = state.bucket_missing(bucket)
            if missing <= 0:
                return
            picks = state.unused(source, bucket)[:missing]
            for question in picks:
                state.add(question)
            if picks:
                logger.debug(f"Backfilled {len(picks)} {bucket.value} questions from {label} pool")

        missing = state.bucket_missing(bucket)
        if missing <= 0:
            return

        relaxed = state.unused(state.bank, bucket)
        state.rng.shuffle(relaxed)
        picks = relaxed[:missing]
        for question in picks:
            state.add(question)
        if picks:
            logger.warning(
                f"Relaxed exposure filter: reused {len(picks)} recently seen "
                f"{bucket.value} questions"
            )
