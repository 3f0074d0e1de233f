"""
Theme-Diversity Repairer.

Guarantees every mandatory theme appears at least once whenever the bank
can supply it. For each missing theme a replacement of the same bucket is
swapped in, evicting (in order of preference):

1. a non-weak-topic question that is not the only cover of another theme
2. a weak-topic question that is not the only cover of another theme

Swaps never cross buckets, so bucket totals hold. If the totals are found
broken anyway, ``rebuild_buckets`` regreedily fills both buckets: weak
topics first, then uncovered mandatory themes, then anything.
Themes the bank cannot supply are reported as ThemeGap.
"""

from __future__ import annotations

from loguru import logger

from examcoach.assembly.state import AssemblyState
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import Bucket, QuestionItem, ThemeGap

BUCKETS = (Bucket.NON_VISUAL, Bucket.VISUAL)


class ThemeDiversityRepairer:
    """Swaps questions in so every mandatory theme is represented."""

    name = "themes"

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def missing_themes(self, state: AssemblyState) -> list[str]:
        return state.bank.missing_mandatory(state.selected())

    def sole_coverers(self, state: AssemblyState) -> set[str]:
        """Ids of selected questions that are the only cover of some mandatory theme."""
        mandatory = set(state.bank.catalog.mandatory_themes)
        coverers: dict[str, list[str]] = {}
        for question in state.selected():
            for theme in state.bank.covered_themes(question) & mandatory:
                coverers.setdefault(theme, []).append(question.id)
        return {ids[0] for ids in coverers.values() if len(ids) == 1}

    def find_replacement(
        self,
        state: AssemblyState,
        theme: str,
        bucket: Bucket,
    ) -> QuestionItem | None:
        """
        An unused eligible question of ``bucket`` covering ``theme``.

        Only a short bucket may reach past the exposure filter into the full
        bank; a swap never trades an eligible question for an excluded one.
        """
        pools = [state.eligible]
        if state.bucket_missing(bucket) > 0:
            pools.append(state.bank)
        for pool in pools:
            candidates = [q for q in state.unused(pool, bucket) if state.bank.covers(q, theme)]
            if candidates:
                return state.rng.choice(candidates)
        return None

    def pick_eviction(
        self,
        state: AssemblyState,
        bucket: Bucket,
        protected: set[str],
    ) -> QuestionItem | None:
        """Lowest-priority evictable question in the bucket (scanned from the end)."""
        for allow_weak in (False, True):
            for question in reversed(state.buckets[bucket]):
                if question.id in protected:
                    continue
                if state.is_weak_question(question) and not allow_weak:
                    continue
                return question
        return None

    def repair(self, state: AssemblyState) -> list[ThemeGap]:
        """
        Swap in questions for every missing mandatory theme.

        Returns:
            ThemeGap for each theme that could not be covered
        """
        swapped: set[str] = set()
        gaps: list[ThemeGap] = []

        for theme in self.missing_themes(state):
            if theme not in self.missing_themes(state):
                # Covered by an earlier swap
                continue

            placed = False
            for bucket in BUCKETS:
                replacement = self.find_replacement(state, theme, bucket)
                if replacement is None:
                    continue

                if state.bucket_missing(bucket) > 0:
                    state.add(replacement)
                    swapped.add(replacement.id)
                    placed = True
                    break

                victim = self.pick_eviction(state, bucket, self.sole_coverers(state) | swapped)
                if victim is None:
                    continue
                state.remove(victim)
                state.add(replacement)
                swapped.add(replacement.id)
                placed = True
                logger.debug(f"Theme {theme}: swapped {victim.id} -> {replacement.id}")
                break

            if not placed:
                gaps.append(ThemeGap(theme))

        return gaps

    def totals_ok(self, state: AssemblyState) -> bool:
        return all(len(state.buckets[b]) == self.config.bucket_size(b) for b in BUCKETS)

    def needs_rebuild(self, state: AssemblyState) -> bool:
        """Totals are off and the bank could do better (an exhausted bank stays a shortfall)."""
        if self.totals_ok(state):
            return False
        for bucket in BUCKETS:
            missing = state.bucket_missing(bucket)
            if missing < 0 or (missing > 0 and state.unused(state.bank, bucket)):
                return True
        return False

    def rebuild_buckets(self, state: AssemblyState) -> None:
        """Greedy rebuild of both buckets from scratch."""
        previous = state.selected()
        pool = state.eligible + [q for q in state.bank if q.id not in state.eligible_ids]
        rebuilt: dict[Bucket, list[QuestionItem]] = {b: [] for b in BUCKETS}
        placed_ids: set[str] = set()

        def place(question: QuestionItem, limit: int | None = None) -> bool:
            bucket = rebuilt[question.bucket]
            cap = self.config.bucket_size(question.bucket) if limit is None else limit
            if question.id in placed_ids or len(bucket) >= cap:
                return False
            bucket.append(question)
            placed_ids.add(question.id)
            return True

        # Weak topics first, up to the weak quota per bucket
        for question in previous + state.weak_candidates:
            if state.is_weak_question(question):
                place(question, state.weak_quota.get(question.bucket, 0))

        # Then one eligible question per still-uncovered mandatory theme
        for theme in state.bank.missing_mandatory(rebuilt[Bucket.NON_VISUAL] + rebuilt[Bucket.VISUAL]):
            for question in previous + state.eligible:
                if state.bank.covers(question, theme) and place(question):
                    break

        # Then anything, previous selection first
        for question in previous + pool:
            place(question)

        for bucket in BUCKETS:
            state.replace_bucket(bucket, rebuilt[bucket])
        logger.warning(
            f"Rebuilt buckets: {len(rebuilt[Bucket.NON_VISUAL])}/{len(rebuilt[Bucket.VISUAL])}"
        )

    def apply(self, state: AssemblyState) -> None:
        gaps = self.repair(state)

        if self.needs_rebuild(state):
            self.rebuild_buckets(state)
            gaps = [ThemeGap(theme) for theme in self.missing_themes(state)]

        state.theme_gaps = gaps
        state.refresh_shortfalls()
        for gap in gaps:
            logger.warning(f"No question available for mandatory theme: {gap.tag}")
