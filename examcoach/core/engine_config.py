"""
Engine configuration value object.

Every threshold the engine uses lives here so tests can probe boundaries
directly. The engine never reads environment settings itself; hosts build
an EngineConfig (usually via ``EngineConfig.from_settings``) and pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from examcoach.core import thresholds as t
from examcoach.core.errors import ConfigurationError
from examcoach.core.models import Bucket, DifficultyTier

if TYPE_CHECKING:
    from examcoach.config import Settings


@dataclass(frozen=True)
class DifficultyBand:
    """
    Easy/medium/hard mix for every tier up to ``max_tier``.

    Counts are authored against the reference 30/20 exam and rescaled by
    largest remainder when the configured bucket sizes differ.
    """

    max_tier: int
    non_visual: tuple[int, int, int]
    visual: tuple[int, int, int]

    def counts_for(self, bucket: Bucket) -> tuple[int, int, int]:
        return self.visual if bucket == Bucket.VISUAL else self.non_visual

    def targets(self, bucket: Bucket, bucket_size: int) -> dict[DifficultyTier, int]:
        counts = self.counts_for(bucket)
        reference = sum(counts)
        tiers = (DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.HARD)
        if reference == bucket_size:
            return dict(zip(tiers, counts))
        if reference == 0:
            return {DifficultyTier.EASY: 0, DifficultyTier.MEDIUM: bucket_size, DifficultyTier.HARD: 0}

        exact = [c * bucket_size / reference for c in counts]
        floors = [int(x) for x in exact]
        remainder = bucket_size - sum(floors)
        # Hand leftover slots to the largest fractional parts, earliest tier first on ties
        order = sorted(range(3), key=lambda i: (-(exact[i] - floors[i]), i))
        for i in order[:remainder]:
            floors[i] += 1
        return dict(zip(tiers, floors))


DEFAULT_DIFFICULTY_BANDS: tuple[DifficultyBand, ...] = (
    # Beginner: mostly easy/medium, no hard
    DifficultyBand(max_tier=3, non_visual=(16, 14, 0), visual=(8, 12, 0)),
    # Intermediate: balanced with some hard
    DifficultyBand(max_tier=6, non_visual=(6, 18, 6), visual=(4, 12, 4)),
    # Advanced: hard-weighted
    DifficultyBand(max_tier=8, non_visual=(2, 12, 16), visual=(2, 12, 6)),
    # Expert: hard-dominant
    DifficultyBand(max_tier=10, non_visual=(0, 8, 22), visual=(0, 6, 14)),
)


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds and structural targets for one engine instance."""

    # Exam structure
    total_questions: int = t.EXAM_TOTAL_QUESTIONS
    non_visual_questions: int = t.EXAM_NON_VISUAL_QUESTIONS
    visual_questions: int = t.EXAM_VISUAL_QUESTIONS
    pass_percentage: int = t.EXAM_PASS_PERCENTAGE

    # Weak-area analysis
    weak_threshold: float = t.WEAK_SCORE_THRESHOLD
    recent_half_weight: float = t.RECENT_HALF_WEIGHT
    older_half_weight: float = t.OLDER_HALF_WEIGHT
    consistency_cap: float = t.CONSISTENCY_URGENCY_CAP
    variance_divisor: float = t.VARIANCE_DIVISOR
    improvement_threshold: float = t.IMPROVEMENT_DELTA_THRESHOLD
    improving_factor: float = t.IMPROVING_URGENCY_FACTOR
    declining_factor: float = t.DECLINING_URGENCY_FACTOR
    default_weak_mastery: float = t.DEFAULT_WEAK_MASTERY

    # Recent performance
    recent_window_days: int = t.RECENT_WINDOW_DAYS
    recent_attempt_fallback: int = t.RECENT_ATTEMPT_FALLBACK
    recent_trend_threshold: float = t.RECENT_TREND_THRESHOLD
    new_learner_tier: int = t.NEW_LEARNER_TIER
    tier_bands: tuple[tuple[float, int], ...] = t.TIER_BANDS
    tier_floor: int = t.TIER_FLOOR
    inconsistent_variance: float = t.INCONSISTENT_VARIANCE

    # Exposure
    min_days_since_seen: float = t.MIN_DAYS_SINCE_SEEN
    max_times_shown: int = t.MAX_TIMES_SHOWN

    # Assembly
    focus_topic_count: int = t.FOCUS_TOPIC_COUNT
    weak_share_bands: tuple[tuple[int, float], ...] = t.WEAK_SHARE_BANDS
    weak_share_floor: float = t.WEAK_SHARE_FLOOR
    difficulty_bands: tuple[DifficultyBand, ...] = field(default=DEFAULT_DIFFICULTY_BANDS)

    # Recommendation
    skip_limit: int = t.SKIP_LIMIT

    def __post_init__(self) -> None:
        if self.non_visual_questions + self.visual_questions != self.total_questions:
            raise ConfigurationError(
                f"Bucket split {self.non_visual_questions}/{self.visual_questions} "
                f"does not sum to {self.total_questions}"
            )
        if self.non_visual_questions < 0 or self.visual_questions < 0:
            raise ConfigurationError("Bucket sizes must be non-negative")
        if self.max_times_shown < 1:
            raise ConfigurationError("max_times_shown must be at least 1")
        if self.min_days_since_seen < 0:
            raise ConfigurationError("min_days_since_seen must be non-negative")
        if not self.difficulty_bands:
            raise ConfigurationError("At least one difficulty band is required")
        if self.difficulty_bands[-1].max_tier < t.MAX_TIER:
            raise ConfigurationError("Difficulty bands must cover every tier up to 10")
        if self.focus_topic_count < 0 or self.skip_limit < 1:
            raise ConfigurationError("focus_topic_count and skip_limit must be positive")

    # ========================================
    # Derived values
    # ========================================

    @property
    def non_visual_ratio(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.non_visual_questions / self.total_questions

    def bucket_size(self, bucket: Bucket) -> int:
        if bucket == Bucket.VISUAL:
            return self.visual_questions
        return self.non_visual_questions

    def weak_share(self, weak_topic_count: int) -> float:
        """Share of the exam drawn from weak topics: 1 -> 70%, 2-3 -> 60%, 4+ -> 50%."""
        for max_count, share in self.weak_share_bands:
            if weak_topic_count <= max_count:
                return share
        return self.weak_share_floor

    def tier_for_average(self, average: float) -> int:
        for min_average, tier in self.tier_bands:
            if average >= min_average:
                return tier
        return self.tier_floor

    def band_for_tier(self, tier: int) -> DifficultyBand:
        for band in self.difficulty_bands:
            if tier <= band.max_tier:
                return band
        return self.difficulty_bands[-1]

    def difficulty_targets(self, tier: int, bucket: Bucket) -> dict[DifficultyTier, int]:
        return self.band_for_tier(tier).targets(bucket, self.bucket_size(bucket))

    # ========================================
    # Construction helpers
    # ========================================

    def with_overrides(self, **changes) -> EngineConfig:
        """Copy with selected fields replaced (validation re-runs)."""
        return replace(self, **changes)

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineConfig:
        return cls(
            total_questions=settings.exam_total_questions,
            non_visual_questions=settings.exam_non_visual_questions,
            visual_questions=settings.exam_visual_questions,
            pass_percentage=settings.exam_pass_percentage,
            weak_threshold=settings.weak_score_threshold,
            recent_window_days=settings.recent_window_days,
            recent_attempt_fallback=settings.recent_attempt_fallback,
            min_days_since_seen=settings.min_days_since_seen,
            max_times_shown=settings.max_times_shown,
            focus_topic_count=settings.focus_topic_count,
            skip_limit=settings.skip_limit,
        )
