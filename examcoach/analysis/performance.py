"""
Recent-Performance Evaluator.

Looks at a trailing window of attempts (last 7 days by default, falling back
to the last few attempts when the window is empty) and derives:
- average score
- trend: improving / declining / stable (+/-5 points, first vs second half)
- recommended difficulty tier (1-10), nudged one step by the trend

Tier mapping from the window average: >=90 -> 9, >=80 -> 7, >=70 -> 5,
>=60 -> 4, >=50 -> 3, else 2. Learners with no history start at tier 3.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum

from loguru import logger

from examcoach.analysis.weak_areas import mean, split_halves, variance
from examcoach.core import thresholds as t
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import (
    AttemptRecord,
    RecentPerformance,
    Trend,
    as_utc,
    days_between,
    utcnow,
)


class LearningPattern(str, Enum):
    """Trend plus an "inconsistent" state for erratic but flat results."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INCONSISTENT = "inconsistent"


def clamp_tier(tier: int) -> int:
    return max(t.MIN_TIER, min(t.MAX_TIER, tier))


class RecentPerformanceEvaluator:
    """Short-window trend and difficulty tier for one learner."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def recent_attempts(
        self,
        attempts: Iterable[AttemptRecord],
        now: datetime | None = None,
    ) -> list[AttemptRecord]:
        """Attempts inside the trailing window, or the last few if the window is empty."""
        now = now or utcnow()
        ordered = sorted(attempts, key=lambda a: as_utc(a.timestamp))
        window = [
            a for a in ordered
            if days_between(a.timestamp, now) <= self.config.recent_window_days
        ]
        if window or not ordered:
            return window
        return ordered[-self.config.recent_attempt_fallback:]

    def trend(self, scores: Sequence[float]) -> Trend:
        if len(scores) < 2:
            return Trend.STABLE
        first, second = split_halves(scores)
        first_avg, second_avg = mean(first), mean(second)
        if second_avg > first_avg + self.config.recent_trend_threshold:
            return Trend.IMPROVING
        if second_avg < first_avg - self.config.recent_trend_threshold:
            return Trend.DECLINING
        return Trend.STABLE

    def base_tier(self, scores: Sequence[float]) -> int:
        if not scores:
            return self.config.new_learner_tier
        return self.config.tier_for_average(mean(scores))

    @staticmethod
    def adjust_tier(tier: int, trend: Trend) -> int:
        if trend == Trend.IMPROVING:
            return clamp_tier(tier + 1)
        if trend == Trend.DECLINING:
            return clamp_tier(tier - 1)
        return clamp_tier(tier)

    def evaluate(
        self,
        attempts: Iterable[AttemptRecord],
        now: datetime | None = None,
    ) -> RecentPerformance:
        attempts = list(attempts)
        recent = self.recent_attempts(attempts, now)
        scores = [float(a.score) for a in recent]

        trend = self.trend(scores)
        base = self.base_tier(scores)
        recommended = self.adjust_tier(base, trend)
        exam_count = min(
            sum(1 for a in attempts if a.is_exam_like),
            self.config.recent_attempt_fallback,
        )

        logger.debug(
            f"Recent performance: {len(scores)} attempts, avg={mean(scores):.1f}, "
            f"trend={trend.value}, tier {base} -> {recommended}"
        )
        return RecentPerformance(
            average_score=mean(scores),
            trend=trend,
            base_tier=base,
            recommended_tier=recommended,
            attempt_count=len(scores),
            exam_count=exam_count,
        )

    def learning_pattern(self, scores: Sequence[float]) -> LearningPattern:
        """Trend over recent scores; flat but high-variance runs are inconsistent."""
        if len(scores) < 3:
            return LearningPattern.STABLE
        trend = self.trend(scores)
        if trend == Trend.IMPROVING:
            return LearningPattern.IMPROVING
        if trend == Trend.DECLINING:
            return LearningPattern.DECLINING
        if variance(scores) > self.config.inconsistent_variance:
            return LearningPattern.INCONSISTENT
        return LearningPattern.STABLE
