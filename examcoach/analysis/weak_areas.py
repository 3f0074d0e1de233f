"""
Weak-Area Analyzer.

Turns attempt history into a per-topic urgency signal combining:
- score deficit below the weak threshold
- inconsistency (variance of scores)
- decline between the first and second half of attempts

Raw urgency is then scaled by the mastery trend: improving learners get
some slack (x0.7), declining ones get pushed harder (x1.3).

Mastery is a recency-weighted average: the newer half of a topic's
attempts counts 1.5x the older half.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from loguru import logger

from examcoach.core.catalog import DEFAULT_CATALOG, TopicCatalog
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import AttemptRecord, TopicUrgency, Trend, as_utc


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float]) -> float:
    """Population variance."""
    if not values:
        return 0.0
    mu = mean(values)
    return sum((v - mu) ** 2 for v in values) / len(values)


def split_halves(values: Sequence[float]) -> tuple[Sequence[float], Sequence[float]]:
    """First half is floor(n/2) long; the middle element of an odd run goes to the second half."""
    middle = len(values) // 2
    return values[:middle], values[middle:]


class WeakAreaAnalyzer:
    """
    Computes TopicUrgency for every topic in the history or the catalog.

    Stateless: every call recomputes from the supplied history snapshot.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        catalog: TopicCatalog | None = None,
    ):
        self.config = config or EngineConfig()
        self.catalog = catalog or DEFAULT_CATALOG

    # ========================================
    # Per-topic formulas
    # ========================================

    def recency_weighted_mastery(self, scores: Sequence[float]) -> float:
        """Weighted mean of the newer half (1.5x) and the older half (1.0x)."""
        if not scores:
            return 0.0
        if len(scores) < 2:
            return mean(scores)

        recent = scores[-math.ceil(len(scores) / 2):]
        older = scores[: len(scores) // 2]
        w_recent = self.config.recent_half_weight
        w_older = self.config.older_half_weight
        return (mean(recent) * w_recent + mean(older) * w_older) / (w_recent + w_older)

    def improvement(self, scores: Sequence[float]) -> tuple[float, Trend]:
        """
        Mastery change between the older and the newer half of attempts.

        Returns:
            (delta, trend) where delta > 0 means the newer half scored higher
        """
        if len(scores) < 2:
            return 0.0, Trend.STABLE

        recent_count = math.ceil(len(scores) / 2)
        current = mean(scores[-recent_count:])
        previous = mean(scores[: len(scores) - recent_count])
        delta = current - previous

        if delta > self.config.improvement_threshold:
            return delta, Trend.IMPROVING
        if delta < -self.config.improvement_threshold:
            return delta, Trend.DECLINING
        return delta, Trend.STABLE

    def raw_urgency(self, scores: Sequence[float]) -> float:
        """Score deficit + consistency + decline, before trend scaling."""
        if not scores:
            return 0.0
        average = mean(scores)
        score_urgency = max(0.0, self.config.weak_threshold - average)
        consistency_urgency = min(
            self.config.consistency_cap,
            variance(scores) / self.config.variance_divisor,
        )
        trend_urgency = 0.0
        if len(scores) >= 2:
            first, second = split_halves(scores)
            # Positive when performance fell over time
            trend_urgency = max(0.0, mean(first) - mean(second))
        return score_urgency + consistency_urgency + trend_urgency

    def score_topic(self, topic_id: str, scores: Sequence[float]) -> TopicUrgency:
        if not scores:
            return TopicUrgency(topic_id=topic_id)

        average = mean(scores)
        mastery = self.recency_weighted_mastery(scores)
        delta, trend = self.improvement(scores)

        urgency = self.raw_urgency(scores)
        if trend == Trend.IMPROVING:
            urgency *= self.config.improving_factor
        elif trend == Trend.DECLINING:
            urgency *= self.config.declining_factor

        threshold = self.config.weak_threshold
        return TopicUrgency(
            topic_id=topic_id,
            average_score=average,
            mastery=mastery,
            urgency=urgency,
            improvement_delta=delta,
            is_weak=average < threshold or mastery < threshold,
            attempt_count=len(scores),
            trend=trend,
        )

    # ========================================
    # Whole-history analysis
    # ========================================

    @staticmethod
    def group_scores(attempts: Iterable[AttemptRecord]) -> dict[str, list[float]]:
        """Scores per topic in timestamp order (input order breaks ties)."""
        ordered = sorted(attempts, key=lambda a: as_utc(a.timestamp))
        grouped: dict[str, list[float]] = {}
        for attempt in ordered:
            grouped.setdefault(attempt.topic_id, []).append(float(attempt.score))
        return grouped

    def analyze(
        self,
        attempts: Iterable[AttemptRecord],
        include_catalog: bool = True,
    ) -> list[TopicUrgency]:
        """
        Urgency for every attempted topic, plus unpracticed catalog topics.

        Sorted most urgent first; ties go to lower mastery, and unpracticed
        topics trail attempted ones.
        """
        grouped = self.group_scores(attempts)
        topic_ids = list(grouped)
        if include_catalog:
            topic_ids += [tid for tid in self.catalog.topic_ids if tid not in grouped]

        urgencies = [self.score_topic(tid, grouped.get(tid, [])) for tid in topic_ids]
        order = {tid: i for i, tid in enumerate(topic_ids)}
        urgencies.sort(key=lambda u: (-u.urgency, u.is_unpracticed, u.mastery, order[u.topic_id]))

        weak = [u.topic_id for u in urgencies if u.is_weak]
        logger.debug(
            f"Analyzed {len(grouped)} practiced topics; weak: {weak or 'none'}"
        )
        return urgencies

    def weak_topics(
        self,
        urgencies: Iterable[TopicUrgency],
        limit: int | None = None,
    ) -> list[TopicUrgency]:
        """Weak topics by urgency (descending), ties broken by lower mastery."""
        weak = [u for u in urgencies if u.is_weak]
        weak.sort(key=lambda u: (-u.urgency, u.mastery))
        if limit is not None:
            return weak[:limit]
        return weak

    def focus_topics(self, urgencies: Iterable[TopicUrgency]) -> list[str]:
        """Top-N weak topic ids used to bias assembly."""
        return [u.topic_id for u in self.weak_topics(urgencies, self.config.focus_topic_count)]
