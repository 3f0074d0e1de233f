"""
Recommendation Ranker.

Picks the single next-best topic. Recomputed from scratch on every call;
the only persisted state is the per-topic skip counter.

States:
- new learner (no attempts): first topic of the beginner path, high
- weak area (some weak topic skipped fewer than ``skip_limit`` times):
  lowest score first, then lowest mastery, then least skipped; critical
- no weak area: unattempted topics first (beginner path in path order),
  then lowest score, then least skipped; high below the pass mark,
  medium otherwise

Topics skipped ``skip_limit`` times drop out of the weak-area state and
sort last in the no-weak state.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from loguru import logger

from examcoach.core import thresholds as t
from examcoach.core.catalog import DEFAULT_CATALOG, TopicCatalog
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import PriorityTier, Recommendation, TopicUrgency


def is_exam_topic(topic_id: str) -> bool:
    """Mock exams are logged like topics but are never recommended."""
    topic = topic_id.lower()
    return "mock" in topic or "exam" in topic


class RecommendationRanker:
    """Stateless ranker over TopicUrgency plus skip counters."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        catalog: TopicCatalog | None = None,
    ):
        self.config = config or EngineConfig()
        self.catalog = catalog or DEFAULT_CATALOG

    # ========================================
    # Justification text
    # ========================================

    def weak_justification(self, urgency: TopicUrgency) -> str:
        score = urgency.average_score
        if score < t.CRITICAL_SCORE:
            return f"Critical gap: averaging {score:.0f}%. Rebuild the basics first"
        if score < t.SEVERE_SCORE:
            return f"Well below the pass mark at {score:.0f}%. Needs focused practice"
        if urgency.average_score >= self.config.weak_threshold:
            return (
                f"Recent results are slipping (mastery {urgency.mastery:.0f}%). "
                f"Needs practice"
            )
        return (
            f"Below the {self.config.weak_threshold:.0f}% threshold at {score:.0f}%. "
            f"Needs practice"
        )

    def general_justification(self, urgency: TopicUrgency) -> str:
        if urgency.is_unpracticed:
            return "Not practiced yet"
        if urgency.average_score < self.config.pass_percentage:
            return f"Keep improving ({urgency.average_score:.0f}%)"
        return "Practice this to stay sharp"

    # ========================================
    # Ranking
    # ========================================

    def _order(self, urgencies: Sequence[TopicUrgency]) -> dict[str, int]:
        catalog_order = {tid: i for i, tid in enumerate(self.catalog.topic_ids)}
        offset = len(catalog_order)
        return {
            u.topic_id: catalog_order.get(u.topic_id, offset + i)
            for i, u in enumerate(urgencies)
        }

    def rank_weak(
        self,
        urgencies: Sequence[TopicUrgency],
        skip_counts: Mapping[str, int],
    ) -> list[TopicUrgency]:
        """Weak topics still eligible (skipped fewer than skip_limit times), best first."""
        candidates = [
            u for u in urgencies
            if u.is_weak and skip_counts.get(u.topic_id, 0) < self.config.skip_limit
        ]
        candidates.sort(
            key=lambda u: (
                u.is_unpracticed,
                u.average_score,
                u.mastery,
                skip_counts.get(u.topic_id, 0),
            )
        )
        return candidates

    def rank_general(
        self,
        urgencies: Sequence[TopicUrgency],
        skip_counts: Mapping[str, int],
    ) -> list[TopicUrgency]:
        """Non-weak topics (including unattempted ones), best first."""
        order = self._order(urgencies)
        path_size = len(self.catalog.beginner_path)

        def key(u: TopicUrgency):
            skips = skip_counts.get(u.topic_id, 0)
            path_index = self.catalog.beginner_index(u.topic_id)
            return (
                skips >= self.config.skip_limit,
                not u.is_unpracticed,
                path_index if path_index is not None and u.is_unpracticed else path_size,
                u.average_score,
                skips,
                order[u.topic_id],
            )

        return sorted((u for u in urgencies if not u.is_weak), key=key)

    def recommend(
        self,
        urgencies: Sequence[TopicUrgency],
        skip_counts: Mapping[str, int] | None = None,
        is_new_user: bool | None = None,
    ) -> Recommendation:
        """
        Choose the next topic.

        Args:
            urgencies: TopicUrgency for every catalog topic (and any extra
                practiced topics)
            skip_counts: topic id -> times the learner bypassed it
            is_new_user: Override; defaults to "no topic has any attempt"

        Returns:
            Recommendation
        """
        skip_counts = skip_counts or {}
        urgencies = [u for u in urgencies if not is_exam_topic(u.topic_id)]
        if is_new_user is None:
            is_new_user = all(u.is_unpracticed for u in urgencies)

        if is_new_user:
            recommendation = self._beginner(skip_counts)
        else:
            recommendation = self._ranked(urgencies, skip_counts)

        logger.info(
            f"Recommended {recommendation.topic_id} "
            f"({recommendation.priority.value}): {recommendation.justification}"
        )
        return recommendation

    def _beginner(self, skip_counts: Mapping[str, int]) -> Recommendation:
        topic_id = self.catalog.beginner_path[0]
        return Recommendation(
            topic_id=topic_id,
            topic_name=self.catalog.topic_name(topic_id),
            justification="Perfect starting point for beginners",
            priority=PriorityTier.HIGH,
            suppression_count=skip_counts.get(topic_id, 0),
        )

    def _ranked(
        self,
        urgencies: Sequence[TopicUrgency],
        skip_counts: Mapping[str, int],
    ) -> Recommendation:
        weak = self.rank_weak(urgencies, skip_counts)
        if weak:
            top = weak[0]
            return self._build(top, self.weak_justification(top), PriorityTier.CRITICAL, skip_counts)

        general = self.rank_general(urgencies, skip_counts)
        if general:
            top = general[0]
            if top.is_unpracticed or top.average_score < self.config.pass_percentage:
                priority = PriorityTier.HIGH
            else:
                priority = PriorityTier.MEDIUM
            return self._build(top, self.general_justification(top), priority, skip_counts)

        # Every topic is weak and over-skipped: fall back to the least skipped one
        order = self._order(urgencies)
        top = min(urgencies, key=lambda u: (skip_counts.get(u.topic_id, 0), order[u.topic_id]))
        return self._build(top, self.weak_justification(top), PriorityTier.HIGH, skip_counts)

    def _build(
        self,
        urgency: TopicUrgency,
        justification: str,
        priority: PriorityTier,
        skip_counts: Mapping[str, int],
    ) -> Recommendation:
        return Recommendation(
            topic_id=urgency.topic_id,
            topic_name=self.catalog.topic_name(urgency.topic_id),
            justification=justification,
            priority=priority,
            urgency_score=urgency.urgency,
            suppression_count=skip_counts.get(urgency.topic_id, 0),
            score=urgency.average_score,
        )
