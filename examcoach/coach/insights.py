"""
Coaching insights.

Rule-based feedback built on the analyzers:
- LearningInsight: recommended tier, learning pattern and a short reasoning
- CoachInsight: up to three dashboard cards (recommendation, mistake, strength)
- UnlockProgress: whether mock exams are unlocked and how far along each
  requirement is
- ExamSummary: verdict and next steps after a mock exam
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime

from loguru import logger

from examcoach.analysis.performance import LearningPattern, RecentPerformanceEvaluator
from examcoach.analysis.weak_areas import WeakAreaAnalyzer, mean
from examcoach.core import thresholds as t
from examcoach.core.catalog import DEFAULT_CATALOG, TopicCatalog
from examcoach.core.engine_config import EngineConfig
from examcoach.core.errors import InvalidExamResultError
from examcoach.core.models import AttemptRecord, PriorityTier, Recommendation, TopicUrgency


@dataclass(frozen=True)
class LearningInsight:
    recommended_tier: int
    pattern: LearningPattern
    reasoning: str
    suggested_topics: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "recommended_tier": self.recommended_tier,
            "pattern": self.pattern.value,
            "reasoning": self.reasoning,
            "suggested_topics": list(self.suggested_topics),
        }


@dataclass(frozen=True)
class CoachInsight:
    """One dashboard card. ``color`` is red / amber / green."""

    kind: str  # recommendation | mistake | strength
    message: str
    color: str
    explanation: str
    topic_id: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UnlockProgress:
    completed_tests: int
    average_score: int
    min_test_score: int
    study_hours: float
    can_unlock: bool
    required_tests: int = t.UNLOCK_MIN_ATTEMPTS
    required_average: int = t.UNLOCK_MIN_AVERAGE
    required_min_score: int = t.UNLOCK_MIN_SINGLE_SCORE
    required_study_hours: float = t.UNLOCK_MIN_STUDY_HOURS

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ExamSummary:
    correct: int
    total: int
    percentage: int
    passed: bool
    summary: str
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def topic_averages(attempts: Iterable[AttemptRecord]) -> dict[str, int]:
    """Rounded mean score per topic, in first-seen order."""
    grouped = WeakAreaAnalyzer.group_scores(attempts)
    return {topic: round(mean(scores)) for topic, scores in grouped.items()}


class LearningCoach:
    """Dashboard-level feedback for one learner's history."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        catalog: TopicCatalog | None = None,
    ):
        self.config = config or EngineConfig()
        self.catalog = catalog or DEFAULT_CATALOG
        self.analyzer = WeakAreaAnalyzer(self.config, self.catalog)
        self.evaluator = RecentPerformanceEvaluator(self.config)

    # ========================================
    # Learning pattern
    # ========================================

    def learning_insight(
        self,
        attempts: Sequence[AttemptRecord],
        now: datetime | None = None,
    ) -> LearningInsight:
        if not attempts:
            return LearningInsight(
                recommended_tier=self.config.new_learner_tier,
                pattern=LearningPattern.STABLE,
                reasoning="Starting fresh - beginning with beginner-intermediate level",
                suggested_topics=[self.catalog.topic_name(self.catalog.beginner_path[0])],
            )

        performance = self.evaluator.evaluate(attempts, now)
        recent = [float(a.score) for a in self.evaluator.recent_attempts(attempts, now)]
        pattern = self.evaluator.learning_pattern(recent)

        weak = self.practice_weak_topics(attempts)
        suggested = [
            self.catalog.topic_name(u.topic_id)
            for u in weak[: self.config.focus_topic_count]
        ] or [self.catalog.topic_name(self.catalog.beginner_path[0])]

        return LearningInsight(
            recommended_tier=performance.recommended_tier,
            pattern=pattern,
            reasoning=self.reasoning(pattern, performance.average_score),
            suggested_topics=suggested,
        )

    def practice_weak_topics(self, attempts: Iterable[AttemptRecord]) -> list[TopicUrgency]:
        """Weak practiced topics, mock exams left out."""
        practice = [a for a in attempts if not a.is_exam_like]
        return self.analyzer.weak_topics(self.analyzer.analyze(practice, include_catalog=False))

    @staticmethod
    def reasoning(pattern: LearningPattern, average: float) -> str:
        if pattern == LearningPattern.IMPROVING:
            return (
                f"Your scores are improving! Current average: {average:.1f}%. "
                f"Ready for slightly harder questions."
            )
        if pattern == LearningPattern.DECLINING:
            return f"Scores are declining. Let's focus on fundamentals. Average: {average:.1f}%."
        if pattern == LearningPattern.INCONSISTENT:
            return (
                f"Performance is inconsistent. Building consistency with balanced "
                f"difficulty. Average: {average:.1f}%."
            )
        return f"Stable performance at {average:.1f}%. Maintaining current difficulty level."

    # ========================================
    # Dashboard cards
    # ========================================

    def coach_insights(
        self,
        attempts: Sequence[AttemptRecord],
        recommendation: Recommendation,
    ) -> list[CoachInsight]:
        """Recommendation card, a mistake area and a strength (at most three)."""
        averages = topic_averages(attempts)
        insights = [
            CoachInsight(
                kind="recommendation",
                message=recommendation.topic_name,
                color="red" if recommendation.priority == PriorityTier.CRITICAL else "amber",
                explanation=recommendation.justification,
                topic_id=recommendation.topic_id,
            )
        ]

        mistake = next(
            (
                tid for tid in self.catalog.topic_ids
                if tid in averages
                and self.config.weak_threshold <= averages[tid] < 75
                and tid != recommendation.topic_id
            ),
            None,
        )
        if mistake:
            insights.append(
                CoachInsight(
                    kind="mistake",
                    message=self.catalog.topic_name(mistake),
                    color="amber",
                    explanation=f"{averages[mistake]}% - needs improvement",
                    topic_id=mistake,
                )
            )
        else:
            others = sorted(
                (tid for tid in averages if tid != recommendation.topic_id),
                key=lambda tid: averages[tid],
            )
            if others:
                insights.append(
                    CoachInsight(
                        kind="mistake",
                        message=self.catalog.topic_name(others[0]),
                        color="amber",
                        explanation=f"{averages[others[0]]}% - needs practice",
                        topic_id=others[0],
                    )
                )

        strength = next(
            (tid for tid in self.catalog.topic_ids if averages.get(tid, 0) >= 85),
            None,
        )
        if strength:
            insights.append(
                CoachInsight(
                    kind="strength",
                    message=self.catalog.topic_name(strength),
                    color="green",
                    explanation=f"{averages[strength]}% - good progress",
                    topic_id=strength,
                )
            )
        else:
            insights.append(
                CoachInsight(
                    kind="strength",
                    message="Keep Practicing",
                    color="green",
                    explanation="You're building skills",
                )
            )

        return insights[:3]

    # ========================================
    # Mock exam readiness
    # ========================================

    def practice_average(self, attempts: Iterable[AttemptRecord]) -> int:
        averages = topic_averages(a for a in attempts if not a.is_exam_like)
        if not averages:
            return 0
        return round(mean(list(averages.values())))

    @staticmethod
    def study_hours(attempts: Iterable[AttemptRecord]) -> float:
        questions = sum(a.total_questions for a in attempts)
        return round(questions / t.QUESTIONS_PER_STUDY_HOUR, 1)

    def unlock_progress(self, attempts: Sequence[AttemptRecord]) -> UnlockProgress:
        practice = [a for a in attempts if not a.is_exam_like]
        average = self.practice_average(practice)
        min_score = min((a.score for a in practice), default=0)
        hours = self.study_hours(attempts)

        can_unlock = (
            len(practice) >= t.UNLOCK_MIN_ATTEMPTS
            and average >= t.UNLOCK_MIN_AVERAGE
            and min_score >= t.UNLOCK_MIN_SINGLE_SCORE
            and hours >= t.UNLOCK_MIN_STUDY_HOURS
        )
        logger.debug(
            f"Unlock check: {len(practice)} tests, avg {average}%, min {min_score}%, "
            f"{hours}h -> {can_unlock}"
        )
        return UnlockProgress(
            completed_tests=len(practice),
            average_score=average,
            min_test_score=min_score,
            study_hours=hours,
            can_unlock=can_unlock,
        )

    # ========================================
    # Mock exam result
    # ========================================

    def summarize_exam(
        self,
        correct: int,
        total: int,
        attempts: Sequence[AttemptRecord] = (),
    ) -> ExamSummary:
        """
        Verdict and next steps for a finished mock exam.

        Args:
            correct: Questions answered correctly
            total: Questions in the exam
            attempts: Learner history, used to name the weakest topic

        Returns:
            ExamSummary
        """
        if not 0 <= correct <= total:
            raise InvalidExamResultError(f"{correct} correct out of {total} is not a valid exam result")
        percentage = round(correct / total * 100) if total else 0

        if percentage >= 80:
            summary = "Excellent performance! You're well prepared for the real exam."
        elif percentage >= 60:
            summary = "Good progress! Keep practicing to improve your weak areas."
        else:
            summary = "Keep practicing! Focus on your weak areas to improve."

        recommendations = []
        weak = self.practice_weak_topics(attempts)
        if weak:
            top = weak[0]
            recommendations.append(
                f"Focus on: {self.catalog.topic_name(top.topic_id)} "
                f"(current: {top.average_score:.0f}%)"
            )
        if percentage < 60:
            recommendations.append("Take more practice tests before attempting the real exam")
        elif percentage < 80:
            recommendations.append("Take 1-2 more mock exams to build confidence")

        return ExamSummary(
            correct=correct,
            total=total,
            percentage=percentage,
            passed=percentage >= self.config.pass_percentage,
            summary=summary,
            recommendations=recommendations,
        )
