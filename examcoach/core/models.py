"""
Core Models.

Canonical data model shared by every engine component:
- AttemptRecord: one completed practice test or mock exam (immutable)
- QuestionItem: one bank question (read-only to the engine)
- ExposureRecord: how often/recently a learner has seen a question
- TopicUrgency: derived per-topic weakness signal (never persisted)
- RecentPerformance: short-window trend and difficulty tier
- AssemblyResult: a generated assessment plus its non-fatal conditions
- Recommendation: the single next-best topic
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from examcoach.core.errors import StructuralShortfallError


class DifficultyTier(str, Enum):
    """Authored difficulty of a single question."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Bucket(str, Enum):
    """Structural bucket of an assessment."""

    NON_VISUAL = "non_visual"
    VISUAL = "visual"


class Trend(str, Enum):
    """Direction of recent performance."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class PriorityTier(str, Enum):
    """Traffic-light priority of a recommendation."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            PriorityTier.CRITICAL: "red",
            PriorityTier.HIGH: "yellow",
            PriorityTier.MEDIUM: "green",
        }[self]


# ============================================================================
# Time helpers
# ============================================================================


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so naive and aware values compare."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from ``earlier`` to ``later``."""
    return (as_utc(later) - as_utc(earlier)).total_seconds() / 86400.0


# ============================================================================
# Input records
# ============================================================================


@dataclass(frozen=True)
class AttemptRecord:
    """A completed practice attempt. Ordering by timestamp drives trend detection."""

    topic_id: str
    score: int  # 0-100 percentage
    total_questions: int
    correct_count: int
    timestamp: datetime

    @property
    def is_exam_like(self) -> bool:
        """Mock exams are recorded under topic ids such as ``mock-exam-2``."""
        topic = self.topic_id.lower()
        return "mock" in topic or "exam" in topic


@dataclass(frozen=True)
class QuestionItem:
    """A bank question. ``topic_id`` is the question's theme id."""

    id: str
    topic_id: str
    has_visual_asset: bool = False
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    tags: frozenset[str] = frozenset()

    @property
    def bucket(self) -> Bucket:
        return Bucket.VISUAL if self.has_visual_asset else Bucket.NON_VISUAL

    @property
    def theme_ids(self) -> frozenset[str]:
        """Own theme plus any extra tags."""
        return frozenset({self.topic_id}) | self.tags


@dataclass
class ExposureRecord:
    """
    Per-learner exposure of one question.

    Created on first exposure and updated on each later one; never deleted.
    """

    question_id: str
    times_shown: int = 0
    last_shown_at: datetime | None = None
    last_assessment_id: str | None = None

    def days_since_shown(self, now: datetime) -> float | None:
        if self.last_shown_at is None:
            return None
        return days_between(self.last_shown_at, now)

    def mark_shown(self, shown_at: datetime, assessment_id: str) -> None:
        self.times_shown += 1
        self.last_shown_at = shown_at
        self.last_assessment_id = assessment_id


# ============================================================================
# Derived values
# ============================================================================


@dataclass(frozen=True)
class TopicUrgency:
    """
    Weakness signal for one topic, recomputed from history on every call.

    A topic that was never attempted has zero average, mastery and urgency
    and is "unpracticed", which is distinct from "weak".
    """

    topic_id: str
    average_score: float = 0.0
    mastery: float = 0.0
    urgency: float = 0.0
    improvement_delta: float = 0.0
    is_weak: bool = False
    attempt_count: int = 0
    trend: Trend = Trend.STABLE

    @property
    def is_unpracticed(self) -> bool:
        return self.attempt_count == 0


@dataclass(frozen=True)
class RecentPerformance:
    """Short-window view of a learner's results."""

    average_score: float
    trend: Trend
    base_tier: int
    recommended_tier: int
    attempt_count: int
    exam_count: int = 0


# ============================================================================
# Non-fatal conditions
# ============================================================================


@dataclass(frozen=True)
class StructuralShortfall:
    """A bucket could not reach its fixed size even after every relaxation."""

    bucket: str
    required: int
    filled: int

    @property
    def missing(self) -> int:
        return self.required - self.filled


@dataclass(frozen=True)
class ThemeGap:
    """A mandatory theme had no replacement candidate anywhere in the pool."""

    tag: str


# ============================================================================
# Outputs
# ============================================================================


@dataclass
class AssemblyResult:
    """A generated assessment. Constructed fresh per request, never persisted here."""

    exam_id: str
    questions: list[QuestionItem]
    focus_topics: list[str]
    difficulty_histogram: dict[str, int]
    personalization_score: int
    target_tier: int
    shortfalls: list[StructuralShortfall] = field(default_factory=list)
    theme_gaps: list[ThemeGap] = field(default_factory=list)
    relaxed_exposure_count: int = 0
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    @property
    def non_visual(self) -> list[QuestionItem]:
        return [q for q in self.questions if not q.has_visual_asset]

    @property
    def visual(self) -> list[QuestionItem]:
        return [q for q in self.questions if q.has_visual_asset]

    @property
    def is_complete(self) -> bool:
        return not self.shortfalls

    def raise_for_shortfall(self) -> None:
        """Raise StructuralShortfallError if any bucket is under-filled."""
        if self.shortfalls:
            raise StructuralShortfallError(self.shortfalls)

    def to_dict(self) -> dict:
        return {
            "exam_id": self.exam_id,
            "question_ids": self.question_ids,
            "focus_topics": list(self.focus_topics),
            "difficulty_histogram": dict(self.difficulty_histogram),
            "personalization_score": self.personalization_score,
            "target_tier": self.target_tier,
            "shortfalls": [
                {"bucket": s.bucket, "required": s.required, "filled": s.filled}
                for s in self.shortfalls
            ],
            "theme_gaps": [g.tag for g in self.theme_gaps],
            "relaxed_exposure_count": self.relaxed_exposure_count,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class Recommendation:
    """The next-best topic for a learner."""

    topic_id: str
    topic_name: str
    justification: str
    priority: PriorityTier
    urgency_score: float = 0.0
    suppression_count: int = 0
    score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "topic_id": self.topic_id,
            "topic_name": self.topic_name,
            "justification": self.justification,
            "priority": self.priority.value,
            "urgency_score": round(self.urgency_score, 1),
            "suppression_count": self.suppression_count,
            "score": round(self.score, 1),
        }
