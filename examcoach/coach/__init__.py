"""
Learner coaching.

- RecommendationRanker: the single next-best topic
- LearningCoach: insights, mock-exam readiness and exam summaries
"""

from examcoach.coach.insights import (
    CoachInsight,
    ExamSummary,
    LearningCoach,
    LearningInsight,
    UnlockProgress,
    topic_averages,
)
from examcoach.coach.recommendation import RecommendationRanker, is_exam_topic

__all__ = [
    "CoachInsight",
    "ExamSummary",
    "LearningCoach",
    "LearningInsight",
    "RecommendationRanker",
    "UnlockProgress",
    "is_exam_topic",
    "topic_averages",
]
