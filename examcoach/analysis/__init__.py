"""
Learner analysis.

- WeakAreaAnalyzer: per-topic urgency, mastery and weakness flags
- RecentPerformanceEvaluator: short-window trend and difficulty tier
"""

from examcoach.analysis.performance import LearningPattern, RecentPerformanceEvaluator
from examcoach.analysis.weak_areas import WeakAreaAnalyzer

__all__ = [
    "LearningPattern",
    "RecentPerformanceEvaluator",
    "WeakAreaAnalyzer",
]
