"""
Core Module - Shared domain models and configuration.

Components:
- models: AttemptRecord, QuestionItem, ExposureRecord, TopicUrgency, results
- engine_config: EngineConfig value object (all thresholds)
- catalog: practice topics, question themes, beginner path
- bank: QuestionBank with precomputed theme membership
- errors: exception hierarchy

All engine packages (analysis, assembly, coach) import shared concepts from
here rather than redefining them.
"""

from examcoach.core.bank import QuestionBank
from examcoach.core.catalog import DEFAULT_CATALOG, Theme, Topic, TopicCatalog
from examcoach.core.engine_config import DifficultyBand, EngineConfig
from examcoach.core.errors import (
    ConfigurationError,
    DuplicateQuestionError,
    ExamCoachError,
    InvalidExamResultError,
    InvalidHistoryError,
    StructuralShortfallError,
    UnknownQuestionError,
)
from examcoach.core.models import (
    AssemblyResult,
    AttemptRecord,
    Bucket,
    DifficultyTier,
    ExposureRecord,
    PriorityTier,
    QuestionItem,
    RecentPerformance,
    Recommendation,
    StructuralShortfall,
    ThemeGap,
    TopicUrgency,
    Trend,
)

__all__ = [
    # Models
    "AssemblyResult",
    "AttemptRecord",
    "Bucket",
    "DifficultyTier",
    "ExposureRecord",
    "PriorityTier",
    "QuestionItem",
    "RecentPerformance",
    "Recommendation",
    "StructuralShortfall",
    "ThemeGap",
    "TopicUrgency",
    "Trend",
    # Configuration
    "DifficultyBand",
    "EngineConfig",
    # Catalog
    "DEFAULT_CATALOG",
    "QuestionBank",
    "Theme",
    "Topic",
    "TopicCatalog",
    # Errors
    "ConfigurationError",
    "DuplicateQuestionError",
    "ExamCoachError",
    "InvalidExamResultError",
    "InvalidHistoryError",
    "StructuralShortfallError",
    "UnknownQuestionError",
]
