"""
examcoach - Adaptive learning & assessment engine for driving theory exam prep.

Turns a learner's attempt history into:
- a ranked next-topic recommendation
- a fixed-structure practice exam weighted toward weak topics, with
  anti-repetition, difficulty balancing and mandatory theme coverage

Typical use:
    from examcoach import AssessmentEngine, QuestionBank

    engine = AssessmentEngine(QuestionBank(questions), exposure_ledger=ledger)
    result = engine.generate_assessment("alice", attempts)
    engine.record_exposure("alice", result.question_ids, result.exam_id)
"""

__version__ = "0.1.0"

from examcoach.core import (
    AssemblyResult,
    AttemptRecord,
    DifficultyTier,
    EngineConfig,
    ExamCoachError,
    QuestionBank,
    QuestionItem,
    Recommendation,
)
from examcoach.engine import AssessmentEngine

__all__ = [
    "AssemblyResult",
    "AssessmentEngine",
    "AttemptRecord",
    "DifficultyTier",
    "EngineConfig",
    "ExamCoachError",
    "QuestionBank",
    "QuestionItem",
    "Recommendation",
    "__version__",
]
