"""
Exception hierarchy for the exam coach engine.

Degraded-but-correct outcomes (a short bucket, an uncoverable theme) are not
exceptions; they are attached to the result as conditions. The exceptions
below cover misconfiguration, bad input at the ingestion boundary, and the
explicit opt-in to treat a structural shortfall as fatal.
"""

from __future__ import annotations


class ExamCoachError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(ExamCoachError):
    """Engine configuration is internally inconsistent."""


class DuplicateQuestionError(ExamCoachError):
    """A question bank was built with the same question id twice."""

    def __init__(self, question_id: str):
        super().__init__(f"Duplicate question id in bank: {question_id}")
        self.question_id = question_id


class UnknownQuestionError(ExamCoachError):
    """A question id does not exist in the bank."""

    def __init__(self, question_id: str):
        super().__init__(f"Unknown question id: {question_id}")
        self.question_id = question_id


class InvalidHistoryError(ExamCoachError):
    """Attempt history or question bank data failed validation on ingestion."""


class StructuralShortfallError(ExamCoachError):
    """Raised when a caller asks for a shortfall to be treated as fatal."""

    def __init__(self, shortfalls: list):
        details = ", ".join(
            f"{s.bucket}: {s.filled}/{s.required}" for s in shortfalls
        )
        super().__init__(f"Assessment could not be filled ({details})")
        self.shortfalls = shortfalls


class InvalidExamResultError(ExamCoachError, ValueError):
    """An exam result whose correct count is negative or exceeds its question count."""
