"""
Ingestion boundary.

Validates raw JSON (question banks, attempt histories) with pydantic and
converts it into engine records. The engine trusts its inputs; anything
malformed is rejected here with InvalidHistoryError.

Accepted shapes:
- question bank: ``[{...}, ...]`` or ``{"questions": [...]}``
- attempt history: ``[{...}, ...]`` or ``{"attempts": [...]}``

Field names may be snake_case or camelCase (``topicId``, ``hasVisualAsset``).
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from examcoach.core.bank import QuestionBank
from examcoach.core.catalog import TopicCatalog
from examcoach.core.errors import InvalidHistoryError
from examcoach.core.models import AttemptRecord, DifficultyTier, QuestionItem, as_utc


# ========================================
# Models
# ========================================


class QuestionModel(BaseModel):
    """One question bank entry."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    topic_id: str = Field(min_length=1, alias="topicId")
    has_visual_asset: bool = Field(default=False, alias="hasVisualAsset")
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    tags: list[str] = Field(default_factory=list)

    def to_item(self) -> QuestionItem:
        return QuestionItem(
            id=self.id,
            topic_id=self.topic_id,
            has_visual_asset=self.has_visual_asset,
            difficulty=self.difficulty,
            tags=frozenset(self.tags),
        )


class QuestionBankModel(BaseModel):
    questions: list[QuestionModel]


class AttemptModel(BaseModel):
    """One completed attempt."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic_id: str = Field(min_length=1, alias="topicId")
    score: int = Field(ge=0, le=100)
    total_questions: int = Field(ge=0, alias="totalQuestions")
    correct_count: int = Field(ge=0, alias="correctCount")
    timestamp: datetime

    @model_validator(mode="after")
    def check_counts(self) -> AttemptModel:
        if self.correct_count > self.total_questions:
            raise ValueError(
                f"correct_count {self.correct_count} exceeds total_questions {self.total_questions}"
            )
        return self

    def to_record(self) -> AttemptRecord:
        return AttemptRecord(
            topic_id=self.topic_id,
            score=self.score,
            total_questions=self.total_questions,
            correct_count=self.correct_count,
            timestamp=as_utc(self.timestamp),
        )


class AttemptHistoryModel(BaseModel):
    attempts: list[AttemptModel]

    @model_validator(mode="after")
    def check_order(self) -> AttemptHistoryModel:
        for previous, current in zip(self.attempts, self.attempts[1:]):
            if as_utc(current.timestamp) < as_utc(previous.timestamp):
                raise ValueError(
                    f"Timestamps must be non-decreasing: {current.timestamp.isoformat()} "
                    f"follows {previous.timestamp.isoformat()}"
                )
        return self


# ========================================
# Parsing
# ========================================


def _wrap(data: Any, key: str) -> dict:
    if isinstance(data, list):
        return {key: data}
    return data


def parse_questions(data: Any) -> list[QuestionItem]:
    try:
        model = QuestionBankModel.model_validate(_wrap(data, "questions"))
    except ValidationError as e:
        raise InvalidHistoryError(f"Invalid question bank: {e}") from e
    return [q.to_item() for q in model.questions]


def parse_history(data: Any) -> list[AttemptRecord]:
    try:
        model = AttemptHistoryModel.model_validate(_wrap(data, "attempts"))
    except ValidationError as e:
        raise InvalidHistoryError(f"Invalid attempt history: {e}") from e
    return [a.to_record() for a in model.attempts]


def _read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidHistoryError(f"{path} is not valid JSON: {e}") from e


def load_question_bank(path: str | Path, catalog: TopicCatalog | None = None) -> QuestionBank:
    questions = parse_questions(_read_json(path))
    logger.info(f"Loaded {len(questions)} questions from {path}")
    return QuestionBank(questions, catalog)


def load_history(path: str | Path) -> list[AttemptRecord]:
    attempts = parse_history(_read_json(path))
    logger.info(f"Loaded {len(attempts)} attempts from {path}")
    return attempts
