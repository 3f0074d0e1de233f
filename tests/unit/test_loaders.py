"""
Unit tests for JSON ingestion of question banks and attempt histories.
"""

import json
from datetime import UTC, datetime

import pytest

from examcoach.core.errors import DuplicateQuestionError, InvalidHistoryError
from examcoach.core.models import DifficultyTier
from examcoach.loaders import load_history, load_question_bank, parse_history, parse_questions


def attempt(**overrides):
    data = {
        "topicId": "priority-rules",
        "score": 80,
        "totalQuestions": 25,
        "correctCount": 20,
        "timestamp": "2025-05-01T10:00:00Z",
    }
    data.update(overrides)
    return data


class TestQuestions:
    def test_camel_case_list(self):
        [question] = parse_questions(
            [{"id": "q1", "topicId": "speed-limits", "hasVisualAsset": True, "difficulty": "hard"}]
        )

        assert question.id == "q1"
        assert question.topic_id == "speed-limits"
        assert question.has_visual_asset
        assert question.difficulty == DifficultyTier.HARD

    def test_snake_case_wrapped(self):
        [question] = parse_questions(
            {"questions": [{"id": "q1", "topic_id": "overtaking", "tags": ["lane-changing"]}]}
        )

        assert not question.has_visual_asset
        assert question.difficulty == DifficultyTier.MEDIUM
        assert question.tags == frozenset({"lane-changing"})

    def test_bad_difficulty_rejected(self):
        with pytest.raises(InvalidHistoryError):
            parse_questions([{"id": "q1", "topicId": "overtaking", "difficulty": "brutal"}])

    def test_missing_topic_rejected(self):
        with pytest.raises(InvalidHistoryError):
            parse_questions([{"id": "q1"}])


class TestHistory:
    def test_valid_attempt(self):
        [record] = parse_history([attempt()])

        assert record.topic_id == "priority-rules"
        assert record.score == 80
        assert record.correct_count == 20
        assert record.timestamp == datetime(2025, 5, 1, 10, 0, tzinfo=UTC)

    def test_naive_timestamp_treated_as_utc(self):
        [record] = parse_history({"attempts": [attempt(timestamp="2025-05-01T10:00:00")]})
        assert record.timestamp.tzinfo is not None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"score": 120},
            {"score": -1},
            {"correctCount": 30},
            {"totalQuestions": -5},
            {"timestamp": "yesterday"},
        ],
    )
    def test_invalid_attempt_rejected(self, overrides):
        with pytest.raises(InvalidHistoryError):
            parse_history([attempt(**overrides)])

    def test_timestamps_must_not_decrease(self):
        with pytest.raises(InvalidHistoryError):
            parse_history(
                [
                    attempt(timestamp="2025-05-02T10:00:00Z"),
                    attempt(timestamp="2025-05-01T10:00:00Z"),
                ]
            )

    def test_equal_timestamps_allowed(self):
        assert len(parse_history([attempt(), attempt(score=60)])) == 2


class TestFiles:
    def test_load_bank(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "q1", "topicId": "overtaking"},
                    {"id": "q2", "topicId": "speed-limits", "hasVisualAsset": True},
                ]
            )
        )
        bank = load_question_bank(path)

        assert len(bank) == 2
        assert bank.get("q2").has_visual_asset

    def test_duplicate_ids_in_file(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text(json.dumps([{"id": "q1", "topicId": "a"}, {"id": "q1", "topicId": "b"}]))

        with pytest.raises(DuplicateQuestionError):
            load_question_bank(path)

    def test_load_history(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps({"attempts": [attempt()]}))
        assert len(load_history(path)) == 1

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{not json")

        with pytest.raises(InvalidHistoryError):
            load_history(path)
