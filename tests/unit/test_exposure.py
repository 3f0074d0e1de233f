"""
Unit tests for the exposure filter and recorder (anti-repetition).
"""

from datetime import timedelta

import pytest

from examcoach.assembly.exposure import ExposureFilter, ExposureRecorder
from examcoach.core.models import ExposureRecord


@pytest.fixture
def exposure_filter():
    return ExposureFilter()


def shown(times: int, days_ago: float, now) -> ExposureRecord:
    return ExposureRecord(
        question_id="q1",
        times_shown=times,
        last_shown_at=now - timedelta(days=days_ago),
        last_assessment_id="exam-0",
    )


class TestEligibility:
    def test_never_shown_is_eligible(self, exposure_filter, now):
        assert exposure_filter.is_eligible(None, now)
        assert exposure_filter.is_eligible(ExposureRecord("q1"), now)

    def test_retired_after_three_showings(self, exposure_filter, now):
        assert not exposure_filter.is_eligible(shown(3, 30, now), now)

    def test_cooldown(self, exposure_filter, now):
        assert not exposure_filter.is_eligible(shown(2, 3, now), now)
        assert exposure_filter.is_eligible(shown(2, 7, now), now)
        assert exposure_filter.is_eligible(shown(1, 8, now), now)

    def test_filter_pool(self, exposure_filter, question_bank, now):
        ledger = {
            "nv-000": shown(1, 1, now),
            "nv-001": shown(3, 60, now),
            "nv-002": shown(1, 10, now),
        }
        eligible_ids = {q.id for q in exposure_filter.filter(question_bank, ledger, now)}

        assert "nv-000" not in eligible_ids
        assert "nv-001" not in eligible_ids
        assert "nv-002" in eligible_ids
        assert len(eligible_ids) == len(question_bank) - 2


class TestRecorder:
    def test_first_exposure_creates_records(self, exposure_ledger, now):
        recorder = ExposureRecorder(exposure_ledger)
        updated = recorder.record("alice", ["q1", "q2", "q1"], "exam-1", now)

        assert [r.question_id for r in updated] == ["q1", "q2"]
        stored = exposure_ledger.get_all("alice")
        assert stored["q1"].times_shown == 1
        assert stored["q1"].last_shown_at == now
        assert stored["q1"].last_assessment_id == "exam-1"

    def test_repeat_exposure_increments(self, exposure_ledger, now):
        recorder = ExposureRecorder(exposure_ledger)
        recorder.record("alice", ["q1"], "exam-1", now)
        recorder.record("alice", ["q1"], "exam-2", now + timedelta(days=8))

        record = exposure_ledger.get_all("alice")["q1"]
        assert record.times_shown == 2
        assert record.last_assessment_id == "exam-2"

    def test_third_exposure_retires_question(self, exposure_ledger, exposure_filter, now):
        recorder = ExposureRecorder(exposure_ledger)
        for i in range(3):
            recorder.record("alice", ["q1"], f"exam-{i}", now + timedelta(days=10 * i))

        record = exposure_ledger.get_all("alice")["q1"]
        assert not exposure_filter.is_eligible(record, now + timedelta(days=365))

    def test_learners_are_isolated(self, exposure_ledger, now):
        ExposureRecorder(exposure_ledger).record("alice", ["q1"], "exam-1", now)
        assert exposure_ledger.get_all("bob") == {}
