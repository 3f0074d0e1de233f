"""
Unit tests for StructuralAssembler: weak quotas, backfill and relaxation.
"""

import pytest

from examcoach.assembly.assembler import StructuralAssembler, WeakQuota
from examcoach.assembly.selector import WeightedCandidateSelector
from examcoach.core.models import Bucket, StructuralShortfall


def assemble(state):
    WeightedCandidateSelector(state.bank, state.config).apply(state)
    StructuralAssembler(state.config).apply(state)
    return state


@pytest.fixture
def priority_bank(bank_factory, questions_factory):
    """Default bank plus plenty of priority-rules questions in both buckets."""
    extra = questions_factory(30, False, ("priority-rules",), prefix="pr-nv") + questions_factory(
        20, True, ("priority-rules",), prefix="pr-v"
    )
    return bank_factory(40, 25, extra=extra)


class TestWeakQuota:
    @pytest.mark.parametrize(
        "weak_count, quota",
        [
            (0, WeakQuota(0, 0, 0)),
            (1, WeakQuota(35, 21, 14)),
            (2, WeakQuota(30, 18, 12)),
            (3, WeakQuota(30, 18, 12)),
            (4, WeakQuota(25, 15, 10)),
        ],
    )
    def test_quota_by_weak_topic_count(self, weak_count, quota):
        assert StructuralAssembler().weak_quota(weak_count) == quota


class TestFill:
    def test_fills_both_buckets_exactly(self, bank_factory, state_factory):
        state = assemble(state_factory(bank_factory(40, 25)))

        assert len(state.buckets[Bucket.NON_VISUAL]) == 30
        assert len(state.buckets[Bucket.VISUAL]) == 20
        assert state.shortfalls == []
        assert state.relaxed_ids == set()
        assert state.weak_selected_count == 0

    def test_weak_quota_is_honoured(self, priority_bank, state_factory, weak_topic_factory):
        state = assemble(state_factory(priority_bank, weak_topics=[weak_topic_factory("priority-rules")]))

        weak_nv = [q for q in state.buckets[Bucket.NON_VISUAL] if q.topic_id == "priority-rules"]
        weak_v = [q for q in state.buckets[Bucket.VISUAL] if q.topic_id == "priority-rules"]
        assert len(weak_nv) == 21
        assert len(weak_v) == 14
        assert state.weak_selected_count == 35
        assert state.weak_quota == {Bucket.NON_VISUAL: 21, Bucket.VISUAL: 14}

    def test_every_weak_topic_counts_toward_share(self, priority_bank, state_factory, weak_topic_factory):
        weak = [weak_topic_factory(f"topic-{i}", 30.0 + i) for i in range(4)]
        weak.insert(0, weak_topic_factory("priority-rules", 20.0))
        state = assemble(state_factory(priority_bank, weak_topics=weak))

        assert state.weak_quota == {Bucket.NON_VISUAL: 15, Bucket.VISUAL: 10}

    def test_no_duplicates(self, priority_bank, state_factory, weak_topic_factory):
        state = assemble(state_factory(priority_bank, weak_topics=[weak_topic_factory("priority-rules")]))
        ids = [q.id for q in state.selected()]
        assert len(ids) == len(set(ids))


class TestBackfill:
    def test_relaxes_exposure_on_small_pool(self, bank_factory, state_factory):
        bank = bank_factory(30, 20)
        blocked = {f"nv-{i:03d}" for i in range(5)}
        state = assemble(state_factory(bank, eligible=[q for q in bank if q.id not in blocked]))

        assert len(state.buckets[Bucket.NON_VISUAL]) == 30
        assert state.relaxed_ids == blocked
        assert state.shortfalls == []

    def test_exhausted_bank_reports_shortfall(self, bank_factory, state_factory):
        state = assemble(state_factory(bank_factory(20, 20)))

        assert len(state.buckets[Bucket.NON_VISUAL]) == 20
        assert state.shortfalls == [StructuralShortfall("non_visual", 30, 20)]
        assert state.shortfalls[0].missing == 10

    def test_second_run_changes_nothing(self, question_bank, state_factory):
        state = assemble(state_factory(question_bank))
        before = [q.id for q in state.selected()]
        StructuralAssembler(state.config).apply(state)

        assert [q.id for q in state.selected()] == before
