"""
Unit tests for WeightedCandidateSelector.
"""

import random

import pytest

from examcoach.assembly.selector import WeightedCandidateSelector
from examcoach.core.bank import QuestionBank
from examcoach.core.models import TopicUrgency


@pytest.fixture
def small_bank(question_factory):
    return QuestionBank(
        [
            question_factory("p1", "priority-rules"),
            question_factory("r1", "roundabout-rules"),
            question_factory("s1", "speed-limits"),
            question_factory("p2", "priority-rules", visual=True),
            question_factory("r2", "roundabout-rules", visual=True),
            question_factory("s2", "speed-limits", visual=True),
        ]
    )


@pytest.fixture
def focus(weak_topic_factory):
    return [
        weak_topic_factory("roundabout-rules", mastery=55.0),
        weak_topic_factory("priority-rules", mastery=40.0),
    ]


class TestWeights:
    def test_weight_is_inverse_mastery(self, small_bank, weak_topic_factory):
        selector = WeightedCandidateSelector(small_bank)
        assert selector.weight_for(weak_topic_factory("x", mastery=40.0)) == 60.0

    def test_unattempted_topic_uses_default_mastery(self, small_bank):
        selector = WeightedCandidateSelector(small_bank)
        assert selector.weight_for(TopicUrgency("x", is_weak=True)) == 50.0


class TestPartition:
    def test_splits_weak_and_other(self, small_bank, focus):
        partition = WeightedCandidateSelector(small_bank).partition(small_bank, focus, random.Random(3))

        assert {q.id for q in partition.weak_questions} == {"p1", "p2", "r1", "r2"}
        assert {q.id for q in partition.other} == {"s1", "s2"}

    def test_lowest_mastery_topic_first(self, small_bank, focus):
        partition = WeightedCandidateSelector(small_bank).partition(small_bank, focus, random.Random(3))
        topics = [c.topic_id for c in partition.weak]

        assert topics == ["priority-rules", "priority-rules", "roundabout-rules", "roundabout-rules"]
        assert [c.weight for c in partition.weak] == [60.0, 60.0, 45.0, 45.0]

    def test_same_seed_same_order(self, small_bank, focus):
        selector = WeightedCandidateSelector(small_bank)
        first = selector.partition(small_bank, focus, random.Random(11))
        second = selector.partition(small_bank, focus, random.Random(11))

        assert [q.id for q in first.weak_questions] == [q.id for q in second.weak_questions]
        assert [q.id for q in first.other] == [q.id for q in second.other]

    def test_topic_matches_through_themes(self, small_bank, weak_topic_factory):
        partition = WeightedCandidateSelector(small_bank).partition(
            small_bank, [weak_topic_factory("speed-safety")], random.Random(0)
        )
        assert {q.id for q in partition.weak_questions} == {"s1", "s2"}


class TestApply:
    def test_uses_only_focus_topics(self, question_bank, state_factory, weak_topic_factory):
        weak = [
            weak_topic_factory("priority-rules", 30.0),
            weak_topic_factory("overtaking", 35.0),
            weak_topic_factory("hazard-perception", 40.0),
            weak_topic_factory("speed-safety", 45.0),
        ]
        state = state_factory(question_bank, weak_topics=weak)
        WeightedCandidateSelector(question_bank).apply(state)

        assert state.weak_candidates
        assert not any(q.topic_id in ("speed-limits", "safety-rules") for q in state.weak_candidates)
        assert len(state.weak_candidates) + len(state.other_candidates) == len(question_bank)

    def test_second_apply_is_noop(self, question_bank, state_factory, weak_topic_factory):
        state = state_factory(question_bank, weak_topics=[weak_topic_factory("priority-rules")])
        selector = WeightedCandidateSelector(question_bank)
        selector.apply(state)
        before = [q.id for q in state.weak_candidates + state.other_candidates]
        selector.apply(state)

        assert [q.id for q in state.weak_candidates + state.other_candidates] == before
