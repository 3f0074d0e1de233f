"""
Unit tests for EngineConfig and its derived values.
"""

import pytest

from examcoach.config import Settings
from examcoach.core.engine_config import EngineConfig
from examcoach.core.errors import ConfigurationError
from examcoach.core.models import Bucket, DifficultyTier


class TestStructure:
    def test_defaults_match_exam_format(self):
        config = EngineConfig()
        assert config.total_questions == 50
        assert config.bucket_size(Bucket.NON_VISUAL) == 30
        assert config.bucket_size(Bucket.VISUAL) == 20
        assert config.non_visual_ratio == pytest.approx(0.6)
        assert config.pass_percentage == 88

    def test_bucket_split_must_sum_to_total(self):
        with pytest.raises(ConfigurationError):
            EngineConfig(total_questions=50, non_visual_questions=30, visual_questions=10)

    def test_max_times_shown_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            EngineConfig(max_times_shown=0)

    def test_with_overrides_revalidates(self):
        config = EngineConfig()
        lenient = config.with_overrides(weak_threshold=50.0)

        assert lenient.weak_threshold == 50.0
        assert config.weak_threshold == 60.0
        with pytest.raises(ConfigurationError):
            config.with_overrides(visual_questions=25)


class TestWeakShare:
    @pytest.mark.parametrize(
        "weak_count, share",
        [(0, 0.0), (1, 0.7), (2, 0.6), (3, 0.6), (4, 0.5), (9, 0.5)],
    )
    def test_share_by_weak_topic_count(self, weak_count, share):
        assert EngineConfig().weak_share(weak_count) == share


class TestTiers:
    @pytest.mark.parametrize(
        "average, tier",
        [(95, 9), (90, 9), (85, 7), (75, 5), (65, 4), (55, 3), (45, 2), (0, 2)],
    )
    def test_tier_for_average(self, average, tier):
        assert EngineConfig().tier_for_average(average) == tier

    def test_beginner_band_has_no_hard_questions(self):
        targets = EngineConfig().difficulty_targets(3, Bucket.NON_VISUAL)
        assert targets == {
            DifficultyTier.EASY: 16,
            DifficultyTier.MEDIUM: 14,
            DifficultyTier.HARD: 0,
        }

    def test_expert_band_is_hard_dominant(self):
        targets = EngineConfig().difficulty_targets(10, Bucket.VISUAL)
        assert targets[DifficultyTier.HARD] == 14
        assert targets[DifficultyTier.EASY] == 0

    def test_targets_rescale_to_smaller_exams(self):
        config = EngineConfig(total_questions=10, non_visual_questions=6, visual_questions=4)

        assert config.difficulty_targets(3, Bucket.NON_VISUAL) == {
            DifficultyTier.EASY: 3,
            DifficultyTier.MEDIUM: 3,
            DifficultyTier.HARD: 0,
        }
        for tier in range(1, 11):
            for bucket in (Bucket.NON_VISUAL, Bucket.VISUAL):
                assert sum(config.difficulty_targets(tier, bucket).values()) == config.bucket_size(bucket)


class TestFromSettings:
    def test_settings_flow_into_config(self):
        settings = Settings(
            exam_pass_percentage=80,
            skip_limit=5,
            weak_score_threshold=55.0,
            min_days_since_seen=3,
        )
        config = EngineConfig.from_settings(settings)

        assert config.pass_percentage == 80
        assert config.skip_limit == 5
        assert config.weak_threshold == 55.0
        assert config.min_days_since_seen == 3
        assert config.total_questions == 50
