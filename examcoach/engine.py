"""
Assessment Engine.

Host-facing entry points:
- generate_assessment: personalized, fixed-structure practice exam
- record_exposure: commit the questions a learner actually took
- recommend_next_topic: single next-best topic with justification
- record_skip / record_attempt_completed: skip-counter bookkeeping

Selection is a pure computation over the supplied history plus a read of
the exposure ledger; the only write is record_exposure, called by the host
once the learner has taken the exam.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from loguru import logger

from examcoach.analysis.performance import RecentPerformanceEvaluator, clamp_tier
from examcoach.analysis.weak_areas import WeakAreaAnalyzer
from examcoach.assembly.difficulty import difficulty_histogram
from examcoach.assembly.exposure import ExposureFilter, ExposureRecorder
from examcoach.assembly.pipeline import AssemblyPipeline
from examcoach.assembly.state import AssemblyState
from examcoach.coach.recommendation import RecommendationRanker
from examcoach.core.bank import QuestionBank
from examcoach.core.engine_config import EngineConfig
from examcoach.core.models import (
    AssemblyResult,
    AttemptRecord,
    ExposureRecord,
    Recommendation,
    TopicUrgency,
    utcnow,
)
from examcoach.repositories.base import AttemptHistorySource, ExposureLedger, SkipCounterStore


class AssessmentEngine:
    """
    Facade over the analyzers, the assembly pipeline and the ranker.

    Args:
        bank: Question bank (its catalog drives topic/theme matching)
        exposure_ledger: Per-learner exposure store; None means nothing was seen
        skip_counters: Per-learner skip store; None means no skips
        history: Attempt history source used when a call passes no history
        config: Engine thresholds
        rng: Default random source; calls may pass their own
        pipeline: Assembly pipeline (defaults to the standard four steps)
    """

    def __init__(
        self,
        bank: QuestionBank,
        exposure_ledger: ExposureLedger | None = None,
        skip_counters: SkipCounterStore | None = None,
        history: AttemptHistorySource | None = None,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
        pipeline: AssemblyPipeline | None = None,
    ):
        self.bank = bank
        self.config = config or EngineConfig()
        self.exposure_ledger = exposure_ledger
        self.skip_counters = skip_counters
        self.history = history
        self.rng = rng or random.Random()

        self.analyzer = WeakAreaAnalyzer(self.config, bank.catalog)
        self.evaluator = RecentPerformanceEvaluator(self.config)
        self.exposure_filter = ExposureFilter(self.config)
        self.ranker = RecommendationRanker(self.config, bank.catalog)
        self.pipeline = pipeline or AssemblyPipeline.default(bank, self.config)
        self._recorder = ExposureRecorder(exposure_ledger) if exposure_ledger is not None else None

    # ========================================
    # Inputs
    # ========================================

    def attempts_for(
        self,
        learner_id: str,
        attempt_history: Iterable[AttemptRecord] | None = None,
    ) -> list[AttemptRecord]:
        if attempt_history is not None:
            return list(attempt_history)
        if self.history is not None:
            return self.history.get_attempts(learner_id)
        return []

    def skip_counts_for(
        self,
        learner_id: str,
        skip_counters: Mapping[str, int] | None = None,
    ) -> dict[str, int]:
        if skip_counters is not None:
            return dict(skip_counters)
        if self.skip_counters is not None:
            return self.skip_counters.get_counts(learner_id)
        return {}

    def analyze(self, attempts: Iterable[AttemptRecord]) -> list[TopicUrgency]:
        return self.analyzer.analyze(attempts)

    # ========================================
    # Assessment
    # ========================================

    def generate_assessment(
        self,
        learner_id: str,
        attempt_history: Sequence[AttemptRecord] | None = None,
        exam_id: str | None = None,
        *,
        rng: random.Random | None = None,
        now: datetime | None = None,
        difficulty_tier: int | None = None,
        strict: bool = False,
    ) -> AssemblyResult:
        """
        Build a personalized assessment for one learner.

        Args:
            learner_id: Learner whose exposure ledger gates the pool
            attempt_history: History snapshot (read from the history source if None)
            exam_id: Id for the assessment (generated if None)
            rng: Random source for this call; seed it for reproducible membership
            now: Reference time for exposure cooldowns and the recent window
            difficulty_tier: Fixed tier (1-10) instead of the recent-performance one
            strict: Raise StructuralShortfallError instead of returning a short exam

        Returns:
            AssemblyResult; check ``shortfalls`` and ``theme_gaps`` for degraded output
        """
        rng = rng or self.rng
        now = now or utcnow()
        exam_id = exam_id or f"exam-{uuid.uuid4().hex[:12]}"
        attempts = self.attempts_for(learner_id, attempt_history)

        urgencies = self.analyzer.analyze(attempts)
        weak = self.analyzer.weak_topics(urgencies)
        if difficulty_tier is not None:
            tier = clamp_tier(difficulty_tier)
        else:
            tier = self.evaluator.evaluate(attempts, now).recommended_tier

        ledger = self.exposure_ledger.get_all(learner_id) if self.exposure_ledger else {}
        eligible = self.exposure_filter.filter(self.bank, ledger, now)

        state = AssemblyState(
            bank=self.bank,
            config=self.config,
            rng=rng,
            eligible=eligible,
            weak_topics=weak,
            target_tier=tier,
        )
        self.pipeline.run(state)

        questions = state.selected()
        assert len({q.id for q in questions}) == len(questions), "duplicate question in assessment"
        # Presentation order only; membership is already fixed
        rng.shuffle(questions)

        total = self.config.total_questions
        weak_count = sum(1 for q in questions if state.is_weak_question(q))
        personalization = min(100, round(weak_count / total * 100)) if total else 0

        result = AssemblyResult(
            exam_id=exam_id,
            questions=questions,
            focus_topics=state.focus_topics,
            difficulty_histogram=difficulty_histogram(questions),
            personalization_score=personalization,
            target_tier=tier,
            shortfalls=list(state.shortfalls),
            theme_gaps=list(state.theme_gaps),
            relaxed_exposure_count=len(state.relaxed_ids),
            generated_at=now,
        )

        logger.info(
            f"Generated {exam_id} for {learner_id}: {len(questions)} questions, "
            f"tier {tier}, focus {result.focus_topics or 'none'}, "
            f"personalization {personalization}%"
        )
        if strict:
            result.raise_for_shortfall()
        return result

    def record_exposure(
        self,
        learner_id: str,
        question_ids: Iterable[str],
        exam_id: str,
        now: datetime | None = None,
    ) -> list[ExposureRecord]:
        """Commit exposures once the learner has actually taken ``exam_id``."""
        if self._recorder is None:
            raise RuntimeError("AssessmentEngine has no exposure ledger to record into")
        question_ids = list(question_ids)
        for question_id in question_ids:
            self.bank.get(question_id)
        return self._recorder.record(learner_id, question_ids, exam_id, now)

    # ========================================
    # Recommendation
    # ========================================

    def recommend_next_topic(
        self,
        learner_id: str,
        attempt_history: Sequence[AttemptRecord] | None = None,
        skip_counters: Mapping[str, int] | None = None,
    ) -> Recommendation:
        attempts = self.attempts_for(learner_id, attempt_history)
        urgencies = self.analyzer.analyze(attempts)
        skips = self.skip_counts_for(learner_id, skip_counters)
        return self.ranker.recommend(urgencies, skips, is_new_user=not attempts)

    def record_skip(self, learner_id: str, topic_id: str) -> int:
        """The learner bypassed a shown recommendation for ``topic_id``."""
        if self.skip_counters is None:
            raise RuntimeError("AssessmentEngine has no skip-counter store")
        count = self.skip_counters.increment(learner_id, topic_id)
        logger.info(f"Learner {learner_id} skipped {topic_id} ({count}x)")
        return count

    def clear_skip(self, learner_id: str, topic_id: str) -> None:
        if self.skip_counters is None:
            raise RuntimeError("AssessmentEngine has no skip-counter store")
        self.skip_counters.clear(learner_id, topic_id)

    def record_attempt_completed(self, learner_id: str, attempt: AttemptRecord) -> bool:
        """
        Append a finished attempt and clear its skip counter if it was the
        topic currently being recommended.

        Returns:
            True when a skip counter was cleared
        """
        shown = self.recommend_next_topic(learner_id)
        if self.history is not None:
            self.history.append(learner_id, attempt)

        if self.skip_counters is not None and shown.topic_id == attempt.topic_id:
            self.skip_counters.clear(learner_id, attempt.topic_id)
            logger.debug(f"Cleared skip counter for {attempt.topic_id} ({learner_id})")
            return True
        return False
