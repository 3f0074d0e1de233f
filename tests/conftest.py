"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
question/bank/attempt factories with fixed timestamps, seeded random
sources and in-memory repositories.
"""
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from examcoach.assembly.state import AssemblyState  # noqa: E402
from examcoach.core.bank import QuestionBank  # noqa: E402
from examcoach.core.catalog import DEFAULT_CATALOG  # noqa: E402
from examcoach.core.engine_config import EngineConfig  # noqa: E402
from examcoach.core.models import (  # noqa: E402
    AttemptRecord,
    DifficultyTier,
    QuestionItem,
    TopicUrgency,
)
from examcoach.repositories.memory import (  # noqa: E402
    InMemoryAttemptHistory,
    InMemoryExposureLedger,
    InMemorySkipCounters,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
DIFFICULTIES = (DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.HARD)
MANDATORY_THEMES = tuple(DEFAULT_CATALOG.mandatory_themes)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine + repositories)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Factories
# ========================================


def make_question(
    qid: str,
    topic_id: str = "hazard-perception",
    visual: bool = False,
    difficulty: DifficultyTier = DifficultyTier.MEDIUM,
    tags=(),
) -> QuestionItem:
    return QuestionItem(
        id=qid,
        topic_id=topic_id,
        has_visual_asset=visual,
        difficulty=difficulty,
        tags=frozenset(tags),
    )


def make_questions(
    count: int,
    visual: bool = False,
    themes=MANDATORY_THEMES,
    prefix: str | None = None,
    difficulties=DIFFICULTIES,
) -> list[QuestionItem]:
    """``count`` questions cycling through ``themes`` and ``difficulties``."""
    prefix = prefix or ("v" if visual else "nv")
    return [
        make_question(
            f"{prefix}-{i:03d}",
            themes[i % len(themes)],
            visual,
            difficulties[i % len(difficulties)],
        )
        for i in range(count)
    ]


def make_bank(non_visual: int = 40, visual: int = 25, themes=MANDATORY_THEMES, extra=()) -> QuestionBank:
    questions = make_questions(non_visual, False, themes) + make_questions(visual, True, themes)
    return QuestionBank(questions + list(extra))


def make_attempt(
    topic_id: str,
    score: int,
    days_ago: float = 0.0,
    total: int = 25,
    now: datetime = NOW,
) -> AttemptRecord:
    return AttemptRecord(
        topic_id=topic_id,
        score=score,
        total_questions=total,
        correct_count=round(score * total / 100),
        timestamp=now - timedelta(days=days_ago),
    )


def make_history(scores_by_topic: dict[str, list[int]], now: datetime = NOW) -> list[AttemptRecord]:
    """Chronological attempts one hour apart, topic by topic, ending just before ``now``."""
    flat = [(topic, score) for topic, scores in scores_by_topic.items() for score in scores]
    start = now - timedelta(hours=len(flat))
    return [
        AttemptRecord(
            topic_id=topic,
            score=score,
            total_questions=25,
            correct_count=round(score / 4),
            timestamp=start + timedelta(hours=i),
        )
        for i, (topic, score) in enumerate(flat)
    ]


def make_weak_topic(topic_id: str, mastery: float = 40.0, attempts: int = 2) -> TopicUrgency:
    return TopicUrgency(
        topic_id=topic_id,
        average_score=mastery,
        mastery=mastery,
        urgency=60.0 - mastery,
        is_weak=True,
        attempt_count=attempts,
    )


def make_state(
    bank: QuestionBank,
    eligible=None,
    weak_topics=(),
    target_tier: int = 3,
    config: EngineConfig | None = None,
    seed: int = 1234,
) -> AssemblyState:
    return AssemblyState(
        bank=bank,
        config=config or EngineConfig(),
        rng=random.Random(seed),
        eligible=list(bank) if eligible is None else list(eligible),
        weak_topics=list(weak_topics),
        target_tier=target_tier,
    )


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def question_factory():
    return make_question


@pytest.fixture
def questions_factory():
    return make_questions


@pytest.fixture
def bank_factory():
    return make_bank


@pytest.fixture
def attempt_factory():
    return make_attempt


@pytest.fixture
def history_factory():
    return make_history


@pytest.fixture
def weak_topic_factory():
    return make_weak_topic


@pytest.fixture
def state_factory():
    return make_state


@pytest.fixture
def rng():
    """Seeded random source so selection is reproducible."""
    return random.Random(1234)


@pytest.fixture
def question_bank():
    """40 text + 25 image questions covering every mandatory theme."""
    return make_bank()


@pytest.fixture
def exposure_ledger():
    return InMemoryExposureLedger()


@pytest.fixture
def skip_counters():
    return InMemorySkipCounters()


@pytest.fixture
def attempt_history():
    return InMemoryAttemptHistory()


@pytest.fixture
def reset_logger():
    """Restore the default loguru sink after a test reconfigures logging."""
    yield
    logger.remove()
    logger.add(sys.stderr)
