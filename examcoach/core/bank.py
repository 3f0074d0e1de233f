"""
Question Bank index.

The bank itself is external and static; this wraps it with the membership
maps the selectors need, computed once at load time:
- question id -> item
- theme -> questions tagged with it
- question id -> mandatory-coverage themes (family-expanded)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from loguru import logger

from examcoach.core.catalog import DEFAULT_CATALOG, TopicCatalog
from examcoach.core.errors import DuplicateQuestionError, UnknownQuestionError
from examcoach.core.models import Bucket, QuestionItem


class QuestionBank:
    """Read-only question collection with precomputed theme membership."""

    def __init__(
        self,
        questions: Iterable[QuestionItem],
        catalog: TopicCatalog | None = None,
    ):
        self.catalog = catalog or DEFAULT_CATALOG
        self._questions: list[QuestionItem] = []
        self._by_id: dict[str, QuestionItem] = {}
        self._by_theme: dict[str, list[QuestionItem]] = {}
        self._coverage: dict[str, frozenset[str]] = {}

        for question in questions:
            if question.id in self._by_id:
                raise DuplicateQuestionError(question.id)
            self._questions.append(question)
            self._by_id[question.id] = question
            for theme_id in sorted(question.theme_ids):
                self._by_theme.setdefault(theme_id, []).append(question)
            self._coverage[question.id] = self.catalog.expand_themes(question.theme_ids)

        logger.debug(
            f"Question bank loaded: {len(self._questions)} questions, "
            f"{len(self._by_theme)} themes"
        )

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[QuestionItem]:
        return iter(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    @property
    def questions(self) -> list[QuestionItem]:
        return list(self._questions)

    def get(self, question_id: str) -> QuestionItem:
        try:
            return self._by_id[question_id]
        except KeyError:
            raise UnknownQuestionError(question_id) from None

    def in_bucket(self, bucket: Bucket) -> list[QuestionItem]:
        return [q for q in self._questions if q.bucket == bucket]

    def with_theme(self, theme_id: str) -> list[QuestionItem]:
        return list(self._by_theme.get(theme_id, []))

    def covered_themes(self, question: QuestionItem) -> frozenset[str]:
        """Themes this question counts toward for mandatory coverage."""
        cached = self._coverage.get(question.id)
        if cached is not None:
            return cached
        return self.catalog.expand_themes(question.theme_ids)

    def covers(self, question: QuestionItem, theme_id: str) -> bool:
        return theme_id in self.covered_themes(question)

    def matches_topic(self, question: QuestionItem, topic_id: str) -> bool:
        """True when the question's own themes overlap the topic's trained themes."""
        return not question.theme_ids.isdisjoint(self.catalog.topic_themes(topic_id))

    def missing_mandatory(self, questions: Iterable[QuestionItem]) -> list[str]:
        """Mandatory themes not covered by any of ``questions``, in catalog order."""
        covered: set[str] = set()
        for question in questions:
            covered.update(self.covered_themes(question))
        return [theme for theme in self.catalog.mandatory_themes if theme not in covered]
