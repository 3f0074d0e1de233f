"""
SQLAlchemy repository adapters.

Tables:
- attempt_records: append-only attempt log
- question_exposures: one row per (learner, question)
- recommendation_skips: one row per (learner, topic)

Defaults to a local SQLite file; any SQLAlchemy URL works.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime

from loguru import logger
from sqlalchemy import DateTime, Integer, String, UniqueConstraint, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from examcoach.core.models import AttemptRecord, ExposureRecord, as_utc


class Base(DeclarativeBase):
    pass


class AttemptRow(Base):
    """One completed attempt."""

    __tablename__ = "attempt_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    topic_id: Mapped[str] = mapped_column(String(128), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_record(self) -> AttemptRecord:
        return AttemptRecord(
            topic_id=self.topic_id,
            score=self.score,
            total_questions=self.total_questions,
            correct_count=self.correct_count,
            timestamp=as_utc(self.timestamp),
        )

    def __repr__(self) -> str:
        return f"<AttemptRow learner={self.learner_id} topic={self.topic_id} score={self.score}>"


class ExposureRow(Base):
    """Exposure of one question to one learner."""

    __tablename__ = "question_exposures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    question_id: Mapped[str] = mapped_column(String(128), nullable=False)
    times_shown: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_shown_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_assessment_id: Mapped[str | None] = mapped_column(String(128))

    __table_args__ = (
        UniqueConstraint("learner_id", "question_id", name="uq_learner_question"),
    )

    def to_record(self) -> ExposureRecord:
        return ExposureRecord(
            question_id=self.question_id,
            times_shown=self.times_shown,
            last_shown_at=as_utc(self.last_shown_at) if self.last_shown_at else None,
            last_assessment_id=self.last_assessment_id,
        )

    def __repr__(self) -> str:
        return f"<ExposureRow learner={self.learner_id} question={self.question_id} shown={self.times_shown}>"


class SkipRow(Base):
    """How often a learner bypassed a recommended topic."""

    __tablename__ = "recommendation_skips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    topic_id: Mapped[str] = mapped_column(String(128), nullable=False)
    skip_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("learner_id", "topic_id", name="uq_learner_topic_skip"),
    )


class SqlStore:
    """Engine + session factory shared by the SQL adapters."""

    def __init__(
        self,
        database_url: str = "sqlite:///examcoach.db",
        echo: bool = False,
        engine: Engine | None = None,
    ):
        self.engine = engine or create_engine(database_url, echo=echo, pool_pre_ping=True)
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()


class SqlAttemptHistory:
    def __init__(self, store: SqlStore):
        self.store = store

    def get_attempts(self, learner_id: str) -> list[AttemptRecord]:
        with self.store.session_scope() as session:
            rows = session.scalars(
                select(AttemptRow)
                .where(AttemptRow.learner_id == learner_id)
                .order_by(AttemptRow.timestamp, AttemptRow.id)
            ).all()
            return [row.to_record() for row in rows]

    def append(self, learner_id: str, attempt: AttemptRecord) -> None:
        with self.store.session_scope() as session:
            session.add(
                AttemptRow(
                    learner_id=learner_id,
                    topic_id=attempt.topic_id,
                    score=attempt.score,
                    total_questions=attempt.total_questions,
                    correct_count=attempt.correct_count,
                    timestamp=attempt.timestamp,
                )
            )


class SqlExposureLedger:
    def __init__(self, store: SqlStore):
        self.store = store

    def get_all(self, learner_id: str) -> dict[str, ExposureRecord]:
        with self.store.session_scope() as session:
            rows = session.scalars(
                select(ExposureRow).where(ExposureRow.learner_id == learner_id)
            ).all()
            return {row.question_id: row.to_record() for row in rows}

    def upsert(self, learner_id: str, record: ExposureRecord) -> None:
        with self.store.session_scope() as session:
            row = session.scalars(
                select(ExposureRow).where(
                    ExposureRow.learner_id == learner_id,
                    ExposureRow.question_id == record.question_id,
                )
            ).one_or_none()
            if row is None:
                row = ExposureRow(learner_id=learner_id, question_id=record.question_id)
                session.add(row)
            row.times_shown = record.times_shown
            row.last_shown_at = record.last_shown_at
            row.last_assessment_id = record.last_assessment_id


class SqlSkipCounters:
    def __init__(self, store: SqlStore):
        self.store = store

    def get_counts(self, learner_id: str) -> dict[str, int]:
        with self.store.session_scope() as session:
            rows = session.scalars(select(SkipRow).where(SkipRow.learner_id == learner_id)).all()
            return {row.topic_id: row.skip_count for row in rows}

    def increment(self, learner_id: str, topic_id: str) -> int:
        with self.store.session_scope() as session:
            row = session.scalars(
                select(SkipRow).where(SkipRow.learner_id == learner_id, SkipRow.topic_id == topic_id)
            ).one_or_none()
            if row is None:
                row = SkipRow(learner_id=learner_id, topic_id=topic_id, skip_count=0)
                session.add(row)
            row.skip_count += 1
            return row.skip_count

    def clear(self, learner_id: str, topic_id: str) -> None:
        with self.store.session_scope() as session:
            row = session.scalars(
                select(SkipRow).where(SkipRow.learner_id == learner_id, SkipRow.topic_id == topic_id)
            ).one_or_none()
            if row is not None:
                session.delete(row)
