"""
Typer CLI for the exam coach.

Commands:
    examcoach recommend LEARNER          - Next topic to study
    examcoach weak-areas LEARNER         - Per-topic urgency table
    examcoach assess LEARNER --bank F    - Generate a personalized practice exam
    examcoach insights LEARNER           - Learning pattern and coaching cards
    examcoach readiness LEARNER          - Mock exam unlock progress
    examcoach skip LEARNER TOPIC         - Record (or clear) a skipped recommendation
    examcoach exam-summary CORRECT TOTAL - Verdict for a finished mock exam

History is read from ``--history FILE`` (JSON) or, when omitted, from the
configured database. Exposures and skip counters always live in the database.

Usage:
    examcoach recommend alice --history history.json
    examcoach assess alice --bank questions.json --seed 7 --commit
    examcoach weak-areas alice --json
"""

from __future__ import annotations

import json
import random
import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from examcoach import __version__
from examcoach.coach.insights import LearningCoach
from examcoach.config import Settings, get_settings
from examcoach.core.bank import QuestionBank
from examcoach.core.catalog import DEFAULT_CATALOG
from examcoach.core.engine_config import EngineConfig
from examcoach.core.errors import ExamCoachError
from examcoach.core.models import AttemptRecord
from examcoach.engine import AssessmentEngine
from examcoach.loaders import load_history, load_question_bank
from examcoach.repositories.sql import SqlAttemptHistory, SqlExposureLedger, SqlSkipCounters, SqlStore

app = typer.Typer(
    help="examcoach: adaptive practice exams and study recommendations",
    no_args_is_help=True,
)
console = Console()


# ========================================
# Setup helpers
# ========================================


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    """Send loguru output to stderr (and optionally a rotating file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level if verbose else "WARNING",
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


def _store(settings: Settings) -> SqlStore:
    store = SqlStore(settings.database_url, echo=settings.database_echo)
    store.init_db()
    return store


def _attempts(learner_id: str, history: Path | None, store: SqlStore) -> list[AttemptRecord]:
    if history is not None:
        return load_history(history)
    return SqlAttemptHistory(store).get_attempts(learner_id)


def _bank(bank: Path | None, settings: Settings) -> QuestionBank:
    path = bank or (Path(settings.question_bank_path) if settings.question_bank_path else None)
    if path is None:
        rprint("[red]✗[/red] No question bank: pass --bank or set EXAMCOACH_QUESTION_BANK_PATH")
        raise typer.Exit(code=1)
    return load_question_bank(path)


def _engine(settings: Settings, store: SqlStore, bank: QuestionBank | None = None) -> AssessmentEngine:
    return AssessmentEngine(
        bank=bank or QuestionBank([]),
        exposure_ledger=SqlExposureLedger(store),
        skip_counters=SqlSkipCounters(store),
        history=SqlAttemptHistory(store),
        config=EngineConfig.from_settings(settings),
    )


def _emit_json(payload) -> None:
    typer.echo(json.dumps(payload, indent=2))


HistoryOption = typer.Option(None, "--history", "-H", help="Attempt history JSON file")
JsonOption = typer.Option(False, "--json", help="Machine-readable output")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info/debug logging"),
) -> None:
    configure_logging(get_settings(), verbose)


# ========================================
# Recommendation
# ========================================


@app.command("recommend")
def recommend(
    learner_id: str = typer.Argument(..., help="Learner id"),
    history: Path | None = HistoryOption,
    as_json: bool = JsonOption,
) -> None:
    """Show the single next-best topic for a learner."""
    settings = get_settings()
    store = _store(settings)
    engine = _engine(settings, store)
    attempts = _attempts(learner_id, history, store)

    rec = engine.recommend_next_topic(learner_id, attempts)
    if as_json:
        _emit_json(rec.to_dict())
        return

    color = rec.priority.color
    body = (
        f"[bold]{rec.topic_name}[/bold] [dim]({rec.topic_id})[/dim]\n"
        f"{rec.justification}\n\n"
        f"Priority: [{color}]{rec.priority.value}[/{color}]"
    )
    if rec.suppression_count:
        body += f"\nSkipped {rec.suppression_count}x"
    console.print(Panel(body, title="Next Topic", border_style=color))


@app.command("weak-areas")
def weak_areas(
    learner_id: str = typer.Argument(..., help="Learner id"),
    history: Path | None = HistoryOption,
    show_all: bool = typer.Option(False, "--all", help="Include unpracticed topics"),
    as_json: bool = JsonOption,
) -> None:
    """Per-topic average, mastery and urgency."""
    settings = get_settings()
    store = _store(settings)
    engine = _engine(settings, store)
    urgencies = engine.analyze(_attempts(learner_id, history, store))
    if not show_all:
        urgencies = [u for u in urgencies if not u.is_unpracticed]

    if as_json:
        _emit_json(
            [
                {
                    "topic_id": u.topic_id,
                    "average_score": round(u.average_score, 1),
                    "mastery": round(u.mastery, 1),
                    "urgency": round(u.urgency, 2),
                    "improvement_delta": round(u.improvement_delta, 1),
                    "trend": u.trend.value,
                    "is_weak": u.is_weak,
                    "attempts": u.attempt_count,
                }
                for u in urgencies
            ]
        )
        return

    table = Table(title=f"Weak Areas: {learner_id}", show_header=True)
    table.add_column("Topic", style="cyan")
    table.add_column("Avg", justify="right")
    table.add_column("Mastery", justify="right")
    table.add_column("Urgency", justify="right")
    table.add_column("Trend")
    table.add_column("Weak", justify="center")

    for u in urgencies:
        table.add_row(
            DEFAULT_CATALOG.topic_name(u.topic_id),
            f"{u.average_score:.0f}%" if not u.is_unpracticed else "-",
            f"{u.mastery:.0f}%" if not u.is_unpracticed else "-",
            f"{u.urgency:.1f}",
            u.trend.value,
            "[red]✗[/red]" if u.is_weak else "[green]✓[/green]",
        )
    console.print(table)


# ========================================
# Assessment
# ========================================


@app.command("assess")
def assess(
    learner_id: str = typer.Argument(..., help="Learner id"),
    bank: Path | None = typer.Option(None, "--bank", "-b", help="Question bank JSON file"),
    history: Path | None = HistoryOption,
    exam_id: str | None = typer.Option(None, "--exam-id", help="Assessment id"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible selection"),
    tier: int | None = typer.Option(None, "--tier", min=1, max=10, help="Fixed difficulty tier"),
    commit: bool = typer.Option(False, "--commit", help="Record exposure of the generated questions"),
    strict: bool = typer.Option(False, "--strict", help="Fail if a bucket cannot be filled"),
    as_json: bool = JsonOption,
) -> None:
    """Generate a personalized practice exam."""
    settings = get_settings()
    store = _store(settings)
    engine = _engine(settings, store, _bank(bank, settings))
    attempts = _attempts(learner_id, history, store)
    rng = random.Random(seed) if seed is not None else None

    try:
        result = engine.generate_assessment(
            learner_id,
            attempts,
            exam_id,
            rng=rng,
            difficulty_tier=tier,
            strict=strict,
        )
    except ExamCoachError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=2)

    if commit:
        engine.record_exposure(learner_id, result.question_ids, result.exam_id)

    if as_json:
        payload = result.to_dict()
        payload["committed"] = commit
        _emit_json(payload)
        return

    rprint(f"\n[bold cyan]{result.exam_id}[/bold cyan] for {learner_id}")
    rprint(
        f"  Questions: {len(result.questions)} "
        f"({len(result.non_visual)} text / {len(result.visual)} image)"
    )
    rprint(f"  Difficulty tier: {result.target_tier}  {result.difficulty_histogram}")
    rprint(f"  Focus topics: {', '.join(result.focus_topics) or 'none'}")
    rprint(f"  Personalization: {result.personalization_score}%")
    if result.relaxed_exposure_count:
        rprint(f"  [yellow]⚠[/yellow] Reused {result.relaxed_exposure_count} recently seen questions")
    for shortfall in result.shortfalls:
        rprint(
            f"  [red]✗[/red] {shortfall.bucket}: {shortfall.filled}/{shortfall.required} "
            f"(missing {shortfall.missing})"
        )
    for gap in result.theme_gaps:
        rprint(f"  [yellow]⚠[/yellow] No question for theme: {DEFAULT_CATALOG.theme_name(gap.tag)}")
    if commit:
        rprint("[green]✓[/green] Exposure recorded")


# ========================================
# Coaching
# ========================================


@app.command("insights")
def insights(
    learner_id: str = typer.Argument(..., help="Learner id"),
    history: Path | None = HistoryOption,
    as_json: bool = JsonOption,
) -> None:
    """Learning pattern plus recommendation, mistake and strength cards."""
    settings = get_settings()
    store = _store(settings)
    engine = _engine(settings, store)
    coach = LearningCoach(engine.config)
    attempts = _attempts(learner_id, history, store)

    insight = coach.learning_insight(attempts)
    cards = coach.coach_insights(attempts, engine.recommend_next_topic(learner_id, attempts))

    if as_json:
        _emit_json({"learning": insight.to_dict(), "cards": [c.to_dict() for c in cards]})
        return

    console.print(
        Panel(
            f"{insight.reasoning}\n\nTier {insight.recommended_tier} · {insight.pattern.value}\n"
            f"Suggested: {', '.join(insight.suggested_topics)}",
            title="Learning Pattern",
        )
    )
    styles = {"red": "red", "amber": "yellow", "green": "green"}
    for card in cards:
        style = styles[card.color]
        rprint(f"[{style}]●[/{style}] [bold]{card.message}[/bold] - {card.explanation}")


@app.command("readiness")
def readiness(
    learner_id: str = typer.Argument(..., help="Learner id"),
    history: Path | None = HistoryOption,
    as_json: bool = JsonOption,
) -> None:
    """Progress toward unlocking mock exams."""
    settings = get_settings()
    store = _store(settings)
    progress = LearningCoach(EngineConfig.from_settings(settings)).unlock_progress(
        _attempts(learner_id, history, store)
    )

    if as_json:
        _emit_json(progress.to_dict())
        return

    table = Table(title="Mock Exam Unlock", show_header=True)
    table.add_column("Requirement", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Required", justify="right")
    table.add_row("Completed tests", str(progress.completed_tests), str(progress.required_tests))
    table.add_row("Practice average", f"{progress.average_score}%", f"{progress.required_average}%")
    table.add_row("Lowest test", f"{progress.min_test_score}%", f"{progress.required_min_score}%")
    table.add_row("Study time", f"{progress.study_hours}h", f"{progress.required_study_hours}h")
    console.print(table)

    if progress.can_unlock:
        rprint("[bold green]✓ Mock exams unlocked![/bold green]")
    else:
        rprint("[yellow]Keep practicing to unlock mock exams[/yellow]")


@app.command("skip")
def skip(
    learner_id: str = typer.Argument(..., help="Learner id"),
    topic_id: str = typer.Argument(..., help="Topic the learner bypassed"),
    clear: bool = typer.Option(False, "--clear", help="Reset the counter instead"),
) -> None:
    """Record that a learner skipped a recommended topic."""
    settings = get_settings()
    engine = _engine(settings, _store(settings))
    if clear:
        engine.clear_skip(learner_id, topic_id)
        rprint(f"[green]✓[/green] Cleared skips for {topic_id}")
        return
    count = engine.record_skip(learner_id, topic_id)
    rprint(f"[green]✓[/green] {topic_id} skipped {count}x")


@app.command("exam-summary")
def exam_summary(
    correct: int = typer.Argument(..., min=0, help="Correct answers"),
    total: int = typer.Argument(50, min=1, help="Questions in the exam"),
    learner_id: str | None = typer.Option(None, "--learner", help="Learner id for weak-topic advice"),
    history: Path | None = HistoryOption,
    as_json: bool = JsonOption,
) -> None:
    """Verdict and next steps for a finished mock exam."""
    if correct > total:
        rprint("[red]✗[/red] correct cannot exceed total")
        raise typer.Exit(code=1)
    settings = get_settings()
    attempts: list[AttemptRecord] = []
    if history is not None or learner_id is not None:
        attempts = _attempts(learner_id or "", history, _store(settings))

    summary = LearningCoach(EngineConfig.from_settings(settings)).summarize_exam(correct, total, attempts)
    if as_json:
        _emit_json(summary.to_dict())
        return

    verdict = "[bold green]PASSED[/bold green]" if summary.passed else "[bold red]NOT PASSED[/bold red]"
    rprint(f"\n{verdict} {summary.correct}/{summary.total} ({summary.percentage}%)")
    rprint(f"  {summary.summary}")
    for line in summary.recommendations:
        rprint(f"  • {line}")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]examcoach[/bold] v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except ExamCoachError as e:
        logger.error(str(e))
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
