"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
Each test gets its own SQLite file through EXAMCOACH_DATABASE_URL, and JSON
output is parsed from stdout (logging goes to stderr).

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from examcoach.core.catalog import DEFAULT_CATALOG

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(tmp_path):
    env = os.environ.copy()
    env["EXAMCOACH_DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env.pop("EXAMCOACH_QUESTION_BANK_PATH", None)
    env.pop("EXAMCOACH_LOG_FILE", None)
    return env


@pytest.fixture
def run_cli(cli_env):
    def run(*args: str, timeout: int = 60) -> tuple[int, str, str]:
        """
        Run a CLI command and return exit code, stdout, stderr.

        Args:
            args: Arguments after 'python -m examcoach'
            timeout: Maximum time to wait
        """
        result = subprocess.run(
            [sys.executable, "-m", "examcoach", *map(str, args)],
            cwd=PROJECT_ROOT,
            env=cli_env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr

    return run


@pytest.fixture
def bank_file(tmp_path):
    themes = DEFAULT_CATALOG.mandatory_themes
    difficulties = ["easy", "medium", "hard"]
    questions = [
        {
            "id": f"{'v' if visual else 'nv'}-{i:03d}",
            "topicId": themes[i % len(themes)],
            "hasVisualAsset": visual,
            "difficulty": difficulties[i % 3],
        }
        for visual, count in ((False, 40), (True, 25))
        for i in range(count)
    ]
    path = tmp_path / "bank.json"
    path.write_text(json.dumps({"questions": questions}))
    return path


@pytest.fixture
def history_file(tmp_path):
    attempts = [
        {"topicId": "priority-rules", "score": 40, "totalQuestions": 25, "correctCount": 10,
         "timestamp": "2025-05-01T10:00:00Z"},
        {"topicId": "hazard-perception", "score": 85, "totalQuestions": 25, "correctCount": 21,
         "timestamp": "2025-05-02T10:00:00Z"},
        {"topicId": "priority-rules", "score": 45, "totalQuestions": 25, "correctCount": 11,
         "timestamp": "2025-05-03T10:00:00Z"},
    ]
    path = tmp_path / "history.json"
    path.write_text(json.dumps({"attempts": attempts}))
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, run_cli):
        code, stdout, stderr = run_cli("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "recommend" in stdout
        assert "assess" in stdout

    def test_assess_help(self, run_cli):
        code, stdout, stderr = run_cli("assess", "--help")
        assert code == 0, f"Assess help failed: {stderr}"

    def test_version(self, run_cli):
        code, stdout, stderr = run_cli("version")

        assert code == 0, f"Version failed: {stderr}"
        assert "examcoach" in stdout


class TestCLIRecommend:
    def test_new_learner(self, run_cli):
        code, stdout, stderr = run_cli("recommend", "alice", "--json")

        assert code == 0, f"Recommend failed: {stderr}"
        data = json.loads(stdout)
        assert data["topic_id"] == "traffic-rules-signs"
        assert data["priority"] == "high"

    def test_weak_topic_from_history(self, run_cli, history_file):
        code, stdout, stderr = run_cli("recommend", "alice", "--history", history_file, "--json")

        assert code == 0, f"Recommend failed: {stderr}"
        data = json.loads(stdout)
        assert data["topic_id"] == "priority-rules"
        assert data["priority"] == "critical"

    def test_panel_output(self, run_cli, history_file):
        code, stdout, stderr = run_cli("recommend", "alice", "-H", history_file)

        assert code == 0, f"Recommend failed: {stderr}"
        assert "Next Topic" in stdout

    def test_skips_persist_between_runs(self, run_cli, history_file):
        for _ in range(3):
            code, stdout, stderr = run_cli("skip", "alice", "priority-rules")
            assert code == 0, f"Skip failed: {stderr}"
        assert "3x" in stdout

        code, stdout, stderr = run_cli("recommend", "alice", "--history", history_file, "--json")
        assert json.loads(stdout)["topic_id"] != "priority-rules"

        run_cli("skip", "alice", "priority-rules", "--clear")
        code, stdout, stderr = run_cli("recommend", "alice", "--history", history_file, "--json")
        assert json.loads(stdout)["topic_id"] == "priority-rules"

    def test_malformed_history_fails(self, run_cli, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{")

        code, stdout, stderr = run_cli("recommend", "alice", "--history", path)
        assert code == 1


class TestCLIWeakAreas:
    def test_json(self, run_cli, history_file):
        code, stdout, stderr = run_cli("weak-areas", "alice", "--history", history_file, "--json")

        assert code == 0, f"Weak areas failed: {stderr}"
        rows = json.loads(stdout)
        assert rows[0]["topic_id"] == "priority-rules"
        assert rows[0]["is_weak"] is True
        assert len(rows) == 2

    def test_table_with_unpracticed(self, run_cli, history_file):
        code, stdout, stderr = run_cli("weak-areas", "alice", "--history", history_file, "--all")

        assert code == 0, f"Weak areas failed: {stderr}"
        assert "Weak Areas" in stdout


class TestCLIAssess:
    def test_json_exam(self, run_cli, bank_file):
        code, stdout, stderr = run_cli("assess", "alice", "--bank", bank_file, "--seed", "7", "--json")

        assert code == 0, f"Assess failed: {stderr}"
        data = json.loads(stdout)
        assert len(data["question_ids"]) == 50
        assert data["shortfalls"] == []
        assert data["theme_gaps"] == []
        assert data["committed"] is False

    def test_same_seed_same_exam(self, run_cli, bank_file):
        args = ("assess", "alice", "--bank", bank_file, "--seed", "7", "--exam-id", "exam-1", "--json")
        first = json.loads(run_cli(*args)[1])
        second = json.loads(run_cli(*args)[1])

        assert first["question_ids"] == second["question_ids"]

    def test_commit_affects_next_exam(self, run_cli, bank_file):
        code, stdout, stderr = run_cli("assess", "alice", "--bank", bank_file, "--commit", "--json")
        assert code == 0, f"Assess failed: {stderr}"
        assert json.loads(stdout)["committed"] is True

        code, stdout, stderr = run_cli("assess", "alice", "--bank", bank_file, "--json")
        assert code == 0, f"Assess failed: {stderr}"
        assert json.loads(stdout)["relaxed_exposure_count"] >= 35

    def test_summary_output(self, run_cli, bank_file, history_file):
        code, stdout, stderr = run_cli("assess", "alice", "-b", bank_file, "-H", history_file, "--tier", "5")

        assert code == 0, f"Assess failed: {stderr}"
        assert "Questions: 50" in stdout
        assert "priority-rules" in stdout

    def test_missing_bank(self, run_cli):
        code, stdout, stderr = run_cli("assess", "alice")
        assert code == 1

    def test_strict_shortfall(self, run_cli, tmp_path):
        path = tmp_path / "tiny.json"
        path.write_text(json.dumps([{"id": f"q{i}", "topicId": "overtaking"} for i in range(10)]))

        code, stdout, stderr = run_cli("assess", "alice", "--bank", path, "--strict")
        assert code == 2


class TestCLICoaching:
    def test_insights_json(self, run_cli, history_file):
        code, stdout, stderr = run_cli("insights", "alice", "--history", history_file, "--json")

        assert code == 0, f"Insights failed: {stderr}"
        data = json.loads(stdout)
        assert set(data) == {"learning", "cards"}
        assert data["cards"][0]["kind"] == "recommendation"

    def test_readiness_json(self, run_cli, history_file):
        code, stdout, stderr = run_cli("readiness", "alice", "--history", history_file, "--json")

        assert code == 0, f"Readiness failed: {stderr}"
        data = json.loads(stdout)
        assert data["completed_tests"] == 3
        assert data["can_unlock"] is False

    def test_readiness_table(self, run_cli):
        code, stdout, stderr = run_cli("readiness", "alice")

        assert code == 0, f"Readiness failed: {stderr}"
        assert "Keep practicing" in stdout

    def test_exam_summary(self, run_cli):
        code, stdout, stderr = run_cli("exam-summary", "45", "50", "--json")

        assert code == 0, f"Exam summary failed: {stderr}"
        data = json.loads(stdout)
        assert data["percentage"] == 90
        assert data["passed"] is True

    def test_exam_summary_rejects_impossible_score(self, run_cli):
        code, stdout, stderr = run_cli("exam-summary", "60", "50")
        assert code == 1
