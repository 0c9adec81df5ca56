"""
Tests for the CLI interface.
"""
import os
import shutil
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from dashai.cli.main import EXIT_CODE_FAIL, EXIT_CODE_PASS, app
from dashai.config.loader import CONFIG_ENV_VAR
from dashai.core.errors import RateLimited
from dashai.core.pipeline import ChatResult
from dashai.demo.seed_demo_data import seed_demo_data
from dashai.storage.academic import AcademicRepository
from dashai.storage.repository import LedgerRepository, initialize_schema

runner = CliRunner()

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def config_path(monkeypatch):
    """Write a config pointing at a temporary database."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    temp_dir = tempfile.mkdtemp()
    path = os.path.join(temp_dir, "dashai.yaml")
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump({"db_path": os.path.join(temp_dir, "dash.db"), "daily_call_limit": 25}, f)
    yield path
    shutil.rmtree(temp_dir, ignore_errors=True)


def _db_path(config_path):
    return os.path.join(os.path.dirname(config_path), "dash.db")


@pytest.fixture
def mock_pipeline():
    """Mock pipeline construction in the CLI."""
    with patch('dashai.cli.main.AssistantPipeline') as mock_class:
        yield mock_class.from_config.return_value


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_init_creates_database(self, config_path):
        result = runner.invoke(app, ["init", "--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Database initialized successfully" in result.output
        assert os.path.exists(_db_path(config_path))

    def test_init_bad_config_fails(self, config_path):
        result = runner.invoke(app, ["init", "--config", config_path + ".missing"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error initializing database" in result.output

    def test_ask_prints_reply_and_cost(self, config_path, mock_pipeline):
        mock_pipeline.handle.return_value = ChatResult(reply="You're free today!", tokens_used=150, cost=Decimal("0.0003"))

        result = runner.invoke(app, ["ask", "What's on today?", "--caller-id", "u1", "--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "You're free today!" in result.output
        assert "150 tokens" in result.output
        assert "$0.0003" in result.output
        mock_pipeline.handle.assert_called_once_with("u1", {"message": "What's on today?", "chatHistory": []})

    def test_ask_rate_limited_fails(self, config_path, mock_pipeline):
        mock_pipeline.handle.side_effect = RateLimited(25)

        result = runner.invoke(app, ["ask", "hi", "-u", "u1", "-c", config_path])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "daily usage limit" in result.output

    def test_usage_empty(self, config_path):
        initialize_schema(_db_path(config_path))

        result = runner.invoke(app, ["usage", "--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No assistant usage recorded yet" in result.output

    def test_usage_shows_ledgers(self, config_path):
        db_path = _db_path(config_path)
        initialize_schema(db_path)
        repository = LedgerRepository(db_path)
        repository.increment_call_counter("2026-10-19", 25, NOW)
        repository.add_cost("2026-10-19", "2026-10", 1500, Decimal("0.003"))

        result = runner.invoke(app, ["usage", "--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Daily Calls (limit 25)" in result.output
        assert "Daily Costs" in result.output
        assert "Monthly Costs" in result.output
        assert "2026-10-19" in result.output
        assert "1,500" in result.output
        assert "$0.0030" in result.output

    def test_seed_demo(self, config_path):
        result = runner.invoke(app, ["seed-demo", "--caller-id", "demo", "--config", config_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Demo data created for demo" in result.output
        repository = AcademicRepository(_db_path(config_path))
        assert repository.get_profile("demo").timezone == "America/Halifax"
        assert repository.get_active_semester("demo").name == "Fall Term"


class TestSeedDemoData:
    """Test the demo seeder directly."""

    def test_records_fall_in_next_week(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "demo.db")

            semester_id = seed_demo_data("demo", db_path=db_path, now=NOW)

            repository = AcademicRepository(db_path)
            assert [c.label for c in repository.list_courses(semester_id)] == [
                "CSCI 3110 - Algorithms",
                "STAT 2060 - Introductory Statistics",
            ]
            assert repository.list_calendar_events(semester_id)[0].event_date.isoformat() == "2026-10-21"
            assert [a.name for a in repository.list_open_assignments(semester_id)] == [
                "Problem Set 4",
                "Lab Report 2",
            ]
