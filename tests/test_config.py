"""Tests for configuration and logging setup."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from planner.config import PlannerConfig, get_config, reset_config
from planner.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestPlannerConfig:
    """Tests for PlannerConfig."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PLANNER_STORE_PATH", raising=False)
        config = PlannerConfig(_env_file=None)
        assert config.store_path == "planner-data.json"
        assert config.horizon_weeks == 26
        assert config.remap_horizon_weeks == 52
        assert config.log_level == "WARNING"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("PLANNER_HORIZON_WEEKS", "10")
        monkeypatch.setenv("PLANNER_STORE_PATH", "/tmp/plan.json")
        config = get_config()
        assert config.horizon_weeks == 10
        assert config.store_path == "/tmp/plan.json"

    def test_singleton(self):
        assert get_config() is get_config()

    def test_horizon_bounds(self, monkeypatch):
        monkeypatch.setenv("PLANNER_HORIZON_WEEKS", "0")
        with pytest.raises(ValidationError):
            PlannerConfig(_env_file=None)


class TestLogging:
    """Tests for structlog setup."""

    def test_logs_to_stderr(self, capsys):
        setup_logging(log_level="INFO")
        get_logger("planner.test").info("holiday_added", holiday_id="h1")
        captured = capsys.readouterr()
        assert "holiday_added" in captured.err
        assert captured.out == ""

    def test_level_filters(self, capsys):
        setup_logging(log_level="WARNING")
        get_logger("planner.test").info("quiet_event")
        assert "quiet_event" not in capsys.readouterr().err

    def test_json_output(self, capsys):
        setup_logging(json_output=True, log_level="INFO")
        get_logger("planner.test").info("binding_reset", class_id="12G2")
        assert '"class_id": "12G2"' in capsys.readouterr().err
