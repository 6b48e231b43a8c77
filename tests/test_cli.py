import json
import pytest
from datetime import datetime
from click.testing import CliRunner
from focus_timer.cli.service import cli
from focus_timer.config.settings import settings
from focus_timer.models.session import CompletedSessionRecord
from focus_timer.services.database import DatabaseManager

@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """Point data, logs and the database at a temporary directory"""
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path / "data")
    monkeypatch.setattr(settings, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(settings, "DB_PATH", tmp_path / "data" / "focus_timer.db")
    monkeypatch.setattr(settings, "CONFIG_FILE", None)
    return tmp_path

def test_config_command_shows_file(isolated_settings):
    path = isolated_settings / "config.json"
    path.write_text(json.dumps({
        "session": {"focus_duration": 42},
        "scripts": [{"body": "true"}, {"body": "false", "active": False}]
    }))

    result = CliRunner().invoke(cli, ["config", "--config", str(path)])

    assert result.exit_code == 0
    assert "42" in result.output
    assert "2 configured, 1 active" in result.output

def test_config_command_invalid_file(isolated_settings):
    path = isolated_settings / "config.json"
    path.write_text("{ nope")

    result = CliRunner().invoke(cli, ["config", "--config", str(path)])

    assert result.exit_code == 1

def test_sessions_command_lists_store(isolated_settings):
    db = DatabaseManager(settings.DB_PATH)
    db.create_session(CompletedSessionRecord(
        duration_minutes=25,
        started_at=datetime(2024, 1, 1, 9, 0),
        intent_id=3
    ))
    db.close()

    result = CliRunner().invoke(cli, ["sessions"])

    assert result.exit_code == 0
    assert "2024-01-01 09:00" in result.output
    assert "25" in result.output

def test_sessions_command_empty(isolated_settings):
    result = CliRunner().invoke(cli, ["sessions"])
    assert result.exit_code == 0
    assert "No sessions recorded" in result.output

def test_stats_command(isolated_settings):
    db = DatabaseManager(settings.DB_PATH)
    db.create_session(CompletedSessionRecord(duration_minutes=30, started_at=datetime.now()))
    db.close()

    result = CliRunner().invoke(cli, ["stats", "--days", "1"])

    assert result.exit_code == 0
    assert "Focused: 30 minutes" in result.output
