"""Tests for the command-line interface."""

import pytest
import structlog
from click.testing import CliRunner

from rolegate.cli import cli
from rolegate.core.config import get_settings
from rolegate.infrastructure.persistence import database


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("ROLEGATE_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/cli.db")
    monkeypatch.setenv("ROLEGATE_ENVIRONMENT", "testing")
    monkeypatch.setenv("ROLEGATE_SECRET_KEY", "cli-test-secret-key-that-is-long-enough")
    monkeypatch.setenv("ROLEGATE_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("ROLEGATE_LOG_FORMAT", "console")
    get_settings.cache_clear()
    monkeypatch.setattr(database, "_db_manager", None)
    yield CliRunner()
    get_settings.cache_clear()
    structlog.reset_defaults()


def test_info(runner):
    result = runner.invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "Max Owners:     3" in result.output


def test_init_db_then_list_roles(runner):
    result = runner.invoke(cli, ["init-db"])
    assert result.exit_code == 0, result.output
    assert "5 roles seeded" in result.output

    result = runner.invoke(cli, ["list-roles"])
    assert result.exit_code == 0
    lines = [line.split()[-2:] for line in result.output.strip().splitlines()]
    assert lines[0] == ["Owner", "(system)"]
    assert lines[-1] == ["User", "(system)"]


def test_create_owner(runner):
    runner.invoke(cli, ["init-db"])

    result = runner.invoke(
        cli,
        ["create-owner", "--email", "Root@Example.com", "--password", "Sup3r$ecretPass"],
    )

    assert result.exit_code == 0, result.output
    assert "Email:   root@example.com" in result.output
    assert "Roles:   Owner, User" in result.output


def test_create_owner_weak_password(runner):
    runner.invoke(cli, ["init-db"])

    result = runner.invoke(cli, ["create-owner", "--email", "root@example.com", "--password", "weak"])

    assert result.exit_code == 1
