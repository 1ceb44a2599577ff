"""
Tests for CLI main functionality.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from brandguide import __version__
from brandguide.cli.main import app


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture
def restore_package_logger():
    """Remove handlers attached by --verbose."""
    package_logger = logging.getLogger("brandguide")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield package_logger
    package_logger.handlers = handlers
    package_logger.setLevel(level)


def test_cli_version_command(runner):
    """Test explicit version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"v{__version__}" in result.stdout
    assert "Version" in result.stdout


def test_cli_help(runner):
    """Test help command lists the sub-apps."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "cache" in result.stdout
    assert "api" in result.stdout


def test_cli_invalid_subcommand(runner):
    """Test an unknown command is a usage error."""
    result = runner.invoke(app, ["invalid-command"])
    assert result.exit_code != 0


def test_cli_verbose_attaches_console_handler(runner, restore_package_logger):
    """Test --verbose enables DEBUG console logging for the package."""
    before = len(restore_package_logger.handlers)

    result = runner.invoke(app, ["--verbose", "version"])

    assert result.exit_code == 0
    assert len(restore_package_logger.handlers) == before + 1
    assert restore_package_logger.level == logging.DEBUG


def test_init_db_creates_tables(runner):
    """Test init-db creates tables and closes the engine."""
    with patch(
        "brandguide.cli.main.db_manager.create_tables", new_callable=AsyncMock
    ) as mock_create, patch(
        "brandguide.cli.main.db_manager.close", new_callable=AsyncMock
    ) as mock_close:
        result = runner.invoke(app, ["init-db"])

    assert result.exit_code == 0
    assert "Database ready" in result.stdout
    mock_create.assert_awaited_once()
    mock_close.assert_awaited_once()


def test_api_start_runs_uvicorn(runner):
    """Test api start hands the application to uvicorn."""
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["api", "start", "--port", "3000"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "brandguide.api.main:app",
        host="127.0.0.1",
        port=3000,
        reload=False,
        log_level="info",
    )
