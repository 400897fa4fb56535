"""Unit tests for the command line interface."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from gitec_sync.core.cli import cli
from gitec_sync.exceptions import ConfigurationError
from gitec_sync.integrations.gitec.client import GitecClient
from gitec_sync.models.sync import RunResult, SyncType


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_services():
    services = MagicMock()
    services.engine.run.return_value = RunResult(
        sync_type=SyncType.MANUAL, succeeded=True, total=3, processed=3, created=2, unchanged=1,
        message="Sync completed: 0 products updated (price: 0, stock: 0), 2 new products added, 0 failed",
    )
    with patch("gitec_sync.core.cli.load_settings", return_value=MagicMock()), \
            patch("gitec_sync.core.cli.bootstrap", return_value=services):
        yield services


def test_sync(runner, mock_services):
    result = runner.invoke(cli, ["sync"])

    assert result.exit_code == 0
    assert "2 new products added" in result.output
    mock_services.engine.run.assert_called_once_with(SyncType.MANUAL)
    mock_services.shutdown.assert_called_once()


def test_sync_auto_json(runner, mock_services):
    result = runner.invoke(cli, ["sync", "--auto", "--output", "json"])

    assert result.exit_code == 0
    mock_services.engine.run.assert_called_once_with(SyncType.AUTO)
    assert '"created": 2' in result.output


def test_sync_failure_exits_non_zero(runner, mock_services):
    mock_services.engine.run.return_value = RunResult(
        sync_type=SyncType.MANUAL, succeeded=False, error="fetch:empty", message="Failed to fetch products: empty"
    )

    result = runner.invoke(cli, ["sync"])

    assert result.exit_code == 1


def test_sync_configuration_error(runner):
    with patch("gitec_sync.core.cli.load_settings", return_value=MagicMock()), \
            patch("gitec_sync.core.cli.bootstrap", side_effect=ConfigurationError("Unknown store backend: magento")):
        result = runner.invoke(cli, ["sync"])

    assert result.exit_code == 1
    assert "Configuration Error" in result.output


def test_fetch(runner, settings):
    with patch("gitec_sync.core.cli.load_settings", return_value=settings), \
            patch.object(GitecClient, "test_connection",
                         return_value={"status": "success", "message": "Fetched 12 products"}):
        result = runner.invoke(cli, ["fetch", "--output", "json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["message"] == "Fetched 12 products"


def test_fetch_failure(runner, settings):
    with patch("gitec_sync.core.cli.load_settings", return_value=settings), \
            patch.object(GitecClient, "test_connection",
                         return_value={"status": "error", "kind": "empty", "message": "Catalog is empty"}):
        result = runner.invoke(cli, ["fetch"])

    assert result.exit_code == 1


@pytest.mark.parametrize("command", ["sync", "fetch"])
def test_invalid_environment_is_a_configuration_error(runner, command):
    with patch.dict(os.environ, {"GITEC_SYNC_INTERVAL": "weekly"}), \
            patch("gitec_sync.core.cli.bootstrap") as mock_bootstrap:
        result = runner.invoke(cli, [command])

    assert result.exit_code == 1
    assert "Configuration Error" in result.output
    assert "sync_interval" in result.output
    mock_bootstrap.assert_not_called()
