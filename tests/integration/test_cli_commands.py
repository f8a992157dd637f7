"""Integration tests for CLI commands."""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from label_syncer.cli.main import cli
from label_syncer.services.coordinator import SyncCoordinator
from label_syncer.storage.label_table import InMemoryLabelTable


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def coordinator_for(layout, sync_settings):
    """Build a coordinator over an in-memory sheet and a fake Gmail."""

    def _make(table, directory, settings_db=None):
        return SyncCoordinator(
            table=table,
            directory=directory,
            settings_db=settings_db,
            layout=layout,
            settings=sync_settings,
        )

    return _make


@pytest.mark.integration
class TestCLICommands:
    """Test CLI command integration."""

    def test_cli_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Label Syncer" in result.output
        for command in ("auth", "sync", "edit", "open", "toggle-auto-sync", "status", "history", "logout"):
            assert command in result.output

    def test_cli_version(self, cli_runner):
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_sync_command(self, cli_runner, make_directory, coordinator_for):
        directory = make_directory({"Personal": "Label_7"})
        table = InMemoryLabelTable([("Work", "")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["sync"])

        assert result.exit_code == 0
        assert "Sync complete: 2 label(s) synchronized" in result.output
        assert 'Labels found in spreadsheet but not in Gmail: "Work"' in result.output
        assert 'Labels found in Gmail but not in spreadsheet: "Personal"' in result.output

    def test_sync_command_no_changes(self, cli_runner, make_directory, coordinator_for):
        directory = make_directory({"Work": "Label_1"})
        table = InMemoryLabelTable([("Work", "Label_1")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["sync"])

        assert result.exit_code == 0
        assert "Sync complete: No changes needed" in result.output

    def test_sync_command_setup_failure(self, cli_runner):
        with patch(
            "label_syncer.cli.main.build_coordinator",
            side_effect=FileNotFoundError("Credentials file not found: credentials.json"),
        ):
            result = cli_runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "Setup failed" in result.output

    def test_edit_command_create(self, cli_runner, directory, coordinator_for):
        table = InMemoryLabelTable([("Work", "")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["edit", "2", "", "Work"])

        assert result.exit_code == 0
        assert '✓ Success: New label "Work" created in Gmail.' in result.output
        assert table.get_id(2) == directory.labels["Work"]

    def test_edit_command_conflict(self, cli_runner, make_directory, coordinator_for):
        directory = make_directory({"Old": "Label_1"})
        directory.tag("Old", 3)
        table = InMemoryLabelTable([("", "Label_1")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["edit", "2", "Old", ""])

        assert result.exit_code == 0
        assert "Warning" in result.output
        assert "3 threads using it" in result.output
        assert table.get_name(2) == "Old"

    def test_edit_command_failure_exits_nonzero(self, cli_runner, directory, coordinator_for):
        directory.fail_create.add("Work")
        table = InMemoryLabelTable([("Work", "")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["edit", "2", "", "Work"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_edit_command_noop(self, cli_runner, directory, coordinator_for):
        table = InMemoryLabelTable([("Work", "")])

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator_for(table, directory)):
            result = cli_runner.invoke(cli, ["edit", "2", "Work", "Work"])

        assert result.exit_code == 0
        assert "No label change to apply." in result.output

    def test_open_command_auto_sync_disabled(self, cli_runner, directory, settings_db, coordinator_for):
        coordinator = coordinator_for(InMemoryLabelTable(), directory, settings_db)

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator):
            result = cli_runner.invoke(cli, ["open"])

        assert result.exit_code == 0
        assert "Auto Sync is disabled" in result.output

    def test_open_command_auto_sync_enabled(self, cli_runner, make_directory, settings_db, coordinator_for):
        settings_db.set_auto_sync_enabled(True)
        directory = make_directory({"Personal": "Label_7"})
        coordinator = coordinator_for(InMemoryLabelTable(), directory, settings_db)

        with patch("label_syncer.cli.main.build_coordinator", return_value=coordinator):
            result = cli_runner.invoke(cli, ["open"])

        assert result.exit_code == 0
        assert "Auto Sync complete: 1 label(s) synchronized" in result.output

    def test_toggle_auto_sync_command(self, cli_runner, settings_db):
        with patch("label_syncer.cli.main.SettingsDatabase", return_value=settings_db):
            first = cli_runner.invoke(cli, ["toggle-auto-sync"])
            second = cli_runner.invoke(cli, ["toggle-auto-sync"])

        assert "Auto Sync ENABLED" in first.output
        assert "Auto Sync DISABLED" in second.output

    def test_history_command_empty(self, cli_runner, settings_db):
        with patch("label_syncer.cli.main.SettingsDatabase", return_value=settings_db):
            result = cli_runner.invoke(cli, ["history"])

        assert result.exit_code == 0
        assert "No sync runs recorded." in result.output

    def test_status_command(self, cli_runner, settings_db):
        authenticator = Mock()
        authenticator.has_stored_credentials.return_value = False

        with patch("label_syncer.cli.main.SettingsDatabase", return_value=settings_db), patch(
            "label_syncer.cli.main.GoogleAuthenticator", return_value=authenticator
        ):
            result = cli_runner.invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "Google: Not authenticated" in result.output
        assert "Auto Sync On Startup: OFF" in result.output
        assert "Last sync: never" in result.output

    def test_logout_cancelled(self, cli_runner):
        authenticator = Mock()

        with patch("label_syncer.cli.main.GoogleAuthenticator", return_value=authenticator):
            result = cli_runner.invoke(cli, ["logout"], input="n\n")

        assert "Logout cancelled." in result.output
        authenticator.revoke_credentials.assert_not_called()

    def test_logout_confirmed(self, cli_runner):
        authenticator = Mock()
        authenticator.revoke_credentials.return_value = True

        with patch("label_syncer.cli.main.GoogleAuthenticator", return_value=authenticator):
            result = cli_runner.invoke(cli, ["logout"], input="y\n")

        assert "Credentials cleared" in result.output
