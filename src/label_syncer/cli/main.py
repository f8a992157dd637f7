"""Label syncer CLI interface."""

import sys
from dataclasses import replace
from typing import Optional

import click

from label_syncer.auth import GoogleAuthenticator
from label_syncer.lib.config import sheet_config, storage_config, sync_config
from label_syncer.lib.logger import get_logger
from label_syncer.lib.settings_db import SettingsDatabase
from label_syncer.models.results import EditEvent
from label_syncer.services.coordinator import SyncCoordinator
from label_syncer.services.label_directory import LabelDirectoryClient
from label_syncer.services.reporting import format_row_change, format_sync_summary
from label_syncer.storage.label_table import SheetsLabelTable

logger = get_logger(__name__)

_SYMBOLS = {"Success": "✓", "Info": "•", "Warning": "!", "Error": "✗"}


def build_coordinator(spreadsheet_id: Optional[str] = None) -> SyncCoordinator:
    """Authenticate and wire the sheet, Gmail and the settings database together."""
    creds = GoogleAuthenticator().authenticate()

    layout = sheet_config
    if spreadsheet_id:
        layout = replace(sheet_config, spreadsheet_id=spreadsheet_id)

    return SyncCoordinator(
        table=SheetsLabelTable(credentials=creds, config=layout),
        directory=LabelDirectoryClient(credentials=creds),
        settings_db=SettingsDatabase(),
        layout=layout,
    )


def _echo_sync_result(result, title: str = "Sync") -> None:
    for heading, message in format_sync_summary(result, title=title):
        err = heading == "Error"
        symbol = "✗" if err else "✓"
        click.echo(f"{symbol} {heading}: {message}", err=err)


spreadsheet_option = click.option(
    "--spreadsheet-id",
    default=None,
    help="Spreadsheet holding the label list (default: LABEL_SYNC_SPREADSHEET_ID)",
)


@click.group()
@click.version_option(version="0.1.0", prog_name="label-syncer")
def cli():
    """Label Syncer - keep a spreadsheet of label names in sync with Gmail."""
    storage_config.ensure_directories()


@cli.command()
@click.option("--force", is_flag=True, help="Force re-authentication")
def auth(force):
    """Authenticate with the Gmail and Sheets APIs."""
    click.echo("Google Authentication")
    click.echo("=====================")

    try:
        authenticator = GoogleAuthenticator()

        if force:
            click.echo("Forcing re-authentication...")

        click.echo("Opening browser for authentication...")
        creds = authenticator.authenticate(force_reauth=force)

        if creds and creds.valid:
            click.echo("✓ Authentication successful!")
            click.echo("  Refresh token saved securely in system keyring")
        else:
            click.echo("✗ Authentication failed", err=True)
            sys.exit(1)

    except Exception as e:
        click.echo(f"✗ Authentication error: {e}", err=True)
        sys.exit(1)


@cli.command()
@spreadsheet_option
def sync(spreadsheet_id):
    """Sync all labels between the spreadsheet and Gmail (never deletes)."""
    click.echo("Label Sync")
    click.echo("==========")

    try:
        coordinator = build_coordinator(spreadsheet_id)
    except Exception as e:
        click.echo(f"✗ Setup failed: {e}", err=True)
        sys.exit(1)

    result = coordinator.run_sync(trigger="manual")
    _echo_sync_result(result)

    if result.ids_repaired:
        click.echo(f"  Label IDs refreshed: {len(result.ids_repaired)}")


@cli.command()
@click.argument("row", type=int)
@click.argument("old_value")
@click.argument("new_value")
@click.option(
    "--column",
    type=int,
    default=None,
    help="Edited column (default: the configured name column)",
)
@spreadsheet_option
def edit(row, old_value, new_value, column, spreadsheet_id):
    """Apply one edit of the label name column.

    The edited cell must already hold NEW_VALUE in the sheet. Use "" for an
    empty value.

    Examples:
        label-syncer edit 5 "" "Projects/Acme"     # create
        label-syncer edit 5 "Projects/Acme" ""     # delete
        label-syncer edit 5 "Old" "New"            # rename
    """
    try:
        coordinator = build_coordinator(spreadsheet_id)
    except Exception as e:
        click.echo(f"✗ Setup failed: {e}", err=True)
        sys.exit(1)

    event = EditEvent(
        row=row,
        column=column or coordinator.processor.layout.name_column,
        old_value=old_value,
        new_value=new_value,
    )
    result = coordinator.on_edit(event)

    if result.action == "noop" and result.status == "skipped":
        click.echo("No label change to apply.")
        return

    level, message = format_row_change(result)
    click.echo(f"{_SYMBOLS[level]} {level}: {message}", err=level == "Error")

    if level == "Error":
        sys.exit(1)


@cli.command(name="open")
@spreadsheet_option
def open_sheet(spreadsheet_id):
    """Run the sheet-open hook (auto sync if enabled)."""
    try:
        coordinator = build_coordinator(spreadsheet_id)
    except Exception as e:
        click.echo(f"✗ Setup failed: {e}", err=True)
        sys.exit(1)

    result = coordinator.on_open()

    if result is None:
        click.echo("Auto Sync is disabled; nothing to do.")
        return

    _echo_sync_result(result, title="Auto Sync")


@cli.command(name="toggle-auto-sync")
def toggle_auto_sync():
    """Turn Auto Sync On Startup on or off."""
    with SettingsDatabase() as db:
        enabled = db.toggle_auto_sync()

    click.echo(f"Auto Sync {'ENABLED' if enabled else 'DISABLED'}")


@cli.command()
def status():
    """Show authentication, layout and last sync."""
    click.echo("Label Syncer Status")
    click.echo("===================")

    if GoogleAuthenticator().has_stored_credentials():
        click.echo("✓ Google: Authenticated")
    else:
        click.echo("✗ Google: Not authenticated")
        click.echo("  Run: label-syncer auth")

    with SettingsDatabase() as db:
        auto_sync = db.get_auto_sync_enabled()
        last_run = db.last_sync_run()

    click.echo()
    click.echo("Configuration:")
    click.echo(f"  Spreadsheet: {sheet_config.spreadsheet_id or '(not set)'}")
    click.echo(f"  Sheet: {sheet_config.sheet_name}")
    click.echo(
        f"  Columns: ID={sheet_config.label_id_column}, "
        f"Name={sheet_config.name_column}, header row {sheet_config.header_row}"
    )
    click.echo(f"  Rename batch size: {sync_config.batch_size}")
    click.echo(f"  Auto Sync On Startup: {'ON' if auto_sync else 'OFF'}")
    click.echo(f"  Data directory: {storage_config.home_dir}")

    click.echo()
    if last_run:
        click.echo(
            f"Last sync: {last_run.started_at.strftime('%Y-%m-%d %H:%M:%S')} "
            f"({last_run.trigger}), {last_run.total_changes} label(s) synchronized"
        )
    else:
        click.echo("Last sync: never")


@cli.command()
@click.option("--limit", type=int, default=10, help="Number of runs to show")
def history(limit):
    """List recent sync runs."""
    with SettingsDatabase() as db:
        runs = db.list_sync_runs(limit=limit)

    if not runs:
        click.echo("No sync runs recorded.")
        return

    for run in runs:
        click.echo(f"{run.started_at.strftime('%Y-%m-%d %H:%M:%S')} [{run.trigger}]")
        click.echo(f"  Created in Gmail: {len(run.created_in_gmail)}")
        click.echo(f"  Added to sheet: {len(run.added_to_sheet)}")
        click.echo(f"  IDs refreshed: {run.ids_repaired}")
        if run.failures:
            click.echo(f"  Failures: {len(run.failures)}")


@cli.command()
def logout():
    """Clear stored Google credentials."""
    if not click.confirm("Clear Google credentials?"):
        click.echo("Logout cancelled.")
        return

    if GoogleAuthenticator().revoke_credentials():
        click.echo("✓ Credentials cleared")
        click.echo("Run 'label-syncer auth' to login again")
    else:
        click.echo("No stored credentials found.")


if __name__ == "__main__":
    cli()
