"""Sync status commands."""

import click

from qbopulse.cli.error_handling import handle_domain_error
from qbopulse.database.base import Database
from qbopulse.domain.errors import DomainError, NotFoundError, no_sync_status


@click.command("request-sync")
@click.argument("company_id")
@click.pass_context
def request_sync(ctx, company_id: str):
    """Queue a backfill for COMPANY_ID by creating a pending sync status."""
    db: Database = ctx.obj["db"]
    try:
        sync_id = db.create_sync_status(company_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created pending sync {sync_id} for {company_id}")


@click.command("sync-status")
@click.argument("company_id")
@click.pass_context
def sync_status(ctx, company_id: str):
    """Show the latest sync status for COMPANY_ID."""
    db: Database = ctx.obj["db"]
    status = db.get_latest_sync_status(company_id)
    if status is None:
        handle_domain_error(ctx, NotFoundError(no_sync_status(company_id)))

    click.echo(f"Sync {status.id}: {status.status.value}")
    click.echo(f"  Created: {status.created_at:%Y-%m-%d %H:%M:%S}")
    if status.started_at:
        click.echo(f"  Started: {status.started_at:%Y-%m-%d %H:%M:%S}")
    if status.completed_at:
        click.echo(f"  Completed: {status.completed_at:%Y-%m-%d %H:%M:%S}")
    click.echo(f"  Records synced: {status.records_synced}")
    if status.error_message:
        click.echo(f"  Errors: {status.error_message}")


def register_commands(cli):
    """Register sync commands with main CLI."""
    cli.add_command(request_sync)
    cli.add_command(sync_status)
