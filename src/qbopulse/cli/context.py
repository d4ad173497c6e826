"""CLI helpers for resolving the reference date and report source."""

from datetime import date

import click

from qbopulse.config import Settings
from qbopulse.qbo.base import ReportSource
from qbopulse.qbo.client import QBOClient
from qbopulse.utils.date_parser import parse_date


def resolve_as_of(ctx: click.Context, as_of: str | None) -> date:
    """Parse an --as-of option, defaulting to today."""
    if not as_of:
        return date.today()
    try:
        return parse_date(as_of)
    except ValueError as e:
        click.echo(f"Error: Invalid --as-of date: {e}", err=True)
        ctx.exit(1)


def get_report_source(ctx: click.Context) -> ReportSource:
    """Return the report source for this invocation.

    A source already placed in ``ctx.obj`` wins; otherwise a QBOClient is
    built from settings.
    """
    source = ctx.obj.get("source")
    if source is not None:
        return source

    settings: Settings = ctx.obj["settings"]
    if not settings.has_credentials:
        click.echo("Error: QBO_REALM_ID and QBO_ACCESS_TOKEN must be set", err=True)
        ctx.exit(1)

    source = QBOClient(
        realm_id=settings.realm_id,
        access_token=settings.access_token,
        base_url=settings.base_url,
        minor_version=settings.minor_version,
        request_delay=settings.request_delay,
    )
    ctx.obj["source"] = source
    return source
