"""Main CLI entry point."""

import click

from qbopulse.cli.error_handling import handle_domain_error
from qbopulse.cli.logging_setup import configure_logging
from qbopulse.config import load_settings
from qbopulse.database.factories import create_sqlite_database
from qbopulse.domain.errors import DomainError

# Import and register all commands at module level
from qbopulse.cli.commands import (
    backfill,
    sync,
    parse_report,
    projections,
    compare,
    kpi,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides QBOPULSE_DB_PATH environment variable)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log verbosity (overrides QBOPULSE_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """qbopulse - QuickBooks P&L backfill, projections and insights.

    Pull monthly Profit and Loss reports from QuickBooks Online, store them
    as monthly facts and project the next twelve months.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings()
    except DomainError as e:
        handle_domain_error(ctx, e)
    ctx.obj["settings"] = settings
    configure_logging(log_level or settings.log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None and "db" not in ctx.obj:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
backfill.register_commands(cli)
sync.register_commands(cli)
parse_report.register_commands(cli)
projections.register_commands(cli)
compare.register_commands(cli)
kpi.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
