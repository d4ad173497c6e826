"""Backfill command."""

import click

from qbopulse.cli.context import get_report_source, resolve_as_of
from qbopulse.cli.error_handling import handle_domain_error
from qbopulse.domain.backfill import BackfillService
from qbopulse.domain.entities import AccountingMethod
from qbopulse.domain.errors import DomainError


@click.command("backfill")
@click.argument("company_id")
@click.option("--months", type=int, help="Months of history to pull (default QBOPULSE_MONTHS_BACK)")
@click.option(
    "--method",
    type=click.Choice(["cash", "accrual"], case_sensitive=False),
    default="cash",
    show_default=True,
    help="Accounting basis for the reports",
)
@click.option("--as-of", help="Reference date (default today)")
@click.pass_context
def backfill(ctx, company_id: str, months: int | None, method: str, as_of: str | None):
    """Rebuild monthly facts and line items for COMPANY_ID from QuickBooks."""
    db = ctx.obj["db"]
    today = resolve_as_of(ctx, as_of)
    service = BackfillService(db, get_report_source(ctx))
    accounting_method = AccountingMethod.ACCRUAL if method.lower() == "accrual" else AccountingMethod.CASH

    try:
        result = service.run(
            company_id,
            months_back=months if months is not None else ctx.obj["settings"].months_back,
            accounting_method=accounting_method,
            today=today,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nBackfill complete:")
    click.echo(f"  Months processed: {result.months_processed}")
    click.echo(f"  Transactions: {result.total_transactions}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register backfill command with main CLI."""
    cli.add_command(backfill)
