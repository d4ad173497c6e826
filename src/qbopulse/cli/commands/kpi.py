"""KPI summary command."""

import click

from qbopulse.cli.context import resolve_as_of
from qbopulse.domain.performance import PerformanceService


@click.command("kpi")
@click.argument("company_id")
@click.option("--as-of", help="Reference date (default today)")
@click.pass_context
def kpi(ctx, company_id: str, as_of: str | None):
    """Show trailing twelve-month revenue and net profit for COMPANY_ID."""
    service = PerformanceService(ctx.obj["db"])
    summary = service.kpi_summary(company_id, today=resolve_as_of(ctx, as_of))

    click.echo(f"Total revenue: {summary.total_revenue:,.2f} ({summary.revenue_change:+.1f}%)")
    click.echo(f"Net profit:    {summary.net_profit:,.2f} ({summary.net_profit_change:+.1f}%)")


def register_commands(cli):
    """Register kpi command with main CLI."""
    cli.add_command(kpi)
