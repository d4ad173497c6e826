"""Performance comparison command."""

import click

from qbopulse.cli.context import resolve_as_of
from qbopulse.cli.error_handling import handle_domain_error
from qbopulse.domain.entities import Metric, TimePeriod
from qbopulse.domain.errors import DomainError
from qbopulse.domain.performance import PerformanceService


@click.command("compare")
@click.argument("company_id")
@click.option(
    "--period",
    type=click.Choice([p.value for p in TimePeriod]),
    default=TimePeriod.THIS_YEAR_VS_LAST_YEAR.value,
    show_default=True,
    help="Periods to compare",
)
@click.option(
    "--metric",
    type=click.Choice([m.value for m in Metric]),
    default=Metric.GROSS_REVENUE.value,
    show_default=True,
    help="Metric to compare",
)
@click.option("--as-of", help="Reference date (default today)")
@click.pass_context
def compare(ctx, company_id: str, period: str, metric: str, as_of: str | None):
    """Compare a metric for COMPANY_ID between two periods."""
    service = PerformanceService(ctx.obj["db"])
    today = resolve_as_of(ctx, as_of)

    try:
        result = service.compare(company_id, TimePeriod(period), Metric(metric), today=today)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.is_neutral:
        trend = "stable"
    else:
        trend = "favorable" if result.is_positive else "unfavorable"

    click.echo(f"{result.period.current_label}: {result.current_value:,.2f}")
    click.echo(f"{result.period.compare_label}: {result.compare_value:,.2f}")
    click.echo(f"Change: {result.change_amount:+,.2f} ({result.change_percentage:+.1f}%, {trend})")
    for related in result.related_metrics:
        click.echo(f"  {related.name}: {related.value:,.2f} ({related.change:+.1f}%)")
    click.echo(f"\n{result.insight}")


def register_commands(cli):
    """Register compare command with main CLI."""
    cli.add_command(compare)
