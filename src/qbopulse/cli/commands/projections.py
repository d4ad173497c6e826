"""Projection command."""

import click

from qbopulse.cli.error_handling import handle_domain_error
from qbopulse.domain.errors import DomainError
from qbopulse.domain.insights import historical_insights, projection_insights
from qbopulse.domain.projection import ProjectionEngine
from qbopulse.domain.recurring import RecurringExpenseDetector
from qbopulse.utils.date_parser import last_of_month


def _echo_point(point) -> None:
    marker = "*" if point.is_projected else " "
    line = (
        f"{marker} {point.label:<7} {point.revenue:>14,.2f} "
        f"{point.cash_flow:>14,.2f} {point.net_profit:>14,.2f}"
    )
    if point.recurring_expenses:
        line += "  " + ", ".join(expense.description for expense in point.recurring_expenses)
    click.echo(line)


@click.command("projections")
@click.argument("company_id")
@click.option("--history/--no-history", default=True, help="Show observed months before projections")
@click.pass_context
def projections(ctx, company_id: str, history: bool):
    """Project the next twelve months for COMPANY_ID."""
    db = ctx.obj["db"]
    engine = ProjectionEngine()

    facts = db.list_monthly_facts(company_id)
    try:
        transactions = db.list_transactions(company_id)
        recurring = []
        if facts:
            recurring = RecurringExpenseDetector().detect(
                transactions, after=last_of_month(facts[-1].month), horizon_months=engine.horizon
            )
        points = engine.project(facts, recurring)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"  {'Month':<7} {'Revenue':>14} {'Cash flow':>14} {'Net profit':>14}")
    if history:
        for point in engine.historical_points(facts):
            _echo_point(point)
    for point in points:
        _echo_point(point)

    insights = historical_insights(facts) + projection_insights(points)
    if insights:
        click.echo("\nInsights:")
        for insight in insights:
            click.echo(f"  [{insight.severity.value}] {insight.message}")


def register_commands(cli):
    """Register projections command with main CLI."""
    cli.add_command(projections)
