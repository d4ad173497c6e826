"""Offline report parsing command."""

import json
from datetime import date

import click

from qbopulse.domain.entities import MonthRange
from qbopulse.domain.report_parser import parse_detail, parse_summary
from qbopulse.utils.date_parser import first_of_month, last_of_month, parse_report_date


def _report_month(report: dict) -> MonthRange:
    """Month covered by a saved report, from its header or today."""
    header = report.get("Header") or {}
    start = parse_report_date(header.get("StartPeriod")) or date.today()
    start = first_of_month(start)
    return MonthRange(start=start, end=last_of_month(start))


@click.command("parse-report")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--detail", is_flag=True, help="Parse as a ProfitAndLossDetail report")
@click.option("--company-id", default="local", show_default=True, help="Company ID for parsed lines")
@click.pass_context
def parse_report(ctx, report_file: str, detail: bool, company_id: str):
    """Parse a saved QuickBooks P&L report JSON file."""
    try:
        with open(report_file, encoding="utf-8") as f:
            report = json.load(f)
    except json.JSONDecodeError as e:
        click.echo(f"Error: {report_file} is not valid JSON: {e}", err=True)
        ctx.exit(1)

    if not detail:
        totals = parse_summary(report)
        click.echo(f"Revenue:    {totals.revenue:>14,.2f}")
        click.echo(f"COGS:       {totals.cogs:>14,.2f}")
        click.echo(f"Expenses:   {totals.expenses:>14,.2f}")
        click.echo(f"Net profit: {totals.net_profit:>14,.2f}")
        return

    transactions = parse_detail(report, _report_month(report), company_id)
    if not transactions:
        click.echo("No line items found.")
        return

    for txn in transactions:
        click.echo(
            f"{txn.date.isoformat()}  {txn.section.value:<7}  {txn.amount:>12,.2f}  "
            f"{txn.source:<20}  {txn.description}"
        )
    click.echo(f"\n{len(transactions)} line items")


def register_commands(cli):
    """Register parse-report command with main CLI."""
    cli.add_command(parse_report)
