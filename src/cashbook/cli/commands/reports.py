"""Ledger report commands."""

import json

import click

from cashbook.cli.date_filters import (
    parse_cli_date,
    period_options,
    pop_period_flags,
    resolve_cli_date_range,
)
from cashbook.domain.reports import ReportService, to_dict
from cashbook.utils.date_parser import get_date_range


@click.command("entries")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.option("--account", "account_code", help="Only entries touching this account code")
@click.option("--reference", help="Only entries with this reference (e.g. an invoice number)")
@click.option("--limit", type=int, default=100, show_default=True, help="Maximum number of entries")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_entries(ctx, start_date, end_date, account_code, reference, limit, as_json, **kwargs):
    """List journal entries."""
    db = ctx.obj["db"]
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )

    entries = ReportService(db).get_accounting_entries(
        start_date=start,
        end_date=end,
        account_code=account_code,
        reference_id=reference,
        limit=limit,
    )

    if as_json:
        click.echo(json.dumps([to_dict(e) for e in entries], indent=2))
        return

    if not entries:
        click.echo("No entries found.")
        return

    click.echo(
        f"{'ID':<6} {'Date':<12} {'Jnl':<4} {'Debit':<8} {'Credit':<8} {'Amount':>12}  Description"
    )
    click.echo("-" * 100)
    for e in entries:
        click.echo(
            f"{e.id:<6} {e.date.isoformat():<12} {e.journal_code:<4} {e.debit_account:<8} "
            f"{e.credit_account:<8} {e.amount:>12.2f}  {e.description}"
        )


@click.command("trial-balance")
@click.option("--as-of", help="Cutoff date (defaults to today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def trial_balance(ctx, as_of: str | None, as_json: bool):
    """Show debit and credit totals per account."""
    db = ctx.obj["db"]
    cutoff = parse_cli_date(ctx, as_of, "as-of date") if as_of else None

    balance = ReportService(db).get_trial_balance(as_of=cutoff)

    if as_json:
        click.echo(json.dumps(to_dict(balance), indent=2))
        return

    click.echo(f"\nTrial Balance as of {balance.as_of.isoformat()}:")
    click.echo("-" * 90)
    click.echo(f"{'Account':<10} {'Name':<40} {'Debit':>12} {'Credit':>12} {'Balance':>12}")
    click.echo("-" * 90)
    for line in balance.lines:
        click.echo(
            f"{line.account_code:<10} {line.account_name[:40]:<40} "
            f"{line.total_debit:>12.2f} {line.total_credit:>12.2f} {line.balance:>12.2f}"
        )
    click.echo("-" * 90)
    click.echo(f"{'TOTAL':<51} {balance.total_debit:>12.2f} {balance.total_credit:>12.2f}")
    if not balance.balanced:
        click.echo("Warning: trial balance does not balance.", err=True)


@click.command("tax-summary")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tax_summary(ctx, start_date, end_date, as_json, **kwargs):
    """Show the VAT position for a period (defaults to the current month)."""
    db = ctx.obj["db"]
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(kwargs),
        default_range=get_date_range("this-month"),
    )
    if start is None or end is None:
        click.echo("Error: Both --start-date and --end-date are required.", err=True)
        ctx.exit(1)

    summary = ReportService(db).get_tax_summary(start, end)

    if as_json:
        click.echo(json.dumps(to_dict(summary), indent=2))
        return

    click.echo(f"\nTax Summary {summary.start_date.isoformat()} to {summary.end_date.isoformat()}:")
    click.echo("-" * 50)
    click.echo(f"{'Revenue (HT)':<30} {summary.revenue_ht:>18.2f}")
    click.echo(f"{'Output VAT':<30} {summary.output_vat:>18.2f}")
    click.echo(f"{'Expenses':<30} {summary.total_expenses:>18.2f}")
    click.echo(f"{'Input VAT (estimated)':<30} {summary.estimated_input_vat:>18.2f}")
    click.echo("-" * 50)
    click.echo(f"{'VAT payable':<30} {summary.vat_payable:>18.2f}")
    click.echo(
        f"\n{summary.invoice_count} invoice(s), {summary.expense_count} expense(s); "
        f"input VAT estimated at {summary.vat_rate}%."
    )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(list_entries)
    cli.add_command(trial_balance)
    cli.add_command(tax_summary)
