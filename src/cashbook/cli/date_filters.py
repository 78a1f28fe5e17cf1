"""CLI helpers for date range resolution and option parsing."""

from datetime import date
from decimal import Decimal

import click

from cashbook.utils.amount_parser import parse_amount
from cashbook.utils.date_parser import get_date_range, parse_date


def period_options(command):
    """Add --this-month ... --last-year flags to a command."""
    for flag, label in reversed(
        [
            ("--this-month", "current month"),
            ("--this-quarter", "current quarter"),
            ("--this-year", "current year"),
            ("--last-month", "previous month"),
            ("--last-quarter", "previous quarter"),
            ("--last-year", "previous year"),
        ]
    ):
        command = click.option(flag, is_flag=True, help=f"Filter to {label}")(command)
    return command


def pop_period_flags(kwargs: dict) -> dict[str, bool]:
    """Remove the period flags from a command's kwargs, keyed by period name."""
    return {
        period: kwargs.pop(period.replace("-", "_"), False)
        for period in (
            "this-month",
            "this-quarter",
            "this-year",
            "last-month",
            "last-quarter",
            "last-year",
        )
    }


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-quarter, --this-year, --last-month, --last-quarter, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            start = parse_cli_date(ctx, start_date, "start date")
        if end_date:
            end = parse_cli_date(ctx, end_date, "end date")

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end


def parse_cli_date(ctx, value: str, label: str = "date") -> date:
    """Parse a date option, exiting with an error message when invalid."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_cli_amount(ctx, value: str, label: str = "amount") -> Decimal:
    """Parse an amount option, exiting with an error message when invalid."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)
