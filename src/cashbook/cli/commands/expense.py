"""Expense commands."""

import click

from cashbook.cli.date_filters import parse_cli_amount, parse_cli_date
from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.documents import DocumentService
from cashbook.domain.errors import DomainError


@click.group()
def expense_group():
    """Manage expenses."""
    pass


@expense_group.command("add")
@click.option("--amount", required=True, help="Amount paid, tax included (e.g., 89.90)")
@click.option("--date", "expense_date", default="today", show_default=True, help="Expense date")
@click.option("--description", help="Description")
@click.option("--category", default="general", show_default=True, help="Expense category (office, travel, ...)")
@click.option("--tax-amount", help="Recoverable VAT included in the amount")
@click.pass_context
def add_expense(
    ctx,
    amount: str,
    expense_date: str,
    description: str | None,
    category: str,
    tax_amount: str | None,
):
    """Record an expense paid from the bank account.

    Examples:
        cashbook expense add --amount 120 --category office --description "Paper"
        cashbook expense add --amount 60 --tax-amount 10 --category software
    """
    db = ctx.obj["db"]
    value = parse_cli_amount(ctx, amount)
    tax = parse_cli_amount(ctx, tax_amount, "tax amount") if tax_amount is not None else None
    spent_on = parse_cli_date(ctx, expense_date, "expense date")

    try:
        expense = DocumentService(db).add_expense(
            expense_date=spent_on,
            amount=value,
            description=description,
            category=category,
            tax_amount=tax,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded expense {expense.id}: {expense.amount:.2f} ({expense.category})")


@expense_group.command("delete")
@click.argument("expense_id", type=int)
@click.pass_context
def delete_expense(ctx, expense_id: int):
    """Delete an expense after reversing its journal entries."""
    db = ctx.obj["db"]
    try:
        DocumentService(db).delete_expense(expense_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted expense {expense_id}")


@expense_group.command("list")
@click.pass_context
def list_expenses(ctx):
    """List expenses."""
    db = ctx.obj["db"]
    expenses = DocumentService(db).list_expenses()
    if not expenses:
        click.echo("No expenses found.")
        return

    for exp in expenses:
        click.echo(
            f"{exp.id:<5} {exp.date.isoformat():<12} {exp.category:<15} "
            f"{exp.amount:>12.2f}  {exp.description or ''}"
        )


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
