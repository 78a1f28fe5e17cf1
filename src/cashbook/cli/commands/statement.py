"""Bank statement commands."""

import json
from pathlib import Path

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.errors import DomainError
from cashbook.domain.reconciliation import ReconciliationService
from cashbook.utils.statement_csv import read_statement_csv


@click.group()
def statement_group():
    """Import and inspect bank statements."""
    pass


@statement_group.command("import")
@click.argument("statement_file", type=click.Path(exists=True))
@click.option("--bank", help="Bank name")
@click.option("--account-number", help="Bank account number")
@click.option(
    "--dayfirst/--monthfirst",
    default=True,
    show_default=True,
    help="How to read ambiguous dates such as 01/02/2024",
)
@click.pass_context
def import_statement(
    ctx, statement_file: str, bank: str | None, account_number: str | None, dayfirst: bool
):
    """Import a bank statement from a CSV export or a JSON file.

    CSV files need date, description and amount (or debit and credit)
    columns; French and English headers are recognized. JSON files hold the
    statement fields and a "lines" list.

    Examples:
        cashbook statement import releve_mars.csv --bank "Crédit Agricole"
        cashbook statement import statement.json
    """
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        if Path(statement_file).suffix.lower() == ".json":
            with open(statement_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            if bank:
                data["bank_name"] = bank
            if account_number:
                data["account_number"] = account_number
        else:
            data = read_statement_csv(statement_file, bank_name=bank, account_number=account_number)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        result = service.import_statement(data, dayfirst=dayfirst)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Imported statement {result.statement_id}: {result.imported} line(s) [{result.parse_status.value}]")
    if result.errors:
        click.echo(f"\n{len(result.errors)} line(s) skipped:", err=True)
        for error in result.errors:
            click.echo(f"  {error}", err=True)


@statement_group.command("list")
@click.pass_context
def list_statements(ctx):
    """List imported statements."""
    db = ctx.obj["db"]
    statements = ReconciliationService(db).list_statements()
    if not statements:
        click.echo("No statements found.")
        return

    click.echo(f"{'ID':<5} {'Bank':<25} {'Account':<20} {'Lines':>6}  Status")
    click.echo("-" * 70)
    for s in statements:
        click.echo(
            f"{s.id:<5} {(s.bank_name or '-')[:25]:<25} {(s.account_number or '-')[:20]:<20} "
            f"{s.line_count:>6}  {s.parse_status.value}"
        )


@statement_group.command("show")
@click.argument("statement_id", type=int)
@click.option(
    "--status",
    type=click.Choice(["unmatched", "matched", "ignored"]),
    help="Only lines in this reconciliation status",
)
@click.pass_context
def show_statement(ctx, statement_id: int, status: str | None):
    """Show a statement's lines."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        statement = service.get_statement(statement_id)
        lines = service.list_lines(statement_id, status=status)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nStatement {statement.id} - {statement.bank_name or 'unknown bank'}")
    for error in statement.parse_errors:
        click.echo(f"  skipped: {error}")
    click.echo("-" * 100)
    for line in lines:
        match = ""
        if line.matched_source_type is not None:
            match = f"-> {line.matched_source_type.value}:{line.matched_source_id}"
        click.echo(
            f"{line.id:<6} {line.transaction_date.isoformat():<12} {line.amount:>12.2f}  "
            f"{line.description[:40]:<40} {line.reconciliation_status.value:<10} {match}"
        )


@statement_group.command("delete")
@click.argument("statement_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_statement(ctx, statement_id: int, yes: bool):
    """Delete a statement with its lines and sessions."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    if not yes and not click.confirm(f"Are you sure you want to delete statement {statement_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_statement(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted statement {statement_id}")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
