"""Accounting setup and chart of accounts commands."""

import json

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.chart import ChartService
from cashbook.domain.errors import DomainError
from cashbook.domain.reports import to_dict


@click.command("init")
@click.argument("country", metavar="COUNTRY")
@click.pass_context
def init_accounting(ctx, country: str):
    """Initialize the chart of accounts for a country (FR, BE or OHADA).

    Running it again on an initialized tenant changes nothing.

    Examples:
        cashbook init FR
        cashbook --tenant acme init BE
    """
    db = ctx.obj["db"]
    service = ChartService(db)

    try:
        result = service.init_accounting(country)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.already_initialized:
        click.echo(f"Accounting already initialized ({result.country}).")
        return

    click.echo(f"Initialized {result.country} chart of accounts:")
    click.echo(f"  Accounts: {result.accounts_count}")
    click.echo(f"  Mappings: {result.mappings_count}")
    click.echo(f"  Tax rates: {result.tax_rates_count}")


@click.group("accounts", invoke_without_command=True)
@click.option("--category", help="Only list accounts of this category (asset, liability, ...)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def accounts_group(ctx, category: str | None, as_json: bool):
    """List the chart of accounts, or manage it with a subcommand."""
    if ctx.invoked_subcommand is not None:
        return

    db = ctx.obj["db"]
    service = ChartService(db)

    try:
        accounts = service.get_chart_of_accounts(category=category)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(json.dumps([to_dict(acc) for acc in accounts], indent=2))
        return

    if not accounts:
        click.echo("No accounts found. Run 'cashbook init COUNTRY' first.")
        return

    click.echo("\nChart of Accounts:")
    click.echo("-" * 80)
    click.echo(f"{'Code':<10} {'Name':<50} {'Category':<15}")
    click.echo("-" * 80)
    for acc in accounts:
        click.echo(f"{acc.code:<10} {acc.name[:50]:<50} {acc.category.value:<15}")


@accounts_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def import_accounts(ctx, csv_file: str):
    """Import accounts from a CSV file.

    The file needs account_code, account_name and account_category columns
    (parent_code is optional). Accounts that already carry journal entries
    are left unchanged.

    Example:
        cashbook accounts import my_chart.csv
    """
    db = ctx.obj["db"]
    service = ChartService(db)

    try:
        result = service.import_chart_csv(csv_file)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created {result['created']} account(s), updated {result['updated']}.")
    if result["errors"]:
        click.echo(f"\n{len(result['errors'])} error(s):", err=True)
        for error in result["errors"]:
            click.echo(f"  {error}", err=True)


def register_commands(cli):
    """Register setup commands with main CLI."""
    cli.add_command(init_accounting)
    cli.add_command(accounts_group)
