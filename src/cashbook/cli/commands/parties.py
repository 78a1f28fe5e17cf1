"""Client and company profile commands."""

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.documents import DocumentService
from cashbook.domain.errors import DomainError


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("add")
@click.argument("name", metavar="CLIENT_NAME")
@click.option("--vat-number", help="Client VAT number")
@click.option("--email", help="Contact email")
@click.option("--address", help="Postal address")
@click.pass_context
def add_client(ctx, name: str, vat_number: str | None, email: str | None, address: str | None):
    """Add a client.

    Example:
        cashbook client add "ACME SARL" --vat-number FR12345678901
    """
    db = ctx.obj["db"]
    try:
        client = DocumentService(db).create_client(
            name, vat_number=vat_number, email=email, address=address
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created client '{client.name}' (ID: {client.id})")


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List clients."""
    db = ctx.obj["db"]
    clients = DocumentService(db).list_clients()
    if not clients:
        click.echo("No clients found.")
        return
    for client in clients:
        click.echo(f"ID: {client.id:3d} | {client.name:30s} | VAT: {client.vat_number or '-'}")


@click.group()
def company_group():
    """Manage the company profile."""
    pass


@company_group.command("set")
@click.argument("name", metavar="COMPANY_NAME")
@click.option("--tax-id", help="VAT / tax identifier")
@click.option("--iban", help="IBAN printed on invoices")
@click.option("--address", help="Postal address")
@click.option("--country", help="Country code")
@click.pass_context
def set_company(
    ctx,
    name: str,
    tax_id: str | None,
    iban: str | None,
    address: str | None,
    country: str | None,
):
    """Set the company profile used as seller on invoices and exports."""
    db = ctx.obj["db"]
    try:
        company = DocumentService(db).set_company(
            name, tax_id=tax_id, iban=iban, address=address, country=country
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Company set to '{company.name}'")


@company_group.command("show")
@click.pass_context
def show_company(ctx):
    """Show the company profile."""
    db = ctx.obj["db"]
    company = DocumentService(db).get_company()
    if company is None:
        click.echo("No company profile set.")
        return
    click.echo(f"Name:    {company.name}")
    click.echo(f"Tax ID:  {company.tax_id or '-'}")
    click.echo(f"IBAN:    {company.iban or '-'}")
    click.echo(f"Country: {company.country or '-'}")


def register_commands(cli):
    """Register client and company commands with main CLI."""
    cli.add_command(client_group, name="client")
    cli.add_command(company_group, name="company")
