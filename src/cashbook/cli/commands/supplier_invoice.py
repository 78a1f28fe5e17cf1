"""Supplier invoice commands."""

import click

from cashbook.cli.date_filters import parse_cli_amount, parse_cli_date
from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.documents import DocumentService
from cashbook.domain.errors import DomainError


@click.group()
def supplier_invoice_group():
    """Manage supplier invoices."""
    pass


@supplier_invoice_group.command("add")
@click.option("--amount", required=True, help="Amount excluding tax")
@click.option("--vat", default="0", show_default=True, help="VAT amount")
@click.option("--date", "invoice_date", default="today", show_default=True, help="Invoice date")
@click.option("--number", "invoice_number", help="Supplier's invoice number")
@click.option("--supplier", "supplier_name", help="Supplier name")
@click.option(
    "--category",
    type=click.Choice(["purchase", "service", "supply"]),
    default="purchase",
    show_default=True,
    help="Purchase category",
)
@click.pass_context
def add_supplier_invoice(
    ctx,
    amount: str,
    vat: str,
    invoice_date: str,
    invoice_number: str | None,
    supplier_name: str | None,
    category: str,
):
    """Record a supplier invoice as payable.

    Example:
        cashbook supplier-invoice add --amount 500 --vat 100 --supplier "EDF" --number F-881
    """
    db = ctx.obj["db"]
    total_ht = parse_cli_amount(ctx, amount)
    vat_amount = parse_cli_amount(ctx, vat, "VAT amount")
    received = parse_cli_date(ctx, invoice_date, "invoice date")

    try:
        invoice = DocumentService(db).add_supplier_invoice(
            invoice_date=received,
            total_ht=total_ht,
            vat_amount=vat_amount,
            invoice_number=invoice_number,
            supplier_name=supplier_name,
            category=category,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Recorded supplier invoice {invoice.id}: "
        f"{invoice.total_ht + invoice.vat_amount:.2f} TTC [{invoice.payment_status}]"
    )


@supplier_invoice_group.command("pay")
@click.argument("supplier_invoice_id", type=int)
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.pass_context
def pay_supplier_invoice(ctx, supplier_invoice_id: int, payment_date: str):
    """Record payment of a supplier invoice from the bank account."""
    db = ctx.obj["db"]
    paid_on = parse_cli_date(ctx, payment_date, "payment date")
    try:
        DocumentService(db).pay_supplier_invoice(supplier_invoice_id, payment_date=paid_on)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Supplier invoice {supplier_invoice_id} paid")


@supplier_invoice_group.command("delete")
@click.argument("supplier_invoice_id", type=int)
@click.pass_context
def delete_supplier_invoice(ctx, supplier_invoice_id: int):
    """Delete a supplier invoice after reversing its journal entries."""
    db = ctx.obj["db"]
    try:
        DocumentService(db).delete_supplier_invoice(supplier_invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted supplier invoice {supplier_invoice_id}")


def register_commands(cli):
    """Register supplier invoice commands with main CLI."""
    cli.add_command(supplier_invoice_group, name="supplier-invoice")
