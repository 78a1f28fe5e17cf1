"""Client invoice commands."""

import click

from cashbook.cli.date_filters import parse_cli_amount, parse_cli_date
from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.documents import DocumentService
from cashbook.domain.errors import DomainError

PAYMENT_METHODS = ["bank_transfer", "card", "check", "cash"]


def _find_invoice(ctx, service: DocumentService, invoice_ref: str):
    try:
        return service.find_invoice(invoice_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)


@click.group()
def invoice_group():
    """Manage client invoices."""
    pass


@invoice_group.command("create")
@click.argument("invoice_number")
@click.option("--amount", required=True, help="Amount excluding tax (e.g., 1000.00)")
@click.option("--date", "invoice_date", default="today", show_default=True, help="Invoice date")
@click.option("--tax-rate", help="VAT rate in percent (defaults to the country's standard rate)")
@click.option("--client-id", type=int, help="Client ID")
@click.option("--due-date", help="Payment due date")
@click.option(
    "--category",
    type=click.Choice(["revenue", "service", "product"]),
    default="revenue",
    show_default=True,
    help="Revenue category",
)
@click.option("--draft", is_flag=True, help="Save as draft without booking it")
@click.pass_context
def create_invoice(
    ctx,
    invoice_number: str,
    amount: str,
    invoice_date: str,
    tax_rate: str | None,
    client_id: int | None,
    due_date: str | None,
    category: str,
    draft: bool,
):
    """Create an invoice and book it in the sales journal.

    Examples:
        cashbook invoice create INV-42 --amount 1000 --client-id 1
        cashbook invoice create INV-43 --amount 250 --tax-rate 5.5 --date 2024-03-01
    """
    db = ctx.obj["db"]
    service = DocumentService(db)

    total_ht = parse_cli_amount(ctx, amount)
    rate = parse_cli_amount(ctx, tax_rate, "tax rate") if tax_rate is not None else None
    issued = parse_cli_date(ctx, invoice_date, "invoice date")
    due = parse_cli_date(ctx, due_date, "due date") if due_date else None

    try:
        invoice = service.create_invoice(
            invoice_number=invoice_number,
            invoice_date=issued,
            total_ht=total_ht,
            tax_rate=rate,
            client_id=client_id,
            due_date=due,
            category=category,
            status="draft" if draft else "sent",
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Created invoice {invoice.invoice_number} (ID: {invoice.id}): "
        f"{invoice.total_ht:.2f} HT, {invoice.total_ttc:.2f} TTC [{invoice.status}]"
    )


@invoice_group.command("issue")
@click.argument("invoice_ref")
@click.pass_context
def issue_invoice(ctx, invoice_ref: str):
    """Issue a draft invoice and book it.

    INVOICE_REF is the invoice number or its ID.
    """
    service = DocumentService(ctx.obj["db"])
    invoice = _find_invoice(ctx, service, invoice_ref)
    try:
        invoice = service.issue_invoice(invoice.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Issued invoice {invoice.invoice_number}")


@invoice_group.command("pay")
@click.argument("invoice_ref")
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.option(
    "--method",
    type=click.Choice(PAYMENT_METHODS),
    default="bank_transfer",
    show_default=True,
    help="Payment method",
)
@click.pass_context
def pay_invoice(ctx, invoice_ref: str, payment_date: str, method: str):
    """Record full payment of an invoice.

    Examples:
        cashbook invoice pay INV-42 --date 2025-03-12
        cashbook invoice pay 7 --method card
    """
    service = DocumentService(ctx.obj["db"])
    paid_on = parse_cli_date(ctx, payment_date, "payment date")
    invoice = _find_invoice(ctx, service, invoice_ref)
    try:
        invoice = service.pay_invoice(invoice.id, payment_date=paid_on, method=method)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Invoice {invoice.invoice_number} paid ({invoice.total_ttc:.2f})")


@invoice_group.command("cancel")
@click.argument("invoice_ref")
@click.pass_context
def cancel_invoice(ctx, invoice_ref: str):
    """Cancel an invoice, reversing its journal entries."""
    service = DocumentService(ctx.obj["db"])
    invoice = _find_invoice(ctx, service, invoice_ref)
    try:
        invoice = service.cancel_invoice(invoice.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled invoice {invoice.invoice_number}")


@invoice_group.command("delete")
@click.argument("invoice_ref")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_invoice(ctx, invoice_ref: str, yes: bool):
    """Delete an invoice after reversing its journal entries."""
    service = DocumentService(ctx.obj["db"])
    invoice = _find_invoice(ctx, service, invoice_ref)

    if not yes and not click.confirm(f"Are you sure you want to delete invoice {invoice.invoice_number}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_invoice(invoice.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted invoice {invoice.invoice_number}")


@invoice_group.command("list")
@click.option("--status", help="Only invoices with this status")
@click.pass_context
def list_invoices(ctx, status: str | None):
    """List invoices."""
    db = ctx.obj["db"]
    invoices = DocumentService(db).list_invoices(status=status)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"{'ID':<5} {'Number':<15} {'Date':<12} {'Client':<25} {'TTC':>12}  Status")
    click.echo("-" * 85)
    for inv in invoices:
        click.echo(
            f"{inv.id:<5} {inv.invoice_number:<15} {inv.date.isoformat():<12} "
            f"{(inv.client_name or '')[:25]:<25} {inv.total_ttc:>12.2f}  {inv.status}"
        )


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
