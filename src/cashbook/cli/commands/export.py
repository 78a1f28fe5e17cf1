"""Compliance export commands."""

import click

from cashbook.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.documents import DocumentService
from cashbook.domain.errors import DomainError
from cashbook.domain.exporters import FACTURX_PROFILES, ExportService
from cashbook.utils.date_parser import get_date_range


def _write_output(content: str, output: str | None) -> None:
    if output is None:
        click.echo(content, nl=False)
        return
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    click.echo(f"Wrote {output}", err=True)


def _period(ctx, start_date, end_date, kwargs):
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(kwargs),
        default_range=get_date_range("this-year"),
    )
    if start is None or end is None:
        click.echo("Error: Both --start-date and --end-date are required.", err=True)
        ctx.exit(1)
    return start, end


@click.group()
def export_group():
    """Produce FEC, SAF-T and Factur-X files and JSON backups."""
    pass


@export_group.command("fec")
@click.option("--start-date", help="Start date (defaults to the start of the year)")
@click.option("--end-date", help="End date")
@period_options
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout")
@click.pass_context
def export_fec(ctx, start_date, end_date, output, **kwargs):
    """Export the journal as a FEC file."""
    db = ctx.obj["db"]
    start, end = _period(ctx, start_date, end_date, kwargs)
    _write_output(ExportService(db).export_fec(start, end), output)


@export_group.command("saft")
@click.option("--start-date", help="Start date (defaults to the start of the year)")
@click.option("--end-date", help="End date")
@period_options
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout")
@click.pass_context
def export_saft(ctx, start_date, end_date, output, **kwargs):
    """Export the ledger as a SAF-T XML audit file."""
    db = ctx.obj["db"]
    start, end = _period(ctx, start_date, end_date, kwargs)
    _write_output(ExportService(db).export_saft(start, end), output)


@export_group.command("facturx")
@click.argument("invoice_ref")
@click.option(
    "--profile",
    type=click.Choice(list(FACTURX_PROFILES), case_sensitive=False),
    default="BASIC",
    show_default=True,
    help="Factur-X profile",
)
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout")
@click.pass_context
def export_facturx(ctx, invoice_ref: str, profile: str, output: str | None):
    """Export an invoice as Factur-X (CII) XML.

    INVOICE_REF is the invoice number or its ID.
    """
    db = ctx.obj["db"]
    try:
        invoice = DocumentService(db).find_invoice(invoice_ref)
        content = ExportService(db).export_facturx(invoice.id, profile=profile)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _write_output(content, output)


@export_group.command("backup")
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout")
@click.pass_context
def export_backup(ctx, output: str | None):
    """Export every record of the tenant as a JSON backup."""
    db = ctx.obj["db"]
    _write_output(ExportService(db).export_backup(), output)


def register_commands(cli):
    """Register export commands with main CLI."""
    cli.add_command(export_group, name="export")
