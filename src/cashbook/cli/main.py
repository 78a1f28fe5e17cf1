"""Main CLI entry point."""

import click

from cashbook.database.factories import create_sqlite_database
from cashbook.logging_config import configure_logging

# Import and register all commands at module level
from cashbook.cli.commands import (
    setup,
    reports,
    invoice,
    expense,
    supplier_invoice,
    parties,
    statement,
    reconcile,
    export,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CASHBOOK_DB_PATH environment variable)",
    envvar="CASHBOOK_DB_PATH",
)
@click.option(
    "--tenant",
    help="Tenant whose books are used (overrides CASHBOOK_TENANT environment variable)",
    envvar="CASHBOOK_TENANT",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (overrides CASHBOOK_LOG_LEVEL environment variable)",
    envvar="CASHBOOK_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, tenant: str | None, log_level: str | None):
    """Cashbook - Bookkeeping and bank reconciliation.

    Keep a double-entry ledger for invoices, expenses and supplier invoices,
    reconcile bank statements against them and produce FEC, SAF-T and
    Factur-X exports.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path, tenant_id=tenant)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
setup.register_commands(cli)
reports.register_commands(cli)
invoice.register_commands(cli)
expense.register_commands(cli)
supplier_invoice.register_commands(cli)
parties.register_commands(cli)
statement.register_commands(cli)
reconcile.register_commands(cli)
export.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
