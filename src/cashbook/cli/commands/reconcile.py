"""Bank reconciliation commands."""

import json

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.errors import DomainError
from cashbook.domain.reconciliation import ReconciliationService
from cashbook.domain.reports import to_dict


def _format_candidate(scored) -> str:
    c = scored.candidate
    when = c.date.isoformat() if c.date else "-"
    return (
        f"{c.source_type.value:<17} {c.id:<6} {when:<12} {c.amount:>12.2f} "
        f"{scored.score:>7.2f}  {c.description}"
    )


@click.group()
def reconcile_group():
    """Match bank statement lines to invoices and expenses."""
    pass


@reconcile_group.command("auto")
@click.argument("statement_id", type=int)
@click.pass_context
def auto_match(ctx, statement_id: int):
    """Automatically match a statement's unmatched lines."""
    db = ctx.obj["db"]
    try:
        result = ReconciliationService(db).auto_match_from_store(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Matched {result.matched_count} line(s); {result.unmatched_count} still unmatched.")
    for suggestion in result.suggestions:
        click.echo(f"\nLine {suggestion.line_id} has possible matches:")
        for scored in suggestion.candidates:
            click.echo(f"  {_format_candidate(scored)}")


@reconcile_group.command("candidates")
@click.argument("line_id", type=int)
@click.option("--filter", "text_filter", help="Only candidates whose text contains this")
@click.option("--limit", type=int, default=20, show_default=True, help="Maximum number of candidates")
@click.pass_context
def candidates(ctx, line_id: int, text_filter: str | None, limit: int):
    """List ranked candidates for one statement line."""
    db = ctx.obj["db"]
    try:
        ranked = ReconciliationService(db).find_candidates(line_id, text_filter=text_filter, limit=limit)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not ranked:
        click.echo("No candidates found.")
        return
    click.echo(f"{'Source':<17} {'ID':<6} {'Date':<12} {'Amount':>12} {'Score':>7}  Description")
    click.echo("-" * 90)
    for scored in ranked:
        click.echo(_format_candidate(scored))


@reconcile_group.command("match")
@click.argument("line_id", type=int)
@click.argument(
    "source_type", type=click.Choice(["invoice", "expense", "supplier_invoice", "manual"])
)
@click.argument("source_id")
@click.pass_context
def match(ctx, line_id: int, source_type: str, source_id: str):
    """Match a line to an invoice, expense or supplier invoice.

    Example:
        cashbook reconcile match 12 supplier_invoice 3
    """
    db = ctx.obj["db"]
    try:
        ReconciliationService(db).match_line(line_id, source_type, source_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Line {line_id} matched to {source_type} {source_id}")


@reconcile_group.command("unmatch")
@click.argument("line_id", type=int)
@click.pass_context
def unmatch(ctx, line_id: int):
    """Return a matched or ignored line to unmatched."""
    db = ctx.obj["db"]
    try:
        ReconciliationService(db).unmatch_line(line_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Line {line_id} unmatched")


@reconcile_group.command("ignore")
@click.argument("line_ids", type=int, nargs=-1, required=True)
@click.pass_context
def ignore(ctx, line_ids: tuple[int, ...]):
    """Ignore one or more unmatched lines (bank fees, internal transfers)."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    try:
        if len(line_ids) == 1:
            service.ignore_line(line_ids[0])
            count = 1
        else:
            count = service.bulk_ignore_lines(line_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Ignored {count} line(s)")


@reconcile_group.command("summary")
@click.argument("statement_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def summary(ctx, statement_id: int, as_json: bool):
    """Show reconciliation progress for a statement."""
    db = ctx.obj["db"]
    try:
        result = ReconciliationService(db).get_summary(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(json.dumps(to_dict(result), indent=2))
        return

    click.echo(f"\nReconciliation of statement {statement_id}:")
    click.echo("-" * 50)
    click.echo(f"{'Lines':<30} {result.total_lines:>18}")
    click.echo(f"{'Matched':<30} {result.matched_lines:>18}")
    click.echo(f"{'Unmatched':<30} {result.unmatched_lines:>18}")
    click.echo(f"{'Ignored':<30} {result.ignored_lines:>18}")
    click.echo(f"{'Match rate':<30} {str(result.match_rate) + '%':>18}")
    click.echo("-" * 50)
    click.echo(f"{'Credits':<30} {result.total_credits:>18.2f}")
    click.echo(f"{'Debits':<30} {result.total_debits:>18.2f}")
    click.echo(f"{'Unreconciled difference':<30} {result.difference:>18.2f}")


@reconcile_group.group("session")
def session_group():
    """Track reconciliation sessions."""
    pass


@session_group.command("start")
@click.argument("statement_id", type=int)
@click.pass_context
def start_session(ctx, statement_id: int):
    """Open a reconciliation session for a statement."""
    db = ctx.obj["db"]
    try:
        session = ReconciliationService(db).create_session(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Started session {session.id} for statement {statement_id}")


@session_group.command("complete")
@click.argument("session_id", type=int)
@click.pass_context
def complete_session(ctx, session_id: int):
    """Complete a session, storing the final summary."""
    db = ctx.obj["db"]
    try:
        session = ReconciliationService(db).complete_session(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Completed session {session.id}: {session.summary.matched_lines}/"
        f"{session.summary.total_lines} line(s) matched"
    )


@session_group.command("show")
@click.argument("session_id", type=int)
@click.pass_context
def show_session(ctx, session_id: int):
    """Show a session as JSON."""
    db = ctx.obj["db"]
    try:
        session = ReconciliationService(db).get_session(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(json.dumps(to_dict(session), indent=2))


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
