"""Bank statement import and reconciliation state machine.

Each statement line is in one of three states::

    unmatched --match / auto-match--> matched
    unmatched --ignore--------------> ignored
    matched   --unmatch-------------> unmatched
    ignored   --unmatch-------------> unmatched

No state is terminal. Any other transition raises ``InvalidTransition``.
"""

import logging
import threading
from collections.abc import Mapping
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from cashbook.database.base import Database
from cashbook.domain.entities import (
    AutoMatchResult,
    BankStatement,
    BankStatementLine,
    CandidateTransaction,
    Expense,
    Invoice,
    MatchedBy,
    ParseStatus,
    ReconciliationSession,
    ReconciliationStatus,
    ReconciliationSummary,
    ScoredCandidate,
    SourceType,
    StatementImportResult,
    SupplierInvoice,
)
from cashbook.domain.errors import (
    ConflictError,
    InvalidStatementLine,
    InvalidTransition,
    NotFoundError,
    ValidationError,
    line_not_found,
    statement_not_found,
)
from cashbook.domain.ledger import quantize_amount
from cashbook.domain.matcher import (
    candidate_key,
    find_matches,
    get_reconciliation_summary,
    plan_auto_match,
)
from cashbook.domain.normalizer import normalize_transactions
from cashbook.utils.amount_parser import parse_amount
from cashbook.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

_statement_locks: dict[tuple[str, int], threading.Lock] = {}
_statement_locks_guard = threading.Lock()


def statement_lock(tenant_id: str, statement_id: int) -> threading.Lock:
    """Return the advisory lock guarding auto-match on one statement."""
    with _statement_locks_guard:
        key = (tenant_id, statement_id)
        lock = _statement_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _statement_locks[key] = lock
        return lock


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReconciliationService:
    """Service for bank statements and line reconciliation."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = _utcnow):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            clock: Returns the timestamp stored on matches and sessions
        """
        self.db = db
        self.clock = clock

    # Statements
    def import_statement(self, data: dict[str, Any], dayfirst: bool = True) -> StatementImportResult:
        """Create a statement and its lines from parsed statement data.

        Invalid lines are recorded in ``parse_errors`` and skipped; they never
        block the valid ones.

        Args:
            data: Dict with bank_name, account_number, period_start, period_end,
                opening_balance, closing_balance and lines (each with
                line_number, date, description, amount and optional reference)
            dayfirst: Read ambiguous dates as day/month/year

        Returns:
            StatementImportResult; parse_status is 'confirmed' when every line
            imported, 'parsed' when some failed, 'error' when none imported

        Raises:
            ValidationError: If statement-level fields cannot be parsed
        """
        raw_lines = data.get("lines") or []
        period_start = self._optional_date(data.get("period_start"), "period_start", dayfirst)
        period_end = self._optional_date(data.get("period_end"), "period_end", dayfirst)
        opening = self._optional_amount(data.get("opening_balance"), "opening_balance")
        closing = self._optional_amount(data.get("closing_balance"), "closing_balance")

        errors: list[str] = []
        imported = 0
        with self.db.transaction():
            statement_id = self.db.create_statement(
                bank_name=data.get("bank_name"),
                account_number=data.get("account_number"),
                period_start=period_start,
                period_end=period_end,
                opening_balance=opening,
                closing_balance=closing,
            )

            for index, raw in enumerate(raw_lines, start=1):
                line_number = (isinstance(raw, Mapping) and raw.get("line_number")) or index
                try:
                    transaction_date, description, amount, reference = self._validate_line(
                        raw, line_number, dayfirst
                    )
                except InvalidStatementLine as e:
                    errors.append(str(e))
                    logger.warning(
                        "statement line rejected tenant=%s statement=%s %s",
                        self.db.tenant_id,
                        statement_id,
                        e,
                    )
                    continue
                self.db.create_statement_line(
                    statement_id=statement_id,
                    line_number=line_number,
                    transaction_date=transaction_date,
                    description=description,
                    amount=amount,
                    reference=reference,
                )
                imported += 1

            if imported == 0:
                if not raw_lines:
                    errors.append("Statement has no lines")
                status = ParseStatus.ERROR
            elif errors:
                status = ParseStatus.PARSED
            else:
                status = ParseStatus.CONFIRMED
            self.db.update_statement_status(statement_id, status.value, imported, errors)

        logger.info(
            "statement imported tenant=%s statement=%s lines=%d errors=%d status=%s",
            self.db.tenant_id,
            statement_id,
            imported,
            len(errors),
            status.value,
        )
        return StatementImportResult(
            statement_id=statement_id,
            imported=imported,
            errors=tuple(errors),
            parse_status=status,
        )

    def _validate_line(self, raw: Any, line_number: int, dayfirst: bool):
        if not isinstance(raw, Mapping):
            raise InvalidStatementLine(line_number, "line is not an object")
        raw_date = raw.get("date", raw.get("transaction_date"))
        if raw_date is None or raw_date == "":
            raise InvalidStatementLine(line_number, "missing date")
        if isinstance(raw_date, date):
            transaction_date = raw_date
        else:
            try:
                transaction_date = parse_date(str(raw_date), dayfirst=dayfirst)
            except ValueError as e:
                raise InvalidStatementLine(line_number, str(e))

        description = str(raw.get("description") or "").strip()
        if not description:
            raise InvalidStatementLine(line_number, "missing description")

        raw_amount = raw.get("amount")
        if raw_amount is None or raw_amount == "":
            raise InvalidStatementLine(line_number, "missing amount")
        try:
            amount = quantize_amount(
                raw_amount if isinstance(raw_amount, (Decimal, int)) else parse_amount(str(raw_amount))
            )
        except ValueError as e:
            raise InvalidStatementLine(line_number, str(e))
        if amount == 0:
            raise InvalidStatementLine(line_number, "amount is zero")

        reference = raw.get("reference")
        reference = str(reference).strip() if reference else None
        return transaction_date, description, amount, reference

    @staticmethod
    def _optional_date(value, field: str, dayfirst: bool) -> Optional[date]:
        if value is None or value == "" or isinstance(value, date):
            return value or None
        try:
            return parse_date(str(value), dayfirst=dayfirst)
        except ValueError as e:
            raise ValidationError(f"Invalid {field}: {e}")

    @staticmethod
    def _optional_amount(value, field: str) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        try:
            if isinstance(value, (Decimal, int)):
                return quantize_amount(value)
            return quantize_amount(parse_amount(str(value)))
        except ValueError as e:
            raise ValidationError(f"Invalid {field}: {e}")

    def get_statement(self, statement_id: int) -> BankStatement:
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))
        return statement

    def list_statements(self) -> list[BankStatement]:
        return self.db.list_statements()

    def list_lines(
        self, statement_id: int, status: Optional[str] = None
    ) -> list[BankStatementLine]:
        """List a statement's lines, optionally only those in one status."""
        self.get_statement(statement_id)
        if status is not None:
            status = self._parse_status(status).value
        return self.db.list_statement_lines(statement_id, status=status)

    def delete_statement(self, statement_id: int) -> None:
        """Delete a statement together with its lines and sessions."""
        self.get_statement(statement_id)
        self.db.delete_statement(statement_id)
        logger.info("statement deleted tenant=%s statement=%s", self.db.tenant_id, statement_id)

    # Line transitions
    def get_line(self, line_id: int) -> BankStatementLine:
        line = self.db.get_statement_line(line_id)
        if line is None:
            raise NotFoundError(line_not_found(line_id))
        return line

    def match_line(
        self,
        line_id: int,
        source_type: str,
        source_id: str,
        confidence: Optional[Decimal] = None,
    ) -> BankStatementLine:
        """Manually match an unmatched line to a source record.

        Raises:
            NotFoundError: If the line or the source record doesn't exist
            ValidationError: If the source type is unknown
            InvalidTransition: If the line is not unmatched
        """
        line = self.get_line(line_id)
        source = self._parse_source_type(source_type)
        source_id = str(source_id)
        self._require_status(line, ReconciliationStatus.UNMATCHED, ReconciliationStatus.MATCHED)
        self._require_source(source, source_id)

        self.db.update_statement_line_match(
            line_id,
            ReconciliationStatus.MATCHED.value,
            source_type=source.value,
            source_id=source_id,
            matched_by=MatchedBy.MANUAL.value,
            matched_at=self.clock(),
            confidence=confidence,
        )
        logger.info(
            "line matched tenant=%s line=%s source=%s:%s by=manual",
            self.db.tenant_id,
            line_id,
            source.value,
            source_id,
        )
        return self.get_line(line_id)

    def unmatch_line(self, line_id: int) -> BankStatementLine:
        """Return a matched or ignored line to unmatched, clearing its match."""
        line = self.get_line(line_id)
        if line.reconciliation_status == ReconciliationStatus.UNMATCHED:
            raise InvalidTransition(
                line_id, line.reconciliation_status.value, ReconciliationStatus.UNMATCHED.value
            )
        self.db.update_statement_line_match(line_id, ReconciliationStatus.UNMATCHED.value)
        return self.get_line(line_id)

    def ignore_line(self, line_id: int) -> BankStatementLine:
        """Mark an unmatched line as not needing reconciliation."""
        line = self.get_line(line_id)
        self._require_status(line, ReconciliationStatus.UNMATCHED, ReconciliationStatus.IGNORED)
        self.db.update_statement_line_match(line_id, ReconciliationStatus.IGNORED.value)
        return self.get_line(line_id)

    def bulk_ignore_lines(self, line_ids: Iterable[int]) -> int:
        """Ignore several lines at once, skipping those that are not unmatched.

        Returns:
            Number of lines ignored

        Raises:
            NotFoundError: If any line doesn't exist (nothing is changed)
        """
        lines = [self.get_line(line_id) for line_id in line_ids]
        ignored = 0
        with self.db.transaction():
            for line in lines:
                if line.reconciliation_status != ReconciliationStatus.UNMATCHED:
                    continue
                self.db.update_statement_line_match(line.id, ReconciliationStatus.IGNORED.value)
                ignored += 1
        return ignored

    @staticmethod
    def _require_status(
        line: BankStatementLine, expected: ReconciliationStatus, target: ReconciliationStatus
    ) -> None:
        if line.reconciliation_status != expected:
            raise InvalidTransition(line.id, line.reconciliation_status.value, target.value)

    @staticmethod
    def _parse_source_type(source_type) -> SourceType:
        try:
            return SourceType(source_type)
        except ValueError:
            valid = ", ".join(s.value for s in SourceType)
            raise ValidationError(f"Unknown source type '{source_type}'. Expected one of: {valid}")

    @staticmethod
    def _parse_status(status) -> ReconciliationStatus:
        try:
            return ReconciliationStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in ReconciliationStatus)
            raise ValidationError(f"Unknown status '{status}'. Expected one of: {valid}")

    def _require_source(self, source: SourceType, source_id: str) -> None:
        if source == SourceType.MANUAL:
            return
        lookups = {
            SourceType.INVOICE: self.db.get_invoice,
            SourceType.EXPENSE: self.db.get_expense,
            SourceType.SUPPLIER_INVOICE: self.db.get_supplier_invoice,
        }
        try:
            record = lookups[source](int(source_id))
        except ValueError:
            record = None
        if record is None:
            raise NotFoundError(f"{source.value.replace('_', ' ').capitalize()} {source_id} not found")

    # Matching
    def load_candidates(self) -> list[CandidateTransaction]:
        """Normalize the tenant's current invoices, expenses and supplier invoices."""
        return normalize_transactions(
            self.db.list_invoices(),
            self.db.list_expenses(),
            self.db.list_supplier_invoices(),
        )

    def find_candidates(
        self, line_id: int, text_filter: Optional[str] = None, limit: int = 20
    ) -> list[ScoredCandidate]:
        """Rank live candidates for one line."""
        line = self.get_line(line_id)
        return find_matches(line, self.load_candidates(), text_filter=text_filter, limit=limit)

    def auto_match(
        self,
        statement_id: int,
        invoices: Iterable[Invoice],
        expenses: Iterable[Expense],
        supplier_invoices: Iterable[SupplierInvoice],
    ) -> AutoMatchResult:
        """Greedily match the statement's unmatched lines.

        Sources already matched on another line of the statement are not
        offered again, and one source is claimed by at most one line per run.

        Raises:
            NotFoundError: If the statement doesn't exist
            ConflictError: If another auto-match run holds the statement
        """
        self.get_statement(statement_id)
        lock = statement_lock(self.db.tenant_id, statement_id)
        if not lock.acquire(blocking=False):
            raise ConflictError(f"Auto-match already running for statement {statement_id}")
        try:
            lines = self.db.list_statement_lines(statement_id)
            claimed = {
                candidate_key(line.matched_source_type, line.matched_source_id)
                for line in lines
                if line.reconciliation_status == ReconciliationStatus.MATCHED
                and line.matched_source_type is not None
            }
            candidates = normalize_transactions(invoices, expenses, supplier_invoices)
            assignments, suggestions = plan_auto_match(lines, candidates, claimed)

            matched_at = self.clock()
            with self.db.transaction():
                for line, scored in assignments:
                    self.db.update_statement_line_match(
                        line.id,
                        ReconciliationStatus.MATCHED.value,
                        source_type=scored.candidate.source_type.value,
                        source_id=scored.candidate.id,
                        matched_by=MatchedBy.AUTO.value,
                        matched_at=matched_at,
                        confidence=scored.score,
                    )
        finally:
            lock.release()

        unmatched = len(
            self.db.list_statement_lines(statement_id, status=ReconciliationStatus.UNMATCHED.value)
        )
        logger.info(
            "auto-match finished tenant=%s statement=%s matched=%d unmatched=%d suggestions=%d",
            self.db.tenant_id,
            statement_id,
            len(assignments),
            unmatched,
            len(suggestions),
        )
        return AutoMatchResult(
            matched_count=len(assignments),
            unmatched_count=unmatched,
            suggestions=tuple(suggestions),
        )

    def auto_match_from_store(self, statement_id: int) -> AutoMatchResult:
        """Auto-match against the invoices, expenses and supplier invoices in the database."""
        return self.auto_match(
            statement_id,
            self.db.list_invoices(),
            self.db.list_expenses(),
            self.db.list_supplier_invoices(),
        )

    # Summary and sessions
    def get_summary(self, statement_id: int) -> ReconciliationSummary:
        self.get_statement(statement_id)
        return get_reconciliation_summary(self.db.list_statement_lines(statement_id))

    def create_session(self, statement_id: int) -> ReconciliationSession:
        """Open a reconciliation session with a snapshot of the current summary."""
        summary = self.get_summary(statement_id)
        session_id = self.db.create_reconciliation_session(statement_id, summary)
        return self.db.get_reconciliation_session(session_id)

    def get_session(self, session_id: int) -> ReconciliationSession:
        session = self.db.get_reconciliation_session(session_id)
        if session is None:
            raise NotFoundError(f"Reconciliation session {session_id} not found")
        return session

    def complete_session(self, session_id: int) -> ReconciliationSession:
        """Close a session, storing the final summary."""
        session = self.get_session(session_id)
        if session.completed_at is not None:
            raise ConflictError(f"Reconciliation session {session_id} is already completed")
        summary = self.get_summary(session.statement_id)
        self.db.complete_reconciliation_session(session_id, summary, self.clock())
        return self.get_session(session_id)
