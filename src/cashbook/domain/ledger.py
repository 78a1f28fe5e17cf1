"""Ledger writer: turns business events into balanced journal entries.

The journal is append-only. Events are written as one or more debit/credit
legs; deleting or cancelling a source record never removes entries, it
writes swapped reversal entries instead.
"""

import logging
import threading
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from cashbook.database.base import Database
from cashbook.domain.chart import ChartService
from cashbook.domain.entities import JournalEntry, JournalEntryDraft, ReferenceType
from cashbook.domain.errors import (
    ImbalancedWriteAttempt,
    UnknownReferenceOnReversal,
    ValidationError,
)
from cashbook.domain.events import (
    AssetPurchased,
    BusinessEvent,
    CreditNoteIssued,
    ExpenseRecorded,
    InvoiceIssued,
    LoanReceived,
    OpeningBalance,
    PaymentReceived,
    SupplierInvoicePaid,
    SupplierInvoiceRecorded,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

JOURNALS = {
    "VE": "Ventes",
    "AC": "Achats",
    "BQ": "Banque",
    "OD": "Opérations diverses",
    "AN": "A-nouveaux",
}

_tenant_locks: dict[str, threading.RLock] = {}
_tenant_locks_guard = threading.Lock()


def quantize_amount(amount) -> Decimal:
    """Round an amount to cents, half up."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def tenant_lock(tenant_id: str) -> threading.RLock:
    """Return the process-wide write lock for a tenant."""
    with _tenant_locks_guard:
        lock = _tenant_locks.get(tenant_id)
        if lock is None:
            lock = threading.RLock()
            _tenant_locks[tenant_id] = lock
        return lock


class LedgerService:
    """Service that writes and reverses journal entries."""

    def __init__(
        self,
        db: Database,
        chart: Optional[ChartService] = None,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize ledger service.

        Args:
            db: Database instance
            chart: Chart service used to resolve accounts (created if omitted)
            clock: Returns the date reversal entries are booked on
        """
        self.db = db
        self.chart = chart or ChartService(db)
        self.clock = clock

    def record_event(self, event: BusinessEvent) -> list[JournalEntry]:
        """Write the journal entries for a business event.

        All legs are persisted in one transaction, or none are.

        Args:
            event: One of the event dataclasses from ``cashbook.domain.events``

        Returns:
            The persisted entries, one per non-zero leg

        Raises:
            ValidationError: If the event amounts are invalid
            MissingAccountMapping: If an account role cannot be resolved
            ImbalancedWriteAttempt: If the legs break the double-entry invariant
        """
        drafts, gross = self.build_entries(event)
        self._assert_balanced(event, drafts, gross)

        with tenant_lock(self.db.tenant_id):
            with self.db.transaction():
                entries = [self.db.create_journal_entry(draft) for draft in drafts]

        logger.info(
            "ledger event recorded tenant=%s type=%s reference=%s legs=%d amount=%s",
            self.db.tenant_id,
            event.type,
            event.reference_id,
            len(entries),
            gross,
        )
        return entries

    def reverse_event(self, reference_id: str, strict: bool = False) -> list[JournalEntry]:
        """Write swapped entries cancelling everything booked for a reference.

        Entries that already have a reversal are skipped, so reversing the
        same reference twice leaves the balance unchanged.

        Args:
            reference_id: Reference of the source record
            strict: Raise instead of returning an empty list when nothing is
                left to reverse

        Returns:
            The reversal entries written (empty when nothing was left)

        Raises:
            UnknownReferenceOnReversal: If strict and nothing is left to reverse
        """
        with tenant_lock(self.db.tenant_id):
            with self.db.transaction():
                originals = self.db.list_unreversed_entries(reference_id)
                if not originals:
                    if strict:
                        raise UnknownReferenceOnReversal(reference_id)
                    logger.info(
                        "nothing to reverse tenant=%s reference=%s",
                        self.db.tenant_id,
                        reference_id,
                    )
                    return []

                reversal_date = self.clock()
                reversals = []
                for original in originals:
                    draft = JournalEntryDraft(
                        date=reversal_date,
                        debit_account=original.credit_account,
                        credit_account=original.debit_account,
                        amount=original.amount,
                        description=f"Extourne: {original.description}",
                        reference_type=ReferenceType.REVERSAL,
                        reference_id=reference_id,
                        journal_code=original.journal_code,
                        journal_name=original.journal_name,
                        reversal_of_id=original.id,
                    )
                    reversals.append(self.db.create_journal_entry(draft))

        logger.info(
            "ledger reference reversed tenant=%s reference=%s entries=%d",
            self.db.tenant_id,
            reference_id,
            len(reversals),
        )
        return reversals

    def build_entries(self, event: BusinessEvent) -> tuple[list[JournalEntryDraft], Decimal]:
        """Build the unpersisted legs of an event.

        Returns:
            Tuple of (drafts, gross amount the legs must sum to)
        """
        if isinstance(event, InvoiceIssued):
            return self._invoice_legs(event)
        if isinstance(event, PaymentReceived):
            return self._payment_legs(event)
        if isinstance(event, CreditNoteIssued):
            return self._credit_note_legs(event)
        if isinstance(event, ExpenseRecorded):
            return self._expense_legs(event)
        if isinstance(event, SupplierInvoiceRecorded):
            return self._supplier_invoice_legs(event)
        if isinstance(event, SupplierInvoicePaid):
            return self._supplier_payment_legs(event)
        if isinstance(event, OpeningBalance):
            return self._opening_balance_legs(event)
        if isinstance(event, AssetPurchased):
            return self._simple_legs(
                event, "fixed_assets", "bank", ReferenceType.ASSET_PURCHASE, "OD", "Immobilisation"
            )
        if isinstance(event, LoanReceived):
            return self._simple_legs(event, "bank", "loan", ReferenceType.LOAN, "BQ", "Emprunt")
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    # Leg builders
    def _invoice_legs(self, event: InvoiceIssued):
        total_ht = quantize_amount(event.total_ht)
        total_ttc = quantize_amount(event.total_ttc)
        _require_positive(total_ttc, "Invoice total")
        if total_ht < 0 or total_ht > total_ttc:
            raise ValidationError("Invoice amount excluding tax must be between 0 and the total")

        mapping = self.chart.resolve_mapping("invoice", event.category)
        vat = total_ttc - total_ht
        label = event.description or f"Facture {event.reference_id}"
        legs = [
            self._draft(event, mapping.debit_code, mapping.credit_code, total_ht, label,
                        ReferenceType.INVOICE, "VE"),
        ]
        if vat > 0:
            vat_account = self.chart.resolve_role("vat_output")
            legs.append(
                self._draft(event, mapping.debit_code, vat_account, vat, f"TVA collectée - {label}",
                            ReferenceType.INVOICE, "VE")
            )
        return _non_zero(legs), total_ttc

    def _payment_legs(self, event: PaymentReceived):
        amount = quantize_amount(event.amount)
        _require_positive(amount, "Payment amount")
        mapping = self.chart.resolve_mapping("payment", event.method)
        label = event.description or f"Règlement {event.reference_id}"
        legs = [
            self._draft(event, mapping.debit_code, mapping.credit_code, amount, label,
                        ReferenceType.PAYMENT, "BQ"),
        ]
        return legs, amount

    def _credit_note_legs(self, event: CreditNoteIssued):
        total_ht = quantize_amount(event.total_ht)
        total_ttc = quantize_amount(event.total_ttc)
        _require_positive(total_ttc, "Credit note total")
        if total_ht < 0 or total_ht > total_ttc:
            raise ValidationError("Credit note amount excluding tax must be between 0 and the total")

        mapping = self.chart.resolve_mapping("credit_note", "general")
        vat = total_ttc - total_ht
        label = event.description or f"Avoir {event.reference_id}"
        legs = [
            self._draft(event, mapping.debit_code, mapping.credit_code, total_ht, label,
                        ReferenceType.CREDIT_NOTE, "VE"),
        ]
        if vat > 0:
            vat_account = self.chart.resolve_role("vat_output")
            legs.append(
                self._draft(event, vat_account, mapping.credit_code, vat, f"TVA sur avoir - {label}",
                            ReferenceType.CREDIT_NOTE, "VE")
            )
        return _non_zero(legs), total_ttc

    def _expense_legs(self, event: ExpenseRecorded):
        amount = quantize_amount(event.amount)
        _require_positive(amount, "Expense amount")
        tax = quantize_amount(event.tax_amount) if event.tax_amount is not None else Decimal("0.00")
        if tax < 0 or tax > amount:
            raise ValidationError("Expense tax amount must be between 0 and the expense amount")

        mapping = self.chart.resolve_mapping("expense", event.category)
        label = event.description or f"Dépense {event.category}"
        legs = [
            self._draft(event, mapping.debit_code, mapping.credit_code, amount - tax, label,
                        ReferenceType.EXPENSE, "AC"),
        ]
        if tax > 0:
            vat_account = self.chart.resolve_role("vat_input")
            legs.append(
                self._draft(event, vat_account, mapping.credit_code, tax, f"TVA déductible - {label}",
                            ReferenceType.EXPENSE, "AC")
            )
        return _non_zero(legs), amount

    def _supplier_invoice_legs(self, event: SupplierInvoiceRecorded):
        total_ht = quantize_amount(event.total_ht)
        vat = quantize_amount(event.vat_amount)
        if total_ht < 0 or vat < 0:
            raise ValidationError("Supplier invoice amounts must not be negative")
        gross = total_ht + vat
        _require_positive(gross, "Supplier invoice total")

        mapping = self.chart.resolve_mapping("supplier_invoice", event.category)
        label = event.description or f"Facture fournisseur {event.reference_id}"
        legs = [
            self._draft(event, mapping.debit_code, mapping.credit_code, total_ht, label,
                        ReferenceType.SUPPLIER_INVOICE, "AC"),
        ]
        if vat > 0:
            vat_account = self.chart.resolve_role("vat_input")
            legs.append(
                self._draft(event, vat_account, mapping.credit_code, vat, f"TVA déductible - {label}",
                            ReferenceType.SUPPLIER_INVOICE, "AC")
            )
        return _non_zero(legs), gross

    def _supplier_payment_legs(self, event: SupplierInvoicePaid):
        amount = quantize_amount(event.amount)
        _require_positive(amount, "Supplier payment amount")
        payables = self.chart.resolve_role("payables")
        bank = self.chart.resolve_role("bank")
        label = event.description or f"Règlement fournisseur {event.reference_id}"
        legs = [
            self._draft(event, payables, bank, amount, label, ReferenceType.SUPPLIER_PAYMENT, "BQ"),
        ]
        return legs, amount

    def _opening_balance_legs(self, event: OpeningBalance):
        amount = quantize_amount(event.amount)
        if amount == 0:
            raise ValidationError("Opening balance amount must not be zero")
        if self.db.get_account_by_code(event.account_code) is None:
            raise ValidationError(f"Account '{event.account_code}' not found")
        equity = self.chart.resolve_role("equity")
        label = event.description or f"À-nouveau {event.account_code}"
        if amount > 0:
            debit, credit = event.account_code, equity
        else:
            debit, credit = equity, event.account_code
        legs = [
            self._draft(event, debit, credit, abs(amount), label, ReferenceType.OPENING_BALANCE, "AN"),
        ]
        return legs, abs(amount)

    def _simple_legs(self, event, debit_role, credit_role, reference_type, journal, prefix):
        amount = quantize_amount(event.amount)
        _require_positive(amount, f"{prefix} amount")
        debit = self.chart.resolve_role(debit_role)
        credit = self.chart.resolve_role(credit_role)
        label = event.description or f"{prefix} {event.reference_id}"
        return [self._draft(event, debit, credit, amount, label, reference_type, journal)], amount

    @staticmethod
    def _draft(event, debit, credit, amount, description, reference_type, journal_code):
        return JournalEntryDraft(
            date=event.date,
            debit_account=debit,
            credit_account=credit,
            amount=quantize_amount(amount),
            description=description,
            reference_type=reference_type,
            reference_id=event.reference_id,
            journal_code=journal_code,
            journal_name=JOURNALS[journal_code],
        )

    def _assert_balanced(self, event, drafts: list[JournalEntryDraft], gross: Decimal) -> None:
        """Check the double-entry invariants of an event's legs."""
        problem = None
        if not drafts:
            problem = "no legs"
        for draft in drafts:
            if draft.amount <= 0:
                problem = f"non-positive leg amount {draft.amount}"
            elif draft.debit_account == draft.credit_account:
                problem = f"leg debits and credits the same account {draft.debit_account}"
        total = sum((d.amount for d in drafts), Decimal("0.00"))
        if problem is None and total != gross:
            problem = f"legs sum to {total}, expected {gross}"

        if problem is not None:
            logger.error(
                "imbalanced ledger write tenant=%s type=%s reference=%s: %s",
                self.db.tenant_id,
                event.type,
                event.reference_id,
                problem,
            )
            raise ImbalancedWriteAttempt(
                f"Event {event.type} for '{event.reference_id}': {problem}"
            )


def _require_positive(amount: Decimal, label: str) -> None:
    if amount <= 0:
        raise ValidationError(f"{label} must be positive")


def _non_zero(legs: list[JournalEntryDraft]) -> list[JournalEntryDraft]:
    return [leg for leg in legs if leg.amount != 0]
