"""Domain model entities for cashbook.

These are pure data classes representing business concepts, independent of
database schema. Derived values (trial balance, tax summary, candidate
transactions, reconciliation summaries) live here too but are never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountCategory(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class ReferenceType(str, Enum):
    """Kind of source record a journal entry points back at."""

    INVOICE = "invoice"
    PAYMENT = "payment"
    EXPENSE = "expense"
    SUPPLIER_INVOICE = "supplier_invoice"
    SUPPLIER_PAYMENT = "supplier_payment"
    CREDIT_NOTE = "credit_note"
    OPENING_BALANCE = "opening_balance"
    ASSET_PURCHASE = "asset_purchase"
    LOAN = "loan"
    REVERSAL = "reversal"


class ParseStatus(str, Enum):
    PENDING = "pending"
    PARSED = "parsed"
    CONFIRMED = "confirmed"
    ERROR = "error"


class ReconciliationStatus(str, Enum):
    UNMATCHED = "unmatched"
    MATCHED = "matched"
    IGNORED = "ignored"


class SourceType(str, Enum):
    """Source of a candidate transaction a statement line can be matched to."""

    INVOICE = "invoice"
    EXPENSE = "expense"
    SUPPLIER_INVOICE = "supplier_invoice"
    MANUAL = "manual"


class MatchedBy(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Account:
    """Ledger account from the tenant's chart of accounts."""

    id: int
    code: str
    name: str
    category: AccountCategory
    parent_code: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class AccountMapping:
    """Debit/credit account pair used for one kind of source record."""

    id: int
    source_type: str
    source_category: str
    debit_code: str
    credit_code: str
    description: Optional[str]


@dataclass(frozen=True)
class TaxRate:
    """VAT rate, expressed in percent (20 means 20%)."""

    id: int
    name: str
    rate: Decimal
    tax_type: str
    account_code: str
    is_default: bool


@dataclass(frozen=True)
class AccountingSettings:
    country: str
    is_initialized: bool
    initialized_at: Optional[datetime]


@dataclass(frozen=True)
class JournalEntryDraft:
    """A journal entry that has been built but not yet persisted."""

    date: date
    debit_account: str
    credit_account: str
    amount: Decimal
    description: str
    reference_type: ReferenceType
    reference_id: Optional[str]
    journal_code: str
    journal_name: str
    reversal_of_id: Optional[int] = None


@dataclass(frozen=True)
class JournalEntry:
    """Persisted, immutable double-entry journal record."""

    id: int
    date: date
    debit_account: str
    credit_account: str
    amount: Decimal
    description: str
    reference_type: ReferenceType
    reference_id: Optional[str]
    journal_code: str
    journal_name: str
    reversal_of_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class TrialBalanceLine:
    account_code: str
    account_name: str
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class TrialBalance:
    as_of: date
    lines: tuple[TrialBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    balanced: bool


@dataclass(frozen=True)
class TaxSummary:
    """VAT position over a period.

    ``estimated_input_vat`` is a flat-rate estimate from total expenses, not
    a figure read from verified expense tax breakdowns.
    """

    start_date: date
    end_date: date
    revenue_ht: Decimal
    output_vat: Decimal
    total_expenses: Decimal
    estimated_input_vat: Decimal
    vat_payable: Decimal
    invoice_count: int
    expense_count: int
    vat_rate: Decimal
    is_estimate: bool = True


@dataclass(frozen=True)
class Client:
    id: int
    name: str
    vat_number: Optional[str]
    email: Optional[str]
    address: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Company:
    name: str
    tax_id: Optional[str]
    iban: Optional[str]
    address: Optional[str]
    country: Optional[str]


@dataclass(frozen=True)
class Invoice:
    id: int
    invoice_number: str
    client_id: Optional[int]
    client_name: Optional[str]
    date: date
    due_date: Optional[date]
    total_ht: Decimal
    total_ttc: Decimal
    tax_rate: Decimal
    status: str
    category: str
    created_at: datetime


@dataclass(frozen=True)
class Expense:
    id: int
    date: date
    amount: Decimal
    description: Optional[str]
    category: str
    tax_amount: Optional[Decimal]
    created_at: datetime


@dataclass(frozen=True)
class SupplierInvoice:
    id: int
    invoice_number: Optional[str]
    supplier_name: Optional[str]
    invoice_date: date
    total_ht: Decimal
    vat_amount: Decimal
    payment_status: str
    category: str
    created_at: datetime


@dataclass(frozen=True)
class BankStatement:
    id: int
    bank_name: Optional[str]
    account_number: Optional[str]
    period_start: Optional[date]
    period_end: Optional[date]
    opening_balance: Optional[Decimal]
    closing_balance: Optional[Decimal]
    parse_status: ParseStatus
    line_count: int
    parse_errors: tuple[str, ...]
    created_at: datetime


@dataclass(frozen=True)
class BankStatementLine:
    id: int
    statement_id: int
    line_number: int
    transaction_date: date
    description: str
    reference: Optional[str]
    amount: Decimal
    reconciliation_status: ReconciliationStatus
    matched_source_type: Optional[SourceType]
    matched_source_id: Optional[str]
    matched_by: Optional[MatchedBy]
    matched_at: Optional[datetime]
    match_confidence: Optional[Decimal]


@dataclass(frozen=True)
class ReconciliationSummary:
    total_lines: int
    matched_lines: int
    unmatched_lines: int
    ignored_lines: int
    match_rate: Decimal
    total_credits: Decimal
    total_debits: Decimal
    matched_credits: Decimal
    matched_debits: Decimal
    unmatched_credits: Decimal
    unmatched_debits: Decimal
    difference: Decimal


@dataclass(frozen=True)
class ReconciliationSession:
    id: int
    statement_id: int
    status: SessionStatus
    summary: ReconciliationSummary
    created_at: datetime
    completed_at: Optional[datetime]


@dataclass(frozen=True)
class CandidateTransaction:
    """Normalized invoice/expense/supplier invoice used only for matching."""

    id: str
    source_type: SourceType
    date: Optional[date]
    amount: Decimal
    description: str
    reference: Optional[str] = None
    counterparty: Optional[str] = None


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CandidateTransaction
    score: Decimal
    date_distance: Optional[int]


@dataclass(frozen=True)
class AmbiguousMatch:
    """A line that was not auto-matched but has plausible candidates."""

    line_id: int
    candidates: tuple[ScoredCandidate, ...]


@dataclass(frozen=True)
class AutoMatchResult:
    matched_count: int
    unmatched_count: int
    suggestions: tuple[AmbiguousMatch, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InitResult:
    country: str
    already_initialized: bool
    accounts_count: int = 0
    mappings_count: int = 0
    tax_rates_count: int = 0


@dataclass(frozen=True)
class StatementImportResult:
    statement_id: int
    imported: int
    errors: tuple[str, ...]
    parse_status: ParseStatus
