"""Read-only ledger aggregation: trial balance, tax summary and entry listing."""

import logging
from dataclasses import fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from cashbook.database.base import Database
from cashbook.domain.chart import ChartService
from cashbook.domain.entities import JournalEntry, TaxSummary, TrialBalance, TrialBalanceLine
from cashbook.domain.ledger import quantize_amount

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")

# Invoices that never reached the client carry no VAT
EXCLUDED_INVOICE_STATUSES = ("draft", "cancelled")


class ReportService:
    """Service computing trial balance and tax summary from the journal."""

    def __init__(self, db: Database, chart: Optional[ChartService] = None):
        """Initialize report service.

        Args:
            db: Database instance
            chart: Chart service used for account names and VAT rate
        """
        self.db = db
        self.chart = chart or ChartService(db)

    def get_trial_balance(self, as_of: Optional[date] = None) -> TrialBalance:
        """Sum debits and credits per account for entries dated on or before ``as_of``.

        An unbalanced result is logged at error level and returned with
        ``balanced=False``; it always points at a ledger writer bug.

        Args:
            as_of: Cutoff date (defaults to today)

        Returns:
            TrialBalance with lines sorted by account code
        """
        as_of = as_of or date.today()
        names = {acc.code: acc.name for acc in self.db.list_accounts()}

        lines = []
        total_debit = Decimal("0.00")
        total_credit = Decimal("0.00")
        for row in self.db.get_account_totals(as_of=as_of):
            debit = quantize_amount(row["total_debit"])
            credit = quantize_amount(row["total_credit"])
            lines.append(
                TrialBalanceLine(
                    account_code=row["account_code"],
                    account_name=names.get(row["account_code"], row["account_code"]),
                    total_debit=debit,
                    total_credit=credit,
                )
            )
            total_debit += debit
            total_credit += credit

        balanced = abs(total_debit - total_credit) < BALANCE_TOLERANCE
        if not balanced:
            logger.error(
                "trial balance is not balanced tenant=%s as_of=%s debit=%s credit=%s",
                self.db.tenant_id,
                as_of.isoformat(),
                total_debit,
                total_credit,
            )

        return TrialBalance(
            as_of=as_of,
            lines=tuple(sorted(lines, key=lambda line: line.account_code)),
            total_debit=total_debit,
            total_credit=total_credit,
            balanced=balanced,
        )

    def get_tax_summary(self, start_date: date, end_date: date) -> TaxSummary:
        """Compute output VAT against estimated input VAT over a period.

        Output VAT is read from invoices (``total_ttc - total_ht``). Input VAT
        is a flat-rate estimate from total expenses at the tenant's default
        rate: ``expenses * rate / (100 + rate)``.

        Args:
            start_date: Inclusive period start
            end_date: Inclusive period end
        """
        invoices = [
            inv
            for inv in self.db.list_invoices(start_date=start_date, end_date=end_date)
            if inv.status not in EXCLUDED_INVOICE_STATUSES
        ]
        expenses = self.db.list_expenses(start_date=start_date, end_date=end_date)

        revenue_ht = sum((inv.total_ht for inv in invoices), Decimal("0"))
        output_vat = sum((inv.total_ttc - inv.total_ht for inv in invoices), Decimal("0"))
        total_expenses = sum((exp.amount for exp in expenses), Decimal("0"))

        rate = self.chart.get_default_vat_rate()
        estimated_input_vat = total_expenses * rate / (Decimal("100") + rate)

        revenue_ht = quantize_amount(revenue_ht)
        output_vat = quantize_amount(output_vat)
        estimated_input_vat = quantize_amount(estimated_input_vat)

        return TaxSummary(
            start_date=start_date,
            end_date=end_date,
            revenue_ht=revenue_ht,
            output_vat=output_vat,
            total_expenses=quantize_amount(total_expenses),
            estimated_input_vat=estimated_input_vat,
            vat_payable=output_vat - estimated_input_vat,
            invoice_count=len(invoices),
            expense_count=len(expenses),
            vat_rate=rate,
            is_estimate=True,
        )

    def get_accounting_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_code: Optional[str] = None,
        reference_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[JournalEntry]:
        """List journal entries with optional filters, oldest first."""
        return self.db.list_journal_entries(
            start_date=start_date,
            end_date=end_date,
            account_code=account_code,
            reference_id=reference_id,
            limit=limit,
        )


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return to_dict(value)
    return value


def to_dict(obj: Any) -> dict[str, Any]:
    """Convert a domain dataclass into JSON-serializable plain data.

    Amounts become 2-decimal strings, dates ISO strings, enums their values.
    """
    result = {f.name: _plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, TrialBalanceLine):
        result["balance"] = _plain(obj.balance)
    return result
