"""Project invoices, expenses and supplier invoices into matching candidates."""

from decimal import Decimal
from typing import Iterable

from cashbook.domain.entities import (
    CandidateTransaction,
    Expense,
    Invoice,
    SourceType,
    SupplierInvoice,
)

PAID = "paid"


def normalize_transactions(
    invoices: Iterable[Invoice],
    expenses: Iterable[Expense],
    supplier_invoices: Iterable[SupplierInvoice],
) -> list[CandidateTransaction]:
    """Build the candidate list a statement line can be matched against.

    Invoices are inflows (positive amounts); expenses and supplier invoices
    are outflows (negative amounts). Only paid invoices and paid supplier
    invoices are included: unpaid ones cannot appear on a bank statement.
    """
    candidates: list[CandidateTransaction] = []

    for inv in invoices:
        if inv.status != PAID:
            continue
        amount = inv.total_ttc if inv.total_ttc else inv.total_ht
        description = f"Facture {inv.invoice_number}"
        if inv.client_name:
            description = f"{description} - {inv.client_name}"
        candidates.append(
            CandidateTransaction(
                id=str(inv.id),
                source_type=SourceType.INVOICE,
                date=inv.date,
                amount=abs(amount),
                description=description,
                reference=inv.invoice_number,
                counterparty=inv.client_name,
            )
        )

    for exp in expenses:
        candidates.append(
            CandidateTransaction(
                id=str(exp.id),
                source_type=SourceType.EXPENSE,
                date=exp.date,
                amount=-abs(exp.amount),
                description=exp.description or exp.category,
            )
        )

    for sinv in supplier_invoices:
        if sinv.payment_status != PAID:
            continue
        total = (sinv.total_ht or Decimal("0")) + (sinv.vat_amount or Decimal("0"))
        candidates.append(
            CandidateTransaction(
                id=str(sinv.id),
                source_type=SourceType.SUPPLIER_INVOICE,
                date=sinv.invoice_date,
                amount=-abs(total),
                description=sinv.supplier_name or f"Fournisseur {sinv.invoice_number}",
                reference=sinv.invoice_number,
                counterparty=sinv.supplier_name,
            )
        )

    return candidates
