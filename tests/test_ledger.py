"""Tests for the ledger writer: event legs, atomicity and reversals."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from cashbook.domain.entities import JournalEntryDraft, ReferenceType
from cashbook.domain.errors import (
    DomainError,
    ImbalancedWriteAttempt,
    MissingAccountMapping,
    UnknownReferenceOnReversal,
    ValidationError,
)
from cashbook.domain.events import (
    AssetPurchased,
    CreditNoteIssued,
    ExpenseRecorded,
    InvoiceIssued,
    LoanReceived,
    OpeningBalance,
    PaymentReceived,
    SupplierInvoicePaid,
    SupplierInvoiceRecorded,
)
from cashbook.domain.ledger import quantize_amount

DAY = date(2025, 3, 1)
REVERSAL_DATE = date(2025, 3, 31)


def _legs(entries):
    return sorted((e.debit_account, e.credit_account, e.amount) for e in entries)


def _invoice(reference="INV-42", ht="1200", ttc="1440", category="revenue"):
    return InvoiceIssued(
        reference_id=reference,
        date=DAY,
        total_ht=Decimal(ht),
        total_ttc=Decimal(ttc),
        category=category,
    )


def test_quantize_amount_rounds_half_up():
    assert quantize_amount(Decimal("1.005")) == Decimal("1.01")
    assert quantize_amount("2.5") == Decimal("2.50")
    assert quantize_amount(3) == Decimal("3.00")


def test_invoice_issued_writes_revenue_and_vat_legs(fr_chart, ledger_service):
    entries = ledger_service.record_event(_invoice())

    assert _legs(entries) == [
        ("411", "44571", Decimal("240.00")),
        ("411", "701", Decimal("1200.00")),
    ]
    assert {e.journal_code for e in entries} == {"VE"}
    assert {e.reference_type for e in entries} == {ReferenceType.INVOICE}
    assert {e.reference_id for e in entries} == {"INV-42"}


def test_invoice_without_vat_writes_one_leg(fr_chart, ledger_service):
    entries = ledger_service.record_event(_invoice(ht="500", ttc="500", category="service"))

    assert _legs(entries) == [("411", "706", Decimal("500.00"))]


def test_invoice_rejects_ht_above_ttc(fr_chart, ledger_service, temp_db):
    with pytest.raises(ValidationError):
        ledger_service.record_event(_invoice(ht="1500", ttc="1440"))
    assert temp_db.list_journal_entries() == []


def test_payment_uses_method_mapping(fr_chart, ledger_service):
    by_transfer = ledger_service.record_event(
        PaymentReceived(reference_id="INV-1", date=DAY, amount=Decimal("100"))
    )
    in_cash = ledger_service.record_event(
        PaymentReceived(reference_id="INV-2", date=DAY, amount=Decimal("50"), method="cash")
    )

    assert _legs(by_transfer) == [("512", "411", Decimal("100.00"))]
    assert _legs(in_cash) == [("530", "411", Decimal("50.00"))]
    assert by_transfer[0].journal_code == "BQ"


def test_credit_note_reverses_revenue_and_vat(fr_chart, ledger_service):
    entries = ledger_service.record_event(
        CreditNoteIssued(
            reference_id="AV-1", date=DAY, total_ht=Decimal("100"), total_ttc=Decimal("120")
        )
    )

    assert _legs(entries) == [
        ("44571", "411", Decimal("20.00")),
        ("701", "411", Decimal("100.00")),
    ]


def test_expense_with_tax_splits_vat_input(fr_chart, ledger_service):
    entries = ledger_service.record_event(
        ExpenseRecorded(
            reference_id="EXP-1",
            date=DAY,
            amount=Decimal("120"),
            category="software",
            tax_amount=Decimal("20"),
        )
    )

    assert _legs(entries) == [
        ("44566", "512", Decimal("20.00")),
        ("6116", "512", Decimal("100.00")),
    ]
    assert {e.journal_code for e in entries} == {"AC"}


def test_expense_unknown_category_uses_general_account(fr_chart, ledger_service):
    entries = ledger_service.record_event(
        ExpenseRecorded(reference_id="EXP-2", date=DAY, amount=Decimal("30"), category="mystery")
    )

    assert _legs(entries) == [("6180", "512", Decimal("30.00"))]


def test_expense_tax_above_amount_is_rejected(fr_chart, ledger_service):
    with pytest.raises(ValidationError):
        ledger_service.record_event(
            ExpenseRecorded(
                reference_id="EXP-3", date=DAY, amount=Decimal("10"), tax_amount=Decimal("11")
            )
        )


def test_supplier_invoice_and_payment(fr_chart, ledger_service):
    recorded = ledger_service.record_event(
        SupplierInvoiceRecorded(
            reference_id="SINV-1", date=DAY, total_ht=Decimal("500"), vat_amount=Decimal("100")
        )
    )
    paid = ledger_service.record_event(
        SupplierInvoicePaid(reference_id="SINV-1", date=DAY, amount=Decimal("600"))
    )

    assert _legs(recorded) == [
        ("44566", "401", Decimal("100.00")),
        ("601", "401", Decimal("500.00")),
    ]
    assert _legs(paid) == [("401", "512", Decimal("600.00"))]


def test_opening_balance_sign_decides_side(fr_chart, ledger_service):
    debit_side = ledger_service.record_event(
        OpeningBalance(reference_id="AN-512", date=DAY, account_code="512", amount=Decimal("1000"))
    )
    credit_side = ledger_service.record_event(
        OpeningBalance(reference_id="AN-164", date=DAY, account_code="164", amount=Decimal("-400"))
    )

    assert _legs(debit_side) == [("512", "101", Decimal("1000.00"))]
    assert _legs(credit_side) == [("101", "164", Decimal("400.00"))]
    assert debit_side[0].journal_code == "AN"


def test_opening_balance_unknown_account(fr_chart, ledger_service):
    with pytest.raises(ValidationError, match="not found"):
        ledger_service.record_event(
            OpeningBalance(reference_id="AN-1", date=DAY, account_code="9999", amount=Decimal("1"))
        )


def test_asset_and_loan_events(fr_chart, ledger_service):
    asset = ledger_service.record_event(
        AssetPurchased(reference_id="IMMO-1", date=DAY, amount=Decimal("1500"))
    )
    loan = ledger_service.record_event(
        LoanReceived(reference_id="LOAN-1", date=DAY, amount=Decimal("10000"))
    )

    assert _legs(asset) == [("2183", "512", Decimal("1500.00"))]
    assert _legs(loan) == [("512", "164", Decimal("10000.00"))]


def test_zero_amount_is_rejected(fr_chart, ledger_service):
    with pytest.raises(ValidationError):
        ledger_service.record_event(
            PaymentReceived(reference_id="INV-1", date=DAY, amount=Decimal("0"))
        )


def test_record_event_requires_initialized_chart(ledger_service, temp_db):
    with pytest.raises(MissingAccountMapping):
        ledger_service.record_event(_invoice())
    assert temp_db.list_journal_entries() == []


def test_unsupported_event_type(fr_chart, ledger_service):
    with pytest.raises(TypeError):
        ledger_service.record_event(object())


def test_record_event_is_atomic(fr_chart, ledger_service, temp_db, monkeypatch):
    """A failure on the second leg leaves no entry behind."""
    original = temp_db.create_journal_entry
    written = []

    def failing_create(draft):
        if written:
            raise RuntimeError("disk full")
        written.append(draft)
        return original(draft)

    monkeypatch.setattr(temp_db, "create_journal_entry", failing_create)

    with pytest.raises(RuntimeError):
        ledger_service.record_event(_invoice())

    monkeypatch.undo()
    assert len(written) == 1
    assert temp_db.list_journal_entries() == []


def test_imbalanced_legs_raise_outside_domain_errors(fr_chart, ledger_service, monkeypatch, caplog):
    def broken_build(event):
        draft = JournalEntryDraft(
            date=DAY,
            debit_account="411",
            credit_account="701",
            amount=Decimal("100.00"),
            description="broken",
            reference_type=ReferenceType.INVOICE,
            reference_id="INV-X",
            journal_code="VE",
            journal_name="Ventes",
        )
        return [draft], Decimal("120.00")

    monkeypatch.setattr(ledger_service, "build_entries", broken_build)

    with caplog.at_level(logging.ERROR, logger="cashbook"):
        with pytest.raises(ImbalancedWriteAttempt) as excinfo:
            ledger_service.record_event(_invoice(reference="INV-X"))

    assert not isinstance(excinfo.value, DomainError)
    assert "imbalanced ledger write" in caplog.text


def test_reverse_event_swaps_legs(fr_chart, ledger_service, temp_db):
    originals = ledger_service.record_event(_invoice())

    reversals = ledger_service.reverse_event("INV-42")

    assert len(reversals) == len(originals)
    by_original = {r.reversal_of_id: r for r in reversals}
    for original in originals:
        reversal = by_original[original.id]
        assert reversal.debit_account == original.credit_account
        assert reversal.credit_account == original.debit_account
        assert reversal.amount == original.amount
        assert reversal.reference_type == ReferenceType.REVERSAL
        assert reversal.reference_id == "INV-42"
        assert reversal.journal_code == original.journal_code
        assert reversal.date == REVERSAL_DATE
        assert reversal.description.startswith("Extourne: ")


def test_reversal_nets_to_zero_in_trial_balance(fr_chart, ledger_service, report_service):
    ledger_service.record_event(_invoice())
    ledger_service.reverse_event("INV-42")

    balance = report_service.get_trial_balance(as_of=REVERSAL_DATE)

    assert balance.balanced
    for line in balance.lines:
        assert line.balance == Decimal("0.00")


def _net_by_account(entries):
    net = {}
    for entry in entries:
        net[entry.debit_account] = net.get(entry.debit_account, Decimal("0")) + entry.amount
        net[entry.credit_account] = net.get(entry.credit_account, Decimal("0")) - entry.amount
    return net


def test_mixed_events_keep_trial_balance_balanced(fr_chart, ledger_service, report_service, temp_db):
    steps = [
        lambda: ledger_service.record_event(_invoice(reference="INV-1")),
        lambda: ledger_service.record_event(
            PaymentReceived(reference_id="INV-1", date=DAY, amount=Decimal("1440"))
        ),
        lambda: ledger_service.record_event(
            CreditNoteIssued(
                reference_id="AV-1", date=DAY, total_ht=Decimal("100"), total_ttc=Decimal("120")
            )
        ),
        lambda: ledger_service.record_event(
            ExpenseRecorded(
                reference_id="EXP-1",
                date=DAY,
                amount=Decimal("120"),
                category="software",
                tax_amount=Decimal("20"),
            )
        ),
        lambda: ledger_service.record_event(
            SupplierInvoiceRecorded(
                reference_id="SINV-1", date=DAY, total_ht=Decimal("500"), vat_amount=Decimal("100")
            )
        ),
        lambda: ledger_service.record_event(
            SupplierInvoicePaid(reference_id="SINV-1", date=DAY, amount=Decimal("600"))
        ),
        lambda: ledger_service.record_event(
            OpeningBalance(reference_id="AN-512", date=DAY, account_code="512", amount=Decimal("1000"))
        ),
        lambda: ledger_service.reverse_event("INV-1"),
        lambda: ledger_service.reverse_event("SINV-1"),
        lambda: ledger_service.reverse_event("INV-1"),
    ]

    for step in steps:
        step()
        assert report_service.get_trial_balance(as_of=REVERSAL_DATE).balanced

    for reference in ("INV-1", "SINV-1"):
        net = _net_by_account(temp_db.list_journal_entries(reference_id=reference))
        assert net
        assert set(net.values()) == {Decimal("0.00")}

    remaining = _net_by_account(temp_db.list_journal_entries(reference_id="EXP-1"))
    assert remaining["6116"] == Decimal("100.00")


def test_second_reversal_is_a_noop(fr_chart, ledger_service, temp_db, caplog):
    ledger_service.record_event(_invoice())
    ledger_service.reverse_event("INV-42")
    count = len(temp_db.list_journal_entries())

    with caplog.at_level(logging.INFO, logger="cashbook"):
        again = ledger_service.reverse_event("INV-42")

    assert again == []
    assert len(temp_db.list_journal_entries()) == count
    assert "nothing to reverse" in caplog.text


def test_strict_reversal_raises_when_nothing_left(fr_chart, ledger_service):
    ledger_service.record_event(_invoice())
    ledger_service.reverse_event("INV-42")

    with pytest.raises(UnknownReferenceOnReversal) as excinfo:
        ledger_service.reverse_event("INV-42", strict=True)
    assert excinfo.value.reference_id == "INV-42"


def test_reversal_of_unknown_reference(fr_chart, ledger_service):
    assert ledger_service.reverse_event("NOPE") == []
    with pytest.raises(UnknownReferenceOnReversal):
        ledger_service.reverse_event("NOPE", strict=True)


def test_reversal_only_covers_unreversed_entries(fr_chart, ledger_service):
    """Entries booked after a reversal are reversed by the next call."""
    ledger_service.record_event(_invoice())
    ledger_service.reverse_event("INV-42")
    payment = ledger_service.record_event(
        PaymentReceived(reference_id="INV-42", date=DAY, amount=Decimal("1440"))
    )

    reversals = ledger_service.reverse_event("INV-42")

    assert [r.reversal_of_id for r in reversals] == [payment[0].id]


def test_entries_are_tenant_scoped(fr_chart, ledger_service, temp_db):
    from cashbook.database.factories import create_sqlite_database

    ledger_service.record_event(_invoice())
    other = create_sqlite_database(database_path=temp_db.database_path, tenant_id="other")
    try:
        assert other.list_journal_entries() == []
        assert other.get_account_by_code("512") is None
    finally:
        other.disconnect()
