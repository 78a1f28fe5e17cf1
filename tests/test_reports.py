"""Tests for trial balance, tax summary and report serialization."""

import logging
from datetime import date
from decimal import Decimal

from cashbook.domain.entities import JournalEntryDraft, ReferenceType
from cashbook.domain.events import InvoiceIssued
from cashbook.domain.reports import to_dict


def _draft(debit, credit, amount, day=date(2025, 3, 1), reference="INV-1"):
    return JournalEntryDraft(
        date=day,
        debit_account=debit,
        credit_account=credit,
        amount=Decimal(amount),
        description="test",
        reference_type=ReferenceType.INVOICE,
        reference_id=reference,
        journal_code="VE",
        journal_name="Ventes",
    )


def _line(balance, code):
    return next(line for line in balance.lines if line.account_code == code)


class TestTrialBalance:
    """Tests for ReportService.get_trial_balance."""

    def test_invoice_legs_example(self, temp_db, report_service):
        temp_db.create_journal_entry(_draft("411", "701", "1200.00"))
        temp_db.create_journal_entry(_draft("411", "4457", "240.00"))

        balance = report_service.get_trial_balance(as_of=date(2025, 3, 1))

        assert _line(balance, "411").total_debit == Decimal("1440.00")
        assert _line(balance, "411").total_credit == Decimal("0.00")
        assert _line(balance, "701").total_credit == Decimal("1200.00")
        assert _line(balance, "4457").total_credit == Decimal("240.00")
        assert balance.total_debit == balance.total_credit == Decimal("1440.00")
        assert balance.balanced

    def test_lines_sorted_by_code_with_names(self, fr_chart, temp_db, report_service, ledger_service):
        ledger_service.record_event(
            InvoiceIssued(
                reference_id="INV-1",
                date=date(2025, 3, 1),
                total_ht=Decimal("1200"),
                total_ttc=Decimal("1440"),
            )
        )

        balance = report_service.get_trial_balance(as_of=date(2025, 3, 31))

        assert [line.account_code for line in balance.lines] == ["411", "44571", "701"]
        assert _line(balance, "411").account_name == "Clients"
        assert _line(balance, "44571").balance == Decimal("-240.00")

    def test_as_of_excludes_later_entries(self, temp_db, report_service):
        temp_db.create_journal_entry(_draft("411", "701", "100.00", day=date(2025, 3, 1)))
        temp_db.create_journal_entry(_draft("411", "701", "50.00", day=date(2025, 4, 1)))

        balance = report_service.get_trial_balance(as_of=date(2025, 3, 31))

        assert _line(balance, "411").total_debit == Decimal("100.00")

    def test_empty_ledger(self, report_service):
        balance = report_service.get_trial_balance(as_of=date(2025, 1, 1))

        assert balance.lines == ()
        assert balance.total_debit == Decimal("0.00")
        assert balance.balanced

    def test_to_dict_renders_plain_values(self, temp_db, report_service):
        temp_db.create_journal_entry(_draft("411", "701", "1200.00"))

        data = to_dict(report_service.get_trial_balance(as_of=date(2025, 3, 1)))

        assert data["as_of"] == "2025-03-01"
        assert data["balanced"] is True
        assert data["total_debit"] == "1200.00"
        assert data["lines"][0] == {
            "account_code": "411",
            "account_name": "411",
            "total_debit": "1200.00",
            "total_credit": "0.00",
            "balance": "1200.00",
        }


class TestTaxSummary:
    """Tests for ReportService.get_tax_summary."""

    def test_output_vat_and_estimated_input_vat(self, fr_chart, document_service, report_service):
        document_service.create_invoice("INV-1", date(2025, 3, 5), Decimal("1000"))
        document_service.create_invoice("INV-2", date(2025, 3, 6), Decimal("500"), tax_rate=Decimal("10"))
        document_service.add_expense(date(2025, 3, 7), Decimal("120"), category="office")

        summary = report_service.get_tax_summary(date(2025, 3, 1), date(2025, 3, 31))

        assert summary.revenue_ht == Decimal("1500.00")
        assert summary.output_vat == Decimal("250.00")
        assert summary.total_expenses == Decimal("120.00")
        assert summary.estimated_input_vat == Decimal("20.00")
        assert summary.vat_payable == Decimal("230.00")
        assert summary.invoice_count == 2
        assert summary.expense_count == 1
        assert summary.is_estimate is True

    def test_draft_and_cancelled_invoices_excluded(self, fr_chart, document_service, report_service):
        document_service.create_invoice("INV-1", date(2025, 3, 5), Decimal("1000"), status="draft")
        cancelled = document_service.create_invoice("INV-2", date(2025, 3, 6), Decimal("400"))
        document_service.cancel_invoice(cancelled.id)

        summary = report_service.get_tax_summary(date(2025, 3, 1), date(2025, 3, 31))

        assert summary.invoice_count == 0
        assert summary.output_vat == Decimal("0.00")

    def test_period_bounds_are_inclusive(self, fr_chart, document_service, report_service):
        document_service.create_invoice("INV-1", date(2025, 3, 31), Decimal("100"))
        document_service.create_invoice("INV-2", date(2025, 4, 1), Decimal("100"))

        summary = report_service.get_tax_summary(date(2025, 3, 1), date(2025, 3, 31))

        assert summary.invoice_count == 1

    def test_empty_period(self, report_service):
        summary = report_service.get_tax_summary(date(2025, 3, 1), date(2025, 3, 31))

        assert summary.vat_payable == Decimal("0.00")
        assert summary.invoice_count == 0


def test_unbalanced_trial_balance_is_logged(temp_db, report_service, monkeypatch, caplog):
    monkeypatch.setattr(
        temp_db,
        "get_account_totals",
        lambda as_of=None: [
            {"account_code": "411", "total_debit": Decimal("10"), "total_credit": Decimal("0")}
        ],
    )

    with caplog.at_level(logging.ERROR, logger="cashbook"):
        balance = report_service.get_trial_balance(as_of=date(2025, 1, 1))

    assert not balance.balanced
    assert caplog.records


def test_accounting_entries_filters(fr_chart, ledger_service, report_service):
    for number in ("INV-1", "INV-2"):
        ledger_service.record_event(
            InvoiceIssued(
                reference_id=number,
                date=date(2025, 3, 1),
                total_ht=Decimal("100"),
                total_ttc=Decimal("120"),
            )
        )

    assert len(report_service.get_accounting_entries(reference_id="INV-2")) == 2
    assert len(report_service.get_accounting_entries(account_code="44571")) == 2
    assert len(report_service.get_accounting_entries(limit=3)) == 3
