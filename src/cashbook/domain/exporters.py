"""Compliance exports: FEC text, SAF-T XML and Factur-X (CII) XML, plus a JSON
backup of every record the tenant owns.

Exports are read-only renderings of the journal and invoice records. Only
structural correctness is produced; no signatures are applied. An empty
period renders a valid file with headers and empty sections.
"""

import json
import logging
import xml.etree.ElementTree as ET
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from cashbook.database.base import Database
from cashbook.domain.errors import NotFoundError, ValidationError, invoice_not_found
from cashbook.domain.reports import to_dict
from cashbook.utils.amount_parser import format_amount

logger = logging.getLogger(__name__)

FEC_COLUMNS = (
    "JournalCode",
    "JournalLib",
    "EcritureNum",
    "EcritureDate",
    "CompteNum",
    "CompteLib",
    "CompAuxNum",
    "CompAuxLib",
    "PieceRef",
    "PieceDate",
    "EcritureLib",
    "Debit",
    "Credit",
    "EcritureLet",
    "DateLet",
    "ValidDate",
    "Montantdevise",
    "Idevise",
)

SAFT_NS = "urn:OECD:StandardAuditFile-Tax:2.00"

RSM_NS = "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"
RAM_NS = "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100"
QDT_NS = "urn:un:unece:uncefact:data:standard:QualifiedDataType:100"
UDT_NS = "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100"

FACTURX_PROFILES = {
    "MINIMUM": "urn:factur-x.eu:1p0:minimum",
    "BASIC": "urn:factur-x.eu:1p0:basic",
    "EN16931": "urn:cen.eu:en16931:2017",
}

CURRENCY = "EUR"

BACKUP_FORMAT_VERSION = 1

ET.register_namespace("rsm", RSM_NS)
ET.register_namespace("ram", RAM_NS)
ET.register_namespace("qdt", QDT_NS)
ET.register_namespace("udt", UDT_NS)


def _fec_date(value: Optional[date]) -> str:
    return value.strftime("%Y%m%d") if value else ""


def _fec_amount(amount: Decimal) -> str:
    return format_amount(amount, decimal_separator=",")


def _fec_text(value: Optional[str]) -> str:
    # Pipes and line breaks would break the column layout
    return " ".join((value or "").replace("|", " ").split())


def _serialize(root: ET.Element, default_namespace: Optional[str] = None) -> str:
    ET.indent(root)
    data = ET.tostring(
        root, encoding="utf-8", xml_declaration=True, default_namespace=default_namespace
    )
    return data.decode("utf-8") + "\n"


def _sub(parent: ET.Element, tag: str, text: Optional[str] = None, **attrib) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib)
    if text is not None:
        element.text = text
    return element


class ExportService:
    """Service rendering accounting data into compliance file formats."""

    def __init__(self, db: Database):
        """Initialize export service.

        Args:
            db: Database instance
        """
        self.db = db

    def export_fec(self, start_date: date, end_date: date) -> str:
        """Render the FEC (Fichier des Écritures Comptables) for a period.

        Each journal entry becomes a debit row and a credit row sharing one
        ``EcritureNum``. The text starts with a UTF-8 BOM and uses ``|`` as
        column separator.
        """
        names = {acc.code: acc.name for acc in self.db.list_accounts()}
        entries = self.db.list_journal_entries(start_date=start_date, end_date=end_date)

        rows = ["|".join(FEC_COLUMNS)]
        zero = _fec_amount(Decimal("0"))
        for number, entry in enumerate(entries, start=1):
            entry_date = _fec_date(entry.date)
            for account, debit, credit in (
                (entry.debit_account, _fec_amount(entry.amount), zero),
                (entry.credit_account, zero, _fec_amount(entry.amount)),
            ):
                rows.append(
                    "|".join(
                        [
                            entry.journal_code,
                            _fec_text(entry.journal_name),
                            str(number),
                            entry_date,
                            account,
                            _fec_text(names.get(account, "")),
                            "",
                            "",
                            _fec_text(entry.reference_id),
                            entry_date,
                            _fec_text(entry.description),
                            debit,
                            credit,
                            "",
                            "",
                            _fec_date(entry.created_at.date() if entry.created_at else entry.date),
                            "",
                            "",
                        ]
                    )
                )
        return "\ufeff" + "\n".join(rows) + "\n"

    def export_saft(self, start_date: date, end_date: date) -> str:
        """Render a SAF-T audit file for a period."""
        company = self.db.get_company()
        accounts = self.db.list_accounts()
        clients = self.db.list_clients()
        entries = self.db.list_journal_entries(start_date=start_date, end_date=end_date)

        def q(tag: str) -> str:
            return f"{{{SAFT_NS}}}{tag}"

        root = ET.Element(q("AuditFile"))
        header = _sub(root, q("Header"))
        _sub(header, q("AuditFileVersion"), "2.00")
        _sub(header, q("CompanyID"), (company.tax_id if company else None) or "")
        _sub(header, q("CompanyName"), company.name if company else "")
        _sub(header, q("DateCreated"), date.today().isoformat())
        _sub(header, q("StartDate"), start_date.isoformat())
        _sub(header, q("EndDate"), end_date.isoformat())
        _sub(header, q("CurrencyCode"), CURRENCY)

        master_files = _sub(root, q("MasterFiles"))
        ledger_accounts = _sub(master_files, q("GeneralLedgerAccounts"))
        for account in accounts:
            element = _sub(ledger_accounts, q("Account"))
            _sub(element, q("AccountID"), account.code)
            _sub(element, q("AccountDescription"), account.name)
            _sub(element, q("AccountType"), account.category.value)

        customers = _sub(master_files, q("Customers"))
        for client in clients:
            element = _sub(customers, q("Customer"))
            _sub(element, q("CustomerID"), str(client.id))
            _sub(element, q("Name"), client.name)
            if client.vat_number:
                _sub(element, q("TaxRegistrationNumber"), client.vat_number)

        ledger_entries = _sub(root, q("GeneralLedgerEntries"))
        _sub(ledger_entries, q("NumberOfEntries"), str(len(entries)))
        _sub(ledger_entries, q("TotalDebit"), format_amount(sum((e.amount for e in entries), Decimal("0"))))
        _sub(ledger_entries, q("TotalCredit"), format_amount(sum((e.amount for e in entries), Decimal("0"))))
        for entry in entries:
            transaction = _sub(ledger_entries, q("Transaction"))
            _sub(transaction, q("TransactionID"), str(entry.id))
            _sub(transaction, q("TransactionDate"), entry.date.isoformat())
            _sub(transaction, q("JournalID"), entry.journal_code)
            _sub(transaction, q("Description"), entry.description)
            if entry.reference_id:
                _sub(transaction, q("SourceDocumentID"), entry.reference_id)
            debit_line = _sub(transaction, q("Line"))
            _sub(debit_line, q("AccountID"), entry.debit_account)
            _sub(debit_line, q("DebitAmount"), format_amount(entry.amount))
            credit_line = _sub(transaction, q("Line"))
            _sub(credit_line, q("AccountID"), entry.credit_account)
            _sub(credit_line, q("CreditAmount"), format_amount(entry.amount))

        return _serialize(root, default_namespace=SAFT_NS)

    def export_facturx(self, invoice_id: int, profile: str = "BASIC") -> str:
        """Render the Factur-X CII XML for an invoice.

        Args:
            invoice_id: Invoice ID
            profile: MINIMUM, BASIC or EN16931

        Raises:
            ValidationError: If the profile is unknown
            NotFoundError: If the invoice doesn't exist
        """
        profile_key = (profile or "BASIC").strip().upper()
        guideline = FACTURX_PROFILES.get(profile_key)
        if guideline is None:
            raise ValidationError(
                f"Unknown Factur-X profile '{profile}'. Supported: {', '.join(FACTURX_PROFILES)}"
            )

        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        company = self.db.get_company()
        client = self.db.get_client(invoice.client_id) if invoice.client_id is not None else None

        def rsm(tag: str) -> str:
            return f"{{{RSM_NS}}}{tag}"

        def ram(tag: str) -> str:
            return f"{{{RAM_NS}}}{tag}"

        def udt(tag: str) -> str:
            return f"{{{UDT_NS}}}{tag}"

        def date_element(parent: ET.Element, tag: str, value: date) -> None:
            wrapper = _sub(parent, ram(tag))
            _sub(wrapper, udt("DateTimeString"), value.strftime("%Y%m%d"), format="102")

        def trade_party(parent: ET.Element, tag: str, name: str, vat: Optional[str]) -> None:
            party = _sub(parent, ram(tag))
            _sub(party, ram("Name"), name)
            if vat:
                registration = _sub(party, ram("SpecifiedTaxRegistration"))
                _sub(registration, ram("ID"), vat, schemeID="VA")

        tax_amount = invoice.total_ttc - invoice.total_ht

        root = ET.Element(rsm("CrossIndustryInvoice"))
        context = _sub(root, rsm("ExchangedDocumentContext"))
        guideline_param = _sub(context, ram("GuidelineSpecifiedDocumentContextParameter"))
        _sub(guideline_param, ram("ID"), guideline)

        document = _sub(root, rsm("ExchangedDocument"))
        _sub(document, ram("ID"), invoice.invoice_number)
        _sub(document, ram("TypeCode"), "380")
        date_element(document, "IssueDateTime", invoice.date)

        transaction = _sub(root, rsm("SupplyChainTradeTransaction"))
        agreement = _sub(transaction, ram("ApplicableHeaderTradeAgreement"))
        trade_party(
            agreement,
            "SellerTradeParty",
            company.name if company else "",
            company.tax_id if company else None,
        )
        trade_party(
            agreement,
            "BuyerTradeParty",
            invoice.client_name or "",
            client.vat_number if client else None,
        )

        delivery = _sub(transaction, ram("ApplicableHeaderTradeDelivery"))
        event = _sub(delivery, ram("ActualDeliverySupplyChainEvent"))
        date_element(event, "OccurrenceDateTime", invoice.date)

        settlement = _sub(transaction, ram("ApplicableHeaderTradeSettlement"))
        _sub(settlement, ram("InvoiceCurrencyCode"), CURRENCY)
        if company is not None and company.iban:
            means = _sub(settlement, ram("SpecifiedTradeSettlementPaymentMeans"))
            _sub(means, ram("TypeCode"), "58")
            account = _sub(means, ram("PayeePartyCreditorFinancialAccount"))
            _sub(account, ram("IBANID"), company.iban)

        tax = _sub(settlement, ram("ApplicableTradeTax"))
        _sub(tax, ram("CalculatedAmount"), format_amount(tax_amount))
        _sub(tax, ram("TypeCode"), "VAT")
        _sub(tax, ram("BasisAmount"), format_amount(invoice.total_ht))
        _sub(tax, ram("CategoryCode"), "S")
        _sub(tax, ram("RateApplicablePercent"), format_amount(invoice.tax_rate))

        terms = _sub(settlement, ram("SpecifiedTradePaymentTerms"))
        date_element(terms, "DueDateDateTime", invoice.due_date or invoice.date)

        summation = _sub(settlement, ram("SpecifiedTradeSettlementHeaderMonetarySummation"))
        _sub(summation, ram("LineTotalAmount"), format_amount(invoice.total_ht))
        _sub(summation, ram("TaxBasisTotalAmount"), format_amount(invoice.total_ht))
        _sub(summation, ram("TaxTotalAmount"), format_amount(tax_amount), currencyID=CURRENCY)
        _sub(summation, ram("GrandTotalAmount"), format_amount(invoice.total_ttc))
        _sub(summation, ram("DuePayableAmount"), format_amount(invoice.total_ttc))

        return _serialize(root)

    def backup(self) -> dict[str, Any]:
        """Collect every record of the tenant as JSON-ready plain data.

        Returns:
            Dict with format_version, tenant_id, the single settings and
            company records (None when unset) and one list per record type
        """
        settings = self.db.get_settings()
        company = self.db.get_company()
        statements = self.db.list_statements()
        data: dict[str, Any] = {
            "format_version": BACKUP_FORMAT_VERSION,
            "tenant_id": self.db.tenant_id,
            "settings": to_dict(settings) if settings else None,
            "company": to_dict(company) if company else None,
            "accounts": [to_dict(a) for a in self.db.list_accounts()],
            "account_mappings": [to_dict(m) for m in self.db.list_account_mappings()],
            "tax_rates": [to_dict(r) for r in self.db.list_tax_rates()],
            "journal_entries": [to_dict(e) for e in self.db.list_journal_entries()],
            "clients": [to_dict(c) for c in self.db.list_clients()],
            "invoices": [to_dict(i) for i in self.db.list_invoices()],
            "expenses": [to_dict(e) for e in self.db.list_expenses()],
            "supplier_invoices": [to_dict(s) for s in self.db.list_supplier_invoices()],
            "bank_statements": [to_dict(s) for s in statements],
            "bank_statement_lines": [
                to_dict(line)
                for statement in statements
                for line in self.db.list_statement_lines(statement.id)
            ],
        }
        logger.info(
            "backup collected tenant=%s %s",
            self.db.tenant_id,
            " ".join(f"{k}={len(v)}" for k, v in data.items() if isinstance(v, list)),
        )
        return data

    def export_backup(self) -> str:
        """Render :meth:`backup` as indented JSON."""
        return json.dumps(self.backup(), indent=2, ensure_ascii=False) + "\n"
