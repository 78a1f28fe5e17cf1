"""Read a bank CSV export into the statement import shape."""

import csv
import unicodedata
from pathlib import Path
from typing import Any, Optional

from cashbook.utils.amount_parser import parse_amount

DATE_COLUMNS = ("date", "date operation", "date comptable", "booking date", "transaction date")
DESCRIPTION_COLUMNS = ("libelle", "description", "label", "details", "communication")
AMOUNT_COLUMNS = ("montant", "amount")
DEBIT_COLUMNS = ("debit",)
CREDIT_COLUMNS = ("credit",)
REFERENCE_COLUMNS = ("reference", "ref")


def _normalize_header(name: str) -> str:
    text = unicodedata.normalize("NFKD", name or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return " ".join(text.replace("_", " ").lower().split())


def _find_column(headers: dict[str, str], candidates: tuple[str, ...]) -> Optional[str]:
    for candidate in candidates:
        if candidate in headers:
            return headers[candidate]
    return None


def read_statement_csv(
    csv_file_path: str,
    bank_name: Optional[str] = None,
    account_number: Optional[str] = None,
) -> dict[str, Any]:
    """Read a bank CSV export.

    Recognizes French and English column names. Amounts come either from a
    signed amount column or from separate debit and credit columns (debits
    become negative). Values are returned as read; parsing and validation
    happen at import so that bad rows are reported per line.

    Args:
        csv_file_path: Path to CSV file
        bank_name: Bank name stored on the statement
        account_number: Account number stored on the statement

    Returns:
        Dict in the statement import shape (bank_name, account_number,
        period_start, period_end, lines)

    Raises:
        ValueError: If no date, description or amount column can be found
        FileNotFoundError: If CSV file doesn't exist
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

    with open(csv_path, "r", encoding="utf-8-sig") as f:
        sample = f.read(2048)
        f.seek(0)
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            raise ValueError("CSV file has no columns")

        headers = {_normalize_header(name): name for name in reader.fieldnames}
        date_col = _find_column(headers, DATE_COLUMNS)
        description_col = _find_column(headers, DESCRIPTION_COLUMNS)
        amount_col = _find_column(headers, AMOUNT_COLUMNS)
        debit_col = _find_column(headers, DEBIT_COLUMNS)
        credit_col = _find_column(headers, CREDIT_COLUMNS)
        reference_col = _find_column(headers, REFERENCE_COLUMNS)

        missing = []
        if date_col is None:
            missing.append("date")
        if description_col is None:
            missing.append("description")
        if amount_col is None and (debit_col is None or credit_col is None):
            missing.append("amount (or debit and credit)")
        if missing:
            raise ValueError(f"CSV file missing required columns: {', '.join(missing)}")

        lines = []
        for line_number, row in enumerate(reader, start=1):
            if not any((value or "").strip() for value in row.values()):
                continue
            if amount_col is not None:
                amount = (row.get(amount_col) or "").strip()
            else:
                amount = _debit_credit_amount(row.get(debit_col), row.get(credit_col))
            reference = None
            if reference_col is not None:
                reference = (row.get(reference_col) or "").strip() or None
            lines.append(
                {
                    "line_number": line_number,
                    "date": (row.get(date_col) or "").strip(),
                    "description": (row.get(description_col) or "").strip(),
                    "amount": amount,
                    "reference": reference,
                }
            )

    return {
        "bank_name": bank_name,
        "account_number": account_number,
        "period_start": None,
        "period_end": None,
        "opening_balance": None,
        "closing_balance": None,
        "lines": lines,
    }


def _debit_credit_amount(debit: Optional[str], credit: Optional[str]) -> str:
    """Combine debit/credit columns into one signed amount string."""
    debit = (debit or "").strip()
    credit = (credit or "").strip()
    if credit:
        return credit
    if debit:
        try:
            return str(-abs(parse_amount(debit)))
        except ValueError:
            return debit
    return ""
