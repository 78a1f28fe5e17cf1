"""Chart-of-accounts domain service."""

import csv
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from cashbook.database.base import Database
from cashbook.domain.chart_templates import TEMPLATES, ChartTemplate, get_template
from cashbook.domain.entities import Account, AccountCategory, AccountMapping, InitResult
from cashbook.domain.errors import MissingAccountMapping, ValidationError

logger = logging.getLogger(__name__)

# Used when the tenant has not initialized accounting yet
FALLBACK_VAT_RATE = Decimal("20")

_CATEGORY_ALIASES = {
    "actif": AccountCategory.ASSET,
    "passif": AccountCategory.LIABILITY,
    "capitaux": AccountCategory.EQUITY,
    "capitaux propres": AccountCategory.EQUITY,
    "produit": AccountCategory.REVENUE,
    "produits": AccountCategory.REVENUE,
    "charge": AccountCategory.EXPENSE,
    "charges": AccountCategory.EXPENSE,
}


def parse_account_category(value: str) -> AccountCategory:
    """Parse an account category name (English or French).

    Raises:
        ValidationError: If the category is not recognized
    """
    key = value.strip().lower()
    if key in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[key]
    try:
        return AccountCategory(key)
    except ValueError:
        valid = ", ".join(c.value for c in AccountCategory)
        raise ValidationError(f"Unknown account category '{value}'. Expected one of: {valid}")


class ChartService:
    """Service for the tenant's chart of accounts and account resolution."""

    def __init__(self, db: Database):
        """Initialize chart service.

        Args:
            db: Database instance
        """
        self.db = db

    def init_accounting(self, country: str) -> InitResult:
        """Load a country's chart of accounts for the tenant.

        Idempotent: once the tenant is initialized, further calls return
        ``already_initialized=True`` and leave the data untouched.

        Args:
            country: Country code (FR, BE or OHADA)

        Returns:
            InitResult with the number of accounts, mappings and tax rates created

        Raises:
            ValidationError: If the country has no template
        """
        template = get_template(country or "")
        if template is None:
            raise ValidationError(
                f"Unsupported country '{country}'. Supported: {', '.join(sorted(TEMPLATES))}"
            )

        settings = self.db.get_settings()
        if settings is not None and settings.is_initialized:
            logger.info(
                "accounting already initialized tenant=%s country=%s",
                self.db.tenant_id,
                settings.country,
            )
            return InitResult(country=settings.country, already_initialized=True)

        with self.db.transaction():
            accounts_count = 0
            for acc in template.accounts:
                if self.db.get_account_by_code(acc.code) is None:
                    self.db.create_account(acc.code, acc.name, acc.category, acc.parent_code)
                    accounts_count += 1

            existing_mappings = {
                (m.source_type, m.source_category) for m in self.db.list_account_mappings()
            }
            mappings_count = 0
            for mapping in template.mappings:
                if (mapping.source_type, mapping.source_category) in existing_mappings:
                    continue
                self.db.create_account_mapping(
                    mapping.source_type,
                    mapping.source_category,
                    mapping.debit_code,
                    mapping.credit_code,
                    mapping.description,
                )
                mappings_count += 1

            for rate in template.tax_rates:
                self.db.create_tax_rate(
                    rate.name, rate.rate, rate.tax_type, rate.account_code, rate.is_default
                )

            self.db.save_settings(template.country, is_initialized=True)

        logger.info(
            "accounting initialized tenant=%s country=%s accounts=%d mappings=%d tax_rates=%d",
            self.db.tenant_id,
            template.country,
            accounts_count,
            mappings_count,
            len(template.tax_rates),
        )
        return InitResult(
            country=template.country,
            already_initialized=False,
            accounts_count=accounts_count,
            mappings_count=mappings_count,
            tax_rates_count=len(template.tax_rates),
        )

    def is_initialized(self) -> bool:
        settings = self.db.get_settings()
        return settings is not None and settings.is_initialized

    def get_template(self) -> Optional[ChartTemplate]:
        """Return the template the tenant was initialized with, if any."""
        settings = self.db.get_settings()
        if settings is None or not settings.is_initialized:
            return None
        return get_template(settings.country)

    def get_chart_of_accounts(self, category: Optional[str] = None) -> list[Account]:
        """List the tenant's accounts sorted by code.

        Args:
            category: Optional category filter (asset, liability, ...)
        """
        if category is not None:
            category = parse_account_category(category).value
        return self.db.list_accounts(category=category)

    def import_chart_csv(self, csv_file_path: str) -> dict[str, Any]:
        """Import a user chart of accounts from a CSV file.

        Expected columns: ``account_code``, ``account_name``,
        ``account_category`` and optionally ``parent_code``. Existing accounts
        are updated unless journal entries already reference them.

        Args:
            csv_file_path: Path to CSV file

        Returns:
            Dict with import statistics:
            - created: number of accounts created
            - updated: number of accounts updated
            - errors: list of error messages

        Raises:
            ValidationError: If required columns are missing
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        created = 0
        updated = 0
        errors: list[str] = []

        with open(csv_path, "r", encoding="utf-8-sig") as f:
            sample = f.read(1024)
            f.seek(0)
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
            reader = csv.DictReader(f, delimiter=delimiter)

            columns = {c.strip() for c in (reader.fieldnames or [])}
            missing = {"account_code", "account_name", "account_category"} - columns
            if missing:
                raise ValidationError(
                    f"CSV file missing required columns: {', '.join(sorted(missing))}"
                )

            with self.db.transaction():
                for row_num, raw in enumerate(reader, start=2):
                    row = {(k or "").strip(): (v or "").strip() for k, v in raw.items()}
                    code = row.get("account_code", "")
                    name = row.get("account_name", "")
                    if not code or not name:
                        errors.append(f"Row {row_num}: Missing account code or name")
                        continue
                    try:
                        category = parse_account_category(row.get("account_category", ""))
                    except ValidationError as e:
                        errors.append(f"Row {row_num}: {e}")
                        continue
                    parent_code = row.get("parent_code") or None

                    if self.db.get_account_by_code(code) is None:
                        self.db.create_account(code, name, category.value, parent_code)
                        created += 1
                    elif self.db.account_has_entries(code):
                        errors.append(
                            f"Row {row_num}: Account '{code}' has journal entries and cannot be changed"
                        )
                    else:
                        self.db.update_account(code, name, category.value, parent_code)
                        updated += 1

        if errors:
            logger.warning("chart import had %d row errors path=%s", len(errors), csv_file_path)
        return {"created": created, "updated": updated, "errors": errors}

    def resolve_role(self, role: str) -> str:
        """Resolve a semantic role (bank, vat_output, ...) to an account code.

        Raises:
            MissingAccountMapping: If accounting is not initialized, the role is
                unknown, or its account is missing from the tenant chart
        """
        template = self.get_template()
        if template is None:
            raise MissingAccountMapping(role, "accounting is not initialized")
        code = template.roles.get(role)
        if code is None:
            raise MissingAccountMapping(role)
        self._require_account(role, code)
        return code

    def resolve_mapping(self, source_type: str, category: Optional[str] = None) -> AccountMapping:
        """Resolve the debit/credit accounts for a source record.

        Falls back to the ``general`` mapping of the source type, then to its
        first mapping.

        Raises:
            MissingAccountMapping: If no mapping exists or a mapped account is missing
        """
        role = f"{source_type}/{category}" if category else source_type
        mappings = self.db.list_account_mappings(source_type=source_type)
        if not mappings:
            raise MissingAccountMapping(role)

        by_category = {m.source_category: m for m in mappings}
        mapping = by_category.get(category or "") or by_category.get("general") or mappings[0]
        self._require_account(role, mapping.debit_code)
        self._require_account(role, mapping.credit_code)
        return mapping

    def get_default_vat_rate(self) -> Decimal:
        """Return the tenant's default output VAT rate in percent."""
        for rate in self.db.list_tax_rates(tax_type="output"):
            if rate.is_default:
                return rate.rate
        template = self.get_template()
        if template is not None:
            return template.default_vat_rate
        return FALLBACK_VAT_RATE

    def _require_account(self, role: str, code: str) -> None:
        if self.db.get_account_by_code(code) is None:
            raise MissingAccountMapping(role, f"account '{code}' is not in the chart")
