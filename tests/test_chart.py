"""Tests for chart of accounts initialization and account resolution."""

from decimal import Decimal

import pytest

from cashbook.domain.chart import parse_account_category
from cashbook.domain.chart_templates import REQUIRED_ROLES, TEMPLATES, get_template
from cashbook.domain.entities import AccountCategory
from cashbook.domain.errors import MissingAccountMapping, ValidationError


def test_init_accounting_loads_template(chart_service, temp_db):
    template = get_template("FR")

    result = chart_service.init_accounting("FR")

    assert result.already_initialized is False
    assert result.country == "FR"
    assert result.accounts_count == len(template.accounts)
    assert result.mappings_count == len(template.mappings)
    assert result.tax_rates_count == len(template.tax_rates)
    assert temp_db.get_account_by_code("512").name == "Banque"
    assert chart_service.is_initialized()


def test_init_accounting_is_idempotent(chart_service, temp_db):
    chart_service.init_accounting("FR")
    accounts_before = len(temp_db.list_accounts())
    mappings_before = len(temp_db.list_account_mappings())

    again = chart_service.init_accounting("FR")

    assert again.already_initialized is True
    assert again.accounts_count == 0
    assert len(temp_db.list_accounts()) == accounts_before
    assert len(temp_db.list_account_mappings()) == mappings_before


def test_init_accounting_other_country_after_init_changes_nothing(chart_service, temp_db):
    chart_service.init_accounting("FR")

    result = chart_service.init_accounting("BE")

    assert result.already_initialized is True
    assert result.country == "FR"
    assert temp_db.get_account_by_code("550") is None


def test_init_accounting_country_is_case_insensitive(chart_service):
    assert chart_service.init_accounting("ohada").country == "OHADA"


def test_init_accounting_unknown_country(chart_service):
    with pytest.raises(ValidationError, match="Unsupported country"):
        chart_service.init_accounting("XX")
    assert not chart_service.is_initialized()


@pytest.mark.parametrize("country", sorted(TEMPLATES))
def test_templates_define_every_role_with_existing_accounts(country):
    template = TEMPLATES[country]
    codes = template.account_codes()

    for role in REQUIRED_ROLES:
        assert role in template.roles
        assert template.roles[role] in codes
    for mapping in template.mappings:
        assert mapping.debit_code in codes
        assert mapping.credit_code in codes


def test_resolve_role_requires_initialization(chart_service):
    with pytest.raises(MissingAccountMapping) as excinfo:
        chart_service.resolve_role("bank")
    assert excinfo.value.role == "bank"


def test_resolve_role_unknown_role(fr_chart):
    with pytest.raises(MissingAccountMapping):
        fr_chart.resolve_role("crypto_wallet")


def test_resolve_role(fr_chart):
    assert fr_chart.resolve_role("vat_output") == "44571"
    assert fr_chart.resolve_role("bank") == "512"


def test_resolve_mapping_exact_and_fallback(fr_chart):
    assert fr_chart.resolve_mapping("expense", "software").debit_code == "6116"
    # Unknown categories fall back to the general mapping
    fallback = fr_chart.resolve_mapping("expense", "space-travel")
    assert fallback.source_category == "general"
    assert fallback.debit_code == "6180"
    assert fallback.credit_code == "512"


def test_resolve_mapping_missing_source_type(fr_chart):
    with pytest.raises(MissingAccountMapping):
        fr_chart.resolve_mapping("payroll")


def test_default_vat_rate(chart_service):
    # Uninitialized tenants fall back to 20%
    assert chart_service.get_default_vat_rate() == Decimal("20")

    chart_service.init_accounting("BE")
    assert chart_service.get_default_vat_rate() == Decimal("21")


def test_get_chart_of_accounts_filters_by_category(fr_chart):
    revenue = fr_chart.get_chart_of_accounts(category="revenue")

    assert {acc.code for acc in revenue} == {"701", "706"}
    assert all(acc.category == AccountCategory.REVENUE for acc in revenue)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("asset", AccountCategory.ASSET),
        ("Actif", AccountCategory.ASSET),
        ("passif", AccountCategory.LIABILITY),
        ("charge", AccountCategory.EXPENSE),
        ("produit", AccountCategory.REVENUE),
        ("capitaux propres", AccountCategory.EQUITY),
    ],
)
def test_parse_account_category(value, expected):
    assert parse_account_category(value) == expected


def test_parse_account_category_rejects_unknown():
    with pytest.raises(ValidationError):
        parse_account_category("goodwill-ish")


def test_import_chart_csv(fr_chart, temp_db, tmp_path):
    csv_file = tmp_path / "chart.csv"
    csv_file.write_text(
        "account_code;account_name;account_category;parent_code\n"
        "6251;Déplacements;expense;\n"
        "7088;Produits annexes;revenue;708\n"
        "999;Bad;nonsense;\n",
        encoding="utf-8",
    )

    result = fr_chart.import_chart_csv(str(csv_file))

    assert result["created"] == 1
    assert result["updated"] == 1
    assert len(result["errors"]) == 1
    assert "Row 4" in result["errors"][0]
    assert temp_db.get_account_by_code("6251").name == "Déplacements"
    assert temp_db.get_account_by_code("7088").parent_code == "708"


def test_import_chart_csv_missing_columns(fr_chart, tmp_path):
    csv_file = tmp_path / "chart.csv"
    csv_file.write_text("code,name\n1,Cash\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="missing required columns"):
        fr_chart.import_chart_csv(str(csv_file))


def test_import_chart_csv_missing_file(fr_chart, tmp_path):
    with pytest.raises(FileNotFoundError):
        fr_chart.import_chart_csv(str(tmp_path / "missing.csv"))
