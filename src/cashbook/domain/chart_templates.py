"""Country chart-of-accounts templates.

Each template bundles the accounts, the semantic role table, the default
debit/credit mappings per source record and the default VAT rates loaded by
``ChartService.init_accounting``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


# Semantic roles every template must map to an account code
REQUIRED_ROLES = (
    "bank",
    "cash",
    "receivables",
    "payables",
    "equity",
    "loan",
    "fixed_assets",
    "vat_output",
    "vat_input",
    "revenue",
    "service_revenue",
    "purchases",
    "general_expense",
)


@dataclass(frozen=True)
class AccountTemplate:
    code: str
    name: str
    category: str
    parent_code: Optional[str] = None


@dataclass(frozen=True)
class MappingTemplate:
    source_type: str
    source_category: str
    debit_code: str
    credit_code: str
    description: str


@dataclass(frozen=True)
class TaxRateTemplate:
    name: str
    rate: Decimal
    tax_type: str
    account_code: str
    is_default: bool = False


@dataclass(frozen=True)
class ChartTemplate:
    """Everything needed to initialize accounting for one country."""

    country: str
    name: str
    accounts: tuple[AccountTemplate, ...]
    roles: dict[str, str] = field(hash=False)
    mappings: tuple[MappingTemplate, ...]
    tax_rates: tuple[TaxRateTemplate, ...]
    default_vat_rate: Decimal

    def account_codes(self) -> set[str]:
        return {acc.code for acc in self.accounts}


def _expense_mappings(codes: dict[str, tuple[str, str]], bank: str) -> list[MappingTemplate]:
    return [
        MappingTemplate("expense", category, debit, bank, description)
        for category, (debit, description) in codes.items()
    ]


_FR_EXPENSES = {
    "general": ("6180", "Frais généraux divers"),
    "office": ("6064", "Fournitures administratives"),
    "travel": ("6251", "Voyages et déplacements"),
    "meals": ("6257", "Réceptions et frais de repas"),
    "transport": ("6241", "Transport de biens et matériel"),
    "software": ("6116", "Logiciels et abonnements numériques"),
    "hardware": ("6063", "Matériel informatique (petit équipement)"),
    "marketing": ("6231", "Publicité et marketing"),
    "legal": ("6226", "Honoraires juridiques et comptables"),
    "insurance": ("616", "Primes d'assurance"),
    "rent": ("6132", "Loyers immobiliers"),
    "utilities": ("6061", "Énergie (eau, gaz, électricité)"),
    "telecom": ("626", "Téléphone et Internet"),
    "training": ("6333", "Formation professionnelle"),
    "consulting": ("6226", "Honoraires de conseil"),
    "other": ("658", "Charges diverses de gestion"),
}

FR = ChartTemplate(
    country="FR",
    name="Plan comptable général (France)",
    accounts=(
        AccountTemplate("101", "Capital", "equity"),
        AccountTemplate("120", "Résultat de l'exercice", "equity"),
        AccountTemplate("164", "Emprunts auprès des établissements de crédit", "liability"),
        AccountTemplate("2183", "Matériel de bureau et informatique", "asset"),
        AccountTemplate("401", "Fournisseurs", "liability"),
        AccountTemplate("411", "Clients", "asset"),
        AccountTemplate("44566", "TVA déductible sur autres biens et services", "asset", "4456"),
        AccountTemplate("44571", "TVA collectée", "liability", "4457"),
        AccountTemplate("512", "Banque", "asset"),
        AccountTemplate("530", "Caisse", "asset"),
        AccountTemplate("601", "Achats de marchandises", "expense"),
        AccountTemplate("6022", "Fournitures consommables", "expense"),
        AccountTemplate("604", "Achats de prestations de services", "expense"),
        AccountTemplate("6061", "Fournitures non stockables (eau, énergie)", "expense"),
        AccountTemplate("6063", "Fournitures d'entretien et petit équipement", "expense"),
        AccountTemplate("6064", "Fournitures administratives", "expense"),
        AccountTemplate("6116", "Logiciels et abonnements", "expense"),
        AccountTemplate("6132", "Locations immobilières", "expense"),
        AccountTemplate("616", "Primes d'assurance", "expense"),
        AccountTemplate("6180", "Divers", "expense"),
        AccountTemplate("6226", "Honoraires", "expense"),
        AccountTemplate("6231", "Annonces et insertions", "expense"),
        AccountTemplate("6241", "Transports sur achats", "expense"),
        AccountTemplate("6251", "Voyages et déplacements", "expense"),
        AccountTemplate("6257", "Réceptions", "expense"),
        AccountTemplate("626", "Frais postaux et de télécommunications", "expense"),
        AccountTemplate("6333", "Participation à la formation professionnelle", "expense"),
        AccountTemplate("658", "Charges diverses de gestion courante", "expense"),
        AccountTemplate("701", "Ventes de produits finis", "revenue"),
        AccountTemplate("706", "Prestations de services", "revenue"),
    ),
    roles={
        "bank": "512",
        "cash": "530",
        "receivables": "411",
        "payables": "401",
        "equity": "101",
        "loan": "164",
        "fixed_assets": "2183",
        "vat_output": "44571",
        "vat_input": "44566",
        "revenue": "701",
        "service_revenue": "706",
        "purchases": "601",
        "general_expense": "6180",
    },
    mappings=tuple(
        [
            MappingTemplate("invoice", "revenue", "411", "701", "Ventes de marchandises"),
            MappingTemplate("invoice", "service", "411", "706", "Prestations de services"),
            MappingTemplate("invoice", "product", "411", "701", "Ventes de produits finis"),
            MappingTemplate("payment", "cash", "530", "411", "Encaissement client - espèces"),
            MappingTemplate("payment", "bank_transfer", "512", "411", "Encaissement client - virement"),
            MappingTemplate("payment", "card", "512", "411", "Encaissement client - carte"),
            MappingTemplate("payment", "check", "512", "411", "Encaissement client - chèque"),
            MappingTemplate("credit_note", "general", "701", "411", "Avoir client"),
            MappingTemplate("supplier_invoice", "purchase", "601", "401", "Achats marchandises"),
            MappingTemplate("supplier_invoice", "service", "604", "401", "Achats prestations de services"),
            MappingTemplate("supplier_invoice", "supply", "6022", "401", "Achats fournitures consommables"),
        ]
        + _expense_mappings(_FR_EXPENSES, "512")
    ),
    tax_rates=(
        TaxRateTemplate("TVA 20%", Decimal("20"), "output", "44571", True),
        TaxRateTemplate("TVA 10%", Decimal("10"), "output", "44571"),
        TaxRateTemplate("TVA 5.5%", Decimal("5.5"), "output", "44571"),
        TaxRateTemplate("TVA 2.1%", Decimal("2.1"), "output", "44571"),
        TaxRateTemplate("TVA déductible 20%", Decimal("20"), "input", "44566", True),
        TaxRateTemplate("TVA déductible 10%", Decimal("10"), "input", "44566"),
        TaxRateTemplate("TVA déductible 5.5%", Decimal("5.5"), "input", "44566"),
    ),
    default_vat_rate=Decimal("20"),
)


_BE_EXPENSES = dict(_FR_EXPENSES)

BE = ChartTemplate(
    country="BE",
    name="Plan comptable minimum normalisé (Belgique)",
    accounts=(
        AccountTemplate("100", "Capital souscrit", "equity"),
        AccountTemplate("173", "Emprunts auprès des établissements de crédit", "liability"),
        AccountTemplate("2400", "Mobilier et matériel roulant", "asset"),
        AccountTemplate("400", "Clients", "asset"),
        AccountTemplate("4110", "TVA à récupérer", "asset"),
        AccountTemplate("440", "Fournisseurs", "liability"),
        AccountTemplate("4510", "TVA à payer", "liability"),
        AccountTemplate("550", "Établissements de crédit - comptes courants", "asset"),
        AccountTemplate("570", "Caisses-espèces", "asset"),
        AccountTemplate("601", "Achats de marchandises", "expense"),
        AccountTemplate("6022", "Fournitures consommables", "expense"),
        AccountTemplate("604", "Achats de services", "expense"),
        AccountTemplate("6061", "Énergie", "expense"),
        AccountTemplate("6063", "Petit matériel informatique", "expense"),
        AccountTemplate("6064", "Fournitures de bureau", "expense"),
        AccountTemplate("6116", "Logiciels et abonnements", "expense"),
        AccountTemplate("6132", "Loyers", "expense"),
        AccountTemplate("616", "Assurances", "expense"),
        AccountTemplate("6180", "Frais généraux divers", "expense"),
        AccountTemplate("6226", "Honoraires", "expense"),
        AccountTemplate("6231", "Publicité", "expense"),
        AccountTemplate("6241", "Transports", "expense"),
        AccountTemplate("6251", "Déplacements", "expense"),
        AccountTemplate("6257", "Réceptions", "expense"),
        AccountTemplate("626", "Télécommunications", "expense"),
        AccountTemplate("6333", "Formation", "expense"),
        AccountTemplate("658", "Charges diverses", "expense"),
        AccountTemplate("700", "Ventes de marchandises", "revenue"),
        AccountTemplate("701", "Ventes de produits finis", "revenue"),
        AccountTemplate("7061", "Prestations de services", "revenue"),
    ),
    roles={
        "bank": "550",
        "cash": "570",
        "receivables": "400",
        "payables": "440",
        "equity": "100",
        "loan": "173",
        "fixed_assets": "2400",
        "vat_output": "4510",
        "vat_input": "4110",
        "revenue": "700",
        "service_revenue": "7061",
        "purchases": "601",
        "general_expense": "6180",
    },
    mappings=tuple(
        [
            MappingTemplate("invoice", "revenue", "400", "700", "Ventes de marchandises"),
            MappingTemplate("invoice", "service", "400", "7061", "Prestations de services"),
            MappingTemplate("invoice", "product", "400", "701", "Ventes de produits finis"),
            MappingTemplate("payment", "cash", "570", "400", "Encaissement client - espèces"),
            MappingTemplate("payment", "bank_transfer", "550", "400", "Encaissement client - virement"),
            MappingTemplate("payment", "card", "550", "400", "Encaissement client - carte"),
            MappingTemplate("payment", "check", "550", "400", "Encaissement client - chèque"),
            MappingTemplate("credit_note", "general", "700", "400", "Avoir client"),
            MappingTemplate("supplier_invoice", "purchase", "601", "440", "Achats marchandises"),
            MappingTemplate("supplier_invoice", "service", "604", "440", "Achats prestations de services"),
            MappingTemplate("supplier_invoice", "supply", "6022", "440", "Achats fournitures consommables"),
        ]
        + _expense_mappings(_BE_EXPENSES, "550")
    ),
    tax_rates=(
        TaxRateTemplate("TVA 21%", Decimal("21"), "output", "4510", True),
        TaxRateTemplate("TVA 12%", Decimal("12"), "output", "4510"),
        TaxRateTemplate("TVA 6%", Decimal("6"), "output", "4510"),
        TaxRateTemplate("TVA 0%", Decimal("0"), "output", "4510"),
        TaxRateTemplate("TVA déductible 21%", Decimal("21"), "input", "4110", True),
        TaxRateTemplate("TVA déductible 12%", Decimal("12"), "input", "4110"),
        TaxRateTemplate("TVA déductible 6%", Decimal("6"), "input", "4110"),
    ),
    default_vat_rate=Decimal("21"),
)


_OHADA_EXPENSES = {
    "general": ("638", "Autres charges externes"),
    "office": ("6053", "Fournitures de bureau"),
    "travel": ("6371", "Voyages et déplacements"),
    "meals": ("636", "Frais de réceptions"),
    "transport": ("618", "Autres frais de transport"),
    "software": ("634", "Redevances pour logiciels"),
    "hardware": ("6054", "Fournitures informatiques"),
    "marketing": ("627", "Publicité et relations publiques"),
    "legal": ("6324", "Honoraires"),
    "insurance": ("625", "Primes d'assurance"),
    "rent": ("6222", "Locations de bâtiments"),
    "utilities": ("6051", "Eau, énergie"),
    "telecom": ("628", "Frais de télécommunications"),
    "training": ("633", "Formation du personnel"),
    "consulting": ("6324", "Honoraires de conseil"),
    "other": ("658", "Charges diverses"),
}

OHADA = ChartTemplate(
    country="OHADA",
    name="SYSCOHADA révisé",
    accounts=(
        AccountTemplate("101", "Capital social", "equity"),
        AccountTemplate("162", "Emprunts et dettes auprès des établissements de crédit", "liability"),
        AccountTemplate("244", "Matériel, mobilier et actifs biologiques", "asset"),
        AccountTemplate("401", "Fournisseurs, dettes en compte", "liability"),
        AccountTemplate("411", "Clients", "asset"),
        AccountTemplate("4431", "TVA facturée sur ventes", "liability", "443"),
        AccountTemplate("4452", "TVA récupérable sur achats", "asset", "445"),
        AccountTemplate("513", "Chèques à encaisser", "asset"),
        AccountTemplate("521", "Banques locales", "asset"),
        AccountTemplate("571", "Caisse siège social", "asset"),
        AccountTemplate("601", "Achats de marchandises", "expense"),
        AccountTemplate("604", "Achats stockés de matières et fournitures consommables", "expense"),
        AccountTemplate("605", "Autres achats", "expense"),
        AccountTemplate("6051", "Fournitures non stockables - eau, énergie", "expense"),
        AccountTemplate("6053", "Fournitures de bureau", "expense"),
        AccountTemplate("6054", "Fournitures informatiques", "expense"),
        AccountTemplate("618", "Autres frais de transport", "expense"),
        AccountTemplate("6222", "Locations de bâtiments", "expense"),
        AccountTemplate("625", "Primes d'assurance", "expense"),
        AccountTemplate("627", "Publicité, publications, relations publiques", "expense"),
        AccountTemplate("628", "Frais de télécommunications", "expense"),
        AccountTemplate("6324", "Honoraires", "expense"),
        AccountTemplate("633", "Frais de formation du personnel", "expense"),
        AccountTemplate("634", "Redevances pour logiciels", "expense"),
        AccountTemplate("636", "Frais de réceptions", "expense"),
        AccountTemplate("6371", "Voyages et déplacements", "expense"),
        AccountTemplate("638", "Autres charges externes", "expense"),
        AccountTemplate("658", "Charges diverses", "expense"),
        AccountTemplate("701", "Ventes de marchandises", "revenue"),
        AccountTemplate("702", "Ventes de produits finis", "revenue"),
        AccountTemplate("706", "Services vendus", "revenue"),
    ),
    roles={
        "bank": "521",
        "cash": "571",
        "receivables": "411",
        "payables": "401",
        "equity": "101",
        "loan": "162",
        "fixed_assets": "244",
        "vat_output": "4431",
        "vat_input": "4452",
        "revenue": "701",
        "service_revenue": "706",
        "purchases": "601",
        "general_expense": "638",
    },
    mappings=tuple(
        [
            MappingTemplate("invoice", "revenue", "411", "701", "Ventes de marchandises"),
            MappingTemplate("invoice", "service", "411", "706", "Services vendus"),
            MappingTemplate("invoice", "product", "411", "702", "Ventes de produits finis"),
            MappingTemplate("payment", "cash", "571", "411", "Encaissement client - espèces"),
            MappingTemplate("payment", "bank_transfer", "521", "411", "Encaissement client - virement"),
            MappingTemplate("payment", "card", "521", "411", "Encaissement client - carte"),
            MappingTemplate("payment", "check", "513", "411", "Encaissement client - chèque"),
            MappingTemplate("credit_note", "general", "701", "411", "Avoir client"),
            MappingTemplate("supplier_invoice", "purchase", "601", "401", "Achats de marchandises"),
            MappingTemplate("supplier_invoice", "service", "604", "401", "Achats de matières et fournitures"),
            MappingTemplate("supplier_invoice", "supply", "605", "401", "Autres achats"),
        ]
        + _expense_mappings(_OHADA_EXPENSES, "521")
    ),
    tax_rates=(
        TaxRateTemplate("TVA 18%", Decimal("18"), "output", "4431", True),
        TaxRateTemplate("TVA 19.25%", Decimal("19.25"), "output", "4431"),
        TaxRateTemplate("TVA 0% (exonéré)", Decimal("0"), "output", "4431"),
        TaxRateTemplate("TVA récupérable 18%", Decimal("18"), "input", "4452", True),
        TaxRateTemplate("TVA récupérable 19.25%", Decimal("19.25"), "input", "4452"),
    ),
    default_vat_rate=Decimal("18"),
)


TEMPLATES: dict[str, ChartTemplate] = {t.country: t for t in (FR, BE, OHADA)}


def get_template(country: str) -> Optional[ChartTemplate]:
    """Return the chart template for a country code (case-insensitive)."""
    return TEMPLATES.get(country.strip().upper())
