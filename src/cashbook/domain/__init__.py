"""Domain layer for cashbook application."""

import importlib

__all__ = [
    "ChartService",
    "LedgerService",
    "ReportService",
    "DocumentService",
    "ReconciliationService",
    "ExportService",
]

_SERVICES = {
    "ChartService": "cashbook.domain.chart",
    "LedgerService": "cashbook.domain.ledger",
    "ReportService": "cashbook.domain.reports",
    "DocumentService": "cashbook.domain.documents",
    "ReconciliationService": "cashbook.domain.reconciliation",
    "ExportService": "cashbook.domain.exporters",
}


# Services import the database layer, which imports domain entities; load
# them on first access so importing cashbook.domain.entities stays cheap.
def __getattr__(name):
    module_name = _SERVICES.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    return getattr(importlib.import_module(module_name), name)
