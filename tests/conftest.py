"""Shared pytest fixtures for cashbook tests."""

import tempfile
import os
from datetime import date
import pytest

from cashbook.database.factories import create_sqlite_database
from cashbook.domain.chart import ChartService
from cashbook.domain.documents import DocumentService
from cashbook.domain.exporters import ExportService
from cashbook.domain.ledger import LedgerService
from cashbook.domain.reconciliation import ReconciliationService
from cashbook.domain.reports import ReportService

REVERSAL_DATE = date(2025, 3, 31)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path, tenant_id="test")
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def chart_service(temp_db):
    """Create a ChartService with a temporary database."""
    return ChartService(temp_db)


@pytest.fixture
def fr_chart(chart_service):
    """Initialize the French chart of accounts."""
    chart_service.init_accounting("FR")
    return chart_service


@pytest.fixture
def ledger_service(temp_db, chart_service):
    """Create a LedgerService that books reversals on a fixed date."""
    return LedgerService(temp_db, chart=chart_service, clock=lambda: REVERSAL_DATE)


@pytest.fixture
def report_service(temp_db, chart_service):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db, chart=chart_service)


@pytest.fixture
def document_service(temp_db, ledger_service):
    """Create a DocumentService booking through the test ledger."""
    return DocumentService(temp_db, ledger=ledger_service)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def export_service(temp_db):
    """Create an ExportService with a temporary database."""
    return ExportService(temp_db)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
