"""Integration tests for end-to-end workflows."""

import json

from cashbook.cli.main import cli


def _run(cli_runner, temp_db, *args, tenant="test"):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--tenant", tenant, *args]
    )


def test_full_workflow(cli_runner, temp_db, tmp_path):
    """Test complete workflow: init → invoice → pay → statement → reconcile → export."""
    # Step 1: Initialize the French chart of accounts
    result = _run(cli_runner, temp_db, "init", "FR")
    assert result.exit_code == 0
    assert "Initialized FR chart of accounts:" in result.output

    result = _run(cli_runner, temp_db, "init", "FR")
    assert result.exit_code == 0
    assert "Accounting already initialized (FR)." in result.output

    # Step 2: Create and pay an invoice
    result = _run(
        cli_runner, temp_db, "invoice", "create", "INV-1", "--amount", "1000", "--date", "2025-03-05"
    )
    assert result.exit_code == 0
    assert "Created invoice INV-1 (ID: 1): 1000.00 HT, 1200.00 TTC [sent]" in result.output

    result = _run(cli_runner, temp_db, "invoice", "pay", "1", "--date", "2025-03-12")
    assert result.exit_code == 0
    assert "Invoice INV-1 paid (1200.00)" in result.output

    # Step 3: Trial balance
    result = _run(cli_runner, temp_db, "trial-balance", "--as-of", "2025-03-31", "--json")
    assert result.exit_code == 0
    balance = json.loads(result.stdout)
    assert balance["balanced"] is True
    assert balance["total_debit"] == balance["total_credit"] == "2400.00"
    lines = {line["account_code"]: line for line in balance["lines"]}
    assert lines["512"]["total_debit"] == "1200.00"
    assert lines["701"]["total_credit"] == "1000.00"
    assert lines["411"]["balance"] == "0.00"

    # Step 4: Import a bank statement
    csv_path = tmp_path / "releve.csv"
    csv_path.write_text(
        "Date;Libellé;Montant\n12/03/2025;VIR ACME INV-1;1200,00\n15/03/2025;FRAIS BANCAIRES;-4,50\n",
        encoding="utf-8",
    )
    result = _run(cli_runner, temp_db, "statement", "import", str(csv_path), "--bank", "BNP")
    assert result.exit_code == 0
    assert "Imported statement 1: 2 line(s) [confirmed]" in result.output

    # Step 5: Reconcile
    result = _run(cli_runner, temp_db, "reconcile", "auto", "1")
    assert result.exit_code == 0
    assert "Matched 1 line(s); 1 still unmatched." in result.output

    result = _run(cli_runner, temp_db, "reconcile", "ignore", "2")
    assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "reconcile", "summary", "1", "--json")
    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["matched_lines"] == 1
    assert summary["ignored_lines"] == 1
    assert summary["difference"] == "0.00"

    # Step 6: Exports
    result = _run(
        cli_runner,
        temp_db,
        "export",
        "fec",
        "--start-date",
        "2025-01-01",
        "--end-date",
        "2025-12-31",
    )
    assert result.exit_code == 0
    fec_rows = result.stdout.lstrip("\ufeff").splitlines()
    assert fec_rows[0].startswith("JournalCode|JournalLib|EcritureNum")
    assert len(fec_rows) == 1 + 2 * 3

    facturx_path = tmp_path / "INV-1.xml"
    result = _run(cli_runner, temp_db, "export", "facturx", "1", "-o", str(facturx_path))
    assert result.exit_code == 0
    assert "urn:factur-x.eu:1p0:basic" in facturx_path.read_text(encoding="utf-8")


def test_tenants_are_isolated(cli_runner, temp_db):
    """Books written for one tenant are invisible to another."""
    assert _run(cli_runner, temp_db, "init", "FR").exit_code == 0
    result = _run(
        cli_runner, temp_db, "invoice", "create", "INV-1", "--amount", "100", "--date", "2025-03-05"
    )
    assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "trial-balance", "--json", tenant="other")
    assert result.exit_code == 0
    assert json.loads(result.stdout)["lines"] == []

    result = _run(cli_runner, temp_db, "invoice", "list", tenant="other")
    assert "No invoices found." in result.output


def test_invoice_commands_accept_invoice_number(cli_runner, temp_db):
    """Invoices can be addressed by number as well as by ID."""
    assert _run(cli_runner, temp_db, "init", "FR").exit_code == 0
    result = _run(
        cli_runner, temp_db, "invoice", "create", "F-2025-0100", "--amount", "100", "--date", "2025-03-05"
    )
    assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "invoice", "pay", "F-2025-0100", "--date", "2025-03-12")
    assert result.exit_code == 0
    assert "Invoice F-2025-0100 paid (120.00)" in result.output

    result = _run(cli_runner, temp_db, "export", "facturx", "F-2025-0100")
    assert result.exit_code == 0
    assert "F-2025-0100" in result.stdout

    result = _run(cli_runner, temp_db, "invoice", "cancel", "F-2025-0999")
    assert result.exit_code == 1
    assert "Error: Invoice F-2025-0999 not found" in result.output


def test_export_backup_writes_tenant_json(cli_runner, temp_db, tmp_path):
    """The backup export holds the tenant's records as JSON."""
    assert _run(cli_runner, temp_db, "init", "FR").exit_code == 0
    result = _run(
        cli_runner, temp_db, "invoice", "create", "INV-1", "--amount", "100", "--date", "2025-03-05"
    )
    assert result.exit_code == 0

    backup_path = tmp_path / "backup.json"
    result = _run(cli_runner, temp_db, "export", "backup", "-o", str(backup_path))
    assert result.exit_code == 0
    assert f"Wrote {backup_path}" in result.output

    data = json.loads(backup_path.read_text(encoding="utf-8"))
    assert data["tenant_id"] == "test"
    assert [inv["invoice_number"] for inv in data["invoices"]] == ["INV-1"]
    assert len(data["journal_entries"]) == 2

    result = _run(cli_runner, temp_db, "export", "backup", tenant="other")
    assert result.exit_code == 0
    assert json.loads(result.stdout)["invoices"] == []


def test_errors_exit_with_status_1(cli_runner, temp_db):
    """Domain errors are reported on stderr with exit code 1."""
    result = _run(cli_runner, temp_db, "invoice", "pay", "99")
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = _run(cli_runner, temp_db, "invoice", "create", "INV-1", "--amount", "100")
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = _run(cli_runner, temp_db, "init", "XX")
    assert result.exit_code == 1

    result = _run(cli_runner, temp_db, "export", "fec", "--this-month", "--last-year")
    assert result.exit_code == 1
    assert "Only one period option" in result.output


def test_help_does_not_need_database(cli_runner, tmp_path):
    """Showing help never opens the database."""
    db_path = tmp_path / "never.db"
    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])

    assert result.exit_code == 0
    assert "reconcile" in result.output
    assert not db_path.exists()
