"""Command-line front end, run against a committed SQLite file database."""

import json
from uuid import uuid4

from sqlalchemy import select

from scripts.form6111_cli import DATABASE_URL_ENV, build_parser, main
from statutory_kernel.db.engine import get_session
from statutory_modules.form6111.orm import StatutoryReportModel


def _generate(file_ledger_db, *extra) -> int:
    return main([
        "--database-url", file_ledger_db.url,
        "generate",
        "--company", str(file_ledger_db.company_id),
        "--tax-year", "2024",
        "--start", "2024-01-01",
        "--end", "2024-12-31",
        "--user", "accountant",
        *extra,
    ])


def _stored_report_ids() -> list:
    session = get_session()
    try:
        return list(session.execute(select(StatutoryReportModel.id)).scalars())
    finally:
        session.close()


def test_parser_requires_a_command():
    parser = build_parser()
    args = parser.parse_args(["list", "--company", str(uuid4())])
    assert args.command == "list"
    assert args.tax_year is None


def test_missing_database_url(monkeypatch, capsys):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)

    assert main(["list", "--company", str(uuid4())]) == 2
    assert DATABASE_URL_ENV in capsys.readouterr().err


def test_generate_commits_report(file_ledger_db, capsys):
    assert _generate(file_ledger_db, "--notes", "From the CLI") == 0

    out = capsys.readouterr().out
    assert "7,000.00" in out
    assert "Balanced      True" in out
    assert len(_stored_report_ids()) == 1


def test_list_validate_export_and_status(file_ledger_db, capsys, tmp_path):
    _generate(file_ledger_db)
    [report_id] = _stored_report_ids()
    common = ["--database-url", file_ledger_db.url]
    ids = ["--company", str(file_ledger_db.company_id), "--report", str(report_id)]
    capsys.readouterr()

    assert main([*common, "list", "--company", str(file_ledger_db.company_id)]) == 0
    assert str(report_id) in capsys.readouterr().out

    assert main([*common, "validate", *ids]) == 0
    assert "Valid:    True" in capsys.readouterr().out

    out_dir = tmp_path / "exports"
    assert main([*common, "export", *ids, "--output", str(out_dir)]) == 0
    written = out_dir / "Form6111_514000001_2024.json"
    assert json.loads(written.read_text(encoding="utf-8"))["metadata"]["tax_year"] == 2024

    assert main([*common, "status", *ids, "--to", "reviewed", "--user", "reviewer"]) == 0
    assert "is now reviewed" in capsys.readouterr().out


def test_validate_unknown_report_fails(file_ledger_db, capsys):
    code = main([
        "--database-url", file_ledger_db.url,
        "validate",
        "--company", str(file_ledger_db.company_id),
        "--report", str(uuid4()),
    ])

    assert code == 1
    assert "Form 6111 not found" in capsys.readouterr().out


def test_domain_errors_reported(file_ledger_db, capsys):
    code = main([
        "--database-url", file_ledger_db.url,
        "status",
        "--company", str(file_ledger_db.company_id),
        "--report", str(uuid4()),
        "--to", "filed",
    ])

    assert code == 1
    assert "ERROR [" in capsys.readouterr().err
