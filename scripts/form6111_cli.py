#!/usr/bin/env python3
"""
Form 6111 command-line front end.

Generates, lists, validates, exports and advances statutory reports
against an existing database (companies, accounts and journal already
loaded).

Usage:
    python3 scripts/form6111_cli.py generate --company <id> --tax-year 2024 \\
        --start 2024-01-01 --end 2024-12-31 --user accountant
    python3 scripts/form6111_cli.py list --company <id> [--tax-year 2024]
    python3 scripts/form6111_cli.py validate --company <id> --report <id>
    python3 scripts/form6111_cli.py export --company <id> --report <id> \\
        --format xlsx --output out/
    python3 scripts/form6111_cli.py status --company <id> --report <id> \\
        --to reviewed --user reviewer

The database URL comes from --database-url or STATUTORY_DATABASE_URL.
"""

import argparse
import logging
import os
import sys
from datetime import date
from pathlib import Path
from uuid import UUID

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DATABASE_URL_ENV = "STATUTORY_DATABASE_URL"


def _print_report(report) -> None:
    pl, tax, bs = report.profit_loss, report.tax_adjustments, report.balance_sheet
    print(f"  Report        {report.id}")
    print(f"  Tax year      {report.tax_year}  ({report.period_start} .. {report.period_end})")
    print(f"  Status        {report.status.value}")
    print(f"  Total revenue {pl.total_revenue:>18,.2f}")
    print(f"  Profit/loss   {pl.total_profit_loss:>18,.2f}")
    print(f"  Taxable       {tax.taxable_income:>18,.2f}")
    print(f"  Total assets  {bs.total_assets:>18,.2f}")
    print(f"  L + E         {bs.total_liabilities_and_equity:>18,.2f}")
    print(f"  Balanced      {bs.is_balanced}")
    print(f"  Data hash     {report.data_hash}")
    for warning in report.warnings:
        print(f"  WARNING: {warning}")


def _cmd_generate(service, args) -> int:
    report = service.generate_report(
        company_id=args.company,
        tax_year=args.tax_year,
        period_start=args.start,
        period_end=args.end,
        notes=args.notes,
        generated_by=args.user,
    )
    _print_report(report)
    return 0


def _cmd_list(service, args) -> int:
    reports = service.list_reports(args.company, args.tax_year)
    if not reports:
        print("  No reports.")
    for r in reports:
        print(
            f"  {r.id}  {r.tax_year}  {r.status.value:<9}  "
            f"{r.generated_at:%Y-%m-%d %H:%M}  {r.profit_loss.total_profit_loss:>16,.2f}"
        )
    return 0


def _cmd_validate(service, args) -> int:
    result = service.validate_report(args.report, args.company)
    print(f"  Valid:    {result.is_valid}")
    print(f"  Balanced: {result.is_balance_sheet_balanced}")
    for error in result.errors:
        print(f"  ERROR: {error}")
    for warning in result.warnings:
        print(f"  WARNING: {warning}")
    for message in result.info_messages:
        print(f"  {message}")
    return 0 if result.is_valid else 1


def _cmd_export(service, args) -> int:
    exported = service.export_report(args.report, args.company, args.format)
    out_dir = Path(args.output)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / exported.file_name
    target.write_bytes(exported.content)
    print(f"  Wrote {target} ({len(exported.content)} bytes)")
    return 0


def _cmd_status(service, args) -> int:
    report = service.update_report_status(args.report, args.company, args.to, args.user)
    print(f"  {report.id} is now {report.status.value}")
    return 0


COMMANDS = {
    "generate": _cmd_generate,
    "list": _cmd_list,
    "validate": _cmd_validate,
    "export": _cmd_export,
    "status": _cmd_status,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Israeli Form 6111 statutory reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--database-url",
        default=os.environ.get(DATABASE_URL_ENV),
        help=f"SQLAlchemy database URL (default: ${DATABASE_URL_ENV})",
    )
    parser.add_argument("--config", help="Rule-set YAML file or bundled rule-set name")
    parser.add_argument("--verbose", action="store_true", help="JSON logs to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a new report")
    gen.add_argument("--company", type=UUID, required=True)
    gen.add_argument("--tax-year", type=int, required=True)
    gen.add_argument("--start", type=date.fromisoformat, required=True)
    gen.add_argument("--end", type=date.fromisoformat, required=True)
    gen.add_argument("--notes")
    gen.add_argument("--user", default="cli")

    lst = sub.add_parser("list", help="List reports")
    lst.add_argument("--company", type=UUID, required=True)
    lst.add_argument("--tax-year", type=int)

    val = sub.add_parser("validate", help="Validate a stored report")
    val.add_argument("--company", type=UUID, required=True)
    val.add_argument("--report", type=UUID, required=True)

    exp = sub.add_parser("export", help="Export a stored report")
    exp.add_argument("--company", type=UUID, required=True)
    exp.add_argument("--report", type=UUID, required=True)
    exp.add_argument("--format", default="json")
    exp.add_argument("--output", default=".")

    st = sub.add_parser("status", help="Advance a report's status")
    st.add_argument("--company", type=UUID, required=True)
    st.add_argument("--report", type=UUID, required=True)
    st.add_argument("--to", required=True, choices=("reviewed", "filed"))
    st.add_argument("--user", default="cli")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.database_url:
        print(f"  ERROR: pass --database-url or set {DATABASE_URL_ENV}", file=sys.stderr)
        return 2

    from statutory_kernel.db.engine import init_engine_from_url, session_scope
    from statutory_kernel.db.immutability import register_immutability_listeners
    from statutory_kernel.exceptions import StatutoryKernelError
    from statutory_kernel.logging_config import configure_logging
    from statutory_modules.form6111 import Form6111Config, Form6111Service

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    init_engine_from_url(args.database_url)
    register_immutability_listeners()

    config = (
        Form6111Config.from_dict({"rule_set": args.config})
        if args.config
        else Form6111Config.with_defaults()
    )

    try:
        with session_scope() as session:
            return COMMANDS[args.command](Form6111Service(session, config=config), args)
    except StatutoryKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
