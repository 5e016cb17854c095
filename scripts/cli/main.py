"""
CLI main: argument parsing and dispatch to ProvenanceContract.

Usage:
    python -m scripts.cli init-db
    python -m scripts.cli create LOTE-001 Chocolate 1806
    python -m scripts.cli attach-input LOTE-001 LOTE-777 Cacau 1801
    python -m scripts.cli read LOTE-777 --json
    python -m scripts.cli history LOTE-001
    python -m scripts.cli check-links LOTE-001
    python -m scripts.cli reconcile LOTE-001

    # Custom database URL (otherwise config / PROVENANCE_DATABASE_URL)
    python -m scripts.cli --db-url sqlite:///provenance.db read LOTE-001
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from provenance_config import get_active_config
from provenance_config.schema import LOG_LEVELS
from provenance_kernel.context import LedgerContext
from provenance_kernel.contract import ProvenanceContract
from provenance_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from provenance_kernel.db.sql_ledger import SqlLedger
from provenance_kernel.exceptions import ProvenanceKernelError
from provenance_kernel.logging_config import configure_logging, get_logger
from scripts.cli import render

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="provenance",
        description="Supply-chain provenance record store",
    )
    parser.add_argument("--db-url", help="Database URL (overrides configuration)")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--json", action="store_true", help="Print JSON output")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (overrides configuration)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the ledger tables")

    for name, help_text in (
        ("exists", "Check whether a record exists"),
        ("read", "Show the current value of a record"),
        ("delete", "Delete a record (history is kept)"),
        ("history", "Show every stored version of a record"),
        ("check-links", "List inputs whose usedBy back-reference is missing"),
        ("reconcile", "Append missing usedBy back-references"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("record_id")

    for name, help_text in (
        ("create", "Create a record"),
        ("update", "Replace name and classification code"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("record_id")
        p.add_argument("name")
        p.add_argument("classification_code")

    p = sub.add_parser("attach-input", help="Declare that a record consumed an input")
    p.add_argument("owner_id")
    p.add_argument("input_id")
    p.add_argument("input_name")
    p.add_argument("input_code")

    return parser


def run_command(args: argparse.Namespace, ctx: LedgerContext) -> None:
    contract = ProvenanceContract()
    command = args.command

    if command == "exists":
        found = contract.exists(ctx, args.record_id)
        if args.json:
            render.print_json({"id": args.record_id, "exists": found})
        else:
            print("yes" if found else "no")

    elif command in ("create", "update", "read"):
        if command == "create":
            record = contract.create(ctx, args.record_id, args.name, args.classification_code)
        elif command == "update":
            record = contract.update(ctx, args.record_id, args.name, args.classification_code)
        else:
            record = contract.read(ctx, args.record_id)
        if args.json:
            render.print_json(record.to_dict())
        else:
            render.print_record(record)

    elif command == "delete":
        contract.delete(ctx, args.record_id)
        print(f"deleted {args.record_id}")

    elif command == "attach-input":
        contract.attach_input(
            ctx, args.owner_id, args.input_id, args.input_name, args.input_code
        )
        print(f"attached {args.input_id} as input of {args.owner_id}")

    elif command == "history":
        snapshots = list(contract.history(ctx, args.record_id))
        if args.json:
            render.print_json([snap.to_dict() for snap in snapshots])
        else:
            render.print_history(args.record_id, snapshots)

    elif command == "check-links":
        missing = contract.find_missing_back_references(ctx, args.record_id)
        if args.json:
            render.print_json([render.missing_to_dict(m) for m in missing])
        else:
            render.print_missing(args.record_id, missing)

    elif command == "reconcile":
        report = contract.reconcile_back_references(ctx, args.record_id)
        if args.json:
            render.print_json({
                "ownerId": report.owner_id,
                "writes": report.writes,
                "appended": report.appended,
                "created": list(report.created),
                "repaired": [render.missing_to_dict(m) for m in report.repaired],
            })
        else:
            print(
                f"reconciled {report.owner_id}: {report.appended} back-reference(s) "
                f"appended in {report.writes} write(s)"
            )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_active_config(args.config)
    configure_logging(level=args.log_level or config.logging.level)

    init_engine_from_url(
        args.db_url or config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        pool_timeout=config.database.pool_timeout,
        pool_recycle=config.database.pool_recycle,
    )

    if args.command == "init-db":
        create_tables()
        print("ledger tables ready")
        return 0

    try:
        with session_scope() as session:
            ctx = LedgerContext(backend=SqlLedger(session))
            run_command(args, ctx)
        logger.info("cli_command_completed", extra={"command": args.command, "tx_id": ctx.tx_id})
    except ProvenanceKernelError as exc:
        print(f"error {exc.code}: {exc}", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        logger.error("cli_database_error", extra={"command": args.command}, exc_info=True)
        print(f"error DATABASE_ERROR: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
