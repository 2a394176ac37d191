#!/usr/bin/env python3
"""
Command-line front end for the unified approval queue.

Works against the SQL document tables configured in the active
configuration (or --db-url).

Usage:
    python scripts/approvals_cli.py seed [--per-type 8] [--reset]
    python scripts/approvals_cli.py list [--type expense] [--search fuel] [--page 2]
    python scripts/approvals_cli.py approve EXP-00003
    python scripts/approvals_cli.py reject PRO-00001 --reason "budget exceeded"
    python scripts/approvals_cli.py bulk-approve PRF-00001 EXP-00002
    python scripts/approvals_cli.py bulk-reject --all --type expense --reason "duplicate"

Document numbers are resolved by searching the queue, so a document must
still be pending to be acted on.  Bulk commands act on the page selected
by --type/--search/--page, exactly as an approver would from the screen.
"""

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from approval_config import get_active_config
from approval_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from approval_kernel.domain.approval_item import (
    ApprovalAction,
    ApprovalItem,
    RequestType,
)
from approval_kernel.domain.query import ALL_TYPES, ApprovalFilter, ApprovalPage
from approval_kernel.exceptions import ApprovalKernelError
from approval_kernel.logging_config import LogContext, configure_logging
from approval_kernel.models.documents import DOCUMENT_MODELS
from approval_services.sql_backend import build_sql_workbench
from approval_services.workbench import ApprovalWorkbench

_SEED_TITLES: dict[RequestType, list[str]] = {
    RequestType.PURCHASE_REQUISITION: ["Printer toner", "Office chairs", "Laptops for new hires"],
    RequestType.PURCHASE_ORDER: ["Packaging supplies", "Cold room compressor", "Fuel delivery"],
    RequestType.STORE_STOCK_TRANSFER: ["Restock main store", "Return excess dry goods"],
    RequestType.LOCATION_STOCK_TRANSFER: ["Warehouse A to branch 2", "Branch 3 to warehouse B"],
    RequestType.STOCK_TRANSFER: ["Month-end rebalance", "Damaged stock write-off move"],
    RequestType.EXPENSE: ["Client lunch", "Taxi to airport", "Fuel for generator"],
    RequestType.CASH_LODGEMENT: ["Daily takings branch 1", "Weekend takings branch 2"],
}


def _type_by_prefix(number: str) -> RequestType | None:
    prefix = number.split("-", 1)[0].upper()
    for request_type in RequestType:
        if request_type.number_prefix == prefix:
            return request_type
    return None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def seed(per_type: int, reset: bool) -> int:
    """Insert ``per_type`` pending documents for every request type."""
    if reset:
        drop_tables()
    create_tables()

    base_time = datetime.now(UTC)
    created = 0
    with session_scope() as session:
        for offset, request_type in enumerate(RequestType):
            model = DOCUMENT_MODELS[request_type]
            titles = _SEED_TITLES[request_type]
            for i in range(1, per_type + 1):
                session.add(model(
                    number=f"{request_type.number_prefix}-{i:05d}",
                    title=titles[(i - 1) % len(titles)],
                    description=f"{request_type.label} seeded for review",
                    amount=Decimal(100 * i + offset) / Decimal("4"),
                    status="pending",
                    created_at=base_time - timedelta(hours=i, minutes=offset),
                    created_by="seed",
                ))
                created += 1
    print(f"Seeded {created} pending documents across {len(RequestType)} types.")
    return 0


def print_page(page: ApprovalPage) -> None:
    counts = page.counts
    for request_type in RequestType:
        marker = "" if counts.is_known(request_type) else " (unavailable)"
        print(f"  {request_type.label:<24} {counts[request_type]:>5}{marker}")
    print(f"  {'Total':<24} {counts.total:>5}")
    print()
    if not page.items:
        print("  No pending approvals.")
    for item in page.items:
        print(
            f"  {item.number:<12} {item.type.label:<24} "
            f"{item.amount:>14,.2f}  {item.created_at:%Y-%m-%d %H:%M}  {item.title}"
        )
    print()
    print(
        f"  Showing {page.start_index}-{page.end_index} of {page.total}"
        f"  (page {page.page}/{page.total_pages})"
    )
    for warning in page.warnings:
        print(f"  WARNING: {warning.request_type.label} unavailable: {warning.reason}")


async def _find_item(
    workbench: ApprovalWorkbench, request_type: RequestType, number: str,
) -> ApprovalItem | None:
    page = await workbench.get_aggregated_view(ApprovalFilter(
        type=request_type,
        search=number,
        page_size=workbench.current_filter.page_size,
    ))
    for item in page.items:
        if item.number.upper() == number.upper():
            return item
    return None


async def single_action(
    workbench: ApprovalWorkbench,
    number: str,
    action: ApprovalAction,
    reason: str | None,
) -> int:
    request_type = _type_by_prefix(number)
    if request_type is None:
        print(f"Error: unknown document prefix in {number!r}", file=sys.stderr)
        return 1
    item = await _find_item(workbench, request_type, number)
    if item is None:
        print(f"Error: {number} is not pending approval", file=sys.stderr)
        return 1
    await workbench.run_single_action(item, action, reason)
    verb = "Approved" if action is ApprovalAction.APPROVE else "Rejected"
    print(f"{verb} {item.number} ({item.type.label}).")
    return 0


async def bulk_action(
    workbench: ApprovalWorkbench,
    flt: ApprovalFilter,
    numbers: list[str],
    select_all: bool,
    action: ApprovalAction,
    reason: str | None,
) -> int:
    page = await workbench.get_aggregated_view(flt)
    if select_all:
        workbench.selection.toggle_all(page.items)
    else:
        wanted = {n.upper() for n in numbers}
        keys = [item.key for item in page.items if item.number.upper() in wanted]
        missing = wanted - {item.number.upper() for item in page.items}
        if missing:
            print(f"Error: not on this page: {', '.join(sorted(missing))}", file=sys.stderr)
            return 1
        workbench.selection.select_many(keys)

    result = await workbench.run_bulk_action(action, reason)
    print(
        f"Bulk {action.value}: {result.succeeded} succeeded, "
        f"{result.failed} failed of {result.attempted}."
    )
    return 0 if result.all_succeeded else 2


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _add_view_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--type", default=ALL_TYPES,
        choices=[ALL_TYPES] + [t.value for t in RequestType],
        help="Request type tile to show (default: all)",
    )
    parser.add_argument("--search", default="", help="Search number/title/description")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Unified approval queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Engine config YAML")
    parser.add_argument("--db-url", default=None, help="Override database URL")
    parser.add_argument("--actor", default="cli", help="Recorded as decided_by")
    parser.add_argument("-v", "--verbose", action="store_true", help="JSON logs to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    seed_parser = sub.add_parser("seed", help="Create tables and sample documents")
    seed_parser.add_argument("--per-type", type=int, default=8)
    seed_parser.add_argument("--reset", action="store_true", help="Drop tables first")

    _add_view_arguments(sub.add_parser("list", help="Show one page of the queue"))

    for name in ("approve", "reject"):
        p = sub.add_parser(name, help=f"{name.capitalize()} one document")
        p.add_argument("number", help="Document number, e.g. EXP-00003")
        if name == "reject":
            p.add_argument("--reason", required=True)

    for name in ("bulk-approve", "bulk-reject"):
        p = sub.add_parser(name, help=f"{name.split('-')[1].capitalize()} selected documents")
        p.add_argument("numbers", nargs="*", help="Document numbers on the chosen page")
        p.add_argument("--all", action="store_true", help="Select the whole page")
        _add_view_arguments(p)
        if name == "bulk-reject":
            p.add_argument("--reason", required=True)

    return parser


async def run(args: argparse.Namespace, workbench: ApprovalWorkbench) -> int:
    command = args.command
    if command == "list":
        page = await workbench.get_aggregated_view(_view_filter(args, workbench))
        print_page(page)
        return 0
    if command in ("approve", "reject"):
        return await single_action(
            workbench, args.number, ApprovalAction(command), getattr(args, "reason", None),
        )
    action = ApprovalAction(command.split("-", 1)[1])
    if not args.all and not args.numbers:
        print("Error: give document numbers or --all", file=sys.stderr)
        return 1
    return await bulk_action(
        workbench, _view_filter(args, workbench), args.numbers, args.all,
        action, getattr(args, "reason", None),
    )


def _view_filter(args: argparse.Namespace, workbench: ApprovalWorkbench) -> ApprovalFilter:
    return ApprovalFilter(
        type=args.type,
        search=args.search,
        page=args.page,
        page_size=(
            args.page_size if args.page_size is not None
            else workbench.current_filter.page_size
        ),
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        configure_logging(level=logging.DEBUG)

    config = get_active_config(args.config)
    init_engine_from_url(args.db_url or config.database_url)

    try:
        if args.command == "seed":
            return seed(args.per_type, args.reset)
        workbench = build_sql_workbench(get_session_factory(), config, actor=args.actor)
        with LogContext.bind(actor_id=args.actor):
            return asyncio.run(run(args, workbench))
    except ApprovalKernelError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
