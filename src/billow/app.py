"""
Command-line entry point for Billow.

Examples:
    billow --service demo dashboard
    billow --service demo invoices --search tech --status paid
    billow --user USR-1 invoices --export invoices.csv
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from billow.analytics import bulk_filename, format_currency, write_csv
from billow.config import Settings, load_settings
from billow.data.demo_data import DEMO_USER
from billow.lib import logs
from billow.models.identity import Identity
from billow.pages import DashboardPage, InvoicesPage, UserSession
from billow.services import get_billow_service

LOG = logs.logger(__file__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="billow", description="Browse Billow invoices and dashboards."
    )
    parser.add_argument(
        "--service",
        choices=("http", "demo"),
        default=None,
        help="Backend to use (default: BILLOW_SERVICE or http).",
    )
    parser.add_argument(
        "--user",
        default=None,
        help="Current user id sent as X-User-ID (default: BILLOW_USER_ID).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("dashboard", help="Print KPI cards and top clients.")

    invoices = commands.add_parser("invoices", help="List invoices.")
    invoices.add_argument("--search", default="", help="Free-text search.")
    invoices.add_argument(
        "--status",
        default=None,
        choices=("all", "unpaid", "paid", "overdue", "processing"),
        help="Status filter.",
    )
    invoices.add_argument(
        "--export",
        type=Path,
        default=None,
        help="Write the listed invoices to this CSV file or directory.",
    )
    return parser


def _identity(settings: Settings, user: str | None) -> Identity | None:
    user_id = user or settings.user_id
    if not user_id and settings.service == "demo":
        return Identity(
            user_id=DEMO_USER["id"],
            email=DEMO_USER["email"],
            display_name=DEMO_USER["display_name"],
        )
    return Identity(user_id=user_id) if user_id else None


def _print_errors(errors: list[dict]) -> None:
    for error in errors:
        print(f"Error ({error['kind']}): {error['message']}", file=sys.stderr)


async def _dashboard(page: DashboardPage) -> int:
    await page.mount()
    for card in page.cards:
        change = f"  {card.change}" if card.change else ""
        print(f"{card.title:<16}{card.value}{change}")
    if page.top_clients:
        print("\nTop clients")
        for client in page.top_clients:
            print(f"  {client.name:<28}{format_currency(client.revenue, page.currency)}")
    _print_errors(page.errors)
    return 1 if page.errors else 0


async def _invoices(page: InvoicesPage, args: argparse.Namespace) -> int:
    page.params = page.params.replace(search=args.search, status=args.status)
    await page.mount()
    if page.errors:
        _print_errors(page.errors)
        return 1
    print(page.result_summary)
    for invoice in page.rows:
        print(
            f"  {invoice.id:<10}{invoice.formatted_invoice_date():<14}"
            f"{invoice.client_label:<28}"
            f"{invoice.formatted_amount():>18}  {invoice.status.label:<11}"
            f"{invoice.formatted_due_date()}"
        )
    if page.is_empty:
        print(page.empty_message)
    if args.export is not None:
        path = args.export
        if path.is_dir():
            path = path / bulk_filename(page.identity.label)
        write_csv(path, page.rows)
        print(f"Exported {len(page.rows)} invoices to {path}")
    return 0


async def _run(args: argparse.Namespace, settings: Settings, identity: Identity) -> int:
    service = get_billow_service(settings=settings)
    session = UserSession(service)
    try:
        await session.sign_in(identity)
        if args.command == "dashboard":
            page = DashboardPage(service, identity, settings.debounce_seconds)
            runner = _dashboard(page)
        else:
            page = InvoicesPage(service, identity, settings.debounce_seconds)
            runner = _invoices(page, args)
        try:
            return await runner
        finally:
            page.unmount()
    finally:
        await service.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    if args.verbose:
        logs.set_level("DEBUG")
    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if args.service:
        settings = replace(settings, service=args.service)

    identity = _identity(settings, args.user)
    if identity is None:
        print("Error: no user given; pass --user or set BILLOW_USER_ID", file=sys.stderr)
        return 2
    LOG.debug("main - command:%s service:%s", args.command, settings.service)
    return asyncio.run(_run(args, settings, identity))


if __name__ == "__main__":
    sys.exit(main())
