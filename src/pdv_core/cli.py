"""Command-line reports.

Examples:
  # Cash of one day at loja1
  python -m pdv_core.cli cash --location loja1 --start 2025-01-15

  # Cash of a month, exported to CSV
  python -m pdv_core.cli cash --location loja2 --start 2025-01-01 --end 2025-01-31 \
      --csv out/caixa_loja2_jan.csv

  # Sales with the top 5 products
  python -m pdv_core.cli sales --location loja1 --start 2025-01-01 --end 2025-01-31 --top 5

  # Delivery orders of one day
  python -m pdv_core.cli delivery --date 2025-01-15 -v

Environment:
  PDV_SUPABASE_URL / PDV_SUPABASE_KEY (see pdv_core.config)
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from pdv_core import console
from pdv_core.cash.api import get_cash_report
from pdv_core.cash.export import export_cash_csv
from pdv_core.config import BackendConfig
from pdv_core.delivery.api import get_delivery_report
from pdv_core.delivery.report import export_delivery_csv
from pdv_core.exceptions import PdvAPIError
from pdv_core.locations import LocationRegistry, get_location
from pdv_core.sales.api import get_daily_sales, get_sales_report
from pdv_core.sales.report import export_sales_csv
from pdv_core.store.client import RestClient
from pdv_core.utils import DateRange, parse_date

logger = logging.getLogger(__name__)


def _period(args: argparse.Namespace) -> DateRange:
    start = args.start or date.today()
    end = args.end or start
    try:
        return DateRange(start, end)
    except ValueError as e:
        raise SystemExit(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pdv_core", description="PDV cash, sales and delivery reports")
    sub = p.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--start", type=parse_date, help="First day, YYYY-MM-DD (default: today)")
    common.add_argument("--end", type=parse_date, help="Last day, YYYY-MM-DD (default: --start)")
    common.add_argument("--csv", type=Path, help="Also write the report to this CSV file")
    common.add_argument("-v", "--verbose", action="store_true")

    locations = LocationRegistry().list_locations()

    cash = sub.add_parser("cash", parents=[common], help="Cash register report")
    cash.add_argument("--location", required=True, choices=locations)

    sales = sub.add_parser("sales", parents=[common], help="PDV sales report")
    sales.add_argument("--location", required=True, choices=locations)
    sales.add_argument("--top", type=int, default=10, help="Number of top products (default: 10)")
    sales.add_argument("--daily", action="store_true", help="PDV + delivery totals of --start")

    delivery = sub.add_parser("delivery", parents=[common], help="Delivery orders report")
    delivery.add_argument("--date", type=parse_date, help="Shortcut for --start X --end X")
    return p


def run(args: argparse.Namespace, client: RestClient) -> str:
    """Execute one report command and return its console text."""
    if args.command == "delivery" and args.date:
        args.start = args.end = args.date
    period = _period(args)

    if args.command == "cash":
        loc = get_location(args.location)
        report = get_cash_report(client, loc, period)
        if report is not None and args.csv:
            export_cash_csv(
                report.summary,
                report.entries,
                args.csv,
                tz=client.config.timezone,
                include_operator=report.is_multi_register,
            )
        return console.format_cash_summary(report.summary if report else None, loc.label, period)

    if args.command == "sales":
        loc = get_location(args.location)
        if args.daily:
            daily = get_daily_sales(client, loc, period.start)
            return console.format_daily_sales(daily, loc.label, DateRange.single_day(period.start))
        summary, sales = get_sales_report(client, loc, period, top_n=args.top)
        if args.csv:
            export_sales_csv(summary, sales, args.csv, tz=client.config.timezone)
        return console.format_sales_summary(summary, loc.label, period)

    if args.command == "delivery":
        summary, orders = get_delivery_report(client, period)
        if args.csv:
            export_delivery_csv(summary, orders, args.csv, tz=client.config.timezone)
        return console.format_delivery_summary(summary, period)

    raise SystemExit(f"Unknown command {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run the command-line tool.

    Returns:
        Process exit code: 0 on success, 1 on a PDV Core error, 130 when
        interrupted with Ctrl-C.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        client = RestClient(BackendConfig.from_env())
        print(run(args, client))
    except PdvAPIError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
