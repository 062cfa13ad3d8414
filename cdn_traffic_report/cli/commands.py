"""
CLI command entry points for cdn_traffic_report.

The `cdn-traffic-report` console script (see pyproject.toml) dispatches to
one of three subcommands:

    traffic   Ranked per-service traffic report (default)
    services  Active services, most recently updated first
    users     Customer users, most recently updated first

Reports go to stdout; logs and the progress bar go to stderr. Errors that
occur before any report row is written (missing token, service listing
failure) exit with status 1.
"""

import argparse
import logging
import sys
from typing import TextIO

from cdn_traffic_report.aggregation.engine import aggregate_services
from cdn_traffic_report.cli.args import add_logging_arguments, positive_float, positive_int
from cdn_traffic_report.cli.logging import print_header, setup_logging
from cdn_traffic_report.config import (
    get_fastly_customer_id,
    get_max_workers,
    get_report_deadline,
)
from cdn_traffic_report.report.csv_report import has_s3_domain, write_report
from cdn_traffic_report.report.summaries import write_service_summary, write_user_summary
from cdn_traffic_report.sources.fastly import (
    FastlyAPIError,
    FastlyClient,
    parse_service_summary,
    parse_users,
    service_refs_from_listing,
)

COMMANDS = ("traffic", "services", "users")


def _get_client(logger: logging.Logger) -> FastlyClient | None:
    try:
        return FastlyClient.from_settings()
    except ValueError as e:
        logger.error(str(e))
        return None


def run_traffic(
    args: argparse.Namespace,
    client: FastlyClient | None = None,
    stream: TextIO | None = None,
) -> int:
    """Build and print the ranked traffic report."""
    stream = stream or sys.stdout
    logger = setup_logging("traffic", log_to_file=args.log_file, verbose=args.verbose)
    print_header("Fastly traffic report", logger)

    client = client or _get_client(logger)
    if client is None:
        return 1

    try:
        refs = service_refs_from_listing(client.list_services())
    except FastlyAPIError as e:
        logger.error(f"Could not list services: {e}")
        return 1

    logger.info(f"Found {len(refs)} services")
    result = aggregate_services(
        client,
        refs,
        max_workers=args.max_workers or get_max_workers(),
        deadline=args.deadline or get_report_deadline(),
        show_progress=not args.no_progress,
    )

    reports = result.reports
    if args.s3_only:
        reports = tuple(r for r in reports if has_s3_domain(r))

    rows = write_report(reports, stream, wide=args.wide)
    stream.flush()

    counts = result.stats.to_dict()
    logger.info(
        f"Wrote {rows} rows | complete: {counts['complete']} | degraded: {counts['degraded']}"
        f" | failed: {counts['failed']} | skipped: {counts['skipped']}"
    )
    return 0


def run_services(
    args: argparse.Namespace,
    client: FastlyClient | None = None,
    stream: TextIO | None = None,
) -> int:
    """Print services sorted by last update."""
    stream = stream or sys.stdout
    logger = setup_logging("services", log_to_file=args.log_file, verbose=args.verbose)

    client = client or _get_client(logger)
    if client is None:
        return 1

    try:
        services = client.list_services()
    except FastlyAPIError as e:
        logger.error(f"Could not list services: {e}")
        return 1

    summaries = []
    for service in services:
        service_id = service.get("id")
        if not service_id:
            continue
        try:
            summaries.append(parse_service_summary(client.get_service_details(service_id)))
        except FastlyAPIError as e:
            logger.warning(f"Could not get details for {service_id}: {e}")

    rows = write_service_summary(summaries, stream, active_only=not args.all)
    logger.info(f"count {rows}")
    return 0


def run_users(
    args: argparse.Namespace,
    client: FastlyClient | None = None,
    stream: TextIO | None = None,
) -> int:
    """Print customer users sorted by last update."""
    stream = stream or sys.stdout
    logger = setup_logging("users", log_to_file=args.log_file, verbose=args.verbose)

    customer_id = args.customer_id or get_fastly_customer_id()
    if not customer_id:
        logger.error("No customer id: pass --customer-id or set FASTLY_CUSTOMER_ID")
        return 1

    client = client or _get_client(logger)
    if client is None:
        return 1

    try:
        users = parse_users(client.list_customer_users(customer_id))
    except FastlyAPIError as e:
        logger.error(f"Could not list users for customer {customer_id}: {e}")
        return 1

    rows = write_user_summary(users, stream)
    logger.info(f"count {rows}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cdn-traffic-report",
        description="Per-service network and traffic reports for a Fastly account",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    traffic = subparsers.add_parser("traffic", help="Ranked per-service traffic report")
    traffic.add_argument(
        "--max-workers",
        type=positive_int,
        default=None,
        help="Services enriched concurrently (default: MAX_WORKERS setting)",
    )
    traffic.add_argument(
        "--deadline",
        type=positive_float,
        default=None,
        help="Seconds after which services not yet started are skipped",
    )
    traffic.add_argument(
        "--wide",
        action="store_true",
        help="Add requests, dates, addresses, name servers and errors columns",
    )
    traffic.add_argument(
        "--s3-only",
        action="store_true",
        help="Only report services with an s3 domain",
    )
    traffic.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    add_logging_arguments(traffic)
    traffic.set_defaults(handler=run_traffic)

    services = subparsers.add_parser("services", help="Services sorted by last update")
    services.add_argument("--all", action="store_true", help="Include inactive services")
    add_logging_arguments(services)
    services.set_defaults(handler=run_services)

    users = subparsers.add_parser("users", help="Customer users sorted by last update")
    users.add_argument("--customer-id", default=None, help="Fastly customer id")
    add_logging_arguments(users)
    users.set_defaults(handler=run_users)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the cdn-traffic-report command."""
    argv = list(sys.argv[1:] if argv is None else argv)
    # "traffic" is the default subcommand
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv = ["traffic", *argv]

    args = build_parser().parse_args(argv)
    return args.handler(args)


def run_main():
    """Console script wrapper that exits with main()'s status."""
    sys.exit(main())
