"""CLI interface for pii-scanner.

Usage:
    # Scan workbooks (files or directories), export matches to .xlsx,
    # print statistics as JSON on stdout, progress on stderr
    python -m pii_scanner.cli scan data/ extra.xlsx -o found.xlsx

    # Regex categories only, explicit column, 3 rows of context
    python -m pii_scanner.cli scan data/ --column 消息内容 --context-lines 3

    # Include person names from the name service
    python -m pii_scanner.cli scan data/ --names --api-host 10.0.0.5:8080

    # Probe the name service
    python -m pii_scanner.cli health --api-host 10.0.0.5:8080
"""

from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from .config import Configuration, load_from_yaml
from .errors import ExportError, NameServiceError, ScannerError
from .files import build_file_tasks, collect_xlsx_files, output_filename
from .name_service import NameServiceClient
from .processor import ParallelProcessor
from .workbook import export_results

logger = logging.getLogger("pii_scanner")


def _build_config(args: argparse.Namespace) -> Configuration:
    config = load_from_yaml(args.config) if args.config else Configuration()
    overrides: dict = {}
    if args.context_lines is not None:
        overrides["context_lines"] = args.context_lines
    if args.column is not None:
        overrides["target_column"] = args.column
    if args.no_phone:
        overrides["enable_phone"] = False
    if args.no_id_card:
        overrides["enable_id_card"] = False
    if args.no_bank_card:
        overrides["enable_bank_card"] = False
    if args.names:
        overrides["enable_name"] = True
    if args.api_host:
        overrides["api_host"] = args.api_host
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    return dataclasses.replace(config, **overrides)


def _print_progress(label: str, percent: int) -> None:
    sys.stderr.write(f"\r[{percent:3d}%] {label}")
    if percent >= 100:
        sys.stderr.write("\n")
    sys.stderr.flush()


def cmd_scan(args: argparse.Namespace) -> int:
    """Scan workbooks and export every matching row."""
    config = _build_config(args)
    files = collect_xlsx_files(args.paths)
    tasks = build_file_tasks(files)

    report = ParallelProcessor(config).process_files(tasks, _print_progress)
    for name, message in report.errors.items():
        sys.stderr.write(f"error: {name}: {message}\n")

    stats = report.statistics
    output = {**dataclasses.asdict(stats), "elapsed": stats.format_elapsed()}

    results = report.results
    if results:
        out_path = Path(args.output or output_filename(files[0].stem if len(files) == 1 else "提取结果"))
        try:
            export_results(results, out_path)
            output["output"] = str(out_path)
        except ExportError as e:
            sys.stderr.write(f"error: {e}\n")
            return 1

    json.dump(output, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 1 if report.failed_count == len(tasks) else 0


def cmd_health(args: argparse.Namespace) -> int:
    """Probe the name-extraction service."""
    client = NameServiceClient(args.api_host or Configuration().api_host)
    try:
        status = client.check_connection()
    except NameServiceError as e:
        sys.stderr.write(f"unreachable: {e}\n")
        return 1
    finally:
        client.close()
    sys.stdout.write(f"ok: {status}\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-scanner",
        description="Find phone, ID, bank card numbers and names in spreadsheets",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan .xlsx files or directories")
    scan.add_argument("paths", nargs="+", help="Files or directories")
    scan.add_argument("-o", "--output", help="Output .xlsx path")
    scan.add_argument("--config", help="YAML config file")
    scan.add_argument("--context-lines", type=int, help="Rows of context either side")
    scan.add_argument("--column", help="Column to scan (default: auto-detect)")
    scan.add_argument("--no-phone", action="store_true", help="Skip phone numbers")
    scan.add_argument("--no-id-card", action="store_true", help="Skip ID numbers")
    scan.add_argument("--no-bank-card", action="store_true", help="Skip bank card numbers")
    scan.add_argument("--names", action="store_true", help="Extract names via the name service")
    scan.add_argument("--workers", type=int, help="Worker threads")
    scan.add_argument("--api-host", default="", help="Name service host:port")

    health = sub.add_parser("health", help="Check the name service")
    health.add_argument("--api-host", default="", help="Name service host:port")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cmds = {
        "scan": cmd_scan,
        "health": cmd_health,
    }
    try:
        return cmds[args.command](args)
    except ScannerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
