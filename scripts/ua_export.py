#!/usr/bin/env python3
"""Export monthly Google Analytics (UA) report data into per-month CSV files.

Usage:
    ua-export 2019-01-01
    ua-export 2019-01-01 --conf-dir conf --data-dir data

Each calendar month from the start date up to today is written to
``<data-dir>/<month start>.csv``. Months without data leave no file behind.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import asdict, dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from tqdm import tqdm

from analytics_reporting_client import AnalyticsReportingClient, NextPage, ReportQuery, next_step
from export_config import (
    DEFAULT_CONF_DIR,
    ConfigurationMissing,
    config_to_parser_defaults,
    find_credentials_file,
    load_config_file,
    read_view_id,
)
from report_csv import DEFAULT_HEADER_DELIMITER, remove_if_empty, write_page
from report_months import InvalidInput, iter_months, parse_start_date
from run_logging import TeeStream, format_exception_message, log_event, utc_now_iso

DEFAULT_DATA_DIR = "data"
DEFAULT_LOGS_DIR = "logs/exports"


@dataclass
class MonthResult:
    path: Path
    pages: int = 0
    rows: int = 0
    removed: bool = False


@dataclass
class ExportStats:
    months_processed: int = 0
    months_written: int = 0
    months_empty: int = 0
    pages_fetched: int = 0
    rows_written: int = 0


def month_csv_path(data_dir: Path, month_start: date) -> Path:
    return data_dir / f"{month_start.isoformat()}.csv"


def export_month(
    client: AnalyticsReportingClient,
    query: ReportQuery,
    outfile: Path,
    *,
    header_delimiter: str = DEFAULT_HEADER_DELIMITER,
) -> MonthResult:
    """Page through one month of report data into ``outfile``.

    The header is written once, before the rows of the first non-empty page.
    If the service fails mid-month the exception propagates and the partial
    file stays on disk; a file that ends up empty is removed.
    """
    result = MonthResult(path=outfile)
    page_token: Optional[str] = None
    header_written = False
    pbar = tqdm(desc=f"Pages {query.start_date.isoformat()}", unit="page", leave=False)
    try:
        with open(outfile, "w", encoding="utf-8", newline="") as handle:
            while True:
                log_event("PAGE_REQUEST", month=query.start_date.isoformat(), page=page_token or 0)
                page = client.fetch(query, page_token)
                result.pages += 1
                pbar.update(1)
                written = write_page(
                    handle,
                    page,
                    include_header=not header_written,
                    delimiter=header_delimiter,
                )
                if written:
                    header_written = True
                    result.rows += written
                step = next_step(page)
                if not isinstance(step, NextPage):
                    break
                page_token = step.token
    finally:
        pbar.close()
    result.removed = remove_if_empty(outfile)
    return result


def run_export(
    client: AnalyticsReportingClient,
    view_id: str,
    start: date,
    data_dir: Path,
    *,
    header_delimiter: str = DEFAULT_HEADER_DELIMITER,
    now: Callable[[], datetime] = datetime.now,
    stats: Optional[ExportStats] = None,
) -> ExportStats:
    stats = stats if stats is not None else ExportStats()
    data_dir.mkdir(parents=True, exist_ok=True)
    for month in iter_months(start, now=now):
        log_event("MONTH_START", start=month.start.isoformat(), end=month.end.isoformat())
        query = ReportQuery(view_id=view_id, start_date=month.start, end_date=month.end)
        result = export_month(
            client,
            query,
            month_csv_path(data_dir, month.start),
            header_delimiter=header_delimiter,
        )
        stats.months_processed += 1
        stats.pages_fetched += result.pages
        stats.rows_written += result.rows
        if result.removed:
            stats.months_empty += 1
            log_event("MONTH_EMPTY", start=month.start.isoformat(), pages=result.pages)
        else:
            stats.months_written += 1
            log_event("MONTH_DONE", start=month.start.isoformat(), file=result.path, rows=result.rows, pages=result.pages)
    return stats


def create_client(credentials_path: Path) -> AnalyticsReportingClient:
    return AnalyticsReportingClient.from_service_account_file(credentials_path)


def parse_date_arg(value: str) -> date:
    try:
        return parse_start_date(value)
    except InvalidInput as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", help="Path to YAML/JSON config file.")
    pre_args, _ = pre_parser.parse_known_args(argv)
    config_defaults: Dict[str, Any] = {}
    if pre_args.config:
        try:
            config_defaults = config_to_parser_defaults(load_config_file(Path(pre_args.config)))
        except ConfigurationMissing as exc:
            raise SystemExit(str(exc)) from exc

    parser = argparse.ArgumentParser(
        description="Export monthly Google Analytics report data into per-month CSV files.",
    )
    parser.add_argument("start", type=parse_date_arg, help="First month start date (YYYY-MM-DD).")
    parser.add_argument("--config", help="Path to YAML/JSON config file.")
    parser.add_argument(
        "--conf-dir",
        default=DEFAULT_CONF_DIR,
        help="Directory holding exactly one service account *.json key and view_id.txt.",
    )
    parser.add_argument("--data-dir", default=DEFAULT_DATA_DIR, help="Output directory for monthly CSV files.")
    parser.add_argument("--logs-dir", default=DEFAULT_LOGS_DIR, help="Directory where per-run logs are written.")
    parser.add_argument(
        "--header-delimiter",
        default=DEFAULT_HEADER_DELIMITER,
        help="Column names are cut after the first occurrence of this string (ga:city -> city).",
    )

    if config_defaults:
        parser.set_defaults(**config_defaults)

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    run_started_at = utc_now_iso()
    run_started_monotonic = time.monotonic()
    run_dir = Path(args.logs_dir) / datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir.mkdir(parents=True, exist_ok=True)
    run_log_path = run_dir / "run.log"
    summary_json_path = run_dir / "summary.json"

    original_stdout = sys.stdout
    original_stderr = sys.stderr
    run_log_handle = open(run_log_path, "a", encoding="utf-8")
    sys.stdout = TeeStream(original_stdout, run_log_handle)
    sys.stderr = TeeStream(original_stderr, run_log_handle)

    stats = ExportStats()
    summary_status = "completed"
    fatal_error: Optional[str] = None

    try:
        log_event("RUN_PATHS", run_dir=run_dir, run_log=run_log_path)
        if args.config:
            log_event("RUN_CONFIG", config=args.config)

        conf_dir = Path(args.conf_dir)
        try:
            view_id = read_view_id(conf_dir)
            credentials_path = find_credentials_file(conf_dir)
        except ConfigurationMissing as exc:
            raise SystemExit(str(exc)) from exc

        client = create_client(credentials_path)
        run_export(
            client,
            view_id,
            args.start,
            Path(args.data_dir),
            header_delimiter=args.header_delimiter,
            stats=stats,
        )
        log_event("RUN_SUMMARY", **asdict(stats))
    except SystemExit as exc:
        summary_status = "failed"
        fatal_error = str(exc)
        raise
    except Exception as exc:  # noqa: BLE001
        summary_status = "failed"
        fatal_error = f"{type(exc).__name__}: {format_exception_message(exc)}"
        raise
    finally:
        safe_args: Dict[str, Any] = {}
        for key, value in vars(args).items():
            safe_args[key] = value.isoformat() if isinstance(value, date) else value
        run_summary = {
            "started_at": run_started_at,
            "finished_at": utc_now_iso(),
            "status": summary_status,
            "fatal_error": fatal_error,
            "elapsed_seconds": round(time.monotonic() - run_started_monotonic, 3),
            "run_dir": str(run_dir),
            "run_log": str(run_log_path),
            "args": safe_args,
            "stats": asdict(stats),
        }
        try:
            summary_json_path.write_text(json.dumps(run_summary, indent=2), encoding="utf-8")
            log_event("SUMMARY_WRITTEN", path=summary_json_path)
        except OSError as exc:
            log_event("SUMMARY_WRITE_WARN", error=str(exc))
        finally:
            sys.stdout = original_stdout
            sys.stderr = original_stderr
            run_log_handle.close()


if __name__ == "__main__":
    main()
