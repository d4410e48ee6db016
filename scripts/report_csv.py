#!/usr/bin/env python3
"""CSV serialization for analytics report pages."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, TextIO

from analytics_reporting_client import ReportPage, ReportRow

DEFAULT_HEADER_DELIMITER = ":"


def strip_namespace(name: str, delimiter: str = DEFAULT_HEADER_DELIMITER) -> str:
    """Drop the service namespace from a column name (``ga:city`` -> ``city``)."""
    if not delimiter:
        return name
    head, sep, tail = name.partition(delimiter)
    return tail if sep else head


def quote_cell(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def write_csv_cell(handle: TextIO, value: str) -> None:
    # Every cell carries a trailing comma, the last one on a line included.
    handle.write(quote_cell(value) + ",")


def _write_line(handle: TextIO, cells: Iterable[str]) -> None:
    for cell in cells:
        write_csv_cell(handle, cell)
    handle.write("\n")


def header_cells(page: ReportPage, delimiter: str = DEFAULT_HEADER_DELIMITER) -> List[str]:
    names = list(page.dimension_headers) + list(page.metric_headers)
    return [strip_namespace(name, delimiter) for name in names]


def row_cells(row: ReportRow) -> List[str]:
    cells = list(row.dimensions)
    for values in row.metrics:
        cells.extend(values)
    return cells


def write_header(handle: TextIO, page: ReportPage, delimiter: str = DEFAULT_HEADER_DELIMITER) -> None:
    _write_line(handle, header_cells(page, delimiter))


def write_row(handle: TextIO, row: ReportRow) -> None:
    _write_line(handle, row_cells(row))


def write_page(
    handle: TextIO,
    page: ReportPage,
    *,
    include_header: bool,
    delimiter: str = DEFAULT_HEADER_DELIMITER,
) -> int:
    if not page.rows:
        return 0
    if include_header:
        write_header(handle, page, delimiter)
    for row in page.rows:
        write_row(handle, row)
    return len(page.rows)


def remove_if_empty(path: Path) -> bool:
    if path.exists() and path.stat().st_size == 0:
        path.unlink()
        return True
    return False
