"""Shared fixtures for the UA exporter tests.

Puts scripts/ on sys.path and provides a scripted stand-in for the
reporting client so tests never hit the network.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

from analytics_reporting_client import ReportPage, ReportQuery, ReportRow  # noqa: E402

DIMENSION_HEADERS = ["ga:pagePath", "ga:date", "ga:country"]
METRIC_HEADERS = ["ga:sessions", "ga:pageviews"]


def make_page(row_count: int, token: Optional[str] = None, offset: int = 0) -> ReportPage:
    rows = [
        ReportRow(
            dimensions=[f"/page-{offset + index}", "20210101", "Norway"],
            metrics=[[str(offset + index), str(2 * (offset + index))]],
        )
        for index in range(row_count)
    ]
    return ReportPage(
        dimension_headers=list(DIMENSION_HEADERS),
        metric_headers=list(METRIC_HEADERS),
        rows=rows,
        next_page_token=token,
    )


class ScriptedClient:
    """Returns queued pages in order and records every call."""

    def __init__(self, pages: List[ReportPage], fail_after: Optional[int] = None) -> None:
        self.pages = list(pages)
        self.fail_after = fail_after
        self.calls: List[tuple] = []

    def fetch(self, query: ReportQuery, page_token: Optional[str] = None) -> ReportPage:
        self.calls.append((query, page_token))
        if self.fail_after is not None and len(self.calls) > self.fail_after:
            raise RuntimeError("reporting service unavailable")
        if not self.pages:
            return ReportPage()
        return self.pages.pop(0)


@pytest.fixture()
def no_sleep(monkeypatch):
    import analytics_reporting_client

    delays: List[float] = []
    monkeypatch.setattr(analytics_reporting_client.time, "sleep", delays.append)
    return delays
