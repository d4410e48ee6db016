#!/usr/bin/env python3
"""Paged access to the Google Analytics Reporting API (v4)."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

BATCH_GET_URL = "https://analyticsreporting.googleapis.com/v4/reports:batchGet"
ANALYTICS_SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]
PAGE_SIZE = 10000
REQUEST_DELAY_SECONDS = 0.1

# Available names: https://ga-dev-tools.google/dimensions-metrics-explorer/
DIMENSIONS: Tuple[str, ...] = (
    "ga:pagePath",
    "ga:date",
    "ga:fullReferrer",
    "ga:deviceCategory",
    "ga:city",
    "ga:region",
    "ga:country",
)
METRICS: Tuple[str, ...] = (
    "ga:sessions",
    "ga:pageviews",
)


@dataclass(frozen=True)
class ReportQuery:
    view_id: str
    start_date: date
    end_date: date
    dimensions: Tuple[str, ...] = DIMENSIONS
    metrics: Tuple[str, ...] = METRICS
    page_size: int = PAGE_SIZE


@dataclass
class ReportRow:
    dimensions: List[str]
    metrics: List[List[str]]


@dataclass
class ReportPage:
    dimension_headers: List[str] = field(default_factory=list)
    metric_headers: List[str] = field(default_factory=list)
    rows: List[ReportRow] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class Done:
    pass


@dataclass(frozen=True)
class NextPage:
    token: str


PageStep = Union[Done, NextPage]


def build_report_request(query: ReportQuery, page_token: Optional[str] = None) -> Dict[str, Any]:
    request: Dict[str, Any] = {
        "viewId": query.view_id,
        "dateRanges": [
            {
                "startDate": query.start_date.isoformat(),
                "endDate": query.end_date.isoformat(),
            }
        ],
        "dimensions": [{"name": name} for name in query.dimensions],
        "metrics": [{"expression": expression} for expression in query.metrics],
        "pageSize": query.page_size,
    }
    if page_token is not None:
        request["pageToken"] = page_token
    return {"reportRequests": [request]}


def parse_report_page(report: Dict[str, Any]) -> ReportPage:
    header = report.get("columnHeader") or {}
    metric_entries = (header.get("metricHeader") or {}).get("metricHeaderEntries") or []
    rows: List[ReportRow] = []
    for raw_row in (report.get("data") or {}).get("rows") or []:
        rows.append(
            ReportRow(
                dimensions=[str(value) for value in raw_row.get("dimensions") or []],
                metrics=[
                    [str(value) for value in entry.get("values") or []]
                    for entry in raw_row.get("metrics") or []
                ],
            )
        )
    return ReportPage(
        dimension_headers=[str(name) for name in header.get("dimensions") or []],
        metric_headers=[str(entry.get("name", "")) for entry in metric_entries],
        rows=rows,
        next_page_token=report.get("nextPageToken"),
    )


def next_step(page: ReportPage) -> PageStep:
    """Decide whether another page should be requested.

    An empty page ends pagination even when the service sent a token. An
    empty-string token is treated the same as a missing one.
    """
    if not page.rows or not page.next_page_token:
        return Done()
    return NextPage(token=page.next_page_token)


def build_session(credentials_path: Union[str, Path]) -> AuthorizedSession:
    credentials = service_account.Credentials.from_service_account_file(
        str(credentials_path),
        scopes=ANALYTICS_SCOPES,
    )
    return AuthorizedSession(credentials)


class AnalyticsReportingClient:
    def __init__(self, session: requests.Session, api_url: str = BATCH_GET_URL) -> None:
        self.session = session
        self.api_url = api_url

    @classmethod
    def from_service_account_file(cls, credentials_path: Union[str, Path]) -> "AnalyticsReportingClient":
        return cls(build_session(credentials_path))

    def fetch(self, query: ReportQuery, page_token: Optional[str] = None) -> ReportPage:
        time.sleep(REQUEST_DELAY_SECONDS)
        response = self.session.post(self.api_url, json=build_report_request(query, page_token))
        response.raise_for_status()
        payload = response.json()
        reports: Sequence[Dict[str, Any]] = []
        if isinstance(payload, dict):
            reports = payload.get("reports") or []
        if not reports:
            return ReportPage()
        return parse_report_page(reports[0])
