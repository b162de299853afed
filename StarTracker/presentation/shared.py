"""
Data preparation shared by the Markdown and HTML reports.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.entities import ComparisonResults, RepoResult
from core.formatting import short_date

FIRST_RUN = "first run"
MIN_SNAPSHOTS_FOR_CHART = 3
REPO_URL = "https://github.com/{full_name}"

COLORS = {
    "accent": "#dfb317",
    "positive": "#28a745",
    "negative": "#d73a49",
    "neutral": "#6a737d",
    "link": "#0366d6",
    "text": "#24292e",
    "white": "#fff",
    "shadow": "#010101",
    "muted": "#555",
    "table_header_bg": "#f6f8fa",
    "table_header_border": "#e1e4e8",
    "cell_border": "#eee",
    "gradient_start": "#bbb",
}

METHOD_LABELS = {
    "linear-regression": "Linear regression",
    "weighted-moving-average": "Weighted moving average",
}


@dataclass
class ReportData:
    active_repos: list[RepoResult]
    new_repos: list[RepoResult]
    removed_repos: list[RepoResult]
    sorted_repos: list[RepoResult]
    now: str
    prev: str

    @property
    def is_first_run(self) -> bool:
        return self.prev == FIRST_RUN


def prepare_report_data(
    results: ComparisonResults,
    previous_timestamp: Optional[str],
    now: Optional[datetime] = None,
) -> ReportData:
    active = [r for r in results.repos if not r.is_removed]
    now = now or datetime.now(timezone.utc)

    return ReportData(
        active_repos=active,
        new_repos=[r for r in results.repos if r.is_new],
        removed_repos=[r for r in results.repos if r.is_removed],
        sorted_repos=sorted(active, key=lambda r: r.current, reverse=True),
        now=now.date().isoformat(),
        prev=short_date(previous_timestamp) if previous_timestamp else FIRST_RUN,
    )


def chart_filename(repo_full_name: str) -> str:
    return f"{repo_full_name.replace('/', '-')}.svg"


def repo_url(full_name: str) -> str:
    return REPO_URL.format(full_name=full_name)
