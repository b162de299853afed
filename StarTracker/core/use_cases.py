"""
Business logic / use cases for tracking GitHub stars.
This layer orchestrates the interaction between the GitHub API, storage and reports.
"""

import logging
import smtplib
from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol

from core.comparison import compare_stars, create_snapshot
from core.entities import (
    ComparisonResults,
    ForecastData,
    History,
    RepositoryInfo,
    StargazerDiffResult,
    Summary,
)
from core.forecast import compute_forecast
from core.formatting import delta_indicator
from core.history import add_snapshot, get_last_snapshot
from core.notification import should_notify
from core.stargazers import build_stargazer_map, diff_stargazers
from infrastructure.email_client import send_email
from presentation.badge import generate_badge
from presentation.csv_report import generate_csv_report
from presentation.html_report import generate_html_report
from presentation.markdown import generate_markdown_report
from presentation.shared import MIN_SNAPSHOTS_FOR_CHART, chart_filename
from presentation.svg_chart import (
    generate_comparison_chart,
    generate_forecast_chart,
    generate_history_chart,
    generate_repo_chart,
)

logger = logging.getLogger(__name__)

NO_REPOS_MESSAGE = "No repositories matched the configured filters."


class HistoryStore(Protocol):
    def read_history(self) -> History: ...

    def write_history(self, history: History): ...


@dataclass
class TrackResult:
    """
    Outcome of one tracking run.
    """
    summary: Summary
    should_notify: bool
    markdown_report: str
    html_report: str
    forecast: Optional[ForecastData] = None
    stargazer_diff: Optional[StargazerDiffResult] = None
    email_sent: bool = False

    @property
    def new_stargazers(self) -> int:
        return self.stargazer_diff.total_new if self.stargazer_diff else 0

    @property
    def commit_message(self) -> str:
        return (
            f"Update star data: {self.summary.total_stars} total "
            f"({delta_indicator(self.summary.total_delta)})"
        )


def select_top_repos(results: ComparisonResults, limit: int) -> list[str]:
    """Full names of the most-starred repositories that still exist."""
    active = [r for r in results.repos if not r.is_removed]
    active.sort(key=lambda r: r.current, reverse=True)
    return [r.full_name for r in active[:limit]]


def email_subject(summary: Summary) -> str:
    return (
        f"GitHub Star Tracker: {summary.total_stars} stars "
        f"({delta_indicator(summary.total_delta)})"
    )


class TrackStars:
    """
    Use case for one scheduled run: fetch repositories, compare against the
    last snapshot, forecast, render reports, persist history and notify.
    """

    def __init__(
        self,
        github_client,
        history_store: HistoryStore,
        artifact_store,
        config,
        email_config=None,
        email_sender: Optional[Callable[..., bool]] = None,
    ):
        """
        Initialize the use case.

        Args:
            github_client: Provides get_repos(config) and fetch_all_stargazers(repos)
            history_store: Reads and writes the History
            artifact_store: Writes reports, badge and charts, stores the stargazer map
            config: TrackerConfig
            email_config: EmailConfig, or None to disable email
            email_sender: Callable(config, subject, html_body), defaults to send_email
        """
        self.github = github_client
        self.history_store = history_store
        self.artifacts = artifact_store
        self.config = config
        self.email_config = email_config

        self.email_sender = email_sender or send_email

    def execute(self) -> TrackResult:
        """
        Execute the tracking run.

        Returns:
            TrackResult describing what happened
        """
        logger.info("Fetching repositories...")
        repos: list[RepositoryInfo] = self.github.get_repos(self.config)

        if not repos:
            logger.warning("No repositories matched the configured filters")
            return TrackResult(
                summary=Summary(),
                should_notify=False,
                markdown_report=NO_REPOS_MESSAGE,
                html_report=f"<p>{NO_REPOS_MESSAGE}</p>",
            )

        logger.info(f"Tracking {len(repos)} repositories...")

        history = self.history_store.read_history()
        last_snapshot = get_last_snapshot(history)
        previous_timestamp = last_snapshot.timestamp if last_snapshot else None

        logger.info("Comparing star counts...")
        results = compare_stars(repos, last_snapshot)
        summary = results.summary
        logger.info(
            f"Total: {summary.total_stars} stars ({delta_indicator(summary.total_delta)})"
        )

        snapshot = create_snapshot(repos, summary)
        updated_history = add_snapshot(history, snapshot, self.config.max_history)

        threshold_reached = should_notify(
            summary.total_stars,
            history.stars_at_last_notification,
            self.config.notification_threshold,
        )
        notify = summary.changed and threshold_reached
        if notify:
            updated_history = replace(
                updated_history, stars_at_last_notification=summary.total_stars
            )

        stargazer_diff = None
        if self.config.track_stargazers:
            stargazer_diff = self._track_stargazers(repos)

        top_repo_names = select_top_repos(results, self.config.top_repos)
        forecast = compute_forecast(updated_history, top_repo_names)
        if forecast is None:
            logger.info("Not enough history for a forecast yet")

        markdown_report = generate_markdown_report(
            results,
            previous_timestamp,
            history=updated_history,
            include_charts=self.config.include_charts,
            forecast=forecast,
            top_repos=self.config.top_repos,
            stargazer_diff=stargazer_diff,
        )
        html_report = generate_html_report(
            results, previous_timestamp, forecast=forecast, stargazer_diff=stargazer_diff
        )

        self.history_store.write_history(updated_history)
        self.artifacts.write_report(markdown_report)
        self.artifacts.write_html_report(html_report)
        self.artifacts.write_csv(generate_csv_report(results))
        self.artifacts.write_badge(generate_badge(summary.total_stars))

        if (
            self.config.include_charts
            and len(updated_history.snapshots) >= MIN_SNAPSHOTS_FOR_CHART
        ):
            self._write_charts(updated_history, top_repo_names, forecast)

        result = TrackResult(
            summary=summary,
            should_notify=notify,
            markdown_report=markdown_report,
            html_report=html_report,
            forecast=forecast,
            stargazer_diff=stargazer_diff,
        )

        if self.email_config and (notify or self.config.send_on_no_changes):
            try:
                result.email_sent = self.email_sender(
                    self.email_config, email_subject(summary), html_report
                )
            except (smtplib.SMTPException, OSError) as e:
                logger.warning(f"Failed to send email: {e}")
        elif self.email_config:
            logger.info("Notification threshold not reached, skipping email")

        return result

    def _track_stargazers(self, repos: list[RepositoryInfo]) -> StargazerDiffResult:
        logger.info("Fetching stargazers...")
        current = self.github.fetch_all_stargazers(repos)
        previous_map = self.artifacts.read_stargazers()

        diff = diff_stargazers(current, previous_map)
        self.artifacts.write_stargazers(build_stargazer_map(current))

        logger.info(f"Found {diff.total_new} new stargazers")
        return diff

    def _write_charts(
        self,
        history: History,
        top_repo_names: list[str],
        forecast: Optional[ForecastData],
    ):
        self.artifacts.write_chart("star-history.svg", generate_history_chart(history))

        if top_repo_names:
            self.artifacts.write_chart(
                "comparison.svg", generate_comparison_chart(history, top_repo_names)
            )

        for name in top_repo_names:
            self.artifacts.write_chart(chart_filename(name), generate_repo_chart(history, name))

        if forecast is not None:
            self.artifacts.write_chart(
                "forecast.svg", generate_forecast_chart(history, forecast)
            )


class ExportStarReport:
    """
    Use case for exporting the latest stored comparison as CSV.
    """

    def __init__(self, history_store: HistoryStore):
        """
        Initialize the use case.

        Args:
            history_store: Reads the stored History
        """
        self.history_store = history_store

    def execute(self, output_path: str = "stars.csv") -> ComparisonResults:
        """
        Diff the newest snapshot against the one before it and write a CSV.

        Args:
            output_path: Path to output file

        Returns:
            The exported comparison
        """
        history = self.history_store.read_history()
        snapshots = history.snapshots

        current = snapshots[-1] if snapshots else None
        previous = snapshots[-2] if len(snapshots) > 1 else None

        current_repos = []
        for entry in current.repos if current else ():
            owner, _, name = entry.full_name.partition("/")
            current_repos.append(
                RepositoryInfo(
                    owner=entry.owner or owner,
                    name=entry.name or name,
                    full_name=entry.full_name,
                    stars=entry.stars,
                )
            )

        results = compare_stars(current_repos, previous)

        logger.info(f"Exporting {len(results.repos)} repositories to {output_path}")
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            f.write(generate_csv_report(results))
        logger.info("Export completed")

        return results
