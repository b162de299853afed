"""
Tests for the tracking and export use cases.
"""

import smtplib
from unittest.mock import Mock

import pytest

from core.comparison import compare_stars
from core.entities import (
    History,
    RepoStargazers,
    RepositoryInfo,
    Snapshot,
    SnapshotRepoEntry,
    Stargazer,
    Summary,
)
from core.use_cases import (
    NO_REPOS_MESSAGE,
    ExportStarReport,
    TrackResult,
    TrackStars,
    email_subject,
    select_top_repos,
)
from infrastructure.config import TrackerConfig
from infrastructure.email_client import EmailConfig


def make_snapshot(day: int, stars: dict) -> Snapshot:
    return Snapshot(
        timestamp=f"2026-01-{day:02d}T00:00:00.000Z",
        total_stars=sum(stars.values()),
        repos=tuple(
            SnapshotRepoEntry(full_name, count, full_name.split("/")[1], "octo")
            for full_name, count in stars.items()
        ),
    )


def make_tracker(repos, history=None, config=None, email_config=None, email_sender=None):
    github = Mock()
    github.get_repos.return_value = repos
    store = Mock()
    store.read_history.return_value = history or History()
    artifacts = Mock()
    tracker = TrackStars(
        github,
        store,
        artifacts,
        config or TrackerConfig(),
        email_config=email_config,
        email_sender=email_sender,
    )
    return tracker, store, artifacts


def written_history(store) -> History:
    return store.write_history.call_args.args[0]


@pytest.fixture
def repos():
    return [
        RepositoryInfo(owner="octo", name="a", stars=10),
        RepositoryInfo(owner="octo", name="b", stars=5),
    ]


class TestTrackStars:
    """Test the TrackStars use case."""

    def test_first_run(self, repos):
        """Test the first run against an empty history."""
        tracker, store, artifacts = make_tracker(repos)

        result = tracker.execute()

        assert result.summary.total_stars == 15
        assert result.should_notify is True
        assert result.forecast is None
        history = written_history(store)
        assert len(history.snapshots) == 1
        assert history.snapshots[0].total_stars == 15
        assert history.stars_at_last_notification == 15
        artifacts.write_report.assert_called_once_with(result.markdown_report)
        artifacts.write_html_report.assert_called_once_with(result.html_report)
        artifacts.write_csv.assert_called_once()
        artifacts.write_badge.assert_called_once()
        artifacts.write_chart.assert_not_called()

    def test_no_changes(self, repos):
        """Test that an unchanged run does not notify or move the marker."""
        history = History(
            snapshots=(make_snapshot(1, {"octo/a": 10, "octo/b": 5}),),
            stars_at_last_notification=12,
        )
        tracker, store, _ = make_tracker(repos, history)

        result = tracker.execute()

        assert result.summary.changed is False
        assert result.should_notify is False
        assert written_history(store).stars_at_last_notification == 12
        assert len(written_history(store).snapshots) == 2

    def test_threshold_accumulates(self, repos):
        """Test that changes below the threshold keep the old marker."""
        history = History(
            snapshots=(make_snapshot(1, {"octo/a": 9, "octo/b": 5}),),
            stars_at_last_notification=12,
        )
        config = TrackerConfig(notification_threshold=5)
        tracker, store, _ = make_tracker(repos, history, config)

        result = tracker.execute()

        assert result.summary.changed is True
        assert result.should_notify is False
        assert written_history(store).stars_at_last_notification == 12

    def test_threshold_reached(self, repos):
        history = History(
            snapshots=(make_snapshot(1, {"octo/a": 9, "octo/b": 5}),),
            stars_at_last_notification=10,
        )
        config = TrackerConfig(notification_threshold=5)
        tracker, store, _ = make_tracker(repos, history, config)

        result = tracker.execute()

        assert result.should_notify is True
        assert written_history(store).stars_at_last_notification == 15

    def test_history_is_trimmed(self, repos):
        history = History(
            snapshots=(
                make_snapshot(1, {"octo/a": 1}),
                make_snapshot(2, {"octo/a": 2}),
            )
        )
        tracker, store, _ = make_tracker(repos, history, TrackerConfig(max_history=2))

        tracker.execute()

        snapshots = written_history(store).snapshots
        assert len(snapshots) == 2
        assert snapshots[0].timestamp == "2026-01-02T00:00:00.000Z"
        assert snapshots[1].total_stars == 15

    def test_forecast_and_charts(self, repos):
        """Test that enough history produces a forecast and charts."""
        history = History(
            snapshots=(
                make_snapshot(1, {"octo/a": 6, "octo/b": 5}),
                make_snapshot(2, {"octo/a": 8, "octo/b": 5}),
            )
        )
        tracker, _, artifacts = make_tracker(repos, history)

        result = tracker.execute()

        assert result.forecast is not None
        assert [r.repo_full_name for r in result.forecast.repos] == ["octo/a", "octo/b"]
        charts = [c.args[0] for c in artifacts.write_chart.call_args_list]
        assert charts == [
            "star-history.svg", "comparison.svg", "octo-a.svg", "octo-b.svg", "forecast.svg"
        ]
        assert "## 🔮 Forecast" in result.markdown_report

    def test_charts_disabled(self, repos):
        history = History(
            snapshots=(make_snapshot(1, {"octo/a": 6}), make_snapshot(2, {"octo/a": 8}))
        )
        config = TrackerConfig(include_charts=False)
        tracker, _, artifacts = make_tracker(repos, history, config)

        tracker.execute()

        artifacts.write_chart.assert_not_called()

    def test_no_repositories(self):
        """Test that an empty repository list is a successful no-op."""
        tracker, store, artifacts = make_tracker([])

        result = tracker.execute()

        assert result.summary == Summary()
        assert result.should_notify is False
        assert result.markdown_report == NO_REPOS_MESSAGE
        store.read_history.assert_not_called()
        store.write_history.assert_not_called()
        artifacts.write_report.assert_not_called()

    def test_sends_email(self, repos):
        sender = Mock(return_value=True)
        email_config = EmailConfig(host="smtp.example.com", to="me@example.com")
        tracker, _, _ = make_tracker(repos, email_config=email_config, email_sender=sender)

        result = tracker.execute()

        assert result.email_sent is True
        sender.assert_called_once_with(
            email_config, "GitHub Star Tracker: 15 stars (+15)", result.html_report
        )

    def test_skips_email_below_threshold(self, repos):
        history = History(snapshots=(make_snapshot(1, {"octo/a": 10, "octo/b": 5}),))
        sender = Mock(return_value=True)
        email_config = EmailConfig(host="smtp.example.com", to="me@example.com")
        tracker, _, _ = make_tracker(
            repos, history, email_config=email_config, email_sender=sender
        )

        result = tracker.execute()

        sender.assert_not_called()
        assert result.email_sent is False

    def test_send_on_no_changes(self, repos):
        history = History(snapshots=(make_snapshot(1, {"octo/a": 10, "octo/b": 5}),))
        sender = Mock(return_value=True)
        config = TrackerConfig(send_on_no_changes=True)
        email_config = EmailConfig(host="smtp.example.com", to="me@example.com")
        tracker, _, _ = make_tracker(
            repos, history, config, email_config=email_config, email_sender=sender
        )

        tracker.execute()

        sender.assert_called_once()

    def test_email_failure_does_not_fail_run(self, repos):
        """Test that SMTP errors are logged rather than raised."""
        sender = Mock(side_effect=smtplib.SMTPException("connection refused"))
        email_config = EmailConfig(host="smtp.example.com", to="me@example.com")
        tracker, store, _ = make_tracker(repos, email_config=email_config, email_sender=sender)

        result = tracker.execute()

        assert result.email_sent is False
        store.write_history.assert_called_once()

    def test_tracks_stargazers(self, repos):
        """Test that new stargazers are diffed against the stored map."""
        config = TrackerConfig(track_stargazers=True)
        tracker, _, artifacts = make_tracker(repos, config=config)
        tracker.github.fetch_all_stargazers.return_value = [
            RepoStargazers(
                "octo/a",
                (
                    Stargazer("alice", starred_at="2026-01-01T00:00:00Z"),
                    Stargazer("bob", starred_at="2026-01-07T00:00:00Z"),
                ),
            ),
            RepoStargazers("octo/b", ()),
        ]
        artifacts.read_stargazers.return_value = {"octo/a": ["alice"]}

        result = tracker.execute()

        tracker.github.fetch_all_stargazers.assert_called_once_with(repos)
        assert result.new_stargazers == 1
        assert [s.login for s in result.stargazer_diff.entries[0].new_stargazers] == ["bob"]
        artifacts.write_stargazers.assert_called_once_with(
            {"octo/a": ["alice", "bob"], "octo/b": []}
        )
        assert "## 👤 New Stargazers" in result.markdown_report
        assert "[bob]" in result.markdown_report
        assert "New Stargazers" in result.html_report

    def test_stargazers_not_tracked_by_default(self, repos):
        tracker, _, artifacts = make_tracker(repos)

        result = tracker.execute()

        tracker.github.fetch_all_stargazers.assert_not_called()
        artifacts.write_stargazers.assert_not_called()
        assert result.stargazer_diff is None
        assert result.new_stargazers == 0
        assert "New Stargazers" not in result.markdown_report


class TestHelpers:
    """Test the use case helpers."""

    def test_select_top_repos(self):
        previous = make_snapshot(1, {"octo/gone": 100})
        results = compare_stars(
            [
                RepositoryInfo(owner="octo", name="a", stars=1),
                RepositoryInfo(owner="octo", name="b", stars=7),
                RepositoryInfo(owner="octo", name="c", stars=3),
            ],
            previous,
        )

        assert select_top_repos(results, 2) == ["octo/b", "octo/c"]

    def test_subject_and_commit_message(self):
        summary = Summary(total_stars=42, total_delta=-3)
        result = TrackResult(
            summary=summary, should_notify=False, markdown_report="", html_report=""
        )

        assert email_subject(summary) == "GitHub Star Tracker: 42 stars (-3)"
        assert result.commit_message == "Update star data: 42 total (-3)"


class TestExportStarReport:
    """Test the ExportStarReport use case."""

    def test_exports_latest_comparison(self, tmp_path):
        store = Mock()
        store.read_history.return_value = History(
            snapshots=(
                make_snapshot(1, {"octo/a": 4, "octo/gone": 2}),
                make_snapshot(2, {"octo/a": 6, "octo/b": 1}),
            )
        )
        output = tmp_path / "stars.csv"

        results = ExportStarReport(store).execute(str(output))

        assert results.summary.total_delta == 1
        lines = output.read_text().splitlines()
        assert lines[1] == "octo/a,octo,a,6,4,2,active"
        assert lines[2] == "octo/b,octo,b,1,,0,new"
        assert lines[3] == "octo/gone,octo,gone,0,2,-2,removed"

    def test_empty_history(self, tmp_path):
        store = Mock()
        store.read_history.return_value = History()
        output = tmp_path / "stars.csv"

        results = ExportStarReport(store).execute(str(output))

        assert results.repos == []
        assert len(output.read_text().splitlines()) == 1
