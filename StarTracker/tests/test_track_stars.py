"""
Tests for the tracker entry point helpers.
"""

from core.entities import StargazerDiffResult, Summary
from core.use_cases import TrackResult
from track_stars import write_outputs


class TestWriteOutputs:
    """Test write_outputs."""

    def test_appends_step_outputs(self, tmp_path):
        """Test the GITHUB_OUTPUT key=value lines."""
        output = tmp_path / "github_output"
        output.write_text("existing=1\n")
        result = TrackResult(
            summary=Summary(total_stars=42, new_stars=3, lost_stars=1, changed=True),
            should_notify=True,
            markdown_report="",
            html_report="",
            stargazer_diff=StargazerDiffResult(total_new=2),
        )

        write_outputs(result, str(output))

        assert output.read_text().splitlines() == [
            "existing=1",
            "total-stars=42",
            "stars-changed=true",
            "new-stars=3",
            "lost-stars=1",
            "should-notify=true",
            "new-stargazers=2",
        ]

    def test_no_stargazers_tracked(self, tmp_path):
        output = tmp_path / "github_output"
        result = TrackResult(
            summary=Summary(), should_notify=False, markdown_report="", html_report=""
        )

        write_outputs(result, str(output))

        assert "new-stargazers=0" in output.read_text().splitlines()
