"""
Tests for the data branch git helpers.
"""

from unittest.mock import Mock, patch

import pytest

from infrastructure.data_branch import (
    GitCommandError,
    commit_and_push,
    data_worktree,
    initialize_data_branch,
    remote_branch_exists,
    run_git,
)


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> Mock:
    return Mock(returncode=returncode, stdout=stdout, stderr=stderr)


def git_commands(mock_run) -> list[list[str]]:
    return [c.args[0][1:] for c in mock_run.call_args_list]


class TestRunGit:
    """Test run_git."""

    @patch('infrastructure.data_branch.subprocess.run')
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = completed(stdout="abc123\n")

        assert run_git(["rev-parse", "HEAD"]) == "abc123"
        mock_run.assert_called_once_with(
            ["git", "rev-parse", "HEAD"], cwd=None, capture_output=True, text=True
        )

    @patch('infrastructure.data_branch.subprocess.run')
    def test_raises_on_failure(self, mock_run):
        mock_run.return_value = completed(returncode=128, stderr="fatal: not a git repository\n")

        with pytest.raises(GitCommandError) as exc_info:
            run_git(["status"])

        assert exc_info.value.detail == "fatal: not a git repository"
        assert exc_info.value.command == "git status"

    @patch('infrastructure.data_branch.subprocess.run')
    def test_remote_branch_exists(self, mock_run):
        mock_run.return_value = completed(returncode=2)
        assert remote_branch_exists("star-tracker-data") is False

        mock_run.return_value = completed()
        assert remote_branch_exists("star-tracker-data") is True


class TestDataBranch:
    """Test worktree setup and publishing."""

    @patch('infrastructure.data_branch.os.path.exists', return_value=False)
    @patch('infrastructure.data_branch.subprocess.run')
    def test_creates_orphan_branch(self, mock_run, _mock_exists):
        def run(cmd, **kwargs):
            if cmd[1] == "ls-remote":
                return completed(returncode=2)
            return completed()

        mock_run.side_effect = run

        data_dir = initialize_data_branch("stars")

        assert data_dir == ".stars"
        commands = git_commands(mock_run)
        assert ["worktree", "add", "--detach", ".stars"] in commands
        assert ["checkout", "--orphan", "stars"] in commands
        assert not any(c[0] == "fetch" for c in commands)

    @patch('infrastructure.data_branch.os.path.exists', return_value=False)
    @patch('infrastructure.data_branch.subprocess.run')
    def test_checks_out_existing_branch(self, mock_run, _mock_exists):
        mock_run.return_value = completed()

        initialize_data_branch("stars")

        commands = git_commands(mock_run)
        assert ["fetch", "origin", "stars"] in commands
        assert ["worktree", "add", ".stars", "origin/stars"] in commands

    @patch('infrastructure.data_branch.subprocess.run')
    def test_nothing_to_commit(self, mock_run):
        mock_run.return_value = completed()

        assert commit_and_push(".stars", "stars", "Update") is False
        assert not any(c[0] == "push" for c in git_commands(mock_run))

    @patch('infrastructure.data_branch.subprocess.run')
    def test_commit_and_push(self, mock_run):
        def run(cmd, **kwargs):
            if cmd[1] == "diff":
                return completed(returncode=1)
            return completed()

        mock_run.side_effect = run

        assert commit_and_push(".stars", "stars", "Update star data") is True
        commands = git_commands(mock_run)
        assert ["commit", "-m", "Update star data"] in commands
        assert ["push", "origin", "HEAD:stars"] in commands

    @patch('infrastructure.data_branch.cleanup')
    @patch('infrastructure.data_branch.initialize_data_branch', return_value=".stars")
    def test_worktree_is_cleaned_up_on_error(self, _mock_init, mock_cleanup):
        with pytest.raises(RuntimeError):
            with data_worktree("stars"):
                raise RuntimeError("boom")

        mock_cleanup.assert_called_once_with(".stars")
