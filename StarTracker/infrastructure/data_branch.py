"""
Git worktree management for the branch that stores star data.
"""

import logging
import os
import shutil
import subprocess
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"


class GitCommandError(Exception):
    """Raised when a git command exits with a non-zero status."""
    def __init__(self, args: list[str], detail: str):
        self.command = " ".join(args)
        self.detail = detail
        super().__init__(f'Git command failed: "{self.command}"\n{detail}')


def run_git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Run a git command and return its stripped stdout.

    Raises:
        GitCommandError: If the command fails
    """
    cmd = ["git", *args]
    result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip() or "Unknown error"
        raise GitCommandError(cmd, detail)
    return result.stdout.strip()


def remote_branch_exists(branch: str) -> bool:
    try:
        run_git(["ls-remote", "--exit-code", "--heads", "origin", branch])
        return True
    except GitCommandError:
        return False


def initialize_data_branch(branch: str) -> str:
    """
    Check out the data branch into a worktree, creating an orphan branch
    when it does not exist on the remote yet.

    Args:
        branch: Name of the data branch

    Returns:
        Path of the worktree directory
    """
    data_dir = f".{branch}"

    run_git(["config", "user.name", BOT_NAME])
    run_git(["config", "user.email", BOT_EMAIL])

    exists = remote_branch_exists(branch)
    if not exists:
        logger.info(f'Branch "{branch}" does not exist on remote, will create it')

    if os.path.exists(data_dir):
        try:
            run_git(["worktree", "remove", data_dir, "--force"])
        except GitCommandError:
            logger.debug(f"Could not remove existing worktree at {data_dir}, proceeding anyway")

    if not exists:
        logger.info(f"Creating new orphan branch: {branch}")
        run_git(["worktree", "add", "--detach", data_dir])
        cwd = os.path.abspath(data_dir)
        run_git(["checkout", "--orphan", branch], cwd=cwd)
        try:
            run_git(["rm", "-rf", "."], cwd=cwd)
        except GitCommandError:
            logger.debug("Nothing to remove from the new orphan branch")
        run_git(
            ["commit", "--allow-empty", "-m", "Initialize star tracker data"], cwd=cwd
        )
        return data_dir

    run_git(["fetch", "origin", branch])
    run_git(["worktree", "add", data_dir, f"origin/{branch}"])
    return data_dir


def commit_and_push(data_dir: str, branch: str, message: str) -> bool:
    """
    Commit everything in the worktree and push it to the data branch.

    Returns:
        False if there was nothing to commit
    """
    cwd = os.path.abspath(data_dir)

    run_git(["add", "-A"], cwd=cwd)

    try:
        run_git(["diff", "--cached", "--quiet"], cwd=cwd)
        logger.info("No data changes to commit")
        return False
    except GitCommandError:
        logger.debug("Staged changes detected, proceeding with commit")

    run_git(["commit", "-m", message], cwd=cwd)
    run_git(["push", "origin", f"HEAD:{branch}"], cwd=cwd)
    logger.info(f"Data committed and pushed to {branch}")
    return True


def cleanup(data_dir: str):
    """Remove the worktree, falling back to deleting the directory."""
    try:
        run_git(["worktree", "remove", data_dir, "--force"])
    except GitCommandError:
        logger.debug(
            f'Worktree cleanup for "{data_dir}" failed, it may have already been removed'
        )
        shutil.rmtree(data_dir, ignore_errors=True)


@contextmanager
def data_worktree(branch: str) -> Iterator[str]:
    """Yield the data branch worktree and always remove it afterwards."""
    data_dir = initialize_data_branch(branch)
    try:
        yield data_dir
    finally:
        cleanup(data_dir)
