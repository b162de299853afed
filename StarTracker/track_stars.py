#!/usr/bin/env python3
"""
Main tracker script for StarTracker.
Compares current star counts against the stored history, renders reports
and persists the updated history to the data branch.
"""

import logging
import os
import sys
import argparse

from core.use_cases import TrackResult, TrackStars
from infrastructure.config import TrackerConfig, load_config
from infrastructure.data_branch import commit_and_push, data_worktree
from infrastructure.db_client import DatabaseClient
from infrastructure.email_client import EmailConfig
from infrastructure.github_client import GitHubClient
from infrastructure.history_store import JsonHistoryStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def run_tracker(config: TrackerConfig, github: GitHubClient, data_dir: str) -> TrackResult:
    """Run one tracking pass with artifacts written to data_dir."""
    artifacts = JsonHistoryStore(data_dir)
    email_config = EmailConfig.from_env()

    if config.storage == "postgres":
        with DatabaseClient() as db:
            db.create_schema()
            return TrackStars(github, db, artifacts, config, email_config).execute()

    return TrackStars(github, artifacts, artifacts, config, email_config).execute()


def write_outputs(result: TrackResult, output_path: str):
    """Append step outputs in the GITHUB_OUTPUT key=value format."""
    summary = result.summary
    outputs = {
        "total-stars": summary.total_stars,
        "stars-changed": str(summary.changed).lower(),
        "new-stars": summary.new_stars,
        "lost-stars": summary.lost_stars,
        "should-notify": str(result.should_notify).lower(),
        "new-stargazers": result.new_stargazers,
    }
    with open(output_path, "a", encoding="utf-8") as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}\n")


def main():
    """Main tracker entry point."""
    parser = argparse.ArgumentParser(
        description="Track GitHub star counts and generate reports"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the YAML config file (default: star-tracker.yml)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Use a plain local directory instead of the git data branch",
    )
    parser.add_argument(
        "--no-push",
        action="store_true",
        help="Do not commit and push the data branch",
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)

        logger.info("=" * 60)
        logger.info("StarTracker - GitHub Star Tracker")
        logger.info("=" * 60)
        logger.info(f"Data branch: {config.data_branch}")
        logger.info(f"Storage: {config.storage}")
        logger.info(f"Max history: {config.max_history}")
        logger.info(f"Notification threshold: {config.notification_threshold}")
        logger.info("=" * 60)

        logger.info("Initializing GitHub client...")
        github = GitHubClient()

        if args.data_dir:
            result = run_tracker(config, github, args.data_dir)
        else:
            with data_worktree(config.data_branch) as data_dir:
                result = run_tracker(config, github, data_dir)
                if not args.no_push:
                    commit_and_push(data_dir, config.data_branch, result.commit_message)

        summary = result.summary
        logger.info("=" * 60)
        logger.info("Run Summary:")
        logger.info(f"  Total stars: {summary.total_stars:,}")
        logger.info(f"  Change: {summary.total_delta:+,}")
        logger.info(f"  Gained: {summary.new_stars:,} / Lost: {summary.lost_stars:,}")
        logger.info(f"  Should notify: {result.should_notify}")
        logger.info("=" * 60)

        if os.environ.get("GITHUB_OUTPUT"):
            write_outputs(result, os.environ["GITHUB_OUTPUT"])

        logger.info("Tracking completed successfully!")
        return 0

    except KeyboardInterrupt:
        logger.info("\nTracking interrupted by user.")
        return 130  # Standard exit code for SIGINT

    except Exception as e:
        logger.error(f"Star Tracker failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
