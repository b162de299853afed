"""
Star comparison between the current repository list and the last snapshot.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from core.entities import (
    ComparisonResults,
    RepoResult,
    RepositoryInfo,
    Snapshot,
    SnapshotRepoEntry,
    Summary,
)

logger = logging.getLogger(__name__)


def _removed_result(entry: SnapshotRepoEntry) -> RepoResult:
    """Build the row for a repository that is gone since the last snapshot."""
    owner_part, _, name_part = entry.full_name.partition("/")
    return RepoResult(
        name=entry.name or name_part,
        full_name=entry.full_name,
        owner=entry.owner or owner_part,
        current=0,
        previous=entry.stars,
        delta=-entry.stars,
        is_new=False,
        is_removed=True,
    )


def compare_stars(
    current_repos: list[RepositoryInfo],
    previous_snapshot: Optional[Snapshot],
) -> ComparisonResults:
    """
    Reconcile current repositories against the previous snapshot.

    Repositories missing from the snapshot are reported as new with a delta
    of 0, so they add to total_stars but not to new_stars. Repositories that
    only exist in the snapshot are reported as removed with current=0.

    Args:
        current_repos: Repositories observed in this run, already filtered
        previous_snapshot: Last stored snapshot, or None on the first run

    Returns:
        ComparisonResults with one row per repository and the summary
    """
    previous_repos = previous_snapshot.repos if previous_snapshot else ()
    previous_stars = {entry.full_name: entry.stars for entry in previous_repos}
    current_names = {repo.full_name for repo in current_repos}

    results: list[RepoResult] = []

    for repo in current_repos:
        previous = previous_stars.get(repo.full_name)
        delta = 0 if previous is None else repo.stars - previous

        results.append(
            RepoResult(
                name=repo.name,
                full_name=repo.full_name,
                owner=repo.owner,
                current=repo.stars,
                previous=previous,
                delta=delta,
                is_new=previous is None,
                is_removed=False,
            )
        )

    for entry in previous_repos:
        if entry.full_name not in current_names:
            results.append(_removed_result(entry))

    total_stars = sum(r.current for r in results if not r.is_removed)
    total_previous = previous_snapshot.total_stars if previous_snapshot else 0

    summary = Summary(
        total_stars=total_stars,
        total_previous=total_previous,
        total_delta=total_stars - total_previous,
        new_stars=sum(r.delta for r in results if r.delta > 0),
        lost_stars=sum(abs(r.delta) for r in results if r.delta < 0),
        changed=any(r.delta != 0 or r.is_new or r.is_removed for r in results),
    )

    logger.debug(
        f"Compared {len(current_repos)} repositories: "
        f"{summary.total_stars} stars ({summary.total_delta:+d})"
    )

    return ComparisonResults(repos=results, summary=summary)


def create_snapshot(current_repos: list[RepositoryInfo], summary: Summary) -> Snapshot:
    """
    Wrap the current repositories into a new snapshot stamped with the current time.
    """
    return Snapshot(
        timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
            "+00:00", "Z"
        ),
        total_stars=summary.total_stars,
        repos=tuple(
            SnapshotRepoEntry(
                full_name=repo.full_name,
                name=repo.name,
                owner=repo.owner,
                stars=repo.stars,
            )
            for repo in current_repos
        ),
    )
