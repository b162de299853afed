"""
Stargazer diffing against the logins stored by the previous run.
"""

from core.entities import RepoStargazers, StargazerDiffEntry, StargazerDiffResult

# repository full name -> logins of its stargazers
StargazerMap = dict[str, list[str]]


def diff_stargazers(
    current: list[RepoStargazers], previous_map: StargazerMap
) -> StargazerDiffResult:
    """
    Find stargazers whose login is not in the previous map.

    A repository absent from the map counts every stargazer as new.
    Repositories without new stargazers produce no entry.
    """
    entries = []
    total_new = 0

    for repo in current:
        previous_logins = set(previous_map.get(repo.repo_full_name, ()))
        new_stargazers = [s for s in repo.stargazers if s.login not in previous_logins]

        if new_stargazers:
            entries.append(StargazerDiffEntry(repo.repo_full_name, new_stargazers))
            total_new += len(new_stargazers)

    return StargazerDiffResult(entries=entries, total_new=total_new)


def build_stargazer_map(repo_stargazers: list[RepoStargazers]) -> StargazerMap:
    return {
        repo.repo_full_name: [s.login for s in repo.stargazers]
        for repo in repo_stargazers
    }
