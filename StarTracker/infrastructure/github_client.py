"""
GitHub REST API client for listing the authenticated user's repositories.
"""

import logging
import os
import re
from typing import Optional
from datetime import datetime, timedelta, timezone
import requests

from core.entities import RepoStargazers, RepositoryInfo, Stargazer
from infrastructure.config import TrackerConfig
from infrastructure.retry_utils import (
    exponential_backoff,
    RateLimiter,
    RateLimitExceeded
)

logger = logging.getLogger(__name__)

REGEX_PATTERN = re.compile(r"^/(.+)/([gimsuy]*)$")

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


class GitHubAPIError(Exception):
    """Raised when the repository list cannot be fetched."""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class TransientGitHubError(GitHubAPIError):
    """Server-side or network failure worth retrying."""


class GitHubClient:
    """
    Client for GitHub's REST API.
    Handles authentication, rate limiting, and pagination.
    """

    API_URL = "https://api.github.com"
    REPOS_PER_PAGE = 100
    STARGAZERS_PER_PAGE = 100
    STARGAZERS_ACCEPT = "application/vnd.github.star+json"

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_url: Optional[str] = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token (or uses GITHUB_TOKEN env var)
            session: Optional requests session, mainly for tests
            api_url: Override for GitHub Enterprise (or GITHUB_API_URL env var)
        """
        self.token = token or os.environ.get("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token required. Set GITHUB_TOKEN environment variable "
                "or pass token parameter."
            )

        self.api_url = (api_url or os.environ.get("GITHUB_API_URL") or self.API_URL).rstrip("/")
        self.rate_limiter = RateLimiter()
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    @exponential_backoff(
        max_retries=3,
        base_delay=2.0,
        max_delay=30.0,
        retry_on=(TransientGitHubError,),
    )
    def _get(self, path: str, params: dict, headers: Optional[dict] = None) -> list[dict]:
        """
        GET one page of a list endpoint with retry logic.

        Raises:
            RateLimitExceeded: If rate limit is hit
            TransientGitHubError: On network errors or 5xx responses
            GitHubAPIError: For other HTTP errors
        """
        try:
            response = self.session.get(
                f"{self.api_url}{path}",
                params=params,
                headers=headers,
                timeout=30,
            )
        except requests.RequestException as e:
            raise TransientGitHubError(f"Request to GitHub failed: {e}") from e

        self.rate_limiter.update_from_headers(response.headers)

        if response.status_code in (403, 429) and (
            response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset_at = self.rate_limiter.reset_at or (
                datetime.now(timezone.utc) + timedelta(hours=1)
            )
            raise RateLimitExceeded(reset_at)

        if response.status_code >= 500:
            raise TransientGitHubError(
                f"GitHub returned HTTP {response.status_code}",
                status=response.status_code,
            )

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API request to {path} failed "
                f"(HTTP {response.status_code}): {response.text[:200]}. "
                "Verify that your token has the correct permissions.",
                status=response.status_code,
            )

        return response.json()

    def fetch_repos(self, visibility: str = "all") -> list[dict]:
        """
        Fetch every repository of the authenticated user.

        Args:
            visibility: public, private, all or owned

        Returns:
            Raw repository objects as returned by the API
        """
        params = {"per_page": self.REPOS_PER_PAGE, "sort": "full_name"}
        if visibility == "owned":
            params["visibility"] = "all"
            params["affiliation"] = "owner"
        elif visibility in ("public", "private"):
            params["visibility"] = visibility
        else:
            params["visibility"] = "all"

        repos: list[dict] = []
        page = 1

        while True:
            logger.info(f"Fetching repositories (page {page})...")
            data = self._get("/user/repos", {**params, "page": page})
            repos.extend(data)

            if len(data) < self.REPOS_PER_PAGE:
                break

            self.rate_limiter.wait_if_needed()
            page += 1

        logger.info(f"Fetched {len(repos)} repositories from GitHub")
        return repos

    def get_repos(self, config: TrackerConfig) -> list[RepositoryInfo]:
        """
        Fetch, filter and map repositories according to the config.
        """
        raw = self.fetch_repos(config.visibility)
        return map_repos(filter_repos(raw, config))

    def fetch_stargazers(self, repo: RepositoryInfo) -> list[Stargazer]:
        """
        Fetch every stargazer of a repository, with the time they starred it.
        """
        stargazers: list[Stargazer] = []
        page = 1

        while True:
            data = self._get(
                f"/repos/{repo.owner}/{repo.name}/stargazers",
                {"per_page": self.STARGAZERS_PER_PAGE, "page": page},
                headers={"Accept": self.STARGAZERS_ACCEPT},
            )
            stargazers.extend(
                Stargazer(
                    login=item["user"]["login"],
                    avatar_url=item["user"].get("avatar_url", ""),
                    profile_url=item["user"].get("html_url", ""),
                    starred_at=item.get("starred_at", ""),
                )
                for item in data
            )

            if len(data) < self.STARGAZERS_PER_PAGE:
                break

            self.rate_limiter.wait_if_needed()
            page += 1

        return stargazers

    def fetch_all_stargazers(self, repos: list[RepositoryInfo]) -> list[RepoStargazers]:
        """
        Fetch stargazers for each repository.
        A repository whose stargazers cannot be fetched is reported with none.
        """
        results = []
        for repo in repos:
            try:
                stargazers = self.fetch_stargazers(repo)
            except (GitHubAPIError, RateLimitExceeded) as e:
                logger.warning(f"Failed to fetch stargazers for {repo.full_name}: {e}")
                stargazers = []
            results.append(RepoStargazers(repo.full_name, tuple(stargazers)))

        logger.info(f"Fetched stargazers for {len(results)} repositories")
        return results


def _compile_pattern(pattern: str) -> Optional[re.Pattern]:
    match = REGEX_PATTERN.match(pattern)
    if not match:
        return None

    flags = 0
    for flag in match.group(2):
        flags |= _REGEX_FLAGS.get(flag, 0)
    return re.compile(match.group(1), flags)


def matches_exclude_pattern(name: str, patterns: list[str]) -> bool:
    """
    Check a repository name against exclude patterns.
    Patterns written as /regex/flags are regular expressions, others match exactly.
    """
    for pattern in patterns:
        regex = _compile_pattern(pattern)
        if regex is not None:
            if regex.search(name):
                return True
        elif name == pattern:
            return True
    return False


def filter_repos(repos: list[dict], config: TrackerConfig) -> list[dict]:
    """
    Apply the repository filters from the config.
    only_repos, when set, replaces every other filter.
    """
    if config.only_repos:
        filtered = [repo for repo in repos if repo["name"] in config.only_repos]
        logger.info(f"After only_repos filter: {len(filtered)} repos")
        return filtered

    filtered = repos

    if not config.include_archived:
        filtered = [repo for repo in filtered if not repo.get("archived")]

    if not config.include_forks:
        filtered = [repo for repo in filtered if not repo.get("fork")]

    if config.exclude_repos:
        filtered = [
            repo for repo in filtered
            if not matches_exclude_pattern(repo["name"], config.exclude_repos)
        ]

    if config.min_stars > 0:
        filtered = [
            repo for repo in filtered
            if repo.get("stargazers_count", 0) >= config.min_stars
        ]

    logger.info(f"After filtering: {len(filtered)} repos")
    return filtered


def map_repos(repos: list[dict]) -> list[RepositoryInfo]:
    return [
        RepositoryInfo(
            owner=repo["owner"]["login"],
            name=repo["name"],
            full_name=repo["full_name"],
            private=repo.get("private", False),
            archived=repo.get("archived", False),
            fork=repo.get("fork", False),
            stars=repo.get("stargazers_count", 0),
        )
        for repo in repos
    ]
