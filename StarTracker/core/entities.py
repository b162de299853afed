"""
Core domain entities for StarTracker.
These represent the business objects in our system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass
class RepositoryInfo:
    """
    Current observed state of one repository, fetched fresh each run.
    """
    owner: str
    name: str
    stars: int
    full_name: str = ""
    private: bool = False
    archived: bool = False
    fork: bool = False

    def __post_init__(self):
        """Validate repository data."""
        if self.stars < 0:
            raise ValueError("stars cannot be negative")
        if not self.name or not self.owner:
            raise ValueError("name and owner are required")
        if not self.full_name:
            self.full_name = f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class SnapshotRepoEntry:
    """
    Persisted subset of a repository stored inside a snapshot.
    Name and owner may be missing in data written by older versions.
    """
    full_name: str
    stars: int
    name: Optional[str] = None
    owner: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "fullName": self.full_name,
            "name": self.name,
            "owner": self.owner,
            "stars": self.stars,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotRepoEntry":
        return cls(
            full_name=data["fullName"],
            stars=int(data.get("stars", 0)),
            name=data.get("name") or None,
            owner=data.get("owner") or None,
        )


@dataclass(frozen=True)
class Snapshot:
    """
    One point-in-time observation of all tracked repositories.
    """
    timestamp: str
    total_stars: int
    repos: tuple[SnapshotRepoEntry, ...] = ()

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "totalStars": self.total_stars,
            "repos": [repo.to_dict() for repo in self.repos],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        return cls(
            timestamp=data["timestamp"],
            total_stars=int(data.get("totalStars", 0)),
            repos=tuple(
                SnapshotRepoEntry.from_dict(repo) for repo in data.get("repos") or []
            ),
        )


@dataclass(frozen=True)
class History:
    """
    Ordered sequence of snapshots, oldest first.

    stars_at_last_notification is the total at which a notification last
    fired, or None if none has fired yet.
    """
    snapshots: tuple[Snapshot, ...] = ()
    stars_at_last_notification: Optional[int] = None

    def to_dict(self) -> dict:
        data = {"snapshots": [snapshot.to_dict() for snapshot in self.snapshots]}
        if self.stars_at_last_notification is not None:
            data["starsAtLastNotification"] = self.stars_at_last_notification
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "History":
        stars_at_last = data.get("starsAtLastNotification")
        return cls(
            snapshots=tuple(
                Snapshot.from_dict(snapshot) for snapshot in data.get("snapshots") or []
            ),
            stars_at_last_notification=(
                int(stars_at_last) if stars_at_last is not None else None
            ),
        )


@dataclass
class RepoResult:
    """
    One row of a star comparison.
    previous is None when the repository did not exist in the prior snapshot.
    """
    name: str
    full_name: str
    owner: str
    current: int
    previous: Optional[int]
    delta: int
    is_new: bool = False
    is_removed: bool = False


@dataclass
class Summary:
    """
    Aggregate totals of a star comparison.
    """
    total_stars: int = 0
    total_previous: int = 0
    total_delta: int = 0
    new_stars: int = 0
    lost_stars: int = 0
    changed: bool = False


@dataclass
class ComparisonResults:
    """
    Result of comparing current repositories against a snapshot.
    """
    repos: list[RepoResult] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)


class ForecastMethod(str, Enum):
    """Estimators available to the forecast engine."""

    LINEAR_REGRESSION = "linear-regression"
    WEIGHTED_MOVING_AVERAGE = "weighted-moving-average"


@dataclass(frozen=True)
class ForecastPoint:
    week_offset: int
    predicted: int


@dataclass(frozen=True)
class ForecastResult:
    method: ForecastMethod
    points: tuple[ForecastPoint, ...]


@dataclass
class RepoForecast:
    repo_full_name: str
    forecasts: list[ForecastResult]


@dataclass
class ForecastData:
    """
    Aggregate forecasts plus per-repository forecasts for the top repositories.
    """
    aggregate: list[ForecastResult]
    repos: list[RepoForecast] = field(default_factory=list)


@dataclass(frozen=True)
class Stargazer:
    login: str
    avatar_url: str = ""
    profile_url: str = ""
    starred_at: str = ""


@dataclass(frozen=True)
class RepoStargazers:
    """
    Everyone currently starring one repository.
    """
    repo_full_name: str
    stargazers: tuple[Stargazer, ...] = ()


@dataclass
class StargazerDiffEntry:
    repo_full_name: str
    new_stargazers: list[Stargazer]


@dataclass
class StargazerDiffResult:
    """
    Stargazers that were not present in the stored stargazer map.
    """
    entries: list[StargazerDiffEntry] = field(default_factory=list)
    total_new: int = 0
