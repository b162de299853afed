"""
Configuration loading for StarTracker.

Values come from, in increasing priority: built-in defaults, a YAML
config file, and STAR_TRACKER_* environment variables.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "STAR_TRACKER_"
DEFAULT_CONFIG_PATH = "star-tracker.yml"

VALID_VISIBILITIES = ("public", "private", "all", "owned")
VALID_STORAGES = ("file", "postgres")


class ConfigError(ValueError):
    """Raised when the configuration contains an invalid value."""


@dataclass
class TrackerConfig:
    """
    Settings for one tracking run.
    """
    visibility: str = "all"
    include_archived: bool = False
    include_forks: bool = False
    exclude_repos: list[str] = field(default_factory=list)
    only_repos: list[str] = field(default_factory=list)
    min_stars: int = 0
    data_branch: str = "star-tracker-data"
    max_history: int = 52
    send_on_no_changes: bool = False
    include_charts: bool = True
    notification_threshold: Union[int, str] = 0
    top_repos: int = 10
    storage: str = "file"
    track_stargazers: bool = False

    def validate(self):
        if self.visibility not in VALID_VISIBILITIES:
            raise ConfigError(
                f'Invalid visibility "{self.visibility}". '
                f"Must be one of: {', '.join(VALID_VISIBILITIES)}"
            )
        if self.storage not in VALID_STORAGES:
            raise ConfigError(
                f'Invalid storage "{self.storage}". '
                f"Must be one of: {', '.join(VALID_STORAGES)}"
            )
        for name in INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if self.max_history < 1:
            raise ConfigError("max_history must be at least 1")
        if self.notification_threshold != "auto" and (
            not isinstance(self.notification_threshold, int)
            or self.notification_threshold < 0
        ):
            raise ConfigError(
                'notification_threshold must be a non-negative integer or "auto"'
            )


def parse_list(value: Optional[str]) -> list[str]:
    """Split a comma separated string, dropping empty segments."""
    if not value or not value.strip():
        return []
    return [segment.strip() for segment in value.split(",") if segment.strip()]


def parse_bool(value: Union[str, bool, None]) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return value == "true"


def parse_number(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_notification_threshold(value: Optional[str]) -> Union[int, str, None]:
    if value is None or value == "":
        return None
    if value.strip() == "auto":
        return "auto"
    return parse_number(value)


# field name -> parser for the string form used in environment variables
_ENV_PARSERS = {
    "visibility": lambda v: v or None,
    "include_archived": parse_bool,
    "include_forks": parse_bool,
    "exclude_repos": lambda v: parse_list(v) if v else None,
    "only_repos": lambda v: parse_list(v) if v else None,
    "min_stars": parse_number,
    "data_branch": lambda v: v or None,
    "max_history": parse_number,
    "send_on_no_changes": parse_bool,
    "include_charts": parse_bool,
    "notification_threshold": parse_notification_threshold,
    "top_repos": parse_number,
    "storage": lambda v: v or None,
    "track_stargazers": parse_bool,
}

LIST_FIELDS = ("exclude_repos", "only_repos")
INT_FIELDS = ("min_stars", "max_history", "top_repos")
BOOL_FIELDS = (
    "include_archived",
    "include_forks",
    "send_on_no_changes",
    "include_charts",
    "track_stargazers",
)


def normalize_file_value(name: str, value):
    """
    Coerce a value read from the YAML file to the type of its field.
    Strings go through the same parsers as environment values.

    Returns:
        The coerced value, or None to keep the default

    Raises:
        ConfigError: If the value has the wrong type
    """
    if value is None:
        return None

    if name in LIST_FIELDS and isinstance(value, list):
        if all(isinstance(item, str) for item in value):
            return [item.strip() for item in value if item.strip()]
    elif name in BOOL_FIELDS and isinstance(value, bool):
        return value
    elif (
        name in INT_FIELDS or name == "notification_threshold"
    ) and isinstance(value, int) and not isinstance(value, bool):
        return value
    elif isinstance(value, str):
        if not value.strip():
            return None
        parsed = _ENV_PARSERS[name](value)
        if parsed is not None:
            return parsed

    raise ConfigError(f'Invalid value for "{name}" in config file: {value!r}')


def load_config_file(config_path: str) -> dict:
    """
    Read the YAML config file.

    Returns:
        Mapping of known config keys, empty if the file does not exist
    """
    if not os.path.exists(config_path):
        logger.info(f"No config file found at {config_path}, using defaults")
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        parsed = yaml.safe_load(f)

    if not isinstance(parsed, dict):
        return {}

    known = {f.name for f in fields(TrackerConfig)}
    unknown = set(parsed) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    values = {}
    for key, value in parsed.items():
        if key in known:
            normalized = normalize_file_value(key, value)
            if normalized is not None:
                values[key] = normalized
    return values


def load_config(
    config_path: Optional[str] = None, environ: Optional[dict] = None
) -> TrackerConfig:
    """
    Build the effective configuration.

    Args:
        config_path: YAML file path (or STAR_TRACKER_CONFIG_PATH, or star-tracker.yml)
        environ: Environment mapping, defaults to os.environ

    Returns:
        Validated TrackerConfig

    Raises:
        ConfigError: If a value is invalid
    """
    environ = os.environ if environ is None else environ
    config_path = (
        config_path or environ.get(f"{ENV_PREFIX}CONFIG_PATH") or DEFAULT_CONFIG_PATH
    )

    values = load_config_file(config_path)

    # Allow environment variable overrides
    for name, parser in _ENV_PARSERS.items():
        parsed = parser(environ.get(f"{ENV_PREFIX}{name.upper()}"))
        if parsed is not None:
            values[name] = parsed

    config = TrackerConfig(**values)
    config.validate()

    logger.info(
        f"Config: visibility={config.visibility}, "
        f"include_archived={config.include_archived}, "
        f"include_forks={config.include_forks}"
    )
    if config.only_repos:
        logger.info(f"Config: tracking only repos: {', '.join(config.only_repos)}")
    if config.exclude_repos:
        logger.info(f"Config: excluding repos: {', '.join(config.exclude_repos)}")

    return config
