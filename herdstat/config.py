"""
Configuration management for herdstat.

Loads GitHub credentials and contribution graph settings from an optional
YAML config file and from environment variables. Environment variables take
precedence over the file, command line flags over both.
"""

import logging
import os
import re
from datetime import date, datetime
from pathlib import Path

import yaml
from dateutil import parser as date_parser
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from herdstat.color_quantizer import (
    MAX_LEVELS,
    MIN_LEVELS,
    ColorScheme,
    parse_hex_color,
    scheme_from_primary,
)
from herdstat.contribution_calendar import to_date, utc_today
from herdstat.contribution_events import parse_repository_id

logger = logging.getLogger(__name__)

# Load .env file from project root
load_dotenv()

DEFAULT_COLOR = "39D352"
DEFAULT_FILENAME = "contribution-graph.svg"
DEFAULT_COMMIT_FILTERS = r"\[bot\]"
DEFAULT_CONFIG_FILE = Path.home() / ".herdstat.yaml"

# Unset variables stay None so that config file values show through
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
HERDSTAT_REPOSITORIES = os.getenv("HERDSTAT_REPOSITORIES")
HERDSTAT_UNTIL = os.getenv("HERDSTAT_UNTIL")
HERDSTAT_COLOR = os.getenv("HERDSTAT_COLOR")
HERDSTAT_LEVELS = os.getenv("HERDSTAT_LEVELS")
HERDSTAT_FILENAME = os.getenv("HERDSTAT_FILENAME")
HERDSTAT_MINIFY = os.getenv("HERDSTAT_MINIFY")
HERDSTAT_COMMIT_FILTERS = os.getenv("HERDSTAT_COMMIT_FILTERS")
HERDSTAT_VERBOSE = os.getenv("HERDSTAT_VERBOSE")


def _split_list(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class GraphSettings(BaseModel):
    """Validated settings for generating one contribution graph."""

    repositories: list[str] = Field(default_factory=list, description="owner or owner/repo ids")
    github_token: str | None = Field(None, repr=False, description="GitHub API token")
    last_date: date = Field(default_factory=utc_today, description="Last day shown in the graph")
    color: str = Field(DEFAULT_COLOR, description="Primary color, hex-encoded RGB")
    levels: int = Field(MIN_LEVELS, ge=MIN_LEVELS, le=MAX_LEVELS, description="Number of color levels")
    filename: str = Field(DEFAULT_FILENAME, min_length=1, description="Output SVG file")
    minify: bool = True
    commit_filters: list[str] = Field(
        default_factory=lambda: [DEFAULT_COMMIT_FILTERS], description="Commit author regexes"
    )
    verbose: bool = False

    @field_validator("repositories", "commit_filters", mode="before")
    @classmethod
    def split_lists(cls, value):
        return _split_list(value)

    @field_validator("repositories")
    @classmethod
    def check_repositories(cls, value: list[str]) -> list[str]:
        for identifier in value:
            parse_repository_id(identifier)
        return value

    @field_validator("commit_filters")
    @classmethod
    def check_filters(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid commit filter '{pattern}': {e}") from e
        return value

    @field_validator("last_date", mode="before")
    @classmethod
    def parse_last_date(cls, value):
        # GitHub timestamps are bucketed by their UTC date
        if value is None or value == "":
            return utc_today()
        if isinstance(value, datetime):
            return to_date(value)
        if isinstance(value, str):
            try:
                return to_date(date_parser.parse(value))
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Unrecognized date '{value}'") from e
        return value

    @field_validator("color", mode="before")
    @classmethod
    def color_to_string(cls, value):
        # YAML reads unquoted all-digit colors like 123456 as integers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("color")
    @classmethod
    def check_color(cls, value: str) -> str:
        parse_hex_color(value)
        return value.strip().lstrip("#").upper()

    @property
    def color_scheme(self) -> ColorScheme:
        return scheme_from_primary(parse_hex_color(self.color))


def load_config_file(path: str | Path | None = None) -> dict:
    """
    Read settings from a YAML config file.

    Recognized keys:

        verbose: false
        repositories: [herdstat]
        github-token: ghp_...
        contribution-graph:
          until: 2023-10-30
          filename: contribution-graph.svg
          minify: true
          color: 39D352
          levels: 5
          filters:
            commits: ['\\[bot\\]']

    Args:
        path: Config file to read. Defaults to ~/.herdstat.yaml, which may
            be absent.

    Returns:
        GraphSettings keyword arguments for the keys present in the file

    Raises:
        ValueError: If a given file can't be read or is not a YAML mapping
    """
    if path is None:
        path = DEFAULT_CONFIG_FILE
        if not path.exists():
            return {}
    path = Path(path)

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Can't read config file '{path}': {e}") from e
    try:
        loaded = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file '{path}': {e}") from e
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file '{path}' must contain a mapping")

    logger.info("Using config file: %s", path)

    graph = loaded.get("contribution-graph") or {}
    filters = graph.get("filters") or {}
    values = {
        "repositories": loaded.get("repositories"),
        "github_token": loaded.get("github-token"),
        "verbose": loaded.get("verbose"),
        "last_date": graph.get("until"),
        "filename": graph.get("filename"),
        "minify": graph.get("minify"),
        "color": graph.get("color"),
        "levels": graph.get("levels"),
        "commit_filters": filters.get("commits"),
    }
    return {key: value for key, value in values.items() if value is not None}


def load_settings(config_file: str | Path | None = None, **overrides) -> GraphSettings:
    """
    Load graph settings from the config file and the environment.

    Args:
        config_file: YAML config file, see load_config_file()
        **overrides: Values taking precedence over the environment, e.g.
            from command line flags. None values are ignored.

    Raises:
        ValueError: If any setting is invalid (levels out of range,
            malformed color, date or repository identifier) or the config
            file can't be loaded
    """
    environment = {
        "repositories": HERDSTAT_REPOSITORIES,
        "github_token": GITHUB_TOKEN,
        "last_date": HERDSTAT_UNTIL,
        "color": HERDSTAT_COLOR,
        "levels": HERDSTAT_LEVELS,
        "filename": HERDSTAT_FILENAME,
        "minify": HERDSTAT_MINIFY,
        "commit_filters": HERDSTAT_COMMIT_FILTERS,
        "verbose": HERDSTAT_VERBOSE,
    }
    values = load_config_file(config_file)
    values.update({key: value for key, value in environment.items() if value is not None})
    values.update({key: value for key, value in overrides.items() if value is not None})
    return GraphSettings(**values)


def validate_config(settings: GraphSettings) -> None:
    """Validate that required configuration is present."""
    missing = []

    if not settings.repositories:
        missing.append("HERDSTAT_REPOSITORIES")

    if settings.github_token == "your_token_here":
        missing.append("GITHUB_TOKEN")

    if missing:
        raise ValueError(
            f"Missing required configuration: {', '.join(missing)}\n"
            "Please copy .env.example to .env and fill in your values.\n"
            "Get a GitHub token at: https://github.com/settings/tokens"
        )
