"""Configuration management for prqueue using YAML files."""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from prqueue.errors import ConfigError
from prqueue.models import Query

logger = structlog.get_logger()

DEFAULT_STATE_DIR = Path.home() / ".prqueue"
CONFIG_FILE = "config.yaml"
SOURCES = ("gh", "github")

DEFAULT_CONFIG_YAML = """\
queries:
  - github_arg: "--assignee=@me"
    query_name: "Assignee"
    short_name: "a"
  - github_arg: "--author=@me"
    query_name: "Author"
    short_name: "*"
  - github_arg: "--mentions=@me"
    query_name: "Mentions"
    short_name: "m"
  - github_arg: "--review-requested=@me"
    query_name: "ReviewRequested"
    short_name: "r"
# Which query a pull request is attributed to when it appears in more than one
# query. Defaults to the order of 'queries'. Unlisted names rank last.
attribution_order:
  - "Assignee"
  - "Author"
  - "Mentions"
  - "ReviewRequested"
# Which queries are displayed first. Defaults to the order of 'queries'.
display_order:
  - "Mentions"
  - "ReviewRequested"
  - "Assignee"
  - "Author"
# Either "gh" (the gh CLI) or "github" (search API, needs github_token or GITHUB_TOKEN).
source: "gh"
limit: 30
"""


@dataclass
class Config:
    """Queries and ordering preferences."""

    queries: list[Query]
    attribution_order: list[str] = field(default_factory=list)
    display_order: list[str] = field(default_factory=list)
    source: str = "gh"
    github_token: str | None = None
    limit: int = 30

    def short_name_for(self, label: str) -> str:
        for query in self.queries:
            if query.label == label:
                return query.short_name
        return " "

    def resolve_token(self) -> str | None:
        """Return the configured GitHub token, falling back to the environment."""
        return self.github_token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "queries": [
                {"github_arg": q.source_arg, "query_name": q.label, "short_name": q.short_name, "mute": q.mute}
                for q in self.queries
            ],
            "attribution_order": list(self.attribution_order),
            "display_order": list(self.display_order),
            "source": self.source,
            "limit": self.limit,
        }
        if self.github_token:
            data["github_token"] = "<redacted>"
        return data


def _parse_query(raw: Any, index: int) -> Query:
    if not isinstance(raw, dict):
        raise ConfigError(f"Query #{index} must be a mapping")
    try:
        source_arg = raw["github_arg"]
        label = raw["query_name"]
    except KeyError as e:
        raise ConfigError(f"Query #{index} is missing '{e.args[0]}'") from e
    try:
        shlex.split(str(source_arg))
    except ValueError as e:
        raise ConfigError(f"Query '{label}' github_arg cannot be split: {e}") from e
    short_name = str(raw.get("short_name", " "))
    if len(short_name) > 1:
        raise ConfigError(f"Query '{label}' short_name must be a single character, got '{short_name}'")
    return Query(
        source_arg=str(source_arg),
        label=str(label),
        short_name=short_name or " ",
        mute=bool(raw.get("mute", False)),
    )


def parse_config(content: str) -> Config:
    """Parse and validate configuration YAML.

    Raises:
        ConfigError: The YAML is malformed or fails validation
    """
    try:
        raw = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a mapping")

    raw_queries = raw.get("queries") or []
    if not isinstance(raw_queries, list) or not raw_queries:
        raise ConfigError("Configuration must define at least one query")
    queries = [_parse_query(q, i) for i, q in enumerate(raw_queries)]

    labels = [q.label for q in queries]
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate query_name: {', '.join(duplicates)}")

    source = raw.get("source", "gh")
    if source not in SOURCES:
        raise ConfigError(f"Unknown source '{source}', expected one of: {', '.join(SOURCES)}")

    limit = raw.get("limit", 30)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        raise ConfigError(f"limit must be a positive integer, got {limit!r}")

    return Config(
        queries=queries,
        attribution_order=[str(x) for x in raw.get("attribution_order") or labels],
        display_order=[str(x) for x in raw.get("display_order") or labels],
        source=source,
        github_token=raw.get("github_token"),
        limit=limit,
    )


def get_default_config() -> Config:
    return parse_config(DEFAULT_CONFIG_YAML)


def load_config(path: Path | None) -> Config:
    """Load configuration from ``path``, using the default if the file is absent.

    Args:
        path: Path to the YAML config file, or None for the default

    Returns:
        Config instance

    Raises:
        ConfigError: The file exists but cannot be read or is invalid
    """
    if path is None or not path.exists():
        logger.debug("Config file does not exist, using default config", path=str(path))
        return get_default_config()

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Failed to load config", path=str(path), error=str(e))
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = parse_config(content)
    logger.debug("Config loaded successfully", path=str(path), queries=[q.label for q in config.queries])
    return config


def write_default_config(path: Path, force: bool = False) -> None:
    """Write the default configuration to ``path``.

    Raises:
        ConfigError: The file exists and ``force`` is False, or it cannot be written
    """
    if path.exists() and not force:
        raise ConfigError(f"Config file already exists: {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    except OSError as e:
        logger.error("Failed to save config", path=str(path), error=str(e))
        raise ConfigError(f"Failed to save config to {path}: {e}") from e
    logger.debug("Config saved successfully", path=str(path))
