"""Tests for configuration loading."""

from pathlib import Path

import pytest

from prqueue.config import DEFAULT_CONFIG_YAML, get_default_config, load_config, parse_config, write_default_config
from prqueue.errors import ConfigError


def test_default_config() -> None:
    """Test the built-in default configuration."""
    config = get_default_config()
    assert [q.label for q in config.queries] == ["Assignee", "Author", "Mentions", "ReviewRequested"]
    assert config.queries[1].source_arg == "--author=@me"
    assert config.queries[1].short_name == "*"
    assert config.attribution_order == ["Assignee", "Author", "Mentions", "ReviewRequested"]
    assert config.display_order[0] == "Mentions"
    assert config.source == "gh"
    assert config.limit == 30


def test_orders_default_to_query_order() -> None:
    """Test that missing orders fall back to the order of queries."""
    config = parse_config(
        """
queries:
  - github_arg: "--review-requested=@me"
    query_name: "Review"
  - github_arg: "--author=@me"
    query_name: "Mine"
    mute: true
"""
    )
    assert config.attribution_order == ["Review", "Mine"]
    assert config.display_order == ["Review", "Mine"]
    assert config.queries[0].short_name == " "
    assert config.queries[1].mute is True


def test_duplicate_labels_rejected() -> None:
    """Test that query names must be unique."""
    content = """
queries:
  - {github_arg: "--author=@me", query_name: "A"}
  - {github_arg: "--mentions=@me", query_name: "A"}
"""
    with pytest.raises(ConfigError, match="Duplicate"):
        parse_config(content)


@pytest.mark.parametrize(
    "content",
    [
        "queries: [",
        "- just a list",
        "queries: []",
        "queries:\n  - {query_name: A}",
        "queries:\n  - {github_arg: x, query_name: A, short_name: ab}",
        "queries:\n  - {github_arg: x, query_name: A}\nsource: gitlab",
        "queries:\n  - {github_arg: x, query_name: A}\nlimit: 0",
        "queries:\n  - {github_arg: '--label=\"oops', query_name: A}",
    ],
)
def test_invalid_config_rejected(content: str) -> None:
    """Test validation failures."""
    with pytest.raises(ConfigError):
        parse_config(content)


def test_load_missing_file_uses_default(tmp_path: Path) -> None:
    """Test that an absent config file falls back to the default."""
    assert load_config(tmp_path / "config.yaml") == get_default_config()
    assert load_config(None) == get_default_config()


def test_load_malformed_file_fails(tmp_path: Path) -> None:
    """Test that a present but broken config file is an error."""
    path = tmp_path / "config.yaml"
    path.write_text("queries: [")
    with pytest.raises(ConfigError):
        load_config(path)


def test_write_default_config(tmp_path: Path) -> None:
    """Test writing the default config and refusing to overwrite."""
    path = tmp_path / "nested" / "config.yaml"
    write_default_config(path)
    assert path.read_text() == DEFAULT_CONFIG_YAML

    with pytest.raises(ConfigError, match="already exists"):
        write_default_config(path)
    write_default_config(path, force=True)


def test_resolve_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test token lookup from config then environment."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    config = get_default_config()
    assert config.resolve_token() is None

    monkeypatch.setenv("GH_TOKEN", "from-gh")
    assert config.resolve_token() == "from-gh"

    config.github_token = "from-config"
    assert config.resolve_token() == "from-config"
    assert config.to_dict()["github_token"] == "<redacted>"


def test_short_name_for() -> None:
    """Test short name lookup by label."""
    config = get_default_config()
    assert config.short_name_for("Mentions") == "m"
    assert config.short_name_for("Unknown") == " "
