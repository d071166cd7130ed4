"""Tests for gh CLI source."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from prqueue.errors import SourceError
from prqueue.sources.gh_cli import JSON_FIELDS, GhCliSource

RECORD = {
    "author": {"id": "U_1", "is_bot": False, "login": "alice", "type": "User", "url": "https://github.com/alice"},
    "body": "",
    "commentsCount": 1,
    "createdAt": "2024-03-01T10:00:00Z",
    "id": "PR_1",
    "number": 7,
    "repository": {"name": "widgets", "nameWithOwner": "acme/widgets"},
    "state": "OPEN",
    "title": "Add gears",
    "updatedAt": "2024-03-01T12:00:00Z",
    "url": "https://github.com/acme/widgets/pull/7",
}


@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch(mock_run: MagicMock) -> None:
    """Test fetching and parsing gh output."""
    mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps([RECORD]), stderr="")

    prs = GhCliSource(limit=50).fetch("--review-requested=@me")

    assert len(prs) == 1
    assert prs[0].url == "https://github.com/acme/widgets/pull/7"
    assert prs[0].comments_count == 1
    cmd = mock_run.call_args[0][0]
    assert cmd == [
        "gh",
        "search",
        "prs",
        "--draft=false",
        "--state=open",
        "--review-requested=@me",
        "--json",
        JSON_FIELDS,
        "--limit",
        "50",
    ]


@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch_splits_multiple_flags(mock_run: MagicMock) -> None:
    """Test that a query argument may hold several flags."""
    mock_run.return_value = MagicMock(returncode=0, stdout="[]", stderr="")

    assert GhCliSource().fetch('--author=@me --label="needs review"') == []

    cmd = mock_run.call_args[0][0]
    assert "--author=@me" in cmd
    assert "--label=needs review" in cmd


@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch_command_failure(mock_run: MagicMock) -> None:
    """Test a nonzero exit of gh."""
    mock_run.side_effect = subprocess.CalledProcessError(1, ["gh"], stderr="HTTP 401")

    with pytest.raises(SourceError, match="HTTP 401"):
        GhCliSource().fetch("--author=@me")


@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch_missing_executable(mock_run: MagicMock) -> None:
    """Test that a missing gh binary is a source error."""
    mock_run.side_effect = FileNotFoundError("gh")

    with pytest.raises(SourceError, match="not found"):
        GhCliSource().fetch("--author=@me")


@pytest.mark.parametrize(
    "stdout",
    [
        "not json",
        json.dumps({"items": []}),
        json.dumps([{"title": "no url"}]),
        json.dumps([{**RECORD, "author": "alice"}]),
        json.dumps([{**RECORD, "repository": ["acme", "widgets"]}]),
        json.dumps([{**RECORD, "title": 123}]),
    ],
)
@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch_malformed_payload(mock_run: MagicMock, stdout: str) -> None:
    """Test malformed gh output."""
    mock_run.return_value = MagicMock(returncode=0, stdout=stdout, stderr="")

    with pytest.raises(SourceError):
        GhCliSource().fetch("--author=@me")


@patch("prqueue.sources.gh_cli.subprocess.run")
def test_fetch_unbalanced_quote(mock_run: MagicMock) -> None:
    """Test that an unsplittable query argument is a source error."""
    with pytest.raises(SourceError, match="split"):
        GhCliSource().fetch('--label="needs review')

    mock_run.assert_not_called()
