"""GitHub search API source implementation using PyGithub."""

import itertools
import shlex
from datetime import datetime, timezone

import requests
import structlog
from github import Auth, Github, GithubException
from github.Issue import Issue

from prqueue.errors import SourceError
from prqueue.models import Author, PullRequest, Repository
from prqueue.source import Source

logger = structlog.get_logger()

BASE_QUALIFIERS = ["is:pr", "is:open", "draft:false"]


def to_search_qualifiers(query_arg: str) -> list[str]:
    """Translate gh-style flags into search qualifiers.

    ``--review-requested=@me`` becomes ``review-requested:@me`` and a bare
    ``--archived`` becomes ``archived:true``. Other tokens pass through unchanged.
    """
    qualifiers = []
    for token in shlex.split(query_arg):
        if not token.startswith("--"):
            qualifiers.append(token)
            continue
        key, sep, value = token[2:].partition("=")
        if not sep:
            value = "true"
        if " " in value:
            value = f'"{value}"'
        qualifiers.append(f"{key}:{value}")
    return qualifiers


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GitHubSource(Source):
    """Source using the GitHub issue search API."""

    def __init__(self, token: str | None, limit: int = 30) -> None:
        """Initialize GitHub source.

        Args:
            token: GitHub personal access token
            limit: Maximum number of pull requests returned per query
        """
        if not token:
            raise ValueError("GitHub token required")
        self.limit = limit
        self.client = Github(auth=Auth.Token(token))
        logger.debug("GitHub source initialized", limit=limit)

    def _issue_to_pull_request(self, issue: Issue) -> PullRequest:
        """Convert a search result into a PullRequest."""
        # Derived from the URL so search results do not trigger a repository fetch
        owner, name = issue.repository_url.rstrip("/").split("/")[-2:]
        user = issue.user
        return PullRequest(
            url=issue.html_url,
            number=issue.number,
            title=issue.title,
            body=issue.body or "",
            author=Author(
                login=user.login,
                id=user.node_id,
                is_bot=user.type == "Bot",
                type=user.type,
                url=user.html_url,
            ),
            repository=Repository(name=name, name_with_owner=f"{owner}/{name}"),
            comments_count=issue.comments,
            created_at=_as_utc(issue.created_at),
            updated_at=_as_utc(issue.updated_at),
            state=issue.state.upper(),
            id=issue.node_id,
        )

    def fetch(self, query_arg: str) -> list[PullRequest]:
        try:
            query = " ".join(BASE_QUALIFIERS + to_search_qualifiers(query_arg))
        except ValueError as e:
            raise SourceError(f"Cannot split query argument {query_arg!r}: {e}") from e
        logger.debug("Searching GitHub", query=query)
        try:
            issues = self.client.search_issues(query)
            prs = [self._issue_to_pull_request(issue) for issue in itertools.islice(issues, self.limit)]
        except GithubException as e:
            logger.error("GitHub search failed", query=query, status=e.status)
            raise SourceError(f"GitHub search failed with status {e.status}: {e.data}") from e
        except requests.exceptions.RequestException as e:
            logger.error("GitHub request failed", query=query, error=str(e))
            raise SourceError(f"GitHub request failed: {e}") from e
        logger.debug("GitHub search completed", query=query, count=len(prs))
        return prs
