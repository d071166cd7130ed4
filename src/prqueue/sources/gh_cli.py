"""Pull request source backed by the gh CLI."""

import json
import shlex
import subprocess

import structlog

from prqueue.errors import SourceError
from prqueue.models import PullRequest
from prqueue.source import Source

logger = structlog.get_logger()

JSON_FIELDS = "author,body,commentsCount,createdAt,id,number,repository,state,title,updatedAt,url"


class GhCliSource(Source):
    """Source running ``gh search prs`` for each query."""

    def __init__(self, limit: int = 30, executable: str = "gh") -> None:
        """Initialize gh CLI source.

        Args:
            limit: Maximum number of pull requests returned per query
            executable: Name or path of the gh binary
        """
        self.limit = limit
        self.executable = executable

    def _build_command(self, query_arg: str) -> list[str]:
        return [
            self.executable,
            "search",
            "prs",
            "--draft=false",
            "--state=open",
            *shlex.split(query_arg),
            "--json",
            JSON_FIELDS,
            "--limit",
            str(self.limit),
        ]

    def fetch(self, query_arg: str) -> list[PullRequest]:
        try:
            cmd = self._build_command(query_arg)
        except ValueError as e:
            raise SourceError(f"Cannot split query argument {query_arg!r}: {e}") from e
        logger.debug("Running gh command", cmd=cmd)

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            logger.error("gh executable not found", executable=self.executable)
            raise SourceError(f"gh executable not found: {self.executable}") from e
        except subprocess.CalledProcessError as e:
            logger.error("gh command failed", cmd=cmd, stderr=e.stderr, returncode=e.returncode)
            raise SourceError(f"gh exited with status {e.returncode}: {(e.stderr or '').strip()}") from e

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse gh JSON output", stdout=result.stdout, error=str(e))
            raise SourceError(f"Invalid JSON from gh: {e}") from e

        if not isinstance(payload, list):
            raise SourceError(f"Expected a JSON list from gh, got {type(payload).__name__}")

        try:
            prs = [PullRequest.from_dict(record) for record in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise SourceError(f"Malformed pull request in gh output: {e!r}") from e

        logger.debug("gh command completed", query_arg=query_arg, count=len(prs))
        return prs
