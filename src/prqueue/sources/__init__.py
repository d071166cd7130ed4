"""Source implementations."""

from prqueue.sources.gh_cli import GhCliSource
from prqueue.sources.github import GitHubSource

__all__ = ["GhCliSource", "GitHubSource"]
