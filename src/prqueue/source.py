"""Source interface for fetching pull requests."""

from abc import ABC, abstractmethod

from prqueue.models import PullRequest


class Source(ABC):
    """Abstract base class for pull request sources."""

    @abstractmethod
    def fetch(self, query_arg: str) -> list[PullRequest]:
        """Return the open pull requests matching ``query_arg``.

        An empty list is a valid answer. Failures raise ``SourceError``.
        """
        pass
