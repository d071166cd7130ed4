"""Exceptions raised by prqueue."""


class PrQueueError(Exception):
    """Base class for all prqueue errors."""


class ConfigError(PrQueueError):
    """Configuration file could not be read or is invalid."""


class SourceError(PrQueueError):
    """The pull request source failed to answer a query."""


class QueryError(SourceError):
    """A named query failed, aborting the whole reconciliation pass."""

    def __init__(self, label: str, message: str) -> None:
        super().__init__(f"Query '{label}' failed: {message}")
        self.label = label


class StorageError(PrQueueError):
    """Reading or writing persisted state failed."""


class StorageCorruptError(StorageError):
    """A state file exists but cannot be parsed."""


class PullRequestNotFoundError(PrQueueError):
    """No pull request with the given URL is in the stored snapshot."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No such pull request: {url}")
        self.url = url


class InputError(PrQueueError):
    """Input given on the command line could not be read."""
