"""Reconciliation loop keeping the stored snapshot in line with the source."""

import time
from collections.abc import Callable

import structlog

from prqueue.aggregator import aggregate
from prqueue.config import Config
from prqueue.models import PullRequest
from prqueue.source import Source
from prqueue.storage import Storage

logger = structlog.get_logger()

DEFAULT_INTERVAL = 60.0


class Synchronizer:
    """Drives aggregation passes and replaces the stored snapshot."""

    def __init__(
        self,
        storage: Storage,
        source: Source,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize synchronizer.

        Args:
            storage: Where the snapshot is written
            source: Where pull requests are fetched from
            interval: Seconds to wait between successful passes
            sleep: Sleep function, replaceable in tests
        """
        self.storage = storage
        self.source = source
        self.interval = interval
        self.sleep = sleep

    def run_once(self, config: Config) -> list[PullRequest]:
        """Run one fetch-dedupe-replace pass.

        The snapshot is only written once every query has succeeded.
        """
        logger.info("Starting reconciliation pass", queries=len(config.queries))
        prs = aggregate(config.queries, self.source.fetch, config.attribution_order)
        self.storage.reset_pull_requests(prs)
        logger.info("Updated pull requests", count=len(prs))
        return prs

    def run_forever(self, config: Config) -> None:
        """Run passes until one fails. The failure is raised to the caller."""
        while True:
            self.run_once(config)
            self.sleep(self.interval)
