"""Multi-query aggregation with deduplication and attribution."""

from collections.abc import Callable, Sequence

import structlog

from prqueue.errors import QueryError, SourceError
from prqueue.models import PullRequest, Query

logger = structlog.get_logger()

FetchFn = Callable[[str], list[PullRequest]]


def attribution_priority(attribution_order: Sequence[str]) -> dict[str, int]:
    """Map each label to its rank. Lower rank wins."""
    return {label: i for i, label in enumerate(attribution_order)}


def select_by_attribution(prs: Sequence[PullRequest], priority: dict[str, int]) -> PullRequest:
    """Pick the occurrence whose label ranks best.

    Labels missing from ``priority`` rank after every listed label. On a tie the
    earliest occurrence wins.
    """
    unlisted = len(priority)
    return min(prs, key=lambda pr: priority.get(pr.label, unlisted))


def aggregate(queries: Sequence[Query], fetch: FetchFn, attribution_order: Sequence[str]) -> list[PullRequest]:
    """Run every query and merge the results into one deduplicated list.

    The same pull request (same URL) can appear in many queries. Only one
    occurrence is kept, attributed to the query chosen by ``attribution_order``.

    Args:
        queries: Queries to run, in configured order
        fetch: Callable returning the pull requests for a query argument
        attribution_order: Labels in order of preference for duplicates

    Returns:
        One pull request per distinct URL, in order of first appearance

    Raises:
        QueryError: Any query failed. No partial result is returned.
    """
    queried: dict[str, list[PullRequest]] = {}
    for query in queries:
        logger.info("Querying pull requests", label=query.label, source_arg=query.source_arg)
        try:
            prs = fetch(query.source_arg)
        except SourceError as e:
            raise QueryError(query.label, str(e)) from e
        for pr in prs:
            queried.setdefault(pr.url, []).append(pr.with_label(query.label, default_mute=query.mute))

    logger.info("Fetched pull requests", unique=len(queried), attribution_order=list(attribution_order))
    priority = attribution_priority(attribution_order)
    unique = []
    for url, prs in queried.items():
        if len(prs) == 1:
            unique.append(prs[0])
        else:
            selected = select_by_attribution(prs, priority)
            logger.debug("Resolved duplicate", url=url, labels=[pr.label for pr in prs], selected=selected.label)
            unique.append(selected)
    return unique
