"""Tests for query aggregation and attribution."""

from unittest.mock import MagicMock

import pytest

from prqueue.aggregator import aggregate, attribution_priority, select_by_attribution
from prqueue.errors import QueryError, SourceError
from prqueue.models import PullRequest, Query
from tests.factories import make_pr

AUTHOR = Query(source_arg="--author=@me", label="Author", short_name="*")
MENTIONS = Query(source_arg="--mentions=@me", label="Mentions", short_name="m")
REVIEW = Query(source_arg="--review-requested=@me", label="ReviewRequested", short_name="r")


def fetcher(results: dict[str, list[PullRequest]]) -> MagicMock:
    """Build a fetch mock answering per query argument."""
    return MagicMock(side_effect=lambda arg: results[arg])


def test_duplicate_attributed_to_highest_priority() -> None:
    """Test the Author/Mentions scenario."""
    pr = make_pr(url="X", comments_count=3)
    fetch = fetcher({AUTHOR.source_arg: [pr], MENTIONS.source_arg: [pr]})

    result = aggregate([AUTHOR, MENTIONS], fetch, ["Author", "Mentions"])

    assert len(result) == 1
    assert result[0].url == "X"
    assert result[0].label == "Author"
    assert result[0].comments_count == 3


def test_priority_independent_of_fetch_order() -> None:
    """Test that the winner does not depend on query order."""
    pr = make_pr(url="X")
    fetch = fetcher({AUTHOR.source_arg: [pr], MENTIONS.source_arg: [pr]})

    result = aggregate([MENTIONS, AUTHOR], fetch, ["Author", "Mentions"])

    assert [p.label for p in result] == ["Author"]


def test_unlisted_label_never_wins() -> None:
    """Test that a label missing from the priority list loses to any listed one."""
    pr = make_pr(url="X")
    fetch = fetcher({AUTHOR.source_arg: [pr], MENTIONS.source_arg: [pr], REVIEW.source_arg: [pr]})

    result = aggregate([REVIEW, AUTHOR, MENTIONS], fetch, ["Mentions"])
    assert result[0].label == "Mentions"

    result = aggregate([REVIEW, AUTHOR], fetch, ["Author"])
    assert result[0].label == "Author"


def test_tie_keeps_first_seen() -> None:
    """Test the deterministic tie-break between equally ranked labels."""
    pr = make_pr(url="X")
    fetch = fetcher({AUTHOR.source_arg: [pr], MENTIONS.source_arg: [pr]})

    assert aggregate([MENTIONS, AUTHOR], fetch, [])[0].label == "Mentions"
    assert aggregate([AUTHOR, MENTIONS], fetch, [])[0].label == "Author"


def test_one_item_per_distinct_url() -> None:
    """Test that output size equals the number of distinct URLs."""
    a, b, c = make_pr(url="a"), make_pr(url="b"), make_pr(url="c")
    fetch = fetcher({AUTHOR.source_arg: [a, b], MENTIONS.source_arg: [b, c], REVIEW.source_arg: []})

    result = aggregate([AUTHOR, MENTIONS, REVIEW], fetch, ["Author", "Mentions", "ReviewRequested"])

    assert [p.url for p in result] == ["a", "b", "c"]
    assert [p.label for p in result] == ["Author", "Author", "Mentions"]


def test_default_mute_threaded_from_query() -> None:
    """Test that the query mute flag is attached to attributed items."""
    muted = Query(source_arg="--team=bots", label="Bots", mute=True)
    fetch = fetcher({muted.source_arg: [make_pr(url="a")], AUTHOR.source_arg: [make_pr(url="b")]})

    result = {p.url: p for p in aggregate([muted, AUTHOR], fetch, ["Author", "Bots"])}

    assert result["a"].default_mute is True
    assert result["b"].default_mute is False


def test_empty_results() -> None:
    """Test that zero matches is a valid result."""
    assert aggregate([AUTHOR], fetcher({AUTHOR.source_arg: []}), ["Author"]) == []


def test_failure_aborts_pass() -> None:
    """Test that one failing query fails the whole pass."""

    def fetch(arg: str) -> list[PullRequest]:
        if arg == MENTIONS.source_arg:
            raise SourceError("gh exited with status 1")
        return [make_pr(url=arg)]

    with pytest.raises(QueryError) as exc_info:
        aggregate([AUTHOR, MENTIONS, REVIEW], fetch, [])
    assert exc_info.value.label == "Mentions"
    assert isinstance(exc_info.value, SourceError)


def test_select_by_attribution() -> None:
    """Test selection over labelled occurrences directly."""
    priority = attribution_priority(["A", "B"])
    assert priority == {"A": 0, "B": 1}
    prs = [make_pr(label="C"), make_pr(label="B"), make_pr(label="A")]
    assert select_by_attribution(prs, priority).label == "A"
    assert select_by_attribution(prs[:2], priority).label == "B"
