"""Notification flags derived from a pull request and its annotation."""

from dataclasses import dataclass

from prqueue.models import Annotation, PullRequest


@dataclass(frozen=True)
class Flags:
    """Independent notification flags. Any combination may be set."""

    is_new: bool = False
    is_updated: bool = False
    has_new_comments: bool = False

    def primary(self) -> str | None:
        """Return the single flag to report when only one can be shown.

        New takes precedence over updated, which takes precedence over comments.
        """
        if self.is_new:
            return "new"
        if self.is_updated:
            return "updated"
        if self.has_new_comments:
            return "comments"
        return None


def compute_flags(pr: PullRequest, annotation: Annotation) -> Flags:
    """Compute notification flags for a pull request.

    Args:
        pr: Current snapshot of the pull request
        annotation: The user's annotation for the pull request (zero value if none)

    Returns:
        Flags with all three conditions evaluated independently
    """
    opened_at = annotation.opened_at
    return Flags(
        is_new=opened_at is None,
        is_updated=opened_at is not None and pr.updated_at > opened_at,
        has_new_comments=pr.comments_count > annotation.last_comment_count,
    )
