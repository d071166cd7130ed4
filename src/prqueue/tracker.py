"""Read façade joining stored pull requests with user annotations."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from prqueue.errors import PullRequestNotFoundError
from prqueue.flags import Flags, compute_flags
from prqueue.models import VIEW_MODES, Annotation, PullRequest, UserState
from prqueue.storage import Storage

logger = structlog.get_logger()

OUT_OF_SYNC_PERIOD = timedelta(minutes=5)


@dataclass(frozen=True)
class PullRequestView:
    """A pull request with its annotation and derived flags."""

    pull_request: PullRequest
    annotation: Annotation
    flags: Flags
    is_mute: bool


@dataclass(frozen=True)
class Summary:
    """Counts of unmuted pull requests, each counted under its primary flag."""

    total: int = 0
    new: int = 0
    updated: int = 0
    commented: int = 0


def cycle_view_mode(mode: str) -> str:
    """Return the view mode following ``mode``. Unknown modes restart the cycle."""
    if mode in VIEW_MODES:
        return VIEW_MODES[(VIEW_MODES.index(mode) + 1) % len(VIEW_MODES)]
    return VIEW_MODES[0]


class Tracker:
    """Entry point for consumers reading or annotating the attention queue."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def _view(self, pr: PullRequest, state: UserState) -> PullRequestView:
        annotation = state.get(pr.url)
        is_mute = annotation.is_mute if state.has(pr.url) else pr.default_mute
        return PullRequestView(
            pull_request=pr,
            annotation=annotation,
            flags=compute_flags(pr, annotation),
            is_mute=is_mute,
        )

    def _find(self, url: str) -> PullRequest | None:
        for pr in self.storage.get_pull_requests():
            if pr.url == url:
                return pr
        return None

    def list_pull_requests(self) -> list[PullRequestView]:
        prs = self.storage.get_pull_requests()
        state = self.storage.get_user_state()
        return [self._view(pr, state) for pr in prs]

    def get_pull_request(self, url: str) -> PullRequestView | None:
        """Return the view for ``url``, or None if it is not in the snapshot."""
        pr = self._find(url)
        if pr is None:
            logger.debug("Pull request not found", url=url)
            return None
        return self._view(pr, self.storage.get_user_state())

    def last_sync_time(self) -> datetime | None:
        return self.storage.get_sync_time()

    def is_out_of_sync(self, max_age: timedelta = OUT_OF_SYNC_PERIOD, now: datetime | None = None) -> bool:
        """Whether the snapshot was never synced or is older than ``max_age``."""
        sync_time = self.last_sync_time()
        if sync_time is None:
            return True
        now = now or datetime.now(timezone.utc)
        return sync_time < now - max_age

    def summary(self) -> Summary:
        counts = {"new": 0, "updated": 0, "comments": 0}
        total = 0
        for view in self.list_pull_requests():
            if view.is_mute:
                continue
            total += 1
            primary = view.flags.primary()
            if primary is not None:
                counts[primary] += 1
        return Summary(total=total, new=counts["new"], updated=counts["updated"], commented=counts["comments"])

    def toggle_mute(self, url: str) -> bool:
        """Flip the effective mute state of ``url`` and return the new state."""
        pr = self._find(url)
        default_mute = pr.default_mute if pr is not None else False
        return self.storage.toggle_mute(url, default_mute=default_mute)

    def set_note(self, url: str, note: str) -> None:
        self.storage.set_note(url, note)

    def mark_opened(self, url: str) -> bool:
        """Acknowledge the current version of ``url``.

        Returns:
            True if the annotation changed, False if already acknowledged

        Raises:
            PullRequestNotFoundError: ``url`` is not in the stored snapshot
        """
        pr = self._find(url)
        if pr is None:
            raise PullRequestNotFoundError(url)
        return self.storage.mark_opened(url, pr)

    def view_mode(self) -> str:
        return self.storage.get_user_state().settings.view_mode

    def cycle_view_mode(self) -> str:
        state = self.storage.get_user_state()
        previous = state.settings.view_mode
        state.settings.view_mode = cycle_view_mode(previous)
        logger.info("Changing view mode", previous=previous, view_mode=state.settings.view_mode)
        self.storage.write_user_state(state)
        return state.settings.view_mode
