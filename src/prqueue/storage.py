"""Persistent storage for pull request snapshots and user annotations."""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from prqueue.errors import StorageCorruptError, StorageError
from prqueue.models import Annotation, PullRequest, UserState

logger = structlog.get_logger()

PULL_REQUESTS_FILE = "pull_requests.json"
USER_STATE_FILE = "user_state.json"


class Storage(ABC):
    """Abstract base class for prqueue state storage."""

    @abstractmethod
    def reset_pull_requests(self, prs: list[PullRequest]) -> None:
        """Replace the whole pull request snapshot."""
        pass

    @abstractmethod
    def get_pull_requests(self) -> list[PullRequest]:
        """Return the stored pull request snapshot."""
        pass

    @abstractmethod
    def get_sync_time(self) -> datetime | None:
        """Return when the snapshot was last replaced, or None if never."""
        pass

    @abstractmethod
    def get_user_state(self) -> UserState:
        """Return all annotations and settings."""
        pass

    @abstractmethod
    def write_user_state(self, state: UserState) -> None:
        """Persist all annotations and settings."""
        pass

    def get_annotation(self, url: str) -> Annotation:
        """Return the annotation for ``url`` or a zero-value one. Never persists."""
        return self.get_user_state().get(url)

    def set_annotation(self, url: str, annotation: Annotation) -> None:
        """Replace the annotation for ``url``."""
        state = self.get_user_state()
        state.set(url, annotation)
        self.write_user_state(state)

    def toggle_mute(self, url: str, default_mute: bool = False) -> bool:
        """Flip the mute flag for ``url``.

        Args:
            url: Pull request URL
            default_mute: Mute state assumed when no annotation exists yet

        Returns:
            The new mute state
        """
        state = self.get_user_state()
        annotation = state.get(url) if state.has(url) else Annotation(is_mute=default_mute)
        annotation.is_mute = not annotation.is_mute
        logger.info("Changing mute state", url=url, is_mute=annotation.is_mute)
        state.set(url, annotation)
        self.write_user_state(state)
        return annotation.is_mute

    def set_note(self, url: str, note: str) -> None:
        """Attach a free-text note to ``url``. An empty note clears it."""
        logger.info("Setting note", url=url, note=note)
        state = self.get_user_state()
        annotation = state.get(url)
        annotation.note = note
        state.set(url, annotation)
        self.write_user_state(state)

    def mark_opened(self, url: str, pr: PullRequest) -> bool:
        """Acknowledge the current version of a pull request.

        Returns:
            True if the annotation changed, False if this exact version was
            already acknowledged
        """
        state = self.get_user_state()
        annotation = state.get(url)
        if annotation.opened_at == pr.updated_at and annotation.last_comment_count == pr.comments_count:
            logger.info("Pull request already acknowledged", url=url)
            return False

        logger.info("Marking pull request as opened", url=url, updated_at=pr.updated_at.isoformat())
        annotation.opened_at = pr.updated_at
        annotation.last_comment_count = pr.comments_count
        state.set(url, annotation)
        self.write_user_state(state)
        return True


class FileStorage(Storage):
    """Storage backed by two JSON files in a state directory.

    Every write goes to a temporary file in the same directory which is then
    renamed over the target, so a reader never sees a partial file. There is no
    locking: two processes writing the same file race and the last write wins.
    """

    def __init__(self, state_dir: Path | str) -> None:
        self.state_dir = Path(state_dir)
        self.pull_requests_path = self.state_dir / PULL_REQUESTS_FILE
        self.user_state_path = self.state_dir / USER_STATE_FILE
        logger.debug("File storage initialized", state_dir=str(self.state_dir))

    def reset_pull_requests(self, prs: list[PullRequest]) -> None:
        logger.debug("Resetting pull requests", count=len(prs))
        write_atomic(self.pull_requests_path, [pr.to_dict() for pr in prs])

    def get_pull_requests(self) -> list[PullRequest]:
        data = read_json(self.pull_requests_path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageCorruptError(f"Expected a list of pull requests in {self.pull_requests_path}")
        try:
            return [PullRequest.from_dict(record) for record in data]
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Invalid pull request snapshot", path=str(self.pull_requests_path), error=str(e))
            raise StorageCorruptError(f"Invalid pull request in {self.pull_requests_path}: {e!r}") from e

    def get_sync_time(self) -> datetime | None:
        try:
            mtime = self.pull_requests_path.stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def get_user_state(self) -> UserState:
        data = read_json(self.user_state_path)
        if data is None:
            return UserState()
        try:
            return UserState.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.error("Invalid user state", path=str(self.user_state_path), error=str(e))
            raise StorageCorruptError(f"Invalid user state in {self.user_state_path}: {e}") from e

    def write_user_state(self, state: UserState) -> None:
        write_atomic(self.user_state_path, state.to_dict())


def read_json(path: Path) -> Any:
    """Read a JSON document.

    Returns:
        The parsed document, or None if the file does not exist

    Raises:
        StorageCorruptError: The file exists but is not valid JSON
        StorageError: The file could not be read
    """
    logger.debug("Reading state file", path=str(path))
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("State file does not exist, using empty state", path=str(path))
        return None
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}") from e

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse state file", path=str(path), error=str(e))
        raise StorageCorruptError(f"Failed to parse {path}: {e}") from e


def write_atomic(target: Path, data: Any) -> None:
    """Write ``data`` as JSON to ``target`` via a temporary file and rename.

    On failure the temporary file is removed and ``target`` keeps its previous
    content.

    Raises:
        StorageError: The file could not be written
    """
    logger.debug("Writing state file", path=str(target))
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    except OSError as e:
        raise StorageError(f"Failed to create temporary file for {target}: {e}") from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=1)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except OSError as e:
        logger.error("Failed to write state file", path=str(target), error=str(e))
        raise StorageError(f"Failed to write {target}: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)
    logger.debug("Wrote state file", path=str(target))
