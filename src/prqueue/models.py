"""Data models for prqueue."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

VIEW_MODE_REGULAR = "regular"
VIEW_MODE_MUTE_TOP = "mute-top"
VIEW_MODE_HIDE_MUTE = "hide-mute"
VIEW_MODES = [VIEW_MODE_REGULAR, VIEW_MODE_MUTE_TOP, VIEW_MODE_HIDE_MUTE]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as produced by GitHub or by ``format_timestamp``.

    Naive timestamps are assumed to be UTC.
    """
    if not isinstance(value, str):
        raise TypeError(f"Expected timestamp string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def _check_keys(data: dict[str, Any], allowed: set[str], what: str) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"Expected {what} object, got {type(data).__name__}")
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown {what} field(s): {', '.join(sorted(unknown))}")


def _check_type(value: Any, expected: type, name: str) -> Any:
    # bool is a subclass of int and must not pass as a count
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ValueError(f"Field '{name}' must be {expected.__name__}, got {type(value).__name__}")
    return value


def _as_object(data: Any, what: str) -> dict[str, Any]:
    # null nested objects are treated as empty
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"Expected {what} object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class Author:
    """Author of a pull request."""

    login: str = ""
    id: str = ""
    is_bot: bool = False
    type: str = ""
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "is_bot": self.is_bot, "login": self.login, "type": self.type, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Author":
        data = _as_object(data, "author")
        return cls(
            login=_check_type(data.get("login", ""), str, "author.login"),
            id=_check_type(data.get("id", ""), str, "author.id"),
            is_bot=_check_type(data.get("is_bot", False), bool, "author.is_bot"),
            type=_check_type(data.get("type", ""), str, "author.type"),
            url=_check_type(data.get("url", ""), str, "author.url"),
        )


@dataclass(frozen=True)
class Repository:
    """Repository a pull request belongs to."""

    name: str = ""
    name_with_owner: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "nameWithOwner": self.name_with_owner}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Repository":
        data = _as_object(data, "repository")
        return cls(
            name=_check_type(data.get("name", ""), str, "repository.name"),
            name_with_owner=_check_type(data.get("nameWithOwner", ""), str, "repository.nameWithOwner"),
        )


@dataclass(frozen=True)
class PullRequest:
    """Snapshot of a pull request as returned by a query.

    ``label`` and ``default_mute`` are not part of the fetched record. They are
    assigned during aggregation from the query the pull request is attributed to.
    """

    url: str
    number: int
    title: str
    author: Author
    repository: Repository
    comments_count: int
    created_at: datetime
    updated_at: datetime
    body: str = ""
    state: str = "OPEN"
    id: str = ""
    label: str = ""
    default_mute: bool = False

    def __post_init__(self) -> None:
        if self.comments_count < 0:
            raise ValueError(f"comments_count must be >= 0, got {self.comments_count}")

    def with_label(self, label: str, default_mute: bool = False) -> "PullRequest":
        """Return a copy attributed to the query ``label``."""
        return replace(self, label=label, default_mute=default_mute)

    def to_dict(self) -> dict[str, Any]:
        return {
            "author": self.author.to_dict(),
            "body": self.body,
            "commentsCount": self.comments_count,
            "createdAt": format_timestamp(self.created_at),
            "id": self.id,
            "number": self.number,
            "repository": self.repository.to_dict(),
            "state": self.state,
            "title": self.title,
            "updatedAt": format_timestamp(self.updated_at),
            "url": self.url,
            "_meta": {"label": self.label, "default_mute": self.default_mute},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PullRequest":
        """Build a pull request from gh JSON output or from a stored snapshot.

        Raises:
            KeyError: A required field is missing
            TypeError: The record is not an object or a field has the wrong shape
            ValueError: A field has an invalid value
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected pull request object, got {type(data).__name__}")
        meta = _as_object(data.get("_meta"), "_meta")
        return cls(
            url=_check_type(data["url"], str, "url"),
            number=_check_type(data["number"], int, "number"),
            title=_check_type(data.get("title", ""), str, "title"),
            author=Author.from_dict(data.get("author")),
            repository=Repository.from_dict(data.get("repository")),
            comments_count=_check_type(data.get("commentsCount", 0), int, "commentsCount"),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
            body=_check_type(data.get("body") or "", str, "body"),
            state=_check_type(data.get("state", "OPEN"), str, "state"),
            id=_check_type(data.get("id", ""), str, "id"),
            label=_check_type(meta.get("label", ""), str, "_meta.label"),
            default_mute=_check_type(meta.get("default_mute", False), bool, "_meta.default_mute"),
        )


@dataclass
class Annotation:
    """User-owned state layered on top of a pull request."""

    opened_at: datetime | None = None
    last_comment_count: int = 0
    note: str = ""
    is_mute: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "opened_at": format_timestamp(self.opened_at) if self.opened_at else None,
            "last_comment_count": self.last_comment_count,
            "note": self.note,
            "is_mute": self.is_mute,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Annotation":
        _check_keys(data, {"opened_at", "last_comment_count", "note", "is_mute"}, "annotation")
        opened_at = data.get("opened_at")
        return cls(
            opened_at=parse_timestamp(opened_at) if opened_at is not None else None,
            last_comment_count=_check_type(data.get("last_comment_count", 0), int, "last_comment_count"),
            note=_check_type(data.get("note", ""), str, "note"),
            is_mute=_check_type(data.get("is_mute", False), bool, "is_mute"),
        )


@dataclass
class Settings:
    """Persisted user preferences."""

    view_mode: str = VIEW_MODE_REGULAR

    def to_dict(self) -> dict[str, Any]:
        return {"view_mode": self.view_mode}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        _check_keys(data, {"view_mode"}, "settings")
        view_mode = _check_type(data.get("view_mode", VIEW_MODE_REGULAR), str, "view_mode")
        if view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view_mode}")
        return cls(view_mode=view_mode)


@dataclass
class UserState:
    """Annotations keyed by pull request URL, plus settings.

    ``get`` never inserts. A missing URL yields a fresh zero-value ``Annotation``
    which only becomes persistent once passed back through ``set``.
    """

    per_url: dict[str, Annotation] = field(default_factory=dict)
    settings: Settings = field(default_factory=Settings)

    def get(self, url: str) -> Annotation:
        stored = self.per_url.get(url)
        if stored is None:
            return Annotation()
        return replace(stored)

    def set(self, url: str, annotation: Annotation) -> None:
        self.per_url[url] = annotation

    def has(self, url: str) -> bool:
        return url in self.per_url

    def to_dict(self) -> dict[str, Any]:
        return {
            "per_url": {url: annotation.to_dict() for url, annotation in self.per_url.items()},
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserState":
        """Parse a stored user state, rejecting unknown fields.

        Raises:
            TypeError: The document has the wrong shape
            ValueError: Unknown fields or invalid values
        """
        _check_keys(data, {"per_url", "settings"}, "user state")
        per_url = data.get("per_url") or {}
        if not isinstance(per_url, dict):
            raise TypeError("Field 'per_url' must be an object")
        return cls(
            per_url={url: Annotation.from_dict(record) for url, record in per_url.items()},
            settings=Settings.from_dict(data.get("settings") or {}),
        )


@dataclass(frozen=True)
class Query:
    """A named query run against the pull request source."""

    source_arg: str
    label: str
    short_name: str = " "
    mute: bool = False
