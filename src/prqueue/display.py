"""Plain-text rendering helpers used by the CLI."""

from datetime import datetime, timedelta, timezone

from prqueue.config import Config
from prqueue.models import VIEW_MODE_HIDE_MUTE, VIEW_MODE_MUTE_TOP
from prqueue.tracker import PullRequestView, Summary

NBSP = "\u00a0"


def sort_for_display(views: list[PullRequestView], display_order: list[str], view_mode: str) -> list[PullRequestView]:
    """Order views by display priority, repository and number, then apply the view mode."""
    priority = {label: i for i, label in enumerate(display_order)}
    unlisted = len(priority)
    ordered = sorted(
        views,
        key=lambda v: (
            priority.get(v.pull_request.label, unlisted),
            v.pull_request.repository.name,
            v.pull_request.number,
        ),
    )
    if view_mode == VIEW_MODE_MUTE_TOP:
        return [v for v in ordered if not v.is_mute] + [v for v in ordered if v.is_mute]
    if view_mode == VIEW_MODE_HIDE_MUTE:
        return [v for v in ordered if not v.is_mute]
    return ordered


def format_flags(view: PullRequestView) -> str:
    flags = view.flags
    return "".join(
        [
            "N" if flags.is_new else NBSP,
            "U" if flags.is_updated else NBSP,
            "C" if flags.has_new_comments else NBSP,
        ]
    )


def format_line(view: PullRequestView, config: Config, repo_width: int = 0) -> str:
    """Format one fzf line: the URL, a tab, then the visible description."""
    pr = view.pull_request
    parts = [
        format_flags(view),
        pr.repository.name.ljust(repo_width),
        config.short_name_for(pr.label),
        f"#{pr.number:<5d}",
        pr.title,
    ]
    line = " ".join(parts)
    if view.annotation.note:
        line += f" [{view.annotation.note}]"
    if view.is_mute:
        line += " (muted)"
    return f"{pr.url}\t{line}"


def pretty_duration(delta: timedelta) -> str:
    """Render a duration compactly, e.g. ``2d3h`` or ``5m``."""
    seconds = max(int(delta.total_seconds()), 0)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    parts = [f"{value}{unit}" for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (seconds, "s")) if value]
    return "".join(parts) or "0s"


def format_sync_header(sync_time: datetime | None, view_mode: str, now: datetime | None = None) -> str:
    # The leading X fills the URL column so fzf shows the rest as the visible part
    if sync_time is None:
        return f"X not synced | {view_mode}"
    now = now or datetime.now(timezone.utc)
    return f"X synced {pretty_duration(now - sync_time)} ago | {view_mode}"


def format_details(view: PullRequestView, now: datetime | None = None) -> str:
    """Multi-line description of a single pull request."""
    pr = view.pull_request
    now = now or datetime.now(timezone.utc)
    flag_words = []
    if view.flags.is_new:
        flag_words.append("NEW")
    if view.flags.is_updated:
        flag_words.append("UPDATED")
    if view.flags.has_new_comments:
        flag_words.append("COMMENTS")
    created = pretty_duration(now - pr.created_at)
    updated = pretty_duration(now - pr.updated_at)
    lines = [
        pr.repository.name_with_owner,
        f"(#{pr.number}) {pr.title}",
        "",
        " ".join(flag_words),
        f"{pr.author.login} ({pr.label})",
        f"Created {created} ago, updated {updated} ago",
        f"{pr.comments_count} comment(s)",
        f"[{view.annotation.note}]" if view.annotation.note else "",
        "",
        pr.body,
    ]
    return "\n".join(lines)


def format_summary(summary: Summary) -> str:
    """Compact status-bar string such as ``GH5:N1:U2``."""
    parts = [f"GH{summary.total}"]
    if summary.new:
        parts.append(f"N{summary.new}")
    if summary.updated:
        parts.append(f"U{summary.updated}")
    if summary.commented:
        parts.append(f"C{summary.commented}")
    return ":".join(parts)
