"""CLI for prqueue."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from prqueue.config import CONFIG_FILE, DEFAULT_STATE_DIR, Config, load_config
from prqueue.config_commands import config_app
from prqueue.display import (
    format_details,
    format_line,
    format_summary,
    format_sync_header,
    sort_for_display,
)
from prqueue.errors import ConfigError, InputError, PrQueueError
from prqueue.source import Source
from prqueue.sources import GhCliSource, GitHubSource
from prqueue.storage import FileStorage
from prqueue.sync import Synchronizer
from prqueue.tracker import Tracker

logger = structlog.get_logger()

app = App(
    help="prqueue - synchronize and display the state of your GitHub pull requests",
)

app.command(config_app)


@dataclass
class Options:
    """Global options shared by all commands."""

    state_dir: Path = DEFAULT_STATE_DIR
    config_path: Path | None = None

    @property
    def effective_config_path(self) -> Path:
        return self.config_path or self.state_dir / CONFIG_FILE


options = Options()


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level, logging to stderr."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def get_config() -> Config:
    return load_config(options.effective_config_path)


def get_tracker() -> Tracker:
    return Tracker(FileStorage(options.state_dir))


def get_source(config: Config) -> Source:
    """Get the configured pull request source."""
    if config.source == "gh":
        return GhCliSource(limit=config.limit)
    elif config.source == "github":
        token = config.resolve_token()
        if not token:
            raise ConfigError(
                "GitHub token not configured. Set 'github_token' in the config file or the GITHUB_TOKEN variable"
            )
        return GitHubSource(token=token, limit=config.limit)
    else:
        raise ConfigError(f"Unknown source: {config.source}")


@app.command
def sync(once: bool = False) -> None:
    """Fetch pull requests for every query and replace the stored snapshot.

    Args:
        once: Run a single pass instead of looping forever
    """
    config = get_config()
    synchronizer = Synchronizer(FileStorage(options.state_dir), get_source(config))
    logger.info("Running sync", once=once)
    if once:
        synchronizer.run_once(config)
    else:
        synchronizer.run_forever(config)


@app.command(name="list")
def list_prs() -> None:
    """List pull requests, one per line, in a format suitable for fzf."""
    config = get_config()
    tracker = get_tracker()
    view_mode = tracker.view_mode()
    views = sort_for_display(tracker.list_pull_requests(), config.display_order, view_mode)

    print(format_sync_header(tracker.last_sync_time(), view_mode))
    repo_width = max((len(v.pull_request.repository.name) for v in views), default=0)
    for view in views:
        print(format_line(view, config, repo_width))


@app.command
def show(url: str) -> None:
    """Show details of a pull request. Prints nothing if it is unknown."""
    view = get_tracker().get_pull_request(url)
    if view is not None:
        print(format_details(view))


@app.command
def summary() -> None:
    """Print a compact summary suitable for a status bar."""
    tracker = get_tracker()
    if tracker.is_out_of_sync():
        print("GH err!", end="")
        return
    print(format_summary(tracker.summary()), end="")


@app.command
def mark_open(
    url: str,
    exit_error: Annotated[bool, Parameter(name=["--exit-error", "-e"])] = False,
) -> None:
    """Mark a pull request as opened.

    Args:
        url: Pull request URL
        exit_error: Exit with status 1 if it was already marked, to chain fzf bindings
    """
    changed = get_tracker().mark_opened(url)
    if not changed and exit_error:
        print(f"URL already marked as opened, doing nothing: {url}", file=sys.stderr)
        sys.exit(1)


@app.command
def mark_mute(url: str) -> None:
    """Toggle the mute flag of a pull request."""
    is_mute = get_tracker().toggle_mute(url)
    print("Muted" if is_mute else "Unmuted")


@app.command
def add_note(url: str, note: str = "", file: Path | None = None) -> None:
    """Attach a note to a pull request. An empty note clears it.

    Args:
        url: Pull request URL
        note: Note text
        file: Read the note from this file instead
    """
    if file is not None:
        try:
            note = file.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Cannot read note file {file}: {e}") from e
    get_tracker().set_note(url, note)


@app.command
def cycle_view() -> None:
    """Switch to the next view mode."""
    print(get_tracker().cycle_view_mode())


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
    state_dir: Path = DEFAULT_STATE_DIR,
    config: Path | None = None,
) -> None:
    """Main entry point with global options.

    Args:
        log_level: Minimum level of log messages written to stderr
        state_dir: Directory where state is stored
        config: Config file, defaults to config.yaml in the state directory
    """
    configure_logging(log_level)
    options.state_dir = state_dir
    options.config_path = config
    try:
        app(tokens)
    except PrQueueError as e:
        logger.error("Command failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    app.meta()
