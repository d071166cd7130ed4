"""Configuration commands for prqueue CLI."""

import yaml
from cyclopts import App

from prqueue.config import DEFAULT_CONFIG_YAML, write_default_config

config_app = App(name="config", help="Manage configuration")


@config_app.command
def init(force: bool = False) -> None:
    """Write the default configuration file.

    Args:
        force: Overwrite an existing configuration file
    """
    from prqueue.cli import options

    path = options.effective_config_path
    write_default_config(path, force=force)
    print(f"Wrote default config to {path}")


@config_app.command
def show() -> None:
    """Print the effective configuration."""
    from prqueue.cli import get_config

    print(yaml.safe_dump(get_config().to_dict(), default_flow_style=False, sort_keys=False), end="")


@config_app.command
def default() -> None:
    """Print the built-in default configuration."""
    print(DEFAULT_CONFIG_YAML, end="")
