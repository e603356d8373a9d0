"""Shared helpers for CLI commands."""

import os
from pathlib import Path

import typer
from rich.console import Console

from src.member_bridge.runtime.config.config_data import ConfigData
from src.member_bridge.runtime.config.config_template import load_templated_yaml
from src.member_bridge.runtime.context import get_config, set_config

console = Console()


def load_cli_config(config_path: Path | None) -> ConfigData:
    """Activate ``config_path`` if given, else keep the default configuration."""
    if config_path is None:
        return get_config()
    try:
        config = load_templated_yaml(config_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]❌ Failed to load configuration {config_path}: {e}[/red]")
        raise typer.Exit(code=1) from e
    set_config(config)
    # Picked up by the app module when `serve` imports it
    os.environ["MEMBER_BRIDGE_CONFIG"] = str(config_path)
    return config
