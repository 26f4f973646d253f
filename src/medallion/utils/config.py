"""Configuration management for medallion.

Loads configuration from medallion.toml in the current working directory.
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from rich.console import Console

console = Console(stderr=True)

CONFIG_FILENAME = "medallion.toml"


class ConfigSettings(BaseModel):
    """Configuration settings for medallion.

    All fields are optional. None values indicate the setting was not
    specified in the config file.
    """

    store: Optional[str] = None
    database_url: Optional[str] = None
    snapshot: Optional[str] = None
    lineage_depth: Optional[int] = Field(default=None, ge=0)
    flow_depth: Optional[int] = Field(default=None, ge=1)
    search_limit: Optional[int] = Field(default=None, ge=1)
    max_workers: Optional[int] = Field(default=None, ge=1)
    output_format: Optional[Literal["text", "json"]] = None
    diagram_format: Optional[Literal["mermaid", "mermaid-markdown", "dot"]] = None
    log_level: Optional[str] = None

    def store_config(self) -> Dict[str, Any]:
        """Options passed to ``LineageStore.configure`` for the chosen store."""
        config: Dict[str, Any] = {}
        if self.database_url:
            config["database_url"] = self.database_url
        if self.snapshot:
            config["snapshot"] = self.snapshot
        return config


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find medallion.toml in the given directory.

    Args:
        start_path: Directory to look in. Defaults to the current working
            directory.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()

    config_path = start_path / CONFIG_FILENAME
    if config_path.is_file():
        return config_path
    return None


def _warn(message: str) -> ConfigSettings:
    console.print(f"[yellow]Warning:[/yellow] {message}")
    console.print("[yellow]Using default settings[/yellow]")
    return ConfigSettings()


def load_config(config_path: Optional[Path] = None) -> ConfigSettings:
    """Load configuration from medallion.toml.

    Priority order:
    1. Explicit config_path parameter
    2. medallion.toml in current working directory
    3. Empty ConfigSettings (all None)

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        ConfigSettings with values from the ``[medallion]`` table, or an empty
        ConfigSettings when the file is missing, unreadable or invalid.
        Unknown keys are ignored.
    """
    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        return ConfigSettings()

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        return _warn(f"Failed to parse {config_path}: {e}")
    except OSError as e:
        return _warn(f"Could not read {config_path}: {e}")

    section = toml_data.get("medallion", {})
    if not isinstance(section, dict):
        return _warn(f"Invalid configuration in {config_path}: [medallion] must be a table")

    try:
        return ConfigSettings(**section)
    except ValidationError as e:
        return _warn(f"Invalid configuration in {config_path}: {e}")
