"""
Configuration from rmlines.toml.

    [render]
    width = 1404
    height = 1872
    colored_annotations = false
    verbose = false

    [export]
    backup_dir = "xochitl"
    output_dir = "output/svg"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli

from .renderer import RenderOptions

DEFAULT_CONFIG = Path("rmlines.toml")


class ConfigError(ValueError):
    """A config value has the wrong type."""


@dataclass
class Config:
    """Parsed rmlines.toml."""
    render: RenderOptions = field(default_factory=RenderOptions)
    backup_dir: Optional[Path] = None
    output_dir: Optional[Path] = None


def _get(section: dict[str, Any], name: str, types: tuple, default):
    value = section.get(name, default)
    # bool is an int subclass, don't accept it as a number
    if isinstance(value, bool) and bool not in types:
        raise ConfigError(f"{name}: expected {types[0].__name__}, got bool")
    if not isinstance(value, types):
        raise ConfigError(
            f"{name}: expected {types[0].__name__}, got {type(value).__name__}"
        )
    return value


def parse_config(data: dict[str, Any]) -> Config:
    """Build a Config from already-loaded TOML data."""
    render = data.get("render", {})
    defaults = RenderOptions()
    try:
        options = RenderOptions(
            width=float(_get(render, "width", (float, int), defaults.width)),
            height=float(_get(render, "height", (float, int), defaults.height)),
            colored_annotations=_get(render, "colored_annotations", (bool,),
                                     defaults.colored_annotations),
            verbose=_get(render, "verbose", (bool,), defaults.verbose),
        )
    except ConfigError as e:
        raise ConfigError(f"[render] {e}") from None
    except ValueError as e:
        raise ConfigError(f"[render] {e}") from e

    export = data.get("export", {})
    backup_dir = export.get("backup_dir")
    output_dir = export.get("output_dir")
    for name, value in (("backup_dir", backup_dir), ("output_dir", output_dir)):
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"[export] {name}: expected str")

    return Config(
        render=options,
        backup_dir=Path(backup_dir) if backup_dir else None,
        output_dir=Path(output_dir) if output_dir else None,
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load rmlines.toml, or return defaults if it doesn't exist."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG
    if not path.exists():
        return Config()
    with open(path, "rb") as f:
        try:
            data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}") from e
    return parse_config(data)
