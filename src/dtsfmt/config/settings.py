#!/usr/bin/env python3
"""
DTSFMT SETTINGS - Project Configuration
---------------------------------------
Reads ``.dtsfmt.yaml``, found by walking up from the file or directory
being processed. Every key is optional:

    maxLineLength: 100
    warnings: true
    includeCommentsInLength: false
    useTabs: true
    tabWidth: 8
    extensions: [.dts, .dtsi, .overlay]

Command line flags override file values; see ``Settings.merged``.

Author: dtsfmt Team
Date: 2026-10-18
"""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from dtsfmt.core.models import FormatOptions

logger = logging.getLogger("dtsfmt.config")

CONFIG_FILENAME = ".dtsfmt.yaml"
DEFAULT_EXTENSIONS = (".dts", ".dtsi", ".overlay")

# YAML key -> (Settings attribute, accepted type)
KEY_MAP = {
    "maxLineLength": ("max_line_length", int),
    "warnings": ("warnings", bool),
    "includeCommentsInLength": ("include_comments_in_length", bool),
    "useTabs": ("use_tabs", bool),
    "tabWidth": ("tab_width", int),
    "extensions": ("extensions", list),
}


class ConfigError(ValueError):
    """Raised for unreadable or invalid configuration files."""

    def __init__(self, message: str, path: Optional[Path] = None, key: Optional[str] = None):
        self.path = path
        self.key = key
        location = f"{path}: " if path else ""
        super().__init__(f"{location}{message}")


@dataclass(frozen=True)
class Settings:
    """Everything the formatter and the diagnostics pass can be told."""
    max_line_length: int = 80
    warnings: bool = True
    include_comments_in_length: bool = True
    use_tabs: bool = True
    tab_width: int = 8
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    source: Optional[Path] = None      # File the values came from, if any

    def __post_init__(self):
        if self.max_line_length < 1:
            raise ConfigError(f"maxLineLength must be >= 1, got {self.max_line_length}",
                              self.source, "maxLineLength")
        if self.tab_width < 1:
            raise ConfigError(f"tabWidth must be >= 1, got {self.tab_width}",
                              self.source, "tabWidth")

    def to_format_options(self) -> FormatOptions:
        return FormatOptions(
            use_tabs=self.use_tabs,
            tab_width=self.tab_width,
            max_line_length=self.max_line_length,
        )

    def merged(self, **overrides: Any) -> "Settings":
        """Returns a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        changes = {}
        for name, value in overrides.items():
            if name not in known:
                raise ConfigError(f"Unknown setting '{name}'", self.source, name)
            if value is not None:
                changes[name] = value
        return replace(self, **changes) if changes else self


def find_config(start: Union[str, Path]) -> Optional[Path]:
    """Nearest ``.dtsfmt.yaml`` in ``start`` or any of its parents."""
    current = Path(start).resolve()
    if current.is_file() or not current.exists():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _normalize_extensions(values: list, path: Path) -> List[str]:
    extensions = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"extensions must be a list of strings, got {value!r}", path, "extensions")
        ext = value.strip().lower()
        extensions.append(ext if ext.startswith('.') else f".{ext}")
    return extensions


def parse_settings(data: Optional[Dict[str, Any]], path: Optional[Path] = None) -> Settings:
    """Validates a mapping with the YAML key names and builds Settings."""
    if data is None:
        return Settings(source=path)
    if not isinstance(data, dict):
        raise ConfigError("Top level must be a mapping", path)

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in KEY_MAP:
            raise ConfigError(f"Unknown key '{key}'", path, key)
        attribute, expected = KEY_MAP[key]
        # bool is a subclass of int; 'tabWidth: true' is still a mistake
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"'{key}' must be of type {expected.__name__}, got {value!r}", path, key)
        if attribute == "extensions":
            value = _normalize_extensions(value, path)
        values[attribute] = value

    return Settings(source=path, **values)


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Loads settings from ``path``, or returns the defaults when ``path`` is
    None. Raises ConfigError on unreadable files, YAML syntax errors,
    unknown keys and out-of-range values.
    """
    if path is None:
        return Settings()

    config_path = Path(path)
    try:
        text = config_path.read_text(encoding='utf-8-sig')
    except OSError as e:
        raise ConfigError(f"Cannot read configuration: {e}", config_path)

    yaml = YAML(typ='safe')
    try:
        data = yaml.load(text)
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", config_path)

    settings = parse_settings(data, config_path)
    logger.debug(f"Loaded settings from {config_path}")
    return settings
