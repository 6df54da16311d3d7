#!/usr/bin/env python3
"""
DTSFMT CORE MODELS
------------------
Defines the fundamental data structures used across the dtsfmt engine.
Every record here is transient: it lives for a single format or lint
invocation and is never shared between documents.

Author: dtsfmt Team
Date: 2026-10-18
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class FormatOptions:
    """
    Indentation and width settings for one formatting pass.

    Immutable for the duration of a pass; the pipeline, layout engine and
    value formatter all read the same instance.
    """
    use_tabs: bool = True        # Indent with '\t' (True) or tab_width spaces
    tab_width: int = 8           # Tab stop width, also the space indent unit
    max_line_length: int = 80    # Maximum visual width of an emitted line

    def __post_init__(self):
        if int(self.tab_width) < 1:
            raise ValueError(f"tab_width must be >= 1, got {self.tab_width}")
        if int(self.max_line_length) < 1:
            raise ValueError(f"max_line_length must be >= 1, got {self.max_line_length}")


@dataclass
class SourceLine:
    """
    One physical line moving through the layout stages.

    The layout engine fills in depth and continuation; the value formatter
    and comment reflow rewrite ``text`` in place.
    """
    text: str                       # Fully rendered line (indent + content)
    content: str = ""               # Trimmed content without indentation
    depth: int = 0                  # Brace nesting depth used for the indent
    continuation: str = ""          # Extra indent for comma continuations
    terminal: Optional[str] = None  # ';', ',' or None (code-only, comments ignored)
    in_comment: bool = False        # Line starts inside a /* ... */ span
    directive: bool = False         # Preprocessor line, emitted verbatim


@dataclass(frozen=True)
class PlainEntry:
    """A comma-separated value that is not a ``<key payload>`` cell array."""
    text: str
    comment: str = ""
    is_last: bool = False


@dataclass(frozen=True)
class KeyValueEntry:
    """
    A ``<KEY V1 V2 ...>`` cell array with at least two tokens.

    ``payload`` is everything after the key and its separating whitespace,
    kept byte-for-byte.
    """
    text: str
    key: str
    payload: str
    comment: str = ""
    is_last: bool = False


ValueEntry = Union[PlainEntry, KeyValueEntry]


@dataclass(frozen=True)
class Diagnostic:
    """A single line-length warning."""
    line: int               # Zero-based line index
    length: int             # Visual length (1-based column after the last char)
    message: str
    severity: str = "warning"
    source: str = "devicetree"


@dataclass(frozen=True)
class FormatResult:
    """Outcome of one format invocation. ``text`` is empty on failure."""
    text: str
    success: bool
    message: Optional[str] = None
