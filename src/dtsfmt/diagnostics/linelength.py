#!/usr/bin/env python3
"""
DTSFMT DIAGNOSTICS - Line Length Analyzer
-----------------------------------------
Flags lines whose tab-expanded width exceeds the configured maximum.

The pass is read-only: it never changes the text it is given, and it can
be pointed at either the original document or the formatter's output.
Results are advisory; a line that cannot be measured is skipped.

Author: dtsfmt Team
Date: 2026-10-18
"""

import re
import logging
from typing import Dict, Hashable, List, Optional

from dtsfmt.core.models import Diagnostic
from dtsfmt.formatting.columns import visual_width
from dtsfmt.formatting.scanner import DtsScanner, strip_comments

logger = logging.getLogger("dtsfmt.diagnostics")

LINE_BREAK = re.compile(r'\r\n|\r|\n')
MESSAGE = "Line exceeds maximum length of {limit} characters (current: {length})"


def visual_length(line: str, tab_width: int) -> int:
    """1-based column just past the last character of ``line``."""
    return visual_width(line, tab_width) + 1


def analyze(text: str, max_length: int = 80, tab_width: int = 8,
            include_comments: bool = True) -> List[Diagnostic]:
    """
    Returns one Diagnostic per over-long line, in line order.

    A line is reported when its visual length is greater than
    ``max_length + 1``; the extra column is the one a statement
    terminator would occupy.
    """
    lines = LINE_BREAK.split(text)
    if not include_comments:
        lines = strip_comments('\n'.join(lines), DtsScanner())

    diagnostics = []
    for index, line in enumerate(lines):
        try:
            length = visual_length(line, tab_width)
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping line {index + 1}: {e}")
            continue
        if length > max_length + 1:
            diagnostics.append(Diagnostic(
                line=index,
                length=length,
                message=MESSAGE.format(limit=max_length, length=length),
            ))

    logger.debug(f"Line length analysis: {len(diagnostics)} of {len(lines)} lines over {max_length}")
    return diagnostics


class LineLengthAnalyzer:
    """Binds analyze() to a fixed set of settings."""

    def __init__(self, max_length: int = 80, tab_width: int = 8,
                 include_comments: bool = True, enabled: bool = True):
        self.max_length = max_length
        self.tab_width = tab_width
        self.include_comments = include_comments
        self.enabled = enabled

    def analyze(self, text: str) -> List[Diagnostic]:
        if not self.enabled:
            return []
        return analyze(text, self.max_length, self.tab_width, self.include_comments)


class DiagnosticsCollection:
    """
    Diagnostics per document, replaced wholesale on every analysis.

    Keys are whatever identifies a document to the caller (a path, a URI).
    Entries are removed when a document closes and the whole collection is
    cleared when warnings are switched off, so nothing stale lingers.
    """

    def __init__(self, name: str = "devicetree"):
        self.name = name
        self._entries: Dict[Hashable, List[Diagnostic]] = {}

    def set(self, document: Hashable, diagnostics: List[Diagnostic]):
        self._entries[document] = list(diagnostics)

    def get(self, document: Hashable) -> Optional[List[Diagnostic]]:
        entries = self._entries.get(document)
        return list(entries) if entries is not None else None

    def delete(self, document: Hashable):
        self._entries.pop(document, None)

    def clear(self):
        self._entries.clear()

    def __contains__(self, document: Hashable) -> bool:
        return document in self._entries

    def __len__(self) -> int:
        return len(self._entries)
