#!/usr/bin/env python3
"""
DTSFMT COLUMNS - Tab-Stop Arithmetic
------------------------------------
Shared column math for the layout engine, the value formatter and the
line-length diagnostics. A tab advances to the next multiple of the tab
width; every other character advances by one.

Author: dtsfmt Team
Date: 2026-10-18
"""

from dtsfmt.core.models import FormatOptions


def visual_width(text: str, tab_width: int, start: int = 0) -> int:
    """Returns the 0-based column reached after rendering ``text`` from ``start``."""
    column = start
    for char in text:
        if char == '\t':
            column += tab_width - (column % tab_width)
        else:
            column += 1
    return column


def indent_unit(options: FormatOptions) -> str:
    return '\t' if options.use_tabs else ' ' * options.tab_width


def alignment_for_column(column: int, options: FormatOptions) -> str:
    """
    Whitespace that moves the cursor from column 0 to ``column``:
    whole tab stops as tabs, the remainder as spaces.
    """
    column = max(column, 0)
    if options.use_tabs:
        return '\t' * (column // options.tab_width) + ' ' * (column % options.tab_width)
    return ' ' * column


def column_padding(from_column: int, to_column: int, options: FormatOptions) -> str:
    """
    Whitespace that moves the cursor from ``from_column`` to exactly
    ``to_column``. Tabs are used while the next tab stop does not pass the
    target.
    """
    if to_column <= from_column:
        return ''
    if not options.use_tabs:
        return ' ' * (to_column - from_column)

    padding = []
    current = from_column
    while True:
        next_stop = current + options.tab_width - (current % options.tab_width)
        if next_stop > to_column:
            break
        padding.append('\t')
        current = next_stop
    padding.append(' ' * (to_column - current))
    return ''.join(padding)
