#!/usr/bin/env python3
"""
DTSFMT VALUES - Value List Formatter (Stage 3)
----------------------------------------------
Re-lays out the right-hand side of property assignments.

A value is split into entries at top-level commas only; commas inside
strings, cell arrays, byte arrays and parentheses never split. Each entry
is either a plain value or a ``<KEY PAYLOAD>`` pair, and may carry
trailing comments. The assignment is then emitted on one line when it
fits, otherwise one entry per line aligned one column past '= ', with the
payloads of key/value entries starting on a common column.

Anything the formatter cannot re-lay out without risk (a value spread
over several lines, a '//' comment in the middle of a list, a comment
block between entries, an empty entry, a missing terminator, an entry
that looks like a preprocessor directive) is passed
through exactly as the layout engine produced it.

Author: dtsfmt Team
Date: 2026-10-18
"""

import re
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from dtsfmt.core.models import FormatOptions, KeyValueEntry, PlainEntry, SourceLine, ValueEntry
from dtsfmt.formatting.columns import alignment_for_column, column_padding, visual_width
from dtsfmt.formatting.scanner import (
    CELLS, LINE_COMMENT, PUNCT, SPACE, WORD, DtsScanner, Token, is_directive,
)

logger = logging.getLogger("dtsfmt.values")

Row = List[Token]


class ValueListFormatter:
    """Stage 3 of the pipeline."""

    # <KEY PAYLOAD...>: key is the first whitespace-delimited cell
    KEY_VALUE_PATTERN = re.compile(r'^(\S+)\s+(\S.*)$', re.DOTALL)

    def __init__(self, options: FormatOptions):
        self.options = options
        self.scanner = DtsScanner()

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def classify(self, text: str, comments: List[str], is_last: bool = False) -> ValueEntry:
        """Builds the tagged entry for one comma-separated value."""
        comment = ' '.join(comments)
        if text.startswith('<') and text.endswith('>'):
            tokens, in_comment = self.scanner.tokenize_line(text)
            if len(tokens) == 1 and tokens[0].kind == CELLS and not in_comment:
                match = self.KEY_VALUE_PATTERN.match(text[1:-1].strip())
                if match and '(' not in match.group(1):
                    return KeyValueEntry(
                        text=text,
                        key=match.group(1),
                        payload=match.group(2).rstrip(),
                        comment=comment,
                        is_last=is_last,
                    )
        return PlainEntry(text=text, comment=comment, is_last=is_last)

    def _finish_entry(self, parts: List[Token]) -> Optional[Tuple[str, List[str]]]:
        """Separates an entry's value text from its trailing comments."""
        while parts and parts[-1].kind == SPACE:
            parts.pop()
        trailing = []
        while parts and (parts[-1].is_comment or parts[-1].kind == SPACE):
            token = parts.pop()
            if token.is_comment:
                trailing.insert(0, token.text)
        while parts and parts[0].kind == SPACE:
            parts.pop(0)
        if not any(t.is_code for t in parts):
            return None
        if any(t.kind == LINE_COMMENT for t in parts):
            return None
        return ''.join(t.text for t in parts), trailing

    def parse_entries(self, rows: List[Row], require_terminator: bool = True) -> Optional[Tuple[List[ValueEntry], List[str]]]:
        """
        Splits right-hand-side token rows into entries.

        Returns ``(entries, comments)`` where ``comments`` is only used when
        there are no entries at all (``prop = /* nothing */;``), or None when
        the value cannot be re-laid out safely.
        """
        raw_entries: List[Tuple[str, List[str]]] = []
        parts: List[Token] = []
        parts_row = -1
        comma_row = -1
        depth = 0
        terminated = False
        orphan_comments: List[str] = []

        for row_index, row in enumerate(rows):
            for token in row:
                if token.kind == SPACE:
                    if parts:
                        parts.append(token)
                    continue

                if token.is_comment:
                    if terminated:
                        if raw_entries:
                            raw_entries[-1][1].append(token.text)
                        else:
                            orphan_comments.append(token.text)
                    elif not parts and raw_entries and comma_row == row_index:
                        raw_entries[-1][1].append(token.text)
                    else:
                        if parts and parts_row != row_index:
                            return None
                        parts.append(token)
                        parts_row = row_index
                    continue

                if terminated:
                    return None

                if token.kind == PUNCT and depth == 0 and token.text in ',;':
                    if token.text == ';' and not raw_entries and not any(t.is_code for t in parts):
                        # prop = ; or prop = /* nothing */;
                        orphan_comments.extend(t.text for t in parts if t.is_comment)
                        parts = []
                        terminated = True
                        continue
                    finished = self._finish_entry(parts)
                    if finished is None:
                        return None
                    raw_entries.append(finished)
                    parts = []
                    comma_row = row_index
                    terminated = token.text == ';'
                    continue

                if token.kind == PUNCT and token.text in '{}':
                    return None
                if token.kind == PUNCT and token.text == '(':
                    depth += 1
                elif token.kind == PUNCT and token.text == ')':
                    depth = max(depth - 1, 0)

                if parts and parts_row != row_index:
                    return None
                parts.append(token)
                parts_row = row_index

        if not terminated:
            if require_terminator:
                return None
            if any(t.is_code for t in parts):
                finished = self._finish_entry(parts)
                if finished is None:
                    return None
                raw_entries.append(finished)
            elif parts:
                orphan_comments.extend(t.text for t in parts if t.is_comment)

        # An entry on a line of its own would be read back as a directive
        if any(is_directive(text) for text, _ in raw_entries):
            return None

        entries = [
            self.classify(text, comments, is_last=(index == len(raw_entries) - 1))
            for index, (text, comments) in enumerate(raw_entries)
        ]
        return entries, orphan_comments

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _width(self, text: str) -> int:
        return visual_width(text, self.options.tab_width)

    def _fits(self, line: str) -> bool:
        return self._width(line) <= self.options.max_line_length

    @staticmethod
    def _punctuation(entry: ValueEntry) -> str:
        return ';' if entry.is_last else ','

    def _has_line_comment(self, entry: ValueEntry) -> bool:
        tokens, _ = self.scanner.tokenize_line(entry.comment)
        return any(t.kind == LINE_COMMENT for t in tokens)

    @staticmethod
    def _with_comment(text: str, entry: ValueEntry) -> str:
        return f"{text} {entry.comment}" if entry.comment else text

    def _compact(self, entry: ValueEntry) -> str:
        if isinstance(entry, KeyValueEntry):
            return f"<{entry.key} {entry.payload}>"
        return entry.text

    def _aligned(self, entry: ValueEntry, column: int, max_key: int) -> str:
        """Renders an entry whose first character sits at ``column``."""
        if not isinstance(entry, KeyValueEntry):
            return entry.text
        tab_width = self.options.tab_width
        open_column = column + 1
        key_end = visual_width(entry.key, tab_width, open_column)
        target = open_column + max_key + 1
        return '<' + entry.key + column_padding(key_end, target, self.options) + entry.payload + '>'

    def render_single_line(self, indent: str, name: str, entries: List[ValueEntry]) -> Optional[str]:
        """One-line rendering, or None when a '//' comment would swallow later entries."""
        pieces = []
        for entry in entries:
            if not entry.is_last and self._has_line_comment(entry):
                return None
            pieces.append(self._with_comment(self._compact(entry) + self._punctuation(entry), entry))
        return f"{indent}{name} = " + ' '.join(pieces)

    def render_multi_line(self, indent: str, name: str, entries: List[ValueEntry]) -> List[str]:
        start = f"{indent}{name} = "
        column = self._width(start)
        align = alignment_for_column(column, self.options)
        keys = [self._width(e.key) for e in entries if isinstance(e, KeyValueEntry)]
        max_key = max(keys) if keys else 0

        def line_for(entry: ValueEntry) -> str:
            return self._with_comment(self._aligned(entry, column, max_key) + self._punctuation(entry), entry)

        first_line = start + line_for(entries[0])
        if len(entries) > 1 and self._fits(first_line):
            return [first_line] + [align + line_for(e) for e in entries[1:]]
        return [f"{indent}{name} ="] + [align + line_for(e) for e in entries]

    def layout_entries(self, indent: str, name: str, entries: List[ValueEntry]) -> List[str]:
        single = self.render_single_line(indent, name, entries)
        if single is not None and self._fits(single):
            return [single]
        return self.render_multi_line(indent, name, entries)

    def format_property(self, indent: str, name: str, raw_value: str) -> str:
        """
        Formats ``name = raw_value`` at ``indent``. ``raw_value`` is the
        text after '=' and may include the terminating ';', trailing
        comments and line breaks.
        """
        rows = []
        in_comment = False
        for line in raw_value.split('\n'):
            tokens, in_comment = self.scanner.tokenize_line(line.strip(' \t'), in_comment)
            rows.append(tokens)
        parsed = None if in_comment else self.parse_entries(rows, require_terminator=False)
        if parsed is None:
            value = raw_value.strip()
            return f"{indent}{name} = {value}" + ('' if value.endswith(';') else ';')
        entries, comments = parsed
        if not entries:
            return self._render_empty(indent, name, comments)
        return '\n'.join(self.layout_entries(indent, name, entries))

    # ------------------------------------------------------------------
    # Statement discovery over laid-out lines
    # ------------------------------------------------------------------

    def _assignment_split(self, tokens: Row) -> Optional[int]:
        """
        Index of the '=' token when the row opens a property assignment
        ('name = ...' optionally preceded by labels), else None.
        """
        seen_name = False
        for index, token in enumerate(tokens):
            if token.kind == SPACE:
                continue
            if token.kind == PUNCT and token.text == '=':
                return index if seen_name else None
            if token.kind == WORD:
                seen_name = True
                continue
            if token.kind == PUNCT and token.text in ':,':
                continue
            return None
        return None

    def _collect_statement(self, lines: List[SourceLine], start: int) -> Optional[Tuple[int, List[Row]]]:
        """Rows of the statement opened at ``start`` and the index of its last line."""
        rows = []
        index = start
        while index < len(lines):
            line = lines[index]
            if line.directive or line.in_comment or not line.content:
                return None
            tokens, in_comment = self.scanner.tokenize_line(line.content)
            if in_comment:
                return None
            rows.append(tokens)
            if line.terminal == ';':
                return index, rows
            index += 1
        return None

    def _render_empty(self, indent: str, name: str, comments: List[str]) -> str:
        suffix = ' '.join(comments)
        return f"{indent}{name} = " + (f"{suffix};" if suffix else ';')

    def format_statement(self, lines: List[SourceLine], start: int) -> Optional[Tuple[int, List[str]]]:
        line = lines[start]
        head, _ = self.scanner.tokenize_line(line.content)
        split = self._assignment_split(head)
        if split is None:
            return None
        collected = self._collect_statement(lines, start)
        if collected is None:
            return None
        end, rows = collected

        name = ''.join(t.text for t in rows[0][:split]).strip()
        parsed = self.parse_entries([rows[0][split + 1:]] + rows[1:])
        if parsed is None:
            logger.debug("Leaving property '%s' on line %d as is", name, start + 1)
            return None

        indent = line.text[:len(line.text) - len(line.content)]
        entries, comments = parsed
        if not entries:
            return end, [self._render_empty(indent, name, comments)]
        return end, self.layout_entries(indent, name, entries)

    def format_statements(self, lines: List[SourceLine]) -> List[SourceLine]:
        formatted: List[SourceLine] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.directive or line.in_comment or not line.content or '=' not in line.content:
                formatted.append(line)
                index += 1
                continue

            result = self.format_statement(lines, index)
            if result is None:
                formatted.append(line)
                index += 1
                continue

            end, rendered = result
            for position, text in enumerate(rendered):
                formatted.append(replace(
                    line,
                    text=text,
                    content=text.lstrip(' \t'),
                    continuation="",
                    terminal=';' if position == len(rendered) - 1 else None,
                ))
            index = end + 1
        return formatted
