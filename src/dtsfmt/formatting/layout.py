#!/usr/bin/env python3
"""
DTSFMT LAYOUT - Block Layout Engine (Stage 2)
---------------------------------------------
Puts every statement on its own line and assigns indentation from the
brace nesting depth. Lines that continue a comma-separated value are
additionally indented to the column just past '= ' on the line that
opened the value.

The pass is a left fold over lines with the accumulator
``LayoutState(depth, continuation)``; no state survives between calls.

Author: dtsfmt Team
Date: 2026-10-18
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from dtsfmt.core.models import FormatOptions, SourceLine
from dtsfmt.formatting.columns import alignment_for_column, indent_unit, visual_width
from dtsfmt.formatting.scanner import (
    PUNCT, DtsScanner, Token, code_tokens, is_directive, terminal_punctuation,
)

logger = logging.getLogger("dtsfmt.layout")


@dataclass(frozen=True)
class LayoutState:
    depth: int = 0
    continuation: str = ""


@dataclass(frozen=True)
class ClassifiedLine:
    text: str
    tokens: List[Token]
    in_comment: bool    # Starts inside a block comment
    directive: bool
    continued: bool = False     # Body line of a backslash-continued directive


def classify_lines(lines: List[str], scanner: DtsScanner) -> Iterator[ClassifiedLine]:
    """Tokenizes lines while tracking block comments and directive continuations."""
    in_comment = False
    directive_continues = False
    for line in lines:
        starts_in_comment = in_comment
        content = line.lstrip(' \t')
        tokens, in_comment = scanner.tokenize_line(content, in_comment)
        continued = not starts_in_comment and directive_continues
        directive = continued or (not starts_in_comment and is_directive(content))
        directive_continues = directive and content.rstrip().endswith('\\')
        yield ClassifiedLine(line, tokens, starts_in_comment, directive, continued)


class BlockLayoutEngine:
    """Stage 2 of the pipeline: statement splitting and indentation."""

    def __init__(self, options: FormatOptions):
        self.options = options
        self.scanner = DtsScanner()
        self.unit = indent_unit(options)

    # ------------------------------------------------------------------
    # Statement splitting
    # ------------------------------------------------------------------

    def _split_tokens(self, tokens: List[Token]) -> List[str]:
        """
        Breaks one line after '{' and ';' and before '}' whenever code
        continues on the same line. Comments stay with the code they follow.
        """
        segments: List[List[Token]] = [[]]
        previous_code = None
        for token in tokens:
            if token.is_code:
                has_code = any(t.is_code for t in segments[-1])
                breaks_after = (
                    previous_code is not None
                    and previous_code.kind == PUNCT
                    and previous_code.text in '{;'
                )
                breaks_before = token.kind == PUNCT and token.text == '}' and has_code
                if breaks_after or breaks_before:
                    segments.append([])
                previous_code = token
            segments[-1].append(token)
        return [''.join(t.text for t in segment).strip() for segment in segments]

    def split_statements(self, text: str) -> List[str]:
        lines: List[str] = []
        for row in classify_lines(text.split('\n'), self.scanner):
            if row.directive or not any(t.is_code for t in row.tokens):
                lines.append(row.text)
                continue
            indent = row.text[:len(row.text) - len(row.text.lstrip(' \t'))]
            segments = self._split_tokens(row.tokens)
            lines.append(indent + segments[0])
            lines.extend(segments[1:])
        return lines

    # ------------------------------------------------------------------
    # Indentation fold
    # ------------------------------------------------------------------

    def continuation_for(self, indent: str, content: str, tokens: List[Token]) -> str:
        """
        Whitespace that follows ``indent`` so a continuation line starts one
        column past '= ' on the opening line. Empty when the line has no
        top-level '='.
        """
        offset = 0
        for token in tokens:
            if token.kind == PUNCT and token.text == '=':
                tab_width = self.options.tab_width
                base = visual_width(indent, tab_width)
                target = visual_width(content[:offset], tab_width, base) + 2
                return alignment_for_column(target - base, self.options)
            offset += len(token.text)
        return ""

    def step(self, state: LayoutState, row: ClassifiedLine) -> Tuple[LayoutState, SourceLine]:
        content = row.text.strip(' \t')

        if not content:
            return state, SourceLine(text="", depth=state.depth, in_comment=row.in_comment)

        if row.directive:
            # Continued directive bodies keep their own indentation
            text = row.text.rstrip() if row.continued else content
            return state, SourceLine(text=text, content=content, depth=state.depth, directive=True)

        # Free-form comment text keeps its own indentation
        free_form = row.in_comment and not content.startswith('*')

        if row.in_comment and not code_tokens(row.tokens):
            if free_form:
                return state, SourceLine(text=row.text, content=content, depth=state.depth, in_comment=True)
            indent = self.unit * state.depth
            return state, SourceLine(
                text=indent + state.continuation + content,
                content=content,
                depth=state.depth,
                continuation=state.continuation,
                in_comment=True,
            )

        opens = sum(1 for t in row.tokens if t.kind == PUNCT and t.text == '{')
        closes = sum(1 for t in row.tokens if t.kind == PUNCT and t.text == '}')
        delta = opens - closes

        depth = state.depth
        if delta < 0:
            depth = max(depth + delta, 0)
        indent = self.unit * depth
        line = SourceLine(
            text=row.text if free_form else indent + state.continuation + content,
            content=content,
            depth=depth,
            continuation=state.continuation,
            terminal=terminal_punctuation(row.tokens),
            in_comment=row.in_comment,
        )
        if delta > 0:
            depth += delta

        continuation = state.continuation
        if opens or closes or line.terminal == ';':
            continuation = ""
        elif line.terminal == ',' and not continuation and not free_form:
            continuation = self.continuation_for(indent, content, row.tokens)

        return LayoutState(depth, continuation), line

    def fold(self, lines: List[str]) -> List[SourceLine]:
        state = LayoutState()
        laid_out = []
        for row in classify_lines(lines, self.scanner):
            state, line = self.step(state, row)
            laid_out.append(line)
        if state.depth:
            logger.debug("Unbalanced braces: %d block(s) left open", state.depth)
        return laid_out

    def layout(self, text: str) -> List[SourceLine]:
        return self.fold(self.split_statements(text))

    @staticmethod
    def render(lines: List[SourceLine]) -> str:
        return '\n'.join(line.text for line in lines)
