#!/usr/bin/env python3
"""
DTSFMT NORMALIZER - Whitespace Canonicalization (Stage 1)
---------------------------------------------------------
Rewrites spacing around labels, node addresses, braces and '=' without
touching the inside of strings, cell arrays, byte arrays or comments.

Protected spans are swapped for single private-use placeholder characters
before the substitution patterns run, then restored. The placeholders are
neither word characters nor whitespace, so no pattern can match across
or into a literal.

Author: dtsfmt Team
Date: 2026-10-18
"""

import re
import logging
from typing import List, Tuple

from dtsfmt.core.models import FormatOptions
from dtsfmt.formatting.columns import alignment_for_column, visual_width
from dtsfmt.formatting.scanner import CELLS, PROTECTED_KINDS, DtsScanner, Token, is_directive

logger = logging.getLogger("dtsfmt.normalizer")

PLACEHOLDER_BASE = 0xF0000


class DtsNormalizer:
    """
    Stage 1 of the pipeline. Total over any input: lines that match no
    pattern pass through with only trailing whitespace and indentation
    style changed.
    """

    INDENT_PATTERN = re.compile(r'^[ \t]*')
    # node@0003000 { -> node@3000 {
    NODE_ADDRESS_PATTERN = re.compile(r'([\w,.+\-]+)[ \t]*@[ \t]*0*([0-9a-fA-F]+)[ \t]*\{[ \t]*')
    # label :  node -> label: node
    LABEL_PATTERN = re.compile(r'([\w,.+\-]+)[ \t]*:[ \t]*')
    # name   { -> name {
    BRACE_PATTERN = re.compile(r'(\S)[ \t]*\{[ \t]*')
    # prop=value -> prop = value
    EQUALS_PATTERN = re.compile(r'[ \t]*=[ \t]*')
    # <1> ; -> <1>;
    TERMINATOR_PATTERN = re.compile(r'[ \t]+(?=[;,])')

    def __init__(self, options: FormatOptions):
        self.options = options
        self.scanner = DtsScanner()

    def _clean_artifacts(self, text: str) -> str:
        """Drops a UTF-8 BOM and converts CRLF / CR line endings to LF."""
        text = text.lstrip('\ufeff')
        return text.replace('\r\n', '\n').replace('\r', '\n')

    def _convert_indent(self, indent: str) -> str:
        """Re-expresses leading whitespace in the configured indentation style."""
        if not indent:
            return indent
        return alignment_for_column(visual_width(indent, self.options.tab_width), self.options)

    def _mask(self, tokens: List[Token]) -> Tuple[str, List[str]]:
        masked = []
        protected = []
        for token in tokens:
            if token.kind in PROTECTED_KINDS:
                text = token.text
                if token.kind == CELLS:
                    # < a b > -> <a b>
                    text = '<' + text[1:-1].strip(' \t') + '>'
                masked.append(chr(PLACEHOLDER_BASE + len(protected)))
                protected.append(text)
            else:
                masked.append(token.text)
        return ''.join(masked), protected

    def _unmask(self, masked: str, protected: List[str]) -> str:
        if not protected:
            return masked
        return ''.join(
            protected[ord(c) - PLACEHOLDER_BASE] if PLACEHOLDER_BASE <= ord(c) < PLACEHOLDER_BASE + len(protected) else c
            for c in masked
        )

    def normalize_code(self, tokens: List[Token]) -> str:
        """Applies the spacing rules to one line's tokens."""
        masked, protected = self._mask(tokens)
        masked = self.NODE_ADDRESS_PATTERN.sub(r'\1@\2 {', masked)
        masked = self.LABEL_PATTERN.sub(r'\1: ', masked)
        masked = self.BRACE_PATTERN.sub(r'\1 {', masked)
        masked = self.EQUALS_PATTERN.sub(' = ', masked)
        masked = self.TERMINATOR_PATTERN.sub('', masked)
        return self._unmask(masked.strip(), protected)

    def _collapse_blank_lines(self, rows: List[Tuple[str, bool]]) -> List[str]:
        """Keeps at most one empty line in a row, except inside block comments."""
        lines = []
        previous_blank = False
        for line, in_comment in rows:
            blank = not line and not in_comment
            if blank and previous_blank:
                continue
            lines.append(line)
            previous_blank = blank
        return lines

    def normalize(self, text: str) -> str:
        text = self._clean_artifacts(text)
        rows: List[Tuple[str, bool]] = []
        in_comment = False
        directive_continues = False

        for line in text.split('\n'):
            starts_in_comment = in_comment
            indent = self.INDENT_PATTERN.match(line).group(0)
            content = line[len(indent):]
            tokens, in_comment = self.scanner.tokenize_line(content, in_comment)

            if not starts_in_comment and (directive_continues or is_directive(content)):
                # Preprocessor lines are not device-tree syntax; leave them alone
                directive_continues = content.rstrip().endswith('\\')
                rows.append(((indent + content).rstrip(), False))
                continue

            if starts_in_comment or not content.strip():
                rows.append(((self._convert_indent(indent) + content).rstrip(), starts_in_comment))
                continue

            rows.append(((self._convert_indent(indent) + self.normalize_code(tokens)).rstrip(), False))

        normalized = self._collapse_blank_lines(rows)
        logger.debug("Normalized %d lines into %d", len(rows), len(normalized))
        return '\n'.join(normalized)
