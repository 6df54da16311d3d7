#!/usr/bin/env python3
"""
DTSFMT SCANNER - The Archeologist
---------------------------------
Splits device-tree source lines into classified spans so later passes
never cut through an atomic literal: quoted strings, <...> cell arrays,
[...] byte arrays, &{/path} references and comments.

The scanner is total. An unmatched delimiter is emitted as an ordinary
punctuation token and scanning continues after it, so malformed input
can only degrade the span it appears in.

Author: dtsfmt Team
Date: 2026-10-18
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

# Token kinds
STRING = "string"
CELLS = "cells"
BYTES = "bytes"
PATHREF = "pathref"
LINE_COMMENT = "line_comment"
BLOCK_COMMENT = "block_comment"
WORD = "word"
PUNCT = "punct"
SPACE = "space"

PUNCT_CHARS = frozenset('{};,=:<>[]"()')
ATOMIC_KINDS = frozenset({STRING, CELLS, BYTES, PATHREF})
COMMENT_KINDS = frozenset({LINE_COMMENT, BLOCK_COMMENT})
PROTECTED_KINDS = ATOMIC_KINDS | COMMENT_KINDS


@dataclass(frozen=True)
class Token:
    """A classified span of one source line."""
    kind: str
    text: str

    @property
    def is_comment(self) -> bool:
        return self.kind in COMMENT_KINDS

    @property
    def is_code(self) -> bool:
        return self.kind != SPACE and self.kind not in COMMENT_KINDS


class DtsScanner:
    """
    Line-oriented tokenizer. Block comments are the only construct that
    may span lines; the caller threads the ``in_comment`` flag between
    calls to ``tokenize_line``.
    """

    def tokenize(self, text: str) -> List[List[Token]]:
        """Tokenizes every line of ``text`` (split on '\\n')."""
        rows = []
        in_comment = False
        for line in text.split('\n'):
            tokens, in_comment = self.tokenize_line(line, in_comment)
            rows.append(tokens)
        return rows

    def tokenize_line(self, line: str, in_comment: bool = False) -> Tuple[List[Token], bool]:
        tokens: List[Token] = []
        i = 0
        n = len(line)

        if in_comment:
            end = line.find('*/')
            if end == -1:
                return ([Token(BLOCK_COMMENT, line)] if line else []), True
            tokens.append(Token(BLOCK_COMMENT, line[:end + 2]))
            i = end + 2
            in_comment = False

        while i < n:
            char = line[i]

            if char in ' \t\f\v':
                j = i
                while j < n and line[j] in ' \t\f\v':
                    j += 1
                tokens.append(Token(SPACE, line[i:j]))
                i = j
                continue

            if line.startswith('//', i):
                tokens.append(Token(LINE_COMMENT, line[i:]))
                break

            if line.startswith('/*', i):
                end = line.find('*/', i + 2)
                if end == -1:
                    tokens.append(Token(BLOCK_COMMENT, line[i:]))
                    in_comment = True
                    break
                tokens.append(Token(BLOCK_COMMENT, line[i:end + 2]))
                i = end + 2
                continue

            if char == '"':
                end = self._match_string(line, i)
                if end != -1:
                    tokens.append(Token(STRING, line[i:end + 1]))
                    i = end + 1
                    continue

            elif char == '<':
                end = self._match_cells(line, i)
                if end != -1:
                    tokens.append(Token(CELLS, line[i:end + 1]))
                    i = end + 1
                    continue

            elif char == '[':
                end = line.find(']', i + 1)
                if end != -1 and '//' not in line[i:end] and '/*' not in line[i:end]:
                    tokens.append(Token(BYTES, line[i:end + 1]))
                    i = end + 1
                    continue

            elif char == '&' and line.startswith('&{', i):
                end = line.find('}', i + 2)
                if end != -1:
                    tokens.append(Token(PATHREF, line[i:end + 1]))
                    i = end + 1
                    continue

            if char in PUNCT_CHARS:
                # Unmatched '"', '<' and '[' land here as plain punctuation
                tokens.append(Token(PUNCT, char))
                i += 1
                continue

            j = i
            while j < n:
                c = line[j]
                if c in PUNCT_CHARS or c in ' \t\f\v':
                    break
                if line.startswith('//', j) or line.startswith('/*', j):
                    break
                if c == '&' and j > i and line.startswith('&{', j):
                    break
                j += 1
            tokens.append(Token(WORD, line[i:j]))
            i = j

        return tokens, in_comment

    def _match_string(self, line: str, start: int) -> int:
        """Index of the closing quote, honouring backslash escapes, or -1."""
        j = start + 1
        while j < len(line):
            if line[j] == '\\':
                j += 2
                continue
            if line[j] == '"':
                return j
            j += 1
        return -1

    def _match_cells(self, line: str, start: int) -> int:
        """
        Index of the '>' closing a cell array. Parenthesised expressions
        may contain '<' and '>' operators; strings and block comments
        inside the array are skipped. A '//' aborts the match.
        """
        depth = 0
        j = start + 1
        n = len(line)
        while j < n:
            c = line[j]
            if line.startswith('//', j):
                return -1
            if line.startswith('/*', j):
                end = line.find('*/', j + 2)
                if end == -1:
                    return -1
                j = end + 2
                continue
            if line.startswith('&{', j):
                end = line.find('}', j + 2)
                if end == -1:
                    return -1
                j = end + 1
                continue
            if c == '"':
                end = self._match_string(line, j)
                if end == -1:
                    return -1
                j = end + 1
                continue
            if c == '(':
                depth += 1
            elif c == ')':
                depth = max(depth - 1, 0)
            elif c == '>' and depth == 0:
                return j
            elif c in ';{}' and depth == 0:
                return -1
            j += 1
        return -1


def code_tokens(tokens: List[Token]) -> List[Token]:
    """Tokens that carry code: no whitespace, no comments."""
    return [t for t in tokens if t.is_code]


def terminal_punctuation(tokens: List[Token]) -> Optional[str]:
    """Returns ';' or ',' when that is the last code token of a line."""
    code = code_tokens(tokens)
    if code and code[-1].kind == PUNCT and code[-1].text in ';,':
        return code[-1].text
    return None


def strip_comments(text: str, scanner: Optional[DtsScanner] = None) -> List[str]:
    """
    Removes // and /* */ comments from every line, keeping the position of
    the content that precedes them. Lines are returned right-trimmed.
    """
    scanner = scanner or DtsScanner()
    stripped = []
    for tokens in scanner.tokenize(text):
        stripped.append(''.join(t.text for t in tokens if not t.is_comment).rstrip())
    return stripped


DIRECTIVE_KEYWORDS = frozenset({
    "include", "define", "undef", "if", "ifdef", "ifndef", "elif", "else",
    "endif", "error", "warning", "pragma", "line",
})


def is_directive(content: str) -> bool:
    """
    True for C preprocessor lines such as '#include' or '#ifdef'.
    Properties that merely start with '#', like '#address-cells = <1>;',
    are not directives.
    """
    if not content.startswith('#'):
        return False
    word = content[1:].lstrip(' \t')
    name = ''
    for char in word:
        if not (char.isalpha() or char == '_'):
            break
        name += char
    rest = word[len(name):]
    if rest and rest[0] not in ' \t(<"\\':
        return False
    return name in DIRECTIVE_KEYWORDS
