#!/usr/bin/env python3
"""
DTSFMT COMMENTS - Block Comment Reflow (Stage 4)
------------------------------------------------
Continuation lines of a /* ... */ block that start with '*' get exactly
one space between their indentation and the '*', giving the usual

    /*
     * text
     */

shape. Text after the '*' is never touched.

Author: dtsfmt Team
Date: 2026-10-18
"""

from dataclasses import replace
from typing import List

from dtsfmt.core.models import SourceLine


class CommentReflow:

    def reflow_line(self, line: SourceLine) -> SourceLine:
        if not line.in_comment or not line.content.startswith('*'):
            return line
        prefix = line.text[:len(line.text) - len(line.content)]
        return replace(line, text=f"{prefix} {line.content}")

    def reflow(self, lines: List[SourceLine]) -> List[SourceLine]:
        return [self.reflow_line(line) for line in lines]
