#!/usr/bin/env python3
"""
DTSFMT FORMATTING PIPELINE
--------------------------
Runs the four formatting stages in a fixed order over one document:

    normalize -> block layout -> value lists -> comment reflow

Each stage only sees the output of the previous one, so the result depends
on nothing but the input text and the FormatOptions. Running the pipeline
on its own output returns that output unchanged.

Author: dtsfmt Team
Date: 2026-10-18
"""

import logging
from typing import Optional

from dtsfmt.core.models import FormatOptions, FormatResult
from dtsfmt.formatting.comments import CommentReflow
from dtsfmt.formatting.context import FormatContext
from dtsfmt.formatting.layout import BlockLayoutEngine
from dtsfmt.formatting.normalizer import DtsNormalizer
from dtsfmt.formatting.values import ValueListFormatter

logger = logging.getLogger("dtsfmt.pipeline")


class FormattingPipeline:
    """
    The Orchestrator: whitespace repair, indentation, value alignment and
    comment cleanup always happen in this order.
    """

    def __init__(self, options: Optional[FormatOptions] = None):
        self.options = options or FormatOptions()
        self.normalizer = DtsNormalizer(self.options)
        self.layout = BlockLayoutEngine(self.options)
        self.values = ValueListFormatter(self.options)
        self.comments = CommentReflow()

    def run(self, text: str) -> FormatContext:
        context = FormatContext(raw_text=text, options=self.options)

        # --- STAGE 1: WHITESPACE NORMALIZATION ---
        # Line endings, BOM, spacing around '=', labels, braces, addresses.
        context.normalized_text = self.normalizer.normalize(text)

        # --- STAGE 2: BLOCK LAYOUT ---
        # One statement per line, indentation from brace depth.
        context.lines = self.layout.layout(context.normalized_text)

        # --- STAGE 3: VALUE LISTS ---
        # Single-line when it fits, aligned multi-line otherwise.
        context.lines = self.values.format_statements(context.lines)

        # --- STAGE 4: COMMENT REFLOW ---
        context.lines = self.comments.reflow(context.lines)

        context.formatted_text = BlockLayoutEngine.render(context.lines)
        return context


def format_text(text: str, options: Optional[FormatOptions] = None) -> FormatResult:
    """
    Formats a whole document.

    Never raises: an internal failure is reported as an unsuccessful
    result with empty text, so callers never see half-formatted output.
    """
    try:
        context = FormattingPipeline(options).run(text)
    except Exception as e:
        logger.error(f"Formatting failed: {e}", exc_info=True)
        return FormatResult(text="", success=False, message=f"Formatting failed: {e}")

    logger.info("Formatting successful")
    return FormatResult(text=context.formatted_text, success=True)
