#!/usr/bin/env python3
"""
DTSFMT FORMAT CONTEXT
---------------------
The record of one formatting invocation. The pipeline creates it and each
stage stores its output here, which lets tests and the CLI inspect any
intermediate step.

Author: dtsfmt Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from typing import List, Optional

from dtsfmt.core.models import FormatOptions, SourceLine


@dataclass
class FormatContext:
    """
    State of a single document going through the pipeline.

    Never shared between invocations; two documents formatted at the same
    time get two contexts.
    """
    raw_text: str                                           # Input exactly as received
    options: FormatOptions = field(default_factory=FormatOptions)
    normalized_text: str = ""                               # After stage 1
    lines: List[SourceLine] = field(default_factory=list)   # After the latest line stage
    formatted_text: Optional[str] = None                    # Final output
