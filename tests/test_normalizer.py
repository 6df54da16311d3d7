#!/usr/bin/env python3
"""
DTSFMT NORMALIZER & COLUMN SUITE
--------------------------------
Whitespace canonicalization (stage 1) and the tab-stop arithmetic every
later stage relies on.
"""

import pytest

from dtsfmt.core.models import FormatOptions
from dtsfmt.formatting.columns import alignment_for_column, column_padding, indent_unit, visual_width
from dtsfmt.formatting.normalizer import DtsNormalizer

TABS = FormatOptions()
SPACES = FormatOptions(use_tabs=False, tab_width=4)


@pytest.fixture
def normalizer():
    return DtsNormalizer(TABS)


# --- Columns ---

@pytest.mark.parametrize("text,start,expected", [
    ("", 0, 0),
    ("abc", 0, 3),
    ("\t", 0, 8),
    ("\tab", 0, 10),
    ("ab\t", 0, 8),
    ("\t", 5, 8),
    ("x\t\ty", 0, 17),
])
def test_visual_width(text, start, expected):
    assert visual_width(text, 8, start) == expected


def test_alignment_for_column():
    assert alignment_for_column(17, TABS) == "\t\t "
    assert alignment_for_column(16, TABS) == "\t\t"
    assert alignment_for_column(6, SPACES) == " " * 6


def test_column_padding_lands_exactly_on_target():
    assert column_padding(10, 17, TABS) == "\t "
    assert column_padding(41, 42, TABS) == " "
    assert column_padding(37, 42, TABS) == "\t  "
    assert column_padding(37, 42, SPACES) == " " * 5
    assert column_padding(42, 42, TABS) == ""

    for start in range(0, 30):
        for target in range(start, 40):
            assert visual_width(column_padding(start, target, TABS), 8, start) == target


def test_indent_unit():
    assert indent_unit(TABS) == "\t"
    assert indent_unit(SPACES) == "    "


def test_options_reject_zero_widths():
    with pytest.raises(ValueError):
        FormatOptions(tab_width=0)
    with pytest.raises(ValueError):
        FormatOptions(max_line_length=0)


# --- Normalizer ---

@pytest.mark.parametrize("source,expected", [
    ("node@0001000{", "node@1000 {"),
    ("node @ 1000 {", "node@1000 {"),
    ("serial@0 {", "serial@0 {"),
    ("uart0:serial@0003000{", "uart0: serial@3000 {"),
    ("label :  node   {", "label: node {"),
    ("prop=<1>;", "prop = <1>;"),
    ("reg = < 0x1 0x2 > ;", "reg = <0x1 0x2>;"),
    ("clocks = <&a 1> , <&b 2> ;", "clocks = <&a 1>, <&b 2>;"),
    ("/ { };", "/ {};"),
])
def test_spacing_rules(normalizer, source, expected):
    assert normalizer.normalize(source) == expected


def test_literals_are_untouched(normalizer):
    """Strings, comments and cell payloads keep every byte."""
    source = 'compatible="a=b , c{";  /*  x=y  :  z  */ // p  =  q'
    assert normalizer.normalize(source) == 'compatible = "a=b , c{";  /*  x=y  :  z  */ // p  =  q'


def test_cell_payload_whitespace_kept(normalizer):
    assert normalizer.normalize("clocks = < KEY\t  20000 >;") == "clocks = <KEY\t  20000>;"


def test_line_endings_and_bom(normalizer):
    assert normalizer.normalize("\ufeffa;\r\nb;\rc;\r\n") == "a;\nb;\nc;\n"


def test_blank_lines_collapse(normalizer):
    assert normalizer.normalize("a;\n\n\n\nb;") == "a;\n\nb;"


def test_blank_lines_inside_comment_are_kept(normalizer):
    source = "/*\n\n\n*/"
    assert normalizer.normalize(source) == source


def test_trailing_whitespace_removed(normalizer):
    assert normalizer.normalize("a; \t\n  \nb;") == "a;\n\nb;"


def test_indentation_style_conversion():
    assert DtsNormalizer(TABS).normalize("        x;") == "\tx;"
    assert DtsNormalizer(SPACES).normalize("\tx;") == "    x;"


def test_directives_pass_through(normalizer):
    source = "#define FOO(x)   ((x)=1)  \n#include <a.h>"
    assert normalizer.normalize(source) == "#define FOO(x)   ((x)=1)\n#include <a.h>"


def test_directive_continuation_lines(normalizer):
    source = "#define MULTI a=1 \\\n    b=2\nc=3;"
    assert normalizer.normalize(source) == "#define MULTI a=1 \\\n    b=2\nc = 3;"


def test_comment_body_not_rewritten(normalizer):
    source = "/*\n * key=value  {\n */"
    assert normalizer.normalize(source) == source
