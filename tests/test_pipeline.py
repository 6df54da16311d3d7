#!/usr/bin/env python3
"""
DTSFMT PIPELINE SUITE - End to End
----------------------------------
Whole documents through format_text: canonical documents, stability
on already formatted input, and preservation of literal content.
"""

import pytest

from dtsfmt.core.models import FormatOptions
from dtsfmt.diagnostics.linelength import analyze
from dtsfmt.formatting import pipeline as pipeline_module
from dtsfmt.formatting.pipeline import FormattingPipeline, format_text
from dtsfmt.formatting.scanner import ATOMIC_KINDS, CELLS, COMMENT_KINDS, DtsScanner

NARROW = FormatOptions(max_line_length=60)

CLOCKS = "clocks = <IMX8MP_CLK_IPP_DO_CLKO1 10000>, <IMX8MP_SYS_PLL1_80M 20000>;"

MESSY_SAMPLES = [
    '/ {\nmodel="Test";\n};',
    "/ {\nnode@0001000 {\nreg = <0x1000>;\n};\n};",
    "/ { };",
    "/dts-v1/;\n#include \"imx8mp.dtsi\"\n\n\n/ {\n  compatible = \"fsl,imx8mp-evk\" , \"fsl,imx8mp\" ;\n"
    "  chosen { stdout-path = &uart2; };\n};",
    "&i2c1 {\nclock-frequency=<100000>;\npinctrl-names = \"default\";\n"
    "pmic: pmic@25 {\nreg = <0x25>;\n/*\n* PMIC interrupt\n*/\ninterrupts = <3 IRQ_TYPE_LEVEL_LOW>;\n};\n};",
    "/ {\n" + CLOCKS + "\n};",
    "/ {\nleds {\nled-0 {\nlabel = \"status\"; // heartbeat\ngpios = <&gpio1 5 GPIO_ACTIVE_HIGH>,\n"
    "<&gpio1 6 GPIO_ACTIVE_LOW>;\n};\n};\n};",
    "/ {\n#ifdef CONFIG_X\nstatus = \"okay\";\n#else\nstatus = \"disabled\";\n#endif\n};\n",
    "/ {\r\n\tprop = [00 11 22];\r\n\tpath = &{/soc/bus@30000000};\r\n};\r\n",
    "/ {\n\tfoo = <1>, /* a\n\t b */ <2>;\n\tbar = <3>;\n};",
    "/ {\n/* c\n */ n {\na = <1>;\n};\n};",
    "#define FOO(x) \\\n\t\t(x + \\\n\t\t 1)\n/ {\nval = <FOO(1)>;\n};",
    '/ {\nprop = #include "a.h", <IMX8MP_CLK_IPP_DO_CLKO1 10000>, <IMX8MP_SYS_PLL1_80M 20000>;\n};',
]


# --- Canonical documents ---

def test_property_spacing_and_indent():
    result = format_text('/ {\nmodel="Test";\n};')

    assert result.success is True
    assert result.message is None
    assert result.text == '/ {\n\tmodel = "Test";\n};'


def test_node_address_leading_zeros():
    result = format_text("/ {\nnode@0001000 {\nreg = <0x1000>;\n};\n};")
    assert result.text == "/ {\n\tnode@1000 {\n\t\treg = <0x1000>;\n\t};\n};"


def test_aligned_clock_list():
    result = format_text("/ {\n" + CLOCKS + "\n};", NARROW)

    assert result.text == (
        "/ {\n"
        "\tclocks = <IMX8MP_CLK_IPP_DO_CLKO1 10000>,\n"
        "\t\t <IMX8MP_SYS_PLL1_80M\t  20000>;\n"
        "};"
    )


def test_clock_list_fits_at_default_width():
    result = format_text("/ {\n" + CLOCKS + "\n};")
    assert result.text == "/ {\n\t" + CLOCKS + "\n};"


def test_empty_block_expands():
    assert format_text("/ { };").text == "/ {\n};"


def test_spaces_indentation():
    result = format_text('/ {\nnode {\nmodel="Test";\n};\n};', FormatOptions(use_tabs=False, tab_width=4))
    assert result.text == '/ {\n    node {\n        model = "Test";\n    };\n};'


def test_trailing_comment_survives_fast_path():
    result = format_text('/ {\nstatus="okay";   // enabled\n};')
    assert result.text == '/ {\n\tstatus = "okay"; // enabled\n};'


def test_block_comment_reflow():
    result = format_text("/ {\n/*\n* PMIC interrupt\n  */\nfoo;\n};")
    assert result.text == "/ {\n\t/*\n\t * PMIC interrupt\n\t */\n\tfoo;\n};"


def test_directives_and_labels():
    source = "#include <dt-bindings/gpio/gpio.h>\n/ {\n  #ifdef X\nuart0:serial@0003000{\nstatus=\"okay\";\n};\n#endif\n};"
    expected = (
        "#include <dt-bindings/gpio/gpio.h>\n/ {\n#ifdef X\n\tuart0: serial@3000 {\n"
        "\t\tstatus = \"okay\";\n\t};\n#endif\n};"
    )
    assert format_text(source).text == expected


def test_crlf_input_produces_lf_output():
    result = format_text("/ {\r\nmodel = \"x\";\r\n};\r\n")
    assert result.text == "/ {\n\tmodel = \"x\";\n};\n"


def test_context_records_each_stage():
    context = FormattingPipeline(FormatOptions()).run("/ { a=<1>; };")

    assert context.raw_text == "/ { a=<1>; };"
    assert context.normalized_text == "/ {a = <1>; };"
    assert [line.text for line in context.lines] == ["/ {", "\ta = <1>;", "};"]
    assert context.formatted_text == "/ {\n\ta = <1>;\n};"


# --- Properties ---

@pytest.mark.parametrize("source", MESSY_SAMPLES)
@pytest.mark.parametrize("options", [FormatOptions(), NARROW, FormatOptions(use_tabs=False, tab_width=4)])
def test_idempotence(source, options):
    """
    STABILITY TEST: formatting the output again must not change it.
    """
    once = format_text(source, options)
    twice = format_text(once.text, options)

    assert once.success and twice.success
    assert twice.text == once.text


@pytest.mark.parametrize("source", MESSY_SAMPLES)
def test_literals_survive(source):
    """Every string, comment, byte array and path reference is still present verbatim."""
    scanner = DtsScanner()
    text = format_text(source, NARROW).text
    for row in scanner.tokenize(source.replace("\r\n", "\n")):
        for token in row:
            if token.kind in COMMENT_KINDS or token.kind in ATOMIC_KINDS - {CELLS}:
                assert token.text.strip() in text


def test_formatted_output_passes_line_length_check():
    text = format_text("/ {\n" + CLOCKS + "\n};", NARROW).text
    assert analyze(text, max_length=60, tab_width=8) == []


def test_depth_matches_brace_nesting():
    text = format_text("a {\nb {\nc {\nd;\n};\n};\n};").text
    assert text.split("\n") == ["a {", "\tb {", "\t\tc {", "\t\t\td;", "\t\t};", "\t};", "};"]


# --- Failure handling ---

def test_internal_error_becomes_failed_result(monkeypatch):
    def explode(self, text):
        raise RuntimeError("scanner state")

    monkeypatch.setattr(pipeline_module.DtsNormalizer, "normalize", explode)
    result = format_text("/ { };")

    assert result.success is False
    assert result.text == ""
    assert result.message == "Formatting failed: scanner state"
