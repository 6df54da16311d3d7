#!/usr/bin/env python3
"""
DTSFMT SETTINGS SUITE
---------------------
.dtsfmt.yaml discovery, validation and flag overrides.
"""

import pytest

from dtsfmt.config.settings import (
    CONFIG_FILENAME, ConfigError, Settings, find_config, load_settings, parse_settings,
)
from dtsfmt.core.models import FormatOptions


def write_config(directory, body):
    path = directory / CONFIG_FILENAME
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults():
    settings = load_settings(None)

    assert settings.max_line_length == 80
    assert settings.warnings is True
    assert settings.include_comments_in_length is True
    assert settings.use_tabs is True
    assert settings.tab_width == 8
    assert settings.extensions == [".dts", ".dtsi", ".overlay"]
    assert settings.to_format_options() == FormatOptions()


def test_load_all_keys(tmp_path):
    path = write_config(tmp_path, (
        "maxLineLength: 100\n"
        "warnings: false\n"
        "includeCommentsInLength: false\n"
        "useTabs: false\n"
        "tabWidth: 4\n"
        "extensions: [dts, .DTSI]\n"
    ))
    settings = load_settings(path)

    assert settings.max_line_length == 100
    assert settings.warnings is False
    assert settings.include_comments_in_length is False
    assert settings.to_format_options() == FormatOptions(use_tabs=False, tab_width=4, max_line_length=100)
    assert settings.extensions == [".dts", ".dtsi"]
    assert settings.source == path


def test_empty_file_gives_defaults(tmp_path):
    settings = load_settings(write_config(tmp_path, ""))
    assert settings.max_line_length == 80


@pytest.mark.parametrize("body,key", [
    ("maxLen: 90\n", "maxLen"),
    ("tabWidth: true\n", "tabWidth"),
    ("useTabs: 'yes'\n", "useTabs"),
    ("tabWidth: 0\n", "tabWidth"),
    ("maxLineLength: -1\n", "maxLineLength"),
    ("extensions: [1]\n", "extensions"),
])
def test_invalid_values_are_rejected(tmp_path, body, key):
    path = write_config(tmp_path, body)

    with pytest.raises(ConfigError) as excinfo:
        load_settings(path)

    assert excinfo.value.key == key
    assert excinfo.value.path == path
    assert str(path) in str(excinfo.value)


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(write_config(tmp_path, "- a\n- b\n"))


def test_yaml_syntax_error(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(write_config(tmp_path, "maxLineLength: [100\n"))


def test_missing_file_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_settings({"bogus": 1})


def test_find_config_walks_up(tmp_path):
    config = write_config(tmp_path, "tabWidth: 4\n")
    nested = tmp_path / "arch" / "arm64" / "boot"
    nested.mkdir(parents=True)
    board = nested / "board.dts"
    board.write_text("/ {};\n")

    assert find_config(board) == config.resolve()
    assert find_config(nested) == config.resolve()


def test_find_config_none(tmp_path):
    nested = tmp_path / "a"
    nested.mkdir()
    found = find_config(nested)
    assert found is None or found.parent not in (nested, tmp_path)


def test_merged_overrides_skip_none():
    settings = Settings().merged(use_tabs=False, tab_width=None, max_line_length=120)

    assert settings.use_tabs is False
    assert settings.tab_width == 8
    assert settings.max_line_length == 120


def test_merged_validates():
    with pytest.raises(ConfigError):
        Settings().merged(tab_width=0)
    with pytest.raises(ConfigError):
        Settings().merged(colour="blue")
