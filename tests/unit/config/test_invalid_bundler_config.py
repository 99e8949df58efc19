from __future__ import annotations

from pathlib import Path

import pytest

from script_bundler.config import CliOverrides, load_effective_config


def _write_config(root: Path, *lines: str) -> None:
    (root / "script_bundler.toml").write_text("\n".join(lines), encoding="utf-8")


@pytest.mark.parametrize(
    ("lines", "field"),
    [
        (("[bundler]", 'hash_length = "eight"'), "bundler.hash_length"),
        (("[bundler]", "hash_length = 2"), "bundler.hash_length"),
        (("[bundler]", "hash_length = 65"), "bundler.hash_length"),
        (("[bundler]", "max_depth = 0"), "bundler.max_depth"),
        (("[bundler]", "max_depth = 5000"), "bundler.max_depth"),
        (("[bundler]", "max_depth = true"), "bundler.max_depth"),
        (("[bundler]", 'strip_comments = "yes"'), "bundler.strip_comments"),
        (("[bundler]", 'inject_main_call = 1'), "bundler.inject_main_call"),
        (("[bundler]", 'scripts_base_path = "relative/path"'), "bundler.scripts_base_path"),
        (("[bundler]", 'default_extension = ".mjs"'), "bundler.default_extension"),
        (("[bundler]", 'data_dir = ""'), "bundler.data_dir"),
    ],
)
def test_invalid_field_raises_value_error_naming_field(
    tmp_path: Path, lines: tuple[str, ...], field: str
) -> None:
    _write_config(tmp_path, *lines)

    with pytest.raises(ValueError, match=f"Config field '{field}'"):
        load_effective_config(tmp_path)


def test_non_table_section_is_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, 'bundler = "flat"')

    with pytest.raises(ValueError, match="Config section 'bundler' must be a table."):
        load_effective_config(tmp_path)


def test_invalid_cli_override_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Config field 'overrides.max_depth'"):
        load_effective_config(tmp_path, CliOverrides(max_depth=-1))
