from __future__ import annotations

from pathlib import Path

from script_bundler.config import CliOverrides, default_config, load_effective_config


def test_defaults_match_runtime_layout(tmp_path: Path) -> None:
    config = default_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.data_dir == tmp_path.resolve() / ".script_bundler"
    assert config.options.scripts_base_path == "/opt/gh-aw/actions"
    assert config.options.default_extension == ".cjs"
    assert config.options.hash_length == 8
    assert config.options.max_depth == 64
    assert config.options.strip_comments is True
    assert config.options.inject_main_call is True


def test_merge_order_defaults_then_file_then_cli(tmp_path: Path) -> None:
    (tmp_path / "script_bundler.toml").write_text(
        "\n".join(
            [
                "[bundler]",
                'scripts_base_path = "/srv/scripts/"',
                "hash_length = 12",
                "max_depth = 10",
                "strip_comments = false",
                'data_dir = "build/bundler"',
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(max_depth=20, strip_comments=True)

    config = load_effective_config(tmp_path, overrides)

    assert config.options.scripts_base_path == "/srv/scripts"
    assert config.options.hash_length == 12
    assert config.options.max_depth == 20
    assert config.options.strip_comments is True
    assert config.data_dir == (tmp_path / "build" / "bundler").resolve()


def test_data_dir_override_has_highest_precedence(tmp_path: Path) -> None:
    custom_data_dir = tmp_path / ".custom_data"

    config = load_effective_config(tmp_path, CliOverrides(data_dir=custom_data_dir))

    assert config.to_public_dict()["data_dir"] == str(custom_data_dir.resolve())


def test_public_dict_is_serializable_snapshot(tmp_path: Path) -> None:
    snapshot = default_config(tmp_path).to_public_dict()

    assert snapshot["bundler"] == {
        "scripts_base_path": "/opt/gh-aw/actions",
        "default_extension": ".cjs",
        "hash_length": 8,
        "max_depth": 64,
        "strip_comments": True,
        "inject_main_call": True,
    }
