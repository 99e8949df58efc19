"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from script_bundler.bundler import BundleOptions
from script_bundler.bundler.models import SOURCE_EXTENSIONS

CONFIG_FILE_NAME = "script_bundler.toml"

MIN_HASH_LENGTH = 4
MAX_HASH_LENGTH = 64
MAX_DEPTH_CAP = 1024


@dataclass(slots=True, frozen=True)
class BundlerConfig:
    """Fully merged bundler configuration."""

    root: Path
    data_dir: Path
    options: BundleOptions

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for command responses."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "bundler": {
                "scripts_base_path": self.options.scripts_base_path,
                "default_extension": self.options.default_extension,
                "hash_length": self.options.hash_length,
                "max_depth": self.options.max_depth,
                "strip_comments": self.options.strip_comments,
                "inject_main_call": self.options.inject_main_call,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    data_dir: Path | None = None
    scripts_base_path: str | None = None
    max_depth: int | None = None
    strip_comments: bool | None = None


def default_config(root: Path) -> BundlerConfig:
    """Build default config for a given source root."""
    resolved_root = root.resolve()
    return BundlerConfig(
        root=resolved_root,
        data_dir=resolved_root / ".script_bundler",
        options=BundleOptions(),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional script_bundler.toml from the source root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: BundlerConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> BundlerConfig:
    """Merge defaults, config file, then CLI overrides."""
    bundler_payload = _get_table(file_payload, "bundler")
    defaults = base.options

    scripts_base_path = _optional_absolute_path(
        bundler_payload.get("scripts_base_path"),
        "bundler.scripts_base_path",
        defaults.scripts_base_path,
    )
    default_extension = _optional_extension(
        bundler_payload.get("default_extension"),
        "bundler.default_extension",
        defaults.default_extension,
    )
    hash_length = _optional_int_in_range(
        bundler_payload.get("hash_length"),
        "bundler.hash_length",
        defaults.hash_length,
        MIN_HASH_LENGTH,
        MAX_HASH_LENGTH,
    )
    max_depth = _optional_int_in_range(
        bundler_payload.get("max_depth"),
        "bundler.max_depth",
        defaults.max_depth,
        1,
        MAX_DEPTH_CAP,
    )
    strip_comments = _optional_bool(
        bundler_payload.get("strip_comments"),
        "bundler.strip_comments",
        defaults.strip_comments,
    )
    inject_main_call = _optional_bool(
        bundler_payload.get("inject_main_call"),
        "bundler.inject_main_call",
        defaults.inject_main_call,
    )

    data_dir = base.data_dir
    if "data_dir" in bundler_payload:
        raw_data_dir = bundler_payload["data_dir"]
        if not isinstance(raw_data_dir, str) or not raw_data_dir.strip():
            raise ValueError("Config field 'bundler.data_dir' must be a non-empty string.")
        data_dir = base.root / raw_data_dir

    merged = BundlerConfig(
        root=base.root,
        data_dir=data_dir,
        options=BundleOptions(
            scripts_base_path=scripts_base_path,
            default_extension=default_extension,
            hash_length=hash_length,
            max_depth=max_depth,
            strip_comments=strip_comments,
            inject_main_call=inject_main_call,
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: BundlerConfig, overrides: CliOverrides) -> BundlerConfig:
    """Apply command-line overrides at highest precedence."""
    current = config.options
    options = BundleOptions(
        scripts_base_path=_optional_absolute_path(
            overrides.scripts_base_path,
            "overrides.scripts_base_path",
            current.scripts_base_path,
        ),
        default_extension=current.default_extension,
        hash_length=current.hash_length,
        max_depth=_optional_int_in_range(
            overrides.max_depth,
            "overrides.max_depth",
            current.max_depth,
            1,
            MAX_DEPTH_CAP,
        ),
        strip_comments=(
            overrides.strip_comments
            if overrides.strip_comments is not None
            else current.strip_comments
        ),
        inject_main_call=current.inject_main_call,
    )
    data_dir = overrides.data_dir or config.data_dir
    return BundlerConfig(
        root=config.root,
        data_dir=data_dir.resolve(),
        options=options,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> BundlerConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_int_in_range(
    value: object,
    name: str,
    default: int,
    minimum: int,
    cap: int,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Config field '{name}' must be an integer.")
    if value < minimum:
        raise ValueError(f"Config field '{name}' must be >= {minimum}.")
    if value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_absolute_path(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.startswith("/"):
        raise ValueError(f"Config field '{name}' must be an absolute POSIX path.")
    stripped = value.rstrip("/")
    return stripped or "/"


def _optional_extension(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if value not in SOURCE_EXTENSIONS:
        choices = ", ".join(SOURCE_EXTENSIONS)
        raise ValueError(f"Config field '{name}' must be one of: {choices}.")
    return str(value)
