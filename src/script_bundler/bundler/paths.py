"""Path resolution helpers for local require references."""

from __future__ import annotations

from script_bundler.bundler.models import DEFAULT_SOURCE_EXTENSION, SOURCE_EXTENSIONS


def normalize_path(path: str) -> str:
    """Normalize separators and collapse `.` and `..` segments.

    Leading `..` segments that climb above the catalog root are kept, so such
    a path never matches a catalog file (`../a/../b` becomes `../b`).
    """
    parts: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            else:
                parts.append(part)
            continue
        parts.append(part)
    return "/".join(parts)


def resolve_request_path(
    request: str,
    current_dir: str,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> str:
    """Resolve a local require request relative to the requiring file's directory."""
    joined = f"{current_dir}/{request}" if current_dir else request
    if not joined.endswith(SOURCE_EXTENSIONS):
        joined += default_extension
    return normalize_path(joined)


def parent_dir(path: str) -> str:
    """Return the directory part of a catalog path ("" at the root)."""
    normalized = normalize_path(path)
    if "/" not in normalized:
        return ""
    return normalized.rsplit("/", 1)[0]
