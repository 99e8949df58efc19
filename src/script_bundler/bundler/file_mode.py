"""File-mode packaging: hashed, deduplicated file sets with absolute requires."""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from script_bundler.bundler.errors import MissingDependencyError
from script_bundler.bundler.models import (
    DEFAULT_SCRIPTS_BASE_PATH,
    DEFAULT_SOURCE_EXTENSION,
    ScriptFile,
    ScriptFilesResult,
)
from script_bundler.bundler.paths import normalize_path, parent_dir, resolve_request_path
from script_bundler.lexical import find_local_require_calls, replace_local_require_calls

logger = logging.getLogger(__name__)


class SourceLookupFn(Protocol):
    """Entry-script lookup callback used when merging several entries."""

    def __call__(self, name: str) -> str | None:
        """Return the script text registered under `name`, or None."""


DEFAULT_HASH_LENGTH = 8

GLOBALS_PREAMBLE = (
    "// Expose github-script globals to required modules\n"
    "globalThis.github = github;\n"
    "globalThis.context = context;\n"
    "globalThis.core = core;\n"
    "globalThis.exec = exec;\n"
    "globalThis.io = io;\n"
    "\n"
)

_TOP_LEVEL_AWAIT_MAIN_RE = re.compile(
    r"^await\s+main\s*\(\s*\)\s*;?[ \t]*(?=\r?$)",
    re.MULTILINE,
)
_ASYNC_MAIN_WRAPPER = "(async () => { await main(); })();"


def compute_short_hash(content: str, length: int = DEFAULT_HASH_LENGTH) -> str:
    """Return the first `length` hex characters of the SHA-256 of `content`."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]


def patch_top_level_await(content: str) -> str:
    """Wrap a top-level `await main();` line in an async IIFE.

    CommonJS modules cannot suspend at the top level, so the module-aware host
    would reject the bare call.
    """
    return _TOP_LEVEL_AWAIT_MAIN_RE.sub(_ASYNC_MAIN_WRAPPER, content)


def collect_script_files(
    script_name: str,
    content: str,
    sources: Mapping[str, str],
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> ScriptFilesResult:
    """Collect the main script (await patched) plus every local dependency."""
    logger.debug("Collecting script files for %s (%d bytes)", script_name, len(content))
    main_path = f"{script_name}{default_extension}"
    patched = patch_top_level_await(content)
    collected = {
        main_path: ScriptFile(
            path=main_path,
            content=patched,
            hash=compute_short_hash(patched, hash_length),
        )
    }
    _collect_dependencies(
        content,
        main_path,
        sources,
        collected,
        processed={main_path},
        default_extension=default_extension,
        hash_length=hash_length,
    )
    return _sorted_result(collected.values(), main_path)


def collect_script_dependencies(
    script_name: str,
    content: str,
    sources: Mapping[str, str],
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> ScriptFilesResult:
    """Collect only the dependencies of a script; the main script is not emitted."""
    logger.debug("Collecting dependencies for %s (%d bytes)", script_name, len(content))
    main_path = f"{script_name}{default_extension}"
    collected: dict[str, ScriptFile] = {}
    _collect_dependencies(
        content,
        main_path,
        sources,
        collected,
        processed={main_path},
        default_extension=default_extension,
        hash_length=hash_length,
    )
    return _sorted_result(collected.values(), main_path)


def collect_all_script_files(
    script_names: Sequence[str],
    sources: Mapping[str, str],
    *,
    lookup: SourceLookupFn,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> ScriptFilesResult:
    """Merge the dependency sets of several entry scripts into one file set.

    The first file seen for a path wins; a later file at the same path with a
    different hash is reported in `warnings`. Entries `lookup` cannot find are
    skipped with a warning. The merged set carries no main script, so
    `main_script_path` is empty.
    """
    merged: dict[str, ScriptFile] = {}
    warnings: list[str] = []
    for name in script_names:
        content = lookup(name)
        if content is None:
            logger.warning("Script not found in catalog: %s, skipping", name)
            warnings.append(f"script not found in catalog: {name}")
            continue
        result = collect_script_dependencies(
            name,
            content,
            sources,
            default_extension=default_extension,
            hash_length=hash_length,
        )
        for item in result.files:
            existing = merged.get(item.path)
            if existing is None:
                merged[item.path] = item
                continue
            if existing.hash != item.hash:
                logger.warning("File %s has different content from different scripts", item.path)
                warnings.append(
                    f"file {item.path} has different content from different scripts "
                    f"({existing.hash} != {item.hash})"
                )
    logger.debug("Collected %d unique dependency files for %d scripts", len(merged), len(script_names))
    return _sorted_result(merged.values(), "", warnings)


def rewrite_requires_to_absolute(
    content: str,
    base_path: str,
    current_path: str = "",
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> str:
    """Rewrite every local require to `<base_path>/<resolved path>`.

    Requests are resolved relative to the directory of `current_path` with the
    same rules used when collecting, so rewritten paths name collected files.
    """
    prefix = base_path.rstrip("/")
    current_dir = parent_dir(current_path)
    return replace_local_require_calls(
        content,
        lambda request: f"{prefix}/{resolve_request_path(request, current_dir, default_extension)}",
    )


def prepare_files_for_file_mode(
    files: Iterable[ScriptFile],
    base_path: str = DEFAULT_SCRIPTS_BASE_PATH,
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> tuple[ScriptFile, ...]:
    """Rewrite requires in each file and recompute hashes from the new text."""
    prepared: list[ScriptFile] = []
    for item in files:
        rewritten = rewrite_requires_to_absolute(
            item.content,
            base_path,
            item.path,
            default_extension=default_extension,
        )
        prepared.append(
            ScriptFile(
                path=item.path,
                content=rewritten,
                hash=compute_short_hash(rewritten, hash_length),
            )
        )
    return tuple(prepared)


def package_scripts(
    entry_names: Sequence[str],
    sources: Mapping[str, str],
    *,
    base_path: str = DEFAULT_SCRIPTS_BASE_PATH,
    lookup: SourceLookupFn | None = None,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
    hash_length: int = DEFAULT_HASH_LENGTH,
) -> ScriptFilesResult:
    """Collect the shared dependency set of `entry_names` ready for the runtime location.

    Entry scripts are looked up as `<name><default_extension>` in `sources`
    unless `lookup` is given. When exactly one distinct entry is packaged and found,
    `main_script_path` names it; several entries share no main script.
    """
    resolve_entry = lookup or (lambda name: sources.get(f"{name}{default_extension}"))
    collected = collect_all_script_files(
        entry_names,
        sources,
        lookup=resolve_entry,
        default_extension=default_extension,
        hash_length=hash_length,
    )
    prepared = prepare_files_for_file_mode(
        collected.files,
        base_path,
        default_extension=default_extension,
        hash_length=hash_length,
    )
    main_script_path = ""
    distinct = list(dict.fromkeys(entry_names))
    if len(distinct) == 1 and resolve_entry(distinct[0]) is not None:
        main_script_path = normalize_path(f"{distinct[0]}{default_extension}")
    return _sorted_result(prepared, main_script_path, collected.warnings)


def generate_require_script(main_script_path: str, base_path: str = DEFAULT_SCRIPTS_BASE_PATH) -> str:
    """Return the loader snippet that requires a packaged main script."""
    full_path = f"{base_path.rstrip('/')}/{main_script_path}"
    return f"(async () => {{ await require('{full_path}'); }})();"


def inline_script_for_file_mode(
    content: str,
    base_path: str = DEFAULT_SCRIPTS_BASE_PATH,
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> str:
    """Prepare a main script for inline use while its helpers load from disk.

    Host globals are exposed on `globalThis` for the required helpers, local
    requires point at the packaged files and a top-level `await main();` is
    wrapped.
    """
    rewritten = rewrite_requires_to_absolute(content, base_path, default_extension=default_extension)
    patched = patch_top_level_await(rewritten)
    result = GLOBALS_PREAMBLE + patched
    logger.debug("Inlined script for file mode: %d bytes (from %d)", len(result), len(content))
    return result


def _collect_dependencies(
    content: str,
    current_path: str,
    sources: Mapping[str, str],
    collected: dict[str, ScriptFile],
    processed: set[str],
    *,
    default_extension: str,
    hash_length: int,
) -> None:
    pending: list[tuple[str, str]] = [(content, current_path)]
    while pending:
        text, requirer = pending.pop()
        current_dir = parent_dir(requirer)
        discovered: list[tuple[str, str]] = []
        for call in find_local_require_calls(text):
            resolved = resolve_request_path(call.request, current_dir, default_extension)
            if resolved in processed:
                continue
            processed.add(resolved)
            dependency = sources.get(resolved)
            if dependency is None:
                raise MissingDependencyError(
                    resolved_path=resolved,
                    request=call.request,
                    requirer=requirer,
                )
            collected[resolved] = ScriptFile(
                path=resolved,
                content=dependency,
                hash=compute_short_hash(dependency, hash_length),
            )
            logger.debug("Collected dependency: %s (%d bytes)", resolved, len(dependency))
            discovered.append((dependency, resolved))
        pending.extend(reversed(discovered))


def _sorted_result(
    files: Iterable[ScriptFile],
    main_script_path: str,
    warnings: Sequence[str] = (),
) -> ScriptFilesResult:
    ordered = tuple(sorted(files, key=lambda item: item.path))
    return ScriptFilesResult(
        files=ordered,
        main_script_path=main_script_path,
        total_size=sum(len(item.content) for item in ordered),
        warnings=tuple(warnings),
    )
