"""Inline-mode bundling pipeline."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from script_bundler.bundler.dedupe import deduplicate_requires
from script_bundler.bundler.exports import strip_exports
from script_bundler.bundler.models import BundleContext, BundleOptions, RuntimeMode
from script_bundler.bundler.resolver import resolve_dependencies
from script_bundler.bundler.runtime import validate_runtime_compatibility
from script_bundler.bundler.safety import assert_no_local_requires, assert_no_module_references

logger = logging.getLogger(__name__)

_ASYNC_MAIN_DEFINITION_RE = re.compile(r"\basync\s+function\s+main\s*\(")
_TOP_LEVEL_MAIN_CALL_RE = re.compile(r"^(?:await\s+)?main\s*\(\s*\)", re.MULTILINE)
_MAIN_CALL = "await main();"


def bundle_script(
    entry_content: str,
    sources: Mapping[str, str],
    base_path: str = "",
    mode: RuntimeMode = RuntimeMode.SANDBOXED_SCRIPT,
    *,
    options: BundleOptions | None = None,
) -> str:
    """Bundle an entry script and its local helpers into one text.

    `base_path` is the catalog directory the entry lives in. Runs the runtime
    compatibility check, inlines dependencies with a fresh context and merges
    repeated requires. For the sandboxed host the whole text is then stripped
    of exports and must contain no local require and no module reference;
    standalone bundles keep their exports and are returned as is.
    """
    active = options or BundleOptions()
    logger.debug(
        "Bundling script: mode=%s, base_path=%r, sources=%d, entry=%d bytes",
        mode,
        base_path,
        len(sources),
        len(entry_content),
    )

    validate_runtime_compatibility(
        entry_content,
        sources,
        mode,
        base_path,
        default_extension=active.default_extension,
    )

    context = BundleContext.fresh(mode, active)
    bundled = resolve_dependencies(entry_content, base_path, sources, context)
    bundled = deduplicate_requires(bundled)

    if mode is RuntimeMode.SANDBOXED_SCRIPT:
        bundled = strip_exports(bundled)
        if active.inject_main_call:
            bundled = ensure_main_call(bundled)
        assert_no_local_requires(bundled)
        assert_no_module_references(bundled)

    logger.debug(
        "Bundled %d file(s): %d bytes",
        len(context.visited) + 1,
        len(bundled),
    )
    return bundled


def ensure_main_call(bundled: str) -> str:
    """Append `await main();` when an async `main` is defined but never invoked."""
    if not _ASYNC_MAIN_DEFINITION_RE.search(bundled):
        return bundled
    if _TOP_LEVEL_MAIN_CALL_RE.search(bundled):
        return bundled
    logger.debug("Injecting %s", _MAIN_CALL)
    separator = "" if bundled.endswith("\n") else "\n"
    return f"{bundled}{separator}{_MAIN_CALL}\n"
