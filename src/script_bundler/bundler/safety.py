"""Post-bundle safety assertions and whole-catalog completeness checks."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from script_bundler.bundler.errors import (
    ModuleReferenceLeakError,
    SourceSetIncompleteError,
    UnboundLocalRequireError,
)
from script_bundler.bundler.models import DEFAULT_SOURCE_EXTENSION, MissingRequire
from script_bundler.bundler.paths import parent_dir, resolve_request_path
from script_bundler.lexical import find_local_require_calls

logger = logging.getLogger(__name__)

_MODULE_EXPORTS_REFERENCE_RE = re.compile(r"\bmodule\.exports\b")
_NAMED_EXPORTS_REFERENCE_RE = re.compile(r"(?<![\w$.])exports\.\w+")
_COMMENT_LINE_PREFIXES = ("//", "/*", "*")


def assert_no_local_requires(bundled: str) -> None:
    """Fail when any `require('./...')` survived inlining."""
    calls = find_local_require_calls(bundled)
    if not calls:
        return
    findings = [f"line {call.line}: require('{call.request}')" for call in calls]
    logger.error("Found %d un-inlined local require(s)", len(findings))
    raise UnboundLocalRequireError(
        findings=findings,
        paths=tuple(dict.fromkeys(call.request for call in calls)),
    )


def assert_no_module_references(bundled: str) -> None:
    """Fail when `module.exports` or `exports.<name>` remains outside comment lines."""
    findings: list[str] = []
    for line_number, line in enumerate(bundled.split("\n"), start=1):
        if line.strip().startswith(_COMMENT_LINE_PREFIXES):
            continue
        if _MODULE_EXPORTS_REFERENCE_RE.search(line):
            findings.append(f"line {line_number}: module.exports reference")
        if _NAMED_EXPORTS_REFERENCE_RE.search(line):
            findings.append(f"line {line_number}: exports reference")
    if findings:
        logger.error("Found %d module reference(s)", len(findings))
        raise ModuleReferenceLeakError(findings=findings)


def find_missing_requires(
    sources: Mapping[str, str],
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> list[MissingRequire]:
    """List every local require in the source set whose target is absent."""
    missing: list[MissingRequire] = []
    for path in sorted(sources):
        current_dir = parent_dir(path)
        for call in find_local_require_calls(sources[path]):
            resolved = resolve_request_path(call.request, current_dir, default_extension)
            if resolved not in sources:
                missing.append(MissingRequire(requirer=path, requested=call.request, resolved=resolved))
    return missing


def assert_source_set_complete(
    sources: Mapping[str, str],
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> None:
    """Fail with every (requirer, requested, resolved) triple missing from `sources`."""
    logger.debug("Checking %d catalog files for missing local requires", len(sources))
    missing = find_missing_requires(sources, default_extension=default_extension)
    if missing:
        logger.error("Source set is missing %d dependencies", len(missing))
        raise SourceSetIncompleteError(missing=missing)
