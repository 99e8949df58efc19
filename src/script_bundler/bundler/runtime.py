"""Runtime mode classification and dependency-graph compatibility checks."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from script_bundler.bundler.errors import RuntimeConflictError
from script_bundler.bundler.models import DEFAULT_SOURCE_EXTENSION, RuntimeMode
from script_bundler.bundler.paths import parent_dir, resolve_request_path
from script_bundler.lexical import find_local_require_calls

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RuntimeRule:
    """Ordered classification rule: a text pattern and the mode it implies."""

    name: str
    pattern: re.Pattern[str]
    mode: RuntimeMode


# First matching rule wins. Process-spawning calls only exist in a standalone
# Node.js host, so they outrank host-injected globals.
RUNTIME_RULES: tuple[RuntimeRule, ...] = (
    RuntimeRule("exec_sync_call", re.compile(r"\bexecSync\s*\("), RuntimeMode.STANDALONE_MODULE),
    RuntimeRule("spawn_sync_call", re.compile(r"\bspawnSync\s*\("), RuntimeMode.STANDALONE_MODULE),
    RuntimeRule("core_global", re.compile(r"\bcore\.\w+"), RuntimeMode.SANDBOXED_SCRIPT),
    RuntimeRule("github_global", re.compile(r"\bgithub\.\w+"), RuntimeMode.SANDBOXED_SCRIPT),
)

# No signal means no host-specific API was detected, which is safe for both
# hosts; the most restrictive mode is assumed.
DEFAULT_RUNTIME_MODE = RuntimeMode.SANDBOXED_SCRIPT


def matching_runtime_rule(content: str) -> RuntimeRule | None:
    """Return the first rule whose pattern occurs in `content`."""
    for rule in RUNTIME_RULES:
        if rule.pattern.search(content):
            return rule
    return None


def classify_runtime_mode(content: str) -> RuntimeMode:
    """Guess which execution host a script assumes."""
    rule = matching_runtime_rule(content)
    if rule is None:
        return DEFAULT_RUNTIME_MODE
    logger.debug("Detected %s mode via rule %s", rule.mode, rule.name)
    return rule.mode


def is_compatible(detected: RuntimeMode, target: RuntimeMode) -> bool:
    """Sandboxed classification is compatible with every target."""
    return detected is RuntimeMode.SANDBOXED_SCRIPT or detected is target


def validate_runtime_compatibility(
    entry_content: str,
    sources: Mapping[str, str],
    target_mode: RuntimeMode,
    base_path: str = "",
    *,
    default_extension: str = DEFAULT_SOURCE_EXTENSION,
) -> None:
    """Walk every reachable local dependency and reject host conflicts.

    Files missing from `sources` are skipped here; the resolver reports them
    with a dedicated error.
    """
    logger.debug("Validating runtime compatibility: target_mode=%s", target_mode)
    checked: set[str] = set()
    pending: list[tuple[str, str]] = [(entry_content, base_path)]

    while pending:
        content, current_dir = pending.pop()
        discovered: list[tuple[str, str]] = []
        for call in find_local_require_calls(content):
            resolved = resolve_request_path(call.request, current_dir, default_extension)
            if resolved in checked:
                continue
            checked.add(resolved)
            dependency = sources.get(resolved)
            if dependency is None:
                continue
            detected = classify_runtime_mode(dependency)
            if not is_compatible(detected, target_mode):
                raise RuntimeConflictError(path=resolved, detected=detected, target=target_mode)
            discovered.append((dependency, parent_dir(resolved)))
        pending.extend(reversed(discovered))

    logger.debug("Runtime compatibility ok: %d dependencies checked", len(checked))
