"""Per-script API usage checks run when a script is registered."""

from __future__ import annotations

import logging
import re

from script_bundler.bundler.errors import ScriptContentError
from script_bundler.bundler.models import RuntimeMode

logger = logging.getLogger(__name__)

_EXEC_SYNC_RE = re.compile(r"\bexecSync\s*\(")
_SANDBOX_GLOBAL_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("core", re.compile(r"\bcore\.\w+")),
    ("exec", re.compile(r"\bexec\.\w+")),
    ("github", re.compile(r"\bgithub\.\w+")),
)
_COMMENT_LINE_PREFIXES = ("//", "/*", "*")
_TYPE_REFERENCE_MARKER = "/// <reference"


def validate_no_exec_sync(script_name: str, content: str, mode: RuntimeMode) -> None:
    """Reject `execSync(` calls in scripts registered for the sandboxed host."""
    if mode is not RuntimeMode.SANDBOXED_SCRIPT:
        return
    findings: list[str] = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        trimmed = line.strip()
        if trimmed.startswith(_COMMENT_LINE_PREFIXES):
            continue
        if _EXEC_SYNC_RE.search(line):
            findings.append(f"line {line_number}: {trimmed}")
    if findings:
        logger.warning("Found %d execSync usage(s) in %s", len(findings), script_name)
        raise ScriptContentError(
            script_name=script_name,
            findings=findings,
            reason=(
                f"{mode} mode script '{script_name}' contains "
                f"{len(findings)} execSync usage(s)"
            ),
            hint=f"{mode} scripts should use the async exec helper instead of execSync.",
        )


def validate_no_sandbox_globals(script_name: str, content: str, mode: RuntimeMode) -> None:
    """Reject `core.*`, `exec.*` and `github.*` usage in standalone scripts."""
    if mode is not RuntimeMode.STANDALONE_MODULE:
        return
    findings: list[str] = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        trimmed = line.strip()
        if trimmed.startswith(_COMMENT_LINE_PREFIXES) or _TYPE_REFERENCE_MARKER in trimmed:
            continue
        for name, pattern in _SANDBOX_GLOBAL_PATTERNS:
            if pattern.search(line):
                findings.append(f"line {line_number}: {name}.* usage: {trimmed}")
    if findings:
        logger.warning("Found %d sandbox global usage(s) in %s", len(findings), script_name)
        raise ScriptContentError(
            script_name=script_name,
            findings=findings,
            reason=(
                f"{mode} mode script '{script_name}' contains "
                f"{len(findings)} sandbox global usage(s)"
            ),
            hint=f"{mode} scripts should not use host globals (core.*, exec.*, github.*).",
        )


def validate_script_content(script_name: str, content: str, mode: RuntimeMode) -> None:
    """Run every content check applicable to `mode`."""
    validate_no_exec_sync(script_name, content, mode)
    validate_no_sandbox_globals(script_name, content, mode)
