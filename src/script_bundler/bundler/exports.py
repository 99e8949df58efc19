"""CommonJS export removal for hosts without a module system."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_MODULE_EXPORTS_ASSIGNMENT_RE = re.compile(r"^\s*module\.exports\s*=")
_NAMED_EXPORT_ASSIGNMENT_RE = re.compile(r"^\s*exports\.[\w$]+\s*=")
_INLINE_CONDITIONAL_EXPORT_RE = re.compile(
    r"\(\s*[\"']undefined[\"']\s*!=\s*typeof\s+module\s*&&\s*module\.exports"
)
_CONDITIONAL_KEYWORD_RE = re.compile(r"\bif\b")

_CONDITIONAL_BLOCK = "conditional"
_UNCONDITIONAL_BLOCK = "unconditional"


def strip_exports(content: str) -> str:
    """Remove `module.exports` and `exports.<name>` statements line by line.

    Works on raw lines and does not understand strings or comments; callers
    run the comment stripper first when export-shaped text may appear there.
    """
    lines = content.split("\n")
    last_index = len(lines) - 1
    output: list[str] = []
    block: str | None = None
    depth = 0
    removed = 0

    for index, line in enumerate(lines):
        trimmed = line.strip()

        if block is not None:
            depth = _track_depth(trimmed, depth)
            if depth <= 0:
                block = None
                depth = 0
            removed += 1
            continue

        if _INLINE_CONDITIONAL_EXPORT_RE.search(trimmed):
            removed += 1
            continue

        if _opens_conditional_export(trimmed):
            depth = _brace_balance(trimmed)
            if depth > 0:
                block = _CONDITIONAL_BLOCK
            removed += 1
            continue

        if _MODULE_EXPORTS_ASSIGNMENT_RE.match(line):
            balance = _brace_balance(trimmed)
            if "{" in trimmed and balance > 0:
                block = _UNCONDITIONAL_BLOCK
                depth = balance
            removed += 1
            continue

        if _NAMED_EXPORT_ASSIGNMENT_RE.match(line):
            removed += 1
            continue

        output.append(line + "\n" if index < last_index else line)

    if removed:
        logger.debug("Removed %d export line(s)", removed)
    return "".join(output)


def _opens_conditional_export(trimmed: str) -> bool:
    return (
        trimmed.endswith("{")
        and _CONDITIONAL_KEYWORD_RE.search(trimmed) is not None
        and "module" in trimmed
        and "exports" in trimmed
    )


def _brace_balance(text: str) -> int:
    return text.count("{") - text.count("}")


def _track_depth(trimmed: str, depth: int) -> int:
    for char in trimmed:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return 0
    return depth
