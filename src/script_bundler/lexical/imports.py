"""Recognizers for CommonJS `require` statements.

Accepted grammar (purely lexical, no parsing):

* Local require declaration, the shape the resolver inlines::

      (const|let|var) <identifier | { ... }> = require(<'|"><./ or ../ path><'|">)[;]

  The destructure may span several lines and whitespace is allowed around
  `=` and inside the call parentheses. Anything else (member access such as
  `require('./x').y`, bare `require('./x');` calls, template literal paths)
  is not recognized and surfaces later as an unbound local require.

* Local require call: any `require('<./ or ../ path>')` occurrence. Used for
  graph walks, safety checks and file-mode path rewriting.

* Require line: one whole line holding a single destructured or simple
  declaration for any module specifier. Used by the deduplicator.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

_LOCAL_REQUIRE_DECLARATION_RE = re.compile(
    r"\b(const|let|var)\s+(\{[^}]*\}|[A-Za-z_$][\w$]*)\s*=\s*"
    r"require\(\s*['\"](\.\.?/[^'\"]+)['\"]\s*\)(?![ \t]*[.\[(]);?",
    re.DOTALL,
)
_LOCAL_REQUIRE_CALL_RE = re.compile(r"require\(\s*['\"](\.\.?/[^'\"]+)['\"]\s*\)")
_DESTRUCTURED_REQUIRE_LINE_RE = re.compile(
    r"^\s*(?:const|let|var)\s+\{\s*([^}]+?)\s*\}\s*=\s*require\(['\"]([^'\"]+)['\"]\);?\s*$"
)
_SIMPLE_REQUIRE_LINE_RE = re.compile(
    r"^\s*(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*=\s*require\(['\"]([^'\"]+)['\"]\);?\s*$"
)


@dataclass(slots=True, frozen=True)
class ImportStatement:
    """Recognized local require declaration with its character span."""

    keyword: str
    binding: str
    module_path: str
    start: int
    end: int
    line: int

    @property
    def is_destructured(self) -> bool:
        """Return True for `{ ... }` bindings."""
        return self.binding.startswith("{")


@dataclass(slots=True, frozen=True)
class LocalRequire:
    """One `require('./...')` call occurrence with 1-based line number."""

    request: str
    line: int
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class RequireLine:
    """Single-line require declaration as seen by the deduplicator."""

    module: str
    names: tuple[str, ...]
    variable: str | None


def find_local_require_declarations(text: str) -> list[ImportStatement]:
    """Return local require declarations in source order."""
    statements: list[ImportStatement] = []
    for match in _LOCAL_REQUIRE_DECLARATION_RE.finditer(text):
        statements.append(
            ImportStatement(
                keyword=match.group(1),
                binding=match.group(2),
                module_path=match.group(3),
                start=match.start(),
                end=match.end(),
                line=text.count("\n", 0, match.start()) + 1,
            )
        )
    return statements


def find_local_require_calls(text: str) -> list[LocalRequire]:
    """Return every local `require(...)` call in source order."""
    calls: list[LocalRequire] = []
    for match in _LOCAL_REQUIRE_CALL_RE.finditer(text):
        calls.append(
            LocalRequire(
                request=match.group(1),
                line=text.count("\n", 0, match.start()) + 1,
                start=match.start(),
                end=match.end(),
            )
        )
    return calls


def replace_local_require_calls(text: str, rewrite: Callable[[str], str]) -> str:
    """Replace the path of each local require call with `rewrite(request)`."""
    return _LOCAL_REQUIRE_CALL_RE.sub(
        lambda match: f"require('{rewrite(match.group(1))}')",
        text,
    )


def parse_require_line(line: str) -> RequireLine | None:
    """Parse a whole-line destructured or simple require declaration."""
    destructured = _DESTRUCTURED_REQUIRE_LINE_RE.match(line)
    if destructured is not None:
        names = tuple(
            name.strip() for name in destructured.group(1).split(",") if name.strip()
        )
        return RequireLine(module=destructured.group(2), names=names, variable=None)
    simple = _SIMPLE_REQUIRE_LINE_RE.match(line)
    if simple is not None:
        return RequireLine(module=simple.group(2), names=(), variable=simple.group(1))
    return None
