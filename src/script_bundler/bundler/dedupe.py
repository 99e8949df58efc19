"""Scope-aware merging of repeated `require` declarations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from script_bundler.lexical import parse_require_line

logger = logging.getLogger(__name__)

_TAB_WIDTH = 2


@dataclass(slots=True)
class _ModuleImports:
    variables: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _IndentGroup:
    first_line: int
    modules: dict[str, _ModuleImports] = field(default_factory=dict)


def deduplicate_requires(content: str) -> str:
    """Merge repeated require declarations that share an indentation width.

    Declarations are grouped by (indentation width, module). All merged
    declarations of one width are written where the first require of that
    width appeared; the remaining require lines of that width are dropped.
    Requires at different widths are never merged, so a helper re-required in
    a nested scope keeps its own declaration.
    """
    lines = content.split("\n")
    groups: dict[int, _IndentGroup] = {}
    require_lines: set[int] = set()

    for index, line in enumerate(lines):
        parsed = parse_require_line(line)
        if parsed is None:
            continue
        require_lines.add(index)
        indent = indentation_width(line)
        group = groups.setdefault(indent, _IndentGroup(first_line=index))
        imports = group.modules.setdefault(parsed.module, _ModuleImports())
        if parsed.variable is not None:
            imports.variables.append(parsed.variable)
        else:
            imports.names.extend(parsed.names)

    if not require_lines:
        return content

    first_lines = {group.first_line: indent for indent, group in groups.items()}
    output: list[str] = []
    for index, line in enumerate(lines):
        if index not in require_lines:
            output.append(line)
            continue
        indent = first_lines.get(index)
        if indent is None:
            continue
        output.extend(_merged_statements(indent, groups[indent]))

    logger.debug(
        "Deduplicated %d require line(s) across %d indentation level(s)",
        len(require_lines),
        len(groups),
    )
    return "\n".join(output)


def indentation_width(line: str) -> int:
    """Leading indentation width; a tab counts as two columns."""
    width = 0
    for char in line:
        if char == " ":
            width += 1
        elif char == "\t":
            width += _TAB_WIDTH
        else:
            break
    return width


def _merged_statements(indent: int, group: _IndentGroup) -> list[str]:
    prefix = " " * indent
    statements: list[str] = []
    for module, imports in group.modules.items():
        if imports.variables:
            statements.append(f'{prefix}const {imports.variables[0]} = require("{module}");')
        if imports.names:
            names = ", ".join(dict.fromkeys(imports.names))
            statements.append(f'{prefix}const {{ {names} }} = require("{module}");')
    return statements
