"""Recursive inlining of local require declarations."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from script_bundler.bundler.errors import DependencyDepthError, MissingDependencyError
from script_bundler.bundler.exports import strip_exports
from script_bundler.bundler.models import BundleContext, RuntimeMode
from script_bundler.bundler.paths import parent_dir, resolve_request_path
from script_bundler.lexical import find_local_require_declarations, strip_comments

logger = logging.getLogger(__name__)


def inlined_begin_marker(request: str) -> str:
    """Comment line opening an inlined dependency."""
    return f"// === Inlined from {request} ===\n"


def inlined_end_marker(request: str) -> str:
    """Comment line closing an inlined dependency."""
    return f"// === End of {request} ===\n"


def already_inlined_marker(request: str) -> str:
    """Comment left where a dependency was already inlined earlier in the bundle."""
    return f"// Already inlined: {request}\n"


def resolve_dependencies(
    content: str,
    current_dir: str,
    sources: Mapping[str, str],
    context: BundleContext,
) -> str:
    """Replace every recognized local require declaration with its resolved text.

    Dependencies are resolved depth-first relative to their own directory and
    inlined at most once per context. A repeated or cyclic require becomes an
    "already inlined" marker; its binding is not declared again, so later code
    relies on the declaration emitted by the first inlining still being in
    scope.
    """
    sandboxed = context.mode is RuntimeMode.SANDBOXED_SCRIPT
    if sandboxed and context.strip_comments:
        # Comments go first so commented-out requires and exports are never acted on.
        content = strip_comments(content)

    statements = find_local_require_declarations(content)
    if not statements:
        return content
    logger.debug(
        "Resolving %d require(s) in %s (depth=%d)",
        len(statements),
        context.requirer,
        context.depth,
    )

    output: list[str] = []
    last_end = 0
    for statement in statements:
        output.append(content[last_end : statement.start])
        last_end = statement.end
        request = statement.module_path
        resolved = resolve_request_path(request, current_dir, context.default_extension)

        if resolved in context.visited:
            logger.debug("Skipping already inlined file: %s", resolved)
            output.append(already_inlined_marker(request))
            continue
        context.visited.add(resolved)

        dependency = sources.get(resolved)
        if dependency is None:
            raise MissingDependencyError(
                resolved_path=resolved,
                request=request,
                requirer=context.requirer,
            )
        if context.depth >= context.max_depth:
            raise DependencyDepthError(
                path=resolved,
                max_depth=context.max_depth,
                chain=context.chain,
            )

        context.chain.append(resolved)
        inlined = resolve_dependencies(dependency, parent_dir(resolved), sources, context)
        context.chain.pop()

        if sandboxed:
            inlined = strip_exports(inlined)
        if inlined and not inlined.endswith("\n"):
            inlined += "\n"
        logger.debug("Inlined %s (%d bytes)", resolved, len(inlined))
        output.append(inlined_begin_marker(request))
        output.append(inlined)
        output.append(inlined_end_marker(request))

    output.append(content[last_end:])
    return "".join(output)
