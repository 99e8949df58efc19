"""Structured bundler failures carrying kind, paths, reason and remediation hint."""

from __future__ import annotations

from collections.abc import Sequence

from script_bundler.bundler.models import MissingRequire, RuntimeMode


class BundlerError(Exception):
    """Base class for every fatal bundling failure."""

    kind = "BUNDLER_ERROR"

    def __init__(self, reason: str, hint: str, paths: Sequence[str] = ()) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint
        self.paths = tuple(paths)

    def to_dict(self) -> dict[str, object]:
        """Return a stable, serializable error payload."""
        return {
            "kind": self.kind,
            "paths": list(self.paths),
            "reason": self.reason,
            "hint": self.hint,
        }


class MissingDependencyError(BundlerError):
    """A resolved local require path is absent from the source map."""

    kind = "MISSING_DEPENDENCY"

    def __init__(self, resolved_path: str, request: str, requirer: str) -> None:
        super().__init__(
            reason=(
                f"required file not found in sources: {resolved_path} "
                f"(require('{request}') in {requirer})"
            ),
            hint="Add the missing file to the source catalog or fix the require path.",
            paths=(resolved_path,),
        )
        self.resolved_path = resolved_path
        self.request = request
        self.requirer = requirer


class DependencyDepthError(BundlerError):
    """The dependency chain is deeper than the configured limit."""

    kind = "DEPENDENCY_TOO_DEEP"

    def __init__(self, path: str, max_depth: int, chain: Sequence[str]) -> None:
        super().__init__(
            reason=f"dependency chain exceeds max_depth={max_depth} at {path}",
            hint="Flatten the helper chain or raise bundler.max_depth in configuration.",
            paths=(*chain, path),
        )
        self.max_depth = max_depth


class RuntimeConflictError(BundlerError):
    """A reachable dependency targets a host incompatible with the bundle mode."""

    kind = "RUNTIME_CONFLICT"

    def __init__(self, path: str, detected: RuntimeMode, target: RuntimeMode) -> None:
        super().__init__(
            reason=(
                f"runtime mode conflict: script requires '{path}' which is a {detected} "
                f"script, but the main script is compiled for {target} mode"
            ),
            hint=(
                f"{detected} scripts cannot be bundled into {target} scripts because they use "
                "incompatible APIs (e.g. child_process). Use only compatible helpers, or "
                f"compile the main script for {detected} mode."
            ),
            paths=(path,),
        )
        self.path = path
        self.detected = detected
        self.target = target


class UnboundLocalRequireError(BundlerError):
    """A local require survived resolution; indicates a recognizer or resolver defect."""

    kind = "UNBOUND_LOCAL_REQUIRE"

    def __init__(self, findings: Sequence[str], paths: Sequence[str]) -> None:
        listing = "\n".join(findings)
        super().__init__(
            reason=(
                f"bundled script contains {len(findings)} local require() statement(s) "
                f"that were not inlined:\n{listing}"
            ),
            hint=(
                "Use the `const x = require('./file.cjs')` declaration shape for local "
                "helpers and make sure every helper is in the source catalog."
            ),
            paths=paths,
        )
        self.findings = tuple(findings)


class ModuleReferenceLeakError(BundlerError):
    """An export statement survived normalization in sandboxed mode."""

    kind = "MODULE_REFERENCE_LEAK"

    def __init__(self, findings: Sequence[str]) -> None:
        listing = "\n".join(findings)
        super().__init__(
            reason=(
                f"bundled script for {RuntimeMode.SANDBOXED_SCRIPT} mode contains "
                f"{len(findings)} module.exports or exports reference(s):\n{listing}"
            ),
            hint=(
                "Export helpers with a plain `module.exports = { ... }` statement, or bundle "
                f"for {RuntimeMode.STANDALONE_MODULE} mode if a module system is needed."
            ),
        )
        self.findings = tuple(findings)


class SourceSetIncompleteError(BundlerError):
    """One or more catalog files require helpers missing from the catalog."""

    kind = "SOURCE_SET_INCOMPLETE"

    def __init__(self, missing: Sequence[MissingRequire]) -> None:
        listing = "\n".join(
            f"{item.requirer} requires '{item.requested}' (resolved to '{item.resolved}') "
            "but it's not in the source set"
            for item in missing
        )
        super().__init__(
            reason=f"{len(missing)} missing local dependencies:\n{listing}",
            hint="Add the missing files to the source catalog or fix the require paths.",
            paths=tuple(item.resolved for item in missing),
        )
        self.missing = tuple(missing)


class ScriptContentError(BundlerError):
    """A script uses APIs that do not exist in its declared runtime mode."""

    kind = "SCRIPT_CONTENT"

    def __init__(self, script_name: str, findings: Sequence[str], reason: str, hint: str) -> None:
        listing = "\n  ".join(findings)
        super().__init__(
            reason=f"{reason}:\n  {listing}",
            hint=hint,
            paths=(script_name,),
        )
        self.findings = tuple(findings)


class ScriptNotFoundError(BundlerError):
    """A script name is not registered in the catalog."""

    kind = "SCRIPT_NOT_FOUND"

    def __init__(self, name: str) -> None:
        super().__init__(
            reason=f"script not found in catalog: {name}",
            hint="Register the script before requesting it.",
            paths=(name,),
        )
        self.name = name
