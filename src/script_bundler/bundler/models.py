"""Typed models shared by the inline and file-mode bundlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_SCRIPTS_BASE_PATH = "/opt/gh-aw/actions"
DEFAULT_SOURCE_EXTENSION = ".cjs"
SOURCE_EXTENSIONS = (".cjs", ".js")


class RuntimeMode(str, Enum):
    """Execution host a bundle is produced for."""

    SANDBOXED_SCRIPT = "github-script"
    STANDALONE_MODULE = "nodejs"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | RuntimeMode) -> RuntimeMode:
        """Parse a mode from its value (`github-script`) or member name."""
        if isinstance(value, RuntimeMode):
            return value
        normalized = value.strip()
        for mode in cls:
            if normalized == mode.value or normalized.upper() == mode.name:
                return mode
        choices = ", ".join(mode.value for mode in cls)
        raise ValueError(f"Unknown runtime mode '{value}'; expected one of: {choices}.")


@dataclass(slots=True, frozen=True)
class BundleOptions:
    """Tunable bundler behaviour."""

    scripts_base_path: str = DEFAULT_SCRIPTS_BASE_PATH
    default_extension: str = DEFAULT_SOURCE_EXTENSION
    hash_length: int = 8
    max_depth: int = 64
    strip_comments: bool = True
    inject_main_call: bool = True


@dataclass(slots=True)
class BundleContext:
    """Mutable state for exactly one top-level bundling call.

    `visited` records every normalized path already inlined so each file is
    inlined at most once and cycles terminate. One context must never be
    reused for a second call or shared between threads: a path recorded by
    another call would be replaced by an "already inlined" marker without its
    declarations ever being emitted.
    """

    mode: RuntimeMode
    max_depth: int = 64
    strip_comments: bool = True
    default_extension: str = DEFAULT_SOURCE_EXTENSION
    visited: set[str] = field(default_factory=set)
    chain: list[str] = field(default_factory=list)

    @classmethod
    def fresh(cls, mode: RuntimeMode, options: BundleOptions | None = None) -> BundleContext:
        """Build a new context from options."""
        active = options or BundleOptions()
        return cls(
            mode=mode,
            max_depth=active.max_depth,
            strip_comments=active.strip_comments,
            default_extension=active.default_extension,
        )

    @property
    def depth(self) -> int:
        """Current inlining depth below the entry script."""
        return len(self.chain)

    @property
    def requirer(self) -> str:
        """Path of the file whose requires are currently being resolved."""
        return self.chain[-1] if self.chain else "<entry>"


@dataclass(slots=True, frozen=True)
class ScriptFile:
    """One file of a file-mode bundle."""

    path: str
    content: str
    hash: str


@dataclass(slots=True, frozen=True)
class ScriptFilesResult:
    """Deduplicated, path-sorted file set plus metadata."""

    files: tuple[ScriptFile, ...]
    main_script_path: str
    total_size: int
    warnings: tuple[str, ...] = ()

    def paths(self) -> tuple[str, ...]:
        """Return file paths in output order."""
        return tuple(item.path for item in self.files)


@dataclass(slots=True, frozen=True)
class MissingRequire:
    """A local require whose resolved path is absent from the source set."""

    requirer: str
    requested: str
    resolved: str
