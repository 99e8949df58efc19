"""Named script catalog with lazily bundled, cached output."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from script_bundler.bundler import (
    BundleOptions,
    RuntimeMode,
    ScriptNotFoundError,
    bundle_script,
    normalize_path,
    validate_script_content,
)
from script_bundler.bundler.models import DEFAULT_SOURCE_EXTENSION, SOURCE_EXTENSIONS
from script_bundler.bundler.paths import parent_dir

logger = logging.getLogger(__name__)

_TEST_SUFFIXES = (".test.cjs", ".test.js")
_EXCLUDED_DIR_NAMES = frozenset({"node_modules", ".git"})


@dataclass(slots=True)
class _CatalogEntry:
    source: str
    mode: RuntimeMode
    bundled: str | None = None


class ScriptCatalog:
    """Thread-safe registry of entry scripts and their bundles.

    Registered scripts double as the source set their bundles resolve against,
    keyed by `<name><default_extension>`, alongside any extra helper sources
    supplied at construction.
    """

    def __init__(
        self,
        helper_sources: dict[str, str] | None = None,
        options: BundleOptions | None = None,
    ) -> None:
        self._options = options or BundleOptions()
        self._helpers = {
            normalize_path(path): text for path, text in (helper_sources or {}).items()
        }
        self._entries: dict[str, _CatalogEntry] = {}
        self._lock = threading.Lock()

    @property
    def options(self) -> BundleOptions:
        """Return bundling options used for every cached bundle."""
        return self._options

    def register(
        self,
        name: str,
        source: str,
        mode: RuntimeMode = RuntimeMode.SANDBOXED_SCRIPT,
    ) -> None:
        """Register or replace a script after running its content checks."""
        validate_script_content(name, source, mode)
        with self._lock:
            # Any cached bundle may have inlined the previous text.
            for entry in self._entries.values():
                entry.bundled = None
            self._entries[name] = _CatalogEntry(source=source, mode=mode)
        logger.debug("Registered script %s (%s mode, %d bytes)", name, mode, len(source))

    def has(self, name: str) -> bool:
        """Return True when `name` is registered."""
        with self._lock:
            return name in self._entries

    def names(self) -> list[str]:
        """Return registered script names in sorted order."""
        with self._lock:
            return sorted(self._entries)

    def get_source(self, name: str) -> str | None:
        """Return the unbundled source, or None if unknown."""
        with self._lock:
            entry = self._entries.get(name)
            return entry.source if entry is not None else None

    def get_mode(self, name: str) -> RuntimeMode | None:
        """Return the registered runtime mode, or None if unknown."""
        with self._lock:
            entry = self._entries.get(name)
            return entry.mode if entry is not None else None

    def sources(self) -> dict[str, str]:
        """Return the full source set: helpers plus `<name><ext>` for each script."""
        with self._lock:
            return self._sources_unlocked()

    def get(self, name: str) -> str:
        """Return the bundle for `name` in its registered mode, bundling on first use.

        The lock is held while bundling so concurrent callers bundle once and
        observe the same text.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                raise ScriptNotFoundError(name)
            if entry.bundled is None:
                logger.debug("Bundling script %s on first access", name)
                entry.bundled = bundle_script(
                    entry.source,
                    self._sources_unlocked(),
                    parent_dir(name),
                    entry.mode,
                    options=self._options,
                )
            return entry.bundled

    def get_with_mode(self, name: str, mode: RuntimeMode) -> str:
        """Return the bundle for `name`, warning when `mode` differs from the registration."""
        registered = self.get_mode(name)
        if registered is not None and registered is not mode:
            logger.warning(
                "Script %s registered with mode %s but requested with mode %s; "
                "using registered mode",
                name,
                registered,
                mode,
            )
        return self.get(name)

    def _sources_unlocked(self) -> dict[str, str]:
        merged = dict(self._helpers)
        for name, entry in self._entries.items():
            merged[normalize_path(f"{name}{self._options.default_extension}")] = entry.source
        return merged


def load_sources_from_directory(root: Path, include_tests: bool = False) -> dict[str, str]:
    """Read every `.cjs`/`.js` file under `root` keyed by relative POSIX path.

    Test files (`*.test.cjs`, `*.test.js`) are skipped unless `include_tests`
    is set. `node_modules` and `.git` are never read.
    """
    resolved_root = root.resolve()
    if not resolved_root.is_dir():
        raise ValueError(f"Source directory does not exist: {root}")
    sources: dict[str, str] = {}
    for path in sorted(resolved_root.rglob("*")):
        if not path.is_file() or not path.name.endswith(SOURCE_EXTENSIONS):
            continue
        relative = path.relative_to(resolved_root)
        if any(part in _EXCLUDED_DIR_NAMES for part in relative.parts[:-1]):
            continue
        if not include_tests and path.name.endswith(_TEST_SUFFIXES):
            continue
        sources[relative.as_posix()] = path.read_text(encoding="utf-8")
    logger.debug("Loaded %d source files from %s", len(sources), resolved_root)
    return sources


def script_name_for_path(path: str, default_extension: str = DEFAULT_SOURCE_EXTENSION) -> str:
    """Return the catalog name of a source path (`lib/a.cjs` -> `lib/a`)."""
    normalized = normalize_path(path)
    if normalized.endswith(default_extension):
        return normalized[: -len(default_extension)]
    return normalized
