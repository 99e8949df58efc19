"""Script bundling interfaces."""

from .dedupe import deduplicate_requires
from .engine import bundle_script, ensure_main_call
from .errors import (
    BundlerError,
    DependencyDepthError,
    MissingDependencyError,
    ModuleReferenceLeakError,
    RuntimeConflictError,
    ScriptContentError,
    ScriptNotFoundError,
    SourceSetIncompleteError,
    UnboundLocalRequireError,
)
from .exports import strip_exports
from .file_mode import (
    GLOBALS_PREAMBLE,
    collect_all_script_files,
    collect_script_dependencies,
    collect_script_files,
    compute_short_hash,
    generate_require_script,
    inline_script_for_file_mode,
    package_scripts,
    patch_top_level_await,
    prepare_files_for_file_mode,
    rewrite_requires_to_absolute,
)
from .models import (
    DEFAULT_SCRIPTS_BASE_PATH,
    BundleContext,
    BundleOptions,
    MissingRequire,
    RuntimeMode,
    ScriptFile,
    ScriptFilesResult,
)
from .paths import normalize_path, resolve_request_path
from .resolver import resolve_dependencies
from .runtime import classify_runtime_mode, validate_runtime_compatibility
from .safety import (
    assert_no_local_requires,
    assert_no_module_references,
    assert_source_set_complete,
    find_missing_requires,
)
from .script_checks import validate_no_exec_sync, validate_no_sandbox_globals, validate_script_content

__all__ = [
    "DEFAULT_SCRIPTS_BASE_PATH",
    "GLOBALS_PREAMBLE",
    "BundleContext",
    "BundleOptions",
    "BundlerError",
    "DependencyDepthError",
    "MissingDependencyError",
    "MissingRequire",
    "ModuleReferenceLeakError",
    "RuntimeConflictError",
    "RuntimeMode",
    "ScriptContentError",
    "ScriptFile",
    "ScriptFilesResult",
    "ScriptNotFoundError",
    "SourceSetIncompleteError",
    "UnboundLocalRequireError",
    "assert_no_local_requires",
    "assert_no_module_references",
    "assert_source_set_complete",
    "bundle_script",
    "classify_runtime_mode",
    "collect_all_script_files",
    "collect_script_dependencies",
    "collect_script_files",
    "compute_short_hash",
    "deduplicate_requires",
    "ensure_main_call",
    "find_missing_requires",
    "generate_require_script",
    "inline_script_for_file_mode",
    "normalize_path",
    "package_scripts",
    "patch_top_level_await",
    "prepare_files_for_file_mode",
    "resolve_dependencies",
    "resolve_request_path",
    "rewrite_requires_to_absolute",
    "strip_exports",
    "validate_no_exec_sync",
    "validate_no_sandbox_globals",
    "validate_runtime_compatibility",
    "validate_script_content",
]
