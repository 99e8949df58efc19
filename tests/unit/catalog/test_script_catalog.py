from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from script_bundler.bundler import RuntimeMode, ScriptContentError, ScriptNotFoundError
from script_bundler.catalog import ScriptCatalog, load_sources_from_directory, script_name_for_path

SHARED = "const greeting = 'hello';\nmodule.exports = { greeting };\n"
MAIN = "const { greeting } = require('./shared.cjs');\ncore.info(greeting);\n"


def _catalog() -> ScriptCatalog:
    catalog = ScriptCatalog()
    catalog.register("shared", SHARED)
    catalog.register("main", MAIN)
    return catalog


def test_registered_scripts_are_listed_and_retrievable() -> None:
    catalog = _catalog()
    catalog.register("tool", "execSync('ls');", RuntimeMode.STANDALONE_MODULE)

    assert catalog.names() == ["main", "shared", "tool"]
    assert catalog.has("main") is True
    assert catalog.has("ghost") is False
    assert catalog.get_source("shared") == SHARED
    assert catalog.get_source("ghost") is None
    assert catalog.get_mode("tool") is RuntimeMode.STANDALONE_MODULE
    assert catalog.get_mode("ghost") is None
    assert set(catalog.sources()) == {"main.cjs", "shared.cjs", "tool.cjs"}


def test_get_bundles_once_and_caches() -> None:
    catalog = _catalog()

    first = catalog.get("main")

    assert "const greeting = 'hello';" in first
    assert "require(" not in first
    assert catalog.get("main") is first


def test_reregistering_a_helper_invalidates_dependent_bundles() -> None:
    catalog = _catalog()
    assert "'hello'" in catalog.get("main")

    catalog.register("shared", "const greeting = 'bye';\nmodule.exports = { greeting };\n")

    assert "'bye'" in catalog.get("main")
    assert "'hello'" not in catalog.get("main")


def test_helper_sources_resolve_relative_to_script_directory() -> None:
    catalog = ScriptCatalog(
        helper_sources={"lib/util.cjs": "function util() { return 2; }\nmodule.exports = { util };\n"}
    )
    catalog.register("nested/run", "const { util } = require('../lib/util.cjs');\nutil();\n")

    bundled = catalog.get("nested/run")

    assert "function util() { return 2; }" in bundled
    assert "lib/util.cjs" in catalog.sources()


def test_unknown_script_raises_not_found() -> None:
    with pytest.raises(ScriptNotFoundError, match="ghost") as caught:
        _catalog().get("ghost")

    assert caught.value.kind == "SCRIPT_NOT_FOUND"


def test_mode_mismatch_logs_warning_and_uses_registered_mode(
    caplog: pytest.LogCaptureFixture,
) -> None:
    catalog = _catalog()

    with caplog.at_level(logging.WARNING, logger="script_bundler.catalog"):
        bundled = catalog.get_with_mode("main", RuntimeMode.STANDALONE_MODULE)

    assert bundled == catalog.get("main")
    assert "registered with mode github-script" in caplog.text


def test_register_rejects_exec_sync_in_sandboxed_scripts() -> None:
    catalog = ScriptCatalog()

    with pytest.raises(ScriptContentError):
        catalog.register("bad", "execSync('rm -rf build');")

    assert catalog.has("bad") is False


def test_concurrent_access_returns_identical_bundle() -> None:
    catalog = _catalog()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: catalog.get("main"), range(32)))

    assert len({id(item) for item in results}) == 1


def test_load_sources_skips_tests_and_vendored_directories(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()
    (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
    (tmp_path / "a.cjs").write_text("a", encoding="utf-8")
    (tmp_path / "lib" / "b.js").write_text("b", encoding="utf-8")
    (tmp_path / "a.test.cjs").write_text("t", encoding="utf-8")
    (tmp_path / "node_modules" / "pkg" / "index.js").write_text("n", encoding="utf-8")
    (tmp_path / "README.md").write_text("docs", encoding="utf-8")

    assert load_sources_from_directory(tmp_path) == {"a.cjs": "a", "lib/b.js": "b"}
    assert sorted(load_sources_from_directory(tmp_path, include_tests=True)) == [
        "a.cjs",
        "a.test.cjs",
        "lib/b.js",
    ]


def test_load_sources_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Source directory does not exist"):
        load_sources_from_directory(tmp_path / "absent")


def test_script_name_for_path_drops_default_extension() -> None:
    assert script_name_for_path("lib/a.cjs") == "lib/a"
    assert script_name_for_path("./lib\\a.cjs") == "lib/a"
    assert script_name_for_path("lib/a.js") == "lib/a.js"
    assert script_name_for_path("lib/a.js", default_extension=".js") == "lib/a"
