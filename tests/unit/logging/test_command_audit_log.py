from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from script_bundler.logging import (
    AuditEvent,
    JsonlAuditLogger,
    sanitize_arguments,
    summarize_result,
    utc_timestamp,
)


def _event(index: int, command: str = "bundle", ok: bool = True) -> AuditEvent:
    return AuditEvent(
        timestamp=f"2026-01-0{index}T00:00:00.000Z",
        request_id=f"cmd-{index:06d}",
        command=command,
        ok=ok,
        error_code=None if ok else "MISSING_DEPENDENCY",
        metadata={"entry": "a.cjs"},
    )


def test_sanitize_arguments_hides_script_text_and_keeps_paths() -> None:
    sanitized = sanitize_arguments(
        {
            "entry": "create_issue.cjs",
            "mode": "github-script",
            "root": "/work/actions",
            "content": "core.setSecret('token');",
            "max_depth": 4,
            "entries": ["a", "b"],
            "note": "token=abc123",
            "output": None,
        }
    )

    assert sanitized == {
        "content_length": len("core.setSecret('token');"),
        "content_present": True,
        "entries_length": 2,
        "entries_type": "list",
        "entry": "create_issue.cjs",
        "max_depth": 4,
        "mode": "github-script",
        "note_length": len("token=abc123"),
        "note_present": True,
        "output": None,
        "root": "/work/actions",
    }


def test_summarize_result_drops_bundled_text() -> None:
    bundled = summarize_result(
        {"entry": "main.cjs", "mode": "github-script", "size": 42, "content": "x" * 42}
    )
    collected = summarize_result(
        {
            "files": [{"path": "lib/a.cjs", "hash": "abcd1234", "content": "a"}],
            "scripts_base_path": "/opt/run",
            "total_size": 1,
        }
    )
    failed = summarize_result({"reason": "boom", "hint": "fix", "paths": ["z.cjs"]})

    assert bundled == {"content_length": 42, "entry": "main.cjs", "mode": "github-script", "size": 42}
    assert collected == {
        "files_count": 1,
        "files_paths": ["lib/a.cjs"],
        "scripts_base_path": "/opt/run",
        "total_size": 1,
    }
    assert failed == {"hint_length": 3, "paths": ["z.cjs"], "paths_count": 1, "reason_length": 4}


def test_audit_logger_appends_one_json_object_per_line(tmp_path: Path) -> None:
    logger = JsonlAuditLogger(path=tmp_path / "nested" / "audit.jsonl")
    for index in range(1, 4):
        logger.append(_event(index, ok=index != 2))

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    record = json.loads(lines[1])
    assert set(record) == {
        "timestamp",
        "request_id",
        "command",
        "ok",
        "error_code",
        "metadata",
        "duration_ms",
        "outcome",
    }
    assert record["error_code"] == "MISSING_DEPENDENCY"
    assert record["outcome"] == {}


def test_audit_read_applies_filters_and_limit(tmp_path: Path) -> None:
    logger = JsonlAuditLogger(path=tmp_path / "audit.jsonl")
    logger.append(_event(1))
    logger.append(_event(2, ok=False))
    logger.append(_event(3, command="collect"))
    logger.append(_event(4))

    assert [item["request_id"] for item in logger.read(limit=2)] == ["cmd-000003", "cmd-000004"]
    assert [item["request_id"] for item in logger.read(since="2026-01-03")] == [
        "cmd-000003",
        "cmd-000004",
    ]
    assert [item["request_id"] for item in logger.read(command="bundle", ok=True)] == [
        "cmd-000001",
        "cmd-000004",
    ]
    assert [item["request_id"] for item in logger.read(ok=False)] == ["cmd-000002"]
    assert logger.read(limit=0) == []


def test_audit_read_skips_malformed_lines(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    logger = JsonlAuditLogger(path=tmp_path / "audit.jsonl")
    logger.append(_event(1))
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write("{truncated\n[1, 2]\n\n")
    logger.append(_event(2))

    with caplog.at_level(logging.WARNING, logger="script_bundler.logging.audit"):
        records = logger.read()

    assert [item["request_id"] for item in records] == ["cmd-000001", "cmd-000002"]
    assert "line 2" in caplog.text
    assert "line 3" in caplog.text


def test_missing_log_reads_as_empty(tmp_path: Path) -> None:
    assert JsonlAuditLogger(path=tmp_path / "absent.jsonl").read() == []


def test_utc_timestamp_uses_z_suffix() -> None:
    stamp = utc_timestamp()

    assert stamp.endswith("Z")
    assert "T" in stamp
