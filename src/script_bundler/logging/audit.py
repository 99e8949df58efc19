"""JSONL audit trail of command runs.

Each line records what a command was asked to do and how it ended. Script
text never reaches the log: string arguments outside a small allowlist of
path-like fields are reduced to their length, and results keep only sizes,
counts and paths.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

_VERBATIM_STRING_KEYS = frozenset(
    {"entry", "mode", "output", "root", "data_dir", "scripts_base_path", "log_level"}
)
_RESULT_PATH_KEYS = frozenset(
    {"entry", "mode", "output", "main_script_path", "scripts_base_path"}
)


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One finished command run."""

    timestamp: str
    request_id: str
    command: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]
    duration_ms: int = 0
    outcome: dict[str, object] = field(default_factory=dict)


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Reduce command arguments to shapes that never carry script text."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        value = arguments[key]
        if isinstance(value, str):
            if key in _VERBATIM_STRING_KEYS:
                sanitized[key] = value
            else:
                sanitized[f"{key}_present"] = True
                sanitized[f"{key}_length"] = len(value)
        elif value is None or isinstance(value, (bool, int, float)):
            sanitized[key] = value
        elif isinstance(value, (list, tuple)):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
        elif isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(item) for item in value)
        else:
            sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


def summarize_result(result: dict[str, object]) -> dict[str, object]:
    """Keep sizes, counts and paths from a command result.

    File listings collapse to their count plus the packaged paths.
    """
    summary: dict[str, object] = {}
    for key in sorted(result):
        value = result[key]
        if isinstance(value, int):
            summary[key] = value
        elif isinstance(value, str) and key in _RESULT_PATH_KEYS:
            summary[key] = value
        elif isinstance(value, str):
            summary[f"{key}_length"] = len(value)
        elif isinstance(value, list):
            summary[f"{key}_count"] = len(value)
            paths = [item["path"] for item in value if isinstance(item, dict) and "path" in item]
            if paths:
                summary[f"{key}_paths"] = paths
            elif all(isinstance(item, str) for item in value):
                summary[key] = list(value)
    return summary


class JsonlAuditLogger:
    """Append-only command log with filtered reads."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(asdict(event), sort_keys=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        command: str | None = None,
        ok: bool | None = None,
    ) -> list[dict[str, object]]:
        """Return the newest `limit` events matching every given filter, oldest first.

        Lines that are not JSON objects are skipped with a warning.
        """
        if limit < 1 or not self._path.exists():
            return []
        matched: list[dict[str, object]] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    record = None
                if not isinstance(record, dict):
                    logger.warning("Skipping malformed audit line %d in %s", number, self._path)
                    continue
                if since is not None and str(record.get("timestamp", "")) < since:
                    continue
                if command is not None and record.get("command") != command:
                    continue
                if ok is not None and record.get("ok") is not ok:
                    continue
                matched.append(record)
        return matched[-limit:]
