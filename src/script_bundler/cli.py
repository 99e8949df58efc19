"""Command-line entrypoint: bundle, collect, check and inspect script catalogs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TextIO

from script_bundler.bundler import (
    BundlerError,
    RuntimeMode,
    ScriptNotFoundError,
    assert_source_set_complete,
    bundle_script,
    generate_require_script,
    normalize_path,
    package_scripts,
)
from script_bundler.bundler.paths import parent_dir
from script_bundler.catalog import load_sources_from_directory, script_name_for_path
from script_bundler.config import BundlerConfig, CliOverrides, load_effective_config
from script_bundler.logging import (
    AuditEvent,
    JsonlAuditLogger,
    sanitize_arguments,
    summarize_result,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for all sub-commands."""
    parser = argparse.ArgumentParser(prog="script-bundler")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--scripts-base-path", required=False, default=None)
    parser.add_argument("--max-depth", type=int, required=False, default=None)
    parser.add_argument(
        "--strip-comments", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        required=False,
        default="WARNING",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    bundle = commands.add_parser("bundle", help="Inline an entry script and its helpers.")
    bundle.add_argument("entry")
    bundle.add_argument(
        "--mode",
        choices=tuple(mode.value for mode in RuntimeMode),
        default=RuntimeMode.SANDBOXED_SCRIPT.value,
    )
    bundle.add_argument("--output", required=False, default=None)

    collect = commands.add_parser("collect", help="Package helper files for file mode.")
    collect.add_argument("entries", nargs="+")

    commands.add_parser("check", help="Verify every local require resolves in the catalog.")
    commands.add_parser("status", help="Show the effective configuration and catalog size.")
    return parser


class CommandRunner:
    """Runs one command against a loaded catalog and records it in the audit log."""

    def __init__(self, config: BundlerConfig, sources: Mapping[str, str]) -> None:
        self._config = config
        self._sources = sources
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._request_counter = 0

    def next_request_id(self) -> str:
        """Generate deterministic request IDs for one process."""
        self._request_counter += 1
        return f"cmd-{self._request_counter:06d}"

    def run(self, command: str, arguments: dict[str, object]) -> dict[str, object]:
        """Dispatch a command and convert bundler failures into error envelopes."""
        request_id = self.next_request_id()
        handlers: dict[str, Callable[[dict[str, object]], tuple[dict[str, object], list[str]]]] = {
            "bundle": self._bundle,
            "collect": self._collect,
            "check": self._check,
            "status": self._status,
        }
        handler = handlers.get(command)
        started = time.perf_counter()
        if handler is None:
            response = error_response(request_id, "UNKNOWN_COMMAND", f"Unknown command: {command}")
        else:
            try:
                result, warnings = handler(arguments)
            except BundlerError as error:
                logger.error("%s failed: %s", command, error.reason)
                response = bundler_error_response(request_id, error)
            else:
                response = success_response(request_id, result, warnings)
        duration_ms = int((time.perf_counter() - started) * 1000)
        self.log_request(request_id, command, arguments, response, duration_ms)
        return response

    def log_request(
        self,
        request_id: str,
        command: str,
        arguments: dict[str, object],
        response: dict[str, object],
        duration_ms: int = 0,
    ) -> None:
        """Log one sanitized command event."""
        result = response.get("result")
        error_payload = response.get("error")
        error_code: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str):
                error_code = code_value
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            command=command,
            ok=bool(response.get("ok", False)),
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
            duration_ms=duration_ms,
            outcome=summarize_result(result) if isinstance(result, dict) else {},
        )
        self._audit_logger.append(event)

    def _bundle(self, arguments: dict[str, object]) -> tuple[dict[str, object], list[str]]:
        entry_path = self._entry_path(str(arguments["entry"]))
        mode = RuntimeMode.parse(str(arguments["mode"]))
        content = self._sources.get(entry_path)
        if content is None:
            raise ScriptNotFoundError(entry_path)
        bundled = bundle_script(
            content,
            self._sources,
            parent_dir(entry_path),
            mode,
            options=self._config.options,
        )
        result: dict[str, object] = {
            "entry": entry_path,
            "mode": mode.value,
            "size": len(bundled),
        }
        output = arguments.get("output")
        if isinstance(output, str):
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(bundled, encoding="utf-8")
            result["output"] = str(output_path)
        else:
            result["content"] = bundled
        return result, []

    def _collect(self, arguments: dict[str, object]) -> tuple[dict[str, object], list[str]]:
        raw_entries = arguments.get("entries")
        if not isinstance(raw_entries, list):
            raw_entries = [raw_entries]
        options = self._config.options
        names = [
            script_name_for_path(self._entry_path(str(item)), options.default_extension)
            for item in raw_entries
        ]
        packaged = package_scripts(
            names,
            self._sources,
            base_path=options.scripts_base_path,
            default_extension=options.default_extension,
            hash_length=options.hash_length,
        )
        result: dict[str, object] = {
            "files": [
                {"path": item.path, "hash": item.hash, "content": item.content}
                for item in packaged.files
            ],
            "main_script_path": packaged.main_script_path,
            "scripts_base_path": options.scripts_base_path,
            "total_size": packaged.total_size,
        }
        if packaged.main_script_path:
            result["require_script"] = generate_require_script(
                packaged.main_script_path, options.scripts_base_path
            )
        return result, list(packaged.warnings)

    def _check(self, arguments: dict[str, object]) -> tuple[dict[str, object], list[str]]:
        assert_source_set_complete(
            self._sources,
            default_extension=self._config.options.default_extension,
        )
        return {"files_checked": len(self._sources)}, []

    def _status(self, arguments: dict[str, object]) -> tuple[dict[str, object], list[str]]:
        return {
            "source_file_count": len(self._sources),
            "effective_config": self._config.to_public_dict(),
        }, []

    def _entry_path(self, entry: str) -> str:
        normalized = normalize_path(entry)
        if normalized in self._sources:
            return normalized
        return normalize_path(f"{normalized}{self._config.options.default_extension}")


def success_response(
    request_id: str,
    result: dict[str, object],
    warnings: list[str] | None = None,
) -> dict[str, object]:
    """Build success envelope."""
    return {
        "request_id": request_id,
        "ok": True,
        "result": result,
        "warnings": warnings or [],
    }


def error_response(
    request_id: str,
    code: str,
    message: str,
    result: dict[str, object] | None = None,
) -> dict[str, object]:
    """Build explicit error envelope."""
    return {
        "request_id": request_id,
        "ok": False,
        "result": result or {},
        "warnings": [],
        "error": {"code": code, "message": message},
    }


def bundler_error_response(request_id: str, error: BundlerError) -> dict[str, object]:
    """Build an error envelope carrying reason, hint and offending paths."""
    return error_response(
        request_id,
        code=error.kind,
        message=error.reason,
        result={"reason": error.reason, "hint": error.hint, "paths": list(error.paths)},
    )


def write_response(response: dict[str, object], out_stream: TextIO) -> None:
    """Write one JSON envelope followed by a newline."""
    out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
    out_stream.flush()


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the script-bundler command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=_LOG_FORMAT, stream=sys.stderr)

    strip_comments: bool | None = None
    if args.strip_comments == "true":
        strip_comments = True
    if args.strip_comments == "false":
        strip_comments = False
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        scripts_base_path=args.scripts_base_path,
        max_depth=args.max_depth,
        strip_comments=strip_comments,
    )
    try:
        config = load_effective_config(Path(args.root), overrides)
        sources = load_sources_from_directory(config.root)
    except ValueError as error:
        write_response(error_response("cmd-000000", "INVALID_CONFIG", str(error)), sys.stdout)
        return 2

    arguments = {key: value for key, value in vars(args).items() if key != "command"}
    runner = CommandRunner(config, sources)
    response = runner.run(args.command, arguments)
    write_response(response, sys.stdout)
    return 0 if response["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
