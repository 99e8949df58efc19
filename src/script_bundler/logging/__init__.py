"""Audit logging for command runs."""

from .audit import (
    AuditEvent,
    JsonlAuditLogger,
    sanitize_arguments,
    summarize_result,
    utc_timestamp,
)

__all__ = [
    "AuditEvent",
    "JsonlAuditLogger",
    "sanitize_arguments",
    "summarize_result",
    "utc_timestamp",
]
