"""Lexical scanning helpers for CommonJS script sources."""

from .comments import (
    can_start_regex_literal,
    is_inside_regex_literal,
    is_inside_string_literal,
    strip_comments,
    strip_comments_from_line,
)
from .imports import (
    ImportStatement,
    LocalRequire,
    RequireLine,
    find_local_require_calls,
    find_local_require_declarations,
    parse_require_line,
    replace_local_require_calls,
)

__all__ = [
    "ImportStatement",
    "LocalRequire",
    "RequireLine",
    "can_start_regex_literal",
    "find_local_require_calls",
    "find_local_require_declarations",
    "is_inside_regex_literal",
    "is_inside_string_literal",
    "parse_require_line",
    "replace_local_require_calls",
    "strip_comments",
    "strip_comments_from_line",
]
