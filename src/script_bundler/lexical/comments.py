"""Line-preserving JavaScript comment removal aware of string and regex literals."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_QUOTES = ("'", '"', "`")
_REGEX_PRECEDING_CHARS = frozenset("=([,:;!&|?+-*/%{}~^")
_REGEX_PRECEDING_KEYWORDS = frozenset(
    {"return", "throw", "typeof", "new", "in", "of", "if", "while", "for", "case"}
)
_TRAILING_WORD_RE = re.compile(r"[A-Za-z0-9_$]+$")


def strip_comments(code: str) -> str:
    """Remove `//` and `/* */` comments while keeping every line in place.

    Lines that held nothing but a comment become empty lines, so line numbers
    of the remaining code are unchanged. String, template and regex literals
    are copied verbatim even when they contain comment markers.
    """
    in_block_comment = False
    stripped: list[str] = []
    for line in code.split("\n"):
        carriage_return = line.endswith("\r")
        body = line[:-1] if carriage_return else line
        text, in_block_comment = strip_comments_from_line(body, in_block_comment)
        stripped.append(f"{text}\r" if carriage_return else text)
    result = "\n".join(stripped)
    if len(result) != len(code):
        logger.debug("Stripped comments: %d -> %d bytes", len(code), len(result))
    return result


def strip_comments_from_line(line: str, in_block_comment: bool = False) -> tuple[str, bool]:
    """Strip comments from one line; returns the text and the carried block-comment state."""
    output: list[str] = []
    length = len(line)
    index = 0

    while index < length:
        char = line[index]

        if in_block_comment:
            if line.startswith("*/", index):
                in_block_comment = False
                index += 2
            else:
                index += 1
            continue

        if char == "/":
            written = "".join(output)
            if _open_literal(written) is None:
                following = line[index + 1] if index + 1 < length else ""
                if following == "*":
                    in_block_comment = True
                    index += 2
                    continue
                if following == "/":
                    break
                if can_start_regex_literal(written):
                    end = _scan_regex_literal(line, index)
                    output.append(line[index:end])
                    index = end
                    continue
            output.append(char)
            index += 1
            continue

        if char in _QUOTES:
            end = _scan_string_literal(line, index)
            output.append(line[index:end])
            index = end
            continue

        output.append(char)
        index += 1

    return "".join(output), in_block_comment


def is_inside_string_literal(text: str) -> bool:
    """Return True when `text` ends inside an unterminated string or template literal."""
    return _open_literal(text) in _QUOTES


def is_inside_regex_literal(text: str) -> bool:
    """Return True when `text` ends inside an unterminated regex literal."""
    return _open_literal(text) == "/"


def can_start_regex_literal(before: str) -> bool:
    """Decide whether a `/` following `before` opens a regex literal rather than a division."""
    trimmed = before.rstrip(" \t")
    if not trimmed:
        return True
    if trimmed[-1] in _REGEX_PRECEDING_CHARS:
        return True
    word = _TRAILING_WORD_RE.search(trimmed)
    if word is None:
        return False
    return word.group(0) in _REGEX_PRECEDING_KEYWORDS


def _open_literal(text: str) -> str | None:
    """Return the delimiter of the literal left open at the end of `text`, if any."""
    state: str | None = None
    for index, char in enumerate(text):
        if state is None:
            if char in _QUOTES and not _is_escaped(text, index):
                state = char
            elif (
                char == "/"
                and not _is_escaped(text, index)
                and can_start_regex_literal(text[:index])
            ):
                state = "/"
            continue
        if char == state and not _is_escaped(text, index):
            state = None
    return state


def _scan_string_literal(line: str, start: int) -> int:
    quote = line[start]
    index = start + 1
    while index < len(line):
        if line[index] == quote and not _is_escaped(line, index):
            return index + 1
        index += 1
    return len(line)


def _scan_regex_literal(line: str, start: int) -> int:
    index = start + 1
    while index < len(line):
        if line[index] == "/" and not _is_escaped(line, index):
            index += 1
            while index < len(line) and line[index].isascii() and line[index].isalpha():
                index += 1
            return index
        index += 1
    return len(line)


def _is_escaped(text: str, index: int) -> bool:
    backslashes = 0
    cursor = index - 1
    while cursor >= 0 and text[cursor] == "\\":
        backslashes += 1
        cursor -= 1
    return backslashes % 2 == 1
