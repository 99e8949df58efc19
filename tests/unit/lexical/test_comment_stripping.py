from __future__ import annotations

import pytest

from script_bundler.lexical import strip_comments, strip_comments_from_line


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("", ""),
        ("const x = 1;", "const x = 1;"),
        ("// comment", ""),
        ("// comment 1\n// comment 2\n// comment 3", "\n\n"),
        ("const x = 1; // comment", "const x = 1; "),
        ("// comment\nconst x = 1;", "\nconst x = 1;"),
        ("/* comment */", ""),
        ("/* line 1\n   line 2\n   line 3 */", "\n\n"),
        ("const x = 1; /* comment */ const y = 2;", "const x = 1;  const y = 2;"),
        ("/* c1 */ const x = 1; /* c2 */ const y = 2; /* c3 */", " const x = 1;  const y = 2; "),
        ("/** @param {string} x */", ""),
        (
            "/**\n * @param {string} x\n * @returns {number}\n */\nfunction test() {}",
            "\n\n\n\nfunction test() {}",
        ),
        ('/// <reference types="node" />\nconst x = 1;', "\nconst x = 1;"),
        ("  // comment\n  const x = 1;", "  \n  const x = 1;"),
        ("const x = 1;\n   \n\t\nconst y = 2;", "const x = 1;\n   \n\t\nconst y = 2;"),
    ],
)
def test_strip_comments_removes_line_and_block_comments(source: str, expected: str) -> None:
    assert strip_comments(source) == expected


def test_block_comments_do_not_nest() -> None:
    source = "/* outer /* inner */ still in comment */const x = 1;"

    assert strip_comments(source) == " still in comment */const x = 1;"


def test_unclosed_block_comment_consumes_rest_of_input() -> None:
    assert strip_comments("const x = 1; /* unclosed comment") == "const x = 1; "
    assert strip_comments("start /* comment\nline 2\nline 3\nline 4\nline 5 */ end") == (
        "start \n\n\n\n end"
    )


def test_strip_comments_from_line_carries_block_state() -> None:
    text, in_block = strip_comments_from_line("const a = 1; /* opens", False)
    assert text == "const a = 1; "
    assert in_block is True

    text, in_block = strip_comments_from_line("still in block */ after block", True)
    assert text == " after block"
    assert in_block is False


def test_mixed_comment_styles_in_real_world_code() -> None:
    source = (
        "// Import statements\n"
        "const fs = require('fs');\n"
        "const path = require('path'); // path module\n"
        "/* Utility function */\n"
        "function test() { return true; }"
    )

    assert strip_comments(source) == (
        "\n"
        "const fs = require('fs');\n"
        "const path = require('path'); \n"
        "\n"
        "function test() { return true; }"
    )


def test_carriage_returns_are_kept_on_each_line() -> None:
    source = "const a = 1; // one\r\n// two\r\nconst b = 2;\r\n"

    assert strip_comments(source) == "const a = 1; \r\n\r\nconst b = 2;\r\n"


@pytest.mark.parametrize(
    "source",
    [
        "const x = 1;\n// drop\n/* drop\n drop */\nconst y = 2; // drop",
        "const r = /\\/\\//; /* c */ const s = 'a // b';",
        "const t = `/* ${x} */`; // c\nreturn /re/g.test(s) / 2;",
        "/* outer /* inner */ still */ x",
    ],
)
def test_strip_comments_is_idempotent_and_keeps_line_count(source: str) -> None:
    once = strip_comments(source)

    assert strip_comments(once) == once
    assert once.count("\n") == source.count("\n")
