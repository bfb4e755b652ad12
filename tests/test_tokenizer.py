"""Tests for extracting documentation blocks from source text."""

from __future__ import annotations

import pytest

from qdocgen.diagnostics import DiagnosticKind
from qdocgen.tokenizer import CommentTokenizer, unterminated_diagnostic
from tests._fixtures.sources import line_of, source


def _blocks(text: str, path: str = "foo.cpp", **kwargs):
    return list(CommentTokenizer(**kwargs).tokenize(path, text))


def test_tokenizer_emits_only_distinguished_comments() -> None:
    text = source(
        """
        // /*! not documentation
        /* \\brief ordinary block comment */
        const char *marker = "/*! inside a string */";
        /*!
            \\class Foo
        */
        class Foo;
        """
    )

    blocks = _blocks(text)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.text == "\n\\class Foo\n"
    assert block.span.start_line == 4
    assert block.span.end_line == 6
    assert block.next_code_line == line_of(text, "class Foo;")
    assert block.terminated is True


def test_tokenizer_strips_star_decoration() -> None:
    text = source(
        """
        /*!
         * \\brief Decorated.
         *
         * More text.
         */
        int x;
        """
    )

    (block,) = _blocks(text)

    assert block.text == "\n\\brief Decorated.\n\nMore text.\n"
    assert block.next_code_line == 6


def test_tokenizer_keeps_stars_when_not_every_line_is_decorated() -> None:
    text = "/*!\n    a * b\n    * c\n*/\n"

    (block,) = _blocks(text)

    assert block.text.split("\n")[1:3] == ["a * b", "* c"]


def test_block_lines_map_to_source_lines() -> None:
    text = source(
        """
        #include "foo.h"

        /*!
            \\fn void Foo::run()

            Runs the thing.
        */
        """
    )

    (block,) = _blocks(text)

    lines = block.text.split("\n")
    assert block.span.start_line + lines.index("\\fn void Foo::run()") == line_of(text, "\\fn")
    assert block.span.start_line + lines.index("Runs the thing.") == line_of(text, "Runs the")


def test_blocks_on_one_line_keep_their_offsets() -> None:
    text = "int x; /*! First. */ /*! Second. */\n"

    first, second = _blocks(text)

    assert first.span.start_line == second.span.start_line == 1
    assert first.offset == text.index("/*! First")
    assert second.offset == text.index("/*! Second")


def test_next_code_line_skips_ordinary_comments() -> None:
    text = source(
        """
        /*!
            Documented.
        */
        // a note for maintainers
        /* another note */
        void run();
        """
    )

    (block,) = _blocks(text)

    assert block.next_code_line == line_of(text, "void run();")


def test_next_code_line_is_absent_before_another_block_or_eof() -> None:
    text = source(
        """
        /*!
            First.
        */

        /*!
            Second.
        */
        """
    )

    first, second = _blocks(text)

    assert first.next_code_line is None
    assert second.next_code_line is None


def test_unterminated_block_spans_to_end_of_file() -> None:
    text = "int a;\n/*!\n    \\class Foo\n"

    (block,) = _blocks(text)

    assert block.terminated is False
    assert block.span.start_line == 2
    assert block.span.end_line == 3
    assert block.next_code_line is None
    diagnostic = unterminated_diagnostic(block)
    assert diagnostic.kind is DiagnosticKind.UNTERMINATED_COMMENT
    assert diagnostic.location() == "foo.cpp:2"


def test_tokenizer_is_lazy_and_normalises_paths() -> None:
    blocks = CommentTokenizer().tokenize("src\\foo.cpp", "/*! One. */\n/*! Two. */\n")

    first = next(blocks)
    assert first.file == "src/foo.cpp"
    assert first.text == "One."
    assert next(blocks).text == "Two."
    with pytest.raises(StopIteration):
        next(blocks)


def test_custom_markers_ignore_empty_comments() -> None:
    text = "/**/\nint a;\n/** Documented. */\nint b;\n"

    blocks = _blocks(text, markers=["/**"])

    assert [block.text for block in blocks] == ["Documented."]
    assert blocks[0].next_code_line == 4


def test_tokenizer_requires_a_marker() -> None:
    with pytest.raises(ValueError):
        CommentTokenizer(markers=[])
