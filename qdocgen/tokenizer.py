"""Extraction of documentation comment blocks from C++ source text."""

from __future__ import annotations

import re
import textwrap
from bisect import bisect_right
from typing import Iterator, List, Optional, Sequence

from .diagnostics import Diagnostic, DiagnosticKind
from .models import RawCommentBlock, SourceSpan
from .symbols import normalise_path

DEFAULT_MARKERS: tuple[str, ...] = ("/*!",)

_DECORATION = re.compile(r"^\s*\*(?!/) ?")
_CLOSE = "*/"


class CommentTokenizer:
    """Yields documentation blocks in source order.

    Only comments opened with one of ``markers`` are emitted; ordinary
    block comments, line comments and string literals are skipped.
    """

    def __init__(self, markers: Sequence[str] = DEFAULT_MARKERS) -> None:
        if not markers:
            raise ValueError("At least one documentation comment marker is required")
        # Longest first so "/*!" is not shadowed by a shorter prefix.
        self.markers = tuple(sorted(markers, key=len, reverse=True))

    def tokenize(self, path: str, text: str) -> Iterator[RawCommentBlock]:
        file = normalise_path(path)
        line_starts = _line_starts(text)
        length = len(text)
        index = 0
        while index < length:
            marker = self._doc_marker_at(text, index)
            if marker is not None:
                block, index = self._read_block(file, text, index, marker, line_starts)
                yield block
                continue
            index = _skip_non_doc(text, index)

    def _doc_marker_at(self, text: str, index: int) -> Optional[str]:
        for marker in self.markers:
            if text.startswith(marker, index):
                # "/**/" is an empty ordinary comment, not a "/**" doc block.
                if text.startswith(_CLOSE, index + len(marker) - 1) and marker.endswith("*"):
                    return None
                return marker
        return None

    def _read_block(
        self,
        file: str,
        text: str,
        start: int,
        marker: str,
        line_starts: List[int],
    ) -> tuple[RawCommentBlock, int]:
        body_start = start + len(marker)
        close = text.find(_CLOSE, body_start)
        terminated = close != -1
        if terminated:
            body = text[body_start:close]
            end = close + len(_CLOSE)
            next_line = self._next_code_line(text, end, line_starts)
        else:
            body = text[body_start:]
            end = len(text)
            next_line = None

        start_line = _line_of(line_starts, start)
        end_line = _line_of(line_starts, max(end - 1, start))
        block = RawCommentBlock(
            span=SourceSpan(file=file, start_line=start_line, end_line=end_line),
            text=_strip_decoration(body),
            next_code_line=next_line,
            terminated=terminated,
            offset=start,
        )
        return block, end

    def _next_code_line(self, text: str, index: int, line_starts: List[int]) -> Optional[int]:
        length = len(text)
        while index < length:
            char = text[index]
            if char.isspace():
                index += 1
                continue
            if self._doc_marker_at(text, index) is not None:
                return None
            if text.startswith("//", index) or text.startswith("/*", index):
                index = _skip_non_doc(text, index)
                continue
            return _line_of(line_starts, index)
        return None


def unterminated_diagnostic(block: RawCommentBlock) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.UNTERMINATED_COMMENT,
        message="documentation comment is not closed before end of file",
        file=block.span.file,
        line=block.span.start_line,
    )


def _skip_non_doc(text: str, index: int) -> int:
    """Advance past one token that cannot open a documentation block."""
    if text.startswith("//", index):
        newline = text.find("\n", index)
        return len(text) if newline == -1 else newline + 1
    if text.startswith("/*", index):
        close = text.find(_CLOSE, index + 2)
        return len(text) if close == -1 else close + len(_CLOSE)
    char = text[index]
    if char in {'"', "'"}:
        return _skip_literal(text, index, char)
    return index + 1


def _skip_literal(text: str, index: int, quote: str) -> int:
    position = index + 1
    length = len(text)
    while position < length:
        char = text[position]
        if char == "\\":
            position += 2
            continue
        if char == quote or char == "\n":
            return position + 1
        position += 1
    return length


def _strip_decoration(body: str) -> str:
    lines = body.split("\n")
    first, rest = lines[0].strip(), lines[1:]
    significant = [line for line in rest if line.strip() and line.strip() != "*"]
    decorated = bool(significant) and all(_DECORATION.match(line) for line in significant)
    if decorated:
        rest = [_DECORATION.sub("", line, count=1) for line in rest]
    rest = [line.rstrip() for line in textwrap.dedent("\n".join(rest)).split("\n")] if rest else []
    return "\n".join([first, *rest])


def _line_starts(text: str) -> List[int]:
    starts = [0]
    for match in re.finditer("\n", text):
        starts.append(match.end())
    return starts


def _line_of(line_starts: List[int], offset: int) -> int:
    return bisect_right(line_starts, offset)


__all__ = ["CommentTokenizer", "DEFAULT_MARKERS", "unterminated_diagnostic"]
