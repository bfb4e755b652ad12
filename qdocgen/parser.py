"""Parsing of raw comment blocks into tag nodes and content segments."""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .diagnostics import Diagnostic, DiagnosticKind
from .models import ContentSegment, ParsedBlock, RawCommentBlock, SegmentKind, TagNode
from .names import reference_name, symbol_name_from_argument
from .vocabulary import (
    CODE_END_MARKER,
    INLINE_COMMANDS,
    TOPIC_KINDS,
    UNKNOWN_SPEC,
    ArgShape,
    BodyExtent,
    TagKind,
    TagSpec,
    lookup,
)

_TAG_LINE = re.compile(r"^\\([A-Za-z][A-Za-z0-9]*)(?![A-Za-z0-9])\s*(.*)$")
_INLINE = re.compile(r"\\([A-Za-z]+)(?:\s*\{([^}]*)\}|\s+([^\s{}]+))?")
_TRAILING_PUNCTUATION = ".,;:!?)"

_SEGMENT_KINDS = {
    "code": SegmentKind.CODE,
    "emphasis": SegmentKind.EMPHASIS,
    "bold": SegmentKind.BOLD,
    "reference": SegmentKind.REFERENCE,
}


@dataclass
class _PendingTag:
    spec: TagSpec
    marker: str
    line: int
    argument: str
    lines: List[str] = field(default_factory=list)


class TagParser:
    """Parses one ``RawCommentBlock`` at a time; holds no state between blocks."""

    def parse(self, block: RawCommentBlock) -> ParsedBlock:
        return _BlockParser(block).run()


class _BlockParser:
    def __init__(self, block: RawCommentBlock) -> None:
        self.block = block
        self.tags: List[TagNode] = []
        self.diagnostics: List[Diagnostic] = []
        self._pending: Optional[_PendingTag] = None
        self._prose: List[str] = []
        self._prose_line = 0

    def run(self) -> ParsedBlock:
        lines = self.block.text.split("\n")
        first_line = self.block.span.start_line
        for offset, raw in enumerate(lines):
            self._feed(raw, first_line + offset)
        self._finish_prose()
        if self._pending is not None and self._pending.spec.body is BodyExtent.VERBATIM:
            node = self._emit(self._pending)
            self._malformed(node, f"\\{self._pending.marker} is not closed by \\{CODE_END_MARKER}")
            self._pending = None
        self._finish_pending()
        return ParsedBlock(
            block=self.block, tags=tuple(self.tags), diagnostics=tuple(self.diagnostics)
        )

    def _feed(self, raw: str, line: int) -> None:
        stripped = raw.strip()
        pending = self._pending

        if pending is not None and pending.spec.body is BodyExtent.VERBATIM:
            if stripped == f"\\{CODE_END_MARKER}":
                self._finish_pending()
            else:
                pending.lines.append(raw)
            return

        match = _TAG_LINE.match(stripped)
        if match and match.group(1) not in INLINE_COMMANDS:
            self._finish_prose()
            self._finish_pending()
            name, argument = match.group(1), match.group(2).strip()
            spec = lookup(name) or UNKNOWN_SPEC
            self._pending = _PendingTag(spec=spec, marker=name, line=line, argument=argument)
            if spec.body is BodyExtent.NONE:
                self._finish_pending()
            return

        if pending is not None:
            if pending.spec.body is BodyExtent.PARAGRAPH:
                if stripped:
                    pending.lines.append(stripped)
                    return
                self._finish_pending()
                return
            pending.lines.append(stripped)
            return

        if not stripped:
            self._finish_prose()
            return
        if not self._prose:
            self._prose_line = line
        self._prose.append(stripped)

    def _finish_prose(self) -> None:
        if not self._prose:
            return
        self.tags.append(
            TagNode(
                kind=TagKind.TEXT,
                marker="",
                file=self.block.file,
                line=self._prose_line,
                body=tuple(parse_inline(" ".join(self._prose))),
            )
        )
        self._prose = []

    def _finish_pending(self) -> None:
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        node = self._emit(pending)
        if pending.spec.required and not pending.argument:
            self._malformed(node, f"\\{pending.marker} requires an argument")
        elif pending.spec.kind in TOPIC_KINDS and node.target is None:
            self._malformed(node, f"\\{pending.marker} does not name a symbol: {pending.argument!r}")
        elif pending.spec.kind is TagKind.BRIEF and not node.body:
            self._malformed(node, f"\\{pending.marker} has no text")

    def _emit(self, pending: _PendingTag) -> TagNode:
        spec = pending.spec
        argument = pending.argument or None
        target: Optional[str] = None
        targets: Tuple[str, ...] = ()
        body: Tuple[ContentSegment, ...] = ()

        if spec.kind in TOPIC_KINDS:
            target = symbol_name_from_argument(pending.argument)
        elif spec.arg is ArgShape.SYMBOL_LIST:
            targets = split_symbol_list(pending.argument)
        elif spec.body is BodyExtent.VERBATIM:
            code = textwrap.dedent("\n".join(pending.lines)).strip("\n")
            body = (ContentSegment(kind=SegmentKind.CODE_BLOCK, text=code),)
        elif spec.body is BodyExtent.PARAGRAPH:
            # Paragraph tags carry their text inline with the marker.
            body = tuple(parse_inline(" ".join([pending.argument, *pending.lines]).strip()))
        elif spec.body is BodyExtent.UNTIL_NEXT_TAG:
            body = tuple(parse_paragraphs(pending.lines))

        node = TagNode(
            kind=spec.kind,
            marker=pending.marker,
            file=self.block.file,
            line=pending.line,
            argument=argument,
            target=target,
            targets=targets,
            body=body,
        )
        self.tags.append(node)
        return node

    def _malformed(self, node: TagNode, message: str) -> None:
        self.diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.MALFORMED_TAG_ARGUMENT,
                message=message,
                file=node.file,
                line=node.line,
                tags=(node,),
            )
        )


def split_symbol_list(argument: str) -> Tuple[str, ...]:
    """Split a ``\\sa`` argument into symbol names."""
    names: List[str] = []
    for part in _split_outside_parens(argument):
        name = part.strip().rstrip(".").strip()
        if name.startswith("\\l"):
            name = name[2:].strip()
        if name.startswith("{") and name.endswith("}"):
            name = name[1:-1].strip()
        name = reference_name(name)
        if name:
            names.append(name)
    return tuple(names)


def _split_outside_parens(argument: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in argument:
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if char == "(":
            depth += 1
        elif char == ")" and depth:
            depth -= 1
        current.append(char)
    parts.append("".join(current))
    return parts


def _strip_trailing_punctuation(word: str) -> str:
    """Drop sentence punctuation; a closing paren stays while it closes an open one."""
    value = word
    while value and value[-1] in _TRAILING_PUNCTUATION:
        if value[-1] == ")" and value.count("(") >= value.count(")"):
            break
        value = value[:-1]
    return value


def parse_paragraphs(lines: List[str]) -> List[ContentSegment]:
    """Parse multi-paragraph text; paragraphs are separated by ``BREAK`` segments."""
    segments: List[ContentSegment] = []
    paragraph: List[str] = []

    def flush() -> None:
        if not paragraph:
            return
        if segments:
            segments.append(ContentSegment(kind=SegmentKind.BREAK, text=""))
        segments.extend(parse_inline(" ".join(paragraph)))
        paragraph.clear()

    for line in lines:
        if line.strip():
            paragraph.append(line.strip())
        else:
            flush()
    flush()
    return segments


def parse_inline(text: str) -> List[ContentSegment]:
    """Split prose into text, code, emphasis and reference segments."""
    segments: List[ContentSegment] = []
    position = 0
    for match in _INLINE.finditer(text):
        command = INLINE_COMMANDS.get(match.group(1))
        braced, word = match.group(2), match.group(3)
        if command is None or (braced is None and word is None):
            continue
        trailing = ""
        if braced is not None:
            value = braced.strip()
        else:
            value = _strip_trailing_punctuation(word)
            trailing = word[len(value):]
        if not value:
            continue
        _append_text(segments, text[position : match.start()])
        kind = _SEGMENT_KINDS[command]
        target = reference_name(value) if kind is SegmentKind.REFERENCE else None
        segments.append(ContentSegment(kind=kind, text=value, target=target))
        _append_text(segments, trailing)
        position = match.end()
    _append_text(segments, text[position:])
    return segments


def _append_text(segments: List[ContentSegment], text: str) -> None:
    if not text:
        return
    if segments and segments[-1].kind is SegmentKind.TEXT:
        segments[-1] = ContentSegment(kind=SegmentKind.TEXT, text=segments[-1].text + text)
        return
    segments.append(ContentSegment(kind=SegmentKind.TEXT, text=text))


__all__ = ["TagParser", "parse_inline", "parse_paragraphs", "split_symbol_list"]
