"""Association of parsed documentation blocks with declared symbols."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .diagnostics import ContractError, Diagnostic, DiagnosticKind, DiagnosticLog
from .logging import get_logger
from .models import (
    ContentSegment,
    CrossReference,
    DocEntry,
    ParsedBlock,
    ReferenceOrigin,
    Section,
    SectionKind,
    SegmentKind,
    SourceSpan,
    TagNode,
)
from .names import leaf_of, owner_of
from .symbols import Symbol, SymbolKind, SymbolTable
from .vocabulary import TOPIC_KINDS, TagKind

_ANCHOR_SUFFIXES = {
    SymbolKind.PROPERTY: "-prop",
    SymbolKind.ENUM: "-enum",
    SymbolKind.TYPEDEF: "-typedef",
    SymbolKind.VARIABLE: "-var",
}

_SIMPLE_SECTIONS = {
    TagKind.NOTE: SectionKind.NOTE,
    TagKind.WARNING: SectionKind.WARNING,
    TagKind.CODE: SectionKind.CODE,
}

_FLAGS = {
    TagKind.INTERNAL: "internal",
    TagKind.DEPRECATED: "deprecated",
}


@dataclass(frozen=True)
class BindingCandidate:
    """A parsed block with both of its possible targets, before any decision."""

    parsed: ParsedBlock
    order: Tuple[int, str, int, int]
    explicit: Optional[TagNode]
    adjacent: Optional[str]


def anchor_for(symbol: Symbol) -> str:
    if symbol.kind in (SymbolKind.CLASS, SymbolKind.NAMESPACE):
        return "details"
    return f"{leaf_of(symbol.name)}{_ANCHOR_SUFFIXES.get(symbol.kind, '')}"


def page_for(symbol: Symbol) -> str:
    """Help page holding the symbol: the lower-cased owning class, Qt style."""
    override = symbol.metadata.get("page")
    if isinstance(override, str) and override:
        return override
    if symbol.kind in (SymbolKind.CLASS, SymbolKind.NAMESPACE):
        scope: Optional[str] = symbol.name
    else:
        scope = owner_of(symbol.name)
    if scope is None:
        return "index.html"
    return scope.lower().replace("::", "-") + ".html"


class SymbolBinder:
    """Binds blocks by explicit topic tag first, then by source adjacency."""

    def __init__(self) -> None:
        self.logger = get_logger("binder")

    def collect(
        self,
        blocks: Iterable[ParsedBlock],
        table: SymbolTable,
        file_order: Optional[Sequence[str]] = None,
    ) -> List[BindingCandidate]:
        if table is None:
            raise ContractError("A symbol table is required to bind documentation")
        ranks = {file: rank for rank, file in enumerate(file_order or ())}
        candidates: List[BindingCandidate] = []
        for parsed in blocks:
            block = parsed.block
            adjacent: Optional[str] = None
            if block.next_code_line is not None:
                symbol = table.at(block.file, block.next_code_line)
                adjacent = symbol.name if symbol is not None else None
            rank = ranks.get(block.file, len(ranks))
            candidates.append(
                BindingCandidate(
                    parsed=parsed,
                    order=(rank, block.file, block.span.start_line, block.offset),
                    explicit=parsed.explicit_topic,
                    adjacent=adjacent,
                )
            )
        # Files missing from file_order sort by name after the ranked ones.
        candidates.sort(key=lambda c: c.order)
        return candidates

    def bind(
        self,
        candidates: Sequence[BindingCandidate],
        table: SymbolTable,
        diagnostics: DiagnosticLog,
    ) -> Dict[str, DocEntry]:
        builders: Dict[str, _EntryBuilder] = {}
        for candidate in candidates:
            key = self._choose(candidate, table, diagnostics)
            if key is None:
                continue
            builder = builders.get(key)
            if builder is None:
                builder = builders[key] = _EntryBuilder(table.get(key))  # type: ignore[arg-type]
            builder.absorb(candidate.parsed)

        self.logger.debug("Bound %d blocks to %d symbols", len(candidates), len(builders))
        return {key: builder.build() for key, builder in builders.items()}

    def _choose(
        self,
        candidate: BindingCandidate,
        table: SymbolTable,
        diagnostics: DiagnosticLog,
    ) -> Optional[str]:
        parsed = candidate.parsed
        span = parsed.block.span
        if candidate.explicit is not None:
            name = candidate.explicit.target
            if name in table:
                return name
            diagnostics.add(
                Diagnostic(
                    kind=DiagnosticKind.UNKNOWN_SYMBOL_REFERENCE,
                    message=f"\\{candidate.explicit.marker} names unknown symbol {name}",
                    file=span.file,
                    line=candidate.explicit.line,
                    symbol=name,
                    tags=parsed.tags,
                )
            )
            return None
        if candidate.adjacent is not None:
            return candidate.adjacent
        diagnostics.add(
            Diagnostic(
                kind=DiagnosticKind.ORPHANED_DOCUMENTATION,
                message="documentation block has no explicit target and no adjacent declaration",
                file=span.file,
                line=span.start_line,
                tags=parsed.tags,
            )
        )
        return None


class _EntryBuilder:
    """Accumulates the blocks bound to one symbol, in source order."""

    def __init__(self, symbol: Symbol) -> None:
        self.symbol = symbol
        self.brief: Optional[Tuple[ContentSegment, ...]] = None
        self.implicit_brief: Optional[int] = None
        self.sections: List[Section] = []
        self.references: List[CrossReference] = []
        self.flags: Set[str] = set()
        self.spans: List[SourceSpan] = []
        self.tags: List[TagNode] = []

    def absorb(self, parsed: ParsedBlock) -> None:
        first_block = not self.spans
        leading = True
        for tag in parsed.tags:
            self.tags.append(tag)
            self._collect_inline_references(tag)
            if tag.kind in TOPIC_KINDS:
                continue
            if tag.kind is TagKind.TEXT:
                if leading and first_block and self.implicit_brief is None:
                    self.implicit_brief = len(self.sections)
                self.sections.append(Section(kind=SectionKind.TEXT, body=tag.body))
                continue
            leading = False
            self._absorb_tag(tag)
        self.spans.append(parsed.block.span)

    def _absorb_tag(self, tag: TagNode) -> None:
        kind = tag.kind
        if kind is TagKind.BRIEF:
            if not tag.body:
                return
            if self.brief is None:
                self.brief = tag.body
            else:
                self.sections.append(Section(kind=SectionKind.BRIEF, body=tag.body))
        elif kind is TagKind.SINCE:
            if tag.argument:
                self.sections.append(Section(kind=SectionKind.SINCE, value=tag.argument))
        elif kind is TagKind.MODULE:
            if tag.argument:
                self.sections.append(Section(kind=SectionKind.MODULE, value=tag.argument))
        elif kind is TagKind.SEE_ALSO:
            if tag.targets:
                self.sections.append(Section(kind=SectionKind.SEE_ALSO, targets=tag.targets))
            for target in tag.targets:
                self._add_reference(target, ReferenceOrigin.SEE_ALSO, tag)
        elif kind is TagKind.SECTION:
            self.sections.append(
                Section(
                    kind=SectionKind.HEADING,
                    title=tag.argument,
                    body=tag.body,
                    level=tag.section_level,
                )
            )
        elif kind in _SIMPLE_SECTIONS:
            self.sections.append(Section(kind=_SIMPLE_SECTIONS[kind], body=tag.body))
        elif kind in _FLAGS:
            self.flags.add(_FLAGS[kind])
        else:
            marker = ContentSegment(kind=SegmentKind.TEXT, text=f"\\{tag.marker}")
            body = (marker, ContentSegment(kind=SegmentKind.TEXT, text=" "), *tag.body) if tag.body else (marker,)
            self.sections.append(Section(kind=SectionKind.OPAQUE, title=tag.marker, body=body))

    def _collect_inline_references(self, tag: TagNode) -> None:
        for segment in tag.references():
            self._add_reference(segment.target or segment.text, ReferenceOrigin.INLINE, tag)

    def _add_reference(self, target: str, origin: ReferenceOrigin, tag: TagNode) -> None:
        self.references.append(
            CrossReference(
                source=self.symbol.name,
                target=target,
                origin=origin,
                file=tag.file,
                line=tag.line,
            )
        )

    def build(self) -> DocEntry:
        sections = list(self.sections)
        brief = self.brief
        if brief is None and self.implicit_brief is not None:
            brief = sections.pop(self.implicit_brief).body
        return DocEntry(
            key=self.symbol.name,
            kind=self.symbol.kind,
            brief=brief or (),
            sections=tuple(sections),
            references=tuple(self.references),
            anchor=anchor_for(self.symbol),
            page=page_for(self.symbol),
            flags=frozenset(self.flags),
            spans=tuple(self.spans),
            tags=tuple(self.tags),
        )


__all__ = ["BindingCandidate", "SymbolBinder", "anchor_for", "page_for"]
