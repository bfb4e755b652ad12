"""Core data models shared across qdocgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from .diagnostics import Diagnostic, DiagnosticKind
from .names import owner_of, resolve_name
from .symbols import SCOPE_KINDS, SymbolKind
from .vocabulary import TagKind


@dataclass(frozen=True)
class SourceSpan:
    file: str
    start_line: int
    end_line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class RawCommentBlock:
    """A documentation comment as found in source, with decoration stripped.

    ``next_code_line`` is the first line after the block holding code, or
    ``None`` when another documentation comment or end of file comes first.
    ``offset`` is the character position of the opening marker in the file.
    """

    span: SourceSpan
    text: str
    next_code_line: Optional[int] = None
    terminated: bool = True
    offset: int = 0

    @property
    def file(self) -> str:
        return self.span.file


class SegmentKind(str, Enum):
    TEXT = "text"
    CODE = "code"
    EMPHASIS = "emphasis"
    BOLD = "bold"
    REFERENCE = "reference"
    CODE_BLOCK = "code-block"
    BREAK = "break"


@dataclass(frozen=True)
class ContentSegment:
    """One unit of body content; ``target`` is set for reference placeholders."""

    kind: SegmentKind
    text: str
    target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value, "text": self.text}
        if self.target is not None:
            data["target"] = self.target
        return data


def segments_text(segments: Tuple[ContentSegment, ...]) -> str:
    """Flatten segments into plain text, paragraphs separated by blank lines."""
    parts: List[str] = []
    for segment in segments:
        if segment.kind is SegmentKind.BREAK:
            parts.append("\n\n")
        else:
            parts.append(segment.text)
    return "".join(parts).strip()


@dataclass(frozen=True)
class TagNode:
    """A parsed directive inside one comment block.

    ``argument`` is the raw text after the marker on its line, ``target`` the
    symbol named by topic tags and ``targets`` the names listed by ``\\sa``.
    """

    kind: TagKind
    marker: str
    file: str
    line: int
    argument: Optional[str] = None
    target: Optional[str] = None
    targets: Tuple[str, ...] = ()
    body: Tuple[ContentSegment, ...] = ()

    @property
    def section_level(self) -> int:
        if self.kind is TagKind.SECTION and self.marker[-1:].isdigit():
            return int(self.marker[-1])
        return 0

    def references(self) -> Tuple[ContentSegment, ...]:
        return tuple(seg for seg in self.body if seg.kind is SegmentKind.REFERENCE)


@dataclass(frozen=True)
class ParsedBlock:
    block: RawCommentBlock
    tags: Tuple[TagNode, ...]
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def explicit_topic(self) -> Optional[TagNode]:
        """First topic tag that names a symbol, if any."""
        for tag in self.tags:
            if tag.target:
                return tag
        return None


class SectionKind(str, Enum):
    TEXT = "text"
    HEADING = "heading"
    SINCE = "since"
    MODULE = "module"
    SEE_ALSO = "see-also"
    BRIEF = "brief"
    NOTE = "note"
    WARNING = "warning"
    CODE = "code"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    body: Tuple[ContentSegment, ...] = ()
    title: Optional[str] = None
    value: Optional[str] = None
    targets: Tuple[str, ...] = ()
    level: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "body": [segment.to_dict() for segment in self.body],
        }
        if self.title is not None:
            data["title"] = self.title
        if self.value is not None:
            data["value"] = self.value
        if self.targets:
            data["targets"] = list(self.targets)
        if self.level:
            data["level"] = self.level
        return data


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    DANGLING = "dangling"


class ReferenceOrigin(str, Enum):
    INLINE = "inline"
    SEE_ALSO = "see-also"
    IMPLICIT = "implicit"


@dataclass(frozen=True)
class CrossReference:
    """Directed edge from a documented symbol to a target name.

    Holds the target's key, never the target entry itself. State moves
    once, from ``UNRESOLVED`` to ``RESOLVED`` or ``DANGLING``.
    """

    source: str
    target: str
    origin: ReferenceOrigin
    file: Optional[str] = None
    line: Optional[int] = None
    state: ResolutionState = ResolutionState.UNRESOLVED
    resolved_key: Optional[str] = None
    href: Optional[str] = None

    def resolve(self, key: str, href: Optional[str] = None) -> "CrossReference":
        self._require_unresolved()
        return CrossReference(
            source=self.source,
            target=self.target,
            origin=self.origin,
            file=self.file,
            line=self.line,
            state=ResolutionState.RESOLVED,
            resolved_key=key,
            href=href,
        )

    def mark_dangling(self) -> "CrossReference":
        self._require_unresolved()
        return CrossReference(
            source=self.source,
            target=self.target,
            origin=self.origin,
            file=self.file,
            line=self.line,
            state=ResolutionState.DANGLING,
        )

    def _require_unresolved(self) -> None:
        if self.state is not ResolutionState.UNRESOLVED:
            raise ValueError(
                f"Reference {self.source} -> {self.target} already {self.state.value}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "origin": self.origin.value,
            "state": self.state.value,
            "resolved_key": self.resolved_key,
            "href": self.href,
        }


@dataclass(frozen=True)
class DocEntry:
    """Bound documentation for one symbol, keyed by its qualified name."""

    key: str
    kind: SymbolKind
    brief: Tuple[ContentSegment, ...] = ()
    sections: Tuple[Section, ...] = ()
    references: Tuple[CrossReference, ...] = ()
    anchor: str = ""
    page: str = ""
    flags: FrozenSet[str] = frozenset()
    spans: Tuple[SourceSpan, ...] = ()
    tags: Tuple[TagNode, ...] = ()

    @property
    def summary(self) -> str:
        return segments_text(self.brief)

    @property
    def since(self) -> Optional[str]:
        return self._section_value(SectionKind.SINCE)

    @property
    def module(self) -> Optional[str]:
        return self._section_value(SectionKind.MODULE)

    @property
    def scope(self) -> Optional[str]:
        """Owning type used when resolving unqualified names from this entry."""
        if self.kind in SCOPE_KINDS:
            return self.key
        return owner_of(self.key)

    @property
    def href(self) -> str:
        return f"{self.page}#{self.anchor}"

    def _section_value(self, kind: SectionKind) -> Optional[str]:
        for section in self.sections:
            if section.kind is kind:
                return section.value
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "kind": self.kind.value,
            "summary": self.summary,
            "brief": [segment.to_dict() for segment in self.brief],
            "sections": [section.to_dict() for section in self.sections],
            "references": [reference.to_dict() for reference in self.references],
            "anchor": self.anchor,
            "page": self.page,
            "flags": sorted(self.flags),
            "sources": [str(span) for span in self.spans],
        }


@dataclass(frozen=True)
class DocumentModel:
    """Read-only mapping of symbol key to ``DocEntry`` plus the run's diagnostics."""

    entries: Mapping[str, DocEntry] = field(default_factory=dict)
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))

    def get(self, key: str) -> Optional[DocEntry]:
        return self.entries.get(key)

    def lookup(self, name: str, scope: Optional[str] = None) -> Optional[DocEntry]:
        """Find documentation for ``name`` using the resolver's matching rules."""
        key = resolve_name(name, self.entries.keys(), scope)
        return self.entries[key] if key is not None else None

    def dangling(self) -> List[CrossReference]:
        return [
            reference
            for entry in self.entries.values()
            for reference in entry.references
            if reference.state is ResolutionState.DANGLING
        ]

    def diagnostics_of(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.kind is kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": {key: self.entries[key].to_dict() for key in sorted(self.entries)},
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


__all__ = [
    "ContentSegment",
    "CrossReference",
    "DocEntry",
    "DocumentModel",
    "ParsedBlock",
    "RawCommentBlock",
    "ReferenceOrigin",
    "ResolutionState",
    "Section",
    "SectionKind",
    "SegmentKind",
    "SourceSpan",
    "TagNode",
    "segments_text",
]
