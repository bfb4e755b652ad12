"""Diagnostics collected while building a document model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple

from .logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .models import TagNode


class ContractError(ValueError):
    """Raised when the caller violates a structural precondition of the pipeline."""


class DiagnosticKind(str, Enum):
    UNTERMINATED_COMMENT = "unterminated-comment"
    UNKNOWN_SYMBOL_REFERENCE = "unknown-symbol-reference"
    ORPHANED_DOCUMENTATION = "orphaned-documentation"
    DANGLING_CROSS_REFERENCE = "dangling-cross-reference"
    MALFORMED_TAG_ARGUMENT = "malformed-tag-argument"


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable anomaly found in documentation input.

    ``tags`` lists the tag nodes the diagnostic accounts for when their
    content does not reach a ``DocEntry`` (dropped or orphaned blocks) or
    when a single tag was malformed.
    """

    kind: DiagnosticKind
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    symbol: Optional[str] = None
    tags: Tuple["TagNode", ...] = ()

    def location(self) -> str:
        if self.file is None:
            return "<unknown>"
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"

    def __str__(self) -> str:
        return f"{self.location()}: {self.kind.value}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "symbol": self.symbol,
        }


class DiagnosticLog:
    """Ordered diagnostic sink; every entry is also logged as a warning."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []
        self._logger = get_logger("diagnostics")

    def add(self, diagnostic: Diagnostic) -> None:
        self._items.append(diagnostic)
        self._logger.warning("%s", diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def freeze(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["ContractError", "Diagnostic", "DiagnosticKind", "DiagnosticLog"]
