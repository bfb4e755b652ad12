"""Externally supplied symbol table consumed by the binder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from .logging import get_logger
from .names import owner_of

_LOGGER = get_logger("symbols")


class SymbolTableError(RuntimeError):
    """Raised when a symbol table file cannot be read or has the wrong shape."""


class SymbolKind(str, Enum):
    CLASS = "class"
    PROPERTY = "property"
    SIGNAL = "signal"
    METHOD = "method"
    FUNCTION = "function"
    ENUM = "enum"
    TYPEDEF = "typedef"
    VARIABLE = "variable"
    NAMESPACE = "namespace"
    MACRO = "macro"


SCOPE_KINDS = frozenset({SymbolKind.CLASS, SymbolKind.NAMESPACE})


def normalise_path(path: str | Path) -> str:
    return str(path).replace("\\", "/")


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", normalise_path(self.file))


@dataclass(frozen=True)
class Symbol:
    """A declared entity; ``metadata`` holds signature details such as property accessors."""

    kind: SymbolKind
    name: str
    declaration: Optional[SourceLocation] = None
    definition: Optional[SourceLocation] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def owner(self) -> Optional[str]:
        return owner_of(self.name)

    @property
    def locations(self) -> Tuple[SourceLocation, ...]:
        return tuple(loc for loc in (self.declaration, self.definition) if loc is not None)


class SymbolTable:
    """Read-only index of symbols by qualified name and by source position."""

    def __init__(self, symbols: Iterable[Symbol] = ()) -> None:
        self._by_name: Dict[str, Symbol] = {}
        self._by_location: Dict[Tuple[str, int], Symbol] = {}
        for symbol in symbols:
            if symbol.name in self._by_name:
                # Overloads share a qualified name; the first declaration is the key.
                _LOGGER.debug("Duplicate symbol %s ignored", symbol.name)
                continue
            self._by_name[symbol.name] = symbol
            for location in symbol.locations:
                self._by_location.setdefault((location.file, location.line), symbol)

    def get(self, name: str) -> Optional[Symbol]:
        return self._by_name.get(name)

    def at(self, file: str, line: int) -> Optional[Symbol]:
        """Return the symbol declared or defined at ``file:line``."""
        return self._by_location.get((normalise_path(file), line))

    def names(self) -> List[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


def load_symbol_table(path: Path) -> SymbolTable:
    """Load a YAML or JSON symbol table file.

    The file holds either a list of records or a mapping with a ``symbols``
    list. Each record needs ``kind`` and ``name``; ``file``/``line`` give the
    declaration and ``definition: {file, line}`` an optional definition.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SymbolTableError(f"Failed to read symbol table {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or []
    except yaml.YAMLError as exc:
        raise SymbolTableError(f"Failed to parse {path.name}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("symbols", [])
    if not isinstance(data, list):
        raise SymbolTableError(f"{path.name} must contain a list of symbols")

    symbols = [_symbol_from_dict(record, index) for index, record in enumerate(data)]
    _LOGGER.debug("Loaded %d symbols from %s", len(symbols), path)
    return SymbolTable(symbols)


def _symbol_from_dict(record: object, index: int) -> Symbol:
    if not isinstance(record, dict):
        raise SymbolTableError(f"Symbol #{index} must be a mapping")
    name = record.get("name")
    if not isinstance(name, str) or not name:
        raise SymbolTableError(f"Symbol #{index} is missing a name")
    try:
        kind = SymbolKind(str(record.get("kind", "")).lower())
    except ValueError as exc:
        raise SymbolTableError(f"Symbol {name} has unknown kind {record.get('kind')!r}") from exc

    metadata = record.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise SymbolTableError(f"Symbol {name} metadata must be a mapping")

    return Symbol(
        kind=kind,
        name=name,
        declaration=_location(record),
        definition=_location(record.get("definition")),
        metadata=metadata,
    )


def _location(value: object) -> Optional[SourceLocation]:
    if not isinstance(value, dict):
        return None
    file = value.get("file")
    line = value.get("line")
    if not isinstance(file, str) or not isinstance(line, int):
        return None
    return SourceLocation(file=file, line=line)


__all__ = [
    "SCOPE_KINDS",
    "SourceLocation",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "SymbolTableError",
    "load_symbol_table",
    "normalise_path",
]
