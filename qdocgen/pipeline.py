"""Pipeline orchestration: tokenize, parse, bind and resolve."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence, Tuple, Union

from .binder import SymbolBinder
from .config import QDocConfig
from .diagnostics import ContractError, DiagnosticLog
from .logging import get_logger
from .models import DocumentModel, ParsedBlock, RawCommentBlock
from .parser import TagParser
from .resolver import CrossReferenceResolver
from .symbols import Symbol, SymbolTable, load_symbol_table, normalise_path
from .tokenizer import CommentTokenizer, unterminated_diagnostic

SourceInput = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class DocumentBuilder:
    """Builds a ``DocumentModel`` from source text and a pre-extracted symbol table.

    The stages run strictly in sequence; only tag parsing may fan out over
    ``parse_workers`` threads because blocks do not depend on each other.
    """

    def __init__(
        self,
        *,
        tokenizer: CommentTokenizer | None = None,
        parser: TagParser | None = None,
        binder: SymbolBinder | None = None,
        resolver: CrossReferenceResolver | None = None,
        parse_workers: int = 1,
    ) -> None:
        if parse_workers < 1:
            raise ValueError("parse_workers must be at least 1")
        self.tokenizer = tokenizer or CommentTokenizer()
        self.parser = parser or TagParser()
        self.binder = binder or SymbolBinder()
        self.resolver = resolver or CrossReferenceResolver()
        self.parse_workers = parse_workers
        self.logger = get_logger("pipeline")

    @classmethod
    def from_config(cls, config: QDocConfig) -> "DocumentBuilder":
        return cls(
            tokenizer=CommentTokenizer(config.comment_markers),
            resolver=CrossReferenceResolver(link_notify_signals=config.link_notify_signals),
            parse_workers=config.parse_workers,
        )

    def build(
        self,
        sources: SourceInput,
        symbol_table: SymbolTable | Iterable[Symbol] | None,
    ) -> DocumentModel:
        table = _coerce_table(symbol_table)
        pairs = _coerce_sources(sources)
        diagnostics = DiagnosticLog()

        blocks = self._tokenize(pairs, diagnostics)
        self.logger.debug("Tokenized %d documentation blocks from %d files", len(blocks), len(pairs))

        parsed = self._parse(blocks)
        for item in parsed:
            diagnostics.extend(item.diagnostics)

        file_order = [normalise_path(path) for path, _ in pairs]
        candidates = self.binder.collect(parsed, table, file_order=file_order)
        entries = self.binder.bind(candidates, table, diagnostics)
        entries = self.resolver.resolve(entries, table, diagnostics)

        self.logger.info(
            "Built documentation for %d symbols with %d diagnostics", len(entries), len(diagnostics)
        )
        return DocumentModel(entries=entries, diagnostics=diagnostics.freeze())

    def _tokenize(
        self, pairs: Sequence[Tuple[str, str]], diagnostics: DiagnosticLog
    ) -> List[RawCommentBlock]:
        blocks: List[RawCommentBlock] = []
        for path, text in pairs:
            for block in self.tokenizer.tokenize(path, text):
                if not block.terminated:
                    diagnostics.add(unterminated_diagnostic(block))
                blocks.append(block)
        return blocks

    def _parse(self, blocks: Sequence[RawCommentBlock]) -> List[ParsedBlock]:
        if self.parse_workers == 1 or len(blocks) < 2:
            return [self.parser.parse(block) for block in blocks]
        with ThreadPoolExecutor(max_workers=self.parse_workers) as pool:
            return list(pool.map(self.parser.parse, blocks))


def build_project(config: QDocConfig) -> DocumentModel:
    """Read the configured sources and symbol table from disk and build the model."""
    if config.symbols is None:
        raise ContractError("No symbol table configured; set `symbols` in .qdocgen.yml")
    table = load_symbol_table(config.symbols)
    sources = collect_sources(config)
    return DocumentBuilder.from_config(config).build(sources, table)


def collect_sources(config: QDocConfig) -> List[Tuple[str, str]]:
    """Return ``(relative path, text)`` pairs for files matching the source globs."""
    root = config.root
    seen: set[Path] = set()
    pairs: List[Tuple[str, str]] = []
    logger = get_logger("pipeline")
    for pattern in config.sources:
        for path in sorted(root.glob(pattern)):
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            relative = path.relative_to(root).as_posix()
            if _is_excluded(relative, config.exclude_paths):
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable source %s: %s", relative, exc)
                continue
            pairs.append((relative, text))
    return pairs


def _is_excluded(relative: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        cleaned = pattern.rstrip("/")
        if fnmatchcase(relative, pattern) or relative.startswith(f"{cleaned}/"):
            return True
    return False


def _coerce_table(symbol_table: object) -> SymbolTable:
    if symbol_table is None:
        raise ContractError("A symbol table is required to build documentation")
    if isinstance(symbol_table, SymbolTable):
        return symbol_table
    if isinstance(symbol_table, (str, bytes, Mapping)):
        raise ContractError("symbol_table must be a SymbolTable or an iterable of Symbol")
    try:
        symbols = list(symbol_table)  # type: ignore[call-overload]
    except TypeError as exc:
        raise ContractError("symbol_table must be a SymbolTable or an iterable of Symbol") from exc
    if not all(isinstance(symbol, Symbol) for symbol in symbols):
        raise ContractError("symbol_table must contain only Symbol records")
    return SymbolTable(symbols)


def _coerce_sources(sources: object) -> List[Tuple[str, str]]:
    if sources is None:
        raise ContractError("sources must be provided")
    items = sources.items() if isinstance(sources, Mapping) else sources
    pairs: List[Tuple[str, str]] = []
    for item in items:  # type: ignore[union-attr]
        if (
            not isinstance(item, (tuple, list))
            or len(item) != 2
            or not isinstance(item[0], (str, Path))
            or not isinstance(item[1], str)
        ):
            raise ContractError(f"Source entries must be (path, text) pairs, got {item!r}")
        pairs.append((str(item[0]), item[1]))
    return pairs


__all__ = ["DocumentBuilder", "SourceInput", "build_project", "collect_sources"]
