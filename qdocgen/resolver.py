"""Resolution of symbolic cross-references across the bound entries."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from .diagnostics import Diagnostic, DiagnosticKind, DiagnosticLog
from .logging import get_logger
from .models import CrossReference, DocEntry, ReferenceOrigin
from .names import SCOPE_SEPARATOR, owner_of, resolve_name
from .symbols import SymbolKind, SymbolTable

_PAIRED_METADATA = ("read", "write", "notify")


class CrossReferenceResolver:
    """Single pass over every reference; outcome depends only on names and keys."""

    def __init__(self, *, link_notify_signals: bool = False) -> None:
        self.link_notify_signals = link_notify_signals
        self.logger = get_logger("resolver")

    def resolve(
        self,
        entries: Mapping[str, DocEntry],
        table: SymbolTable,
        diagnostics: DiagnosticLog,
    ) -> Dict[str, DocEntry]:
        implicit = self._paired_references(entries, table) if self.link_notify_signals else {}
        resolved: Dict[str, DocEntry] = {}
        dangling = 0
        for key in sorted(entries):
            entry = entries[key]
            references: List[CrossReference] = []
            for reference in (*entry.references, *implicit.get(key, ())):
                outcome = self._resolve_one(reference, entry, entries)
                if outcome.resolved_key is None:
                    dangling += 1
                    diagnostics.add(self._dangling_diagnostic(outcome, table))
                references.append(outcome)
            resolved[key] = replace(entry, references=tuple(references))

        self.logger.debug("Resolved references for %d entries (%d dangling)", len(resolved), dangling)
        return resolved

    @staticmethod
    def _resolve_one(
        reference: CrossReference, entry: DocEntry, entries: Mapping[str, DocEntry]
    ) -> CrossReference:
        key = resolve_name(reference.target, entries.keys(), entry.scope)
        if key is None:
            return reference.mark_dangling()
        return reference.resolve(key, href=entries[key].href)

    @staticmethod
    def _dangling_diagnostic(reference: CrossReference, table: SymbolTable) -> Diagnostic:
        if reference.target in table:
            reason = "has no documentation"
        else:
            reason = "is not a known symbol"
        return Diagnostic(
            kind=DiagnosticKind.DANGLING_CROSS_REFERENCE,
            message=f"reference from {reference.source} to {reference.target} {reason}",
            file=reference.file,
            line=reference.line,
            symbol=reference.target,
        )

    @staticmethod
    def _paired_references(
        entries: Mapping[str, DocEntry], table: SymbolTable
    ) -> Dict[str, List[CrossReference]]:
        """Links each documented property with its documented accessors and notify signal."""
        pairs: Dict[str, List[CrossReference]] = {}

        def link(source: str, target: str) -> None:
            existing = {ref.target for ref in entries[source].references}
            existing.update(ref.target for ref in pairs.get(source, ()))
            if target in existing:
                return
            pairs.setdefault(source, []).append(
                CrossReference(source=source, target=target, origin=ReferenceOrigin.IMPLICIT)
            )

        for key, entry in entries.items():
            if entry.kind is not SymbolKind.PROPERTY:
                continue
            symbol = table.get(key)
            if symbol is None:
                continue
            owner = owner_of(key)
            for field_name in _PAIRED_METADATA:
                partner = _qualify(symbol.metadata.get(field_name), owner)
                if partner is None or partner == key or partner not in entries:
                    continue
                link(key, partner)
                link(partner, key)
        return pairs


def _qualify(name: object, owner: Optional[str]) -> Optional[str]:
    if not isinstance(name, str) or not name:
        return None
    if SCOPE_SEPARATOR in name or owner is None:
        return name
    return f"{owner}{SCOPE_SEPARATOR}{name}"


__all__ = ["CrossReferenceResolver"]
