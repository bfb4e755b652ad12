"""Tests for cross-reference resolution."""

from __future__ import annotations

import pytest

from qdocgen.diagnostics import DiagnosticKind
from qdocgen.models import CrossReference, ReferenceOrigin, ResolutionState
from qdocgen.pipeline import DocumentBuilder
from qdocgen.resolver import CrossReferenceResolver
from qdocgen.symbols import SymbolKind, SymbolTable
from tests._fixtures.sources import declared, source

RUNNERS = source(
    """
    /*!
        \\class A
        \\brief Runs things; see \\l run.
    */
    /*!
        \\fn void A::run()
        \\brief Runs.
    */
    /*!
        \\fn void B::run()
        \\brief Also runs.
    */
    /*!
        \\fn void C::stop()
        \\brief Stops; compare \\l run with \\l A::run.

        \\sa C::start
    */
    """
)


def _table() -> SymbolTable:
    return SymbolTable(
        [
            declared(SymbolKind.CLASS, "A"),
            declared(SymbolKind.METHOD, "A::run"),
            declared(SymbolKind.METHOD, "B::run"),
            declared(SymbolKind.METHOD, "C::stop"),
            declared(SymbolKind.METHOD, "C::start"),
        ]
    )


def test_unqualified_reference_resolves_within_own_scope() -> None:
    model = DocumentBuilder().build({"runners.cpp": RUNNERS}, _table())

    (reference,) = model.get("A").references  # type: ignore[union-attr]
    assert reference.state is ResolutionState.RESOLVED
    assert reference.resolved_key == "A::run"
    assert reference.href == "a.html#run"


def test_ambiguous_and_undocumented_references_dangle() -> None:
    model = DocumentBuilder().build({"runners.cpp": RUNNERS}, _table())

    states = {
        (ref.target, ref.origin): ref.state
        for ref in model.get("C::stop").references  # type: ignore[union-attr]
    }
    assert states == {
        ("run", ReferenceOrigin.INLINE): ResolutionState.DANGLING,
        ("A::run", ReferenceOrigin.INLINE): ResolutionState.RESOLVED,
        ("C::start", ReferenceOrigin.SEE_ALSO): ResolutionState.DANGLING,
    }
    dangling = model.diagnostics_of(DiagnosticKind.DANGLING_CROSS_REFERENCE)
    assert [d.message for d in dangling] == [
        "reference from C::stop to run is not a known symbol",
        "reference from C::stop to C::start has no documentation",
    ]
    assert len(model.dangling()) == 2


def test_reference_state_moves_only_once() -> None:
    reference = CrossReference(source="A", target="A::run", origin=ReferenceOrigin.INLINE)

    resolved = reference.resolve("A::run", href="a.html#run")

    assert reference.state is ResolutionState.UNRESOLVED
    assert resolved.state is ResolutionState.RESOLVED
    with pytest.raises(ValueError):
        resolved.resolve("A::run")
    with pytest.raises(ValueError):
        resolved.mark_dangling()
    with pytest.raises(ValueError):
        reference.mark_dangling().resolve("A::run")


PROPERTY = source(
    """
    /*!
        \\property Foo::bar
        \\brief The bar.
    */
    /*!
        \\fn void Foo::setBar(int value)
        Sets the bar.
    */
    /*!
        \\fn void Foo::barChanged()
        Emitted when bar changes.

        \\sa Foo::bar
    */
    """
)


def _property_table() -> SymbolTable:
    return SymbolTable(
        [
            declared(
                SymbolKind.PROPERTY,
                "Foo::bar",
                read="bar",
                write="setBar",
                notify="barChanged",
            ),
            declared(SymbolKind.METHOD, "Foo::setBar"),
            declared(SymbolKind.SIGNAL, "Foo::barChanged"),
        ]
    )


def test_property_accessors_are_not_linked_by_default() -> None:
    model = DocumentBuilder().build({"foo.cpp": PROPERTY}, _property_table())

    assert model.get("Foo::bar").references == ()  # type: ignore[union-attr]
    assert model.get("Foo::setBar").references == ()  # type: ignore[union-attr]


def test_link_notify_signals_pairs_property_with_accessors() -> None:
    builder = DocumentBuilder(resolver=CrossReferenceResolver(link_notify_signals=True))

    model = builder.build({"foo.cpp": PROPERTY}, _property_table())

    bar = model.get("Foo::bar")
    assert [(ref.target, ref.origin) for ref in bar.references] == [  # type: ignore[union-attr]
        ("Foo::setBar", ReferenceOrigin.IMPLICIT),
        ("Foo::barChanged", ReferenceOrigin.IMPLICIT),
    ]
    assert all(ref.state is ResolutionState.RESOLVED for ref in bar.references)  # type: ignore[union-attr]
    setter = model.get("Foo::setBar")
    assert [ref.resolved_key for ref in setter.references] == ["Foo::bar"]  # type: ignore[union-attr]
    signal = model.get("Foo::barChanged")
    assert [ref.origin for ref in signal.references] == [ReferenceOrigin.SEE_ALSO]  # type: ignore[union-attr]
    assert model.diagnostics == ()
