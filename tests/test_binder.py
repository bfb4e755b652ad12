"""Tests for binding parsed blocks to symbols."""

from __future__ import annotations

import pytest

from qdocgen.binder import SymbolBinder, anchor_for, page_for
from qdocgen.diagnostics import ContractError, DiagnosticKind, DiagnosticLog
from qdocgen.models import SectionKind, SegmentKind
from qdocgen.parser import TagParser
from qdocgen.symbols import SymbolKind, SymbolTable
from qdocgen.tokenizer import CommentTokenizer
from qdocgen.vocabulary import TagKind
from tests._fixtures.sources import declared, line_of, source


def _bind(files: dict[str, str], table: SymbolTable):
    parser = TagParser()
    parsed = [
        parser.parse(block)
        for path, text in files.items()
        for block in CommentTokenizer().tokenize(path, text)
    ]
    binder = SymbolBinder()
    diagnostics = DiagnosticLog()
    candidates = binder.collect(parsed, table, file_order=list(files))
    return binder.bind(candidates, table, diagnostics), diagnostics.freeze()


FOO_H = source(
    """
    class Foo
    {
    public:
        /*!
            Runs the thing.

            Details follow.
        */
        void run();

        /*!
            \\fn void Foo::stop()
            \\brief Stops the thing.
        */
        void reset();
    };
    """
)


def _foo_table() -> SymbolTable:
    return SymbolTable(
        [
            declared(SymbolKind.CLASS, "Foo", "foo.h", 1),
            declared(SymbolKind.METHOD, "Foo::run", "foo.h", line_of(FOO_H, "void run();")),
            declared(SymbolKind.METHOD, "Foo::stop", "foo.h", 40),
            declared(SymbolKind.METHOD, "Foo::reset", "foo.h", line_of(FOO_H, "void reset();")),
        ]
    )


def test_adjacent_block_binds_with_implicit_brief() -> None:
    entries, diagnostics = _bind({"foo.h": FOO_H}, _foo_table())

    run = entries["Foo::run"]
    assert run.summary == "Runs the thing."
    assert [section.kind for section in run.sections] == [SectionKind.TEXT]
    assert run.sections[0].body[0].text == "Details follow."
    assert diagnostics == ()


def test_explicit_topic_beats_adjacency() -> None:
    entries, _ = _bind({"foo.h": FOO_H}, _foo_table())

    assert "Foo::reset" not in entries
    assert entries["Foo::stop"].summary == "Stops the thing."


def test_unknown_explicit_symbol_drops_block() -> None:
    text = "/*!\n    \\class Missing\n    \\brief Gone.\n*/\nclass Missing;\n"
    table = SymbolTable([declared(SymbolKind.CLASS, "Other", "foo.h", 5)])

    entries, diagnostics = _bind({"foo.h": text}, table)

    assert entries == {}
    (diagnostic,) = diagnostics
    assert diagnostic.kind is DiagnosticKind.UNKNOWN_SYMBOL_REFERENCE
    assert diagnostic.symbol == "Missing"
    assert diagnostic.line == 2
    assert [tag.marker for tag in diagnostic.tags] == ["class", "brief"]


def test_block_without_target_is_orphaned() -> None:
    text = "void run();\n\n/*!\n    Nobody owns this.\n*/\n"
    table = SymbolTable([declared(SymbolKind.FUNCTION, "run", "foo.h", 1)])

    entries, diagnostics = _bind({"foo.h": text}, table)

    assert entries == {}
    (diagnostic,) = diagnostics
    assert diagnostic.kind is DiagnosticKind.ORPHANED_DOCUMENTATION
    assert diagnostic.location() == "foo.h:3"
    assert len(diagnostic.tags) == 1


def test_blocks_for_one_symbol_concatenate_in_source_order() -> None:
    header = "/*!\n    \\property Foo::bar\n    \\brief First brief.\n    \\since 2.1\n*/\n"
    body = "/*!\n    \\property Foo::bar\n    \\brief Second brief.\n\n    \\sa Foo::baz\n*/\n"
    table = SymbolTable([declared(SymbolKind.PROPERTY, "Foo::bar", "foo.h", 9)])

    entries, diagnostics = _bind({"foo.h": header, "foo.cpp": body}, table)

    bar = entries["Foo::bar"]
    assert bar.summary == "First brief."
    assert [section.kind for section in bar.sections] == [
        SectionKind.SINCE,
        SectionKind.BRIEF,
        SectionKind.SEE_ALSO,
    ]
    assert bar.since == "2.1"
    assert [str(span) for span in bar.spans] == ["foo.h:1-5", "foo.cpp:1-6"]
    assert [reference.target for reference in bar.references] == ["Foo::baz"]
    assert diagnostics == ()


def test_binding_does_not_depend_on_block_order() -> None:
    header = "/*!\n    \\property Foo::bar\n    \\brief First brief.\n*/\n"
    body = "/*!\n    \\property Foo::bar\n    \\brief Second brief.\n*/\n"
    table = SymbolTable([declared(SymbolKind.PROPERTY, "Foo::bar", "foo.h", 9)])
    parser = TagParser()
    parsed = [
        parser.parse(block)
        for path, text in (("foo.h", header), ("foo.cpp", body))
        for block in CommentTokenizer().tokenize(path, text)
    ]
    binder = SymbolBinder()

    forward = binder.bind(binder.collect(parsed, table, ["foo.h", "foo.cpp"]), table, DiagnosticLog())
    backward = binder.bind(
        binder.collect(list(reversed(parsed)), table, ["foo.h", "foo.cpp"]), table, DiagnosticLog()
    )

    assert forward == backward
    assert forward["Foo::bar"].summary == "First brief."


def test_blocks_starting_on_the_same_line_merge_in_column_order() -> None:
    text = "/*! \\property Foo::bar */ /*!\n\\property Foo::bar\n\\brief Second.\n*/\n"
    table = SymbolTable([declared(SymbolKind.PROPERTY, "Foo::bar", "foo.h", 9)])
    parsed = [TagParser().parse(block) for block in CommentTokenizer().tokenize("foo.h", text)]
    binder = SymbolBinder()

    forward = binder.bind(binder.collect(parsed, table, ["foo.h"]), table, DiagnosticLog())
    backward = binder.bind(binder.collect(list(reversed(parsed)), table, ["foo.h"]), table, DiagnosticLog())

    assert forward == backward
    bar = forward["Foo::bar"]
    assert [str(span) for span in bar.spans] == ["foo.h:1-1", "foo.h:1-4"]
    assert bar.summary == "Second."


def test_explicit_brief_wins_over_leading_prose() -> None:
    text = "/*!\n    Leading prose.\n\n    \\brief Explicit.\n*/\nvoid run();\n"
    table = SymbolTable([declared(SymbolKind.FUNCTION, "run", "foo.h", 6)])

    entries, _ = _bind({"foo.h": text}, table)

    run = entries["run"]
    assert run.summary == "Explicit."
    assert [section.kind for section in run.sections] == [SectionKind.TEXT]


def test_empty_brief_leaves_leading_prose_as_summary() -> None:
    text = "/*!\n    \\class Foo\n    Leading summary.\n\n    \\brief\n*/\n"
    table = SymbolTable([declared(SymbolKind.CLASS, "Foo", "foo.h", 1)])

    entries, _ = _bind({"foo.cpp": text}, table)

    foo = entries["Foo"]
    assert foo.summary == "Leading summary."
    assert foo.sections == ()
    assert [tag.kind for tag in foo.tags][-1] is TagKind.BRIEF


def test_unknown_tags_flags_and_sections() -> None:
    text = source(
        """
        /*!
            \\class Foo
            \\internal
            \\deprecated
            \\inmodule Core
            \\qmltype Foo

            \\section2 Usage
            Use it \\e carefully.
            \\warning Not thread-safe.
            \\code
                Foo foo;
            \\endcode
        */
        """
    )
    table = SymbolTable([declared(SymbolKind.CLASS, "Foo", "foo.h", 1)])

    entries, diagnostics = _bind({"foo.h": text}, table)

    foo = entries["Foo"]
    assert foo.flags == frozenset({"internal", "deprecated"})
    assert foo.module == "Core"
    assert [section.kind for section in foo.sections] == [
        SectionKind.MODULE,
        SectionKind.OPAQUE,
        SectionKind.HEADING,
        SectionKind.WARNING,
        SectionKind.CODE,
    ]
    opaque = foo.sections[1]
    assert opaque.title == "qmltype"
    assert opaque.body[0].text == "\\qmltype"
    heading = foo.sections[2]
    assert heading.title == "Usage"
    assert heading.level == 2
    assert [segment.kind for segment in heading.body] == [
        SegmentKind.TEXT,
        SegmentKind.EMPHASIS,
        SegmentKind.TEXT,
    ]
    assert foo.sections[4].body[0].text == "Foo foo;"
    assert foo.summary == ""
    assert diagnostics == ()


def test_inline_references_are_collected() -> None:
    text = "/*!\n    \\fn void Foo::run()\n    \\brief Calls \\l Foo::stop.\n*/\n"
    table = SymbolTable([declared(SymbolKind.METHOD, "Foo::run", "foo.h", 10)])

    entries, _ = _bind({"foo.cpp": text}, table)

    (reference,) = entries["Foo::run"].references
    assert reference.source == "Foo::run"
    assert reference.target == "Foo::stop"
    assert reference.line == 3
    assert reference.origin.value == "inline"


def test_collect_requires_symbol_table() -> None:
    with pytest.raises(ContractError):
        SymbolBinder().collect([], None)  # type: ignore[arg-type]


def test_anchor_and_page() -> None:
    prop = declared(SymbolKind.PROPERTY, "TestClass::testProperty")
    signal = declared(SymbolKind.SIGNAL, "TestClass::testSignal")
    nested = declared(SymbolKind.CLASS, "Outer::Inner")
    free = declared(SymbolKind.FUNCTION, "qHash")
    custom = declared(SymbolKind.CLASS, "Foo", page="foo-class.html")

    assert (anchor_for(prop), page_for(prop)) == ("testProperty-prop", "testclass.html")
    assert (anchor_for(signal), page_for(signal)) == ("testSignal", "testclass.html")
    assert (anchor_for(nested), page_for(nested)) == ("details", "outer-inner.html")
    assert (anchor_for(free), page_for(free)) == ("qHash", "index.html")
    assert page_for(custom) == "foo-class.html"
