"""Recognized documentation tags and the argument shapes they expect."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

VOCABULARY_VERSION = "1"

TAG_PREFIX = "\\"


class TagKind(str, Enum):
    """Closed set of tag kinds; ``UNKNOWN`` carries markers outside the vocabulary."""

    TEXT = "text"
    CLASS = "class"
    STRUCT = "struct"
    NAMESPACE = "namespace"
    PROPERTY = "property"
    FN = "fn"
    VARIABLE = "variable"
    ENUM = "enum"
    TYPEDEF = "typedef"
    MACRO = "macro"
    BRIEF = "brief"
    SINCE = "since"
    MODULE = "inmodule"
    SEE_ALSO = "sa"
    SECTION = "section"
    NOTE = "note"
    WARNING = "warning"
    CODE = "code"
    INTERNAL = "internal"
    DEPRECATED = "deprecated"
    UNKNOWN = "unknown"


class ArgShape(str, Enum):
    NONE = "none"
    SYMBOL = "symbol"
    SYMBOL_LIST = "symbol-list"
    TOKEN = "token"
    TEXT = "text"


class BodyExtent(str, Enum):
    """How far a tag's body reaches past its marker line."""

    NONE = "none"
    PARAGRAPH = "paragraph"
    UNTIL_NEXT_TAG = "until-next-tag"
    VERBATIM = "verbatim"


@dataclass(frozen=True)
class TagSpec:
    kind: TagKind
    arg: ArgShape
    body: BodyExtent
    required: bool = False


_TOPIC = dict(arg=ArgShape.SYMBOL, body=BodyExtent.NONE, required=True)

VOCABULARY: Dict[str, TagSpec] = {
    "class": TagSpec(TagKind.CLASS, **_TOPIC),
    "struct": TagSpec(TagKind.STRUCT, **_TOPIC),
    "namespace": TagSpec(TagKind.NAMESPACE, **_TOPIC),
    "property": TagSpec(TagKind.PROPERTY, **_TOPIC),
    "fn": TagSpec(TagKind.FN, **_TOPIC),
    "variable": TagSpec(TagKind.VARIABLE, **_TOPIC),
    "enum": TagSpec(TagKind.ENUM, **_TOPIC),
    "typedef": TagSpec(TagKind.TYPEDEF, **_TOPIC),
    "macro": TagSpec(TagKind.MACRO, **_TOPIC),
    "brief": TagSpec(TagKind.BRIEF, ArgShape.TEXT, BodyExtent.PARAGRAPH),
    "since": TagSpec(TagKind.SINCE, ArgShape.TOKEN, BodyExtent.NONE, required=True),
    "inmodule": TagSpec(TagKind.MODULE, ArgShape.TOKEN, BodyExtent.NONE, required=True),
    "sa": TagSpec(TagKind.SEE_ALSO, ArgShape.SYMBOL_LIST, BodyExtent.NONE, required=True),
    "section1": TagSpec(TagKind.SECTION, ArgShape.TEXT, BodyExtent.UNTIL_NEXT_TAG, required=True),
    "section2": TagSpec(TagKind.SECTION, ArgShape.TEXT, BodyExtent.UNTIL_NEXT_TAG, required=True),
    "section3": TagSpec(TagKind.SECTION, ArgShape.TEXT, BodyExtent.UNTIL_NEXT_TAG, required=True),
    "section4": TagSpec(TagKind.SECTION, ArgShape.TEXT, BodyExtent.UNTIL_NEXT_TAG, required=True),
    "note": TagSpec(TagKind.NOTE, ArgShape.TEXT, BodyExtent.PARAGRAPH),
    "warning": TagSpec(TagKind.WARNING, ArgShape.TEXT, BodyExtent.PARAGRAPH),
    "code": TagSpec(TagKind.CODE, ArgShape.NONE, BodyExtent.VERBATIM),
    "internal": TagSpec(TagKind.INTERNAL, ArgShape.NONE, BodyExtent.NONE),
    "deprecated": TagSpec(TagKind.DEPRECATED, ArgShape.NONE, BodyExtent.NONE),
    "obsolete": TagSpec(TagKind.DEPRECATED, ArgShape.NONE, BodyExtent.NONE),
}

UNKNOWN_SPEC = TagSpec(TagKind.UNKNOWN, ArgShape.TEXT, BodyExtent.PARAGRAPH)

TOPIC_KINDS = frozenset(
    {
        TagKind.CLASS,
        TagKind.STRUCT,
        TagKind.NAMESPACE,
        TagKind.PROPERTY,
        TagKind.FN,
        TagKind.VARIABLE,
        TagKind.ENUM,
        TagKind.TYPEDEF,
        TagKind.MACRO,
    }
)

CODE_END_MARKER = "endcode"

# Inline commands recognized inside prose, mapped to the segment they produce.
INLINE_COMMANDS: Dict[str, str] = {
    "c": "code",
    "a": "code",
    "e": "emphasis",
    "i": "emphasis",
    "b": "bold",
    "l": "reference",
}


def lookup(name: str) -> Optional[TagSpec]:
    """Return the spec for a marker name (without the backslash), if known."""
    return VOCABULARY.get(name)


__all__ = [
    "ArgShape",
    "BodyExtent",
    "CODE_END_MARKER",
    "INLINE_COMMANDS",
    "TAG_PREFIX",
    "TOPIC_KINDS",
    "TagKind",
    "TagSpec",
    "UNKNOWN_SPEC",
    "VOCABULARY",
    "VOCABULARY_VERSION",
    "lookup",
]
