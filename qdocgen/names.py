"""Helpers for qualified C++ symbol names."""

from __future__ import annotations

import re
from typing import Collection, Optional

SCOPE_SEPARATOR = "::"

_IDENTIFIER = r"~?[A-Za-z_][A-Za-z0-9_]*"
_QUALIFIED = re.compile(rf"(?:{_IDENTIFIER}::)*(?:operator\s*\S+?|{_IDENTIFIER})")
_CALLABLE = re.compile(rf"((?:{_IDENTIFIER}::)*(?:operator\s*[^\s(]+|{_IDENTIFIER}))\s*\(")


def split_name(name: str) -> tuple[Optional[str], str]:
    """Split ``Owner::leaf`` into ``("Owner", "leaf")``; unqualified names have no owner."""
    owner, sep, leaf = name.rpartition(SCOPE_SEPARATOR)
    if not sep:
        return None, name
    return owner, leaf


def owner_of(name: str) -> Optional[str]:
    return split_name(name)[0]


def leaf_of(name: str) -> str:
    return split_name(name)[1]


def symbol_name_from_argument(argument: str) -> Optional[str]:
    """Extract the qualified symbol name from a topic tag argument.

    ``void TestClass::setTestProperty(bool value)`` yields
    ``TestClass::setTestProperty``; a bare ``TestClass::testProperty`` is
    returned unchanged.
    """
    text = argument.strip()
    if not text:
        return None
    call = _CALLABLE.search(text)
    if call:
        return re.sub(r"\s+", "", call.group(1))
    # Without a parameter list the last qualified identifier is the name
    # (``int TestClass::counter`` for variables, ``Foo::Kind`` for enums).
    matches = _QUALIFIED.findall(text)
    if not matches:
        return None
    return matches[-1]


def reference_name(text: str) -> str:
    """Symbol name written in a reference, without any parameter list.

    ``setBar()`` and ``Foo::setBar(int value)`` name ``setBar`` and
    ``Foo::setBar``; anything else is returned stripped.
    """
    name = text.strip()
    call = _CALLABLE.match(name)
    if call:
        return re.sub(r"\s+", "", call.group(1))
    return name


def resolve_name(
    name: str, candidates: Collection[str], scope: Optional[str] = None
) -> Optional[str]:
    """Resolve ``name`` against documented keys.

    Exact matches always win. An unqualified name is looked up under the
    referencing scope first; otherwise it resolves only when exactly one
    owner declares it. Anything else is unresolved.
    """
    if name in candidates:
        return name
    owner, leaf = split_name(name)
    if owner is not None:
        return None
    if scope is not None:
        scoped = f"{scope}{SCOPE_SEPARATOR}{leaf}"
        if scoped in candidates:
            return scoped
    matches = [key for key in candidates if leaf_of(key) == leaf]
    if len(matches) == 1:
        return matches[0]
    return None


__all__ = [
    "SCOPE_SEPARATOR",
    "leaf_of",
    "owner_of",
    "reference_name",
    "resolve_name",
    "split_name",
    "symbol_name_from_argument",
]
