"""
Minimal tree-navigation interface used by the result views.

Views only ever ask for a named child, the sequence of named children,
or the text of a node, so any document backend offering those three
operations can sit under them.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import Protocol


class StructuredFragment(Protocol):
    """Read-only node of a structured document."""

    def child(self, tag: str) -> StructuredFragment | None: ...

    def children(self, tag: str) -> Iterator[StructuredFragment]: ...

    def text(self) -> str | None: ...


class ElementFragment:
    """StructuredFragment backed by an ElementTree element."""

    __slots__ = ("_element",)

    def __init__(self, element: ET.Element):
        self._element = element

    def child(self, tag: str) -> ElementFragment | None:
        found = self._element.find(tag)
        return ElementFragment(found) if found is not None else None

    def children(self, tag: str) -> Iterator[ElementFragment]:
        for found in self._element.iterfind(tag):
            yield ElementFragment(found)

    def text(self) -> str | None:
        return self._element.text

    def __repr__(self) -> str:
        return f"ElementFragment(<{self._element.tag}>)"


def child_text(fragment: StructuredFragment | None, *tags: str) -> str | None:
    """Text of the node reached from ``fragment`` by following ``tags``.

    Returns None when any step along the path is missing.
    """
    node = fragment
    for tag in tags:
        if node is None:
            return None
        node = node.child(tag)
    return node.text() if node is not None else None
