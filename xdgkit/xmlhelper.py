"""Small helpers for walking and printing XML elements of menu files."""

from __future__ import annotations

from typing import Iterator
from xml.etree.ElementTree import Element


def _local_name(element: Element) -> str | None:
    """Tag name without a namespace, or None for comments and processing instructions."""
    tag = element.tag
    if not isinstance(tag, str):
        return None
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _text(element: Element) -> str:
    return "".join(element.itertext())


def format_element(element: Element) -> str:
    """Render an element as ``<tag name=value'...>text</tag>`` for diagnostics."""
    name = _local_name(element) or ""
    args = "".join(f" {key}={value}'" for key, value in element.attrib.items())
    return f"<{name}{args}>{_text(element)}</{name}>"


def child_elements(parent: Element, tag: str | None = None) -> Iterator[Element]:
    """Yield the child elements of ``parent`` in order, only those named ``tag`` if given."""
    for child in list(parent):
        name = _local_name(child)
        if name is None:
            continue
        if tag and name != tag:
            continue
        yield child


def child_elements_reversed(parent: Element, tag: str | None = None) -> Iterator[Element]:
    """Yield the child elements of ``parent`` from last to first, filtered like ``child_elements``."""
    for child in reversed(list(parent)):
        name = _local_name(child)
        if name is None:
            continue
        if tag and name != tag:
            continue
        yield child