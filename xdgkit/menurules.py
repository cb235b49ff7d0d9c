"""Matching rules of menu files: ``<Include>``, ``<Exclude>`` and their contents.

A rule decides whether a desktop entry, given by its desktop-file id and its
list of categories, belongs to a menu.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence
from xml.etree.ElementTree import Element

from xdgkit.xmlhelper import child_elements

_log = logging.getLogger(__name__)


def _local_name(element: Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def _text(element: Element) -> str:
    return "".join(element.itertext())


class MenuRule(ABC):
    """A rule matching desktop entries."""

    @abstractmethod
    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        """Whether the desktop entry matches this rule."""


class MenuRuleOr(MenuRule):
    """Matches when any of the contained rules matches."""

    def __init__(self, element: Element) -> None:
        self.children: list[MenuRule] = []
        for child in child_elements(element):
            factory = _RULES.get(_local_name(child))
            if factory is None:
                _log.warning("Unknown rule %s", _local_name(child))
                continue
            self.children.append(factory(child))

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        return any(rule.check(desktop_file_id, categories) for rule in self.children)


class MenuRuleAnd(MenuRuleOr):
    """Matches when every contained rule matches; an empty ``<And>`` matches nothing."""

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        if not all(rule.check(desktop_file_id, categories) for rule in self.children):
            return False
        return bool(self.children)


class MenuRuleNot(MenuRuleOr):
    """Matches when none of the contained rules matches."""

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        return not super().check(desktop_file_id, categories)


class MenuRuleFileName(MenuRule):
    """Matches the desktop entry with the given desktop-file id."""

    def __init__(self, element: Element) -> None:
        self.id = _text(element)

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        return desktop_file_id == self.id


class MenuRuleCategory(MenuRule):
    """Matches desktop entries that list the given category."""

    def __init__(self, element: Element) -> None:
        self.category = _text(element)

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        return self.category in categories


class MenuRuleAll(MenuRule):
    """Matches every desktop entry."""

    def __init__(self, element: Element) -> None:
        pass

    def check(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        return True


_RULES = {
    "Or": MenuRuleOr,
    "And": MenuRuleAnd,
    "Not": MenuRuleNot,
    "Filename": MenuRuleFileName,
    "Category": MenuRuleCategory,
    "All": MenuRuleAll,
}


class MenuRules:
    """The include and exclude rules collected for one menu."""

    def __init__(self) -> None:
        self.include_rules: list[MenuRule] = []
        self.exclude_rules: list[MenuRule] = []

    def add_include(self, element: Element) -> None:
        """Add the contents of an ``<Include>`` element."""
        self.include_rules.append(MenuRuleOr(element))

    def add_exclude(self, element: Element) -> None:
        """Add the contents of an ``<Exclude>`` element."""
        self.exclude_rules.append(MenuRuleOr(element))

    def check_include(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        """Whether any include rule matches the desktop entry."""
        return any(r.check(desktop_file_id, categories) for r in self.include_rules)

    def check_exclude(self, desktop_file_id: str, categories: Sequence[str]) -> bool:
        """Whether any exclude rule matches the desktop entry."""
        return any(r.check(desktop_file_id, categories) for r in self.exclude_rules)