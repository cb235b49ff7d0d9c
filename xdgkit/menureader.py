"""Reading of menu files with their merge and directory tags resolved.

A menu file may pull in other menu files (``<MergeFile>``, ``<MergeDir>``,
``<DefaultMergeDirs>``) and name directories holding desktop entries
(``<AppDir>``, ``<DefaultAppDirs>``) or directory entries
(``<DirectoryDir>``, ``<DefaultDirectoryDirs>``). The reader expands all of
them into plain elements of one document. Each loaded file also leaves a
``<FileInfo>`` element behind for diagnostics.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping
from xml.etree import ElementTree
from xml.etree.ElementTree import Element

from xdgkit.xmlhelper import child_elements, child_elements_reversed

_DEFAULT_CONFIG_DIRS = ("/etc/xdg",)
_DEFAULT_DATA_DIRS = ("/usr/local/share", "/usr/share")


class MenuReadError(Exception):
    """A menu file could not be loaded."""


def _strip_slash(path: str) -> str:
    return path.rstrip("/") or path


def _split_dirs(value: str | None, default: tuple[str, ...]) -> list[str]:
    dirs = [_strip_slash(d) for d in (value or "").split(":") if d]
    return dirs or list(default)


@dataclass
class XdgPaths:
    """The base directories a menu file refers to."""

    config_home: str
    data_home: str
    config_dirs: list[str] = field(default_factory=lambda: list(_DEFAULT_CONFIG_DIRS))
    data_dirs: list[str] = field(default_factory=lambda: list(_DEFAULT_DATA_DIRS))

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None, home: str | None = None
    ) -> "XdgPaths":
        """Build the paths from the ``XDG_*`` variables, with the standard defaults."""
        env = os.environ if environ is None else environ
        home_dir = _strip_slash(home if home is not None else str(Path.home()))
        return cls(
            config_home=_strip_slash(env.get("XDG_CONFIG_HOME") or home_dir + "/.config"),
            data_home=_strip_slash(env.get("XDG_DATA_HOME") or home_dir + "/.local/share"),
            config_dirs=_split_dirs(env.get("XDG_CONFIG_DIRS"), _DEFAULT_CONFIG_DIRS),
            data_dirs=_split_dirs(env.get("XDG_DATA_DIRS"), _DEFAULT_DATA_DIRS),
        )


def _local_name(element: Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def _text(element: Element) -> str:
    return "".join(element.itertext())


def _resolve(base_dir: str, name: str) -> str:
    return os.path.join(base_dir, name) if base_dir else name


def _canonical(path: str) -> str:
    """The resolved absolute path, or an empty string when nothing is there."""
    return os.path.realpath(path) if path and os.path.exists(path) else ""


def _insert_before(parent: Element, anchor: Element, new: Element) -> None:
    parent.insert(list(parent).index(anchor), new)


def _base_name(file_name: str) -> str:
    return os.path.basename(file_name).split(".", 1)[0]


class MenuReader:
    """Loads one menu file and merges the files and directories it refers to."""

    def __init__(
        self,
        menu_file_name: str = "",
        paths: XdgPaths | None = None,
        parent: "MenuReader | None" = None,
        on_watch: Callable[[str], None] | None = None,
    ) -> None:
        self.menu_file_name = menu_file_name
        self.paths = paths if paths is not None else XdgPaths.from_environment()
        self.parent = parent
        self.on_watch = on_watch
        self.file_name = ""
        self.dir_name = ""
        self.document: ElementTree.ElementTree | None = None
        self.branch_files: list[str] = list(parent.branch_files) if parent else []

    @property
    def root(self) -> Element:
        """The root element of the loaded document."""
        if self.document is None:
            raise MenuReadError("No menu file loaded.")
        return self.document.getroot()

    def load(self, file_name: str, base_dir: str = "") -> Element:
        """Load ``file_name`` (relative to ``base_dir``) and return its processed root."""
        if not file_name:
            raise MenuReadError("Menu file not defined.")

        full = _resolve(base_dir, file_name)
        self.file_name = _canonical(full)
        self.dir_name = os.path.dirname(self.file_name) if self.file_name else ""

        if self.file_name in self.branch_files:
            raise MenuReadError(f"{file_name}: recursive loop detected")
        self.branch_files.append(self.file_name)

        try:
            with open(self.file_name, "rb") as handle:
                if self.on_watch is not None:
                    self.on_watch(self.file_name)
                try:
                    self.document = ElementTree.parse(handle)
                except ElementTree.ParseError as exc:
                    line, column = exc.position
                    raise MenuReadError(
                        f"Parse error at line {line}, column {column}:\n{exc}"
                    ) from exc
        except OSError as exc:
            reason = exc.strerror or str(exc)
            raise MenuReadError(f"{file_name} not loading: {reason}") from exc

        root = self.document.getroot()
        info = Element("FileInfo", {"file": self.file_name})
        if self.parent is not None:
            info.set("parent", self.parent.file_name)
        root.append(info)

        self._process_merge_tags(root)
        return root

    def _process_merge_tags(self, element: Element) -> None:
        # Walking backwards makes the last duplicate win, as for <AppDir>.
        merged_files: list[str] = []
        handlers = {
            "MergeFile": self._process_merge_file,
            "MergeDir": self._process_merge_dir,
            "DefaultMergeDirs": self._process_default_merge_dirs,
            "AppDir": self._process_app_dir,
            "DefaultAppDirs": self._process_default_app_dirs,
            "DirectoryDir": self._process_directory_dir,
            "DefaultDirectoryDirs": self._process_default_directory_dirs,
        }
        for child in child_elements_reversed(element):
            name = _local_name(child)
            if name == "Menu":
                self._process_merge_tags(child)
                continue
            handler = handlers.get(name)
            if handler is None:
                continue
            handler(element, child, merged_files)
            element.remove(child)

    def _process_merge_file(self, parent: Element, element: Element, merged: list[str]) -> None:
        if element.get("type") != "parent":
            self._merge_file(_text(element), parent, element, merged)
            return

        relative = ""
        config_dirs = list(self.paths.config_dirs)
        for config_dir in config_dirs:
            if self.file_name.startswith(config_dir):
                relative = self.file_name[len(config_dir):]
                config_dirs = [d for d in config_dirs if d != config_dir]
                break

        if not relative:
            config_home = self.paths.config_home
            if self.file_name.startswith(config_home):
                relative = self.file_name[len(config_home):]

        if not relative:
            return

        for config_dir in config_dirs:
            candidate = config_dir + relative
            if os.path.exists(candidate):
                self._merge_file(candidate, parent, element, merged)
                return

    def _process_merge_dir(self, parent: Element, element: Element, merged: list[str]) -> None:
        self._merge_dir(_text(element), parent, element, merged)

    def _process_default_merge_dirs(
        self, parent: Element, element: Element, merged: list[str]
    ) -> None:
        base = _base_name(self.menu_file_name)
        dash = base.rfind("-")
        if dash > -1:
            base = base[dash + 1:]

        for directory in [*self.paths.config_dirs, self.paths.config_home]:
            self._merge_dir(f"{directory}/menus/{base}-merged", parent, element, merged)

        if base == "applications":
            self._merge_file(
                f"{self.paths.config_home}/menus/applications-kmenuedit.menu",
                parent, element, merged,
            )

    def _process_app_dir(self, parent: Element, element: Element, merged: list[str]) -> None:
        self._add_dir_tag(parent, element, "AppDir", _text(element))

    def _process_default_app_dirs(
        self, parent: Element, element: Element, merged: list[str]
    ) -> None:
        for directory in [self.paths.data_home, *self.paths.data_dirs]:
            self._add_dir_tag(parent, element, "AppDir", directory + "/applications/")

    def _process_directory_dir(
        self, parent: Element, element: Element, merged: list[str]
    ) -> None:
        self._add_dir_tag(parent, element, "DirectoryDir", _text(element))

    def _process_default_directory_dirs(
        self, parent: Element, element: Element, merged: list[str]
    ) -> None:
        # Earlier locations go later so that they take priority.
        for directory in reversed([self.paths.data_home, *self.paths.data_dirs]):
            self._add_dir_tag(parent, element, "DirectoryDir", directory + "/desktop-directories/")

    def _add_dir_tag(self, parent: Element, anchor: Element, tag: str, directory: str) -> None:
        path = _resolve(self.dir_name, directory)
        if os.path.isdir(path):
            new = Element(tag)
            new.text = os.path.realpath(path)
            _insert_before(parent, anchor, new)

    def _merge_file(
        self, file_name: str, parent: Element, anchor: Element, merged: list[str]
    ) -> None:
        path = _resolve(self.dir_name, file_name)
        if not file_name or not os.path.exists(path):
            return
        canonical = os.path.realpath(path)
        if canonical in merged:
            return
        merged.append(canonical)

        reader = MenuReader(self.menu_file_name, self.paths, parent=self, on_watch=self.on_watch)
        try:
            root = reader.load(file_name, self.dir_name)
        except MenuReadError:
            return

        for child in child_elements(root):
            # The <Name> of a merged file's root is dropped.
            if _local_name(child) != "Name":
                _insert_before(parent, anchor, copy.deepcopy(child))

    def _merge_dir(
        self, dir_name: str, parent: Element, anchor: Element, merged: list[str]
    ) -> None:
        path = _resolve(self.dir_name, dir_name)
        if not dir_name or not os.path.isdir(path):
            return
        directory = Path(os.path.realpath(path))
        files = sorted(
            (
                entry
                for entry in directory.iterdir()
                if entry.name.endswith(".menu")
                and not entry.name.startswith(".")
                and entry.is_file()
                and os.access(entry, os.R_OK)
            ),
            key=lambda entry: entry.name.lower(),
        )
        for entry in files:
            self._merge_file(os.path.realpath(entry), parent, anchor, merged)