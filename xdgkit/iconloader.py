"""Icon lookup following the freedesktop icon theme specification.

The loader searches the configured theme, then its parents, then ``hicolor``,
then the unthemed fallback paths. If the name has dashes, it then tries less
specific names ("input-mouse-usb", then "input-mouse", then "input").
Unthemed files directly inside the search paths come next, and the pixmap
directories (``/usr/share/pixmaps`` by default) come last.

A more specific icon from a parent theme is preferred over a generic icon
from the current theme. That is a deliberate choice for a better user
experience.
"""

from __future__ import annotations

import os
import re
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence, Union

from xdgkit.icontheme import (
    HICOLOR,
    DirType,
    IconDirInfo,
    IconTheme,
    directory_matches_size,
    directory_size_distance,
)

SVG_EXT = ".svg"
PNG_EXT = ".png"
XPM_EXT = ".xpm"
DEFAULT_PIXMAP_PATHS = ("/usr/share/pixmaps",)

_INT_MAX = 2**31 - 1
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_XPM_HEADER = re.compile(rb'"\s*(\d+)\s+(\d+)\s+\d+\s+\d+')

Size = Union[int, Sequence[int]]


class EntryKind(Enum):
    """How the file of an icon entry is rendered."""

    PIXMAP = "pixmap"
    SCALABLE = "scalable"
    SCALABLE_FOLLOWS_COLOR = "scalable-follows-color"

    @property
    def is_scalable(self) -> bool:
        return self is not EntryKind.PIXMAP


@dataclass
class IconEntry:
    """One image file that can serve an icon, with the directory it came from."""

    filename: str
    dir: IconDirInfo = field(default_factory=IconDirInfo)
    kind: EntryKind = EntryKind.PIXMAP


@dataclass
class IconInfo:
    """Result of an icon lookup: the name that matched and its candidate files."""

    icon_name: str = ""
    entries: list[IconEntry] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.entries)


def _exists(path: str) -> bool:
    return os.path.exists(path)


class IconLoader:
    """Finds icon files for icon names within an icon theme and its parents."""

    def __init__(
        self,
        theme_name: str = "",
        search_paths: Iterable[str | os.PathLike[str]] = (),
        fallback_paths: Iterable[str | os.PathLike[str]] = (),
        fallback_theme: str = "",
        follow_color_scheme: bool = True,
        supports_svg: bool = True,
        pixmap_paths: Iterable[str | os.PathLike[str]] = DEFAULT_PIXMAP_PATHS,
    ) -> None:
        self.theme_name = theme_name
        self.search_paths = [os.fspath(p) for p in search_paths]
        self.fallback_paths = [os.fspath(p) for p in fallback_paths]
        self.fallback_theme = fallback_theme if fallback_theme != HICOLOR else ""
        self.follow_color_scheme = follow_color_scheme
        self.supports_svg = supports_svg
        self.pixmap_paths = [os.fspath(p) for p in pixmap_paths]
        self._themes: dict[str, IconTheme] = {}

    def theme(self, name: str | None = None) -> IconTheme:
        """Return the theme called ``name`` (the current theme by default), loading it once."""
        if name is None:
            name = self.theme_name
        theme = self._themes.get(name)
        if theme is None or not theme.is_valid:
            theme = IconTheme(name, self.search_paths, self.fallback_theme)
            if not theme.is_valid and self.fallback_theme:
                theme = IconTheme(self.fallback_theme, self.search_paths, self.fallback_theme)
            self._themes[name] = theme
        return theme

    def load_icon(self, name: str) -> IconInfo:
        """Look ``name`` up in the current theme and all fallbacks."""
        if not self.theme_name:
            return IconInfo()
        info = self._find_icon(self.theme_name, name, [], dash_fallback=True)
        if info.entries:
            return info
        unthemed = self._unthemed_fallback(name, self.search_paths)
        if unthemed.entries:
            return unthemed
        pixmaps = self._unthemed_fallback(name, self.pixmap_paths)
        if pixmaps.entries:
            return pixmaps
        return IconInfo()

    def _theme_dirs(self, theme: IconTheme, icon_name: str) -> Iterable[tuple[str, list[IconDirInfo]]]:
        """Yield each content directory with the sub-directories worth checking."""
        for content_dir, cache in zip(theme.content_dirs, theme.gtk_caches):
            sub_dirs = list(theme.key_list)
            # The cache narrows the candidates and saves many file checks.
            if cache.is_valid or cache.revalidate(True):
                found = cache.lookup(icon_name)
                if cache.is_valid:
                    by_path = list(sub_dirs)
                    sub_dirs = []
                    for path in found:
                        match = next((d for d in by_path if d.path == path), None)
                        if match is not None:
                            sub_dirs.append(match)
            yield content_dir, sub_dirs

    def _find_icon(
        self,
        theme_name: str,
        icon_name: str,
        visited: list[str],
        dash_fallback: bool = False,
    ) -> IconInfo:
        info = IconInfo()
        visited.append(theme_name)
        theme = self.theme(theme_name)

        scalable_kind = (
            EntryKind.SCALABLE_FOLLOWS_COLOR
            if self.follow_color_scheme and theme.follows_color_scheme
            else EntryKind.SCALABLE
        )

        for content_dir, sub_dirs in self._theme_dirs(theme, icon_name):
            for dir_info in sub_dirs:
                sub_dir = f"{content_dir}/{dir_info.path}/"
                png_path = sub_dir + icon_name + PNG_EXT
                if _exists(png_path):
                    # Pixmaps always come before scalable entries.
                    info.entries.insert(0, IconEntry(png_path, dir_info, EntryKind.PIXMAP))
                else:
                    svg_path = sub_dir + icon_name + SVG_EXT
                    if self.supports_svg and _exists(svg_path):
                        info.entries.append(IconEntry(svg_path, dir_info, scalable_kind))
                xpm_path = sub_dir + icon_name + XPM_EXT
                if _exists(xpm_path):
                    info.entries.append(IconEntry(xpm_path, dir_info, EntryKind.PIXMAP))

        if info.entries:
            info.icon_name = icon_name

        if not info.entries:
            parents = theme.parents
            for parent in parents:
                parent_theme = parent.strip()
                if parent_theme not in visited:
                    info = self._find_icon(parent_theme, icon_name, visited)
                if info.entries:
                    break
            # hicolor is searched before any dash fallback.
            if not info.entries and HICOLOR not in parents and HICOLOR not in visited:
                info = self._find_icon(HICOLOR, icon_name, visited)

        if not info.entries:
            for fallback_path in self.fallback_paths:
                png_path = f"{fallback_path}/{icon_name}{PNG_EXT}"
                if _exists(png_path):
                    info.entries.insert(
                        0, IconEntry(png_path, IconDirInfo(path=fallback_path), EntryKind.PIXMAP)
                    )
                else:
                    svg_path = f"{fallback_path}/{icon_name}{SVG_EXT}"
                    if self.supports_svg and _exists(svg_path):
                        info.entries.append(
                            IconEntry(svg_path, IconDirInfo(path=fallback_path), EntryKind.SCALABLE)
                        )

        if dash_fallback and not info.entries:
            dash = icon_name.rfind("-")
            if dash != -1:
                info = self._find_icon(theme_name, icon_name[:dash], [], dash_fallback=True)

        return info

    def _unthemed_fallback(self, icon_name: str, search_paths: Iterable[str]) -> IconInfo:
        info = IconInfo()
        for content_dir in search_paths:
            png_path = os.path.join(content_dir, icon_name + PNG_EXT)
            svg_path = os.path.join(content_dir, icon_name + SVG_EXT)
            xpm_path = os.path.join(content_dir, icon_name + XPM_EXT)
            if _exists(png_path):
                info.entries.insert(0, IconEntry(png_path, kind=EntryKind.PIXMAP))
            elif self.supports_svg and _exists(svg_path):
                info.entries.append(IconEntry(svg_path, kind=EntryKind.SCALABLE))
            elif _exists(xpm_path):
                info.entries.append(IconEntry(xpm_path, kind=EntryKind.PIXMAP))
        return info


def _size_pair(size: Size) -> tuple[int, int]:
    if isinstance(size, int):
        return size, size
    width, height = size
    return int(width), int(height)


def entry_for_size(entries: Sequence[IconEntry], size: Size, scale: int = 1) -> IconEntry | None:
    """Pick the entry best suited to ``size``: an exact match, else the closest one."""
    width, height = _size_pair(size)
    icon_size = min(width, height)

    for entry in entries:
        if directory_matches_size(entry.dir, icon_size, scale):
            return entry

    minimal = _INT_MAX
    closest: IconEntry | None = None
    for entry in entries:
        distance = directory_size_distance(entry.dir, icon_size, scale)
        if distance < minimal:
            minimal = distance
            closest = entry
    return closest


def _image_size(filename: str) -> tuple[int, int] | None:
    """Read the pixel size from a PNG or XPM file header."""
    try:
        with open(filename, "rb") as handle:
            head = handle.read(4096)
    except OSError:
        return None
    if head.startswith(_PNG_SIGNATURE) and head[12:16] == b"IHDR" and len(head) >= 24:
        width, height = struct.unpack(">II", head[16:24])
        return width, height
    match = _XPM_HEADER.search(head)
    if match:
        return int(match.group(1)), int(match.group(2))
    return None


def actual_size(entries: Sequence[IconEntry], size: Size) -> tuple[int, int]:
    """The size an icon would really have when asked for ``size``; never larger."""
    width, height = _size_pair(size)
    entry = entry_for_size(entries, (width, height))
    if entry is None:
        return 0, 0
    if entry.dir.type is DirType.SCALABLE or entry.kind.is_scalable:
        return width, height
    dir_size = entry.dir.size
    if dir_size == 0 and entry.kind is EntryKind.PIXMAP:
        image = _image_size(entry.filename)
        dir_size = min(image) if image else 0
    result = min(dir_size, width, height)
    return result, result


def available_sizes(entries: Sequence[IconEntry]) -> list[tuple[int, int]]:
    """The nominal sizes of all entries, in entry order."""
    return [(entry.dir.size, entry.dir.size) for entry in entries]