"""Icon theme descriptions read from ``index.theme`` files.

An icon theme lives in a directory of the same name below one or more search
paths. Its ``index.theme`` lists the sub-directories holding icons together
with the sizes they serve, the parent themes to fall back to and whether the
icons follow the colour scheme of the desktop.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

from xdgkit.iconcache import IconCacheReader

INDEX_FILE_NAME = "index.theme"
HICOLOR = "hicolor"

_IniValue = Union[str, list[str]]


class DirType(Enum):
    """How a theme directory matches requested icon sizes."""

    FIXED = "Fixed"
    SCALABLE = "Scalable"
    THRESHOLD = "Threshold"

    @classmethod
    def from_name(cls, name: str) -> "DirType":
        """Map the ``Type`` key of a directory; anything unknown means threshold."""
        if name == "Fixed":
            return cls.FIXED
        if name == "Scalable":
            return cls.SCALABLE
        return cls.THRESHOLD


@dataclass
class IconDirInfo:
    """Size information of one icon directory of a theme."""

    path: str = ""
    size: int = 0
    max_size: int = 0
    min_size: int = 0
    threshold: int = 0
    scale: int = 1
    type: DirType = DirType.THRESHOLD


def _parse_value(raw: str) -> _IniValue:
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return raw[1:-1]
    if "," in raw:
        return [part.strip() for part in raw.split(",")]
    return raw


def _read_ini(path: Path) -> dict[str, _IniValue]:
    """Read an ini file into ``group/key`` names, the way settings files are keyed."""
    values: dict[str, _IniValue] = {}
    section = ""
    text = path.read_text(encoding="utf-8", errors="replace")
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in ";#":
            continue
        if stripped.startswith("[") and "]" in stripped:
            name = stripped[1:stripped.index("]")].strip()
            section = "" if name == "General" else name
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key:
            continue
        full_key = f"{section}/{key}" if section else key
        values[full_key] = _parse_value(value.strip())
    return values


def _as_string(value: _IniValue | None) -> str:
    if value is None or isinstance(value, list):
        return ""
    return value


def _as_int(value: _IniValue | None, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, list):
        return 0
    try:
        return int(value.strip())
    except ValueError:
        return 0


def _as_bool(value: _IniValue | None, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, list):
        return False
    return value.strip().lower() not in ("", "0", "false")


def _as_string_list(value: _IniValue | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


class IconTheme:
    """One icon theme as found below a list of icon search paths."""

    def __init__(
        self,
        name: str = "",
        search_paths: Iterable[str | os.PathLike[str]] = (),
        fallback_theme: str = "",
    ) -> None:
        self.name = name
        self.content_dirs: list[str] = []
        self.key_list: list[IconDirInfo] = []
        self.parents: list[str] = []
        self.gtk_caches: list[IconCacheReader] = []
        self.is_valid = False
        self.follows_color_scheme = False

        if not name:
            return

        index_file: Path | None = None
        for search_path in search_paths:
            theme_dir = os.path.normpath(os.fspath(search_path)) + "/" + name
            if os.path.isdir(theme_dir):
                self.content_dirs.append(theme_dir)
                self.gtk_caches.append(IconCacheReader(theme_dir))
            if not self.is_valid:
                candidate = Path(theme_dir) / INDEX_FILE_NAME
                if candidate.exists():
                    self.is_valid = True
                    index_file = candidate

        if index_file is not None:
            self._read_index(index_file, fallback_theme)

    def _read_index(self, index_file: Path, fallback_theme: str) -> None:
        try:
            settings = _read_ini(index_file)
        except OSError:
            settings = {}

        self.follows_color_scheme = _as_bool(
            settings.get("Icon Theme/FollowsColorScheme"), False
        )

        for key in sorted(settings):
            if not key.endswith("/Size"):
                continue
            size = _as_int(settings[key], 0)
            if not size:
                continue
            directory = key[: -len("/Size")]
            self.key_list.append(
                IconDirInfo(
                    path=directory,
                    size=size,
                    type=DirType.from_name(_as_string(settings.get(directory + "/Type"))),
                    threshold=_as_int(settings.get(directory + "/Threshold"), 2),
                    min_size=_as_int(settings.get(directory + "/MinSize"), size),
                    max_size=_as_int(settings.get(directory + "/MaxSize"), size),
                    scale=_as_int(settings.get(directory + "/Scale"), 1),
                )
            )

        # Parent themes provide fallbacks for missing icons.
        self.parents = [
            parent
            for parent in _as_string_list(settings.get("Icon Theme/Inherits"))
            if parent
        ]
        if not self.parents and fallback_theme and fallback_theme != HICOLOR:
            self.parents.append(fallback_theme)

    def __repr__(self) -> str:
        return f"IconTheme(name={self.name!r}, valid={self.is_valid})"


def directory_matches_size(dir_info: IconDirInfo, icon_size: int, icon_scale: int) -> bool:
    """Whether a directory serves icons of ``icon_size`` at ``icon_scale`` exactly."""
    if dir_info.scale != icon_scale:
        return False
    if dir_info.type is DirType.FIXED:
        return dir_info.size == icon_size
    if dir_info.type is DirType.SCALABLE:
        return dir_info.min_size <= icon_size <= dir_info.max_size
    return (
        dir_info.size - dir_info.threshold
        <= icon_size
        <= dir_info.size + dir_info.threshold
    )


def directory_size_distance(dir_info: IconDirInfo, icon_size: int, icon_scale: int) -> int:
    """How far the icons of a directory are from the requested scaled size."""
    scaled = icon_size * icon_scale
    scale = dir_info.scale
    if dir_info.type is DirType.FIXED:
        return abs(dir_info.size * scale - scaled)
    if dir_info.type is DirType.SCALABLE:
        if scaled < dir_info.min_size * scale:
            return dir_info.min_size * scale - scaled
        if scaled > dir_info.max_size * scale:
            return scaled - dir_info.max_size * scale
        return 0
    if scaled < (dir_info.size - dir_info.threshold) * scale:
        return dir_info.min_size * scale - scaled
    if scaled > (dir_info.size + dir_info.threshold) * scale:
        return scaled - dir_info.max_size * scale
    return 0