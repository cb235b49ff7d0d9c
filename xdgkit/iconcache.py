"""Reader for the binary ``icon-theme.cache`` files found in icon theme directories.

The cache is written by ``gtk-update-icon-cache`` and maps icon names to the
theme sub-directories holding an image for that name. Looking names up in the
cache saves a large number of file system checks. Whenever the file looks
corrupt (offsets out of range or misaligned, an unexpected version, stale
timestamps) the reader marks itself invalid and answers no lookups.
"""

from __future__ import annotations

import os
from pathlib import Path

CACHE_FILE_NAME = "icon-theme.cache"
_MAJOR_VERSION = 1
_ICON_ENTRY_SIZE = 12


def _signed_byte(value: int) -> int:
    return value - 256 if value > 127 else value


def icon_name_hash(name: str) -> int:
    """Return the 32-bit hash the cache uses to place ``name`` in a bucket."""
    data = name.encode("utf-8")
    if not data:
        return 0
    h = _signed_byte(data[0]) & 0xFFFFFFFF
    for byte in data[1:]:
        h = ((h << 5) - h + _signed_byte(byte)) & 0xFFFFFFFF
    return h


def _mtime_ms(path: Path) -> int | None:
    """Modification time in milliseconds, or None when the path does not exist."""
    try:
        return os.stat(path).st_mtime_ns // 1_000_000
    except OSError:
        return None


class IconCacheReader:
    """Looks icon names up in the ``icon-theme.cache`` of one theme directory."""

    def __init__(self, theme_dir: str | os.PathLike[str]) -> None:
        self.theme_dir = Path(theme_dir)
        self.cache_path = self.theme_dir / CACHE_FILE_NAME
        self._data = b""
        self._valid = False
        self._cache_mtime = _mtime_ms(self.cache_path)
        self._dir_mtime = _mtime_ms(self.theme_dir)
        self.revalidate(False)

    @property
    def is_valid(self) -> bool:
        """Whether the cache can be used; a change to the theme directory invalidates it."""
        if self._valid and _mtime_ms(self.theme_dir) != self._dir_mtime:
            self._valid = False
        return self._valid

    def revalidate(self, refresh: bool) -> bool:
        """Reload the cache file and check it; ``refresh`` re-reads its file status first."""
        self._data = b""
        self._valid = False
        if refresh:
            self._cache_mtime = _mtime_ms(self.cache_path)
        self._dir_mtime = _mtime_ms(self.theme_dir)

        cache_mtime = self._cache_mtime
        if cache_mtime is None:
            return False
        if self._dir_mtime is not None and cache_mtime < self._dir_mtime:
            return False

        try:
            self._data = self.cache_path.read_bytes()
        except OSError:
            self._data = b""
            return False

        if self._read16(0) != _MAJOR_VERSION:
            self._valid = False
            return False

        self._valid = True

        # Every listed directory must be older than the cache itself.
        dir_list_offset = self._read32(8)
        dir_list_len = self._read32(dir_list_offset)
        for i in range(dir_list_len):
            offset = self._read32(dir_list_offset + 4 + 4 * i)
            if not self._valid or offset >= len(self._data):
                self._valid = False
                return False
            sub_mtime = _mtime_ms(self.theme_dir / self._cstring(offset))
            if sub_mtime is not None and cache_mtime < sub_mtime:
                self._valid = False
                return False
        return self._valid

    def lookup(self, name: str) -> list[str]:
        """Return the sub-directories (like ``"32x32/apps"``) holding an icon ``name``."""
        found: list[str] = []
        if not self.is_valid or not name:
            return found

        name_utf8 = name.encode("utf-8")
        hash_value = icon_name_hash(name)
        size = len(self._data)

        hash_offset = self._read32(4)
        bucket_count = self._read32(hash_offset)
        if not self._valid or bucket_count == 0:
            self._valid = False
            return found

        bucket_index = hash_value % bucket_count
        bucket_offset = self._read32(hash_offset + 4 + bucket_index * 4)
        seen: set[int] = set()
        while 0 < bucket_offset <= size - _ICON_ENTRY_SIZE:
            if bucket_offset in seen:
                self._valid = False
                return found
            seen.add(bucket_offset)

            name_offset = self._read32(bucket_offset + 4)
            if name_offset < size and self._raw_cstring(name_offset) == name_utf8:
                dir_list_offset = self._read32(8)
                dir_list_len = self._read32(dir_list_offset)
                list_offset = self._read32(bucket_offset + 8)
                list_len = self._read32(list_offset)
                if not self._valid or list_offset + 4 + 8 * list_len > size:
                    self._valid = False
                    return found
                for j in range(list_len):
                    if not self._valid:
                        break
                    dir_index = self._read16(list_offset + 4 + 8 * j)
                    offset = self._read32(dir_list_offset + 4 + dir_index * 4)
                    if not self._valid or dir_index >= dir_list_len or offset >= size:
                        self._valid = False
                        return found
                    found.append(self._cstring(offset))
                return found
            bucket_offset = self._read32(bucket_offset)
        return found

    def _read16(self, offset: int) -> int:
        if offset + 2 > len(self._data) or offset & 0x1:
            self._valid = False
            return 0
        return int.from_bytes(self._data[offset:offset + 2], "big")

    def _read32(self, offset: int) -> int:
        if offset + 4 > len(self._data) or offset & 0x3:
            self._valid = False
            return 0
        return int.from_bytes(self._data[offset:offset + 4], "big")

    def _raw_cstring(self, offset: int) -> bytes:
        end = self._data.find(b"\0", offset)
        if end == -1:
            end = len(self._data)
        return self._data[offset:end]

    def _cstring(self, offset: int) -> str:
        return self._raw_cstring(offset).decode("utf-8", errors="replace")