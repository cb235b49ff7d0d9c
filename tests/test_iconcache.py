import os
import struct

import pytest

from xdgkit.iconcache import CACHE_FILE_NAME, IconCacheReader, icon_name_hash

OLD_NS = 1_000_000_000 * 1_000_000_000
NEW_NS = 2_000_000_000 * 1_000_000_000


def build_cache(icons, dirs, n_buckets, version=1):
    buf = bytearray(12 + 4 + 4 * n_buckets)

    def add(blob):
        while len(buf) % 4:
            buf.append(0)
        offset = len(buf)
        buf.extend(blob)
        return offset

    dir_name_offsets = [add(d.encode("utf-8") + b"\0") for d in dirs]
    dir_list_offset = add(
        struct.pack(">I", len(dirs)) + b"".join(struct.pack(">I", o) for o in dir_name_offsets)
    )

    buckets = [[] for _ in range(n_buckets)]
    if n_buckets:
        for name, indices in icons.items():
            name_offset = add(name.encode("utf-8") + b"\0")
            list_offset = add(
                struct.pack(">I", len(indices))
                + b"".join(struct.pack(">HHI", i, 0, 0) for i in indices)
            )
            buckets[icon_name_hash(name) % n_buckets].append((name_offset, list_offset))

    heads = []
    for chain in buckets:
        nxt = 0
        for name_offset, list_offset in reversed(chain):
            nxt = add(struct.pack(">III", nxt, name_offset, list_offset))
        heads.append(nxt)

    struct.pack_into(">HHII", buf, 0, version, 0, 12, dir_list_offset)
    struct.pack_into(">I", buf, 12, n_buckets)
    for i, head in enumerate(heads):
        struct.pack_into(">I", buf, 16 + 4 * i, head)
    return bytes(buf)


def make_theme(tmp_path, data, dirs, cache_ns=NEW_NS, subdir_ns=OLD_NS):
    theme = tmp_path / "theme"
    theme.mkdir()
    for d in dirs:
        (theme / d).mkdir(parents=True, exist_ok=True)
    (theme / CACHE_FILE_NAME).write_bytes(data)
    for d in dirs:
        parts = d.split("/")
        for n in range(len(parts), 0, -1):
            p = theme.joinpath(*parts[:n])
            os.utime(p, ns=(subdir_ns, subdir_ns))
    os.utime(theme / CACHE_FILE_NAME, ns=(cache_ns, cache_ns))
    os.utime(theme, ns=(OLD_NS, OLD_NS))
    return theme


@pytest.mark.parametrize("name", ["a", "Z", "0"])
def test_hash_of_single_ascii_char_is_its_code(name):
    assert icon_name_hash(name) == ord(name)


def test_hash_of_a_is_97():
    assert icon_name_hash("a") == 97


@pytest.mark.parametrize("name", ["document-open", "ünïcode-icon", "x" * 200, "é"])
def test_hash_fits_in_32_bits(name):
    h = icon_name_hash(name)
    assert 0 <= h < 2 ** 32
    assert icon_name_hash(name) == h


def test_lookup_finds_directories_in_order(tmp_path):
    dirs = ["16x16/apps", "32x32/apps", "scalable/apps"]
    data = build_cache({"firefox": [2, 0], "terminal": [1]}, dirs, 7)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.is_valid
    assert reader.lookup("firefox") == ["scalable/apps", "16x16/apps"]
    assert reader.lookup("terminal") == ["32x32/apps"]


def test_lookup_missing_name_keeps_cache_valid(tmp_path):
    dirs = ["16x16/apps"]
    data = build_cache({"firefox": [0]}, dirs, 3)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.lookup("does-not-exist") == []
    assert reader.is_valid


def test_lookup_empty_name_returns_nothing(tmp_path):
    dirs = ["16x16/apps"]
    data = build_cache({"firefox": [0]}, dirs, 3)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.lookup("") == []


def test_lookup_follows_bucket_chain(tmp_path):
    dirs = ["a", "b", "c"]
    icons = {"one": [0], "two": [1], "three": [2, 1]}
    data = build_cache(icons, dirs, 1)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.lookup("one") == ["a"]
    assert reader.lookup("two") == ["b"]
    assert reader.lookup("three") == ["c", "b"]


def test_lookup_many_icons_many_buckets(tmp_path):
    dirs = ["d0", "d1", "d2", "d3"]
    icons = {f"icon-{i}": [i % 4] for i in range(40)}
    data = build_cache(icons, dirs, 11)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    for name, indices in icons.items():
        assert reader.lookup(name) == [dirs[i] for i in indices]


def test_missing_cache_file_is_invalid(tmp_path):
    theme = tmp_path / "theme"
    theme.mkdir()
    reader = IconCacheReader(theme)
    assert not reader.is_valid
    assert reader.lookup("anything") == []
    assert reader.revalidate(True) is False


def test_wrong_version_is_invalid(tmp_path):
    dirs = ["a"]
    data = build_cache({"x": [0]}, dirs, 1, version=2)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert not reader.is_valid
    assert reader.lookup("x") == []


def test_truncated_file_is_invalid(tmp_path):
    reader = IconCacheReader(make_theme(tmp_path, b"\x00", []))
    assert not reader.is_valid


def test_cache_older_than_theme_dir_is_invalid(tmp_path):
    dirs = ["a"]
    data = build_cache({"x": [0]}, dirs, 1)
    theme = make_theme(tmp_path, data, dirs, cache_ns=OLD_NS // 2)
    reader = IconCacheReader(theme)
    assert not reader.is_valid


def test_subdirectory_newer_than_cache_is_invalid(tmp_path):
    dirs = ["a"]
    data = build_cache({"x": [0]}, dirs, 1)
    theme = make_theme(tmp_path, data, dirs, subdir_ns=NEW_NS + 1_000_000_000)
    reader = IconCacheReader(theme)
    assert not reader.is_valid


def test_directory_index_out_of_range_invalidates(tmp_path):
    dirs = ["a"]
    data = build_cache({"x": [5]}, dirs, 1)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.is_valid
    assert reader.lookup("x") == []
    assert not reader.is_valid


def test_zero_buckets_invalidates_on_lookup(tmp_path):
    dirs = ["a"]
    data = build_cache({}, dirs, 0)
    reader = IconCacheReader(make_theme(tmp_path, data, dirs))
    assert reader.is_valid
    assert reader.lookup("x") == []
    assert not reader.is_valid


def test_directory_change_invalidates_and_revalidate_recovers(tmp_path):
    dirs = ["a"]
    data = build_cache({"x": [0]}, dirs, 1)
    theme = make_theme(tmp_path, data, dirs)
    reader = IconCacheReader(theme)
    assert reader.lookup("x") == ["a"]

    (theme / "new-file").write_text("changed")
    assert not reader.is_valid
    assert reader.lookup("x") == []

    (theme / CACHE_FILE_NAME).write_bytes(build_cache({"y": [0]}, dirs, 1))
    future = NEW_NS * 2
    os.utime(theme / CACHE_FILE_NAME, ns=(future, future))
    assert reader.revalidate(True) is True
    assert reader.lookup("y") == ["a"]
    assert reader.lookup("x") == []