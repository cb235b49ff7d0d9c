import os

import pytest

from xdgkit.icontheme import (
    DirType,
    IconDirInfo,
    IconTheme,
    directory_matches_size,
    directory_size_distance,
)

INDEX = """[Icon Theme]
Name=Sample
Inherits=parentone, hicolor
FollowsColorScheme=true
Directories=16x16/apps,scalable/apps,48x48/apps,broken

[16x16/apps]
Size=16
Type=Fixed

[scalable/apps]
Size=16
MinSize=8
MaxSize=512
Type=Scalable

[48x48/apps]
Size=48
Scale=2

[broken]
Size=notanumber
"""


def _make_theme(root, name, index_text=None):
    theme_dir = root / name
    theme_dir.mkdir(parents=True)
    if index_text is not None:
        (theme_dir / "index.theme").write_text(index_text)
    return theme_dir


def test_theme_reads_directories(tmp_path):
    _make_theme(tmp_path, "sample", INDEX)
    theme = IconTheme("sample", [str(tmp_path)], "")
    assert theme.is_valid
    assert theme.content_dirs == [os.path.normpath(str(tmp_path)) + "/sample"]
    assert len(theme.gtk_caches) == len(theme.content_dirs)
    dirs = {d.path: d for d in theme.key_list}
    assert set(dirs) == {"16x16/apps", "scalable/apps", "48x48/apps"}

    fixed = dirs["16x16/apps"]
    assert fixed.type is DirType.FIXED
    assert fixed.min_size == fixed.size == fixed.max_size
    assert fixed.scale == 1

    scalable = dirs["scalable/apps"]
    assert scalable.type is DirType.SCALABLE
    assert (scalable.min_size, scalable.max_size) == (8, 512)

    threshold = dirs["48x48/apps"]
    assert threshold.type is DirType.THRESHOLD
    assert threshold.threshold == 2
    assert threshold.scale == 2


def test_theme_parents_and_color_scheme(tmp_path):
    _make_theme(tmp_path, "sample", INDEX)
    theme = IconTheme("sample", [tmp_path], "")
    assert theme.parents == ["parentone", "hicolor"]
    assert theme.follows_color_scheme is True


def test_fallback_theme_added_when_no_parents(tmp_path):
    _make_theme(tmp_path, "lonely", "[Icon Theme]\nName=Lonely\n")
    theme = IconTheme("lonely", [tmp_path], "breeze")
    assert theme.parents == ["breeze"]
    assert theme.follows_color_scheme is False


def test_hicolor_fallback_not_added(tmp_path):
    _make_theme(tmp_path, "lonely", "[Icon Theme]\nInherits=\n")
    theme = IconTheme("lonely", [tmp_path], "hicolor")
    assert theme.parents == []


def test_missing_theme_is_invalid(tmp_path):
    theme = IconTheme("absent", [tmp_path], "breeze")
    assert not theme.is_valid
    assert theme.content_dirs == []
    assert theme.key_list == []
    assert theme.parents == []


def test_directory_without_index_is_content_only(tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    _make_theme(first, "t")
    _make_theme(second, "t", INDEX)
    theme = IconTheme("t", [first, second], "")
    assert theme.is_valid
    assert len(theme.content_dirs) == 2
    assert theme.parents == ["parentone", "hicolor"]


def test_empty_theme_defaults():
    theme = IconTheme()
    assert not theme.is_valid
    assert theme.gtk_caches == []


def test_dir_type_from_name():
    assert DirType.from_name("Fixed") is DirType.FIXED
    assert DirType.from_name("Scalable") is DirType.SCALABLE
    assert DirType.from_name("Other") is DirType.THRESHOLD


@pytest.mark.parametrize("size", [16, 17, 48])
def test_fixed_matches_only_its_size(size):
    info = IconDirInfo(path="p", size=16, min_size=16, max_size=16, type=DirType.FIXED)
    assert directory_matches_size(info, size, 1) == (size == 16)
    assert (directory_size_distance(info, size, 1) == 0) == (size == 16)


def test_scale_mismatch_never_matches():
    info = IconDirInfo(path="p", size=16, min_size=16, max_size=16, type=DirType.FIXED, scale=2)
    assert not directory_matches_size(info, 16, 1)
    assert directory_matches_size(info, 16, 2)


def test_scalable_range():
    info = IconDirInfo(path="p", size=16, min_size=8, max_size=512, type=DirType.SCALABLE)
    assert directory_matches_size(info, 8, 1)
    assert directory_matches_size(info, 512, 1)
    assert not directory_matches_size(info, 513, 1)
    assert directory_size_distance(info, 100, 1) == 0
    assert directory_size_distance(info, 4, 1) == 4


def test_threshold_range_and_distance_grows():
    info = IconDirInfo(path="p", size=48, min_size=48, max_size=48, threshold=2)
    assert directory_matches_size(info, 46, 1)
    assert directory_matches_size(info, 50, 1)
    assert not directory_matches_size(info, 51, 1)
    assert directory_size_distance(info, 49, 1) == 0
    near = directory_size_distance(info, 60, 1)
    far = directory_size_distance(info, 90, 1)
    assert 0 < near < far
    below = directory_size_distance(info, 20, 1)
    assert below > 0
    assert directory_size_distance(info, 10, 1) > below