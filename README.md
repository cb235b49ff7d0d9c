# xdgkit

Icon theme lookup and menu file reading along the freedesktop.org
specifications, using only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Finding icons from the command line

```
xdgkit-iconfinder document-open edit-copy
```

For each icon name the command prints a line `name:found-name:milliseconds`,
then every matching file on its own line, indented by a tab. A last line
gives the total lookup time: `Total loadIcon() time: N ms`. With no icon
names it prints the usage text and exits with status 1.

Options:

- `--theme NAME`: the icon theme to search (default `hicolor`).
- `--search-path DIR`: an icon theme search path; may be repeated. Without
  it the command uses `~/.icons`, `$XDG_DATA_HOME/icons` (default
  `~/.local/share/icons`) and `icons` below each directory of
  `$XDG_DATA_DIRS` (default `/usr/local/share:/usr/share`).
- `--fallback-path DIR`: an unthemed fallback path; may be repeated.
- `--version`: print the version.

## Icon lookup

`xdgkit.iconloader.IconLoader` takes a theme name, the icon theme search
paths, unthemed fallback paths, an optional fallback theme, whether to honour
a theme's `FollowsColorScheme` hint, whether SVG files count, and the pixmap
directories (default `/usr/share/pixmaps`).

`IconLoader.load_icon(name)` returns an `IconInfo` with the name that matched
(`icon_name`) and a list of `IconEntry` objects (`filename`, `dir`, `kind`).
An `IconInfo` is false when nothing was found. The search order is:

1. the theme, then its parent themes, then `hicolor`;
2. the fallback paths;
3. the same again with the last dash-separated part of the name dropped, so
   `input-mouse-usb` falls back to `input-mouse` and then `input`;
4. files named after the icon directly inside the search paths;
5. the pixmap directories.

A more specific name found in a parent theme is preferred over a generic
name from the current theme. Within one theme, PNG entries are put before
scalable ones. An SVG is only considered where no PNG of the same name
exists in that directory. `EntryKind` tells pixmap, scalable and
colour-scheme-following scalable entries apart.

`IconLoader.theme(name)` returns the `IconTheme` for a name, loading it once;
an invalid theme is replaced by the fallback theme when one is set.

Choosing among the entries found:

- `entry_for_size(entries, size, scale=1)` returns the first entry whose
  directory matches the size exactly, otherwise the one closest to it, or
  `None`.
- `actual_size(entries, size)` gives the size the icon would have. Scalable
  entries return the requested size. Other entries return the directory size,
  never more than requested. When a directory has no size, the size is read
  from the PNG or XPM header.
- `available_sizes(entries)` lists the nominal size of each entry.

`size` may be an integer or a `(width, height)` pair.

### Icon themes

`xdgkit.icontheme.IconTheme(name, search_paths, fallback_theme)` reads the
theme's `index.theme`. It gives `content_dirs`, one `IconDirInfo` per sized
directory in `key_list`, the `parents` from `Inherits`, `follows_color_scheme`
and `is_valid`. A theme without parents gets the fallback theme as its parent,
unless that is `hicolor`. `directory_matches_size` and
`directory_size_distance` apply the specification's size rules for `Fixed`,
`Scalable` and `Threshold` directories (`DirType`).

### The GTK icon cache

`xdgkit.iconcache.IconCacheReader(theme_dir)` reads the theme directory's
`icon-theme.cache`. `lookup(name)` returns the sub-directories, such as
`"32x32/apps"`, that hold the icon. The reader makes itself invalid
(`is_valid` false) and answers no lookups when any of these hold:

- the file is older than the theme directory or one of its sub-directories;
- the file has the wrong version;
- an offset in the file is out of range or misaligned;
- the theme directory has changed since the file was read.

`revalidate(refresh)` reloads the file. `icon_name_hash(name)` is the hash
the cache uses.

## Menu matching rules

```python
import xml.etree.ElementTree as ET

from xdgkit.menurules import MenuRules

include = ET.fromstring(
    "<Include><And><Category>Development</Category>"
    "<Not><Filename>foo.desktop</Filename></Not></And></Include>"
)

rules = MenuRules()
rules.add_include(include)

rules.check_include("editor.desktop", ["Development", "Utility"])  # True
rules.check_include("foo.desktop", ["Development"])                # False
```

A desktop entry is given by its desktop-file id and its list of categories.
The children of `<Include>` and `<Exclude>` are combined as with `<Or>`. The
rules are `MenuRuleOr`, `MenuRuleAnd`, `MenuRuleNot`, `MenuRuleFileName`,
`MenuRuleCategory` and `MenuRuleAll`. An empty `<And>` matches nothing. An
unknown rule element is skipped with a logged warning.

## Reading menu files

```python
from xdgkit.menureader import MenuReader, XdgPaths

paths = XdgPaths.from_environment()
reader = MenuReader("applications.menu", paths)
root = reader.load("/etc/xdg/menus/applications.menu")
```

`XdgPaths` holds `config_home`, `data_home`, `config_dirs` and `data_dirs`.
`from_environment` fills them from the `XDG_*` variables or the standard
defaults.

`MenuReader.load(file_name, base_dir="")` parses the file and resolves its
merge and directory tags, returning the root element:

- `<MergeFile>` inserts the children of another menu file's root, except its
  `<Name>`. With `type="parent"` the same relative file is taken from the
  next config directory.
- `<MergeDir>` merges every readable `.menu` file in a directory, in name
  order.
- `<DefaultMergeDirs>` merges `menus/<base>-merged` from each config
  directory and the config home. Here `<base>` is the part of the menu file's
  base name after the last dash. For `applications` it also merges
  `menus/applications-kmenuedit.menu` from the config home.
- `<AppDir>` and `<DirectoryDir>` become elements holding the resolved
  directory path, and are kept only if the directory exists.
- `<DefaultAppDirs>` expands to `applications/` below the data home and the
  data directories.
- `<DefaultDirectoryDirs>` expands to `desktop-directories/` below the same
  directories, in reverse order.

Relative names are resolved against the directory of the file being read.
Tags are handled from last to first, and a file is merged only once per
menu, so the last duplicate wins. Each loaded file gets a `<FileInfo>`
element with its path and the path of the file that merged it. The optional
`on_watch` callback receives the path of every file opened.

`load` raises `MenuReadError` in these cases:

- no file name is given;
- the file cannot be opened;
- the file is not well-formed XML;
- the file is already being loaded further up the merge chain.

### XML helpers

`xdgkit.xmlhelper.format_element` renders an element with its attributes and
text on one line for logging. `child_elements` and `child_elements_reversed`
iterate over the child elements, optionally only those with a given tag.

## What the package does not do

- It finds icon files but does not load, scale or paint images.
- It does not read `.desktop` files. Menu rules take the id and categories
  from the caller.
- The menu reader resolves merges and directory tags only. It does not apply
  the include and exclude rules to build a finished menu, handle
  `<Deleted>`, `<Move>` or `<Layout>`, or show a menu.
- It does not watch files for changes. `on_watch` only reports the paths.