"""Command that looks icon names up and reports the files found and the time taken."""

from __future__ import annotations

import argparse
import os
import time
from pathlib import Path

from xdgkit.iconloader import IconLoader

_VERSION = "0.1.0"


def _default_search_paths() -> list[str]:
    home = Path.home()
    data_home = os.environ.get("XDG_DATA_HOME") or str(home / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    paths = [str(home / ".icons"), f"{data_home}/icons"]
    paths.extend(f"{d}/icons" for d in data_dirs.split(":") if d)
    return paths


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xdgkit-iconfinder", description="Icon finder")
    parser.add_argument("iconnames", nargs="*", help="The icon names to search for")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.add_argument("--theme", default="hicolor", help="Icon theme to search")
    parser.add_argument(
        "--search-path", action="append", dest="search_paths", help="Icon theme search path"
    )
    parser.add_argument(
        "--fallback-path", action="append", dest="fallback_paths", default=[],
        help="Unthemed fallback path",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Look up every icon name given and print the results."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.iconnames:
        parser.print_help()
        return 1

    loader = IconLoader(
        theme_name=args.theme,
        search_paths=args.search_paths or _default_search_paths(),
        fallback_paths=args.fallback_paths,
    )

    total = 0
    for name in args.iconnames:
        start = time.monotonic_ns()
        info = loader.load_icon(name)
        elapsed = (time.monotonic_ns() - start) // 1_000_000
        print(f"{name}:{info.icon_name}:{elapsed}")
        for entry in info.entries:
            print(f"\t{entry.filename}")
        total += elapsed

    print(f"Total loadIcon() time: {total} ms")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())