"""Freedesktop.org icon theme lookup, icon cache reading, menu rules and menu file reading."""

__version__ = "0.1.0"
__all__ = ["__version__"]