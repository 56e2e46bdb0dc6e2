"""Terminal pager with incremental substring search."""

__version__ = "0.1.0"
