"""Read-side services built on the assembly layer."""

from .directory import DirectoryService, parse_filter_list, resolve_since

__all__ = ["DirectoryService", "parse_filter_list", "resolve_since"]
