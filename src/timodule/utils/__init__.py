"""Shared helpers."""

from __future__ import annotations

from timodule.utils.version import (
    compare_versions,
    is_version,
    latest_version,
    parse_version,
    sort_versions,
    to_version,
    version_gt,
)

__all__ = [
    "compare_versions",
    "is_version",
    "latest_version",
    "parse_version",
    "sort_versions",
    "to_version",
    "version_gt",
]
