"""Dot-separated version parsing and comparison."""

from __future__ import annotations

import re
from typing import Iterable

from packaging.version import Version

from timodule.errors import InvalidVersionError

__all__ = [
    "parse_version",
    "to_version",
    "compare_versions",
    "version_gt",
    "is_version",
    "latest_version",
    "sort_versions",
]

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def parse_version(version: str) -> tuple[int, ...]:
    """Split a version string into its numeric components.

    Each dot-separated component contributes its leading digits; a component
    with no leading digits (``GA`` in ``3.2.0.GA``) counts as zero.

    Raises:
        InvalidVersionError: If no component carries any digits.
    """
    if not isinstance(version, str) or not version.strip():
        raise InvalidVersionError(version=str(version))

    parts: list[int] = []
    any_numeric = False
    for component in version.strip().split("."):
        match = _LEADING_DIGITS.match(component)
        if match:
            any_numeric = True
            parts.append(int(match.group(1)))
        else:
            parts.append(0)
    if not any_numeric:
        raise InvalidVersionError(version=version)
    return tuple(parts)


def to_version(version: str) -> Version:
    """Release-only ``packaging`` Version built from the numeric components.

    Trailing zeros compare equal (``1.0 == 1``), matching release-segment
    ordering.
    """
    return Version(".".join(str(p) for p in parse_version(version)))


def is_version(version: str) -> bool:
    """Return True if *version* parses as a version string."""
    try:
        parse_version(version)
    except InvalidVersionError:
        return False
    return True


def compare_versions(a: str, b: str) -> int:
    """Compare two versions component-wise.

    Returns:
        -1, 0 or 1 as *a* is lower than, equal to, or greater than *b*.
    """
    va = to_version(a)
    vb = to_version(b)
    if va < vb:
        return -1
    if va > vb:
        return 1
    return 0


def version_gt(a: str, b: str) -> bool:
    """Return True if *a* is strictly greater than *b*."""
    return to_version(a) > to_version(b)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings ascending. Ties keep their input order."""
    return sorted(versions, key=to_version)


def latest_version(versions: Iterable[str]) -> str | None:
    """Return the numerically greatest version, or None if there is none.

    Entries that do not parse as versions (``master``, ``trunk``) are skipped.
    """
    ordered = sort_versions(v for v in versions if is_version(v))
    return ordered[-1] if ordered else None
