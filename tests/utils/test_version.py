"""Tests for version parsing and comparison."""

from __future__ import annotations

import pytest

from timodule.errors import InvalidVersionError
from timodule.utils.version import (
    compare_versions,
    is_version,
    latest_version,
    parse_version,
    sort_versions,
    to_version,
    version_gt,
)


class TestParseVersion:
    def test_numeric_components(self) -> None:
        """Dot-separated integers become a tuple."""
        assert parse_version("1.2.3") == (1, 2, 3)

    def test_non_numeric_suffix_component(self) -> None:
        """Components without leading digits count as zero."""
        assert parse_version("3.2.0.GA") == (3, 2, 0, 0)
        assert parse_version("7.0.0.v20170815") == (7, 0, 0, 0)

    def test_leading_digits_kept(self) -> None:
        """Trailing qualifiers inside a component are dropped."""
        assert parse_version("1.2rc1") == (1, 2)

    @pytest.mark.parametrize("bad", ["", "   ", "latest", "GA.beta"])
    def test_invalid(self, bad: str) -> None:
        """Strings without any digits are rejected."""
        with pytest.raises(InvalidVersionError):
            parse_version(bad)
        assert is_version(bad) is False


class TestCompareVersions:
    def test_numeric_not_lexical(self) -> None:
        """1.10 is greater than 1.9."""
        assert compare_versions("1.10", "1.9") == 1
        assert compare_versions("1.9", "1.10") == -1

    def test_trailing_zeros(self) -> None:
        """Shorter versions are padded with zeros."""
        assert compare_versions("1.0", "1") == 0
        assert compare_versions("1.0.0.1", "1") == 1

    def test_version_gt(self) -> None:
        """version_gt is a strict comparison."""
        assert version_gt("99.0.0", "3.2.0")
        assert not version_gt("3.2.0", "3.2")


class TestLatestVersion:
    def test_latest(self) -> None:
        """latest_version picks the numerically greatest."""
        assert latest_version(["1.0", "1.2.3", "1.10", "1.9"]) == "1.10"

    def test_empty(self) -> None:
        """No versions yields None."""
        assert latest_version([]) is None

    def test_sort(self) -> None:
        """sort_versions orders ascending."""
        assert sort_versions(["2.0", "1.0", "1.0.1"]) == ["1.0", "1.0.1", "2.0"]


class TestToVersion:
    def test_release_only(self) -> None:
        """Qualifiers are reduced to their numeric release components."""
        assert str(to_version("3.2.0.GA")) == "3.2.0.0"
        assert to_version("3.2.0.GA") == to_version("3.2")

    def test_invalid(self) -> None:
        """Digit-free strings raise the domain error, not packaging's."""
        with pytest.raises(InvalidVersionError):
            to_version("latest")


class TestLatestVersionSkipsInvalid:
    def test_invalid_entries_ignored(self) -> None:
        """Entries without digits are left out of the latest pick."""
        assert latest_version(["1.0", "master", "1.2", "trunk"]) == "1.2"

    def test_only_invalid_entries(self) -> None:
        """Nothing parseable yields None."""
        assert latest_version(["master", "trunk"]) is None
