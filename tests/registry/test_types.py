"""Tests for registry types: ScanResult, ModuleDescriptor, ResolvedModule."""

from __future__ import annotations

from pathlib import Path

import pytest

from timodule.errors import InvalidInputError
from timodule.registry.types import (
    ModuleDescriptor,
    ModuleManifest,
    ResolutionBucket,
    ResolvedModule,
    ScanResult,
)


def _manifest(tmp_path: Path, platform: str = "ios", version: str = "1.0", name: str = "m") -> ModuleManifest:
    return ModuleManifest(id=f"ti.{name}", platform=platform, version=version, path=tmp_path / platform / name / version)


# === ScanResult ===


class TestScanResult:
    def test_add_and_lookup(self, tmp_path: Path) -> None:
        """Added manifests are reachable by platform, id and version."""
        result = ScanResult()
        m = _manifest(tmp_path)
        assert result.add("ios", "m", "1.0", m) is None
        assert result.lookup("ios", "m", "1.0") is m
        assert dict(result.get("ios", "m")) == {"1.0": m}
        assert "ios" in result
        assert len(result) == 1

    def test_duplicate_key_replaces(self, tmp_path: Path) -> None:
        """A second manifest for the same key wins and the old one is returned."""
        result = ScanResult()
        first = _manifest(tmp_path)
        second = ModuleManifest(id="ti.m", platform="ios", version="1.0", path=tmp_path / "other")
        result.add("ios", "m", "1.0", first)
        assert result.add("ios", "m", "1.0", second) is first
        assert result.lookup("ios", "m", "1.0") is second
        assert len(result) == 1

    def test_get_missing_is_empty(self) -> None:
        """Unknown platform or id yields an empty mapping."""
        result = ScanResult()
        assert dict(result.get("android", "x")) == {}
        assert result.lookup("android", "x", "1.0") is None
        assert not result

    def test_views_are_read_only(self, tmp_path: Path) -> None:
        """Returned mappings cannot be used to mutate the result."""
        result = ScanResult()
        result.add("ios", "m", "1.0", _manifest(tmp_path))
        with pytest.raises(TypeError):
            result.get("ios", "m")["2.0"] = _manifest(tmp_path, version="2.0")  # type: ignore[index]
        with pytest.raises(TypeError):
            result["ios"]["n"] = {}  # type: ignore[index]

    def test_merge_reports_replaced(self, tmp_path: Path) -> None:
        """merge() is last-wins and returns the manifests it displaced."""
        a, b = ScanResult(), ScanResult()
        old = _manifest(tmp_path / "a")
        new = _manifest(tmp_path / "b")
        a.add("ios", "m", "1.0", old)
        b.add("ios", "m", "1.0", new)
        b.add("ios", "m", "2.0", _manifest(tmp_path / "b", version="2.0"))
        assert a.merge(b) == [old]
        assert set(a.get("ios", "m")) == {"1.0", "2.0"}
        assert a.lookup("ios", "m", "1.0") is new

    def test_to_dict(self, tmp_path: Path) -> None:
        """to_dict() renders the nested tree with manifest dicts."""
        result = ScanResult()
        result.add("ios", "m", "1.0", _manifest(tmp_path))
        tree = result.to_dict()
        assert tree["ios"]["m"]["1.0"]["id"] == "ti.m"
        assert tree["ios"]["m"]["1.0"]["minSDKVersion"] is None


# === ModuleManifest ===


class TestModuleManifest:
    def test_identity_uses_canonical_path(self, tmp_path: Path) -> None:
        """Two spellings of one directory share an identity."""
        (tmp_path / "d").mkdir()
        a = ModuleManifest(id="x", platform="ios", version="1.0", path=tmp_path / "d")
        b = ModuleManifest(id="x", platform="ios", version="1.0", path=tmp_path / "d" / ".." / "d")
        assert a.identity == b.identity


# === ModuleDescriptor ===


class TestModuleDescriptor:
    def test_comma_separated_lists(self) -> None:
        """platform and deploy_type strings are split on commas."""
        d = ModuleDescriptor(id="dummy", platform="ios, android", deploy_type="test,production")
        assert d.platform == ("ios", "android")
        assert d.deploy_type == ("test", "production")

    def test_defaults(self) -> None:
        """Only id is required."""
        d = ModuleDescriptor(id="dummy")
        assert d.version is None
        assert d.platform is None
        assert d.deploy_type is None

    def test_empty_id_raises(self) -> None:
        """An empty id is invalid."""
        with pytest.raises(InvalidInputError):
            ModuleDescriptor(id="")

    def test_empty_lists_mean_any(self) -> None:
        """Blank allow-lists behave like absent ones."""
        d = ModuleDescriptor(id="x", platform="", deploy_type=[" "], version="  ")
        assert d.platform is None
        assert d.deploy_type is None
        assert d.version is None

    def test_from_dict_accepts_both_deploy_type_keys(self) -> None:
        """deployType and deploy-type are both recognised."""
        assert ModuleDescriptor.from_dict({"id": "a", "deployType": "test"}).deploy_type == ("test",)
        assert ModuleDescriptor.from_dict({"id": "a", "deploy-type": ["production"]}).deploy_type == ("production",)

    def test_from_dict_numeric_version(self) -> None:
        """Non-string versions are stringified."""
        assert ModuleDescriptor.from_dict({"id": "a", "version": 2}).version == "2"

    def test_from_dict_requires_id(self) -> None:
        """A mapping without id is rejected."""
        with pytest.raises(InvalidInputError):
            ModuleDescriptor.from_dict({"version": "1.0"})


# === ResolvedModule / ResolutionBucket ===


class TestResolvedModule:
    def test_unresolved_falls_back_to_request(self) -> None:
        """Without a manifest the requested version is reported."""
        r = ResolvedModule(descriptor=ModuleDescriptor(id="x", version="3.2.1"), platforms=["ios"], deploy_types=["test"])
        assert r.id == "x"
        assert r.version == "3.2.1"
        assert r.platform is None
        assert r.path is None
        assert r.to_dict()["platform"] == "ios"

    def test_resolved_uses_manifest(self, tmp_path: Path) -> None:
        """With a manifest, version, platform and path come from it."""
        m = _manifest(tmp_path, version="1.2.3")
        r = ResolvedModule(descriptor=ModuleDescriptor(id="m"), platforms=["ios"], deploy_types=[], manifest=m)
        assert r.version == "1.2.3"
        assert r.platform == "ios"
        assert r.path == m.path

    def test_empty_bucket(self) -> None:
        """A new bucket has four empty lists."""
        assert ResolutionBucket().to_dict() == {"found": [], "missing": [], "incompatible": [], "conflict": []}
