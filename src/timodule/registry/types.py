"""Registry types: ModuleManifest, ScanResult, ModuleDescriptor, ResolutionBucket."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from timodule.errors import InvalidInputError

__all__ = [
    "COMMONJS",
    "DEFAULT_DEPLOY_TYPES",
    "ModuleManifest",
    "ScanResult",
    "AggregatedRegistry",
    "ModuleDescriptor",
    "ResolvedModule",
    "ResolutionBucket",
]

COMMONJS = "commonjs"
DEFAULT_DEPLOY_TYPES: tuple[str, ...] = ("development", "test", "production")


@dataclass(frozen=True)
class ModuleManifest:
    """One discovered module version.

    ``platform`` and ``version`` come from the directory layout; ``id`` is the
    manifest's ``moduleid`` and may differ from the id directory name.
    """

    id: str
    platform: str
    version: str
    path: Path
    min_sdk_version: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def identity(self) -> tuple[str, str, str]:
        """(platform, version, canonical path) used to tell candidates apart."""
        return (self.platform, self.version, str(self.path.resolve()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "version": self.version,
            "path": str(self.path),
            "minSDKVersion": self.min_sdk_version,
            "properties": dict(self.properties),
        }


class ScanResult:
    """Modules found under one root: platform -> module id -> version -> manifest.

    Keys are directory names. ``(platform, id, version)`` is unique; adding a
    second manifest under the same key replaces the first.
    """

    def __init__(self) -> None:
        self._tree: dict[str, dict[str, dict[str, ModuleManifest]]] = {}

    def add(self, platform: str, module_id: str, version: str, manifest: ModuleManifest) -> ModuleManifest | None:
        """Insert a manifest, returning the one it replaced (if any)."""
        versions = self._tree.setdefault(platform, {}).setdefault(module_id, {})
        previous = versions.get(version)
        versions[version] = manifest
        return previous

    def merge(self, other: ScanResult) -> list[ModuleManifest]:
        """Merge *other* into this result (last wins). Returns replaced manifests."""
        replaced: list[ModuleManifest] = []
        for platform, module_id, version, manifest in other.entries():
            previous = self.add(platform, module_id, version, manifest)
            if previous is not None and previous is not manifest:
                replaced.append(previous)
        return replaced

    def get(self, platform: str, module_id: str) -> Mapping[str, ModuleManifest]:
        """Return the version map for *module_id* under *platform* (empty if absent)."""
        versions = self._tree.get(platform, {}).get(module_id)
        if versions is None:
            return MappingProxyType({})
        return MappingProxyType(versions)

    def lookup(self, platform: str, module_id: str, version: str) -> ModuleManifest | None:
        return self._tree.get(platform, {}).get(module_id, {}).get(version)

    def platforms(self) -> list[str]:
        return list(self._tree)

    def module_ids(self, platform: str) -> list[str]:
        return list(self._tree.get(platform, {}))

    def entries(self) -> Iterator[tuple[str, str, str, ModuleManifest]]:
        """Yield ``(platform, module_id, version, manifest)`` in insertion order."""
        for platform, modules in self._tree.items():
            for module_id, versions in modules.items():
                for version, manifest in versions.items():
                    yield platform, module_id, version, manifest

    def to_dict(self) -> dict[str, dict[str, dict[str, dict[str, Any]]]]:
        return {
            platform: {
                module_id: {version: manifest.to_dict() for version, manifest in versions.items()}
                for module_id, versions in modules.items()
            }
            for platform, modules in self._tree.items()
        }

    def __getitem__(self, platform: str) -> Mapping[str, Mapping[str, ModuleManifest]]:
        modules = self._tree[platform]
        return MappingProxyType({mid: MappingProxyType(v) for mid, v in modules.items()})

    def __contains__(self, platform: object) -> bool:
        return platform in self._tree

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())

    def __bool__(self) -> bool:
        return bool(self._tree)

    def __repr__(self) -> str:
        return f"ScanResult(platforms={self.platforms()!r}, modules={len(self)})"


# Scope name -> merged scan result for that scope.
AggregatedRegistry = dict[str, ScanResult]


def _split_list(value: str | list[str] | tuple[str, ...] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    else:
        items = [str(v).strip() for v in value]
    items = [v for v in items if v]
    return tuple(items) or None


@dataclass(frozen=True)
class ModuleDescriptor:
    """A requested module.

    ``version=None`` means the latest available version. ``platform`` and
    ``deploy_type`` are allow-lists; None accepts any.
    """

    id: str
    version: str | None = None
    platform: tuple[str, ...] | None = None
    deploy_type: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInputError(message="Module descriptor requires a non-empty id")
        object.__setattr__(self, "platform", _split_list(self.platform))
        object.__setattr__(self, "deploy_type", _split_list(self.deploy_type))
        if self.version is not None:
            object.__setattr__(self, "version", str(self.version).strip() or None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModuleDescriptor:
        """Build a descriptor from a tiapp-style mapping.

        Accepts ``deployType`` or ``deploy-type`` for the deploy-type list.
        """
        module_id = data.get("id")
        if not module_id or not isinstance(module_id, str):
            raise InvalidInputError(message=f"Module descriptor requires a string 'id': {dict(data)!r}")
        deploy_type = data.get("deployType", data.get("deploy-type"))
        version = data.get("version")
        return cls(
            id=module_id,
            version=str(version) if version is not None else None,
            platform=data.get("platform"),
            deploy_type=deploy_type,
        )


@dataclass
class ResolvedModule:
    """A descriptor together with the outcome of resolving it."""

    descriptor: ModuleDescriptor
    platforms: list[str]
    deploy_types: list[str]
    manifest: ModuleManifest | None = None
    candidates: list[ModuleManifest] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def version(self) -> str | None:
        """The resolved version, or the requested one when nothing matched."""
        if self.manifest is not None:
            return self.manifest.version
        return self.descriptor.version

    @property
    def platform(self) -> str | None:
        return self.manifest.platform if self.manifest is not None else None

    @property
    def path(self) -> Path | None:
        return self.manifest.path if self.manifest is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "requestedVersion": self.descriptor.version,
            "platform": self.platform or ",".join(self.platforms),
            "deployType": list(self.deploy_types),
            "modulePath": str(self.path) if self.path is not None else None,
            "manifest": self.manifest.to_dict() if self.manifest is not None else None,
            "candidates": [c.to_dict() for c in self.candidates],
        }


@dataclass
class ResolutionBucket:
    """Resolution outcome: every processed descriptor lands in exactly one list."""

    found: list[ResolvedModule] = field(default_factory=list)
    missing: list[ResolvedModule] = field(default_factory=list)
    incompatible: list[ResolvedModule] = field(default_factory=list)
    conflict: list[ResolvedModule] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "found": [m.to_dict() for m in self.found],
            "missing": [m.to_dict() for m in self.missing],
            "incompatible": [m.to_dict() for m in self.incompatible],
            "conflict": [m.to_dict() for m in self.conflict],
        }
