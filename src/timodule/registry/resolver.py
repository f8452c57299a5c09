"""Constraint resolution of requested modules against an aggregated registry."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from timodule.errors import InvalidInputError
from timodule.registry.scopes import GLOBAL_SCOPE, PROJECT_SCOPE
from timodule.registry.types import (
    COMMONJS,
    DEFAULT_DEPLOY_TYPES,
    AggregatedRegistry,
    ModuleDescriptor,
    ModuleManifest,
    ResolutionBucket,
    ResolvedModule,
)
from timodule.utils.version import latest_version, parse_version, version_gt

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_SCOPE_ORDER", "effective_platforms", "resolve", "scope_search_order"]

DEFAULT_SCOPE_ORDER: tuple[str, ...] = (PROJECT_SCOPE, GLOBAL_SCOPE)


def effective_platforms(platforms: Iterable[str] | str | None) -> list[str]:
    """Target platforms in order, deduplicated, with ``commonjs`` appended."""
    if isinstance(platforms, str):
        platforms = platforms.split(",")
    result: list[str] = []
    for p in platforms or []:
        p = p.strip()
        if p and p not in result:
            result.append(p)
    if COMMONJS not in result:
        result.append(COMMONJS)
    return result


def scope_search_order(registry: AggregatedRegistry, scope_order: Sequence[str] | None = None) -> list[str]:
    """Scopes present in *registry*, listed ones first, the rest in insertion order."""
    order = DEFAULT_SCOPE_ORDER if scope_order is None else tuple(scope_order)
    result = [s for s in order if s in registry]
    result.extend(s for s in registry if s not in result)
    return result


def _as_descriptor(value: ModuleDescriptor | Mapping[str, Any]) -> ModuleDescriptor:
    if isinstance(value, ModuleDescriptor):
        return value
    if isinstance(value, Mapping):
        return ModuleDescriptor.from_dict(value)
    raise InvalidInputError(message=f"Unsupported module descriptor: {value!r}")


def _candidates(
    descriptor: ModuleDescriptor,
    platforms: list[str],
    registry: AggregatedRegistry,
    scopes: list[str],
) -> list[ModuleManifest]:
    """Distinct candidates from the first scope that has any."""
    for scope in scopes:
        scan = registry[scope]
        unique: dict[tuple[str, str, str], ModuleManifest] = {}
        for platform in platforms:
            versions = scan.get(platform, descriptor.id)
            if not versions:
                continue
            if descriptor.version is not None:
                manifest = versions.get(descriptor.version)
            else:
                latest = latest_version(versions.keys())
                manifest = versions[latest] if latest is not None else None
            if manifest is not None:
                unique.setdefault(manifest.identity, manifest)
        if unique:
            return list(unique.values())
    return []


def resolve(
    descriptors: Iterable[ModuleDescriptor | Mapping[str, Any]] | None,
    platforms: Iterable[str] | str | None,
    deploy_type: str | None,
    sdk_version: str | None,
    registry: AggregatedRegistry,
    log: logging.Logger | None = None,
    scope_order: Sequence[str] | None = None,
) -> ResolutionBucket:
    """Classify each requested module as found, missing, incompatible, or conflict.

    Scopes are searched in ``scope_order`` (default project, then global,
    then any other scope). The first scope with a candidate shadows the rest;
    two or more distinct candidates inside it are a conflict. Descriptors
    whose platform or deploy-type allow-list rules them out are ignored.

    Args:
        descriptors: Requested modules, as ModuleDescriptor or tiapp-style dicts.
        platforms: Target platforms; ``commonjs`` is always appended.
        deploy_type: Requested deploy type (development, test, production).
        sdk_version: Host SDK version checked against ``minsdk``; None skips the check.
        registry: Scope name -> ScanResult.
        log: Logger for the per-module result lines.
        scope_order: Explicit scope search order.

    Returns:
        The ResolutionBucket.

    Raises:
        InvalidVersionError: If *sdk_version* is not a version string.
    """
    log = log or logger
    bucket = ResolutionBucket()
    if sdk_version is not None:
        parse_version(sdk_version)
    if not descriptors:
        return bucket

    targets = effective_platforms(platforms)
    scopes = scope_search_order(registry, scope_order)
    visited: set[tuple[Any, ...]] = set()

    for raw in descriptors:
        descriptor = _as_descriptor(raw)

        if descriptor.platform is not None:
            search = [p for p in descriptor.platform if p in targets]
            if not search:
                log.debug("Skipping module %s: no platform in %s is targeted", descriptor.id, ",".join(descriptor.platform))
                continue
        else:
            search = list(targets)

        deploy_types = list(descriptor.deploy_type or DEFAULT_DEPLOY_TYPES)
        if deploy_type is not None and deploy_type not in deploy_types:
            log.debug("Skipping module %s: deploy type %s not in %s", descriptor.id, deploy_type, ",".join(deploy_types))
            continue

        key = (descriptor.id, descriptor.version, tuple(search), tuple(deploy_types))
        if key in visited:
            continue
        visited.add(key)

        version_label = descriptor.version or "latest"
        deploy_label = ",".join(descriptor.deploy_type) if descriptor.deploy_type else (deploy_type or "")
        platform_label = ",".join(search)

        log.debug(
            "Looking for Titanium module id=%s version=%s platform=%s deploy-type=%s",
            descriptor.id,
            version_label,
            platform_label,
            deploy_label,
        )

        entry = ResolvedModule(descriptor=descriptor, platforms=search, deploy_types=deploy_types)
        candidates = _candidates(descriptor, search, registry, scopes)

        if not candidates:
            log.warning(
                "Could not find Titanium module id=%s version=%s platform=%s deploy-type=%s",
                descriptor.id,
                version_label,
                platform_label,
                deploy_label,
            )
            bucket.missing.append(entry)
            continue

        entry.candidates = candidates
        if len(candidates) > 1:
            log.warning(
                "Found conflicting Titanium module id=%s version=%s platform=%s deploy-type=%s",
                descriptor.id,
                version_label,
                ",".join(c.platform for c in candidates),
                deploy_label,
            )
            for c in candidates:
                log.debug("  %s module %s %s @ %s", c.platform, c.id, c.version, c.path)
            bucket.conflict.append(entry)
            continue

        manifest = candidates[0]
        entry.manifest = manifest
        if sdk_version is not None and manifest.min_sdk_version and version_gt(manifest.min_sdk_version, sdk_version):
            log.warning(
                "Found incompatible Titanium module id=%s version=%s platform=%s deploy-type=%s",
                descriptor.id,
                version_label,
                platform_label,
                deploy_label,
            )
            log.debug("Module %s requires SDK %s, have %s", descriptor.id, manifest.min_sdk_version, sdk_version)
            bucket.incompatible.append(entry)
            continue

        log.info(
            "Found Titanium module id=%s version=%s platform=%s deploy-type=%s",
            descriptor.id,
            version_label,
            manifest.platform,
            deploy_label,
        )
        bucket.found.append(entry)

    return bucket
