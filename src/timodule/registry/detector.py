"""ModuleDetector: the entry point tying scanning, aggregation and resolution together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from timodule.config import Config
from timodule.registry.archive import UnzipFunc
from timodule.registry.cache import ScanCache
from timodule.registry.resolver import resolve
from timodule.registry.scopes import (
    PathLike,
    ScopeRoots,
    default_global_paths,
    detect,
    scoped_detect,
)
from timodule.registry.types import AggregatedRegistry, ModuleDescriptor, ResolutionBucket

__all__ = ["ModuleDetector"]


class ModuleDetector:
    """Locates installed modules and resolves requested ones against them.

    Holds the configuration, the logger, and the scan cache. Create one per
    process and reuse it: every root is scanned at most once per detector.

    Usage::

        detector = ModuleDetector(config=Config({"cli": {"ignoreDirs": "^\\.git$"}}))
        bucket = detector.find(
            [{"id": "ti.map"}], ["ios"], "development", "12.0.0", ["/path/to/project"]
        )
        for module in bucket.found:
            print(module.id, module.version, module.path)
    """

    def __init__(
        self,
        config: Config | None = None,
        cache: ScanCache | None = None,
        log: logging.Logger | None = None,
        global_paths: Iterable[PathLike] | None = None,
        unzip: UnzipFunc | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            config: Configuration lookup; defaults to an empty Config.
            cache: Scan cache to share; a new one is created if omitted.
            log: Logger receiving the detection and resolution lines. When
                omitted each layer logs through its own module logger.
            global_paths: Global-scope roots; defaults to the OS Titanium module directories.
            unzip: Archive extraction function ``(archive, target) -> bool`` for a new cache.
        """
        self._config = config or Config()
        self._cache = cache if cache is not None else ScanCache(unzip=unzip)
        self._log = log
        self._global_paths: list[PathLike] | None = list(global_paths) if global_paths is not None else None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def cache(self) -> ScanCache:
        return self._cache

    @property
    def global_paths(self) -> list[Path]:
        """Global-scope roots this detector searches."""
        if self._global_paths is None:
            return default_global_paths(self._config)
        return [Path(p) for p in self._global_paths]

    def scoped_detect(self, scope_roots: ScopeRoots | None) -> AggregatedRegistry:
        """Scan caller-named scopes. ``None`` returns an empty registry immediately."""
        if not scope_roots:
            return {}
        return scoped_detect(
            scope_roots,
            self._cache,
            ignore=self._config.ignore_dirs_pattern(),
            log=self._log,
            parallel=bool(self._config.get("detect.parallel", True)),
        )

    def detect(self, search_paths: Iterable[PathLike | None] | PathLike | None = None) -> AggregatedRegistry:
        """Scan the global roots plus ``<path>/modules`` for each project search path."""
        return detect(
            search_paths,
            self._cache,
            global_paths=self.global_paths,
            config=self._config,
            log=self._log,
        )

    def resolve(
        self,
        modules: Iterable[ModuleDescriptor | Mapping[str, Any]] | None,
        platforms: Iterable[str] | str | None,
        deploy_type: str | None,
        sdk_version: str | None,
        registry: AggregatedRegistry,
        scope_order: Sequence[str] | None = None,
    ) -> ResolutionBucket:
        """Resolve *modules* against an already aggregated registry."""
        return resolve(
            modules,
            platforms,
            deploy_type,
            sdk_version,
            registry,
            log=self._log,
            scope_order=scope_order,
        )

    def find(
        self,
        modules: Iterable[ModuleDescriptor | Mapping[str, Any]] | None,
        platforms: Iterable[str] | str | None,
        deploy_type: str | None,
        sdk_version: str | None,
        search_paths: Iterable[PathLike | None] | PathLike | None = None,
        scope_order: Sequence[str] | None = None,
    ) -> ResolutionBucket:
        """Detect modules for *search_paths* and resolve *modules* against them.

        An empty module list returns an empty bucket without scanning.
        """
        modules = list(modules or [])
        if not modules:
            return ResolutionBucket()
        registry = self.detect(search_paths)
        return self.resolve(modules, platforms, deploy_type, sdk_version, registry, scope_order=scope_order)
