"""Module discovery and resolution.

Scans ``<root>/<platform>/<moduleId>/<version>`` trees (expanding zipped
modules first), merges them per scope, and resolves requested modules.

Usage::

    from timodule.registry import ModuleDetector

    detector = ModuleDetector()
    bucket = detector.find([{"id": "ti.map"}], ["android"], "production", "12.0.0", ["."])
"""

from __future__ import annotations

from timodule.registry.archive import expand_archives, extract_archive
from timodule.registry.cache import ScanCache, canonical_root
from timodule.registry.detector import ModuleDetector
from timodule.registry.manifest import read_manifest
from timodule.registry.resolver import resolve
from timodule.registry.scanner import scan_modules
from timodule.registry.scopes import (
    GLOBAL_SCOPE,
    PROJECT_SCOPE,
    default_global_paths,
    detect,
    scoped_detect,
)
from timodule.registry.types import (
    AggregatedRegistry,
    ModuleDescriptor,
    ModuleManifest,
    ResolutionBucket,
    ResolvedModule,
    ScanResult,
)

__all__ = [
    "AggregatedRegistry",
    "GLOBAL_SCOPE",
    "ModuleDescriptor",
    "ModuleDetector",
    "ModuleManifest",
    "PROJECT_SCOPE",
    "ResolutionBucket",
    "ResolvedModule",
    "ScanCache",
    "ScanResult",
    "canonical_root",
    "default_global_paths",
    "detect",
    "expand_archives",
    "extract_archive",
    "read_manifest",
    "resolve",
    "scan_modules",
    "scoped_detect",
]
