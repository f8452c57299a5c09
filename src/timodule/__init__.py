"""timodule - discovery and resolution of platform-specific build modules."""

from __future__ import annotations

# Core
from timodule.registry import ModuleDetector, ScanCache
from timodule.registry.types import (
    ModuleDescriptor,
    ModuleManifest,
    ResolutionBucket,
    ResolvedModule,
    ScanResult,
)

# Config
from timodule.config import Config

# Errors
from timodule.errors import (
    ArchiveError,
    ConfigError,
    ConfigNotFoundError,
    ErrorCodes,
    InvalidInputError,
    InvalidVersionError,
    ManifestError,
    ModuleError,
    SearchPathNotFoundError,
)

# Utilities
from timodule.utils.version import compare_versions

__version__ = "0.1.0"

__all__ = [
    # Core
    "ModuleDetector",
    "ScanCache",
    # Types
    "ModuleDescriptor",
    "ModuleManifest",
    "ResolutionBucket",
    "ResolvedModule",
    "ScanResult",
    # Config
    "Config",
    # Errors
    "ErrorCodes",
    "ModuleError",
    "ArchiveError",
    "ConfigError",
    "ConfigNotFoundError",
    "InvalidInputError",
    "InvalidVersionError",
    "ManifestError",
    "SearchPathNotFoundError",
    # Utilities
    "compare_versions",
]
