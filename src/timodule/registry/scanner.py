"""Directory scanner for ``<root>/<platform>/<moduleId>/<version>`` module trees."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from timodule.config import DEFAULT_IGNORE_DIRS
from timodule.errors import ManifestError, SearchPathNotFoundError
from timodule.registry.manifest import read_manifest
from timodule.registry.types import ScanResult

logger = logging.getLogger(__name__)

__all__ = ["scan_modules"]

_DEFAULT_IGNORE = re.compile(DEFAULT_IGNORE_DIRS)


def _subdirs(dir_path: Path, ignore: re.Pattern[str], log: logging.Logger) -> list[Path]:
    """Return the child directories of *dir_path* not matching *ignore*, sorted by name."""
    try:
        entries = list(os.scandir(dir_path))
    except PermissionError as e:
        log.error("Permission denied scanning %s: %s", dir_path, e)
        return []
    except OSError as e:
        log.error("OS error scanning %s: %s", dir_path, e)
        return []

    result: list[Path] = []
    for entry in sorted(entries, key=lambda e: e.name):
        if ignore.search(entry.name):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError as e:
            log.error("OS error accessing %s: %s", entry.path, e)
            continue
        result.append(Path(entry.path))
    return result


def scan_modules(
    root: Path,
    ignore: re.Pattern[str] | None = None,
    log: logging.Logger | None = None,
) -> ScanResult:
    """Walk *root* three levels deep and collect every module with a readable manifest.

    Version directories without a valid manifest are skipped silently.

    Raises:
        SearchPathNotFoundError: If *root* does not exist or is not a directory.
    """
    log = log or logger
    ignore = ignore or _DEFAULT_IGNORE
    root = Path(root)
    if not root.is_dir():
        raise SearchPathNotFoundError(search_path=str(root))

    log.info("Detecting modules in %s", root)
    result = ScanResult()

    for platform_dir in _subdirs(root, ignore, log):
        platform = platform_dir.name
        for module_dir in _subdirs(platform_dir, ignore, log):
            module_id = module_dir.name
            for version_dir in _subdirs(module_dir, ignore, log):
                version = version_dir.name
                try:
                    manifest = read_manifest(version_dir, platform, module_id, version)
                except ManifestError as e:
                    log.debug("Skipping %s: %s", version_dir, e)
                    continue

                previous = result.add(platform, module_id, version, manifest)
                if previous is not None:
                    log.warning(
                        "Duplicate %s module %s %s at %s replaces %s",
                        platform,
                        module_id,
                        version,
                        version_dir,
                        previous.path,
                    )
                log.info("Detected %s module: %s %s @ %s", platform, manifest.id, version, version_dir)

    return result
