"""Scope aggregation: scan named groups of roots and merge them per scope."""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
from pathlib import Path
from typing import Iterable, Mapping, Sequence, Union

from timodule.config import Config
from timodule.registry.cache import ScanCache, canonical_root
from timodule.registry.types import AggregatedRegistry, ScanResult

logger = logging.getLogger(__name__)

__all__ = [
    "GLOBAL_SCOPE",
    "PROJECT_SCOPE",
    "ScopeRoots",
    "default_global_paths",
    "detect",
    "project_search_paths",
    "scoped_detect",
]

GLOBAL_SCOPE = "global"
PROJECT_SCOPE = "project"

PathLike = Union[str, Path]
ScopeRoots = Mapping[str, Union[PathLike, Sequence[PathLike], None]]


def _as_list(value: PathLike | Sequence[PathLike] | None) -> list[PathLike]:
    if value is None:
        return []
    if isinstance(value, (str, Path)):
        return [value]
    return [v for v in value if v]


def _scan_roots(
    roots: list[Path],
    cache: ScanCache,
    ignore: re.Pattern[str] | None,
    log: logging.Logger | None,
    parallel: bool,
) -> dict[Path, ScanResult]:
    """Scan each root once, isolating failures. Returns results for roots that succeeded."""
    results: dict[Path, ScanResult] = {}
    results_lock = threading.Lock()

    def scan_one(root: Path) -> None:
        try:
            result = cache.scan(root, ignore=ignore, log=log)
        except Exception as e:
            (log or logger).error("Unable to scan modules in %s: %s", root, e)
            return
        with results_lock:
            results[root] = result

    if parallel and len(roots) > 1:
        threads = [threading.Thread(target=scan_one, args=(root,), daemon=True) for root in roots]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
    else:
        for root in roots:
            scan_one(root)

    return results


def scoped_detect(
    scope_roots: ScopeRoots | None,
    cache: ScanCache,
    ignore: re.Pattern[str] | None = None,
    log: logging.Logger | None = None,
    parallel: bool = True,
) -> AggregatedRegistry:
    """Scan the roots of every named scope and merge them into one ScanResult per scope.

    Each distinct canonical root is scanned once even if several scopes list
    it. Within a scope, roots are merged in the order given (last wins). A
    root that fails to scan is logged and left out.

    Args:
        scope_roots: Scope name -> root or list of roots. None yields ``{}``.
        cache: Shared scan cache.
        ignore: Directory-name pattern pruned while walking.
        log: Logger for progress and error lines; each layer uses its own module
            logger when omitted.
        parallel: Scan distinct roots on worker threads.

    Returns:
        Scope name -> merged ScanResult, in the input's scope order.
    """
    if not scope_roots:
        return {}

    per_scope: dict[str, list[Path]] = {}
    distinct: list[Path] = []
    for scope, value in scope_roots.items():
        keys: list[Path] = []
        for root in _as_list(value):
            key = canonical_root(root)
            keys.append(key)
            if key not in distinct:
                distinct.append(key)
        per_scope[scope] = keys

    scanned = _scan_roots(distinct, cache, ignore, log, parallel)

    registry: AggregatedRegistry = {}
    for scope, keys in per_scope.items():
        merged = ScanResult()
        for key in keys:
            result = scanned.get(key)
            if result is None:
                continue
            for previous in merged.merge(result):
                (log or logger).debug(
                    "Scope %s: %s module %s %s from %s overridden by %s",
                    scope,
                    previous.platform,
                    previous.id,
                    previous.version,
                    previous.path,
                    key,
                )
        registry[scope] = merged
    return registry


def default_global_paths(config: Config | None = None) -> list[Path]:
    """Machine-wide and per-user module roots for the running OS, plus ``paths.modules``."""
    home = Path.home()
    paths: list[Path] = []
    if sys.platform == "darwin":
        paths.append(home / "Library" / "Application Support" / "Titanium" / "modules")
        paths.append(Path("/Library/Application Support/Titanium/modules"))
    elif sys.platform.startswith("win"):
        for var in ("APPDATA", "ProgramData"):
            base = os.environ.get(var)
            if base:
                paths.append(Path(base) / "Titanium" / "modules")
    else:
        paths.append(home / ".titanium" / "modules")

    if config is not None:
        paths.extend(Path(p) for p in config.module_paths())

    result: list[Path] = []
    for p in paths:
        key = canonical_root(p)
        if key not in result:
            result.append(key)
    return result


def project_search_paths(search_paths: Iterable[PathLike | None] | PathLike | None, global_paths: Iterable[Path]) -> list[Path]:
    """Resolve project search paths to their ``modules`` directories.

    Duplicates, global roots, and directories that do not exist are dropped.
    """
    if search_paths is None:
        return []
    if isinstance(search_paths, (str, Path)):
        search_paths = [search_paths]

    excluded = {canonical_root(p) for p in global_paths}
    result: list[Path] = []
    for p in search_paths:
        if not p:
            continue
        modules_dir = canonical_root(Path(p) / "modules")
        if modules_dir in excluded or modules_dir in result:
            continue
        if not modules_dir.is_dir():
            continue
        result.append(modules_dir)
    return result


def detect(
    search_paths: Iterable[PathLike | None] | PathLike | None,
    cache: ScanCache,
    global_paths: Iterable[PathLike] | None = None,
    config: Config | None = None,
    log: logging.Logger | None = None,
) -> AggregatedRegistry:
    """Detect modules in the global roots and in each project's ``modules`` directory.

    The result always contains the ``global`` and ``project`` scopes.
    """
    config = config or Config()
    if global_paths is None:
        globals_ = default_global_paths(config)
    else:
        globals_ = [canonical_root(p) for p in global_paths]
    globals_ = [p for p in globals_ if p.is_dir()]
    project = project_search_paths(search_paths, globals_)

    return scoped_detect(
        {GLOBAL_SCOPE: globals_, PROJECT_SCOPE: project},
        cache,
        ignore=config.ignore_dirs_pattern(),
        log=log,
        parallel=bool(config.get("detect.parallel", True)),
    )
