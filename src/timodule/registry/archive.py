"""Expansion of zip-packaged modules found at a search root."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable

from timodule.errors import ArchiveError

logger = logging.getLogger(__name__)

__all__ = [
    "ARCHIVE_PATTERN",
    "ArchiveResult",
    "UnzipFunc",
    "expand_archives",
    "extract_archive",
    "find_archives",
]

# <id>-<platform>-<version>.zip; the id itself may contain dashes.
ARCHIVE_PATTERN = re.compile(r"^(?P<id>.+)-(?P<platform>[^-]+)-(?P<version>[^-]+)\.zip$")

UnzipFunc = Callable[[Path, Path], bool]


@dataclass
class ArchiveResult:
    """Outcome of expanding one archive."""

    archive: Path
    module_id: str
    platform: str
    version: str
    target: Path
    success: bool


def find_archives(root: Path) -> list[tuple[Path, re.Match[str]]]:
    """List ``<id>-<platform>-<version>.zip`` files directly under *root*, sorted by name."""
    found: list[tuple[Path, re.Match[str]]] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_file():
            continue
        match = ARCHIVE_PATTERN.match(entry.name)
        if match:
            found.append((entry, match))
    return found


def _strip_prefix(names: list[str], prefixes: list[PurePosixPath]) -> PurePosixPath | None:
    for prefix in prefixes:
        depth = len(prefix.parts)
        files = [PurePosixPath(n) for n in names if not n.endswith("/")]
        if files and all(p.parts[:depth] == prefix.parts for p in files):
            return prefix
    return None


def _plan_members(
    zf: zipfile.ZipFile,
    archive: Path,
    prefix: PurePosixPath | None,
) -> list[tuple[zipfile.ZipInfo, PurePosixPath]]:
    """Map each member to its path relative to the target, rejecting path escapes."""
    planned: list[tuple[zipfile.ZipInfo, PurePosixPath]] = []
    for info in zf.infolist():
        member = PurePosixPath(info.filename)
        if prefix is not None:
            if member.parts[: len(prefix.parts)] != prefix.parts:
                continue
            member = PurePosixPath(*member.parts[len(prefix.parts):])
        if not member.parts:
            continue
        if member.is_absolute() or ".." in member.parts:
            raise ArchiveError(archive_path=str(archive), reason=f"member escapes target: {info.filename}")
        planned.append((info, member))
    return planned


def _install(staging: Path, target: Path) -> None:
    if not target.exists():
        staging.rename(target)
        return
    shutil.copytree(staging, target, dirs_exist_ok=True)
    shutil.rmtree(staging)


def _remove_created(created: list[Path]) -> None:
    """Remove directories created for an aborted extraction, deepest first, if empty."""
    for path in reversed(created):
        try:
            path.rmdir()
        except OSError:
            break


def _abort(staging: Path | None, created: list[Path]) -> None:
    if staging is not None:
        shutil.rmtree(staging, ignore_errors=True)
    _remove_created(created)


def extract_archive(archive: Path, target: Path) -> bool:
    """Extract *archive* into *target*.

    Members sharing a leading ``modules/<platform>/<id>/<version>/`` or
    ``<platform>/<id>/<version>/`` prefix have it stripped so the payload lands
    directly in *target*. Every member is checked before anything is written and
    the payload is staged next to *target*, so a failed extraction leaves no
    partial module behind.

    Raises:
        ArchiveError: If the archive is corrupt, unreadable, or a member escapes *target*.
    """
    match = ARCHIVE_PATTERN.match(archive.name)
    created: list[Path] = []
    staging: Path | None = None
    try:
        with zipfile.ZipFile(archive) as zf:
            bad_member = zf.testzip()
            if bad_member is not None:
                raise ArchiveError(archive_path=str(archive), reason=f"bad CRC for member {bad_member}")

            prefix = None
            if match:
                layout = PurePosixPath(match.group("platform"), match.group("id"), match.group("version"))
                prefix = _strip_prefix(zf.namelist(), [PurePosixPath("modules") / layout, layout])
            planned = _plan_members(zf, archive, prefix)

            missing = [p for p in (target.parent, *target.parent.parents) if not p.exists()]
            for path in reversed(missing):
                path.mkdir()
                created.append(path)
            staging = Path(tempfile.mkdtemp(prefix=f".{target.name}-", dir=target.parent))

            for info, member in planned:
                dest = staging / Path(*member.parts)
                if info.is_dir():
                    dest.mkdir(parents=True, exist_ok=True)
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(dest, "wb") as out:
                    shutil.copyfileobj(src, out, 64 * 1024)
            _install(staging, target)
            staging = None
    except ArchiveError:
        _abort(staging, created)
        raise
    except (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError, OSError) as e:
        _abort(staging, created)
        raise ArchiveError(archive_path=str(archive), reason=str(e), cause=e) from e
    return True


def expand_archives(
    root: Path,
    unzip: UnzipFunc | None = None,
    log: logging.Logger | None = None,
) -> list[ArchiveResult]:
    """Expand every module archive directly under *root* into the versioned layout.

    Failures are logged and isolated per archive; archives are left in place.
    """
    log = log or logger
    unzip = unzip or extract_archive
    results: list[ArchiveResult] = []

    for archive, match in find_archives(root):
        module_id = match.group("id")
        platform = match.group("platform")
        version = match.group("version")
        target = root / platform / module_id / version

        log.info("Installing module: %s", archive.name)
        try:
            success = bool(unzip(archive, target))
        except Exception as e:
            log.debug("%s", e)
            success = False

        if not success:
            log.error('Failed to unzip module "%s"', archive)
        results.append(
            ArchiveResult(
                archive=archive,
                module_id=module_id,
                platform=platform,
                version=version,
                target=target,
                success=success,
            )
        )

    return results
