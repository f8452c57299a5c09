"""Shared pytest fixtures for the registry test suite."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

import pytest

from timodule.config import Config
from timodule.registry.cache import ScanCache
from timodule.registry.detector import ModuleDetector


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def write_module(
    root: Path,
    platform: str,
    dir_id: str,
    version: str,
    module_id: str | None = None,
    minsdk: str | None = None,
) -> Path:
    """Create ``<root>/<platform>/<dir_id>/<version>/manifest`` and return the version dir."""
    version_dir = root / platform / dir_id / version
    version_dir.mkdir(parents=True, exist_ok=True)
    lines = [
        f"version: {version}",
        f"moduleid: {module_id or dir_id}",
        f"platform: {platform}",
    ]
    if minsdk:
        lines.append(f"minsdk: {minsdk}")
    (version_dir / "manifest").write_text("\n".join(lines) + "\n")
    return version_dir


def write_module_zip(root: Path, dir_id: str, platform: str, version: str, module_id: str | None = None) -> Path:
    """Create a ``<id>-<platform>-<version>.zip`` archive laid out like a packaged module."""
    archive = root / f"{dir_id}-{platform}-{version}.zip"
    prefix = f"modules/{platform}/{dir_id}/{version}"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(
            f"{prefix}/manifest",
            f"version: {version}\nmoduleid: {module_id or dir_id}\nplatform: {platform}\n",
        )
        zf.writestr(f"{prefix}/lib{dir_id}.a", b"\x00\x01")
    return archive


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _capture_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="timodule")


@pytest.fixture
def modules_root(tmp_path: Path) -> Path:
    """A module tree with dummy, toonew and ambiguous modules."""
    root = tmp_path / "project" / "modules"
    write_module(root, "ios", "dummy", "1.2.3", module_id="ti.dummy")
    write_module(root, "ios", "toonew", "1.0", module_id="ti.toonew", minsdk="99.0.0")
    write_module(root, "ios", "ambiguous", "1.0", module_id="ti.ambiguous")
    write_module(root, "commonjs", "ambiguous", "1.0", module_id="ti.ambiguous")
    return root


@pytest.fixture
def project_dir(modules_root: Path) -> Path:
    return modules_root.parent


@pytest.fixture
def cache() -> ScanCache:
    return ScanCache()


@pytest.fixture
def detector(cache: ScanCache) -> ModuleDetector:
    """Detector with no global roots and sequential scanning."""
    return ModuleDetector(
        config=Config({"detect": {"parallel": False}}),
        cache=cache,
        global_paths=[],
    )


@pytest.fixture
def make_module():
    """Factory writing a module version directory with a manifest."""
    return write_module


@pytest.fixture
def make_module_zip():
    """Factory writing a packaged module archive."""
    return write_module_zip
