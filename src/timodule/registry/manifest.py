"""Reading and validating module ``manifest`` files.

A manifest is a plain-text file of ``key: value`` lines placed in the module's
version directory::

    version: 1.2.3
    moduleid: ti.dummy
    platform: iphone
    minsdk: 3.2.0

Blank lines and lines starting with ``#`` are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from timodule.errors import ManifestError
from timodule.registry.types import ModuleManifest
from timodule.utils.version import is_version

logger = logging.getLogger(__name__)

__all__ = ["MANIFEST_FILENAME", "ManifestFields", "parse_manifest", "read_manifest"]

MANIFEST_FILENAME = "manifest"


class ManifestFields(BaseModel):
    """Validated subset of the keys a manifest may declare."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    moduleid: str | None = None
    version: str | None = None
    platform: str | None = None
    minsdk: str | None = None

    @field_validator("minsdk")
    @classmethod
    def _minsdk_is_version(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        if not is_version(v):
            raise ValueError(f"minsdk is not a version: {v!r}")
        return v


def parse_manifest(content: str) -> dict[str, str]:
    """Parse ``key: value`` lines into a dict. Later keys override earlier ones."""
    result: dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key:
            result[key] = value.strip()
    return result


def read_manifest(version_dir: Path, platform: str, module_id: str, version: str) -> ModuleManifest:
    """Read the manifest in *version_dir* and build a ModuleManifest.

    *platform*, *module_id* and *version* are the directory names the module
    was found under; the manifest's ``moduleid`` overrides the id when present.

    Raises:
        ManifestError: If the manifest is missing, unreadable, or malformed.
    """
    manifest_path = version_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise ManifestError(manifest_path=str(manifest_path), reason="file not found")

    try:
        content = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(manifest_path=str(manifest_path), reason=str(e), cause=e) from e

    raw = parse_manifest(content)
    if not raw:
        raise ManifestError(manifest_path=str(manifest_path), reason="no 'key: value' entries")

    try:
        fields = ManifestFields.model_validate(raw)
    except ValidationError as e:
        raise ManifestError(manifest_path=str(manifest_path), reason=str(e), cause=e) from e

    if fields.version and fields.version != version:
        logger.debug(
            "Manifest version %s differs from directory version %s at %s",
            fields.version,
            version,
            version_dir,
        )

    properties: dict[str, Any] = dict(raw)
    return ModuleManifest(
        id=fields.moduleid or module_id,
        platform=platform,
        version=version,
        path=version_dir,
        min_sdk_version=fields.minsdk,
        properties=properties,
    )
