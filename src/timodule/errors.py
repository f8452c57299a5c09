"""Error hierarchy for the timodule package."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "ModuleError",
    "ConfigNotFoundError",
    "ConfigError",
    "SearchPathNotFoundError",
    "ArchiveError",
    "ManifestError",
    "InvalidVersionError",
    "InvalidInputError",
    "ErrorCodes",
]


class ModuleError(Exception):
    """Base error for all timodule errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(ModuleError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(ModuleError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class SearchPathNotFoundError(ModuleError):
    """Raised when a module search root does not exist or is not a directory."""

    def __init__(self, search_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="SEARCH_PATH_NOT_FOUND",
            message=f"Module search path not found: {search_path}",
            details={"search_path": search_path},
            **kwargs,
        )

    @property
    def search_path(self) -> str:
        """The search root that could not be scanned."""
        return self.details["search_path"]


class ArchiveError(ModuleError):
    """Raised when a packaged module archive is corrupt or cannot be extracted."""

    def __init__(self, archive_path: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="ARCHIVE_INVALID",
            message=f"Invalid module archive '{archive_path}': {reason}",
            details={"archive_path": archive_path, "reason": reason},
            **kwargs,
        )

    @property
    def archive_path(self) -> str:
        """Path of the archive that failed."""
        return self.details["archive_path"]


class ManifestError(ModuleError):
    """Raised when a module manifest is missing, unreadable, or malformed."""

    def __init__(self, manifest_path: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="MANIFEST_INVALID",
            message=f"Invalid module manifest '{manifest_path}': {reason}",
            details={"manifest_path": manifest_path, "reason": reason},
            **kwargs,
        )

    @property
    def manifest_path(self) -> str:
        """Path of the offending manifest file."""
        return self.details["manifest_path"]


class InvalidVersionError(ModuleError):
    """Raised when a version string has no numeric components."""

    def __init__(self, version: str, **kwargs: Any) -> None:
        super().__init__(
            code="VERSION_INVALID",
            message=f"Invalid version string: {version!r}",
            details={"version": version},
            **kwargs,
        )


class InvalidInputError(ModuleError):
    """Raised for invalid input."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class ErrorCodes:
    """All timodule error codes as constants.

    Use these instead of hardcoding error code strings.

    Example:
        if error.code == ErrorCodes.ARCHIVE_INVALID:
            handle_bad_archive()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    SEARCH_PATH_NOT_FOUND = "SEARCH_PATH_NOT_FOUND"
    ARCHIVE_INVALID = "ARCHIVE_INVALID"
    MANIFEST_INVALID = "MANIFEST_INVALID"
    VERSION_INVALID = "VERSION_INVALID"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
