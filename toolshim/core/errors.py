"""
Error hierarchy for toolshim.

Pure matchers never raise for "nothing matched"; they return a
not-found value and the orchestration layer raises ``NotFoundError``
with a message that names what was searched for.
"""

from __future__ import annotations

from pathlib import Path


class ToolshimError(Exception):
    """Base class for every error toolshim raises on purpose."""


class ConfigError(ToolshimError):
    """Raised when toolshim configuration is invalid."""


class ToolSpecError(ToolshimError):
    """Raised when a ``provider:source[:version]`` string cannot be parsed."""


class NotFoundError(ToolshimError):
    """No release, asset, build or installed version matched a request."""


class CatalogError(ToolshimError):
    """A remote release catalog returned an unexpected response."""


class ArchiveError(ToolshimError):
    """Extraction failed part-way or hit an unsupported archive member.

    ``files_written`` lists files that were already extracted before the
    failure. They are left on disk.
    """

    def __init__(self, message: str, files_written: list[Path] | None = None) -> None:
        super().__init__(message)
        self.files_written: list[Path] = list(files_written or [])

    @property
    def partial(self) -> bool:
        """Whether anything was written before the failure."""
        return bool(self.files_written)


class ShimError(ToolshimError):
    """A shim could not be created because something else is in the way."""


class UninstallError(ToolshimError):
    """One or more versions of a tool could not be removed."""

    def __init__(self, tool_name: str, failures: list[str]) -> None:
        self.tool_name = tool_name
        self.failures = failures
        super().__init__(
            f"{len(failures)} error(s) uninstalling {tool_name}: " + "; ".join(failures)
        )
