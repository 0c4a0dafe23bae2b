"""
Tool specification and install results.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from toolshim.core.errors import ToolSpecError

PROVIDER_ALIASES: dict[str, str] = {
    "github": "github",
    "gh": "github",
    "hashicorp": "hashicorp",
    "hashi": "hashicorp",
}


class ToolSpec(BaseModel):
    """What the user asked to install: ``provider:source[:version]``."""

    provider: str
    source: str
    version: str = ""

    @classmethod
    def parse(cls, spec: str) -> ToolSpec:
        """Parse a colon-separated tool specification.

        Raises:
            ToolSpecError: On too few or too many components, or an
                unknown provider.
        """
        fields = spec.split(":")
        if len(fields) > 3:
            raise ToolSpecError(
                f"The tool specification {spec!r} has too many components - please "
                "supply a colon-separated provider, source, and optional version."
            )
        if len(fields) < 2:
            raise ToolSpecError(
                f"The tool specification {spec!r} does not have enough components - "
                "please supply a colon-separated provider, source, and optional version."
            )
        provider = fields[0].lower()
        if provider not in PROVIDER_ALIASES:
            raise ToolSpecError(f"Unknown tool provider {fields[0]!r}")
        if not fields[1]:
            raise ToolSpecError(f"The tool specification {spec!r} has an empty source.")
        return cls(
            provider=PROVIDER_ALIASES[provider],
            source=fields[1],
            version=fields[2] if len(fields) == 3 else "",
        )


@dataclass
class InstallResult:
    """Outcome of a successful install."""

    tool_name: str
    version: str
    binary_path: Path
    shim_path: Path

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "tool": self.tool_name,
            "version": self.version,
            "binary": str(self.binary_path),
            "shim": str(self.shim_path),
        }
