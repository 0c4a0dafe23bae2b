"""
Release catalog records.

These are built fresh from each catalog response, handed to the
matchers, and thrown away after one resolution. They are frozen so
that matching can never mutate what it was given.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ReleaseRecord(BaseModel):
    """One published version of a tool.

    ``tag`` is the canonical identifier; it may carry a ``v`` prefix or
    extraneous text such as the repository name (``jq-1.6``), and may be
    empty. ``display_name`` is the human label and can differ entirely.
    """

    model_config = ConfigDict(frozen=True)

    display_name: str = ""
    tag: str = ""
    is_prerelease: bool = False


class AssetRecord(BaseModel):
    """A downloadable file attached to a release.

    OS and architecture are only ever inferred from ``name``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    locator: str = ""   # download URL


class BuildRecord(BaseModel):
    """A downloadable build with explicit OS and architecture fields."""

    model_config = ConfigDict(frozen=True)

    os: str
    arch: str
    locator: str = ""

    @property
    def file_name(self) -> str:
        """Last path component of the download URL."""
        return self.locator.rstrip("/").rsplit("/", 1)[-1]
