"""
L1 Domain - Version ordering (pure).

Orders version-like strings for "pick the newest" decisions.
No I/O, no subprocess.

Versions are semver-shaped: ``v?N(.N)*`` followed by an optional
pre-release (``-rc1``, ``-nightly``, ``-dev.3``, ``beta2``) and optional
``+build`` metadata. Only the numeric release part goes through
``packaging``; pre-release identifiers are compared the semver way.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

_EMPTY_VERSION = "0.0.0"

_SEMVER_RE = re.compile(
    r"^v?(?P<release>\d+(?:\.\d+)*)"
    r"(?:-(?P<pre>[0-9A-Za-z~][0-9A-Za-z.\-~]*)|(?P<pre_nodash>[A-Za-z~][0-9A-Za-z.\-~]*))?"
    r"(?:\+(?P<meta>[0-9A-Za-z.\-~]+))?$"
)


@dataclass(frozen=True, order=True)
class ParsedVersion:
    """Sort key for one version string.

    A pre-release sorts before the release it leads up to. Build
    metadata is kept for display but never affects ordering.
    """

    release: Version
    is_final: bool
    prerelease: tuple[tuple[int, int, str], ...]
    text: str = field(compare=False)
    metadata: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.text


def _prerelease_key(prerelease: str) -> tuple[tuple[int, int, str], ...]:
    # Numeric identifiers compare as numbers and sort before alphanumeric ones.
    key = []
    for ident in prerelease.split("."):
        if ident.isdigit():
            key.append((0, int(ident), ""))
        else:
            key.append((1, 0, ident))
    return tuple(key)


def parse_version(value: str) -> ParsedVersion:
    """Parse a version string; an empty string is ``0.0.0``.

    Raises:
        InvalidVersion: If the string does not look like a version.
    """
    text = value.strip() or _EMPTY_VERSION
    match = _SEMVER_RE.match(text)
    if not match:
        raise InvalidVersion(f"Invalid version: {value!r}")
    prerelease = match.group("pre") or match.group("pre_nodash") or ""
    return ParsedVersion(
        release=Version(match.group("release")),
        is_final=not prerelease,
        prerelease=_prerelease_key(prerelease) if prerelease else (),
        text=text,
        metadata=match.group("meta") or "",
    )


def sort_versions(versions: list[str]) -> list[str]:
    """Return ``versions`` in ascending order.

    Every entry is parsed with ``parse_version``. If any single entry
    fails to parse, the whole list is sorted as plain strings instead,
    so two orderings are never mixed. Empty strings sort as ``0.0.0``
    but are returned as-is.

    The input list is not modified.
    """
    logger.debug("sorting %d versions: %s", len(versions), versions)
    keyed: list[tuple[ParsedVersion, str]] = []
    for index, value in enumerate(versions):
        if not value:
            logger.debug("the version at index %d is empty, sorting it as %s", index, _EMPTY_VERSION)
        try:
            keyed.append((parse_version(value), value))
        except InvalidVersion:
            logger.debug(
                "using string-sort - %r can't be parsed as a version, "
                "probably because it starts with extraneous text",
                value,
            )
            return sorted(versions)

    ordered = [value for _, value in sorted(keyed)]
    logger.debug("sorted versions are: %s", ordered)
    return ordered


def newest_version(versions: list[str]) -> str | None:
    """Last entry after ``sort_versions``, or None for an empty list."""
    if not versions:
        return None
    return sort_versions(versions)[-1]
