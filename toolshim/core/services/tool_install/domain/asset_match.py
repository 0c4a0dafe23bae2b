"""
L1 Domain - Platform asset matching (pure).

Picks the one release asset (or structured build) for an OS and
architecture, and derives a clean tool name from the chosen asset's
file name. No I/O.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from toolshim.core.models.release import AssetRecord, BuildRecord

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Alias tables
# ═══════════════════════════════════════════════════════════════════

# Tried in order after the primary token. "universal" stays last.
ARCH_ALIASES: dict[str, tuple[str, ...]] = {
    "amd64": ("x86_64", "64bit", "64-bit", "universal"),
    "arm64": ("aarch64",),
}

OS_ALIASES: dict[str, tuple[str, ...]] = {
    "darwin": ("macos", "osx", "apple-darwin"),
}

LINUX64_TOKEN = "linux64"

ARCHIVE_SUFFIXES = (
    ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz",
    ".tar", ".zip", ".gz", ".bz2", ".xz",
)

_VERSION_SUFFIX_RE = re.compile(r"[-_]v?\d.*$")
_SEPARATOR_RE = re.compile(r"[-_]")


@dataclass(frozen=True)
class AssetMatch:
    """A matched asset and the literal name fragments that matched.

    ``os_token`` and ``arch_token`` are sliced from the asset's real
    name, so they keep its original case. ``arch`` is the architecture
    that actually matched, which is ``amd64`` after the darwin/arm64
    fallback.
    """

    asset: AssetRecord
    os_token: str
    arch_token: str
    arch: str


# ═══════════════════════════════════════════════════════════════════
#  Token search
# ═══════════════════════════════════════════════════════════════════


def find_token(name: str, primary: str, aliases: Sequence[str] = ()) -> str | None:
    """Return the first of ``primary``/``aliases`` found in ``name``.

    The search ignores case; the returned string is the matching slice
    of ``name`` itself.
    """
    name_lc = name.lower()
    for candidate in (primary, *aliases):
        index = name_lc.find(candidate.lower())
        if index > -1:
            matched = name[index:index + len(candidate)]
            logger.debug("matched substring %r at index %d in %r", matched, index, name)
            return matched
    return None


def _equals_one_of(value: str, primary: str, aliases: Sequence[str]) -> bool:
    value_lc = value.lower()
    return any(value_lc == candidate.lower() for candidate in (primary, *aliases))


def _is_rosetta_candidate(os_lc: str, arch_lc: str) -> bool:
    return os_lc == "darwin" and arch_lc == "arm64"


# ═══════════════════════════════════════════════════════════════════
#  Matching
# ═══════════════════════════════════════════════════════════════════


def match_asset(
    assets: Sequence[AssetRecord],
    os_name: str,
    arch: str,
) -> AssetMatch | None:
    """Select the first asset whose name mentions both OS and architecture.

    Assets are scanned in the order given. Alias tables widen what
    counts as a mention. ``linux``/``amd64`` additionally accepts the
    combined ``linux64`` token. On darwin/arm64 with no match the whole
    search is repeated for amd64, which runs under Rosetta.

    Returns:
        The match, or None when no asset fits.
    """
    os_lc = os_name.lower()
    arch_lc = arch.lower()
    os_aliases = OS_ALIASES.get(os_lc, ())
    arch_aliases = ARCH_ALIASES.get(arch_lc, ())

    for asset in assets:
        os_token = find_token(asset.name, os_lc, os_aliases)
        arch_token = find_token(asset.name, arch_lc, arch_aliases) if os_token else None
        if os_token and arch_token:
            logger.debug("matched asset %r for OS %r and arch %r", asset.name, os_name, arch)
            return AssetMatch(asset=asset, os_token=os_token, arch_token=arch_token, arch=arch_lc)

        if os_lc == "linux" and arch_lc == "amd64":
            combined = find_token(asset.name, LINUX64_TOKEN)
            if combined:
                logger.debug("matched asset %r on the combined %r token", asset.name, combined)
                return AssetMatch(asset=asset, os_token=combined, arch_token=combined, arch=arch_lc)

    if _is_rosetta_candidate(os_lc, arch_lc):
        logger.debug("no darwin/arm64 asset found, trying darwin/amd64")
        return match_asset(assets, os_name, "amd64")

    logger.debug("no asset matched OS %r and arch %r", os_name, arch)
    return None


def match_build(
    builds: Sequence[BuildRecord],
    os_name: str,
    arch: str,
) -> BuildRecord | None:
    """Select the first build whose ``os`` and ``arch`` fields fit.

    Fields are compared for case-insensitive equality with the target
    or one of its aliases. Same darwin/arm64 fallback as ``match_asset``.
    """
    os_lc = os_name.lower()
    arch_lc = arch.lower()
    os_aliases = OS_ALIASES.get(os_lc, ())
    arch_aliases = ARCH_ALIASES.get(arch_lc, ())

    for build in builds:
        if _equals_one_of(build.os, os_lc, os_aliases) and _equals_one_of(
            build.arch, arch_lc, arch_aliases
        ):
            logger.debug("matched build %s/%s at %s", build.os, build.arch, build.locator)
            return build

    if _is_rosetta_candidate(os_lc, arch_lc):
        logger.debug("no darwin/arm64 build found, trying darwin/amd64")
        return match_build(builds, os_name, "amd64")

    logger.debug("no build matched OS %r and arch %r", os_name, arch)
    return None


# ═══════════════════════════════════════════════════════════════════
#  Name derivation
# ═══════════════════════════════════════════════════════════════════


def strip_archive_suffix(name: str) -> str:
    name_lc = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if name_lc.endswith(suffix):
            return name[: -len(suffix)]
    return name


def derive_base_name(asset_name: str, *tokens: str) -> str:
    """Derive a tool name from an asset file name.

    Each token (OS, architecture, version tag, ...) is removed in both
    its ``-token`` and ``_token`` forms. A trailing version-looking
    suffix is then cut off; when there is none, the first ``-``/``_``
    separated segment is used.

    >>> derive_base_name("prme_0.0.6_Darwin_x86_64.tar.gz", "Darwin", "x86_64", "0.0.6")
    'prme'
    """
    name = strip_archive_suffix(asset_name)
    for token in tokens:
        if not token:
            continue
        name = name.replace("-" + token, "").replace("_" + token, "")
    logger.debug("asset name %r without tokens %s is %r", asset_name, tokens, name)

    trimmed = _VERSION_SUFFIX_RE.sub("", name, count=1)
    if trimmed != name and trimmed:
        logger.debug("trimmed version suffix: %r", trimmed)
        return trimmed

    base = _SEPARATOR_RE.split(name, maxsplit=1)[0] or name
    logger.debug("using first name segment: %r", base)
    return base
