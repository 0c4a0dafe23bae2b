"""
L1 Domain - Version request matching (pure).

Resolves a loosely written version request (``""``, ``latest``,
``v1.2.3``, ``1.2``, a release title, ...) against the releases of a
catalog and picks exactly one tag. No I/O; the only optional
collaborator is a ``latest`` callable supplied by the caller.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence

from toolshim.core.models.release import ReleaseRecord
from toolshim.core.services.tool_install.domain.version_sort import sort_versions

logger = logging.getLogger(__name__)

LATEST = "latest"

PRERELEASE_MARKERS = ("-rc", "-alpha", "-beta")

# Leading name/separator run before the first version-looking digits,
# e.g. "jq-" in "jq-1.6" or "tool_" in "tool_v2.0".
_TAG_PREFIX_RE = re.compile(r"^[A-Za-z_\-]*?(?=v?\d)")

# A number that stands on its own, not a run of digits inside a hash.
_VERSION_RUN_RE = re.compile(r"(?:^|[^0-9A-Za-z])v?\d+(?:\.\d+)*(?![0-9A-Za-z])")


def is_latest_request(request: str) -> bool:
    return not request.strip() or request.strip().lower() == LATEST


def toggle_v_prefix(value: str) -> str:
    """Remove a leading ``v``/``V`` if present, otherwise add ``v``."""
    if value[:1].lower() == "v":
        return value[1:]
    return "v" + value


def is_prerelease(release: ReleaseRecord) -> bool:
    """Whether a release is flagged, or tagged, as a pre-release."""
    if release.is_prerelease:
        return True
    tag = release.tag.lower()
    return any(marker in tag for marker in PRERELEASE_MARKERS)


def strip_tag_prefix(tag: str) -> str:
    """Drop a leading non-numeric run such as a repository name."""
    return _TAG_PREFIX_RE.sub("", tag, count=1)


def tag_for_exact_tag(releases: Sequence[ReleaseRecord], wanted: str) -> str | None:
    """Tag of the first release whose tag equals ``wanted`` (any case)."""
    wanted_lc = wanted.lower()
    for release in releases:
        if release.tag and release.tag.lower() == wanted_lc:
            logger.debug("found tag %r for release %r", release.tag, release.display_name)
            return release.tag
    return None


def tag_for_release_name(releases: Sequence[ReleaseRecord], wanted: str) -> str | None:
    """Tag of the first release whose display name equals ``wanted``."""
    wanted_lc = wanted.lower()
    for release in releases:
        if release.tag and release.display_name.lower() == wanted_lc:
            logger.debug("found release name %r with tag %r", release.display_name, release.tag)
            return release.tag
    return None


def _scan_newest_first(
    tags: list[str],
    request_lc: str,
    transform: Callable[[str], str],
) -> str | None:
    for tag in reversed(tags):
        candidate = transform(tag).lower()
        if candidate.startswith(request_lc) or candidate.startswith("v" + request_lc):
            return tag
    return None


def match_partial_version(
    request: str,
    releases: Sequence[ReleaseRecord],
) -> tuple[str, bool]:
    """Match a version prefix such as ``3.0`` to the newest ``3.0.x`` tag.

    Pre-releases and empty tags never match. Tags are ordered with
    ``sort_versions`` and scanned newest first. When nothing matches
    directly, the scan is repeated with a leading name stripped from
    each tag so ``jq-1.6`` can satisfy ``1.6``.

    Returns:
        ``(tag, True)`` on a match, ``("", False)`` otherwise.
    """
    logger.debug("matching tag from partial version %r", request)
    tags: list[str] = []
    for release in releases:
        if not release.tag:
            continue
        if is_prerelease(release):
            logger.debug("skipping pre-release tag %r", release.tag)
            continue
        tags.append(release.tag)

    ordered = sort_versions(tags)
    request_lc = request.strip().lower()

    tag = _scan_newest_first(ordered, request_lc, lambda t: t)
    if tag is None:
        logger.debug("no direct partial match for %r, retrying without tag prefixes", request)
        tag = _scan_newest_first(ordered, request_lc, strip_tag_prefix)

    if tag is None:
        logger.debug("no partial match for %r", request)
        return "", False
    logger.debug("matched tag %r for partial version %r", tag, request)
    return tag, True


def match_version(
    request: str,
    releases: Sequence[ReleaseRecord],
    latest: Callable[[], str | None] | None = None,
) -> tuple[str, bool]:
    """Resolve a version request to exactly one release tag.

    Strategies, first success wins:

    1. empty or ``latest``: the catalog's ``latest`` lookup when given,
       otherwise the newest non-pre-release tag
    2. tag equals the request
    3. tag equals the request with its ``v`` prefix toggled
    4. release name equals the request
    5. release name equals the request with its ``v`` prefix toggled
    6. partial version prefix (see ``match_partial_version``)

    All comparisons ignore case.

    Returns:
        ``(tag, True)`` on a match, ``("", False)`` otherwise.
    """
    logger.debug("finding tag for version %r among %d releases", request, len(releases))
    request = request.strip()

    if is_latest_request(request):
        if latest is not None:
            tag = latest()
            if tag:
                logger.debug("catalog reports latest tag %r", tag)
                return tag, True
        return match_partial_version("", releases)

    toggled = toggle_v_prefix(request)
    for lookup, wanted in (
        (tag_for_exact_tag, request),
        (tag_for_exact_tag, toggled),
        (tag_for_release_name, request),
        (tag_for_release_name, toggled),
    ):
        tag = lookup(releases, wanted)
        if tag is not None:
            return tag, True

    return match_partial_version(request, releases)


def tags_look_like_versions(releases: Sequence[ReleaseRecord]) -> bool:
    """Whether at least one tag carries a version number.

    ``v1.2``, ``jq-1.6`` and ``1.0.3rc1`` do; commit hashes such as
    ``abc123f`` do not.
    """
    return any(_VERSION_RUN_RE.search(r.tag) for r in releases)
