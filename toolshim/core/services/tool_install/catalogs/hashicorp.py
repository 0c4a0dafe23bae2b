"""
HashiCorp releases catalog client.

Endpoints used (relative to ``api_host``):
    /v1/products
    /v1/releases/{product}/{version}        version may be ``latest``
    /v1/releases/{product}?limit=N&after=T  newest first, paged by timestamp

Pagination is explicit: ``fetch_releases`` takes a cursor and returns
the next one in its ``ReleasePage``. The client holds no cursor state.
"""

from __future__ import annotations

import logging
import tempfile
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path

from toolshim.core.errors import CatalogError, NotFoundError
from toolshim.core.models.config import HashicorpClientConfig
from toolshim.core.models.release import BuildRecord, ReleaseRecord
from toolshim.core.services.tool_install.catalogs.http import download_to, get_json
from toolshim.core.services.tool_install.domain.version_match import (
    LATEST,
    is_latest_request,
    match_version,
)

logger = logging.getLogger(__name__)


@dataclass
class HashicorpRelease:
    """One product release with its per-platform builds."""

    version: str
    builds: list[BuildRecord] = field(default_factory=list)
    timestamp_created: str = ""
    is_prerelease: bool = False

    @classmethod
    def from_api(cls, data: dict) -> HashicorpRelease:
        return cls(
            version=data.get("version") or "",
            builds=[
                BuildRecord(os=b.get("os", ""), arch=b.get("arch", ""), locator=b.get("url", ""))
                for b in data.get("builds") or []
            ],
            timestamp_created=data.get("timestamp_created") or "",
            is_prerelease=bool(data.get("is_prerelease", False)),
        )

    def to_record(self) -> ReleaseRecord:
        return ReleaseRecord(
            display_name=self.version,
            tag=self.version,
            is_prerelease=self.is_prerelease,
        )


@dataclass
class ReleasePage:
    """One page of releases and the cursor for the page after it."""

    releases: list[HashicorpRelease]
    next_cursor: str | None = None


class HashicorpClient:
    """Reads product releases and downloads builds from releases.hashicorp.com."""

    def __init__(self, config: HashicorpClientConfig | None = None) -> None:
        self.config = config or HashicorpClientConfig()

    def _get(self, uri: str) -> tuple[int, object]:
        url = self.config.api_host.rstrip("/") + uri
        return get_json(url, {"Accept": "application/json"}, timeout=self.config.timeout)

    # ── Queries ─────────────────────────────────────────────────

    def product_exists(self, name: str) -> bool:
        uri = "/v1/products"
        status, data = self._get(uri)
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        if not data:
            raise CatalogError("the HashiCorp API did not return any products")
        return any(name.lower() == str(product).lower() for product in data)

    def release(self, name: str, version: str) -> HashicorpRelease | None:
        """Fetch one release by exact version; None when it does not exist.

        Raises:
            CatalogError: On an unexpected status or an incomplete release.
        """
        uri = f"/v1/releases/{name}/{urllib.parse.quote(version, safe='')}"
        status, data = self._get(uri)
        if status == 404:
            logger.debug("HashiCorp %s version %r not found", name, version)
            return None
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        release = HashicorpRelease.from_api(data or {})
        if not release.version or not release.builds:
            raise CatalogError("the HashiCorp API did not return the expected fields")
        return release

    def latest_release(self, name: str) -> HashicorpRelease:
        release = self.release(name, LATEST)
        if release is None:
            raise NotFoundError(f"HashiCorp product {name} has no latest release")
        return release

    def fetch_releases(self, name: str, cursor: str | None = None) -> ReleasePage:
        """Fetch one page of releases, newest first.

        Args:
            name: Product name.
            cursor: ``timestamp_created`` of the oldest release on the
                previous page, or None for the first page.
        """
        uri = f"/v1/releases/{name}?limit={self.config.page_size}"
        if cursor:
            uri += "&after=" + urllib.parse.quote(cursor, safe="")
        logger.debug("fetching HashiCorp %s releases with %s", name, uri)
        status, data = self._get(uri)
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        releases = [HashicorpRelease.from_api(item) for item in data or []]
        logger.debug("fetched %d releases", len(releases))
        next_cursor = (releases[-1].timestamp_created or None) if releases else None
        return ReleasePage(releases=releases, next_cursor=next_cursor)

    def release_for_version(self, name: str, version: str) -> HashicorpRelease | None:
        """Resolve a version request to one release.

        ``""``/``latest`` use the latest endpoint. Otherwise the exact
        version is tried first, then pages of releases are matched with
        ``match_version`` until one matches or the pages run out.

        Raises:
            NotFoundError: If the product does not exist.
        """
        logger.debug("getting HashiCorp %s release for version %r", name, version)
        if not self.product_exists(name):
            raise NotFoundError(f"No such HashiCorp product {name!r}")
        if is_latest_request(version):
            return self.latest_release(name)

        release = self.release(name, version)
        if release is not None:
            return release

        cursor: str | None = None
        for _ in range(self.config.max_pages):
            page = self.fetch_releases(name, cursor)
            if not page.releases:
                break
            tag, found = match_version(version, [r.to_record() for r in page.releases])
            if found:
                return next(r for r in page.releases if r.version == tag)
            if page.next_cursor is None or page.next_cursor == cursor:
                break
            cursor = page.next_cursor
        logger.debug("no HashiCorp %s release matched %r", name, version)
        return None

    # ── Download ────────────────────────────────────────────────

    def download(self, build: BuildRecord, dest_dir: Path | None = None) -> Path:
        """Download a build into ``dest_dir`` (default: a new temp dir)."""
        if dest_dir is None:
            dest_dir = Path(tempfile.mkdtemp(prefix="toolshim-"))
        dest = Path(dest_dir) / build.file_name
        logger.debug("downloading HashiCorp build %s to %s", build.locator, dest)
        return download_to(build.locator, dest, timeout=self.config.timeout)
