"""
GitHub releases catalog client.

Endpoints used (relative to ``api_host``):
    /repos/{owner}/{repo}
    /repos/{owner}/{repo}/releases?per_page=N&page=P
    /repos/{owner}/{repo}/releases/latest
    /repos/{owner}/{repo}/releases/tags/{tag}
"""

from __future__ import annotations

import logging
import tempfile
import urllib.parse
from pathlib import Path

from toolshim.core.errors import CatalogError, NotFoundError
from toolshim.core.models.config import GithubClientConfig
from toolshim.core.models.release import AssetRecord, ReleaseRecord
from toolshim.core.services.tool_install.catalogs.http import download_to, get_json

logger = logging.getLogger(__name__)


def normalize_repo(source: str) -> str:
    """``github.com/owner/repo`` → ``owner/repo``."""
    return source.replace("github.com/", "", 1).strip("/")


class GithubClient:
    """Reads releases and downloads assets from the GitHub API."""

    def __init__(self, config: GithubClientConfig | None = None) -> None:
        self.config = config or GithubClientConfig()

    # ── Requests ────────────────────────────────────────────────

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {"Accept": accept}
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"
        return headers

    def _get(self, uri: str) -> tuple[int, object]:
        if not uri.startswith("/"):
            uri = "/" + uri
        url = self.config.api_host.rstrip("/") + uri
        return get_json(url, self._headers(), timeout=self.config.timeout)

    def _get_ok(self, uri: str) -> object:
        status, data = self._get(uri)
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        return data

    # ── Queries ─────────────────────────────────────────────────

    def repo_exists(self, owner_repo: str) -> bool:
        owner_repo = normalize_repo(owner_repo)
        uri = f"/repos/{owner_repo}"
        status, _ = self._get(uri)
        if status == 200:
            return True
        if status == 404:
            return False
        raise CatalogError(f"HTTP {status} for {uri}")

    def _require_repo(self, owner_repo: str) -> None:
        if not self.repo_exists(owner_repo):
            raise NotFoundError(f"No such GitHub repository {owner_repo!r}")

    def list_releases(self, owner_repo: str) -> list[ReleaseRecord]:
        """Every release of a repository, newest first as the API orders them.

        Follows pages of ``page_size`` until an empty or short page, or
        until ``max_pages`` pages were read.

        Raises:
            NotFoundError: If the repository does not exist.
            CatalogError: On any other unexpected response.
        """
        owner_repo = normalize_repo(owner_repo)
        self._require_repo(owner_repo)
        releases: list[ReleaseRecord] = []
        for page in range(1, self.config.max_pages + 1):
            uri = f"/repos/{owner_repo}/releases?per_page={self.config.page_size}&page={page}"
            data = self._get_ok(uri)
            if not isinstance(data, list):
                raise CatalogError(f"Unexpected response for {uri}: expected a list of releases")
            for item in data:
                releases.append(
                    ReleaseRecord(
                        display_name=item.get("name") or "",
                        tag=item.get("tag_name") or "",
                        is_prerelease=bool(item.get("prerelease", False)),
                    )
                )
            if len(data) < self.config.page_size:
                break
        logger.debug("fetched %d releases of %s", len(releases), owner_repo)
        return releases

    def latest_release_tag(self, owner_repo: str) -> str:
        """Tag of the release GitHub marks as latest.

        Raises:
            NotFoundError: If the repository or its latest release is missing.
        """
        owner_repo = normalize_repo(owner_repo)
        self._require_repo(owner_repo)
        uri = f"/repos/{owner_repo}/releases/latest"
        status, data = self._get(uri)
        if status == 404:
            raise NotFoundError(f"{owner_repo} has no latest release")
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not tag:
            raise CatalogError("the GitHub API did not return tag_name")
        logger.debug("latest release of %s is %s", owner_repo, tag)
        return tag

    def list_assets(self, owner_repo: str, tag: str) -> list[AssetRecord]:
        """Downloadable assets of the release with ``tag``.

        Raises:
            NotFoundError: If there is no release with that tag.
            CatalogError: If the release has no assets.
        """
        owner_repo = normalize_repo(owner_repo)
        uri = f"/repos/{owner_repo}/releases/tags/{urllib.parse.quote(tag, safe='')}"
        status, data = self._get(uri)
        if status == 404:
            raise NotFoundError(f"No release of {owner_repo} is tagged {tag!r}")
        if status != 200:
            raise CatalogError(f"HTTP {status} for {uri}")
        assets = [
            AssetRecord(
                name=item.get("name", ""),
                locator=item.get("url") or item.get("browser_download_url") or "",
            )
            for item in (data or {}).get("assets", [])
        ]
        if not assets:
            raise CatalogError(f"Release {tag} of {owner_repo} has no assets")
        logger.debug("release %s of %s has %d assets", tag, owner_repo, len(assets))
        return assets

    # ── Download ────────────────────────────────────────────────

    def download(self, asset: AssetRecord, dest_dir: Path | None = None) -> Path:
        """Download an asset into ``dest_dir`` (default: a new temp dir)."""
        if dest_dir is None:
            dest_dir = Path(tempfile.mkdtemp(prefix="toolshim-"))
        dest = Path(dest_dir) / Path(asset.name).name
        logger.debug("downloading GitHub asset %s to %s", asset.name, dest)
        return download_to(
            asset.locator,
            dest,
            self._headers(accept="application/octet-stream"),
            timeout=self.config.timeout,
        )
