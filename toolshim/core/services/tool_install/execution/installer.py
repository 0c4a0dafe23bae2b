"""
L4 Execution - install orchestration.

Ties the pieces together for one ``provider:source[:version]`` request:

    catalog releases → match_version → assets/builds → match_asset/match_build
    → download → extract_file → copy into installs dir → create_shim

Network access goes through the catalog clients, which callers (and
tests) can pass in.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from toolshim.core.errors import NotFoundError
from toolshim.core.models.config import ToolshimConfig
from toolshim.core.models.tool import InstallResult, ToolSpec
from toolshim.core.services.tool_install.catalogs.github import GithubClient, normalize_repo
from toolshim.core.services.tool_install.catalogs.hashicorp import HashicorpClient
from toolshim.core.services.tool_install.detection.platform import current_arch, current_os
from toolshim.core.services.tool_install.domain.asset_match import (
    derive_base_name,
    match_asset,
    match_build,
)
from toolshim.core.services.tool_install.domain.version_match import (
    is_latest_request,
    match_version,
    tags_look_like_versions,
    toggle_v_prefix,
)
from toolshim.core.services.tool_install.execution.archives import extract_file
from toolshim.core.services.tool_install.execution.shims import create_shim

logger = logging.getLogger(__name__)


def copy_executable(source: Path, dest: Path) -> Path:
    """Copy ``source`` to ``dest`` with mode 0755.

    Missing parent directories are created with mode 0700. The copy
    does not inherit the source file's permissions.
    """
    if not source.is_file():
        raise FileNotFoundError(f"cannot install {source}: no such file")
    if not dest.parent.exists():
        logger.debug("creating directory %s", dest.parent)
        dest.parent.mkdir(mode=0o700, parents=True)
    logger.debug("copying %s to %s", source, dest)
    with open(source, "rb") as src, open(dest, "wb") as out:
        shutil.copyfileobj(src, out)
    dest.chmod(0o755)
    return dest


def _not_found_version(spec: ToolSpec, releases) -> NotFoundError:
    message = f"no release of {spec.source} matches version {spec.version!r}"
    if releases and not tags_look_like_versions(releases):
        message += " (none of its release tags contain a version number)"
    return NotFoundError(message)


# ── GitHub ──────────────────────────────────────────────────────


def _resolve_github_tag(spec: ToolSpec, github: GithubClient) -> str:
    if is_latest_request(spec.version):
        return github.latest_release_tag(spec.source)
    releases = github.list_releases(spec.source)
    if not releases:
        raise NotFoundError(f"{spec.source} has no releases")
    tag, found = match_version(spec.version, releases)
    if not found:
        raise _not_found_version(spec, releases)
    return tag


def _install_github(
    spec: ToolSpec,
    github: GithubClient,
    os_name: str,
    arch: str,
    work_dir: Path,
) -> tuple[str, str, Path]:
    owner_repo = normalize_repo(spec.source)
    tag = _resolve_github_tag(spec, github)
    logger.info("installing %s release %s", owner_repo, tag)

    assets = github.list_assets(owner_repo, tag)
    match = match_asset(assets, os_name, arch)
    if match is None:
        raise NotFoundError(
            f"no asset found matching GitHub repository {owner_repo}, tag {tag}, "
            f"OS {os_name}, and architecture {arch}"
        )

    downloaded = github.download(match.asset, work_dir)
    result = extract_file(downloaded)
    tool_name = derive_base_name(
        match.asset.name, match.os_token, match.arch_token, tag, toggle_v_prefix(tag)
    )
    if not result.extracted:
        return tool_name, tag, downloaded

    repo_name = owner_repo.rsplit("/", 1)[-1]
    extracted = {f.name: f for f in result.files}
    for candidate in (tool_name, repo_name):
        if candidate in extracted:
            return candidate, tag, extracted[candidate]
    raise NotFoundError(
        f"{match.asset.name} does not contain {tool_name!r} or {repo_name!r}; it has: "
        + ", ".join(sorted(f.name for f in result.files))
    )


# ── HashiCorp ───────────────────────────────────────────────────


def _install_hashicorp(
    spec: ToolSpec,
    hashicorp: HashicorpClient,
    os_name: str,
    arch: str,
    work_dir: Path,
) -> tuple[str, str, Path]:
    tool_name = spec.source
    release = hashicorp.release_for_version(tool_name, spec.version)
    if release is None:
        raise NotFoundError(f"no release of HashiCorp {tool_name} matches version {spec.version!r}")
    logger.info("installing HashiCorp %s %s", tool_name, release.version)

    build = match_build(release.builds, os_name, arch)
    if build is None:
        raise NotFoundError(
            f"no build found matching HashiCorp product {tool_name}, version {release.version}, "
            f"OS {os_name}, and architecture {arch}"
        )

    downloaded = hashicorp.download(build, work_dir)
    result = extract_file(downloaded)
    if not result.extracted:
        return tool_name, release.version, downloaded
    extracted = {f.name: f for f in result.files}
    if tool_name not in extracted:
        raise NotFoundError(f"{build.file_name} does not contain {tool_name!r}")
    return tool_name, release.version, extracted[tool_name]


# ── Entry point ─────────────────────────────────────────────────


def install_tool(
    spec: ToolSpec | str,
    config: ToolshimConfig,
    *,
    github: GithubClient | None = None,
    hashicorp: HashicorpClient | None = None,
    os_name: str | None = None,
    arch: str | None = None,
) -> InstallResult:
    """Install one tool version and make sure its shim exists.

    Args:
        spec: Parsed spec, or a ``provider:source[:version]`` string.
        config: Install and shim locations, catalog settings.
        github: GitHub client (default: built from ``config.github``).
        hashicorp: HashiCorp client (default: built from ``config.hashicorp``).
        os_name: Target OS (default: this machine).
        arch: Target architecture (default: this machine).

    Raises:
        ToolSpecError: If ``spec`` is a string that does not parse.
        NotFoundError: If no release, asset or build matches.
        CatalogError: On unexpected catalog responses.
        ArchiveError: If the download cannot be extracted.
    """
    if isinstance(spec, str):
        spec = ToolSpec.parse(spec)
    os_name = (os_name or current_os()).lower()
    arch = (arch or current_arch()).lower()
    logger.debug("installing %s:%s version %r for %s/%s", spec.provider, spec.source, spec.version, os_name, arch)

    with tempfile.TemporaryDirectory(prefix="toolshim-") as tmp:
        work_dir = Path(tmp)
        if spec.provider == "github":
            client = github or GithubClient(config.github)
            tool_name, version, binary = _install_github(spec, client, os_name, arch, work_dir)
        else:
            client = hashicorp or HashicorpClient(config.hashicorp)
            tool_name, version, binary = _install_hashicorp(spec, client, os_name, arch, work_dir)

        install_path = config.tool_dir(tool_name) / version / tool_name
        copy_executable(binary, install_path)

    shim = create_shim(tool_name, config)
    logger.info("installed %s %s at %s", tool_name, version, install_path)
    return InstallResult(
        tool_name=tool_name,
        version=version,
        binary_path=install_path,
        shim_path=shim,
    )
