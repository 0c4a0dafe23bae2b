"""
Tests for install orchestration with in-memory catalog clients.
"""

import gzip
import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from toolshim.core.errors import NotFoundError, ToolSpecError
from toolshim.core.models.release import AssetRecord, BuildRecord, ReleaseRecord
from toolshim.core.services.tool_install.catalogs.hashicorp import HashicorpRelease
from toolshim.core.services.tool_install.execution.installer import copy_executable, install_tool

TOOL_BYTES = b"#!/bin/sh\necho installed\n"


def tar_gz(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return gzip.compress(buf.getvalue())


def zipped(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


class FakeGithub:
    """Stands in for GithubClient; ``payloads`` maps asset name → bytes."""

    def __init__(self, tags, assets, payloads, latest=None):
        self.releases = [ReleaseRecord(display_name=t, tag=t) for t in tags]
        self.assets = [AssetRecord(name=n, locator=f"https://dl.test/{n}") for n in assets]
        self.payloads = payloads
        self.latest = latest
        self.downloaded: list[str] = []

    def latest_release_tag(self, owner_repo):
        return self.latest

    def list_releases(self, owner_repo):
        return self.releases

    def list_assets(self, owner_repo, tag):
        return self.assets

    def download(self, asset, dest_dir=None):
        self.downloaded.append(asset.name)
        path = Path(dest_dir) / asset.name
        path.write_bytes(self.payloads[asset.name])
        return path


class FakeHashicorp:
    def __init__(self, release, payload):
        self._release = release
        self.payload = payload
        self.requested: list[str] = []

    def release_for_version(self, name, version):
        self.requested.append(version)
        return self._release

    def download(self, build, dest_dir=None):
        path = Path(dest_dir) / build.file_name
        path.write_bytes(self.payload)
        return path


RBAC_ASSETS = [
    "checksums.txt",
    "rbac-lookup_0.9.0_Darwin_x86_64.tar.gz",
    "rbac-lookup_0.9.0_Linux_x86_64.tar.gz",
]


@pytest.fixture
def rbac_github() -> FakeGithub:
    payload = tar_gz({"LICENSE": b"Apache", "rbac-lookup": TOOL_BYTES})
    return FakeGithub(
        tags=["v0.8.0", "v0.9.0"],
        assets=RBAC_ASSETS,
        payloads={name: payload for name in RBAC_ASSETS},
        latest="v0.9.0",
    )


# ── GitHub ──────────────────────────────────────────────────────


class TestInstallGithub:
    def test_latest_archive(self, config, executable, rbac_github):
        result = install_tool(
            "github:fairwindsops/rbac-lookup", config,
            github=rbac_github, os_name="linux", arch="amd64",
        )

        assert result.tool_name == "rbac-lookup"
        assert result.version == "v0.9.0"
        assert result.binary_path == config.installs_dir / "rbac-lookup" / "v0.9.0" / "rbac-lookup"
        assert result.binary_path.read_bytes() == TOOL_BYTES
        assert result.binary_path.stat().st_mode & 0o777 == 0o755
        assert result.shim_path.is_symlink()
        assert result.shim_path.resolve() == executable.resolve()
        assert rbac_github.downloaded == ["rbac-lookup_0.9.0_Linux_x86_64.tar.gz"]

    def test_install_dirs_are_private(self, config, rbac_github):
        result = install_tool(
            "github:fairwindsops/rbac-lookup", config,
            github=rbac_github, os_name="linux", arch="amd64",
        )
        assert result.binary_path.parent.stat().st_mode & 0o777 == 0o700

    def test_darwin_arm64_uses_amd64_asset(self, config, rbac_github):
        install_tool(
            "gh:github.com/fairwindsops/rbac-lookup:0.9.0", config,
            github=rbac_github, os_name="darwin", arch="arm64",
        )
        assert rbac_github.downloaded == ["rbac-lookup_0.9.0_Darwin_x86_64.tar.gz"]

    def test_partial_version(self, config):
        assets = ["prme-linux-amd64"]
        github = FakeGithub(
            tags=["v2.0.0", "v1.0.1", "v1.0.0"],
            assets=assets,
            payloads={"prme-linux-amd64": TOOL_BYTES},
        )
        result = install_tool("github:owner/prme:1.0", config, github=github, os_name="linux", arch="amd64")

        # not an archive: the download itself is the binary
        assert result.tool_name == "prme"
        assert result.version == "v1.0.1"
        assert (config.installs_dir / "prme" / "v1.0.1" / "prme").read_bytes() == TOOL_BYTES

    def test_derived_name_from_archive(self, config):
        asset = "prme_1.0.0_linux_x86_64.tar.gz"
        github = FakeGithub(
            tags=["v1.0.0"],
            assets=[asset],
            payloads={asset: tar_gz({"prme_1.0.0_linux_x86_64/prme": TOOL_BYTES})},
            latest="v1.0.0",
        )
        result = install_tool("github:someone/prme-cli", config, github=github, os_name="linux", arch="amd64")
        assert result.tool_name == "prme"

    def test_archive_without_binary(self, config):
        asset = "tool_linux_amd64.zip"
        github = FakeGithub(
            tags=["1.0"], assets=[asset], payloads={asset: zipped({"README": b"x"})}, latest="1.0",
        )
        with pytest.raises(NotFoundError, match="README"):
            install_tool("github:o/tool", config, github=github, os_name="linux", arch="amd64")

    def test_version_not_found(self, config, rbac_github):
        with pytest.raises(NotFoundError, match="'7'"):
            install_tool(
                "github:fairwindsops/rbac-lookup:7", config,
                github=rbac_github, os_name="linux", arch="amd64",
            )

    def test_tags_without_digits_are_reported(self, config):
        github = FakeGithub(tags=["nightly", "stable"], assets=[], payloads={})
        with pytest.raises(NotFoundError, match="none of its release tags contain a version number"):
            install_tool("github:o/tool:1.0", config, github=github, os_name="linux", arch="amd64")

    def test_no_asset_for_platform(self, config, rbac_github):
        with pytest.raises(NotFoundError, match="OS freebsd, and architecture amd64"):
            install_tool(
                "github:fairwindsops/rbac-lookup", config,
                github=rbac_github, os_name="freebsd", arch="amd64",
            )

    def test_bad_spec(self, config):
        with pytest.raises(ToolSpecError):
            install_tool("rbac-lookup", config)

    def test_reinstall_keeps_shim(self, config, rbac_github):
        kwargs = dict(github=rbac_github, os_name="linux", arch="amd64")
        install_tool("github:fairwindsops/rbac-lookup:0.8.0", config, **kwargs)
        result = install_tool("github:fairwindsops/rbac-lookup", config, **kwargs)
        assert sorted(p.name for p in (config.installs_dir / "rbac-lookup").iterdir()) == ["v0.8.0", "v0.9.0"]
        assert result.shim_path.is_symlink()


# ── HashiCorp ───────────────────────────────────────────────────


class TestInstallHashicorp:
    def _release(self) -> HashicorpRelease:
        return HashicorpRelease(
            version="1.2.3",
            builds=[
                BuildRecord(os="darwin", arch="amd64", locator="https://dl.test/terraform_1.2.3_darwin_amd64.zip"),
                BuildRecord(os="linux", arch="amd64", locator="https://dl.test/terraform_1.2.3_linux_amd64.zip"),
            ],
        )

    def test_install(self, config):
        hashicorp = FakeHashicorp(self._release(), zipped({"terraform": TOOL_BYTES}))
        result = install_tool("hashi:terraform:1.2", config, hashicorp=hashicorp, os_name="linux", arch="amd64")

        assert hashicorp.requested == ["1.2"]
        assert result.tool_name == "terraform"
        assert result.version == "1.2.3"
        assert result.binary_path.read_bytes() == TOOL_BYTES
        assert result.shim_path == config.shims_dir / "terraform"

    def test_release_not_found(self, config):
        hashicorp = FakeHashicorp(None, b"")
        with pytest.raises(NotFoundError, match="terraform"):
            install_tool("hashicorp:terraform:0.1", config, hashicorp=hashicorp, os_name="linux", arch="amd64")

    def test_no_build_for_platform(self, config):
        hashicorp = FakeHashicorp(self._release(), b"")
        with pytest.raises(NotFoundError, match="OS windows"):
            install_tool("hashicorp:terraform", config, hashicorp=hashicorp, os_name="windows", arch="amd64")


class TestCopyExecutable:
    def test_copy(self, tmp_path):
        src = tmp_path / "src"
        src.write_bytes(TOOL_BYTES)
        src.chmod(0o600)
        dest = copy_executable(src, tmp_path / "a" / "b" / "tool")
        assert dest.read_bytes() == TOOL_BYTES
        assert dest.stat().st_mode & 0o777 == 0o755

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            copy_executable(tmp_path / "nope", tmp_path / "dest")
