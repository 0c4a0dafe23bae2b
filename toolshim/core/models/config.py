"""
Configuration models.

Plain models with named fields and explicit defaults. Environment
lookup and validation live in ``toolshim.core.config.loader``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_HOME = Path("~/.toolshim")


class GithubClientConfig(BaseModel):
    """Settings for the GitHub releases catalog."""

    api_host: str = "https://api.github.com"
    token: str = ""                 # sent as ``Authorization: token ...`` when set
    timeout: float = 30.0
    page_size: int = 100
    max_pages: int = 10


class HashicorpClientConfig(BaseModel):
    """Settings for the HashiCorp releases catalog."""

    api_host: str = "https://api.releases.hashicorp.com"
    timeout: float = 30.0
    page_size: int = 20
    max_pages: int = 50


class ToolshimConfig(BaseModel):
    """Where tools are installed and where shims live."""

    installs_dir: Path = DEFAULT_HOME / "installs"
    shims_dir: Path = DEFAULT_HOME / "bin"
    executable: Path = Path("toolshim")   # what every shim symlink points at
    env_prefix: str = "TOOLSHIM"

    github: GithubClientConfig = Field(default_factory=GithubClientConfig)
    hashicorp: HashicorpClientConfig = Field(default_factory=HashicorpClientConfig)

    def tool_dir(self, tool_name: str) -> Path:
        """Directory holding every installed version of a tool."""
        return self.installs_dir / tool_name

    def shim_path(self, tool_name: str) -> Path:
        return self.shims_dir / tool_name
