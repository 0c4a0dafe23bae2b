"""
Remote release catalogs (GitHub releases, HashiCorp releases API).
"""

from toolshim.core.services.tool_install.catalogs.github import GithubClient
from toolshim.core.services.tool_install.catalogs.hashicorp import (
    HashicorpClient,
    HashicorpRelease,
    ReleasePage,
)

__all__ = ["GithubClient", "HashicorpClient", "HashicorpRelease", "ReleasePage"]
