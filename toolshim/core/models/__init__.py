"""
Domain models for toolshim.

    from toolshim.core.models import ReleaseRecord, AssetRecord, BuildRecord, ToolSpec
"""

from toolshim.core.models.config import (
    GithubClientConfig,
    HashicorpClientConfig,
    ToolshimConfig,
)
from toolshim.core.models.release import AssetRecord, BuildRecord, ReleaseRecord
from toolshim.core.models.tool import InstallResult, ToolSpec

__all__ = [
    "AssetRecord",
    "BuildRecord",
    "GithubClientConfig",
    "HashicorpClientConfig",
    "InstallResult",
    "ReleaseRecord",
    "ToolSpec",
    "ToolshimConfig",
]
