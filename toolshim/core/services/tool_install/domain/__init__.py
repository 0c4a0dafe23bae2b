"""
L1 Domain - pure version and platform matching.

Nothing in this package performs I/O.
"""

from toolshim.core.services.tool_install.domain.asset_match import (
    AssetMatch,
    derive_base_name,
    match_asset,
    match_build,
)
from toolshim.core.services.tool_install.domain.version_match import (
    is_prerelease,
    match_partial_version,
    match_version,
    toggle_v_prefix,
)
from toolshim.core.services.tool_install.domain.version_sort import sort_versions

__all__ = [
    "AssetMatch",
    "derive_base_name",
    "is_prerelease",
    "match_asset",
    "match_build",
    "match_partial_version",
    "match_version",
    "sort_versions",
    "toggle_v_prefix",
]
