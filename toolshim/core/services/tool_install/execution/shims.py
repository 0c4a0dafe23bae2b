"""
L4 Execution - shim symlinks.

Every shim is a symlink named after a tool that points at the toolshim
executable. When run through it, toolshim sees the tool name in
``argv[0]`` and runs the selected version.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from toolshim.core.errors import ShimError
from toolshim.core.models.config import ToolshimConfig

logger = logging.getLogger(__name__)


def create_shim(tool_name: str, config: ToolshimConfig) -> Path:
    """Create the shim for ``tool_name`` unless a correct one exists.

    Returns:
        Path of the shim.

    Raises:
        ShimError: If something other than a symlink is in the way, or
            the existing symlink points somewhere else.
    """
    shims_dir = config.shims_dir
    if not shims_dir.exists():
        logger.debug("creating directory %s", shims_dir)
        shims_dir.mkdir(mode=0o700, parents=True)

    shim = config.shim_path(tool_name)
    executable = Path(config.executable)

    if not shim.is_symlink():
        if shim.exists():
            raise ShimError(
                f"not overwriting existing incorrect shim {shim} which should be a symlink"
            )
        logger.debug("creating shim %s -> %s", shim, executable)
        shim.symlink_to(executable)
        return shim

    target = Path(os.path.realpath(shim))
    if target == Path(os.path.realpath(executable)):
        logger.debug("shim %s already exists", shim)
        return shim
    raise ShimError(f"shim {shim} already exists but points to {target}")


def remove_shim(tool_name: str, config: ToolshimConfig) -> bool:
    """Remove a tool's shim. Returns False if there was none."""
    shim = config.shim_path(tool_name)
    if not shim.is_symlink() and not shim.exists():
        return False
    logger.debug("removing shim %s", shim)
    shim.unlink()
    return True
