"""
Configuration loader - builds a ToolshimConfig from defaults and the
environment.

There is no configuration file. Overrides come from:

    TOOLSHIM_INSTALLS_DIR   where tool versions are installed
    TOOLSHIM_SHIMS_DIR      where shim symlinks are created
    GH_TOKEN / GITHUB_TOKEN token for the GitHub API
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Mapping
from pathlib import Path

from toolshim.core.errors import ConfigError
from toolshim.core.models.config import GithubClientConfig, ToolshimConfig

logger = logging.getLogger(__name__)

PROG_NAME = "toolshim"


def expand_dir(value: str | Path, label: str) -> Path:
    """Expand ``~`` in a directory setting, rejecting empty values.

    Raises:
        ConfigError: If the value is empty.
    """
    if not str(value).strip():
        raise ConfigError(f"The {label} directory cannot be empty")
    return Path(os.path.expanduser(str(value)))


def find_executable(argv0: str | None = None) -> Path:
    """Locate the toolshim executable that shims should point at."""
    argv0 = argv0 if argv0 is not None else sys.argv[0]
    candidate = Path(argv0)
    if candidate.name == PROG_NAME and candidate.exists():
        return candidate.resolve()
    found = shutil.which(PROG_NAME)
    if found:
        return Path(found).resolve()
    return candidate.resolve()


def load_config(
    env: Mapping[str, str] | None = None,
    *,
    installs_dir: str | Path | None = None,
    shims_dir: str | Path | None = None,
    executable: Path | None = None,
) -> ToolshimConfig:
    """Build the effective configuration.

    Explicit arguments win over environment variables, which win over
    the defaults on ``ToolshimConfig``.

    Raises:
        ConfigError: If a directory setting is empty.
    """
    env = os.environ if env is None else env
    defaults = ToolshimConfig()

    if installs_dir is None:
        installs_dir = env.get("TOOLSHIM_INSTALLS_DIR", defaults.installs_dir)
    if shims_dir is None:
        shims_dir = env.get("TOOLSHIM_SHIMS_DIR", defaults.shims_dir)

    token = env.get("GH_TOKEN") or env.get("GITHUB_TOKEN") or ""

    config = ToolshimConfig(
        installs_dir=expand_dir(installs_dir, "installs"),
        shims_dir=expand_dir(shims_dir, "shims"),
        executable=executable or find_executable(),
        github=GithubClientConfig(token=token),
    )
    logger.debug(
        "config: installs=%s shims=%s executable=%s github_token=%s",
        config.installs_dir,
        config.shims_dir,
        config.executable,
        "set" if token else "unset",
    )
    return config
