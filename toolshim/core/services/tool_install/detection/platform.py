"""
L3 Detection - local platform and PATH probes.

Read-only: ``platform`` and the ``PATH`` environment variable.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from pathlib import Path

# platform.machine() value → release catalog architecture name
_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}


def current_os() -> str:
    """Lower-case OS name as catalogs spell it (``linux``, ``darwin``, ...)."""
    return platform.system().lower()


def current_arch() -> str:
    """Architecture name as catalogs spell it (``amd64``, ``arm64``, ...)."""
    machine = platform.machine().lower()
    return _ARCH_MAP.get(machine, machine)


def current_platform() -> tuple[str, str]:
    return current_os(), current_arch()


def directory_in_path(directory: str | Path, env: Mapping[str, str] | None = None) -> bool:
    """Whether ``directory`` is one of the entries of ``PATH``.

    Entries are compared as absolute paths.
    """
    env = os.environ if env is None else env
    wanted = Path(directory).expanduser().absolute()
    for entry in env.get("PATH", "").split(os.pathsep):
        if entry and Path(entry).expanduser().absolute() == wanted:
            return True
    return False
