"""
``.tool-versions`` lookup - which version of a tool a directory wants.

The file format is shared with asdf: one ``<tool> <version>`` pair per
line, ``#`` starts a comment line. The nearest file that mentions the
tool wins.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TOOL_VERSIONS_FILE = ".tool-versions"


def candidate_dirs(start_dir: Path, root_dir: Path) -> list[Path]:
    """Directories from ``start_dir`` up to and including ``root_dir``.

    Stops at the filesystem root if ``root_dir`` is not an ancestor.
    """
    current = start_dir.resolve()
    root = root_dir.resolve()
    dirs: list[Path] = []
    while True:
        dirs.append(current)
        if current == root or current.parent == current:
            break
        current = current.parent
    return dirs


def read_tool_version(path: Path, tool_name: str) -> str | None:
    """Return the version listed for ``tool_name`` in one file, if any."""
    logger.debug("reading %s for the %s version", path, tool_name)
    for line in path.read_text(encoding="utf-8").splitlines():
        fields = line.split()
        if not fields or fields[0].startswith("#"):
            continue
        if len(fields) != 2:
            logger.debug("skipping line without exactly one version: %r", line)
            continue
        if fields[0] == tool_name:
            logger.debug("found %s %s in %s", tool_name, fields[1], path)
            return fields[1]
    return None


def find_tool_version(
    tool_name: str,
    start_dir: Path | None = None,
    root_dir: Path | None = None,
) -> str | None:
    """Find the desired version of a tool in the nearest ``.tool-versions``.

    Args:
        tool_name: Tool to look up.
        start_dir: Directory to start from (default: cwd).
        root_dir: Last directory to consult (default: filesystem root).

    Returns:
        The version string, or None if no file lists the tool.
    """
    start = start_dir or Path.cwd()
    root = root_dir or Path(start.resolve().anchor)
    for directory in candidate_dirs(start, root):
        path = directory / TOOL_VERSIONS_FILE
        if not path.is_file():
            continue
        version = read_tool_version(path, tool_name)
        if version is not None:
            return version
    logger.debug("no %s file lists %s", TOOL_VERSIONS_FILE, tool_name)
    return None
