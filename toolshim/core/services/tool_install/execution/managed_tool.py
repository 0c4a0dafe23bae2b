"""
L4 Execution - installed tools and running them through shims.

Install layout::

    <installs_dir>/<tool>/<version>/<tool>

The version a shim runs is chosen by ``TOOLSHIM_<TOOL>`` or the nearest
``.tool-versions`` file; ``latest`` means the newest installed version.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

from toolshim.core.config.loader import PROG_NAME
from toolshim.core.config.tool_versions import find_tool_version
from toolshim.core.errors import NotFoundError, ToolshimError, UninstallError
from toolshim.core.models.config import ToolshimConfig
from toolshim.core.services.tool_install.domain.version_match import LATEST, toggle_v_prefix
from toolshim.core.services.tool_install.domain.version_sort import sort_versions
from toolshim.core.services.tool_install.execution.shims import remove_shim

logger = logging.getLogger(__name__)


def run_command(argv: Sequence[str], env: Mapping[str, str] | None = None) -> None:
    """Replace the current process with ``argv``.

    ``argv[0]`` is looked up on ``PATH`` unless it contains a path
    separator. Only returns by raising.

    Raises:
        NotFoundError: If the command cannot be found.
    """
    command = argv[0]
    resolved = command if os.sep in command else shutil.which(command)
    if not resolved:
        raise NotFoundError(f"{command}: command not found")
    logger.debug("going to exec %s for command %s", resolved, command)
    os.execve(resolved, list(argv), dict(os.environ if env is None else env))


class ManagedTool:
    """A tool toolshim has installed one or more versions of."""

    def __init__(
        self,
        name: str,
        config: ToolshimConfig,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.name = name
        self.config = config
        self.env = os.environ if env is None else env

    def __repr__(self) -> str:
        return f"ManagedTool({self.name!r})"

    @property
    def tool_dir(self) -> Path:
        return self.config.tool_dir(self.name)

    def env_var_name(self) -> str:
        """``TOOLSHIM_<NAME>``, upper-cased with ``-`` as ``_``."""
        return f"{self.config.env_prefix}_{self.name.upper().replace('-', '_')}"

    # ── Versions ────────────────────────────────────────────────

    def installed_versions(self) -> list[str]:
        """Installed versions, oldest first."""
        if not self.tool_dir.is_dir():
            return []
        versions = [p.name for p in self.tool_dir.iterdir() if p.is_dir()]
        return sort_versions(versions)

    def latest_installed_version(self) -> str | None:
        versions = self.installed_versions()
        if not versions:
            logger.debug("no versions of %s are installed", self.name)
            return None
        logger.debug("the latest installed version of %s is %s", self.name, versions[-1])
        return versions[-1]

    def desired_version(self, cwd: Path | None = None) -> str | None:
        """The version configured for this tool, or None.

        The environment variable wins over ``.tool-versions``.
        """
        var = self.env_var_name()
        version = self.env.get(var, "")
        if not version:
            logger.debug("%s is not set, looking in .tool-versions files", var)
            version = find_tool_version(self.name, cwd) or ""
        if not version:
            logger.debug("no desired version specified for %s", self.name)
            return None
        logger.debug("desired version %r specified for %s", version, self.name)
        if version.lower() == LATEST:
            return self.latest_installed_version()
        return version

    def path(self, version: str) -> Path | None:
        """Installed binary for ``version``, tried with and without a ``v``."""
        for candidate in (version, toggle_v_prefix(version)):
            binary = self.tool_dir / candidate / self.name
            if binary.exists():
                logger.debug("found %s %s at %s", self.name, version, binary)
                return binary
        logger.debug("version %r of %s is not installed", version, self.name)
        return None

    def select_version(self, cwd: Path | None = None) -> str:
        """The version a shim should run.

        Raises:
            ToolshimError: If several versions are installed and none is
                configured.
            NotFoundError: If nothing is installed.
        """
        version = self.desired_version(cwd)
        if version:
            return version
        installed = self.installed_versions()
        if len(installed) > 1:
            raise ToolshimError(
                f"please specify which version of {self.name} you would like to run, "
                f"by setting the {self.env_var_name()} environment variable to a valid "
                'version, or to "latest" to use the latest installed version.'
            )
        if not installed:
            raise NotFoundError(f"no versions of {self.name} are installed by {PROG_NAME}")
        logger.debug("selecting the only available version %s of %s", installed[0], self.name)
        return installed[0]

    # ── Actions ─────────────────────────────────────────────────

    def run(self, args: Sequence[str], cwd: Path | None = None) -> None:
        """Exec the selected version of this tool with ``args``."""
        version = self.select_version(cwd)
        binary = self.path(version)
        if binary is None:
            raise NotFoundError(
                f"version {version} of {self.name} is not installed by {PROG_NAME}, "
                f"please see the `{PROG_NAME} install` command to install it"
            )
        run_command([str(binary), *args])

    def uninstall_version(self, version: str) -> bool:
        """Remove one version and its directory.

        Returns:
            False if the version was not installed.
        """
        binary = self.path(version)
        if binary is None:
            logger.debug("version %s of %s is not installed, nothing to uninstall", version, self.name)
            return False
        logger.debug("removing %s", binary.parent)
        shutil.rmtree(binary.parent)
        return True

    def uninstall_all(self) -> list[str]:
        """Remove every installed version, the tool directory and the shim.

        Failures for individual versions are collected and raised
        together after all versions were tried.

        Returns:
            The versions that were removed.

        Raises:
            UninstallError: If any version could not be removed.
        """
        versions = self.installed_versions()
        if not versions:
            logger.debug("no versions of %s are installed, nothing to uninstall", self.name)
            return []

        removed: list[str] = []
        failures: list[str] = []
        for version in versions:
            try:
                if self.uninstall_version(version):
                    removed.append(version)
            except OSError as e:
                logger.debug("error uninstalling %s %s: %s", self.name, version, e)
                failures.append(f"uninstalling {self.name} {version}: {e}")
        if failures:
            raise UninstallError(self.name, failures)

        try:
            self.tool_dir.rmdir()
        except OSError as e:
            # Left alone when it holds files toolshim did not put there.
            logger.debug("cannot remove directory %s after removing %s: %s", self.tool_dir, self.name, e)

        try:
            remove_shim(self.name, self.config)
        except OSError as e:
            raise UninstallError(self.name, [f"unable to remove shim: {e}"]) from e
        return removed


def list_installed_tools(config: ToolshimConfig) -> list[str]:
    """Names of tools with at least one installed version, sorted.

    A missing installs directory means no tools.
    """
    if not config.installs_dir.is_dir():
        return []
    names = [
        p.name
        for p in config.installs_dir.iterdir()
        if p.is_dir() and ManagedTool(p.name, config).installed_versions()
    ]
    return sorted(names)
