"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from toolshim.core.models.config import ToolshimConfig

_TOOLSHIM_ENV_VARS = (
    "TOOLSHIM_INSTALLS_DIR",
    "TOOLSHIM_SHIMS_DIR",
    "TOOLSHIM_DEBUG",
    "TOOLSHIM_LOG_LEVEL",
    "TOOLSHIM_LOG_FILE",
    "TOOLSHIM_LOG_FILE_LEVEL",
    "GH_TOKEN",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's toolshim settings out of every test."""
    for name in _TOOLSHIM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the handlers setup_logging() installs."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def executable(tmp_path: Path) -> Path:
    """A stand-in for the installed toolshim executable."""
    path = tmp_path / "opt" / "toolshim"
    path.parent.mkdir(parents=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def config(tmp_path: Path, executable: Path) -> ToolshimConfig:
    """Configuration rooted in a temporary directory."""
    return ToolshimConfig(
        installs_dir=tmp_path / "installs",
        shims_dir=tmp_path / "shims",
        executable=executable,
    )


def fake_install(config: ToolshimConfig, tool: str, version: str) -> Path:
    """Lay out an installed tool version the way the installer does."""
    binary = config.tool_dir(tool) / version / tool
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_text(f"#!/bin/sh\necho {tool} {version}\n")
    binary.chmod(0o755)
    return binary
