"""
Tests for shim symlink management.
"""

import pytest

from toolshim.core.errors import ShimError
from toolshim.core.services.tool_install.execution.shims import create_shim, remove_shim


class TestCreateShim:
    def test_creates_dir_and_symlink(self, config, executable):
        shim = create_shim("jq", config)
        assert shim == config.shims_dir / "jq"
        assert shim.is_symlink()
        assert shim.resolve() == executable.resolve()
        assert config.shims_dir.stat().st_mode & 0o777 == 0o700

    def test_existing_correct_shim(self, config):
        first = create_shim("jq", config)
        assert create_shim("jq", config) == first

    def test_regular_file_in_the_way(self, config):
        config.shims_dir.mkdir(parents=True)
        (config.shims_dir / "jq").write_text("not a shim")
        with pytest.raises(ShimError, match="should be a symlink"):
            create_shim("jq", config)

    def test_symlink_to_something_else(self, config, tmp_path):
        config.shims_dir.mkdir(parents=True)
        other = tmp_path / "other"
        other.write_text("")
        (config.shims_dir / "jq").symlink_to(other)
        with pytest.raises(ShimError, match="already exists but points to"):
            create_shim("jq", config)


class TestRemoveShim:
    def test_remove(self, config):
        create_shim("jq", config)
        assert remove_shim("jq", config)
        assert not (config.shims_dir / "jq").exists()

    def test_remove_missing(self, config):
        assert not remove_shim("jq", config)

    def test_remove_dangling(self, config, tmp_path):
        config.shims_dir.mkdir(parents=True)
        (config.shims_dir / "jq").symlink_to(tmp_path / "gone")
        assert remove_shim("jq", config)
        assert not (config.shims_dir / "jq").is_symlink()
