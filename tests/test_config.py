"""Tests for credential and settings resolution."""

import os
import stat
import sys

import pytest

from pypublish.config import DEFAULT_API_URL, Config

ENV_VARS = (
    "PUBLISH_SITE",
    "INPUT_SITE",
    "PUBLISH_TOKEN",
    "INPUT_TOKEN",
    "PUBLISH_API_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without credentials in the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cfg(tmp_path):
    """Create a Config rooted in a temporary directory."""
    return Config(config_dir=tmp_path / "pypublish")


class TestEnvironment:
    """Tests for environment variable lookup."""

    def test_nothing_configured(self, cfg):
        """Test that nothing is found without env vars or file."""
        assert cfg.site_id is None
        assert cfg.token is None
        assert not cfg.is_configured()
        assert cfg.api_url == DEFAULT_API_URL

    def test_publish_variables(self, cfg, monkeypatch):
        """Test the PUBLISH_* variables."""
        monkeypatch.setenv("PUBLISH_SITE", "site-1")
        monkeypatch.setenv("PUBLISH_TOKEN", "token-1")

        assert cfg.site_id == "site-1"
        assert cfg.token == "token-1"
        assert cfg.is_configured()

    def test_action_input_variables(self, cfg, monkeypatch):
        """Test the INPUT_* variables set for workflow inputs."""
        monkeypatch.setenv("INPUT_SITE", " site-2 ")
        monkeypatch.setenv("INPUT_TOKEN", "token-2")

        assert cfg.site_id == "site-2"
        assert cfg.token == "token-2"

    def test_publish_variables_win(self, cfg, monkeypatch):
        """Test that PUBLISH_* is preferred over INPUT_*."""
        monkeypatch.setenv("PUBLISH_SITE", "site-1")
        monkeypatch.setenv("INPUT_SITE", "site-2")

        assert cfg.site_id == "site-1"

    def test_api_url_override(self, cfg, monkeypatch):
        """Test the API URL variable, without trailing slash."""
        monkeypatch.setenv("PUBLISH_API_URL", "http://localhost:8080/api/")

        assert cfg.api_url == "http://localhost:8080/api"


class TestConfigFile:
    """Tests for the config file."""

    def test_read_values(self, cfg):
        """Test KEY=value parsing with comments and quotes."""
        cfg.config_dir.mkdir()
        cfg.config_file.write_text(
            "# saved by pypublish init\n"
            "\n"
            "PUBLISH_SITE=file-site\n"
            'PUBLISH_TOKEN="file-token"\n'
            "not a setting\n"
        )

        assert cfg.site_id == "file-site"
        assert cfg.token == "file-token"

    def test_environment_wins_over_file(self, cfg, monkeypatch):
        """Test that environment variables take precedence."""
        cfg.config_dir.mkdir()
        cfg.config_file.write_text("PUBLISH_SITE=file-site\n")
        monkeypatch.setenv("PUBLISH_SITE", "env-site")

        assert cfg.site_id == "env-site"

    def test_save_credentials(self, cfg):
        """Test that saved credentials are read back."""
        cfg.save_credentials("saved-site", "saved-token")

        assert cfg.get_config_path() == cfg.config_file
        assert cfg.site_id == "saved-site"
        assert cfg.token == "saved-token"

    def test_save_keeps_other_keys(self, cfg):
        """Test that saving does not drop an API URL override."""
        cfg.config_dir.mkdir()
        cfg.config_file.write_text("PUBLISH_API_URL=http://localhost/api\n")

        cfg.save_credentials("saved-site", "saved-token")

        assert cfg.api_url == "http://localhost/api"
        assert cfg.site_id == "saved-site"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_saved_file_private(self, cfg):
        """Test that the file holding the token is owner-only."""
        cfg.save_credentials("saved-site", "saved-token")

        mode = stat.S_IMODE(cfg.config_file.stat().st_mode)
        assert mode == 0o600

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_saved_file_private_with_open_umask(self, cfg):
        """Test that the file is never created readable by others."""
        old_umask = os.umask(0)
        try:
            cfg.save_credentials("saved-site", "saved-token")
        finally:
            os.umask(old_umask)

        mode = stat.S_IMODE(cfg.config_file.stat().st_mode)
        assert mode == 0o600

    def test_file_created_with_private_mode(self, cfg, monkeypatch):
        """Test that the token file is opened with mode 0600 from the start."""
        modes = []
        original_open = os.open

        def recording_open(path, flags, mode=0o777):
            modes.append(mode)
            return original_open(path, flags, mode)

        monkeypatch.setattr("pypublish.config.os.open", recording_open)

        cfg.save_credentials("saved-site", "saved-token")

        assert modes == [0o600]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_existing_file_made_private(self, cfg):
        """Test that a pre-existing readable file is tightened."""
        cfg.config_dir.mkdir()
        cfg.config_file.write_text("PUBLISH_API_URL=http://localhost/api\n")
        cfg.config_file.chmod(0o644)

        cfg.save_credentials("saved-site", "saved-token")

        mode = stat.S_IMODE(cfg.config_file.stat().st_mode)
        assert mode == 0o600
        assert cfg.token == "saved-token"
