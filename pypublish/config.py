"""Configuration management for PyPublish.

Credentials are resolved from environment variables first and from the
config file in ``~/.config/pypublish/config`` second. The file holds
simple ``KEY=value`` lines.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://publish-01.obsidian.md/api"

SITE_ENV_VARS = ("PUBLISH_SITE", "INPUT_SITE")
TOKEN_ENV_VARS = ("PUBLISH_TOKEN", "INPUT_TOKEN")
API_URL_ENV_VAR = "PUBLISH_API_URL"

_SITE_KEY = "PUBLISH_SITE"
_TOKEN_KEY = "PUBLISH_TOKEN"
_API_URL_KEY = "PUBLISH_API_URL"


def _first_env(names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value.strip()
    return None


class Config:
    """Resolves publish site credentials and API settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file
                (default: ~/.config/pypublish)
        """
        self.config_dir = config_dir or Path.home() / ".config" / "pypublish"
        self.config_file = self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        """Read KEY=value pairs from the config file."""
        values: dict[str, str] = {}
        if not self.config_file.exists():
            return values

        try:
            content = self.config_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read config file %s: %s", self.config_file, e)
            return values

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip().strip("\"'")
        return values

    @property
    def site_id(self) -> Optional[str]:
        """Site identifier from the environment or config file."""
        return _first_env(SITE_ENV_VARS) or self._read_file().get(_SITE_KEY)

    @property
    def token(self) -> Optional[str]:
        """Access token from the environment or config file."""
        return _first_env(TOKEN_ENV_VARS) or self._read_file().get(_TOKEN_KEY)

    @property
    def api_url(self) -> str:
        """Base URL of the publish API."""
        return (
            os.environ.get(API_URL_ENV_VAR)
            or self._read_file().get(_API_URL_KEY)
            or DEFAULT_API_URL
        ).rstrip("/")

    def is_configured(self) -> bool:
        """Check whether both credentials are available."""
        return bool(self.site_id and self.token)

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_file

    def save_credentials(self, site_id: str, token: str) -> None:
        """Store credentials in the config file.

        The file is created with owner-only permissions since it holds the
        access token. Other keys already present in the file are kept.

        Args:
            site_id: Site identifier
            token: Access token
        """
        values = self._read_file()
        values[_SITE_KEY] = site_id
        values[_TOKEN_KEY] = token

        self.config_dir.mkdir(parents=True, exist_ok=True)
        lines = [f"{key}={value}" for key, value in values.items()]
        # An existing file keeps its mode through O_TRUNC
        if self.config_file.exists():
            self.config_file.chmod(0o600)
        fd = os.open(self.config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        logger.debug("Saved credentials to %s", self.config_file)


config = Config()
