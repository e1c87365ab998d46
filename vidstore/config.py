"""Server configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


class ConfigError(Exception):
    """A required setting is missing."""


@dataclass(frozen=True)
class ApiConfig:
    """Settings the HTTP server runs with."""

    db_path: str
    jwt_secret: str
    platform: str
    filepath_root: str
    assets_root: str
    s3_bucket: str
    s3_region: str
    s3_cf_distribution: str
    port: str

    def ensure_assets_dir(self) -> None:
        """Create the assets directory if it does not exist yet."""
        if not os.path.exists(self.assets_root):
            os.mkdir(self.assets_root, 0o755)

    def asset_disk_path(self, asset_path: str) -> str:
        """Return where an asset is stored on disk."""
        return os.path.join(self.assets_root, asset_path)

    def asset_url(self, asset_path: str) -> str:
        """Return the URL an asset is served from."""
        return f"http://localhost:{self.port}/assets/{asset_path}"


_REQUIRED = (
    ("DB_PATH", "db_path", "DB_URL must be set"),
    ("JWT_SECRET", "jwt_secret", "JWT_SECRET environment variable is not set"),
    ("PLATFORM", "platform", "PLATFORM environment variable is not set"),
    ("FILEPATH_ROOT", "filepath_root", "FILEPATH_ROOT environment variable is not set"),
    ("ASSETS_ROOT", "assets_root", "ASSETS_ROOT environment variable is not set"),
    ("S3_BUCKET", "s3_bucket", "S3_BUCKET environment variable is not set"),
    ("S3_REGION", "s3_region", "S3_REGION environment variable is not set"),
    ("S3_CF_DISTRO", "s3_cf_distribution", "S3_CF_DISTRO environment variable is not set"),
    ("PORT", "port", "PORT environment variable is not set"),
)


def load_config(environ: Optional[Mapping[str, str]] = None) -> ApiConfig:
    """Build the configuration from environment variables; every one is required."""
    if environ is None:
        environ = os.environ
    values = {}
    for variable, attribute, message in _REQUIRED:
        value = environ.get(variable, "")
        if not value:
            raise ConfigError(message)
        values[attribute] = value
    return ApiConfig(**values)