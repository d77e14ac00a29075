"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., ADMIN_API_KEY)
  2. File-based env var (e.g., ADMIN_API_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., ADMIN_API_KEY)
        file_env_var: File path env var name (e.g., ADMIN_API_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    value = os.environ.get(env_var)
    if value:
        return value

    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error("Secret file not found: %s (from %s)", file_path, file_env_var)
        except PermissionError:
            logger.error("Permission denied reading: %s (from %s)", file_path, file_env_var)

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Database
        self.database_url = self._build_database_url()

        # Blob storage
        self.upload_dir = Path(os.environ.get("UPLOAD_DIR", "uploads"))
        self.max_upload_bytes = int(
            os.environ.get("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
        )

        # HTTP
        self.host = os.environ.get("HOST", "0.0.0.0")
        self.port = int(os.environ.get("PORT", "3000"))
        self.cors_origins = [
            origin.strip()
            for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        self._admin_api_key: str | None = None

    def _build_database_url(self) -> str:
        """Build async database URL with password from secrets."""
        base_url = os.environ.get(
            "DATABASE_URL", "postgresql+asyncpg://docs@postgres:5432/patient_portal"
        )
        try:
            password = _read_secret("POSTGRES_PASSWORD")
            # postgresql+asyncpg://user@host → user:pass@host
            if "://" in base_url and "@" in base_url:
                scheme_user, rest = base_url.split("@", 1)
                if ":" not in scheme_user.split("://")[1]:
                    base_url = f"{scheme_user}:{password}@{rest}"
        except ValueError:
            logger.warning("POSTGRES_PASSWORD not set, using DATABASE_URL as-is")
        return base_url

    @property
    def admin_api_key(self) -> str:
        if self._admin_api_key is None:
            self._admin_api_key = _read_secret("ADMIN_API_KEY")
        return self._admin_api_key


settings = Settings()
