"""Configuration

Settings and credentials are read from environment variables:

    WP_URL                   Site URL (required unless mock mode)
    WP_USERNAME              User for application password auth
    WP_APP_PASSWORD          Application password
    WP_BEARER_TOKEN          Bearer token, used instead of the two above
    WP_VERIFY_SSL            "true" (default) / "false"
    WP_REQUESTS_PER_SECOND   REST rate limit (default 5)
    RELATION_WRITE_ATTEMPTS  Attempts per metadata write (default 3)
    RELATION_FIELDS          JSON list of relation field options
    RELATION_MOCK_MODE       "true" to use the in-memory store
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = [{"name": "related_post", "label": "Related post"}]


class CredentialsError(Exception):
    """Raised when WordPress credentials are missing or incomplete."""

    pass


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


def get_bearer_token() -> Optional[str]:
    """Return the configured bearer token, if any."""
    token = os.environ.get("WP_BEARER_TOKEN", "").strip()
    return token or None


def get_wordpress_credentials() -> Tuple[str, str]:
    """Return (username, application password) from the environment.

    Raises:
        CredentialsError: If either value is missing
    """
    username = os.environ.get("WP_USERNAME", "").strip()
    password = os.environ.get("WP_APP_PASSWORD", "").strip()
    missing = [name for name, value in (("WP_USERNAME", username), ("WP_APP_PASSWORD", password)) if not value]
    if missing:
        raise CredentialsError(f"Missing WordPress credentials: {', '.join(missing)}")
    return username, password


class Settings(BaseModel):
    """Runtime settings for the relation server."""

    wp_url: Optional[str] = Field(default=None, description="WordPress site URL")
    verify_ssl: bool = Field(default=True)
    requests_per_second: float = Field(default=5.0, gt=0)
    write_attempts: int = Field(default=3, ge=1)
    mock_mode: bool = Field(default=False)
    relation_fields: List[Dict[str, Any]] = Field(default_factory=lambda: list(DEFAULT_FIELDS))

    @field_validator('wp_url')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError(f"WP_URL must start with http:// or https://, got {v}")
        return v.rstrip('/') if v else v

    @classmethod
    def from_env(cls) -> "Settings":
        raw_fields = os.environ.get("RELATION_FIELDS")
        fields = list(DEFAULT_FIELDS)
        if raw_fields:
            try:
                fields = json.loads(raw_fields)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in RELATION_FIELDS: {e}")
            if not isinstance(fields, list):
                raise ValueError("RELATION_FIELDS must be a JSON list of field options")

        settings = cls(
            wp_url=os.environ.get("WP_URL") or None,
            verify_ssl=_env_flag("WP_VERIFY_SSL", True),
            requests_per_second=float(os.environ.get("WP_REQUESTS_PER_SECOND", "5")),
            write_attempts=int(os.environ.get("RELATION_WRITE_ATTEMPTS", "3")),
            mock_mode=_env_flag("RELATION_MOCK_MODE", False),
            relation_fields=fields,
        )
        logger.debug(f"Loaded settings: mock_mode={settings.mock_mode}, fields={[f.get('name') for f in settings.relation_fields]}")
        return settings
