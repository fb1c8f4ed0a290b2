"""Client configuration with environment variable loading.

Pydantic-based configuration for the conversation API client.
Supports both backend protocol variants via WUFFCHAT_API_VERSION.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

SUPPORTED_API_VERSIONS = ("v2", "v3")


class ClientConfig(BaseModel):
    """Configuration for the conversation API client.

    Attributes:
        api_url: Base URL of the conversation backend.
        api_key: Optional key sent as X-API-Key.
        api_version: Protocol variant, "v2" (legacy) or "v3" (current).
    """

    api_url: str = Field(
        default_factory=lambda: os.getenv("WUFFCHAT_API_URL", "http://localhost:8000"),
        description="Base URL of the conversation backend",
    )
    api_key: str | None = Field(
        default_factory=lambda: os.getenv("WUFFCHAT_API_KEY") or None,
        description="Optional API key sent as X-API-Key",
    )
    api_version: str = Field(
        default_factory=lambda: os.getenv("WUFFCHAT_API_VERSION", "v3"),
        description="Backend protocol variant",
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require a non-empty URL and drop any trailing slash."""
        if not v or not v.strip():
            raise ValueError("API URL required. Set WUFFCHAT_API_URL in .env")
        return v.strip().rstrip("/")

    @field_validator("api_key")
    @classmethod
    def blank_api_key_is_none(cls, v: str | None) -> str | None:
        """Treat a blank key as no key."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Accept only the supported protocol variants."""
        version = v.strip().lower()
        if version not in SUPPORTED_API_VERSIONS:
            raise ValueError(
                f"Unsupported API version {v!r}, expected one of {', '.join(SUPPORTED_API_VERSIONS)}"
            )
        return version

    @property
    def is_legacy(self) -> bool:
        return self.api_version == "v2"


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValueError: If the URL is blank or the API version is unsupported.
    """
    return ClientConfig()
