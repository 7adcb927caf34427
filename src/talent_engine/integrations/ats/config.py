"""
ATS integration configuration (pydantic-settings, ``ATS_`` prefix).
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from talent_engine.integrations.ats.greenhouse_client import DEFAULT_BASE_URL as GREENHOUSE_BASE_URL
from talent_engine.integrations.bullhorn.client import DEFAULT_AUTH_URL, DEFAULT_BASE_URL


class AtsProviderType(str, Enum):
    BULLHORN = "bullhorn"
    GREENHOUSE = "greenhouse"


class AtsConfig(BaseSettings):
    """ATS provider credentials and endpoints."""

    model_config = SettingsConfigDict(
        env_prefix="ATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bullhorn
    bullhorn_client_id: str = Field(default="", description="Bullhorn OAuth client id")
    bullhorn_client_secret: str = Field(default="", description="Bullhorn OAuth client secret")
    bullhorn_redirect_uri: str = Field(
        default="http://localhost:3000/api/ats/bullhorn/callback",
        description="OAuth redirect URI registered with Bullhorn",
    )
    bullhorn_base_url: str = Field(default=DEFAULT_BASE_URL)
    bullhorn_auth_base_url: str = Field(default=DEFAULT_AUTH_URL)
    bullhorn_refresh_token: str = Field(
        default="",
        description="Stored refresh token used to obtain access tokens",
    )
    bullhorn_test_mode: bool = False
    bullhorn_webhook_secret: str = Field(
        default="",
        description="Expected x-bullhorn-signature header; empty disables the check",
    )

    # Greenhouse
    greenhouse_api_key: str = Field(default="", description="Harvest API key")
    greenhouse_base_url: str = Field(default=GREENHOUSE_BASE_URL)
    greenhouse_on_behalf_of: str = Field(
        default="",
        description="Greenhouse user id sent as On-Behalf-Of for write calls",
    )
    greenhouse_webhook_secret: str = Field(
        default="",
        description="HMAC secret for the Signature header; empty disables the check",
    )

    request_timeout_seconds: float = Field(default=30.0, gt=0)


def get_ats_config() -> AtsConfig:
    return AtsConfig()
