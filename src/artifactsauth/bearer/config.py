from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from artifactsauth.sessiontoken.models import SessionTokenType

from .scopes import AZURE_DEVOPS_DEFAULT_SCOPE, VISUAL_STUDIO_CLIENT_ID

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_FLOW_TIMEOUT_SECONDS = 90
DEFAULT_SESSION_TIME_MINUTES = 240


def default_cache_location() -> Path:
    """Return the MSAL cache file shared with other Microsoft developer tools."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    else:
        base = Path.home() / ".local"
    return base / ".IdentityService" / "msal.cache"


class ProviderConfig(BaseSettings):
    """Configuration for bearer-token acquisition and session-token exchange.

    Values are read from the environment automatically; every field also
    accepts its own name as a keyword argument.

    Environment variables:
        - NUGET_CREDENTIALPROVIDER_MSAL_ALLOW_BROKER
        - NUGET_CREDENTIALPROVIDER_MSAL_FILECACHE_ENABLED
        - NUGET_CREDENTIALPROVIDER_MSAL_FILECACHE_LOCATION
        - NUGET_CREDENTIALPROVIDER_MSAL_LOGIN_HINT
        - NUGET_CREDENTIALPROVIDER_MSAL_CLIENT_ID
        - NUGET_CREDENTIALPROVIDER_MSAL_RESOURCE
        - NUGET_CREDENTIALPROVIDER_VSTS_DEVICEFLOWTIMEOUTSECONDS
        - NUGET_CREDENTIALPROVIDER_VSTS_TOKENTYPE
        - NUGET_CREDENTIALPROVIDER_VSTS_SESSIONTIMEMINUTES
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    allow_broker: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "allow_broker", "NUGET_CREDENTIALPROVIDER_MSAL_ALLOW_BROKER"
        ),
    )
    file_cache_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "file_cache_enabled", "NUGET_CREDENTIALPROVIDER_MSAL_FILECACHE_ENABLED"
        ),
    )
    file_cache_location: Path = Field(
        default_factory=default_cache_location,
        validation_alias=AliasChoices(
            "file_cache_location", "NUGET_CREDENTIALPROVIDER_MSAL_FILECACHE_LOCATION"
        ),
    )
    login_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "login_hint", "NUGET_CREDENTIALPROVIDER_MSAL_LOGIN_HINT"
        ),
    )
    client_id: str = Field(
        default=VISUAL_STUDIO_CLIENT_ID,
        validation_alias=AliasChoices(
            "client_id", "NUGET_CREDENTIALPROVIDER_MSAL_CLIENT_ID"
        ),
    )
    resource: str = Field(
        default=AZURE_DEVOPS_DEFAULT_SCOPE,
        validation_alias=AliasChoices(
            "resource", "NUGET_CREDENTIALPROVIDER_MSAL_RESOURCE"
        ),
    )
    device_flow_timeout_seconds: int = Field(
        default=DEFAULT_DEVICE_FLOW_TIMEOUT_SECONDS,
        validation_alias=AliasChoices(
            "device_flow_timeout_seconds",
            "NUGET_CREDENTIALPROVIDER_VSTS_DEVICEFLOWTIMEOUTSECONDS",
        ),
    )
    session_token_type: SessionTokenType = Field(
        default=SessionTokenType.SELF_DESCRIBING,
        validation_alias=AliasChoices(
            "session_token_type", "NUGET_CREDENTIALPROVIDER_VSTS_TOKENTYPE"
        ),
    )
    session_time_minutes: int = Field(
        default=DEFAULT_SESSION_TIME_MINUTES,
        gt=0,
        validation_alias=AliasChoices(
            "session_time_minutes", "NUGET_CREDENTIALPROVIDER_VSTS_SESSIONTIMEMINUTES"
        ),
    )

    @field_validator("device_flow_timeout_seconds", mode="before")
    @classmethod
    def _fallback_device_flow_timeout(cls, v: object) -> int:
        """Fall back to the default timeout instead of failing on bad input."""
        try:
            seconds = int(v)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            seconds = 0
        if seconds <= 0:
            logger.warning(
                "Invalid device flow timeout %r; using the default of %d seconds.",
                v,
                DEFAULT_DEVICE_FLOW_TIMEOUT_SECONDS,
            )
            return DEFAULT_DEVICE_FLOW_TIMEOUT_SECONDS
        return seconds

    @field_validator("login_hint")
    @classmethod
    def _blank_login_hint_is_none(cls, v: str | None) -> str | None:
        return v if v else None

    @property
    def cache_location(self) -> Path | None:
        """The persisted cache file, or ``None`` when only memory is used."""
        return self.file_cache_location if self.file_cache_enabled else None
