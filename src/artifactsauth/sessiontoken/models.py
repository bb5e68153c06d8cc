from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SessionTokenType(str, Enum):
    """Kinds of session token the service can issue."""

    COMPACT = "Compact"  # personal access token
    SELF_DESCRIBING = "SelfDescribing"  # JWT


class SessionTokenRequest(BaseModel):
    """Body of a session-token request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    display_name: str
    scope: str
    valid_to: datetime | None = None

    def without_expiry(self) -> SessionTokenRequest:
        """Return a copy that lets the service choose the token lifetime."""
        return self.model_copy(update={"valid_to": None})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class SessionTokenResponse(BaseModel):
    """The part of the service's reply this package uses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    token: str
