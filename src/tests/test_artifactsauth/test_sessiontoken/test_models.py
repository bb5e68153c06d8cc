from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from artifactsauth.sessiontoken.models import (
    SessionTokenRequest,
    SessionTokenResponse,
    SessionTokenType,
)


def test_request__camel_case_wire_names() -> None:
    request = SessionTokenRequest(
        display_name="Provider",
        scope="vso.packaging_write",
        valid_to=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )
    assert set(json.loads(request.to_json())) == {"displayName", "scope", "validTo"}


def test_request__without_expiry_drops_valid_to_only() -> None:
    request = SessionTokenRequest(
        display_name="Provider",
        scope="vso.packaging_write",
        valid_to=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )

    bare = request.without_expiry()

    assert json.loads(bare.to_json()) == {"displayName": "Provider", "scope": "vso.packaging_write"}
    assert request.valid_to is not None


def test_request__is_immutable() -> None:
    request = SessionTokenRequest(display_name="Provider", scope="s")
    with pytest.raises(ValidationError):
        request.scope = "other"


def test_response__ignores_extra_fields() -> None:
    response = SessionTokenResponse.model_validate_json(
        '{"token": "abc", "authorizationId": "x", "validTo": "2030-01-01T00:00:00Z"}'
    )
    assert response.token == "abc"


def test_token_type__wire_values() -> None:
    assert SessionTokenType("Compact") is SessionTokenType.COMPACT
    assert SessionTokenType.SELF_DESCRIBING.value == "SelfDescribing"
