"""Acquire a bearer token and exchange it for an Azure Artifacts session token.

Public API:
- get_bearer_token() → AccessToken | None
- get_session_token() → str | None
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from azure.core.credentials import AccessToken

from artifactsauth.bearer.cancellation import CancellationToken
from artifactsauth.bearer.config import ProviderConfig
from artifactsauth.bearer.executor import run_strategies
from artifactsauth.bearer.factory import (
    IdentityClientFactory,
    get_strategies,
    msal_client_factory,
)
from artifactsauth.bearer.identity import DeviceCodeCallback, print_device_code
from artifactsauth.bearer.strategies import AcquisitionContext
from artifactsauth.sessiontoken.client import SessionTokenClient
from artifactsauth.sessiontoken.discovery import ResourceDiscovery, VssHeaderDiscovery

logger = logging.getLogger(__name__)


def get_bearer_token(
    authority: str,
    config: ProviderConfig | None = None,
    *,
    context: AcquisitionContext | None = None,
    cancellation: CancellationToken | None = None,
    client_factory: IdentityClientFactory = msal_client_factory,
    device_code_callback: DeviceCodeCallback = print_device_code,
) -> AccessToken | None:
    """Run the strategy chain for ``authority``.

    Returns:
        The first token any strategy produced, or ``None``.
    """
    strategies = get_strategies(
        authority,
        config,
        client_factory=client_factory,
        device_code_callback=device_code_callback,
    )
    return run_strategies(strategies, cancellation, context)


def get_session_token(
    resource_uri: str,
    config: ProviderConfig | None = None,
    *,
    context: AcquisitionContext | None = None,
    cancellation: CancellationToken | None = None,
    discovery: ResourceDiscovery | None = None,
    client_factory: IdentityClientFactory = msal_client_factory,
    device_code_callback: DeviceCodeCallback = print_device_code,
) -> str | None:
    """Return a session token for ``resource_uri``.

    The authority is discovered from the resource, a bearer token is acquired
    through the strategy chain, and it is exchanged for a session token
    valid for ``config.session_time_minutes``.

    Returns:
        The session token, or ``None`` if no bearer token could be acquired
        or the resource does not issue session tokens.
    """
    cfg = config or ProviderConfig()
    cancellation = cancellation or CancellationToken.none()
    discovery = discovery or VssHeaderDiscovery()

    authority = discovery.get_authority(resource_uri, cancellation)
    logger.debug("Using authority %s for %s.", authority, resource_uri)

    bearer = get_bearer_token(
        authority,
        cfg,
        context=context,
        cancellation=cancellation,
        client_factory=client_factory,
        device_code_callback=device_code_callback,
    )
    if bearer is None:
        logger.info("No bearer token could be acquired for %s.", resource_uri)
        return None

    valid_to = datetime.now(timezone.utc) + timedelta(minutes=cfg.session_time_minutes)
    client = SessionTokenClient(resource_uri, bearer.token, discovery)
    return client.create_session_token(cfg.session_token_type, valid_to, cancellation)
