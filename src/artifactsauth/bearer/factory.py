from __future__ import annotations

import logging
from typing import Callable

from .config import ProviderConfig
from .identity import (
    DeviceCodeCallback,
    IdentityClient,
    MsalIdentityClient,
    print_device_code,
)
from .strategies import (
    BearerTokenStrategy,
    DeviceCodeStrategy,
    IntegratedWindowsAuthStrategy,
    InteractiveStrategy,
    SilentStrategy,
)

logger = logging.getLogger(__name__)

IdentityClientFactory = Callable[[str, ProviderConfig, bool], IdentityClient]
"""Builds an identity client from ``(authority, config, with_broker)``."""


def msal_client_factory(
    authority: str, config: ProviderConfig, with_broker: bool
) -> IdentityClient:
    return MsalIdentityClient(
        authority,
        config.client_id,
        with_broker=with_broker,
        cache_location=config.cache_location,
    )


def get_strategies(
    authority: str,
    config: ProviderConfig | None = None,
    *,
    allow_broker: bool | None = None,
    client_factory: IdentityClientFactory = msal_client_factory,
    device_code_callback: DeviceCodeCallback = print_device_code,
) -> list[BearerTokenStrategy]:
    """Build the ordered bearer-token strategies for ``authority``.

    Cheap, non-interactive strategies come first; device code is last since
    it needs the most effort from the user. When the broker is allowed, a
    broker-backed silent strategy is tried before everything else.

    Args:
        authority: Issuer URL for the tenant.
        config: Provider configuration. If ``None``, it is read from the environment.
        allow_broker: Overrides ``config.allow_broker`` when given.
        client_factory: Builds the identity clients. Clients are expected to
            defer any network or cache work until first used.
        device_code_callback: Receives the device code to show the user.

    Returns:
        The strategies, in the order they should be tried.
    """
    cfg = config or ProviderConfig()
    broker = cfg.allow_broker if allow_broker is None else allow_broker
    scopes = [cfg.resource]
    timeout = cfg.device_flow_timeout_seconds

    strategies: list[BearerTokenStrategy] = []
    if broker:
        with_broker = client_factory(authority, cfg, True)
        strategies.append(SilentStrategy(with_broker, scopes, login_hint=cfg.login_hint))

    client = client_factory(authority, cfg, False)
    strategies += [
        SilentStrategy(client, scopes, login_hint=cfg.login_hint),
        IntegratedWindowsAuthStrategy(client, scopes),
        InteractiveStrategy(client, scopes, timeout=timeout),
        DeviceCodeStrategy(client, scopes, timeout=timeout, callback=device_code_callback),
    ]
    logger.debug(
        "Bearer token strategies for %s: %s",
        authority,
        ", ".join(s.name for s in strategies),
    )
    return strategies
