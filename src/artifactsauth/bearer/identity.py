"""Identity-provider capability and its MSAL implementation.

Strategies talk to the identity provider only through :class:`IdentityClient`.
:class:`MsalIdentityClient` implements it on top of
``msal.PublicClientApplication`` and turns MSAL's result dictionaries into
either an :class:`~azure.core.credentials.AccessToken` or one of the
classified errors from :mod:`artifactsauth.bearer.exceptions`.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, Sequence

import msal
from azure.core.credentials import AccessToken

from .cache import get_token_cache
from .cancellation import CancellationToken
from .exceptions import (
    FlowUnavailableError,
    IdentityServiceError,
    InteractionRequiredError,
    UserCancelledError,
)

logger = logging.getLogger(__name__)

DeviceCodeCallback = Callable[[str, str, datetime], None]
"""Called with ``(verification_uri, user_code, expires_on)`` once a device code is issued."""

_INTERACTION_REQUIRED_ERRORS = frozenset(
    {"interaction_required", "login_required", "consent_required", "invalid_grant"}
)
_USER_CANCELLED_ERRORS = frozenset(
    {"access_denied", "authorization_declined", "authentication_canceled"}
)


@dataclass(frozen=True)
class Account:
    """An identity known to the provider, as listed from its token cache."""

    environment: str
    home_account_id: str
    username: str
    record: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    @property
    def canonical_name(self) -> str:
        """``environment\\homeAccountId\\username``, the form a login hint uses."""
        return f"{self.environment}\\{self.home_account_id}\\{self.username}"

    @classmethod
    def from_msal(cls, record: Mapping[str, Any]) -> Account:
        return cls(
            environment=record.get("environment") or "",
            home_account_id=record.get("home_account_id") or "",
            username=record.get("username") or "",
            record=record,
        )


# The account currently signed in to the operating system, served by the broker.
OPERATING_SYSTEM_ACCOUNT = Account(environment="", home_account_id="", username="")


def print_device_code(verification_uri: str, user_code: str, expires_on: datetime) -> None:
    """Default :data:`DeviceCodeCallback`: tell the user where to sign in."""
    print(
        f"To sign in, use a web browser to open the page {verification_uri} "
        f"and enter the code {user_code} to authenticate.",
        file=sys.stderr,
        flush=True,
    )


class IdentityClient(Protocol):
    """Protocol for acquiring tokens from an identity provider.

    Every ``acquire_*`` method returns a token or raises one of
    :class:`InteractionRequiredError`, :class:`IdentityServiceError`,
    :class:`UserCancelledError` or :class:`FlowUnavailableError`.
    """

    @property
    def supports_broker(self) -> bool:
        """True when the OS account can be used through a broker."""
        raise NotImplementedError

    def list_accounts(self) -> list[Account]:
        """List identities found in the token cache."""
        raise NotImplementedError

    def acquire_silently(
        self,
        scopes: Sequence[str],
        account: Account,
        cancellation: CancellationToken,
    ) -> AccessToken:
        """Acquire a token for ``account`` without prompting."""
        raise NotImplementedError

    def acquire_interactive(
        self, scopes: Sequence[str], cancellation: CancellationToken
    ) -> AccessToken:
        """Prompt the user in a browser."""
        raise NotImplementedError

    def acquire_by_integrated_auth(
        self,
        scopes: Sequence[str],
        username: str,
        cancellation: CancellationToken,
    ) -> AccessToken:
        """Acquire a token with the signed-in Windows domain identity."""
        raise NotImplementedError

    def acquire_by_device_code(
        self,
        scopes: Sequence[str],
        callback: DeviceCodeCallback,
        cancellation: CancellationToken,
    ) -> AccessToken:
        """Run the device-code flow, reporting the code through ``callback``."""
        raise NotImplementedError


def _to_access_token(result: Mapping[str, Any], *, prompted: bool = True) -> AccessToken:
    error = result.get("error")
    if error:
        description = result.get("error_description")
        if error in _INTERACTION_REQUIRED_ERRORS:
            raise InteractionRequiredError(error, description)
        # Without a prompt, access_denied is a policy rejection, not the user.
        if prompted and error in _USER_CANCELLED_ERRORS:
            raise UserCancelledError(error, description)
        raise IdentityServiceError(error, description)
    if "access_token" not in result:
        raise IdentityServiceError(
            "no_access_token", "The identity provider returned no access token."
        )
    expires_in = int(result.get("expires_in", 0))
    return AccessToken(result["access_token"], int(time.time()) + expires_in)


class MsalIdentityClient:
    """:class:`IdentityClient` backed by an MSAL public client application.

    The MSAL application is built on first use and registered against the
    process-wide token cache for ``cache_location``.

    Args:
        authority: Issuer URL, e.g. ``https://login.microsoftonline.com/organizations``.
        client_id: Public client id to request tokens as.
        with_broker: Route requests through the OS broker where MSAL supports one.
        cache_location: Persisted cache file, or ``None`` for memory only.
    """

    def __init__(
        self,
        authority: str,
        client_id: str,
        *,
        with_broker: bool = False,
        cache_location: Path | None = None,
    ) -> None:
        self.authority = authority
        self.client_id = client_id
        self.with_broker = with_broker
        self.cache_location = cache_location
        self._app: msal.PublicClientApplication | None = None
        self._app_lock = threading.Lock()

    @property
    def name_suffix(self) -> str:
        return f"with{'' if self.with_broker else 'out'} WAM broker"

    @property
    def supports_broker(self) -> bool:
        return self.with_broker and sys.platform == "win32"

    @property
    def app(self) -> msal.PublicClientApplication:
        with self._app_lock:
            if self._app is None:
                logger.debug(
                    "Creating MSAL client for %s %s.", self.authority, self.name_suffix
                )
                self._app = msal.PublicClientApplication(
                    self.client_id,
                    authority=self.authority,
                    token_cache=get_token_cache(self.cache_location),
                    enable_broker_on_windows=self.with_broker,
                    enable_broker_on_mac=self.with_broker,
                )
            return self._app

    def list_accounts(self) -> list[Account]:
        return [Account.from_msal(record) for record in self.app.get_accounts()]

    def acquire_silently(
        self,
        scopes: Sequence[str],
        account: Account,
        cancellation: CancellationToken,
    ) -> AccessToken:
        cancellation.raise_if_cancelled()
        if account is OPERATING_SYSTEM_ACCOUNT:
            # prompt="none" makes the broker sign in the OS account silently.
            result = self.app.acquire_token_interactive(
                list(scopes),
                prompt="none",
                parent_window_handle=self.app.CONSOLE_WINDOW_HANDLE,
            )
        else:
            result = self.app.acquire_token_silent_with_error(
                list(scopes), account=dict(account.record or {})
            )
        cancellation.raise_if_cancelled()
        if result is None:
            raise InteractionRequiredError(
                "no_cached_token", f"No cached token for `{account.username}`."
            )
        return _to_access_token(result, prompted=False)

    def acquire_interactive(
        self, scopes: Sequence[str], cancellation: CancellationToken
    ) -> AccessToken:
        cancellation.raise_if_cancelled()
        remaining = cancellation.remaining()
        result = self.app.acquire_token_interactive(
            list(scopes),
            prompt="select_account",
            timeout=None if remaining is None else max(1, int(remaining)),
            parent_window_handle=self.app.CONSOLE_WINDOW_HANDLE,
        )
        cancellation.raise_if_cancelled()
        return _to_access_token(result)

    def acquire_by_integrated_auth(
        self,
        scopes: Sequence[str],
        username: str,
        cancellation: CancellationToken,
    ) -> AccessToken:
        raise FlowUnavailableError(
            "integrated_windows_auth_unavailable",
            "MSAL for Python does not implement integrated Windows authentication.",
        )

    def acquire_by_device_code(
        self,
        scopes: Sequence[str],
        callback: DeviceCodeCallback,
        cancellation: CancellationToken,
    ) -> AccessToken:
        cancellation.raise_if_cancelled()
        flow = self.app.initiate_device_flow(scopes=list(scopes))
        if "user_code" not in flow:
            raise IdentityServiceError(
                flow.get("error", "device_flow_failed"), flow.get("error_description")
            )

        callback(
            flow["verification_uri"],
            flow["user_code"],
            datetime.fromtimestamp(flow["expires_at"], tz=timezone.utc),
        )
        result = self.app.acquire_token_by_device_flow(
            flow,
            exit_condition=lambda f: (
                cancellation.cancelled or f.get("expires_at", 0) < time.time()
            ),
        )
        cancellation.raise_if_cancelled()
        return _to_access_token(result)
