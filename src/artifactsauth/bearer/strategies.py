"""Bearer-token strategies.

Each strategy wraps one way of obtaining a token from an
:class:`~artifactsauth.bearer.identity.IdentityClient`. The contract shared by
all of them:

- return an :class:`~azure.core.credentials.AccessToken` on success;
- return ``None`` when the strategy is inapplicable right now (no matching
  cached identity, the user declined, no Windows principal);
- let every other error propagate, which stops the chain.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence

from azure.core.credentials import AccessToken

from .cancellation import CancellationToken
from .exceptions import (
    FlowUnavailableError,
    IdentityServiceError,
    InteractionRequiredError,
    UserCancelledError,
)
from .identity import (
    OPERATING_SYSTEM_ACCOUNT,
    DeviceCodeCallback,
    IdentityClient,
    print_device_code,
)
from .principal import get_user_principal_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquisitionContext:
    """How the caller is able to interact with the user for this request.

    Attributes:
        is_retry: The host already tried a token from an earlier run and it was rejected.
        non_interactive: The user must not be prompted at all.
        can_show_dialog: A browser window may be opened.
    """

    is_retry: bool = False
    non_interactive: bool = False
    can_show_dialog: bool = True


class BearerTokenStrategy(ABC):
    """One way of obtaining a bearer token.

    Args:
        client: Identity provider to acquire tokens from.
        scopes: Resource scopes the token must be valid for.
    """

    label: str = "strategy"
    interactive: bool = False

    def __init__(self, client: IdentityClient, scopes: Sequence[str]) -> None:
        self.client = client
        self.scopes = list(scopes)

    @property
    def name(self) -> str:
        suffix = getattr(self.client, "name_suffix", None)
        return f"{self.label} {suffix}" if suffix else self.label

    @property
    def timeout(self) -> float | None:
        """Seconds this strategy may run before it is cancelled, or ``None``."""
        return None

    def should_run(self, context: AcquisitionContext) -> bool:
        """Whether this strategy may run; interactive ones never run non-interactively."""
        return not (self.interactive and context.non_interactive)

    @abstractmethod
    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        """Try to obtain a token.

        Args:
            cancellation: Cancelled by the caller or by :attr:`timeout`.

        Returns:
            The token, or ``None`` when this strategy cannot help.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class SilentStrategy(BearerTokenStrategy):
    """Reuse a cached identity (or the OS account) without prompting.

    Args:
        client: Identity provider to acquire tokens from.
        scopes: Resource scopes the token must be valid for.
        login_hint: Only try the account whose canonical name equals this.
    """

    label = "MSAL Silent"

    def __init__(
        self,
        client: IdentityClient,
        scopes: Sequence[str],
        *,
        login_hint: str | None = None,
    ) -> None:
        super().__init__(client, scopes)
        self.login_hint = login_hint

    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        accounts = self.client.list_accounts()
        if self.client.supports_broker:
            accounts.append(OPERATING_SYSTEM_ACCOUNT)

        for account in accounts:
            cancellation.raise_if_cancelled()
            canonical_name = account.canonical_name
            if self.login_hint and self.login_hint != canonical_name:
                logger.debug(
                    "Skipping `%s`, because it does not match login hint `%s`.",
                    canonical_name,
                    self.login_hint,
                )
                continue

            logger.debug("Attempting to use identity `%s`.", canonical_name)
            try:
                return self.client.acquire_silently(self.scopes, account, cancellation)
            except InteractionRequiredError as exc:
                logger.debug("%s", exc)
            except IdentityServiceError as exc:
                logger.warning("%s", exc)

        return None


class IntegratedWindowsAuthStrategy(BearerTokenStrategy):
    """Sign in as the current Windows domain user."""

    label = "MSAL Windows Integrated Authentication"

    def __init__(
        self,
        client: IdentityClient,
        scopes: Sequence[str],
        *,
        principal_lookup: Callable[[], str | None] = get_user_principal_name,
    ) -> None:
        super().__init__(client, scopes)
        self._principal_lookup = principal_lookup

    def should_run(self, context: AcquisitionContext) -> bool:
        return super().should_run(context) and not context.is_retry

    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        upn = self._principal_lookup()
        if upn is None:
            logger.debug("No user principal name; skipping integrated authentication.")
            return None

        try:
            return self.client.acquire_by_integrated_auth(self.scopes, upn, cancellation)
        except UserCancelledError:
            return None
        except FlowUnavailableError as exc:
            logger.debug("%s", exc)
            return None


class InteractiveStrategy(BearerTokenStrategy):
    """Prompt the user in the system browser."""

    label = "MSAL Interactive"
    interactive = True

    def __init__(
        self, client: IdentityClient, scopes: Sequence[str], *, timeout: float
    ) -> None:
        super().__init__(client, scopes)
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def should_run(self, context: AcquisitionContext) -> bool:
        return super().should_run(context) and context.can_show_dialog

    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        try:
            return self.client.acquire_interactive(self.scopes, cancellation)
        except UserCancelledError:
            logger.info("Interactive sign-in was cancelled by the user.")
            return None


class DeviceCodeStrategy(BearerTokenStrategy):
    """Have the user enter a one-time code on another device."""

    label = "MSAL Device Code"
    interactive = True

    def __init__(
        self,
        client: IdentityClient,
        scopes: Sequence[str],
        *,
        timeout: float,
        callback: DeviceCodeCallback = print_device_code,
    ) -> None:
        super().__init__(client, scopes)
        self._timeout = timeout
        self.callback = callback

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        try:
            return self.client.acquire_by_device_code(
                self.scopes, self.callback, cancellation
            )
        except UserCancelledError:
            logger.info("Device code sign-in was declined by the user.")
            return None
