from __future__ import annotations

import json
import os
from http import HTTPStatus
from typing import Any, Iterator, Sequence

import pytest
import requests
from azure.core.credentials import AccessToken

from artifactsauth.bearer.cache import reset_token_caches
from artifactsauth.bearer.cancellation import CancellationToken
from artifactsauth.bearer.identity import Account, DeviceCodeCallback
from artifactsauth.bearer.strategies import BearerTokenStrategy


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove environment variables to prevent cross-test leakage.

    Yields:
        Iterator[None]: Context manager semantics for pytest.
    """
    to_clear = [k for k in os.environ.keys()]
    for k in to_clear:
        monkeypatch.delenv(k, raising=False)
    yield


@pytest.fixture(autouse=True)
def fresh_token_caches() -> Iterator[None]:
    """Drop the process-wide token caches around each test."""
    reset_token_caches()
    yield
    reset_token_caches()


def make_token(value: str = "tok") -> AccessToken:
    return AccessToken(value, 4102444800)


class FakeIdentityClient:
    """In-memory identity client recording every call.

    Outcomes are either an :class:`AccessToken` to return or an exception
    instance to raise.
    """

    def __init__(
        self,
        accounts: Sequence[Account] = (),
        *,
        silent: dict[str, Any] | None = None,
        interactive: Any = None,
        integrated: Any = None,
        device_code: Any = None,
        supports_broker: bool = False,
        name_suffix: str = "without WAM broker",
    ) -> None:
        self.accounts = list(accounts)
        self.silent = silent or {}
        self.interactive = interactive
        self.integrated = integrated
        self.device_code = device_code
        self.supports_broker = supports_broker
        self.name_suffix = name_suffix
        self.calls: list[tuple[Any, ...]] = []

    @staticmethod
    def _resolve(outcome: Any) -> AccessToken:
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def list_accounts(self) -> list[Account]:
        self.calls.append(("list_accounts",))
        return list(self.accounts)

    def acquire_silently(
        self, scopes: Sequence[str], account: Account, cancellation: CancellationToken
    ) -> AccessToken:
        self.calls.append(("silent", account.canonical_name, list(scopes)))
        return self._resolve(self.silent[account.canonical_name])

    def acquire_interactive(
        self, scopes: Sequence[str], cancellation: CancellationToken
    ) -> AccessToken:
        self.calls.append(("interactive", list(scopes), cancellation))
        return self._resolve(self.interactive)

    def acquire_by_integrated_auth(
        self, scopes: Sequence[str], username: str, cancellation: CancellationToken
    ) -> AccessToken:
        self.calls.append(("integrated", list(scopes), username))
        return self._resolve(self.integrated)

    def acquire_by_device_code(
        self,
        scopes: Sequence[str],
        callback: DeviceCodeCallback,
        cancellation: CancellationToken,
    ) -> AccessToken:
        self.calls.append(("device_code", list(scopes), callback, cancellation))
        return self._resolve(self.device_code)


class RecordingStrategy(BearerTokenStrategy):
    """Strategy returning a fixed outcome and recording its invocations."""

    def __init__(
        self,
        label: str,
        outcome: Any = None,
        *,
        timeout: float | None = None,
        runs: bool = True,
    ) -> None:
        super().__init__(FakeIdentityClient(name_suffix=""), ["scope"])
        self.label = label
        self.outcome = outcome
        self._timeout = timeout
        self._runs = runs
        self.invocations: list[CancellationToken] = []

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def should_run(self, context: Any) -> bool:
        return self._runs

    def acquire(self, cancellation: CancellationToken) -> AccessToken | None:
        self.invocations.append(cancellation)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def account_a() -> Account:
    return Account("login.microsoftonline.com", "id1.tenant", "userA@contoso.com")


@pytest.fixture()
def account_b() -> Account:
    return Account("login.microsoftonline.com", "id2.tenant", "userB@contoso.com")


@pytest.fixture()
def fake_client_cls() -> type[FakeIdentityClient]:
    return FakeIdentityClient


@pytest.fixture()
def recording_strategy_cls() -> type[RecordingStrategy]:
    return RecordingStrategy


@pytest.fixture()
def token_factory():
    return make_token


def make_response(
    status: int,
    body: Any = None,
    *,
    headers: dict[str, str] | None = None,
    url: str = "https://vssps.dev.azure.com/contoso",
) -> requests.Response:
    """Build a fully-read :class:`requests.Response` without a connection."""
    response = requests.Response()
    response.status_code = status
    response.reason = HTTPStatus(status).phrase
    response.url = url
    response.headers.update(headers or {})
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode("utf-8")
    response._content_consumed = True
    return response


class FakeSession:
    """Stands in for :class:`requests.Session`, replaying scripted outcomes.

    Outcomes are responses to return or exception instances to raise.
    """

    def __init__(self, *, posts: Sequence[Any] = (), gets: Sequence[Any] = ()) -> None:
        self._posts = list(posts)
        self._gets = list(gets)
        self.post_calls: list[dict[str, Any]] = []
        self.get_calls: list[dict[str, Any]] = []

    @staticmethod
    def _next(outcomes: list[Any]) -> requests.Response:
        outcome = outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def post(self, url: str, data: bytes | None = None, **kwargs: Any) -> requests.Response:
        self.post_calls.append({"url": url, "body": json.loads(data) if data else None, **kwargs})
        return self._next(self._posts)

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        self.get_calls.append({"url": url, **kwargs})
        return self._next(self._gets)


class StaticDiscovery:
    """Discovery answering from fixed values and recording lookups."""

    def __init__(
        self,
        endpoint: str | None,
        authority: str = "https://login.microsoftonline.com/organizations",
    ) -> None:
        self.endpoint = endpoint
        self.authority = authority
        self.lookups: list[tuple[str, str]] = []

    def get_authorization_endpoint(
        self, resource_uri: str, cancellation: CancellationToken
    ) -> str | None:
        self.lookups.append(("endpoint", resource_uri))
        return self.endpoint

    def get_authority(self, resource_uri: str, cancellation: CancellationToken) -> str:
        self.lookups.append(("authority", resource_uri))
        return self.authority


@pytest.fixture()
def response_factory():
    return make_response


@pytest.fixture()
def fake_session_cls() -> type[FakeSession]:
    return FakeSession


@pytest.fixture()
def static_discovery_cls() -> type[StaticDiscovery]:
    return StaticDiscovery
