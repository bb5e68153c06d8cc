from __future__ import annotations

import logging
from datetime import datetime
from http import HTTPStatus
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests
from pydantic import ValidationError

from artifactsauth.bearer.cancellation import CancellationToken
from artifactsauth.bearer.exceptions import OperationCancelledError, SessionTokenError
from artifactsauth.bearer.scopes import SESSION_TOKEN_SCOPE

from .discovery import AuthorizationEndpointDiscovery, VssHeaderDiscovery
from .http import get_http_session, request_timeout
from .models import SessionTokenRequest, SessionTokenResponse, SessionTokenType

logger = logging.getLogger(__name__)

SESSION_TOKENS_PATH = "/_apis/Token/SessionTokens"
API_VERSION = "5.0-preview.1"
DISPLAY_NAME = "Azure DevOps Artifacts Credential Provider"


def session_token_url(endpoint: str, token_type: SessionTokenType) -> str:
    """Return the session-token URL under the discovered ``endpoint``.

    Any query string on ``endpoint`` is replaced.
    """
    parts = urlsplit(endpoint)
    path = parts.path.rstrip("/") + SESSION_TOKENS_PATH
    query = urlencode({"tokenType": token_type.value, "api-version": API_VERSION})
    return urlunsplit((parts.scheme, parts.netloc, path, query, ""))


class SessionTokenClient:
    """Exchanges a bearer token for a scoped session token.

    Args:
        resource_uri: The feed or organization URL the token is for.
        bearer_token: AAD access token for Azure DevOps.
        discovery: Finds the token-issuing endpoint. Defaults to requesting
            ``resource_uri`` for the VSS headers.
        session: HTTP session. Defaults to the process-wide shared session.
    """

    def __init__(
        self,
        resource_uri: str,
        bearer_token: str,
        discovery: AuthorizationEndpointDiscovery | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        if not resource_uri:
            raise ValueError("resource_uri is required.")
        if not bearer_token:
            raise ValueError("bearer_token is required.")
        self._resource_uri = resource_uri
        self._bearer_token = bearer_token
        self._session = session or get_http_session()
        self._discovery = discovery or VssHeaderDiscovery(self._session)

    def create_session_token(
        self,
        token_type: SessionTokenType,
        valid_to: datetime | None,
        cancellation: CancellationToken | None = None,
    ) -> str | None:
        """Request a session token valid until ``valid_to``.

        If the service rejects the request with 400 Bad Request, it is sent
        once more without ``validTo`` so the service picks the lifetime. A
        second rejection is not retried.

        Returns:
            The session token, or ``None`` when the resource has no
            token-issuing endpoint.

        Raises:
            SessionTokenError: If the service does not issue a token.
            OperationCancelledError: If ``cancellation`` fires.
        """
        cancellation = cancellation or CancellationToken.none()

        endpoint = self._discovery.get_authorization_endpoint(
            self._resource_uri, cancellation
        )
        if endpoint is None:
            logger.debug(
                "No authorization endpoint for %s; not creating a session token.",
                self._resource_uri,
            )
            return None

        url = session_token_url(endpoint, token_type)
        request = SessionTokenRequest(
            display_name=DISPLAY_NAME,
            scope=SESSION_TOKEN_SCOPE,
            valid_to=valid_to,
        )

        response = self._send(url, request, cancellation)
        if response.status_code == HTTPStatus.BAD_REQUEST:
            response.close()
            logger.info(
                "Session token request with validTo=%s was rejected; "
                "retrying with the service's default lifetime.",
                valid_to,
            )
            request = request.without_expiry()
            response = self._send(url, request, cancellation)

        with response:
            self._raise_for_status(response)
            try:
                return SessionTokenResponse.model_validate_json(response.content).token
            except ValidationError as exc:
                raise SessionTokenError(
                    f"Unexpected session token response from {url}.",
                    status_code=response.status_code,
                ) from exc

    def _send(
        self,
        url: str,
        request: SessionTokenRequest,
        cancellation: CancellationToken,
    ) -> requests.Response:
        cancellation.raise_if_cancelled()
        try:
            return self._session.post(
                url,
                data=request.to_json().encode("utf-8"),
                headers={
                    "Authorization": f"Bearer {self._bearer_token}",
                    "Accept": "application/json",
                    "Content-Type": "application/json; charset=utf-8",
                },
                timeout=request_timeout(cancellation),
            )
        except requests.Timeout as exc:
            if cancellation.cancelled:
                raise OperationCancelledError(
                    "Session token request was cancelled."
                ) from exc
            raise SessionTokenError(f"Session token request to {url} timed out.") from exc
        except requests.RequestException as exc:
            raise SessionTokenError(f"Session token request to {url} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise SessionTokenError(
                f"Session token request failed with {response.status_code} "
                f"{response.reason}.",
                status_code=response.status_code,
            ) from exc
