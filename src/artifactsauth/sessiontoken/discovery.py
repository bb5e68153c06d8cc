"""Discover where a resource issues session tokens and who authenticates it.

Azure DevOps answers an unauthenticated request with headers naming its
token-issuing service (``X-VSS-AuthorizationEndpoint``) and the AAD tenant
that backs the organization (``X-VSS-ResourceTenant``, ``WWW-Authenticate``).
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from typing import Protocol

import requests
from requests.structures import CaseInsensitiveDict

from artifactsauth.bearer.cancellation import CancellationToken
from artifactsauth.bearer.exceptions import OperationCancelledError, SessionTokenError
from artifactsauth.bearer.scopes import DEFAULT_AUTHORITY, authority_for_tenant

from .http import get_http_session, request_timeout

logger = logging.getLogger(__name__)

AUTHORIZATION_ENDPOINT_HEADER = "X-VSS-AuthorizationEndpoint"
RESOURCE_TENANT_HEADER = "X-VSS-ResourceTenant"

_AUTHORIZATION_URI = re.compile(r'authorization_uri="?([^",\s]+)"?', re.IGNORECASE)


class AuthorizationEndpointDiscovery(Protocol):
    """Finds the token-issuing endpoint for a resource."""

    def get_authorization_endpoint(
        self, resource_uri: str, cancellation: CancellationToken
    ) -> str | None:
        """Return the endpoint, or ``None`` if the resource issues no session tokens."""
        raise NotImplementedError


class ResourceDiscovery(AuthorizationEndpointDiscovery, Protocol):
    """Also finds the AAD authority that issues bearer tokens for a resource."""

    def get_authority(self, resource_uri: str, cancellation: CancellationToken) -> str:
        raise NotImplementedError


class VssHeaderDiscovery:
    """Discovery by requesting the resource and reading the VSS response headers.

    Args:
        session: HTTP session to send requests with. Defaults to the shared session.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or get_http_session()
        self._headers: dict[str, CaseInsensitiveDict[str]] = {}
        self._lock = threading.Lock()

    def _fetch_headers(
        self, resource_uri: str, cancellation: CancellationToken
    ) -> CaseInsensitiveDict[str]:
        """Return the response headers for ``resource_uri``, requesting it only once."""
        with self._lock:
            headers = self._headers.get(resource_uri)
        if headers is not None:
            return headers

        cancellation.raise_if_cancelled()
        try:
            response = self._session.get(
                resource_uri,
                timeout=request_timeout(cancellation),
                allow_redirects=False,
            )
        except requests.Timeout as exc:
            if cancellation.cancelled:
                raise OperationCancelledError(
                    f"Requesting {resource_uri} was cancelled."
                ) from exc
            raise SessionTokenError(f"Requesting {resource_uri} timed out.") from exc
        except requests.RequestException as exc:
            raise SessionTokenError(f"Requesting {resource_uri} failed: {exc}") from exc
        response.close()

        with self._lock:
            self._headers[resource_uri] = response.headers
        return response.headers

    def get_authorization_endpoint(
        self, resource_uri: str, cancellation: CancellationToken
    ) -> str | None:
        headers = self._fetch_headers(resource_uri, cancellation)
        endpoint = headers.get(AUTHORIZATION_ENDPOINT_HEADER)
        if not endpoint:
            logger.debug("%s did not advertise an authorization endpoint.", resource_uri)
            return None
        logger.debug("Found authorization endpoint %s for %s.", endpoint, resource_uri)
        return endpoint

    def get_authority(self, resource_uri: str, cancellation: CancellationToken) -> str:
        """Return the AAD authority for ``resource_uri``.

        Falls back to :data:`~artifactsauth.bearer.scopes.DEFAULT_AUTHORITY`
        when the resource names no tenant.
        """
        headers = self._fetch_headers(resource_uri, cancellation)

        for tenant in headers.get(RESOURCE_TENANT_HEADER, "").split(","):
            tenant = tenant.strip()
            try:
                tenant_id = uuid.UUID(tenant)
            except ValueError:
                continue
            if tenant_id.int != 0:
                return authority_for_tenant(str(tenant_id))

        match = _AUTHORIZATION_URI.search(headers.get("WWW-Authenticate", ""))
        if match:
            return match.group(1)

        logger.debug("No tenant found for %s; using %s.", resource_uri, DEFAULT_AUTHORITY)
        return DEFAULT_AUTHORITY
