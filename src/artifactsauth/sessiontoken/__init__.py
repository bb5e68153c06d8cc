"""Azure DevOps session-token exchange.

Public API:
- SessionTokenClient (bearer token → session token)
- SessionTokenType
- VssHeaderDiscovery (authorization endpoint and authority lookup)
"""

from .client import SessionTokenClient, session_token_url
from .discovery import VssHeaderDiscovery
from .models import SessionTokenRequest, SessionTokenResponse, SessionTokenType

__all__ = [
    "SessionTokenClient",
    "SessionTokenRequest",
    "SessionTokenResponse",
    "SessionTokenType",
    "VssHeaderDiscovery",
    "session_token_url",
]
