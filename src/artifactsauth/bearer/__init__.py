"""Bearer-token acquisition for Azure DevOps.

Public API:
- get_strategies() → ordered list of BearerTokenStrategy
- run_strategies() → AccessToken | None
- ProviderConfig (settings)
- CancellationToken
- AcquisitionContext
- MsalIdentityClient, IdentityClient, Account
"""

from .cancellation import CancellationToken
from .config import ProviderConfig
from .exceptions import (
    ArtifactsAuthError,
    FlowUnavailableError,
    IdentityProviderError,
    IdentityServiceError,
    InteractionRequiredError,
    OperationCancelledError,
    SessionTokenError,
    UserCancelledError,
)
from .executor import run_strategies
from .factory import get_strategies
from .identity import Account, IdentityClient, MsalIdentityClient
from .strategies import AcquisitionContext, BearerTokenStrategy

__all__ = [
    "Account",
    "AcquisitionContext",
    "ArtifactsAuthError",
    "BearerTokenStrategy",
    "CancellationToken",
    "FlowUnavailableError",
    "IdentityClient",
    "IdentityProviderError",
    "IdentityServiceError",
    "InteractionRequiredError",
    "MsalIdentityClient",
    "OperationCancelledError",
    "ProviderConfig",
    "SessionTokenError",
    "UserCancelledError",
    "get_strategies",
    "run_strategies",
]
