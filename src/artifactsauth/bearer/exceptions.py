"""Errors raised while acquiring bearer tokens and session tokens.

Hierarchy::

    ArtifactsAuthError
    +-- IdentityProviderError
    |   +-- InteractionRequiredError   (silent reuse needs a prompt)
    |   +-- IdentityServiceError       (the identity service returned an error)
    |   +-- UserCancelledError         (the user cancelled or declined a prompt)
    |   +-- FlowUnavailableError       (flow not possible on this platform)
    +-- OperationCancelledError
    +-- SessionTokenError
"""

from __future__ import annotations


class ArtifactsAuthError(Exception):
    """Base class for all errors raised by this package."""


class IdentityProviderError(ArtifactsAuthError):
    """A classified failure reported by the identity provider.

    Args:
        error: The provider's error code (e.g. ``"invalid_grant"``).
        description: Human-readable detail, if the provider sent one.
    """

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        message = f"{error}: {description}" if description else error
        super().__init__(message)


class InteractionRequiredError(IdentityProviderError):
    """No token can be obtained for an account without user interaction."""


class IdentityServiceError(IdentityProviderError):
    """The identity service rejected the request."""


class UserCancelledError(IdentityProviderError):
    """The user cancelled or declined the authentication prompt."""


class FlowUnavailableError(IdentityProviderError):
    """The provider cannot run this flow in the current environment."""


class OperationCancelledError(ArtifactsAuthError):
    """The caller's cancellation token fired or the operation timed out."""


class SessionTokenError(ArtifactsAuthError):
    """The session-token service could not issue a token.

    Args:
        message: Description of the failure.
        status_code: HTTP status of the failing response, when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
