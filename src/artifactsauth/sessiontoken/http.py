"""The shared HTTP session used to talk to Azure DevOps."""

from __future__ import annotations

import platform
import threading
from importlib.metadata import PackageNotFoundError, version

import requests

from artifactsauth.bearer.cancellation import CancellationToken
from artifactsauth.bearer.exceptions import OperationCancelledError

DEFAULT_TIMEOUT_SECONDS = 100.0

_lock = threading.Lock()
_session: requests.Session | None = None


def _package_version() -> str:
    try:
        return version("artifacts-auth")
    except PackageNotFoundError:
        return "0.0.0"


USER_AGENT = (
    f"artifacts-auth/{_package_version()} "
    f"({platform.system()} {platform.release()}; Python {platform.python_version()})"
)


def get_http_session() -> requests.Session:
    """Return the process-wide session, creating it on first use."""
    global _session
    with _lock:
        if _session is None:
            _session = requests.Session()
            _session.headers["User-Agent"] = USER_AGENT
        return _session


def request_timeout(cancellation: CancellationToken) -> float:
    """Seconds a single request may take under ``cancellation``.

    Raises:
        OperationCancelledError: If no time is left.
    """
    remaining = cancellation.remaining()
    if remaining is None:
        return DEFAULT_TIMEOUT_SECONDS
    if remaining <= 0:
        raise OperationCancelledError("The operation was cancelled or timed out.")
    return min(remaining, DEFAULT_TIMEOUT_SECONDS)
