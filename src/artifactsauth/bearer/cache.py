"""Process-wide MSAL token caches.

Every :class:`~artifactsauth.bearer.identity.MsalIdentityClient` created in a
process shares one cache per location, so a token acquired by one strategy is
visible to every later strategy and every later chain run.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import msal
from msal_extensions import PersistedTokenCache, build_encrypted_persistence

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_caches: dict[Path | None, msal.TokenCache] = {}


def _build_token_cache(location: Path | None) -> msal.TokenCache:
    # Encrypted persistence is only wired up on Windows, where DPAPI is always
    # available; other platforms keep tokens for the lifetime of the process.
    if location is not None and sys.platform == "win32":
        logger.debug("Using MSAL cache at `%s`.", location)
        location.parent.mkdir(parents=True, exist_ok=True)
        return PersistedTokenCache(build_encrypted_persistence(str(location)))
    if location is not None:
        logger.debug(
            "Persistent MSAL cache is not supported on %s; using memory only.",
            sys.platform,
        )
    return msal.SerializableTokenCache()


def get_token_cache(location: Path | None) -> msal.TokenCache:
    """Return the shared token cache for ``location``, creating it once.

    Args:
        location: Cache file path, or ``None`` for an in-memory cache.

    Returns:
        The same cache object for every call with the same ``location``.
    """
    with _lock:
        cache = _caches.get(location)
        if cache is None:
            cache = _build_token_cache(location)
            _caches[location] = cache
        return cache


def reset_token_caches() -> None:
    """Forget every shared cache; the next lookup builds a fresh one."""
    with _lock:
        _caches.clear()
