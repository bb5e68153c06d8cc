"""Cooperative cancellation with optional deadlines.

A :class:`CancellationToken` is cancelled when :meth:`~CancellationToken.cancel`
is called, when its own deadline passes, or when any token it was linked from
is cancelled. Blocking calls consult :meth:`~CancellationToken.remaining` to
bound their waits and :meth:`~CancellationToken.raise_if_cancelled` once they
return.
"""

from __future__ import annotations

import threading
import time

from .exceptions import OperationCancelledError


class CancellationToken:
    """A cancellation signal combining an explicit trigger and a deadline.

    Args:
        timeout: Seconds until the token cancels itself. ``None`` for no deadline.
        parents: Tokens whose cancellation also cancels this one.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        parents: tuple[CancellationToken, ...] = (),
    ) -> None:
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._parents = parents

    @classmethod
    def none(cls) -> CancellationToken:
        """Return a token that is only cancelled by an explicit :meth:`cancel`."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return any(parent.cancelled for parent in self._parents)

    def remaining(self) -> float | None:
        """Seconds until the nearest deadline in the chain, or ``None``.

        Returns ``0.0`` once the token is cancelled.
        """
        if self.cancelled:
            return 0.0
        candidates = [] if self._deadline is None else [self._deadline - time.monotonic()]
        for parent in self._parents:
            left = parent.remaining()
            if left is not None:
                candidates.append(left)
        if not candidates:
            return None
        return max(0.0, min(candidates))

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError("The operation was cancelled or timed out.")

    def linked(self, timeout: float | None = None) -> CancellationToken:
        """Derive a token cancelled by this one or by its own ``timeout``."""
        return CancellationToken(timeout, parents=(self,))
