from __future__ import annotations

import logging
from typing import Iterable

from azure.core.credentials import AccessToken

from .cancellation import CancellationToken
from .strategies import AcquisitionContext, BearerTokenStrategy

logger = logging.getLogger(__name__)


def run_strategies(
    strategies: Iterable[BearerTokenStrategy],
    cancellation: CancellationToken | None = None,
    context: AcquisitionContext | None = None,
) -> AccessToken | None:
    """Try ``strategies`` in order and return the first token obtained.

    A strategy returning ``None`` moves on to the next one. Any exception a
    strategy raises stops the run and propagates unchanged, as does
    cancellation of ``cancellation``.

    Args:
        strategies: Strategies in the order to try them.
        cancellation: Caller's cancellation token. Each strategy runs under a
            token linked to it and bounded by the strategy's own timeout.
        context: Decides which strategies may run. Defaults to allowing all.

    Returns:
        The first token, or ``None`` if no strategy produced one.
    """
    cancellation = cancellation or CancellationToken.none()
    context = context or AcquisitionContext()

    for strategy in strategies:
        cancellation.raise_if_cancelled()
        if not strategy.should_run(context):
            logger.debug("Skipping %s.", strategy.name)
            continue

        logger.debug("Acquiring bearer token with %s.", strategy.name)
        token = strategy.acquire(cancellation.linked(strategy.timeout))
        if token is not None:
            logger.info("Acquired bearer token using '%s'.", strategy.name)
            return token
        logger.debug("%s did not produce a bearer token.", strategy.name)

    return None
