"""
Convergence waits.

One polling loop shared by the daemon session (flags set by triggers) and the
studio page helpers (DOM queries). Both reduce to "poll a predicate until it
is truthy or the timeout elapses, then fail with a diagnostic".

Usage:
    from scripter.waiting import wait_for_condition

    wait_for_condition(
        lambda: page.query_selector("td.label") is not None,
        timeout=15,
        timeout_message="label should be visible",
        context=lambda: f"url={page.url}",
    )
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from scripter.errors import ConvergenceTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL = 0.1


def wait_for_condition(
    predicate: Callable[[], T],
    timeout: float,
    timeout_message: str,
    context: Optional[Callable[[], str]] = None,
    tick: Optional[Callable[[float], None]] = None,
    interval: float = DEFAULT_INTERVAL,
) -> T:
    """Poll ``predicate`` until it returns a truthy value.

    Args:
        predicate: Side-effect free check, evaluated once per poll.
        timeout: Seconds before giving up.
        timeout_message: Diagnostic placed first in the failure message.
        context: Optional provider of extra diagnostic text (transcript, URL,
            selector), only called on failure.
        tick: Called with the number of seconds to spend between polls in
            place of ``time.sleep``. May return early when new state arrives.
        interval: Upper bound on the pause between polls.

    Returns:
        The first truthy value returned by ``predicate``.

    Raises:
        ConvergenceTimeout: ``predicate`` stayed falsy for ``timeout`` seconds.
    """
    if timeout < 0:
        raise ValueError("timeout must not be negative")

    pause = tick or time.sleep
    deadline = time.monotonic() + timeout

    while True:
        value = predicate()
        if value:
            return value

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        pause(min(interval, remaining))

    message = timeout_message or "condition not met"
    message = f"{message} (after {timeout:g}s)"
    if context is not None:
        extra = context()
        if extra:
            message = f"{message}\n{extra}"

    logger.warning("Timed out: %s", timeout_message)
    raise ConvergenceTimeout(message)


__all__ = ["wait_for_condition", "DEFAULT_INTERVAL"]
