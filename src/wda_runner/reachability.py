"""Reachability probing of the WebDriverAgent HTTP endpoint."""

import threading
import time
from typing import Callable

import httpx
import structlog

from .backoff import INITIAL_DELAY_MS, PollAction, plan_next

logger = structlog.get_logger()

PROBE_TIMEOUT = httpx.Timeout(1.0, connect=0.5)


def is_url_reachable(
    url: str,
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """Probe the URL once.

    Args:
        url: Endpoint to GET.
        transport: Optional httpx transport (used in tests).

    Returns:
        True only if the endpoint answered with HTTP 200.
    """
    try:
        with httpx.Client(timeout=PROBE_TIMEOUT, transport=transport) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        logger.debug("wda_not_ready", url=url, error=str(e))
        return False

    if response.status_code != httpx.codes.OK:
        logger.debug("wda_not_ready", url=url, status_code=response.status_code)
        return False
    return True


def poll_until_reachable(
    probe: Callable[[], bool],
    timeout_s: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], object] | None = None,
    cancelled: threading.Event | None = None,
) -> bool:
    """Probe with exponential backoff until success, timeout or cancellation.

    Args:
        probe: Returns True once the endpoint is reachable.
        timeout_s: Overall deadline in seconds.
        clock: Monotonic clock in seconds.
        sleep: Sleep function taking seconds. Defaults to waiting on
            ``cancelled`` so a cancellation interrupts the sleep.
        cancelled: Event set by the caller to abandon polling.

    Returns:
        True if the probe succeeded, False on timeout or cancellation.
    """
    if cancelled is None:
        cancelled = threading.Event()
    if sleep is None:
        sleep = cancelled.wait

    start = clock()
    delay_ms = INITIAL_DELAY_MS
    attempt = 0

    while not cancelled.is_set():
        attempt += 1
        if probe():
            logger.debug("wda_probe_succeeded", attempts=attempt)
            return True

        step = plan_next(clock() - start, delay_ms, timeout_s)
        if step.action is PollAction.TIMED_OUT:
            logger.debug("wda_poll_timed_out", attempts=attempt, timeout_s=timeout_s)
            return False

        sleep(step.sleep_ms / 1000.0)
        delay_ms = step.next_delay_ms

    logger.debug("wda_poll_cancelled", attempts=attempt)
    return False
