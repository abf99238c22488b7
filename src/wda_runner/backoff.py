"""Exponential backoff schedule for reachability polling.

Kept free of clocks and sleeping so the schedule can be checked directly.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

INITIAL_DELAY_MS = 10
MAX_DELAY_MS = 320


class PollAction(Enum):
    """What the poll loop should do after a failed probe."""

    RETRY = auto()  # Sleep, then probe again
    TIMED_OUT = auto()  # Deadline passed, give up


@dataclass(frozen=True)
class PollStep:
    """Decision produced by plan_next."""

    action: PollAction
    sleep_ms: int
    next_delay_ms: int


def next_delay(delay_ms: int) -> int:
    """Double the delay, capped at MAX_DELAY_MS."""
    return min(delay_ms * 2, MAX_DELAY_MS)


def backoff_delays(initial_ms: int = INITIAL_DELAY_MS) -> Iterator[int]:
    """Yield the sleep schedule: 10, 20, 40, 80, 160, 320, 320, ..."""
    delay = initial_ms
    while True:
        yield delay
        delay = next_delay(delay)


def plan_next(elapsed_s: float, delay_ms: int, timeout_s: float) -> PollStep:
    """Decide the next poll action from elapsed time and the current delay.

    Args:
        elapsed_s: Seconds since polling began.
        delay_ms: Delay to sleep before the next probe.
        timeout_s: Overall polling deadline in seconds.

    Returns:
        PollStep telling the loop whether to retry (and for how long to
        sleep) or stop.
    """
    if elapsed_s >= timeout_s:
        return PollStep(PollAction.TIMED_OUT, sleep_ms=0, next_delay_ms=delay_ms)
    return PollStep(PollAction.RETRY, sleep_ms=delay_ms, next_delay_ms=next_delay(delay_ms))
