"""Daemon background tasks.

Tasks run on daemon threads so they never hold up interpreter shutdown, and
report through a ``concurrent.futures.Future`` so callers can wait with a
timeout.
"""

import threading
from concurrent.futures import Future
from typing import Any, Callable

import structlog

logger = structlog.get_logger()


def spawn_daemon(
    fn: Callable[..., Any],
    *args: Any,
    name: str | None = None,
    **kwargs: Any,
) -> Future:
    """Run fn on a daemon thread.

    Returns:
        Future resolved with fn's return value or exception.
    """
    future: Future = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    thread = threading.Thread(target=run, name=name, daemon=True)
    thread.start()
    return future


def spawn_best_effort(fn: Callable[[], Any], name: str) -> Future:
    """Run fn on a daemon thread, logging and discarding any failure.

    The returned future always resolves to None (or fn's result) and never
    carries an exception.
    """

    def guarded() -> Any:
        try:
            return fn()
        except Exception as e:
            logger.warning("background_task_failed", task=name, error=str(e))
            return None

    return spawn_daemon(guarded, name=name)
