# utils.py

import logging
import threading
from typing import Any, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def run_with_timeout(fn: Callable[[], T], timeout: float, timeout_value: Any = None) -> Any:
    """
    Runs fn in a daemon thread and waits at most `timeout` seconds for it.

    Returns fn's result, or timeout_value if it did not finish in time. The
    worker is left running; its resource is released by its own closer.
    Exceptions raised by fn propagate.
    """
    outcome = {}

    def target():
        try:
            outcome["value"] = fn()
        except BaseException as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        logger.warning(f"{getattr(fn, '__name__', fn)} did not finish within {timeout} seconds")
        return timeout_value() if callable(timeout_value) else timeout_value
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("value")
