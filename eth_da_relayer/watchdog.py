# watchdog.py
# Aborts the process when the settlement chain stops finalizing blocks.

import logging
import time
from typing import Callable, Optional

from .constants import (
    MAX_NO_NEW_BLOCK_SECONDS,
    WATCHDOG_IDLE_SLEEP_SECONDS,
    WATCHDOG_PROGRESS_SLEEP_SECONDS,
)
from .errors import ChainStalledError


class LivenessWatchdog:
    """
    Polls the finalized block number of the settlement chain.

    If the height has not increased for longer than `max_stall` seconds since the
    last observed increase, run() raises ChainStalledError. Relaying against a
    stalled chain client is treated as fatal, never retried.
    """
    def __init__(self, chain_api, max_stall: float = MAX_NO_NEW_BLOCK_SECONDS,
                 idle_sleep: float = WATCHDOG_IDLE_SLEEP_SECONDS,
                 progress_sleep: float = WATCHDOG_PROGRESS_SLEEP_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.chain_api = chain_api
        self.max_stall = max_stall
        self.idle_sleep = idle_sleep
        self.progress_sleep = progress_sleep
        self._clock = clock
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self.last_block = None
        self.last_block_time = None

    def check(self) -> bool:
        """
        Takes one sample of the finalized height.

        Returns:
            True if the height increased since the previous sample.

        Raises:
            ChainStalledError: If no increase was seen within max_stall seconds.
        """
        current = self.chain_api.latest_finalized_block()
        now = self._clock()
        if self.last_block is None or current > self.last_block:
            self.last_block = current
            self.last_block_time = now
            return True

        stalled = now - self.last_block_time
        if stalled > self.max_stall:
            self.logger.error(f"no new block for {stalled:.0f} seconds, quitting relayer!")
            raise ChainStalledError(self.last_block, stalled)
        return False

    def run(self, max_iterations: Optional[int] = None):
        """Loops forever (or max_iterations times), sleeping between samples."""
        self.check()
        self.logger.info("running event loop")
        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            progressed = self.check()
            self._sleep(self.progress_sleep if progressed else self.idle_sleep)
            iterations += 1
