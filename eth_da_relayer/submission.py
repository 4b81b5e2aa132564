# submission.py
# Bounded retry around placing a single order on the target chain.

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import ORDER_RETRY_DELAY_SECONDS, ORDER_TRYOUT
from .events import OrderEvent


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    attempts: int


class OrderSubmitter:
    """
    Forwards order events to the target chain client, retrying failures with a
    fixed delay. A client call that raises or returns a falsy value is a failure.
    """
    def __init__(self, client, max_attempts: int = ORDER_TRYOUT,
                 retry_delay: float = ORDER_RETRY_DELAY_SECONDS,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def submit_with_retry(self, event: OrderEvent, chain_type: str,
                          max_attempts: Optional[int] = None) -> SubmissionResult:
        """
        Places the order for `event`, retrying up to max_attempts times.

        Args:
            event: The decoded order event.
            chain_type: Label of the source chain the event came from.
            max_attempts: Overrides the submitter's default attempt count.

        Returns:
            A SubmissionResult telling whether any attempt succeeded and how many were made.
        """
        attempts_allowed = self.max_attempts if max_attempts is None else max_attempts
        if attempts_allowed < 1:
            raise ValueError("max_attempts must be at least 1")
        cid, size, tx_hash = event.content_id, event.size, event.source_tx_hash
        for attempt in range(1, attempts_allowed + 1):
            try:
                placed = self.client.order(cid, size, tx_hash, chain_type, event.is_permanent)
                error = None if placed else "order was not accepted by the chain"
            except Exception as e:
                placed = False
                error = str(e)

            if placed:
                self.logger.info(
                    f"Place order with cid:{cid}, size:{size}, txHash:{tx_hash} successfully! (attempt {attempt})"
                )
                return SubmissionResult(success=True, attempts=attempt)

            remaining = attempts_allowed - attempt
            self.logger.error(
                f"Failed to order cid:{cid}, size:{size}, txHash:{tx_hash}, error message:{error}, "
                f"try again {remaining}."
            )
            if remaining > 0:
                self._sleep(self.retry_delay)

        self.logger.error(
            f"Giving up order cid:{cid}, size:{size}, txHash:{tx_hash} on {chain_type} "
            f"after {attempts_allowed} attempts."
        )
        return SubmissionResult(success=False, attempts=attempts_allowed)
