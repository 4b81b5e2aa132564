# scanner.py
# Walks a chain label's cursor up to the chain head, forwarding every order event found.

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .constants import SEARCH_STEP, WINDOW_DELAY_SECONDS
from .cursor_store import CursorStore
from .events import EventParser
from .logger import format_error
from .source_chain import BlockchainConnector
from .submission import OrderSubmitter


@dataclass(frozen=True)
class ScanWindow:
    """Half-open block range [from_block, to_block)."""
    from_block: int
    to_block: int


def plan_windows(cursor: int, head: int, step: int = SEARCH_STEP) -> List[ScanWindow]:
    """Splits [cursor, head) into contiguous windows of at most `step` blocks."""
    if step <= 0:
        raise ValueError("step must be positive")
    windows = []
    from_block = cursor
    while from_block < head:
        to_block = min(from_block + step, head)
        windows.append(ScanWindow(from_block, to_block))
        from_block = to_block
    return windows


@dataclass
class ScanReport:
    """What one tick of the scanner did."""
    windows: int = 0
    events: int = 0
    forwarded: int = 0
    dropped: int = 0
    completed: bool = False


class LogScanner:
    """
    Scans one contract on one chain for EthDAEvent logs.

    Each call to scan() is one scheduler tick: it reads the head, pages through
    the unscanned range in windows, forwards each decoded order and persists the
    cursor after every window. A failed submission does not hold the cursor back.
    """
    def __init__(self, connector: BlockchainConnector, cursor_store: CursorStore, submitter: OrderSubmitter,
                 contract_address: str, topics: List[str], chain_type: str,
                 parser: Optional[EventParser] = None, step: int = SEARCH_STEP,
                 window_delay: float = WINDOW_DELAY_SECONDS,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.connector = connector
        self.cursor_store = cursor_store
        self.submitter = submitter
        self.contract_address = contract_address
        self.topics = topics
        self.chain_type = chain_type
        self.parser = parser or EventParser()
        self.step = step
        self.window_delay = window_delay
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def scan(self) -> ScanReport:
        report = ScanReport()
        head = self.connector.get_latest_block_number()
        if head is None:
            self.logger.error(f"Get {self.chain_type} latest block number failed.")
            return report

        cursor = self.cursor_store.get(self.chain_type)
        if cursor is None:
            self.logger.info(f"First scan of {self.chain_type}, starting from head block {head}.")
            self.cursor_store.set(self.chain_type, head)
            report.completed = True
            return report
        if cursor > head:
            self.logger.warning(
                f"{self.chain_type} head {head} is behind stored cursor {cursor}, resetting cursor to head."
            )
            self.cursor_store.set(self.chain_type, head)
            report.completed = True
            return report

        window = None
        try:
            for index, window in enumerate(plan_windows(cursor, head, self.step)):
                if index:
                    self._sleep(self.window_delay)
                self._scan_window(window, report)
                self.cursor_store.set(self.chain_type, window.to_block)
                report.windows += 1
            self.cursor_store.set(self.chain_type, head)
            report.completed = True
            if report.windows:
                self.logger.debug(f"Check {self.chain_type} block {cursor} ~ {head} successfully.")
        except Exception as e:
            span = f"{window.from_block} ~ {window.to_block}" if window else f"{cursor} ~ {head}"
            self.logger.error(f"Get {self.chain_type} logs from {span} failed, error {format_error(e)}")
        return report

    def _scan_window(self, window: ScanWindow, report: ScanReport):
        # eth_getLogs bounds are inclusive.
        logs = self.connector.get_logs(self.contract_address, self.topics, window.from_block, window.to_block - 1)
        if logs:
            self.logger.info(
                f"Found {len(logs)} event(s) on {self.chain_type} in blocks {window.from_block} ~ {window.to_block - 1}."
            )
        for log in logs:
            event = self.parser.parse_log(log)
            report.events += 1
            result = self.submitter.submit_with_retry(event, self.chain_type)
            if result.success:
                report.forwarded += 1
            else:
                report.dropped += 1
