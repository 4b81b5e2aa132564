# source_chain.py
# Read-only access to the EVM source chain: block height and event logs.

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from .constants import BLOCK_NUMBER_RETRY_DELAY_SECONDS, BLOCK_NUMBER_TRYOUT

# Failures worth retrying: transport errors, RPC error responses and timeouts.
TRANSIENT_ERRORS = (requests.exceptions.RequestException, Web3Exception, ValueError, OSError)


class BlockchainConnector:
    """
    Manages the connection to an EVM node via Web3.py.

    The node is treated as an unreliable network service: the block height query
    is retried, log queries are not and let their errors propagate to the caller.
    """
    def __init__(self, rpc_url: str, request_timeout: float = 30.0,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.rpc_url = rpc_url
        self.web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def get_latest_block_number(self, max_attempts: int = BLOCK_NUMBER_TRYOUT,
                                delay: float = BLOCK_NUMBER_RETRY_DELAY_SECONDS) -> Optional[int]:
        """
        Fetches the most recent block number, retrying transient failures.

        Returns:
            The block number, or None if every attempt failed.
        """
        for attempt in range(1, max_attempts + 1):
            try:
                return int(self.web3.eth.block_number)
            except TRANSIENT_ERRORS as e:
                self.logger.warning(f"Get block number error (attempt {attempt}/{max_attempts}): {e}")
                if attempt < max_attempts:
                    self._sleep(delay)
        return None

    def get_logs(self, address: str, topics: List[str], from_block: int, to_block: int) -> List[Dict[str, Any]]:
        """Returns the logs emitted by `address` matching `topics` in [from_block, to_block]."""
        log_filter = {
            "address": [Web3.to_checksum_address(address)],
            "topics": topics,
            "fromBlock": Web3.to_hex(from_block),
            "toBlock": Web3.to_hex(to_block),
        }
        return list(self.web3.eth.get_logs(log_filter))
