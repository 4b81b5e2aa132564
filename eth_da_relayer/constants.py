# constants.py
# Chain identifiers, the storage-order event definition and the timing
# parameters of the relay loop.

from enum import Enum
from typing import Dict, List

from web3 import Web3


class EVMChainType(str, Enum):
    ETHEREUM = "ethereum"
    ARB1 = "arb1"
    OPTIMISM = "optimism"
    ZKSYNC = "zksync"
    STARKNET = "starknet"
    POLYGONZK = "polygonzk"
    POLYGON = "polygon"


def get_topics(signatures: List[str]) -> List[str]:
    """Returns the 0x-prefixed keccak topic for each event signature."""
    return [Web3.to_hex(Web3.keccak(text=signature)) for signature in signatures]


ETH_DA_EVENT_NAME = "EthDAEvent"
ETH_DA_EVENT_SIGNATURE = "EthDAEvent(string)"
ETH_DA_EVM_ABI: List[Dict] = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "string", "name": "message", "type": "string"}
        ],
        "name": ETH_DA_EVENT_NAME,
        "type": "event",
    }
]
ETH_DA_EVM_TOPICS: List[str] = get_topics([ETH_DA_EVENT_SIGNATURE])

# --- Log scanning ---
SEARCH_STEP = 1000                 # blocks per eth_getLogs window
WINDOW_DELAY_SECONDS = 1.0
BLOCK_NUMBER_TRYOUT = 10
BLOCK_NUMBER_RETRY_DELAY_SECONDS = 1.5

# --- Order submission ---
ORDER_TRYOUT = 5
ORDER_RETRY_DELAY_SECONDS = 3.0

# --- Scheduling ---
MONITOR_INTERVAL_SECONDS = 15.0
MONITOR_START_DELAY_SECONDS = 15.0

# --- Watchdog ---
MAX_NO_NEW_BLOCK_SECONDS = 30 * 60
WATCHDOG_IDLE_SLEEP_SECONDS = 3.0
WATCHDOG_PROGRESS_SLEEP_SECONDS = 10.0

# --- Shutdown ---
SHUTDOWN_GRACE_SECONDS = 5.0
