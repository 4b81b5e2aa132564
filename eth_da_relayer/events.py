# events.py
# Decoding of EthDAEvent logs into storage orders.

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from eth_abi import decode as abi_decode
from hexbytes import HexBytes
from web3 import Web3

from .constants import ETH_DA_EVM_ABI, ETH_DA_EVM_TOPICS
from .errors import EventDecodeError


@dataclass(frozen=True)
class OrderEvent:
    """A storage order requested on the source chain."""
    content_id: str
    size: int
    source_tx_hash: str
    is_permanent: bool = False
    block_number: Optional[int] = None


class EventParser:
    """
    Parses raw EthDAEvent logs into OrderEvent instances.

    The event carries a single non-indexed `string message`; the message is a
    JSON object of the form {"cid": "...", "size": 123, "isPermanent": false}.
    """
    def __init__(self, abi: List[Dict[str, Any]] = ETH_DA_EVM_ABI, topics: List[str] = ETH_DA_EVM_TOPICS):
        self.event_abi = next((item for item in abi if item.get("type") == "event"), None)
        if not self.event_abi:
            raise ValueError("Provided ABI does not contain a valid event definition.")
        self.data_types = [inp["type"] for inp in self.event_abi["inputs"] if not inp.get("indexed")]
        self.topic = HexBytes(topics[0])

    def parse_log(self, log: Dict[str, Any]) -> OrderEvent:
        """
        Decodes a raw log into an OrderEvent.

        Raises:
            EventDecodeError: If the log is not an EthDAEvent or its payload is malformed.
        """
        tx_hash = _to_hex(log.get("transactionHash"))
        topics = log.get("topics") or []
        if not topics or HexBytes(topics[0]) != self.topic:
            raise EventDecodeError(f"log in tx {tx_hash} is not a {self.event_abi['name']} event")

        try:
            (message,) = abi_decode(self.data_types, HexBytes(log["data"]))
        except Exception as e:
            raise EventDecodeError(f"cannot ABI-decode log data in tx {tx_hash}: {e}") from e

        try:
            payload = json.loads(message)
        except json.JSONDecodeError as e:
            raise EventDecodeError(f"event message in tx {tx_hash} is not JSON: {message!r}") from e
        if not isinstance(payload, dict):
            raise EventDecodeError(f"event message in tx {tx_hash} is not an object: {message!r}")

        cid = payload.get("cid")
        size = payload.get("size")
        if not isinstance(cid, str) or not cid:
            raise EventDecodeError(f"event in tx {tx_hash} has no cid")
        # bool is a subclass of int; a JSON true is not a size.
        if not isinstance(size, int) or isinstance(size, bool):
            raise EventDecodeError(f"event in tx {tx_hash} has an invalid size: {size!r}")
        if size < 0:
            raise EventDecodeError(f"event in tx {tx_hash} has a negative size: {size}")
        is_permanent = payload.get("isPermanent", False)
        if not isinstance(is_permanent, bool):
            raise EventDecodeError(f"event in tx {tx_hash} has a non-boolean isPermanent: {is_permanent!r}")

        return OrderEvent(
            content_id=cid,
            size=size,
            source_tx_hash=tx_hash,
            is_permanent=is_permanent,
            block_number=log.get("blockNumber"),
        )


def _to_hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)
