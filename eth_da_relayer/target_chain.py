# target_chain.py
# Client for the Crust (Substrate) chain: finalized head queries and order placement.

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from substrateinterface import Keypair, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException

from .errors import TargetChainError


def check_cid(cid: str) -> bool:
    """Checks that cid looks like a CIDv0 ('Qm', 46 chars) or a base32 CIDv1 ('ba', 59 chars)."""
    return (len(cid) == 46 and cid.startswith("Qm")) or (len(cid) == 59 and cid.startswith("ba"))


def check_seeds(seeds: str) -> bool:
    """Checks that seeds is a 12 word mnemonic or a derivation uri such as '//Alice'."""
    return len(seeds.split(" ")) == 12 or seeds.startswith("//")


# --- Transaction tracking ---

class TxStatus(str, Enum):
    SUBMITTED = "submitted"
    INCLUDED = "included"
    FAILED = "failed"
    INVALID = "invalid"


TERMINAL_STATUSES = frozenset({TxStatus.INCLUDED, TxStatus.FAILED, TxStatus.INVALID})


@dataclass(frozen=True)
class TxResult:
    status: TxStatus
    tx_hash: Optional[str] = None
    block_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is TxStatus.INCLUDED


class TxTracker:
    """
    Tracks one extrinsic from submission to a terminal state.

    Starts in SUBMITTED; the only legal transitions lead from SUBMITTED to one of
    INCLUDED, FAILED or INVALID. Transitions may be driven from another thread
    while a caller blocks in wait_for_terminal().
    """
    def __init__(self):
        self._cond = threading.Condition()
        self._result = TxResult(TxStatus.SUBMITTED)

    @property
    def status(self) -> TxStatus:
        return self._result.status

    def _transition(self, result: TxResult):
        with self._cond:
            if self._result.status is not TxStatus.SUBMITTED:
                raise ValueError(
                    f"illegal transaction transition {self._result.status.value} -> {result.status.value}"
                )
            self._result = result
            self._cond.notify_all()

    def mark_included(self, tx_hash: Optional[str] = None, block_hash: Optional[str] = None):
        self._transition(TxResult(TxStatus.INCLUDED, tx_hash=tx_hash, block_hash=block_hash))

    def mark_failed(self, error: str, tx_hash: Optional[str] = None, block_hash: Optional[str] = None):
        self._transition(TxResult(TxStatus.FAILED, tx_hash=tx_hash, block_hash=block_hash, error=error))

    def mark_invalid(self, error: str):
        self._transition(TxResult(TxStatus.INVALID, error=error))

    def wait_for_terminal(self, timeout: Optional[float] = None) -> TxResult:
        """Blocks until a terminal state is reached; on timeout returns the SUBMITTED result."""
        with self._cond:
            self._cond.wait_for(lambda: self._result.status in TERMINAL_STATUSES, timeout=timeout)
            return self._result


# --- Chain client ---

class CrustChainClient:
    """
    Wraps a SubstrateInterface connection to the Crust chain.

    Orders are placed through a configurable pallet call signed with an sr25519
    keypair derived from the configured seeds.
    """
    def __init__(self, url: str, seeds: str, order_module: str, order_function: str,
                 substrate_factory: Callable[..., Any] = SubstrateInterface,
                 keypair_factory: Callable[[str], Any] = Keypair.create_from_uri,
                 logger: Optional[logging.Logger] = None):
        self.url = url
        self.order_module = order_module
        self.order_function = order_function
        self._seeds = seeds
        self._substrate_factory = substrate_factory
        self._keypair_factory = keypair_factory
        self.api = None
        self.keypair = None
        self.logger = logger or logging.getLogger(__name__)

    def connect(self):
        self.api = self._substrate_factory(url=self.url)
        self.keypair = self._keypair_factory(self._seeds)
        self.logger.info(f"Connected to Crust chain at {self.url}, signer {self.keypair.ss58_address}")

    def close(self):
        if self.api is not None:
            self.api.close()
            self.api = None
            self.logger.info("Crust chain connection closed.")

    def _require_api(self):
        if self.api is None:
            raise TargetChainError("Crust chain client is not connected")
        return self.api

    def latest_finalized_block(self) -> int:
        api = self._require_api()
        block_hash = api.get_chain_finalised_head()
        return int(api.get_block_number(block_hash))

    def order(self, cid: str, size: int, tx_hash: str, chain_type: str, is_permanent: bool) -> bool:
        """
        Places a storage order for cid on the Crust chain.

        Returns:
            True if the extrinsic was included successfully, False otherwise.
        """
        if not check_cid(cid):
            self.logger.error(f"Illegal cid:{cid}, order from tx:{tx_hash} is not sent")
            return False
        call = self._require_api().compose_call(
            call_module=self.order_module,
            call_function=self.order_function,
            call_params=self._order_params(cid, size, tx_hash, chain_type, is_permanent),
        )
        result = self.send_tx(call)
        if not result.ok:
            self.logger.error(f"Order cid:{cid} ended as {result.status.value}: {result.error}")
        return result.ok

    @staticmethod
    def _order_params(cid: str, size: int, tx_hash: str, chain_type: str, is_permanent: bool) -> Dict[str, Any]:
        return {
            "cid": cid,
            "reported_file_size": size,
            "tx_hash": tx_hash,
            "chain_type": chain_type,
            "is_permanent": is_permanent,
        }

    def send_tx(self, call: Any) -> TxResult:
        """Signs, submits and tracks `call` until it reaches a terminal state."""
        api = self._require_api()
        self.logger.info("Sending tx to chain...")
        tracker = TxTracker()
        try:
            extrinsic = api.create_signed_extrinsic(call=call, keypair=self.keypair)
            receipt = api.submit_extrinsic(extrinsic, wait_for_inclusion=True)
        except SubstrateRequestException as e:
            # Rejected by the transaction pool (invalid, dropped, usurped).
            tracker.mark_invalid(str(e))
            return tracker.wait_for_terminal()

        if receipt.is_success:
            tracker.mark_included(tx_hash=receipt.extrinsic_hash, block_hash=receipt.block_hash)
            self.logger.info(f"Send transaction success, tx:{receipt.extrinsic_hash}")
        else:
            tracker.mark_failed(str(receipt.error_message), tx_hash=receipt.extrinsic_hash,
                                block_hash=receipt.block_hash)
            self.logger.error(f"Send transaction failed, tx:{receipt.extrinsic_hash}")
        return tracker.wait_for_terminal()
