import json
import os
import sys
import tempfile

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from eth_da_relayer.constants import ETH_DA_EVM_TOPICS
from eth_da_relayer.cursor_store import CursorStore

CONTRACT = "0x1234567890123456789012345678901234567890"
CID_V0 = "QmPZv7P8nQUSh2CpqTvUeYemFyjvMjgWEs8H1Tm8b3zAm9"
CID_V1 = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


def make_log(cid=CID_V0, size=1024, is_permanent=False, tx_hash="0x" + "ab" * 32, block_number=10001,
             message=None, topic=None):
    """Builds a log record shaped like the ones web3 returns from eth_getLogs."""
    if message is None:
        message = json.dumps({"cid": cid, "size": size, "isPermanent": is_permanent})
    return {
        "address": CONTRACT,
        "topics": [HexBytes(topic or ETH_DA_EVM_TOPICS[0])],
        "data": HexBytes(abi_encode(["string"], [message])),
        "blockNumber": block_number,
        "transactionHash": HexBytes(tx_hash),
        "logIndex": 0,
        "removed": False,
    }


class FakeConnector:
    """Source chain stand-in: a fixed head and logs keyed by block number."""
    def __init__(self, head=None, logs=None, fail_on_call=None):
        self.head = head
        self.logs = logs or []
        self.fail_on_call = fail_on_call
        self.calls = []

    def get_latest_block_number(self):
        return self.head

    def get_logs(self, address, topics, from_block, to_block):
        self.calls.append((from_block, to_block))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ConnectionError("rpc unreachable")
        return [log for log in self.logs if from_block <= log["blockNumber"] <= to_block]


class FakeOrderClient:
    """Target chain stand-in. Each outcome is True, False or an exception to raise."""
    def __init__(self, outcomes=None, default=True):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls = []

    def order(self, cid, size, tx_hash, chain_type, is_permanent):
        self.calls.append((cid, size, tx_hash, chain_type, is_permanent))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


class ManualTimer:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fn()


class ManualTimerFactory:
    """Records every timer an IntervalTask creates; tests fire them by hand."""
    def __init__(self):
        self.timers = []

    def __call__(self, delay, fn):
        timer = ManualTimer(delay, fn)
        self.timers.append(timer)
        return timer

    @property
    def last(self):
        return self.timers[-1]


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture(scope="function")
def store_tmp():
    tmp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False).name
    store = CursorStore(tmp_db)
    yield store
    store.close()
    os.remove(tmp_db)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def timer_factory():
    return ManualTimerFactory()


@pytest.fixture
def fake_clock():
    return FakeClock()


MNEMONIC = "bottom drive obey lake curtain smoke basket hold race lonely fit walk"
CONFIG_KEYS = [
    "CRUST_SEEDS", "CRUST_CHAIN_URL", "DB_PATH", "OP_TASK_ENABLE", "OP_ENDPOINT_URL",
    "OP_STORAGE_CONTRACT_ADDRESS", "CRUST_ORDER_MODULE", "CRUST_ORDER_FUNCTION",
    "APP_ENV", "LOG_LEVEL", "LOG_DIR",
]


@pytest.fixture
def env(monkeypatch):
    """A complete, valid relayer environment."""
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CRUST_SEEDS", MNEMONIC)
    monkeypatch.setenv("CRUST_CHAIN_URL", "wss://rpc.crust.network")
    monkeypatch.setenv("DB_PATH", "/tmp/relayer.db")
    monkeypatch.setenv("OP_ENDPOINT_URL", "https://mainnet.optimism.io")
    monkeypatch.setenv("OP_STORAGE_CONTRACT_ADDRESS", CONTRACT)
    return monkeypatch
