# monitor.py
# Binds the log scanner for one chain to an interval task.

from typing import List, Optional

from .config import ConfigManager
from .constants import (
    ETH_DA_EVM_ABI,
    ETH_DA_EVM_TOPICS,
    MONITOR_INTERVAL_SECONDS,
    MONITOR_START_DELAY_SECONDS,
    EVMChainType,
)
from .events import EventParser
from .logger import AppContext, get_logger
from .scanner import LogScanner
from .scheduler import IntervalTask, make_interval_task
from .source_chain import BlockchainConnector
from .submission import OrderSubmitter


def build_scanner(context: AppContext, endpoint: str, contract_address: str, abi: List[dict],
                  topics: List[str], chain_type: str,
                  connector: Optional[BlockchainConnector] = None) -> LogScanner:
    """Wires a LogScanner for one chain out of the shared context."""
    logger = get_logger(f"monitor.{chain_type}", context.logger)
    return LogScanner(
        connector=connector or BlockchainConnector(endpoint, logger=logger),
        cursor_store=context.database,
        submitter=OrderSubmitter(context.mainnet_api, logger=logger),
        contract_address=contract_address,
        topics=topics,
        chain_type=chain_type,
        parser=EventParser(abi, topics),
        logger=logger,
    )


def create_monitor_task(context: AppContext, config: ConfigManager,
                        connector: Optional[BlockchainConnector] = None, **task_kwargs) -> IntervalTask:
    """Returns the (not yet started) task that scans the optimism storage contract."""
    chain_type = EVMChainType.OPTIMISM.value
    context.logger.info(f"---> Optimism contract address:{config.OP_STORAGE_CONTRACT_ADDRESS}")
    context.logger.info(f"---> Optimism endpoint:{config.OP_ENDPOINT_URL}")
    scanner = build_scanner(
        context,
        config.OP_ENDPOINT_URL,
        config.OP_STORAGE_CONTRACT_ADDRESS,
        ETH_DA_EVM_ABI,
        ETH_DA_EVM_TOPICS,
        chain_type,
        connector=connector,
    )

    def handle_monitor(ctx: AppContext):
        scanner.scan()

    task_kwargs.setdefault("logger", get_logger("scheduler", context.logger))
    return make_interval_task(
        MONITOR_START_DELAY_SECONDS,
        MONITOR_INTERVAL_SECONDS,
        f"Monitor-{chain_type}",
        context,
        handle_monitor,
        **task_kwargs,
    )
