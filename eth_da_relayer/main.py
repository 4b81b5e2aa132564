# main.py
# Process entry point: wires the components together and runs the watchdog loop.

import logging
import sys

from .config import ConfigManager
from .constants import SHUTDOWN_GRACE_SECONDS
from .cursor_store import CursorStore
from .errors import ConfigError
from .logger import AppContext, format_error, get_logger, setup_logging
from .monitor import create_monitor_task
from .target_chain import CrustChainClient
from .utils import run_with_timeout
from .watchdog import LivenessWatchdog


def start_crust_chain(config: ConfigManager, logger: logging.Logger) -> CrustChainClient:
    client = CrustChainClient(
        config.CRUST_CHAIN_URL,
        config.CRUST_SEEDS,
        config.CRUST_ORDER_MODULE,
        config.CRUST_ORDER_FUNCTION,
        logger=get_logger("crust", logger),
    )
    client.connect()
    return client


def main(config: ConfigManager):
    """
    Runs the relayer until the watchdog gives up or an unexpected error occurs.
    Never returns normally; every exit path raises.
    """
    logger = setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    db = CursorStore(config.DB_PATH)
    mainnet_api = None
    task = None
    try:
        mainnet_api = start_crust_chain(config, logger)
        context = AppContext(database=db, mainnet_api=mainnet_api, logger=logger)
        if config.OP_TASK_ENABLE:
            task = create_monitor_task(context, config)
            task.start()
        else:
            logger.info("Optimism monitor task is disabled.")
        LivenessWatchdog(mainnet_api, logger=get_logger("watchdog", logger)).run()
    except Exception as e:
        logger.error(f"unexpected error occurs, message:{e}")
        raise
    finally:
        if task is not None:
            logger.info("stopping tasks")
            close_quietly("task", lambda: run_with_timeout(task.stop, SHUTDOWN_GRACE_SECONDS), logger)
        close_quietly("database", lambda: run_with_timeout(db.close, SHUTDOWN_GRACE_SECONDS), logger)
        if mainnet_api is not None:
            close_quietly("crust client", mainnet_api.close, logger)


def close_quietly(name: str, closer, logger: logging.Logger):
    """Runs a shutdown step; a failure is logged so the remaining steps still run."""
    try:
        closer()
    except Exception as e:
        logger.error(f"failed to close {name}: {format_error(e)}")


def run():
    """Console script entry point: exits with status 1 on any fatal error."""
    try:
        config = ConfigManager()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
        logging.error(str(e))
        sys.exit(1)

    try:
        main(config)
    except KeyboardInterrupt:
        logging.getLogger("eth_da_relayer").info("Shutdown signal received. Exiting...")
        logging.shutdown()
        sys.exit(0)
    except Exception as e:
        logging.getLogger("eth_da_relayer").critical(f"A fatal error occurred: {format_error(e)}")
        logging.shutdown()
        sys.exit(1)
