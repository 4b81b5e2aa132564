# logger.py
# Process-wide logging setup and the application context handed to every task.

import logging
import os
import traceback
from dataclasses import dataclass, field
from typing import Any, Optional

ROOT_LOGGER_NAME = "eth_da_relayer"
ERROR_LOG_FILE = "eth-da-api-error.log"
COMBINED_LOG_FILE = "eth-da-api-combined.log"

LOG_FORMAT = "[%(asctime)s] %(levelname)s: [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_dir: Optional[str] = ".") -> logging.Logger:
    """
    Configures the relayer's root logger: console output plus an error-only
    file and a combined file. Calling it again replaces the previous handlers.

    Args:
        level: Logging level name (e.g. 'INFO', 'DEBUG').
        log_dir: Directory for the log files, or None to log to the console only.

    Returns:
        The configured root logger of the relayer.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        error_file = logging.FileHandler(os.path.join(log_dir, ERROR_LOG_FILE))
        error_file.setLevel(logging.ERROR)
        error_file.setFormatter(formatter)
        logger.addHandler(error_file)

        combined_file = logging.FileHandler(os.path.join(log_dir, COMBINED_LOG_FILE))
        combined_file.setFormatter(formatter)
        logger.addHandler(combined_file)

    logger.propagate = False
    return logger


def get_logger(module_id: str, parent: Optional[logging.Logger] = None) -> logging.Logger:
    """Returns a child of the relayer logger (or of `parent`) tagged with module_id."""
    return (parent or logging.getLogger(ROOT_LOGGER_NAME)).getChild(module_id)


def format_error(e: BaseException) -> str:
    """Renders an exception with its traceback for a log line."""
    return "".join(traceback.format_exception(type(e), e, e.__traceback__)).rstrip()


@dataclass
class AppContext:
    """Shared collaborators created once at process start."""
    database: Any
    mainnet_api: Any
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(ROOT_LOGGER_NAME))
