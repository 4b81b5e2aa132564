# config.py
# Loads the relayer configuration from the environment (and an optional .env file).

import logging
import os

from dotenv import load_dotenv
from web3 import Web3

from .errors import ConfigError
from .target_chain import check_seeds

DEFAULT_ORDER_MODULE = "Market"
DEFAULT_ORDER_FUNCTION = "place_storage_order_through_eth_da"


class ConfigManager:
    """
    Manages application configuration, loading from environment variables.

    Required parameters raise ConfigError when absent. The optimism endpoint and
    contract address are only required while the EVM monitor task is enabled.
    """
    def __init__(self, load_env_file: bool = True):
        if load_env_file:
            load_dotenv()
        self.CRUST_SEEDS = self._get_param_or_fail("CRUST_SEEDS")
        self.CRUST_CHAIN_URL = self._get_param_or_fail("CRUST_CHAIN_URL")
        self.DB_PATH = self._get_param_or_fail("DB_PATH")

        self.OP_TASK_ENABLE = os.getenv("OP_TASK_ENABLE") != "false"
        self.OP_ENDPOINT_URL = self._get_param_or_fail_unless("OP_ENDPOINT_URL", not self.OP_TASK_ENABLE)
        self.OP_STORAGE_CONTRACT_ADDRESS = self._get_param_or_fail_unless(
            "OP_STORAGE_CONTRACT_ADDRESS", not self.OP_TASK_ENABLE
        )

        self.CRUST_ORDER_MODULE = os.getenv("CRUST_ORDER_MODULE", DEFAULT_ORDER_MODULE)
        self.CRUST_ORDER_FUNCTION = os.getenv("CRUST_ORDER_FUNCTION", DEFAULT_ORDER_FUNCTION)

        self.APP_ENV = os.getenv("APP_ENV", "development")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL") or ("INFO" if self.APP_ENV == "production" else "DEBUG")
        self.LOG_DIR = os.getenv("LOG_DIR", ".")

        self.validate()

    @staticmethod
    def _get_param_or_fail(name: str) -> str:
        value = os.getenv(name)
        if not value:
            raise ConfigError(name)
        return value

    @staticmethod
    def _get_param_or_fail_unless(name: str, optional: bool) -> str:
        """Like _get_param_or_fail, but returns "" instead of failing when optional."""
        value = os.getenv(name)
        if not value and not optional:
            raise ConfigError(name)
        return value or ""

    def validate(self):
        """Validates the shape of the parameters that were loaded."""
        if not check_seeds(self.CRUST_SEEDS):
            raise ConfigError("CRUST_SEEDS", "expected a 12 word mnemonic or a //derivation uri")
        if self.OP_TASK_ENABLE and not Web3.is_address(self.OP_STORAGE_CONTRACT_ADDRESS):
            raise ConfigError("OP_STORAGE_CONTRACT_ADDRESS", "not a valid EVM address")
        if logging.getLevelName(self.LOG_LEVEL.upper()) == f"Level {self.LOG_LEVEL.upper()}":
            raise ConfigError("LOG_LEVEL", f"unknown level {self.LOG_LEVEL}")
