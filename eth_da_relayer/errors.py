# errors.py
# Exception types shared across the relayer.


class RelayerError(Exception):
    """Base class for every error raised by the relayer."""


class ConfigError(RelayerError):
    """Raised when a required configuration parameter is missing or invalid."""
    def __init__(self, name: str, reason: str = "missing"):
        self.name = name
        self.reason = reason
        if reason == "missing":
            message = f"Required config param '{name}' missing"
        else:
            message = f"Invalid config param '{name}': {reason}"
        super().__init__(message)


class SchedulerConfigError(RelayerError):
    """Raised when an interval task is created with a non-positive delay or interval."""


class ChainStalledError(RelayerError):
    """Raised by the watchdog when the settlement chain stops producing finalized blocks."""
    def __init__(self, last_block: int, stalled_seconds: float):
        self.last_block = last_block
        self.stalled_seconds = stalled_seconds
        super().__init__(
            f"block not updating: no new finalized block after #{last_block} "
            f"for {stalled_seconds:.0f} seconds"
        )


class EventDecodeError(RelayerError):
    """Raised when a log record cannot be decoded into an order event."""


class TargetChainError(RelayerError):
    """Raised when the target-chain client is used before it is connected."""
