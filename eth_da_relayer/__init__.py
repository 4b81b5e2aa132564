# eth_da_relayer
# Relays EthDA storage-order events from an EVM chain into orders on the
# Crust (Substrate) chain.

__version__ = "0.1.0"
