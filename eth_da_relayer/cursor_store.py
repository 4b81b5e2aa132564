# cursor_store.py
# Durable per-chain scan cursor backed by sqlite.

import logging
import os
import sqlite3
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class CursorStore:
    """
    Stores the next block to scan for each chain label in the `monitor` table.

    One row per chain label; `set` is an upsert. The connection is shared by the
    scheduler thread and the main thread, so every statement runs under a lock.
    """
    def __init__(self, db_path: str):
        self.db_path = db_path
        parent = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_schema()
        logger.info(f"Cursor store opened at '{db_path}'.")

    def _init_schema(self):
        with self._lock, self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS monitor (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    blockNumber INTEGER NOT NULL,
                    chainType TEXT NOT NULL UNIQUE
                )
                """
            )

    def get(self, chain_type: str) -> Optional[int]:
        """Returns the stored cursor for chain_type, or None if it was never scanned."""
        with self._lock:
            row = self.conn.execute(
                "SELECT blockNumber FROM monitor WHERE chainType = ?", (chain_type,)
            ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def set(self, chain_type: str, block_number: int):
        """Upserts the cursor for chain_type."""
        if block_number < 0:
            raise ValueError(f"block number must be >= 0, got {block_number}")
        with self._lock, self.conn:
            self.conn.execute(
                "INSERT INTO monitor (blockNumber, chainType) VALUES (?, ?) "
                "ON CONFLICT(chainType) DO UPDATE SET blockNumber = excluded.blockNumber",
                (block_number, chain_type),
            )
        logger.debug(f"Cursor for '{chain_type}' set to {block_number}.")

    def close(self):
        with self._lock:
            self.conn.close()
        logger.info("Cursor store closed.")
