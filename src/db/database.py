# manages the connection to the local state file, helpers internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager

import aiosqlite

from utils.config import STATE_DB_PATH
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = STATE_DB_PATH

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_initialized = False
_init_lock = asyncio.Lock()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Ensures the key/value table exists on first use.
    """
    global _initialized
    folder = os.path.dirname(DB_PATH)
    if folder:
        os.makedirs(folder, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                if not await _table_exists(conn, "kv"):
                    _logger.info(f"Initializing local state at {DB_PATH}...")
                    await conn.executescript(_SCHEMA)
                    await conn.commit()
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
