from __future__ import annotations

from typing import Optional, Tuple

from db import database

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStorage:
    """
    Durable two-slot store for the session: the bearer token and the
    serialized identity. Both slots are always written and cleared together.

    The token is mirrored in memory so the HTTP layer can read it
    synchronously on every request.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def read_pair(self) -> Tuple[Optional[str], Optional[str]]:
        """Return (token, user_json); either may be None."""
        async with database.connect() as conn:
            cur = await conn.execute(
                "SELECT key, value FROM kv WHERE key IN (?, ?);",
                (TOKEN_KEY, USER_KEY),
            )
            rows = await cur.fetchall()
            await cur.close()
        values = {row[0]: row[1] for row in rows}
        token = values.get(TOKEN_KEY)
        user = values.get(USER_KEY)
        self._token = token if token and user else None
        return token, user

    async def write_pair(self, token: str, user_json: str) -> None:
        async with database.connect() as conn:
            await conn.executemany(
                "INSERT OR REPLACE INTO kv(key, value) VALUES (?, ?);",
                [(TOKEN_KEY, token), (USER_KEY, user_json)],
            )
            await conn.commit()
        self._token = token

    async def clear(self) -> None:
        async with database.connect() as conn:
            await conn.execute(
                "DELETE FROM kv WHERE key IN (?, ?);", (TOKEN_KEY, USER_KEY)
            )
            await conn.commit()
        self._token = None
