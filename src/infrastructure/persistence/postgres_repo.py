import asyncio
import logging
import os
from contextlib import contextmanager
from psycopg2.extras import execute_values
from psycopg2.pool import ThreadedConnectionPool
from typing import List, Optional
from src.core.config import mask_key
from src.core.interfaces.store import ITradeStore
from src.core.entities.trade import TradeRecord
from src.core.entities.price import PriceEntry

logger = logging.getLogger(__name__)


class PostgresRepo(ITradeStore):
    """
    psycopg2 is blocking, so every public coroutine hands its work to a thread.
    Connections come from a thread-safe pool shared by those worker threads.
    """

    def __init__(self, dsn: str, max_connections: Optional[int] = None):
        self.dsn = dsn
        max_connections = max_connections or int(os.getenv("DB_POOL_MAX", "10"))
        self.pool = ThreadedConnectionPool(1, max_connections, dsn)
        self._init_db()

    @contextmanager
    def _connection(self):
        """Commits on success, rolls back on error, always returns the connection."""
        conn = self.pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.pool.putconn(conn)

    def _init_db(self):
        with self._connection() as conn, conn.cursor() as cur:
            # Trades Table
            cur.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id VARCHAR NOT NULL,
                    "key" VARCHAR NOT NULL,
                    other VARCHAR NOT NULL,
                    sent BIGINT NOT NULL,
                    received BIGINT NOT NULL,
                    created_at BIGINT NOT NULL,
                    PRIMARY KEY (id, "key")
                );
            """)

            # Prices Table
            cur.execute("""
                CREATE TABLE IF NOT EXISTS prices (
                    name VARCHAR NOT NULL,
                    classid VARCHAR PRIMARY KEY,
                    price BIGINT NOT NULL
                );
            """)
            cur.execute("CREATE INDEX IF NOT EXISTS prices_name_idx ON prices (name);")

    def _upsert_trade(self, t: TradeRecord):
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO trades (id, "key", other, sent, received, created_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (id, "key") DO UPDATE SET
                    other = EXCLUDED.other,
                    sent = EXCLUDED.sent,
                    received = EXCLUDED.received,
                    created_at = EXCLUDED.created_at
                """,
                (t.id, t.key, t.other, t.sent, t.received, t.created_at)
            )

    def _delete_trades(self, key: str):
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute('DELETE FROM trades WHERE "key" = %s', (key,))
            logger.info(f"Deleted {cur.rowcount} stored trades for {mask_key(key)}")

    def _get_trades(self, key: str) -> List[TradeRecord]:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, "key", other, sent, received, created_at
                FROM trades
                WHERE "key" = %s
                ORDER BY created_at DESC, id DESC
                """,
                (key,)
            )
            rows = cur.fetchall()

        trades = []
        for row in rows:
            trades.append(TradeRecord(
                id=row[0],
                key=row[1],
                other=row[2],
                sent=int(row[3]),
                received=int(row[4]),
                created_at=int(row[5])
            ))
        return trades

    def _get_price(self, name: str) -> Optional[int]:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("SELECT price FROM prices WHERE name = %s LIMIT 1", (name,))
            row = cur.fetchone()
        return int(row[0]) if row else None

    def _replace_prices(self, entries: List[PriceEntry]) -> int:
        data = [(e.name, e.classid, e.price) for e in entries]

        # Single transaction: readers see the old table or the new one
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM prices")
            if data:
                execute_values(cur, "INSERT INTO prices (name, classid, price) VALUES %s", data)
        return len(data)

    def close(self):
        self.pool.closeall()

    # ITradeStore Implementation
    async def upsert_trade(self, trade: TradeRecord) -> None:
        await asyncio.to_thread(self._upsert_trade, trade)

    async def delete_trades(self, key: str) -> None:
        await asyncio.to_thread(self._delete_trades, key)

    async def get_trades(self, key: str) -> List[TradeRecord]:
        return await asyncio.to_thread(self._get_trades, key)

    async def get_price(self, name: str) -> Optional[int]:
        return await asyncio.to_thread(self._get_price, name)

    async def replace_prices(self, entries: List[PriceEntry]) -> int:
        return await asyncio.to_thread(self._replace_prices, entries)
