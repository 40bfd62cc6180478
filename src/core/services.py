import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from src.core.config import IngestionSettings, mask_key
from src.core.entities.price import PriceEntry
from src.core.entities.refresh import CatalogRefreshResult, RefreshResult
from src.core.entities.trade import TradeRecord
from src.core.interfaces.datasource import IPriceFeed, ITradeHistorySource
from src.core.interfaces.store import ITradeStore
from src.core.use_cases.refresh_lock import RefreshLockRegistry
from src.core.use_cases.trade_ingestor import TradeIngestor

logger = logging.getLogger(__name__)

# Shared by every RefreshService unless a registry is injected.
DEFAULT_LOCKS = RefreshLockRegistry()


class RefreshService:
    def __init__(
        self,
        store: ITradeStore,
        source: ITradeHistorySource,
        settings: Optional[IngestionSettings] = None,
        locks: Optional[RefreshLockRegistry] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.source = source
        self.settings = settings or IngestionSettings()
        self.locks = locks or DEFAULT_LOCKS
        self._sleep = sleep

    async def refresh(self, key: str) -> RefreshResult:
        """
        Replaces every stored trade for `key` with a fresh walk of its history.
        Raises AlreadyRunning if another refresh for the same key is in flight.
        Trades written before a failure stay in the store.
        """
        with self.locks.hold(key):
            started = time.monotonic()
            await self.store.delete_trades(key)

            try:
                summary = await TradeIngestor(
                    self.source, self.store, self.settings, sleep=self._sleep
                ).run(key)
            except Exception as e:
                logger.error(f"Refresh failed for {mask_key(key)}: {e}")
                raise

            took = int(time.monotonic() - started)
            logger.info(
                f"Refreshed {mask_key(key)}: {summary.trades_persisted} trades over {summary.pages} pages "
                f"(reported total {summary.total_trades}) in {took}s"
            )
            return RefreshResult(key=key, total_trades=summary.total_trades, took_seconds=took)

    def is_refreshing(self, key: str) -> bool:
        return self.locks.is_locked(key)

    async def get_trades(self, key: str) -> List[TradeRecord]:
        return await self.store.get_trades(key)

    async def get_price(self, name: str) -> Optional[int]:
        return await self.store.get_price(name)


class CatalogService:
    def __init__(self, store: ITradeStore, feed: IPriceFeed):
        self.store = store
        self.feed = feed

    async def refresh_prices(self) -> CatalogRefreshResult:
        """
        Swaps the whole price table for the current feed contents.
        The table is only touched once the feed has been fetched.
        """
        started = time.monotonic()
        entries = self._dedupe(await self.feed.get_prices())
        stored = await self.store.replace_prices(entries)
        took = int(time.monotonic() - started)
        logger.info(f"Price catalog replaced: {stored} entries in {took}s")
        return CatalogRefreshResult(prices_stored=stored, took_seconds=took)

    @staticmethod
    def _dedupe(entries: List[PriceEntry]) -> List[PriceEntry]:
        # classid is the table's primary key; keep the first row per classid
        seen = set()
        unique = []
        for entry in entries:
            if entry.classid in seen:
                continue
            seen.add(entry.classid)
            unique.append(entry)
        return unique
