import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from src.core.config import IngestionSettings, mask_key
from src.core.entities.refresh import IngestionSummary
from src.core.entities.trade import TradeCursor, TradeRecord
from src.core.exceptions import AmbiguousResponse
from src.core.interfaces.datasource import ITradeHistorySource
from src.core.interfaces.store import ITradeStore
from src.core.use_cases.valuation import build_name_lookup, value_trade

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    START = "start"
    FETCHING = "fetching"
    BACKOFF = "backoff"
    DONE = "done"
    FAILED = "failed"


class TradeIngestor:
    """
    Walks a user's full trade history page by page, values every trade and
    writes it to the store in the order pages arrive.

    Paging rules of GetTradeHistory:
      - Full pages continue forward from the last trade of the previous page.
      - Once fewer than a full page remain, the cursor is dropped and the tail
        is requested with navigating_back=true and the exact remaining count.
      - `more` missing from a response means "try again later": the same
        request is repeated after a backoff, nothing is advanced.
      - The fetched counter advances by the requested page size, not by the
        number of rows returned.
    """

    def __init__(
        self,
        source: ITradeHistorySource,
        store: ITradeStore,
        settings: Optional[IngestionSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.store = store
        self.settings = settings or IngestionSettings()
        self._sleep = sleep
        self.state = IngestionState.START

    def _page_size(self, total_trades: Optional[int], counter: int) -> int:
        if total_trades is None:
            return self.settings.page_size
        return min(self.settings.page_size, total_trades - counter)

    async def run(self, key: str) -> IngestionSummary:
        self.state = IngestionState.START
        try:
            summary = await self._walk(key)
        except Exception:
            self.state = IngestionState.FAILED
            raise
        self.state = IngestionState.DONE
        return summary

    async def _walk(self, key: str) -> IngestionSummary:
        summary = IngestionSummary()
        cursor: Optional[TradeCursor] = None
        counter = 0
        retries = 0
        label = mask_key(key)

        while True:
            max_trades = self._page_size(summary.total_trades, counter)
            if max_trades <= 0:
                break

            navigating_back = max_trades < self.settings.page_size
            if navigating_back:
                cursor = None

            self.state = IngestionState.FETCHING
            page = await self.source.fetch_page(key, cursor, max_trades, navigating_back)

            logger.info(
                f"Trade page for {label}: max={max_trades} total_trades={summary.total_trades} "
                f"counter={counter} more={page.more}"
            )

            if page.more is False:
                break

            if page.more is None:
                retries += 1
                summary.backoffs += 1
                cap = self.settings.max_backoff_retries
                if cap is not None and retries > cap:
                    raise AmbiguousResponse(
                        f"no definite 'more' flag for {label} after {cap} retries"
                    )
                self.state = IngestionState.BACKOFF
                logger.warning(
                    f"Ambiguous trade page for {label}, retrying in {self.settings.backoff_seconds}s"
                )
                await self._sleep(self.settings.backoff_seconds)
                continue

            retries = 0
            if page.total_trades is not None:
                summary.total_trades = page.total_trades

            name_lookup = build_name_lookup(page.descriptions)
            if page.trades:
                last = page.trades[-1]
                cursor = TradeCursor(tradeid=last.tradeid, time_init=last.time_init)

            for trade in page.trades:
                sent, received = await value_trade(trade, name_lookup, self.store)
                await self.store.upsert_trade(TradeRecord(
                    id=trade.tradeid,
                    key=key,
                    other=trade.steamid_other,
                    sent=sent,
                    received=received,
                    created_at=trade.time_init
                ))
                summary.trades_persisted += 1

            counter += max_trades
            summary.pages += 1
            await self._sleep(self.settings.page_pause_seconds)

        return summary
