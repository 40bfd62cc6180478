from typing import Dict, List, Optional, Tuple
from src.core.interfaces.store import ITradeStore
from src.core.entities.trade import TradeRecord
from src.core.entities.price import PriceEntry


class InMemoryRepo(ITradeStore):
    """
    Dict-backed store for tests and local runs without Postgres.
    Trades keep insertion order, matching the order pages were ingested.
    """

    def __init__(self, prices: Optional[List[PriceEntry]] = None):
        self.trades: Dict[Tuple[str, str], TradeRecord] = {}
        self.prices: Dict[str, PriceEntry] = {}
        self.upserts = 0
        if prices:
            for entry in prices:
                self.prices[entry.classid] = entry

    async def upsert_trade(self, trade: TradeRecord) -> None:
        self.upserts += 1
        self.trades[(trade.id, trade.key)] = trade

    async def delete_trades(self, key: str) -> None:
        for ident in [k for k in self.trades if k[1] == key]:
            del self.trades[ident]

    async def get_trades(self, key: str) -> List[TradeRecord]:
        return [t for (_, owner), t in self.trades.items() if owner == key]

    async def get_price(self, name: str) -> Optional[int]:
        for entry in self.prices.values():
            if entry.name == name:
                return entry.price
        return None

    async def replace_prices(self, entries: List[PriceEntry]) -> int:
        self.prices = {e.classid: e for e in entries}
        return len(self.prices)
