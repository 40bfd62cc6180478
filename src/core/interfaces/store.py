from abc import ABC, abstractmethod
from typing import List, Optional
from src.core.entities.trade import TradeRecord
from src.core.entities.price import PriceEntry

class IPriceCatalog(ABC):
    @abstractmethod
    async def get_price(self, name: str) -> Optional[int]:
        pass


class ITradeStore(IPriceCatalog):
    @abstractmethod
    async def upsert_trade(self, trade: TradeRecord) -> None:
        pass

    @abstractmethod
    async def delete_trades(self, key: str) -> None:
        pass

    @abstractmethod
    async def get_trades(self, key: str) -> List[TradeRecord]:
        pass

    @abstractmethod
    async def replace_prices(self, entries: List[PriceEntry]) -> int:
        """
        Deletes every stored price, then inserts `entries`. Returns rows stored.
        """
        pass
