from abc import ABC, abstractmethod
from typing import List, Optional
from src.core.entities.trade import TradeCursor, TradePage
from src.core.entities.price import PriceEntry

class ITradeHistorySource(ABC):
    @abstractmethod
    async def fetch_page(
        self,
        key: str,
        cursor: Optional[TradeCursor],
        max_trades: int,
        navigating_back: bool
    ) -> TradePage:
        """
        Issues exactly one page request. Raises FetchError on transport failure.
        """
        pass


class IPriceFeed(ABC):
    @abstractmethod
    async def get_prices(self) -> List[PriceEntry]:
        """
        Returns normalised entries (cents, no zero prices, no missing classids).
        """
        pass
