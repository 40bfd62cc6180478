"""
Price Entities for TradeAppraiser

Prices are stored in integer cents, floored from the feed's fractional value.
"""
import math
from pydantic import BaseModel, ConfigDict
from typing import Optional


class FeedPrice(BaseModel):
    """
    Raw row from the remote price feed.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    name: str
    classid: Optional[str] = None
    price: Optional[float] = None

    def to_entry(self) -> Optional["PriceEntry"]:
        """
        Converts to a storable entry, or None when the row has no identity
        or rounds down to zero.
        """
        if not self.classid or self.classid == "0" or not self.price:
            return None
        cents = math.floor(self.price * 100)
        if cents <= 0:
            return None
        return PriceEntry(name=self.name, classid=self.classid, price=cents)


class PriceEntry(BaseModel):
    name: str
    classid: str
    price: int  # cents


class PriceQuote(BaseModel):
    name: str
    price: Optional[int] = None
