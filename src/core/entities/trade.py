from pydantic import BaseModel, ConfigDict
from typing import List, Optional


class TradeAsset(BaseModel):
    """
    A single item reference inside a raw trade.
    Only the classid matters for valuation.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    classid: str


class RawTrade(BaseModel):
    """
    Trade as returned by GetTradeHistory, before valuation.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    tradeid: str
    steamid_other: str
    time_init: int
    assets_given: List[TradeAsset] = []
    assets_received: List[TradeAsset] = []


class ItemDescription(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    classid: str
    market_hash_name: str


class TradeCursor(BaseModel):
    """
    Continuation token: echoed back as start_after_tradeid / start_after_time.
    Never compared or interpreted.
    """
    tradeid: str
    time_init: int


class TradePage(BaseModel):
    """
    One normalised page of trade history.
    `more` is tri-state: True, False, or None when the server was ambiguous.
    """
    trades: List[RawTrade] = []
    descriptions: List[ItemDescription] = []
    more: Optional[bool] = None
    total_trades: Optional[int] = None


class TradeRecord(BaseModel):
    """
    Valued trade as persisted in the store.
    Compatible with FastAPI serialisation.
    """
    id: str
    key: str
    other: str
    sent: int
    received: int
    created_at: int

    class Config:
        json_schema_extra = {
            "example": {
                "id": "4203457001394455071",
                "key": "0123456789ABCDEF0123456789ABCDEF",
                "other": "76561198000000000",
                "sent": 1250,
                "received": 1830,
                "created_at": 1705000000,
            }
        }
