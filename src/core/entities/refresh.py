from pydantic import BaseModel
from typing import Optional


class IngestionSummary(BaseModel):
    """
    What a single walk over the trade history produced.
    """
    total_trades: Optional[int] = None
    pages: int = 0
    trades_persisted: int = 0
    backoffs: int = 0


class RefreshResult(BaseModel):
    key: str
    total_trades: Optional[int] = None
    took_seconds: int


class CatalogRefreshResult(BaseModel):
    prices_stored: int
    took_seconds: int
