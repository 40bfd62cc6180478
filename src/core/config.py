import os
from pydantic import BaseModel, Field
from typing import Optional

STEAM_API_URL = "http://api.steampowered.com"
PRICE_FEED_URL = "http://167.172.166.247/api/prices"


class IngestionSettings(BaseModel):
    """
    Tuning knobs for walking the trade history.
    """
    # GetTradeHistory caps max_trades at 100
    page_size: int = Field(100, gt=0, le=100)
    backoff_seconds: float = 5.0
    page_pause_seconds: float = 0.2
    # None = retry ambiguous responses forever
    max_backoff_retries: Optional[int] = None

    @classmethod
    def from_env(cls) -> "IngestionSettings":
        max_retries = os.getenv("MAX_BACKOFF_RETRIES")
        return cls(
            page_size=int(os.getenv("TRADE_PAGE_SIZE", "100")),
            backoff_seconds=float(os.getenv("TRADE_BACKOFF_SECONDS", "5.0")),
            page_pause_seconds=float(os.getenv("TRADE_PAGE_PAUSE_SECONDS", "0.2")),
            max_backoff_retries=int(max_retries) if max_retries else None,
        )


def http_timeout() -> float:
    return float(os.getenv("HTTP_TIMEOUT_SECONDS", "30.0"))


def mask_key(key: str) -> str:
    """Loggable form of a Steam Web API key."""
    return key[:4] + "..." if len(key) > 4 else "..."
