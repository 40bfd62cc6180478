"""
Pytest configuration and shared fixtures.
"""
import asyncio
from typing import Dict, List, Optional, Set

import pytest
from httpx import AsyncClient, ASGITransport

from src.api import main
from src.core.config import IngestionSettings
from src.core.entities.price import PriceEntry
from src.core.entities.trade import TradePage
from src.core.exceptions import FetchError
from src.core.interfaces.datasource import ITradeHistorySource
from src.infrastructure.cache.redis_service import TradeCache
from src.infrastructure.persistence.memory_repo import InMemoryRepo

TEST_KEY = "0123456789ABCDEF0123456789ABCDEF"

AK_NAME = "AK-47 | Redline (Field-Tested)"
AWP_NAME = "AWP | Asiimov (Battle-Scarred)"
STICKER_NAME = "Sticker | Unpriced"

DESCRIPTIONS = [
    {"classid": "10", "market_hash_name": AK_NAME},
    {"classid": "11", "market_hash_name": AWP_NAME},
    {"classid": "99", "market_hash_name": STICKER_NAME},
]


def make_history(n: int) -> List[dict]:
    """
    n raw trades, oldest first. Every trade gives an AK and receives an AWP.
    """
    return [
        {
            "tradeid": str(1000 + i),
            "steamid_other": "76561198000000001",
            "time_init": 1700000000 + i,
            "assets_given": [{"classid": "10"}],
            "assets_received": [{"classid": "11"}],
        }
        for i in range(n)
    ]


class FakeTradeHistory(ITradeHistorySource):
    """
    Simulated GetTradeHistory.

    Forward requests continue after the cursor's trade; reverse requests
    return the newest `max_trades` trades. `overrides` swaps in a scripted
    page for a given call number (1-based) and `fail_on` raises FetchError.
    With `flag_last_page` the page that reaches the end of history carries
    its trades together with more=false, as GetTradeHistory does.
    """

    def __init__(
        self,
        trades: List[dict],
        overrides: Optional[Dict[int, TradePage]] = None,
        fail_on: Optional[Set[int]] = None,
        gate: Optional[asyncio.Event] = None,
        flag_last_page: bool = False,
    ):
        self.trades = trades
        self.overrides = overrides or {}
        self.fail_on = fail_on or set()
        self.gate = gate
        self.flag_last_page = flag_last_page
        self.calls = []

    async def fetch_page(self, key, cursor, max_trades, navigating_back):
        if self.gate is not None:
            await self.gate.wait()

        self.calls.append((cursor, max_trades, navigating_back))
        call_no = len(self.calls)

        if call_no in self.fail_on:
            raise FetchError("Trade history request failed: 503 Service Unavailable")
        if call_no in self.overrides:
            return self.overrides[call_no]

        if navigating_back:
            chunk = self.trades[-max_trades:] if max_trades > 0 else []
            at_end = True
        else:
            start = 0
            if cursor is not None:
                ids = [t["tradeid"] for t in self.trades]
                start = ids.index(cursor.tradeid) + 1
            chunk = self.trades[start:start + max_trades]
            at_end = start + max_trades >= len(self.trades)

        return TradePage(
            trades=chunk,
            descriptions=DESCRIPTIONS,
            more=bool(chunk) and not (self.flag_last_page and at_end),
            total_trades=len(self.trades),
        )


@pytest.fixture
def history():
    def _build(n: int, **kwargs) -> FakeTradeHistory:
        return FakeTradeHistory(make_history(n), **kwargs)
    return _build


@pytest.fixture
def repo():
    """Store seeded with AK at 500 cents and AWP at 200 cents."""
    return InMemoryRepo(prices=[
        PriceEntry(name=AK_NAME, classid="10", price=500),
        PriceEntry(name=AWP_NAME, classid="11", price=200),
    ])


@pytest.fixture
def sleeps():
    """Records requested delays instead of sleeping."""
    delays = []

    async def _sleep(seconds: float):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


class FakeRedis:
    def __init__(self):
        self.data = {}

    def ping(self):
        return True

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
async def client(repo, history, fake_redis):
    """Async HTTP client for the FastAPI app with in-memory collaborators."""
    source = history(250)
    main.app.dependency_overrides[main.get_repo] = lambda: repo
    main.app.dependency_overrides[main.get_trade_source] = lambda: source
    main.app.dependency_overrides[main.get_cache] = lambda: TradeCache(client=fake_redis)
    main.app.dependency_overrides[main.get_settings] = lambda: IngestionSettings(
        backoff_seconds=0, page_pause_seconds=0
    )

    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.source = source
        yield ac

    main.app.dependency_overrides.clear()
