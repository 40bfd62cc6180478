import logging
import os
from functools import lru_cache
from typing import AsyncIterator, List, Optional
from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# --- Imports ---
from src.core.config import IngestionSettings
from src.core.entities.price import PriceQuote
from src.core.entities.refresh import CatalogRefreshResult, RefreshResult
from src.core.entities.trade import TradeRecord
from src.core.exceptions import AlreadyRunning, AmbiguousResponse, FetchError
from src.core.interfaces.datasource import IPriceFeed, ITradeHistorySource
from src.core.interfaces.store import ITradeStore
from src.core.services import CatalogService, RefreshService
from src.infrastructure.cache.redis_service import TradeCache
from src.infrastructure.gateways.price_feed import PriceFeedGateway
from src.infrastructure.gateways.steam_trade_api import SteamTradeGateway
from src.infrastructure.persistence.postgres_repo import PostgresRepo

# Setup Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("TradeAppraiser")

app = FastAPI(title="TradeAppraiser API", version="1.0.0", description="Steam trade history ingestion & valuation API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Dependency Injection ---

@lru_cache(maxsize=1)
def _open_repo(dsn: str) -> PostgresRepo:
    return PostgresRepo(dsn)

def get_repo() -> Optional[ITradeStore]:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        return None
    try:
        return _open_repo(db_url)
    except Exception as e:
        logger.error(f"Failed to connect to DB: {e}")
        return None

def require_repo(repo: Optional[ITradeStore] = Depends(get_repo)) -> ITradeStore:
    if repo is None:
        raise HTTPException(status_code=503, detail="Database not configured or unavailable")
    return repo

async def get_trade_source() -> AsyncIterator[ITradeHistorySource]:
    gateway = SteamTradeGateway()
    try:
        yield gateway
    finally:
        await gateway.aclose()

async def get_price_feed() -> AsyncIterator[IPriceFeed]:
    gateway = PriceFeedGateway()
    try:
        yield gateway
    finally:
        await gateway.aclose()

@lru_cache(maxsize=1)
def get_cache() -> TradeCache:
    return TradeCache()

def get_settings() -> IngestionSettings:
    return IngestionSettings.from_env()

# --- Endpoints ---

@app.get("/health")
async def health():
    return {"status": "healthy"}

@app.post("/v1/trades/{key}/refresh", response_model=RefreshResult)
async def refresh_trades(
    key: str,
    repo: ITradeStore = Depends(require_repo),
    source: ITradeHistorySource = Depends(get_trade_source),
    cache: TradeCache = Depends(get_cache),
    settings: IngestionSettings = Depends(get_settings)
):
    """
    Re-ingests the full trade history for `key`, replacing what is stored.
    Only one refresh per key may run at a time.
    """
    service = RefreshService(repo, source, settings)
    try:
        return await service.refresh(key)
    except AlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (FetchError, AmbiguousResponse) as e:
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        # partial results may have been written either way
        cache.invalidate(key)

@app.get("/v1/trades/{key}", response_model=List[TradeRecord])
async def get_trades(
    key: str,
    repo: ITradeStore = Depends(require_repo),
    cache: TradeCache = Depends(get_cache)
):
    cached = cache.get_trades(key)
    if cached is not None:
        return cached

    trades = await repo.get_trades(key)
    cache.set_trades(key, trades)
    return trades

@app.get("/v1/prices/{name:path}", response_model=PriceQuote)
async def get_price(name: str, repo: ITradeStore = Depends(require_repo)):
    return PriceQuote(name=name, price=await repo.get_price(name))

@app.post("/v1/prices/refresh", response_model=CatalogRefreshResult)
async def refresh_prices(
    repo: ITradeStore = Depends(require_repo),
    feed: IPriceFeed = Depends(get_price_feed)
):
    try:
        return await CatalogService(repo, feed).refresh_prices()
    except FetchError as e:
        raise HTTPException(status_code=502, detail=str(e))
