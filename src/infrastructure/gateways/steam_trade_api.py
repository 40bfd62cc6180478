import logging
import os
from typing import Optional

import httpx
from pydantic import ValidationError

from src.core.config import STEAM_API_URL, http_timeout
from src.core.entities.trade import TradeCursor, TradePage
from src.core.exceptions import FetchError
from src.core.interfaces.datasource import ITradeHistorySource

logger = logging.getLogger(__name__)
# httpx logs every request URL at INFO, and the URL carries the API key
logging.getLogger("httpx").setLevel(logging.WARNING)

TRADE_HISTORY_PATH = "/IEconService/GetTradeHistory/v1"


def _describe(error: httpx.HTTPError) -> str:
    # str(error) carries the request URL, key included
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code}"
    return type(error).__name__


class SteamTradeGateway(ITradeHistorySource):
    """
    Implementation of ITradeHistorySource for the Steam Web API
    (IEconService/GetTradeHistory).
    """

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        """
        :param base_url: Steam Web API root; defaults to STEAM_API_URL env var.
        :param client: Pre-built client (tests pass one with a MockTransport).
        """
        self.base_url = base_url or os.getenv("STEAM_API_URL", STEAM_API_URL)
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=http_timeout())
        logger.info(f"SteamTradeGateway initialized. URL: {self.base_url}")

    @staticmethod
    def build_params(
        key: str,
        cursor: Optional[TradeCursor],
        max_trades: int,
        navigating_back: bool
    ) -> dict:
        params = {"key": key}
        if cursor is not None:
            params["start_after_tradeid"] = cursor.tradeid
            params["start_after_time"] = cursor.time_init
        params.update({
            "max_trades": max_trades,
            "get_descriptions": "true",
            "include_total": "true",
            "navigating_back": "true" if navigating_back else "false",
        })
        return params

    async def fetch_page(
        self,
        key: str,
        cursor: Optional[TradeCursor],
        max_trades: int,
        navigating_back: bool
    ) -> TradePage:
        params = self.build_params(key, cursor, max_trades, navigating_back)

        try:
            resp = await self.client.get(TRADE_HISTORY_PATH, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise FetchError(f"Trade history request failed: {_describe(e)}") from e
        except ValueError as e:
            raise FetchError("Trade history response is not JSON") from e

        return self._map_response(data)

    def _map_response(self, data) -> TradePage:
        """
        Maps the raw GetTradeHistory JSON to a TradePage.
        Anything other than a JSON boolean in `more` is treated as ambiguous.
        """
        response = data.get("response") if isinstance(data, dict) else None
        if not isinstance(response, dict):
            # Steam answers {"response": {}} when it is overloaded
            return TradePage()

        more = response.get("more")
        total = response.get("total_trades")

        try:
            return TradePage(
                trades=response.get("trades") or [],
                descriptions=response.get("descriptions") or [],
                more=more if isinstance(more, bool) else None,
                total_trades=int(total) if total is not None else None,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed trade history page: {e}") from e

    async def aclose(self):
        await self.client.aclose()
