import logging
import os
from typing import List, Optional

import httpx
from pydantic import ValidationError

from src.core.config import PRICE_FEED_URL, http_timeout
from src.core.entities.price import FeedPrice, PriceEntry
from src.core.exceptions import FetchError
from src.core.interfaces.datasource import IPriceFeed

logger = logging.getLogger(__name__)


class PriceFeedGateway(IPriceFeed):
    def __init__(self, url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.url = url or os.getenv("PRICE_FEED_URL", PRICE_FEED_URL)
        self.client = client or httpx.AsyncClient(timeout=http_timeout())

    async def get_prices(self) -> List[PriceEntry]:
        try:
            resp = await self.client.get(self.url)
            resp.raise_for_status()
            rows = resp.json()
        except httpx.HTTPError as e:
            raise FetchError(f"Price feed request failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Price feed response is not JSON: {e}") from e

        if not isinstance(rows, list):
            raise FetchError("Price feed did not return a list")

        entries = []
        skipped = 0
        for row in rows:
            try:
                entry = FeedPrice.model_validate(row).to_entry()
            except ValidationError as e:
                logger.warning(f"Skipping malformed price row: {e}")
                skipped += 1
                continue
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        logger.info(f"Price feed returned {len(entries)} usable entries ({skipped} dropped)")
        return entries

    async def aclose(self):
        await self.client.aclose()
