import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from src.core.entities.trade import ItemDescription, RawTrade, TradeAsset
from src.core.interfaces.store import IPriceCatalog

logger = logging.getLogger(__name__)


def build_name_lookup(descriptions: List[ItemDescription]) -> Dict[str, str]:
    """
    classid -> market_hash_name for a single page. Later duplicates win.
    """
    lookup = {}
    for desc in descriptions:
        lookup[desc.classid] = desc.market_hash_name
    return lookup


async def _price_of(asset: TradeAsset, name_lookup: Dict[str, str], catalog: IPriceCatalog) -> int:
    name = name_lookup.get(asset.classid)
    if name is None:
        logger.debug(f"No description for classid {asset.classid}, valued at 0")
        return 0

    price = await catalog.get_price(name)
    if price is None:
        logger.debug(f"No catalog price for '{name}', valued at 0")
        return 0
    return price


async def value_items(
    items: Optional[List[TradeAsset]],
    name_lookup: Dict[str, str],
    catalog: IPriceCatalog
) -> int:
    """
    Sums catalog prices for `items`. Unresolvable items count as 0.
    """
    if not items:
        return 0

    prices = await asyncio.gather(*(_price_of(item, name_lookup, catalog) for item in items))
    return sum(prices)


async def value_trade(
    trade: RawTrade,
    name_lookup: Dict[str, str],
    catalog: IPriceCatalog
) -> Tuple[int, int]:
    """
    Returns (sent, received). Both sides are valued concurrently.
    """
    sent, received = await asyncio.gather(
        value_items(trade.assets_given, name_lookup, catalog),
        value_items(trade.assets_received, name_lookup, catalog),
    )
    return sent, received
