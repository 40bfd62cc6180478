"""
Tests for per-trade valuation against the price catalog.
"""
import pytest

from src.core.entities.trade import ItemDescription, RawTrade, TradeAsset
from src.core.use_cases.valuation import build_name_lookup, value_items, value_trade

from conftest import DESCRIPTIONS, AK_NAME


@pytest.fixture
def lookup():
    return build_name_lookup([ItemDescription(**d) for d in DESCRIPTIONS])


@pytest.mark.asyncio
async def test_empty_or_missing_items_value_zero(repo, lookup):
    assert await value_items([], lookup, repo) == 0
    assert await value_items(None, lookup, repo) == 0


@pytest.mark.asyncio
async def test_unpriced_item_counts_as_zero(repo, lookup):
    items = [TradeAsset(classid="99")]
    assert await value_items(items, lookup, repo) == 0


@pytest.mark.asyncio
async def test_item_without_description_counts_as_zero(repo, lookup):
    items = [TradeAsset(classid="10"), TradeAsset(classid="12345")]
    assert await value_items(items, lookup, repo) == 500


@pytest.mark.asyncio
async def test_duplicate_items_are_each_counted(repo, lookup):
    items = [TradeAsset(classid="10"), TradeAsset(classid="10"), TradeAsset(classid="11")]
    assert await value_items(items, lookup, repo) == 1200


@pytest.mark.asyncio
async def test_trade_example_sent_and_received(repo, lookup):
    trade = RawTrade(
        tradeid=1,
        steamid_other=76561198000000001,
        time_init=1700000000,
        assets_given=[{"classid": 10}],
        assets_received=[{"classid": 11}, {"classid": 99}],
    )
    assert await value_trade(trade, lookup, repo) == (500, 200)


@pytest.mark.asyncio
async def test_trade_without_asset_lists(repo, lookup):
    trade = RawTrade(tradeid="7", steamid_other="1", time_init=1)
    assert await value_trade(trade, lookup, repo) == (0, 0)


def test_name_lookup_last_description_wins():
    lookup = build_name_lookup([
        ItemDescription(classid="10", market_hash_name="old name"),
        ItemDescription(classid="10", market_hash_name=AK_NAME),
    ])
    assert lookup == {"10": AK_NAME}


def test_numeric_ids_are_coerced_to_strings():
    trade = RawTrade(tradeid=4203457001394455071, steamid_other=76561198000000001, time_init=5)
    assert trade.tradeid == "4203457001394455071"
    assert trade.steamid_other == "76561198000000001"
