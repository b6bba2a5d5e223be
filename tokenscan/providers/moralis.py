"""Moralis Web3 Data API adapters: metadata, price, holder distribution, DEX pairs."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from tokenscan.providers.base import (
    BaseProvider,
    ProviderQuery,
    clean_text,
    first_url,
    safe_float,
    safe_int,
    twitter_handle,
)

MORALIS_BASE_URL = "https://deep-index.moralis.io/api/v2.2"
MAJOR_PAIRS_LIMIT = 5


class _MoralisProvider(BaseProvider):
    chain_key = "moralis"
    base_url = MORALIS_BASE_URL

    def _headers(self) -> Dict[str, str]:
        return {"X-API-Key": self.api_key or "", "accept": "application/json"}


class MoralisMetadataProvider(_MoralisProvider):
    """ERC-20 metadata, supply and project links."""

    name = "moralis_metadata"
    phase = 1
    fields = frozenset(
        {
            "name",
            "symbol",
            "logo_url",
            "description",
            "website_url",
            "twitter_handle",
            "discord_url",
            "telegram_url",
            "github_url",
            "total_supply",
            "market_cap_usd",
            "verified_contract",
            "possible_spam",
        }
    )

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/erc20/metadata",
            params={"chain": chain, "addresses": query.address},
            headers=self._headers(),
        )
        if not isinstance(data, list) or not data:
            return None
        return self.normalize(data[0])

    @staticmethod
    def normalize(token: Dict[str, Any]) -> Dict[str, Any]:
        links = token.get("links") or {}
        return {
            "name": clean_text(token.get("name")),
            "symbol": clean_text(token.get("symbol")),
            "logo_url": clean_text(token.get("logo")) or clean_text(token.get("thumbnail")),
            "description": clean_text(token.get("description")),
            "website_url": first_url(links.get("website")),
            "twitter_handle": twitter_handle(links.get("twitter")),
            "discord_url": first_url(links.get("discord")),
            "telegram_url": first_url(links.get("telegram")),
            "github_url": first_url(links.get("github")),
            "total_supply": _formatted_supply(token),
            "market_cap_usd": safe_float(token.get("market_cap")),
            "verified_contract": token.get("verified_contract") if isinstance(token.get("verified_contract"), bool) else None,
            "possible_spam": token.get("possible_spam") if isinstance(token.get("possible_spam"), bool) else None,
        }


def _formatted_supply(token: Dict[str, Any]) -> Optional[float]:
    formatted = safe_float(token.get("total_supply_formatted"))
    if formatted is not None:
        return formatted
    raw = safe_float(token.get("total_supply"))
    decimals = safe_int(token.get("decimals"))
    if raw is None:
        return None
    if decimals is None:
        return raw
    return raw / (10**decimals)


class MoralisPriceProvider(_MoralisProvider):
    """Spot USD price and 24h change. A missing change stays None, never 0."""

    name = "moralis_price"
    phase = 1
    fields = frozenset({"price_usd", "price_change_24h"})

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/erc20/{query.address}/price",
            params={"chain": chain, "include": "percent_change"},
            headers=self._headers(),
        )
        if not isinstance(data, dict):
            return None

        change = safe_float(data.get("24hrPercentChange"))
        if change is None:
            change = safe_float((data.get("percent_change") or {}).get("usd_price_24h_percent_change"))
        return {
            "price_usd": safe_float(data.get("usdPrice")),
            "price_change_24h": change,
        }


class MoralisHoldersProvider(_MoralisProvider):
    """Holder count and top-N supply concentration."""

    name = "moralis_holders"
    phase = 2
    fields = frozenset({"gini_coefficient", "concentration_bucket", "total_holders"})

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/erc20/{query.address}/holders",
            params={"chain": chain},
            headers=self._headers(),
        )
        if not isinstance(data, dict):
            return None
        return self.normalize(data)

    @staticmethod
    def normalize(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        total = safe_int(data.get("totalHolders"))
        supply = data.get("holderSupply") or {}
        shares: Dict[int, float] = {}
        for key, size in (("top10", 10), ("top25", 25), ("top50", 50), ("top100", 100)):
            share = safe_float((supply.get(key) or {}).get("supplyPercent"))
            if share is not None:
                shares[size] = min(max(share, 0.0), 100.0)

        if total is None and not shares:
            return None
        return {
            "total_holders": total,
            "concentration_bucket": concentration_bucket(shares.get(10)),
            "gini_coefficient": gini_from_top_shares(total, shares),
        }


def concentration_bucket(top10_percent: Optional[float]) -> Optional[str]:
    """Risk bucket from the share of supply held by the ten largest holders."""
    if top10_percent is None:
        return None
    if top10_percent > 80:
        return "Very High"
    if top10_percent > 50:
        return "High"
    if top10_percent > 25:
        return "Medium"
    return "Low"


def gini_from_top_shares(total_holders: Optional[int], shares: Dict[int, float]) -> Optional[float]:
    """Approximate Gini coefficient from a few points of the Lorenz curve.

    ``shares`` maps N to the percentage of supply held by the top N holders.
    Holders outside each top-N bucket are assumed to hold equal amounts.
    """
    if not total_holders or total_holders < 2 or not shares:
        return None

    points = [(0.0, 0.0)]
    for size in sorted(shares, reverse=True):
        if size >= total_holders:
            continue
        population = (total_holders - size) / total_holders
        wealth = (100.0 - shares[size]) / 100.0
        points.append((population, max(wealth, 0.0)))
    points.append((1.0, 1.0))
    points.sort()

    area = 0.0
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        area += (x1 - x0) * (y0 + y1)
    return round(min(max(1.0 - area, 0.0), 1.0), 4)


class MoralisPairsProvider(_MoralisProvider):
    """DEX pools holding the token. An empty pool list is a confirmed zero."""

    name = "moralis_pairs"
    phase = 2
    fields = frozenset({"total_liquidity_usd", "major_pairs"})

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/erc20/{query.address}/pairs",
            params={"chain": chain},
            headers=self._headers(),
        )
        if not isinstance(data, dict) or not isinstance(data.get("pairs"), list):
            return None
        return self.normalize(data["pairs"])

    @staticmethod
    def normalize(pairs: List[Dict[str, Any]]) -> Dict[str, Any]:
        pools = []
        for pair in pairs:
            liquidity = safe_float(pair.get("liquidity_usd"))
            if liquidity is None:
                continue
            pools.append(
                {
                    "pair_label": clean_text(pair.get("pair_label")),
                    "exchange": clean_text(pair.get("exchange_name")),
                    "pair_address": clean_text(pair.get("pair_address")),
                    "liquidity_usd": liquidity,
                }
            )
        pools.sort(key=lambda pool: pool["liquidity_usd"], reverse=True)
        return {
            "total_liquidity_usd": round(sum(pool["liquidity_usd"] for pool in pools), 2),
            "major_pairs": pools[:MAJOR_PAIRS_LIMIT],
        }
