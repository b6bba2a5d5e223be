"""CoinGecko adapters: contract profile (phase 1) and exchange listings (phase 2)."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

from tokenscan.core.validation import DISCORD_URL_RE, TELEGRAM_URL_RE
from tokenscan.providers.base import (
    BaseProvider,
    ProviderQuery,
    clean_text,
    first_matching_url,
    first_url,
    safe_float,
    safe_int,
    twitter_handle,
)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# Centralized exchanges counted as a listing (CoinGecko market identifiers)
CEX_ALLOWLIST = frozenset(
    {
        "binance",
        "gdax",
        "kraken",
        "okex",
        "bybit_spot",
        "kucoin",
        "gate",
        "huobi",
        "bitfinex",
        "bitstamp",
        "gemini",
        "mxc",
        "crypto_com",
        "bitget",
        "upbit",
    }
)

_TAG_RE = re.compile(r"<[^>]+>")


class _CoinGeckoProvider(BaseProvider):
    base_url = COINGECKO_BASE_URL

    def _headers(self) -> Optional[Dict[str, str]]:
        if not self.api_key:
            return None
        return {"x-cg-demo-api-key": self.api_key}


class CoinGeckoProvider(_CoinGeckoProvider):
    """Token profile by contract address: identity, links, market data, followers."""

    name = "coingecko"
    phase = 1
    chain_key = "coingecko"
    fields = frozenset(
        {
            "coingecko_id",
            "name",
            "symbol",
            "description",
            "logo_url",
            "website_url",
            "twitter_handle",
            "github_url",
            "discord_url",
            "telegram_url",
            "price_usd",
            "price_change_24h",
            "market_cap_usd",
            "volume_24h_usd",
            "total_supply",
            "twitter_followers",
        }
    )

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        platform = self.chain_param(query)
        if not platform:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/coins/{platform}/contract/{query.address}",
            params={"localization": "false", "tickers": "false", "community_data": "true", "developer_data": "false"},
            headers=self._headers(),
        )
        if not isinstance(data, dict) or data.get("error"):
            return None
        return self.normalize(data)

    @staticmethod
    def normalize(data: Dict[str, Any]) -> Dict[str, Any]:
        links = data.get("links") or {}
        market = data.get("market_data") or {}
        community = data.get("community_data") or {}
        chat_urls = list(links.get("chat_url") or [])
        telegram = clean_text(links.get("telegram_channel_identifier"))
        if telegram:
            chat_urls.insert(0, f"https://t.me/{telegram}")
        description = (data.get("description") or {}).get("en")
        symbol = clean_text(data.get("symbol"))

        return {
            "coingecko_id": clean_text(data.get("id")),
            "name": clean_text(data.get("name")),
            "symbol": symbol.upper() if symbol else None,
            "description": _TAG_RE.sub("", description) if isinstance(description, str) else None,
            "logo_url": clean_text((data.get("image") or {}).get("large")),
            "website_url": first_url(links.get("homepage")),
            "twitter_handle": twitter_handle(links.get("twitter_screen_name")),
            "github_url": first_url((links.get("repos_url") or {}).get("github")),
            "discord_url": first_matching_url(chat_urls, DISCORD_URL_RE),
            "telegram_url": first_matching_url(chat_urls, TELEGRAM_URL_RE),
            "price_usd": safe_float((market.get("current_price") or {}).get("usd")),
            "price_change_24h": safe_float(market.get("price_change_percentage_24h")),
            "market_cap_usd": safe_float((market.get("market_cap") or {}).get("usd")),
            "volume_24h_usd": safe_float((market.get("total_volume") or {}).get("usd")),
            "total_supply": safe_float(market.get("total_supply")),
            "twitter_followers": safe_int(community.get("twitter_followers")),
        }


class CoinGeckoTickersProvider(_CoinGeckoProvider):
    """Counts allow-listed centralized exchanges trading the token.

    Needs the CoinGecko coin id resolved in phase 1.
    """

    name = "coingecko_tickers"
    phase = 2
    fields = frozenset({"cex_listings"})

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        coin_id = query.record.coingecko_id if query.record else None
        if not coin_id:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/coins/{coin_id}/tickers",
            params={"include_exchange_logo": "false", "depth": "false"},
            headers=self._headers(),
        )
        if not isinstance(data, dict) or not isinstance(data.get("tickers"), list):
            return None

        exchanges = {
            (ticker.get("market") or {}).get("identifier")
            for ticker in data["tickers"]
            if isinstance(ticker, dict)
        }
        return {"cex_listings": len(exchanges & CEX_ALLOWLIST)}
