"""CoinMarketCap info endpoint: metadata and link fallback."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from tokenscan.core.validation import DISCORD_URL_RE, TELEGRAM_URL_RE
from tokenscan.providers.base import (
    BaseProvider,
    ProviderQuery,
    clean_text,
    first_matching_url,
    first_url,
    twitter_handle,
)


class CoinMarketCapProvider(BaseProvider):
    name = "coinmarketcap"
    phase = 1
    fields = frozenset(
        {
            "name",
            "symbol",
            "description",
            "logo_url",
            "website_url",
            "twitter_handle",
            "github_url",
            "discord_url",
            "telegram_url",
        }
    )

    base_url = "https://pro-api.coinmarketcap.com/v2"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        resp = await client.get(
            f"{self.base_url}/cryptocurrency/info",
            params={"address": query.address, "aux": "urls,logo,description"},
            headers={"X-CMC_PRO_API_KEY": self.api_key or "", "Accept": "application/json"},
            timeout=self.timeout,
        )
        # CMC answers 400 "Invalid value for address" when it does not track the contract
        if resp.status_code == 400:
            return None
        data = self._decode(resp)
        if not isinstance(data, dict) or (data.get("status") or {}).get("error_code") not in (0, None):
            return None

        entries = list((data.get("data") or {}).values())
        if not entries:
            return None
        entry = entries[0][0] if isinstance(entries[0], list) and entries[0] else entries[0]
        if not isinstance(entry, dict):
            return None
        return self.normalize(entry)

    @staticmethod
    def normalize(entry: Dict[str, Any]) -> Dict[str, Any]:
        urls = entry.get("urls") or {}
        source_code = [url for url in urls.get("source_code") or [] if isinstance(url, str) and "github.com" in url]

        return {
            "name": clean_text(entry.get("name")),
            "symbol": clean_text(entry.get("symbol")),
            "description": clean_text(entry.get("description")),
            "logo_url": clean_text(entry.get("logo")),
            "website_url": first_url(urls.get("website")),
            "twitter_handle": twitter_handle(first_url(urls.get("twitter"))),
            "github_url": source_code[0] if source_code else None,
            "discord_url": first_matching_url(urls.get("chat"), DISCORD_URL_RE),
            "telegram_url": first_matching_url(urls.get("chat"), TELEGRAM_URL_RE),
        }
