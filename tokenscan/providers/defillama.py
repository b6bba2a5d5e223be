"""DeFiLlama protocol TVL for tokens that belong to a known protocol."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from tokenscan.providers.base import BaseProvider, ProviderQuery, safe_float

# Token contract (lower-case) -> DeFiLlama protocol slug
PROTOCOL_SLUGS: Dict[str, str] = {
    "0x85f17cf997934a597031b2e18a9ab6ebd4b9f6a4": "near",
    "0xd533a949740bb3306d119cc777fa900ba034cd52": "curve-dex",
    "0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9": "aave",
    "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984": "uniswap",
    "0x808507121b80c02388fad14726482e061b8da827": "pendle",
    "0x5a98fcbea516cf06857215779fd812ca3bef1b32": "lido",
    "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2": "makerdao",
    "0xc00e94cb662c3520282e6f5717214004a7f26888": "compound-finance",
    "0x6b3595068778dd592e39a122f4f5a5cf09c90fe2": "sushi",
}


class DefiLlamaProvider(BaseProvider):
    name = "defillama"
    phase = 2
    chain_key = "defillama"
    fields = frozenset({"tvl_usd"})

    base_url = "https://api.llama.fi"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        slug = PROTOCOL_SLUGS.get(query.address)
        if not slug:
            return None

        data = await self._get_json(client, f"{self.base_url}/protocol/{slug}")
        if not isinstance(data, dict):
            return None
        return {"tvl_usd": self.current_tvl(data, self.chain_param(query))}

    @staticmethod
    def current_tvl(data: Dict[str, Any], chain_name: Optional[str]) -> Optional[float]:
        """TVL on the scanned chain when reported, else the latest protocol-wide figure."""
        chain_tvls = data.get("currentChainTvls") or {}
        if chain_name and chain_name in chain_tvls:
            return safe_float(chain_tvls[chain_name])

        history = data.get("tvl")
        if isinstance(history, list) and history:
            return safe_float((history[-1] or {}).get("totalLiquidityUSD"))
        return None
