# Provider adapters
from typing import List, Optional

from tokenscan.core.config import Settings, settings as default_settings
from tokenscan.providers.base import BaseProvider, ProviderQuery, ProviderResult, ProviderStatus
from tokenscan.providers.coingecko import CoinGeckoProvider, CoinGeckoTickersProvider
from tokenscan.providers.coinmarketcap import CoinMarketCapProvider
from tokenscan.providers.defillama import DefiLlamaProvider
from tokenscan.providers.github import GitHubProvider
from tokenscan.providers.health import ProviderHealthRegistry, provider_health
from tokenscan.providers.moralis import (
    MoralisHoldersProvider,
    MoralisMetadataProvider,
    MoralisPairsProvider,
    MoralisPriceProvider,
)
from tokenscan.providers.security import GoPlusProvider, WebacyProvider
from tokenscan.providers.social import ApifyTwitterProvider, DiscordProvider, TelegramProvider


def build_default_providers(config: Optional[Settings] = None) -> List[BaseProvider]:
    """Every adapter that can run with the configured credentials.

    Keyless public APIs are always registered; keyed ones only when their
    key is set.
    """
    config = config or default_settings
    timeout = config.PROVIDER_TIMEOUT_SECONDS

    providers: List[BaseProvider] = [
        GoPlusProvider(api_key=config.GOPLUS_API_KEY, timeout=timeout),
        CoinGeckoProvider(api_key=config.COINGECKO_API_KEY, timeout=timeout),
        CoinGeckoTickersProvider(api_key=config.COINGECKO_API_KEY, timeout=timeout),
        DefiLlamaProvider(timeout=timeout),
        DiscordProvider(timeout=timeout),
        # Unauthenticated GitHub calls work at a lower rate limit
        GitHubProvider(api_key=config.GITHUB_API_KEY, timeout=timeout),
    ]

    if config.MORALIS_API_KEY:
        providers += [
            MoralisMetadataProvider(api_key=config.MORALIS_API_KEY, timeout=timeout),
            MoralisPriceProvider(api_key=config.MORALIS_API_KEY, timeout=timeout),
            MoralisHoldersProvider(api_key=config.MORALIS_API_KEY, timeout=timeout),
            MoralisPairsProvider(api_key=config.MORALIS_API_KEY, timeout=timeout),
        ]
    if config.WEBACY_API_KEY:
        providers.append(WebacyProvider(api_key=config.WEBACY_API_KEY, timeout=timeout))
    if config.COINMARKETCAP_API_KEY:
        providers.append(CoinMarketCapProvider(api_key=config.COINMARKETCAP_API_KEY, timeout=timeout))
    if config.APIFY_API_KEY:
        providers.append(ApifyTwitterProvider(api_key=config.APIFY_API_KEY, timeout=timeout))
    if config.TELEGRAM_BOT_TOKEN:
        providers.append(TelegramProvider(api_key=config.TELEGRAM_BOT_TOKEN, timeout=timeout))

    return providers


__all__ = [
    "BaseProvider",
    "ProviderQuery",
    "ProviderResult",
    "ProviderStatus",
    "ProviderHealthRegistry",
    "provider_health",
    "build_default_providers",
    "GoPlusProvider",
    "WebacyProvider",
    "MoralisMetadataProvider",
    "MoralisPriceProvider",
    "MoralisHoldersProvider",
    "MoralisPairsProvider",
    "CoinGeckoProvider",
    "CoinGeckoTickersProvider",
    "CoinMarketCapProvider",
    "DefiLlamaProvider",
    "ApifyTwitterProvider",
    "DiscordProvider",
    "TelegramProvider",
    "GitHubProvider",
]
