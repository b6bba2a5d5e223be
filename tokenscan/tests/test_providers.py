"""Provider adapter tests against mocked HTTP transports"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from tokenscan.core.chains import require_chain
from tokenscan.core.config import Settings
from tokenscan.providers import build_default_providers
from tokenscan.providers.base import ProviderQuery, ProviderStatus, twitter_handle
from tokenscan.providers.coingecko import CoinGeckoProvider, CoinGeckoTickersProvider
from tokenscan.providers.coinmarketcap import CoinMarketCapProvider
from tokenscan.providers.defillama import DefiLlamaProvider
from tokenscan.providers.github import GitHubProvider, parse_repo_url
from tokenscan.providers.moralis import (
    MoralisHoldersProvider,
    MoralisPairsProvider,
    concentration_bucket,
    gini_from_top_shares,
)
from tokenscan.providers.security import GoPlusProvider, WebacyProvider
from tokenscan.providers.social import DiscordProvider, TelegramProvider, discord_invite_code, telegram_chat_name
from tokenscan.schemas.records import MergedTokenRecord, TokenIdentity

from conftest import PENDLE


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_query(chain_id="0x1", **record_fields):
    chain = require_chain(chain_id)
    identity = TokenIdentity(PENDLE, chain.chain_id)
    record = MergedTokenRecord(address=PENDLE, chain_id=chain.chain_id, chain_name=chain.name, **record_fields)
    return ProviderQuery(identity=identity, chain=chain, record=record, request_id="test")


class TestGoPlus:
    """Test the GoPlus security adapter"""

    @pytest.mark.asyncio
    async def test_normalizes_flags(self):
        unlock = (datetime.now(timezone.utc) + timedelta(days=200)).isoformat()
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(
                200,
                json={
                    "code": 1,
                    "result": {
                        PENDLE.upper().replace("0X", "0x"): {
                            "owner_address": "0x0000000000000000000000000000000000000000",
                            "is_mintable": "0",
                            "is_honeypot": "0",
                            "is_open_source": "1",
                            "buy_tax": "0",
                            "sell_tax": "0.01",
                            "lp_holders": [{"is_locked": 1, "locked_detail": [{"end_time": unlock}]}],
                        }
                    },
                },
            )

        async with mock_client(handler) as client:
            result = await GoPlusProvider().fetch(make_query(), client)

        assert "/token_security/1" in seen["url"]
        assert result.status is ProviderStatus.SUCCESS
        fields = result.fields
        assert fields["ownership_renounced"] is True
        assert fields["can_mint"] is False
        assert fields["honeypot_detected"] is False
        assert fields["contract_verified"] is True
        assert fields["buy_tax"] == 0.0
        assert fields["sell_tax"] == 0.01
        assert fields["is_liquidity_locked"] is True
        assert fields["liquidity_lock_info"].startswith("Locked for 19")
        assert "audit_status" not in fields

    @pytest.mark.asyncio
    async def test_server_error_is_error(self):
        async with mock_client(lambda request: httpx.Response(500, text="boom")) as client:
            result = await GoPlusProvider().fetch(make_query(), client)
        assert result.status is ProviderStatus.ERROR
        assert "HTTP 500" in result.error

    @pytest.mark.asyncio
    async def test_unmapped_chain_is_no_data(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with mock_client(handler) as client:
            result = await GoPlusProvider().fetch(make_query(chain_id="solana"), client)
        assert result.status is ProviderStatus.NO_DATA

    def test_webacy_flags_from_score(self):
        fields = WebacyProvider.normalize({"riskScore": 75, "issues": [{"flag": "mintable"}, "blacklist"]})
        assert fields["webacy_severity"] == "high"
        assert fields["webacy_flags"] == ["mintable", "blacklist"]
        assert fields["honeypot_detected"] is True
        assert WebacyProvider.normalize({}) is None


class TestCoinGecko:
    """Test the CoinGecko profile and tickers adapters"""

    @pytest.mark.asyncio
    async def test_profile(self):
        payload = {
            "id": "pendle",
            "symbol": "pendle",
            "name": "Pendle",
            "description": {"en": 'Pendle is a <a href="https://pendle.finance">yield</a> protocol.'},
            "image": {"large": "https://assets.coingecko.com/pendle.png"},
            "links": {
                "homepage": ["https://pendle.finance", ""],
                "twitter_screen_name": "pendle_fi",
                "chat_url": ["", "https://discord.gg/pendle"],
                "telegram_channel_identifier": "pendlefinance",
                "repos_url": {"github": ["https://github.com/pendle-finance"]},
            },
            "market_data": {
                "current_price": {"usd": 2.5},
                "price_change_percentage_24h": 0,
                "market_cap": {"usd": 150_000_000},
                "total_volume": {"usd": 2_000_000},
                "total_supply": 281_527_448,
            },
            "community_data": {"twitter_followers": 120_000},
        }

        def handler(request):
            assert request.url.path == f"/api/v3/coins/ethereum/contract/{PENDLE}"
            return httpx.Response(200, json=payload)

        async with mock_client(handler) as client:
            result = await CoinGeckoProvider().fetch(make_query(), client)

        fields = result.fields
        assert fields["coingecko_id"] == "pendle"
        assert fields["symbol"] == "PENDLE"
        assert fields["description"] == "Pendle is a yield protocol."
        assert fields["website_url"] == "https://pendle.finance"
        assert fields["discord_url"] == "https://discord.gg/pendle"
        assert fields["telegram_url"] == "https://t.me/pendlefinance"
        assert fields["github_url"] == "https://github.com/pendle-finance"
        assert fields["price_change_24h"] == 0.0
        assert fields["twitter_followers"] == 120_000

    def test_chat_links_skip_malformed_entries(self):
        links = {
            "chat_url": ["https://discord.gg/", "https://t.mependle", "https://discord.gg/pendle", "https://t.me/pendlefinance"],
        }
        fields = CoinGeckoProvider.normalize({"links": links})
        assert fields["discord_url"] == "https://discord.gg/pendle"
        assert fields["telegram_url"] == "https://t.me/pendlefinance"

    def test_malformed_telegram_identifier_falls_back_to_chat_links(self):
        links = {"telegram_channel_identifier": "x", "chat_url": ["https://t.me/pendlefinance"]}
        assert CoinGeckoProvider.normalize({"links": links})["telegram_url"] == "https://t.me/pendlefinance"

    @pytest.mark.asyncio
    async def test_unknown_contract_is_no_data(self):
        async with mock_client(lambda request: httpx.Response(404, json={"error": "coin not found"})) as client:
            result = await CoinGeckoProvider().fetch(make_query(), client)
        assert result.status is ProviderStatus.NO_DATA

    @pytest.mark.asyncio
    async def test_tickers_count_allowlisted_exchanges(self):
        tickers = [
            {"market": {"identifier": "binance"}},
            {"market": {"identifier": "binance"}},
            {"market": {"identifier": "kraken"}},
            {"market": {"identifier": "uniswap_v3"}},
        ]

        def handler(request):
            assert request.url.path == "/api/v3/coins/pendle/tickers"
            return httpx.Response(200, json={"tickers": tickers})

        async with mock_client(handler) as client:
            result = await CoinGeckoTickersProvider().fetch(make_query(coingecko_id="pendle"), client)
        assert result.fields == {"cex_listings": 2}

    @pytest.mark.asyncio
    async def test_tickers_need_coin_id(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            result = await CoinGeckoTickersProvider().fetch(make_query(), client)
        assert result.status is ProviderStatus.NO_DATA


class TestCoinMarketCap:
    """Test CMC link extraction"""

    def test_chat_links_skip_malformed_entries(self):
        entry = {
            "name": "Pendle",
            "urls": {
                "chat": ["https://discord.com/invite/", "https://discord.com/invite/pendle", "https://t.me/+", "https://t.me/pendlefinance"],
                "source_code": ["https://github.com/pendle-finance"],
            },
        }
        fields = CoinMarketCapProvider.normalize(entry)
        assert fields["discord_url"] == "https://discord.com/invite/pendle"
        assert fields["telegram_url"] == "https://t.me/pendlefinance"
        assert fields["github_url"] == "https://github.com/pendle-finance"

    def test_no_valid_chat_links(self):
        fields = CoinMarketCapProvider.normalize({"urls": {"chat": ["https://discord.gg/", "t.me/pendle"]}})
        assert fields["discord_url"] is None
        assert fields["telegram_url"] is None


class TestMoralis:
    """Test holder distribution and pair adapters"""

    @pytest.mark.asyncio
    async def test_holders(self):
        payload = {
            "totalHolders": 1000,
            "holderSupply": {
                "top10": {"supplyPercent": 60},
                "top25": {"supplyPercent": 75},
                "top50": {"supplyPercent": 85},
                "top100": {"supplyPercent": 92},
            },
        }
        async with mock_client(lambda request: httpx.Response(200, json=payload)) as client:
            result = await MoralisHoldersProvider(api_key="k").fetch(make_query(), client)

        assert result.fields["total_holders"] == 1000
        assert result.fields["concentration_bucket"] == "High"
        assert 0.0 < result.fields["gini_coefficient"] <= 1.0

    def test_concentration_buckets(self):
        assert concentration_bucket(None) is None
        assert concentration_bucket(10) == "Low"
        assert concentration_bucket(30) == "Medium"
        assert concentration_bucket(81) == "Very High"

    def test_gini_needs_population(self):
        assert gini_from_top_shares(1, {10: 50.0}) is None
        assert gini_from_top_shares(1000, {}) is None

    def test_no_pools_is_confirmed_zero(self):
        assert MoralisPairsProvider.normalize([]) == {"total_liquidity_usd": 0, "major_pairs": []}

    def test_pairs_sorted_by_liquidity(self):
        fields = MoralisPairsProvider.normalize(
            [
                {"pair_label": "PENDLE/USDC", "exchange_name": "Uniswap v3", "liquidity_usd": 100.0},
                {"pair_label": "PENDLE/WETH", "exchange_name": "Uniswap v2", "liquidity_usd": 900.5},
                {"pair_label": "broken"},
            ]
        )
        assert fields["total_liquidity_usd"] == 1000.5
        assert [pair["pair_label"] for pair in fields["major_pairs"]] == ["PENDLE/WETH", "PENDLE/USDC"]


class TestSocial:
    """Test community size adapters"""

    def test_link_parsing(self):
        assert discord_invite_code("https://discord.com/invite/abc-123") == "abc-123"
        assert discord_invite_code("https://example.com") is None
        assert telegram_chat_name("https://t.me/pendlefinance") == "pendlefinance"
        assert telegram_chat_name("https://t.me/+AbCdEf123") is None
        assert telegram_chat_name("https://t.me/joinchat/AbCdEf") is None
        assert twitter_handle("https://twitter.com/pendle_fi?lang=en") == "pendle_fi"

    @pytest.mark.asyncio
    async def test_discord_members(self):
        def handler(request):
            assert request.url.path == "/api/v9/invites/pendle"
            return httpx.Response(200, json={"approximate_member_count": 45_000})

        async with mock_client(handler) as client:
            result = await DiscordProvider().fetch(make_query(discord_url="https://discord.gg/pendle"), client)
        assert result.fields == {"discord_members": 45_000}

    @pytest.mark.asyncio
    async def test_discord_without_url_is_no_data(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            result = await DiscordProvider().fetch(make_query(), client)
        assert result.status is ProviderStatus.NO_DATA

    @pytest.mark.asyncio
    async def test_telegram_unknown_chat_is_no_data(self):
        async with mock_client(lambda request: httpx.Response(400, json={"ok": False})) as client:
            result = await TelegramProvider(api_key="bot").fetch(
                make_query(telegram_url="https://t.me/pendlefinance"), client
            )
        assert result.status is ProviderStatus.NO_DATA


class TestGitHub:
    """Test repository activity adapter"""

    def test_parse_repo_url(self):
        assert parse_repo_url("https://github.com/pendle-finance/pendle-core-v2.git") == ("pendle-finance", "pendle-core-v2")
        assert parse_repo_url("https://github.com/pendle-finance") == ("pendle-finance", None)
        assert parse_repo_url("https://gitlab.com/x") is None

    @pytest.mark.asyncio
    async def test_org_url_picks_most_starred_repo(self):
        repos = [
            {"full_name": "pendle-finance/fork", "fork": True, "stargazers_count": 9000},
            {"full_name": "pendle-finance/docs", "fork": False, "stargazers_count": 10},
            {
                "full_name": "pendle-finance/pendle-core-v2",
                "fork": False,
                "stargazers_count": 320,
                "forks_count": 110,
                "pushed_at": "2026-05-30T10:00:00Z",
                "archived": False,
                "language": "Solidity",
            },
        ]

        def handler(request):
            path = request.url.path
            if path == "/users/pendle-finance/repos":
                return httpx.Response(200, json=repos)
            if path.endswith("/commits"):
                return httpx.Response(409, json={"message": "Git Repository is empty."})
            if path.endswith("/contributors"):
                return httpx.Response(200, json=[{"login": "a"}, {"login": "b"}, {"login": "c"}])
            return httpx.Response(404)

        async with mock_client(handler) as client:
            result = await GitHubProvider().fetch(make_query(github_url="https://github.com/pendle-finance"), client)

        fields = result.fields
        assert fields["github_stars"] == 320
        assert fields["github_forks"] == 110
        assert fields["github_contributors"] == 3
        assert fields["github_commits_30d"] == 0
        assert fields["github_archived"] is False
        assert fields["github_language"] == "Solidity"
        assert fields["github_last_push"] == datetime(2026, 5, 30, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_listings_fetched_concurrently(self):
        """Commits wait for the contributors request, which only a concurrent fetch can start"""
        contributors_requested = asyncio.Event()
        repo = {"full_name": "pendle-finance/pendle-core-v2", "stargazers_count": 320}

        async def handler(request):
            path = request.url.path
            if path.endswith("/commits"):
                await asyncio.wait_for(contributors_requested.wait(), timeout=2.0)
                return httpx.Response(200, json=[{"sha": "1"}, {"sha": "2"}])
            if path.endswith("/contributors"):
                contributors_requested.set()
                return httpx.Response(200, json=[{"login": "a"}])
            return httpx.Response(200, json=repo)

        url = "https://github.com/pendle-finance/pendle-core-v2"
        async with mock_client(handler) as client:
            result = await GitHubProvider().fetch(make_query(github_url=url), client)

        assert result.status is ProviderStatus.SUCCESS
        assert result.fields["github_commits_30d"] == 2
        assert result.fields["github_contributors"] == 1

    @pytest.mark.asyncio
    async def test_missing_repository_is_no_data(self):
        async with mock_client(lambda request: httpx.Response(404, json={"message": "Not Found"})) as client:
            result = await GitHubProvider().fetch(make_query(github_url="https://github.com/ghost/missing"), client)
        assert result.status is ProviderStatus.NO_DATA


class TestDefiLlama:
    """Test protocol TVL lookup"""

    def test_chain_tvl_preferred(self):
        data = {"currentChainTvls": {"Ethereum": 1.5e9, "Arbitrum": 2e8}, "tvl": [{"totalLiquidityUSD": 5e9}]}
        assert DefiLlamaProvider.current_tvl(data, "Ethereum") == 1.5e9
        assert DefiLlamaProvider.current_tvl(data, "Base") == 5e9
        assert DefiLlamaProvider.current_tvl({}, "Ethereum") is None

    @pytest.mark.asyncio
    async def test_unknown_protocol_is_no_data(self):
        query = make_query()
        query.identity = TokenIdentity("0x" + "1" * 40, "0x1")
        async with mock_client(lambda request: httpx.Response(500)) as client:
            result = await DefiLlamaProvider().fetch(query, client)
        assert result.status is ProviderStatus.NO_DATA


class TestRegistration:
    """Test which adapters run with the configured keys"""

    KEYS = (
        "MORALIS_API_KEY",
        "WEBACY_API_KEY",
        "COINMARKETCAP_API_KEY",
        "APIFY_API_KEY",
        "TELEGRAM_BOT_TOKEN",
        "GITHUB_API_KEY",
        "GOPLUS_API_KEY",
        "COINGECKO_API_KEY",
    )

    def test_keyless(self):
        config = Settings(_env_file=None, **{key: None for key in self.KEYS})
        names = {provider.name for provider in build_default_providers(config)}
        assert names == {"goplus", "coingecko", "coingecko_tickers", "defillama", "discord", "github"}

    def test_all_keys(self):
        config = Settings(_env_file=None, **{key: "secret" for key in self.KEYS})
        providers = build_default_providers(config)
        names = {provider.name for provider in providers}
        assert {"moralis_metadata", "moralis_price", "moralis_holders", "moralis_pairs"} <= names
        assert {"webacy", "coinmarketcap", "apify_twitter", "telegram"} <= names
        assert len(names) == len(providers) == 14
        assert {provider.phase for provider in providers} == {1, 2, 3}
