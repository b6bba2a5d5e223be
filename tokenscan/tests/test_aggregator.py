"""Phased aggregation tests"""

import time

import pytest

from tokenscan.providers.base import ProviderStatus
from tokenscan.providers.health import ProviderHealthRegistry
from tokenscan.services.aggregator import Aggregator


class TestPhases:
    """Test dependency ordering between phases"""

    @pytest.mark.asyncio
    async def test_later_phase_sees_earlier_record(self, fake_provider, pendle_identity, ethereum):
        metadata = fake_provider("coingecko", {"coingecko_id": "pendle", "twitter_handle": "pendle_fi"})
        tickers = fake_provider("coingecko_tickers", {"cex_listings": 12}, phase=2)
        twitter = fake_provider("apify_twitter", {"twitter_followers": 120_000}, phase=3)

        result = await Aggregator([twitter, tickers, metadata]).aggregate(pendle_identity, ethereum)

        assert metadata.calls[0].record.coingecko_id is None
        assert tickers.calls[0].record.coingecko_id == "pendle"
        assert twitter.calls[0].record.cex_listings == 12
        assert twitter.calls[0].record.twitter_handle == "pendle_fi"
        assert result.record.twitter_followers == 120_000
        assert result.record.provenance["twitter_followers"] == "apify_twitter"

    @pytest.mark.asyncio
    async def test_providers_in_a_phase_run_concurrently(self, fake_provider, pendle_identity, ethereum):
        providers = [fake_provider(f"slow_{i}", {"name": "Pendle"}, delay=0.3) for i in range(4)]

        started = time.perf_counter()
        result = await Aggregator(providers).aggregate(pendle_identity, ethereum)

        assert time.perf_counter() - started < 1.0
        assert result.success_count == 4

    @pytest.mark.asyncio
    async def test_empty_phases_are_skipped(self, fake_provider, pendle_identity, ethereum):
        only = fake_provider("github", {"github_stars": 3}, phase=3)
        result = await Aggregator([only]).aggregate(pendle_identity, ethereum)
        assert len(only.calls) == 1
        assert result.record.github_stars == 3


class TestIsolation:
    """Test that one provider's failure does not affect another"""

    @pytest.mark.asyncio
    async def test_error_is_contained(self, fake_provider, pendle_identity, ethereum):
        broken = fake_provider("goplus", error=RuntimeError("connection reset"), fields={"can_mint"})
        healthy = fake_provider("moralis_metadata", {"name": "Pendle", "symbol": "PENDLE"})

        result = await Aggregator([broken, healthy]).aggregate(pendle_identity, ethereum)

        statuses = {r.provider: r.status for r in result.results}
        assert statuses == {"goplus": ProviderStatus.ERROR, "moralis_metadata": ProviderStatus.SUCCESS}
        assert result.record.name == "Pendle"
        assert result.degraded is True
        assert result.data_sources == ["moralis_metadata"]
        assert result.summary() == {"success": 1, "no_data": 0, "error": 1}

    @pytest.mark.asyncio
    async def test_no_data_does_not_degrade(self, pendle_providers, pendle_identity, ethereum):
        result = await Aggregator(pendle_providers).aggregate(pendle_identity, ethereum)

        assert result.degraded is False
        assert result.success_count == 2
        assert result.no_data_count == 3
        assert result.error_count == 0
        assert result.record.price_usd == 2.5

    @pytest.mark.asyncio
    async def test_undeclared_fields_are_dropped(self, fake_provider, pendle_identity, ethereum):
        sloppy = fake_provider("coingecko", {"price_usd": 2.5, "name": "Spoofed"}, fields={"price_usd"})
        result = await Aggregator([sloppy]).aggregate(pendle_identity, ethereum)
        assert result.results[0].fields == {"price_usd": 2.5}
        assert result.record.name is None


class TestHealthAccounting:
    """Test that every call lands in the health registry"""

    @pytest.mark.asyncio
    async def test_counts_by_status(self, fake_provider, pendle_identity, ethereum):
        health = ProviderHealthRegistry()
        providers = [
            fake_provider("coingecko", {"price_usd": 2.5}),
            fake_provider("goplus", None, fields={"can_mint"}),
            fake_provider("webacy", error=ValueError("bad payload"), fields={"webacy_risk_score"}),
        ]
        aggregator = Aggregator(providers, health=health)

        await aggregator.aggregate(pendle_identity, ethereum)
        await aggregator.aggregate(pendle_identity, ethereum)

        assert health.get("coingecko").successful_requests == 2
        assert health.get("goplus").no_data_requests == 2
        assert health.get("goplus").status == "healthy"
        webacy = health.get("webacy")
        assert webacy.failed_requests == 2
        assert webacy.status == "degraded"
        assert "ValueError: bad payload" in webacy.recent_errors[-1]
