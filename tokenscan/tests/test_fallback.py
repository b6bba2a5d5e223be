"""Field-level fallback resolution tests"""

from datetime import datetime, timezone

from tokenscan.providers.base import ProviderResult
from tokenscan.services.fallback import (
    SYNTHESIZED,
    provider_order,
    resolve_field,
    resolve_record,
    synthesize_description,
)
from tokenscan.schemas.records import MergedTokenRecord

from conftest import PENDLE

REAL_DESCRIPTION = (
    "Pendle is a permissionless yield-trading protocol. Users can tokenize future yield "
    "and trade it on an AMM designed for time-decaying assets."
)


def ok(provider, **fields):
    return ProviderResult.success(provider, fields)


class TestResolveField:
    """Test per-field provider chains"""

    def test_first_provider_in_chain_wins(self):
        results = {
            "coingecko": ok("coingecko", name="Pendle (CG)"),
            "moralis_metadata": ok("moralis_metadata", name="Pendle"),
        }
        assert resolve_field("name", results) == ("Pendle", "moralis_metadata")

    def test_gate_rejection_falls_through(self):
        results = {
            "moralis_metadata": ok("moralis_metadata", name="Unknown"),
            "coingecko": ok("coingecko", name="Pendle"),
        }
        assert resolve_field("name", results) == ("Pendle", "coingecko")

    def test_non_success_results_are_skipped(self):
        results = {
            "moralis_metadata": ProviderResult.failure("moralis_metadata", "HTTPError: boom"),
            "coingecko": ProviderResult.no_data("coingecko"),
            "coinmarketcap": ok("coinmarketcap", symbol="PENDLE"),
        }
        assert resolve_field("symbol", results) == ("PENDLE", "coinmarketcap")

    def test_nothing_passes(self):
        results = {"coingecko": ok("coingecko", price_usd=0.0)}
        assert resolve_field("price_usd", results) is None

    def test_goplus_outranks_webacy_for_security(self):
        results = {
            "webacy": ok("webacy", honeypot_detected=True),
            "goplus": ok("goplus", honeypot_detected=False),
        }
        assert resolve_field("honeypot_detected", results) == (False, "goplus")

    def test_unknown_providers_consulted_last(self):
        order = provider_order("name", ["custom_source", "coingecko"])
        assert order[-1] == "custom_source"
        assert order.index("moralis_metadata") < order.index("coingecko")


class TestResolveRecord:
    """Test record assembly, provenance and synthesis"""

    def test_fields_resolve_independently(self, pendle_identity, ethereum):
        fetched_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
        record = resolve_record(
            pendle_identity,
            ethereum,
            [
                ok("moralis_metadata", name="Pendle", symbol="PENDLE", logo_url="https://logo.example/pendle.png"),
                ok("coingecko", description=REAL_DESCRIPTION, price_usd=2.5, volume_24h_usd=0),
            ],
            fetched_at=fetched_at,
        )

        assert record.address == PENDLE
        assert record.fetched_at == fetched_at
        assert record.name == "Pendle"
        assert record.description == REAL_DESCRIPTION
        assert record.volume_24h_usd == 0
        assert record.provenance["name"] == "moralis_metadata"
        assert record.provenance["description"] == "coingecko"
        assert record.provenance["volume_24h_usd"] == "coingecko"
        assert "market_cap_usd" not in record.provenance

    def test_every_resolved_field_has_provenance(self, pendle_identity, ethereum):
        record = resolve_record(
            pendle_identity,
            ethereum,
            [ok("moralis_metadata", name="Pendle"), ok("goplus", can_mint=False, buy_tax=0.0)],
        )
        for name in record.resolved_fields():
            assert name in record.provenance

    def test_templated_description_is_replaced_by_synthesis(self, pendle_identity, ethereum):
        record = resolve_record(
            pendle_identity,
            ethereum,
            [
                ok("moralis_metadata", name="Pendle", symbol="PENDLE"),
                ok("coingecko", description="Pendle (PENDLE) is a cryptocurrency launched in 2021.", price_usd=2.5),
            ],
        )
        assert record.provenance["description"] == SYNTHESIZED
        assert record.description.startswith("Pendle (PENDLE) is a token on Ethereum.")
        assert "$2.5" in record.description

    def test_no_identity_no_description(self, pendle_identity, ethereum):
        record = resolve_record(pendle_identity, ethereum, [ok("coingecko", price_usd=2.5)])
        assert record.description is None
        assert "description" not in record.provenance


class TestSynthesizeDescription:
    """Test the factual summary"""

    def test_deterministic(self):
        record = MergedTokenRecord(
            address=PENDLE,
            chain_id="0x1",
            chain_name="Ethereum",
            name="Pendle",
            symbol="PENDLE",
            price_usd=2.5,
            price_change_24h=-3.25,
            total_supply=281_527_448,
            contract_verified=True,
            can_mint=False,
        )
        first = synthesize_description(record)
        assert first == synthesize_description(record)
        assert "(-3.25% over 24h)" in first
        assert "Total supply is 281,527,448 tokens." in first
        assert first.endswith(
            "Security checks report that the contract source is verified, no further tokens can be minted."
        )

    def test_symbol_only(self):
        record = MergedTokenRecord(address=PENDLE, chain_id="0x1", chain_name="Ethereum", symbol="PENDLE")
        assert synthesize_description(record) == "PENDLE is a token on Ethereum."
