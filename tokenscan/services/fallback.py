"""Field-level fallback resolution over provider results.

For every merged field there is an ordered list of providers. The first
provider, in that order, whose Success result carries a value that passes
the field's quality gate supplies the field. Fields resolve independently,
so a token can take its name from one provider and its logo from another.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tokenscan.core.chains import ChainDescriptor
from tokenscan.core.logging import get_logger
from tokenscan.providers.base import ProviderResult
from tokenscan.schemas.records import MERGED_FIELDS, SECURITY_FIELDS, MergedTokenRecord, TokenIdentity
from tokenscan.services.quality_gates import gate_for

log = get_logger("fallback")

SYNTHESIZED = "synthesized"

# Provider priority for fields without an explicit chain. GoPlus sits ahead
# of Webacy so its security flags overwrite Webacy's on overlap.
DEFAULT_PROVIDER_PRIORITY: Tuple[str, ...] = (
    "goplus",
    "webacy",
    "moralis_metadata",
    "moralis_price",
    "coingecko",
    "coinmarketcap",
    "moralis_holders",
    "moralis_pairs",
    "defillama",
    "coingecko_tickers",
    "apify_twitter",
    "discord",
    "telegram",
    "github",
)

_LINK_ORDER = ("coingecko", "coinmarketcap", "moralis_metadata")

FIELD_PROVIDER_ORDER: Dict[str, Tuple[str, ...]] = {
    "name": ("moralis_metadata", "coingecko", "coinmarketcap"),
    "symbol": ("moralis_metadata", "coingecko", "coinmarketcap"),
    "description": ("coingecko", "moralis_metadata", "coinmarketcap"),
    "logo_url": ("moralis_metadata", "coingecko", "coinmarketcap"),
    "website_url": _LINK_ORDER,
    "twitter_handle": _LINK_ORDER,
    "github_url": _LINK_ORDER,
    "discord_url": _LINK_ORDER,
    "telegram_url": _LINK_ORDER,
    "price_usd": ("moralis_price", "coingecko"),
    "price_change_24h": ("moralis_price", "coingecko"),
    "market_cap_usd": ("coingecko", "moralis_metadata"),
    "volume_24h_usd": ("coingecko",),
    "total_supply": ("moralis_metadata", "coingecko"),
    "twitter_followers": ("apify_twitter", "coingecko"),
}
FIELD_PROVIDER_ORDER.update({name: ("goplus", "webacy") for name in SECURITY_FIELDS})


def provider_order(field_name: str, available: Iterable[str]) -> List[str]:
    """Ordered providers consulted for ``field_name``.

    Providers outside the known priority lists are consulted last, in the
    order they reported.
    """
    known = FIELD_PROVIDER_ORDER.get(field_name, DEFAULT_PROVIDER_PRIORITY)
    extra = [name for name in available if name not in known and name not in DEFAULT_PROVIDER_PRIORITY]
    return list(known) + extra


def resolve_field(field_name: str, results: Mapping[str, ProviderResult]) -> Optional[Tuple[Any, str]]:
    """``(value, provider)`` of the first gate-passing value, or None."""
    gate = gate_for(field_name)
    for provider in provider_order(field_name, results):
        result = results.get(provider)
        if result is None or not result.ok or field_name not in result.fields:
            continue
        value = gate(result.fields[field_name])
        if value is not None:
            return value, provider
    return None


def resolve_record(
    identity: TokenIdentity,
    chain: ChainDescriptor,
    results: Sequence[ProviderResult],
    fetched_at: Optional[datetime] = None,
) -> MergedTokenRecord:
    """Rebuild the merged record from every provider result seen so far."""
    record = MergedTokenRecord(address=identity.address, chain_id=identity.chain_id, chain_name=chain.name)
    if fetched_at is not None:
        record.fetched_at = fetched_at

    by_provider = {result.provider: result for result in results}
    for field_name in MERGED_FIELDS:
        resolved = resolve_field(field_name, by_provider)
        if resolved is None:
            continue
        value, provider = resolved
        setattr(record, field_name, value)
        record.provenance[field_name] = provider

    if record.description is None:
        synthesized = synthesize_description(record)
        if synthesized:
            record.description = synthesized
            record.provenance["description"] = SYNTHESIZED
            log.debug(f"Synthesized description for {identity}")
    return record


def synthesize_description(record: MergedTokenRecord) -> Optional[str]:
    """Deterministic factual summary built only from resolved fields."""
    if not record.name and not record.symbol:
        return None

    label = record.name or record.symbol
    if record.name and record.symbol:
        label = f"{record.name} ({record.symbol})"
    parts = [f"{label} is a token on {record.chain_name or record.chain_id}."]

    if record.price_usd is not None:
        price = f"It trades at ${record.price_usd:,.6g}"
        if record.price_change_24h is not None:
            price += f" ({record.price_change_24h:+.2f}% over 24h)"
        parts.append(price + ".")
    if record.total_supply is not None:
        parts.append(f"Total supply is {record.total_supply:,.0f} tokens.")

    facts = []
    if record.contract_verified is True:
        facts.append("the contract source is verified")
    if record.ownership_renounced is True:
        facts.append("ownership is renounced")
    if record.can_mint is False:
        facts.append("no further tokens can be minted")
    if record.honeypot_detected is True:
        facts.append("honeypot behaviour was detected")
    if facts:
        parts.append("Security checks report that " + ", ".join(facts) + ".")
    return " ".join(parts)
