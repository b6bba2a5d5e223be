"""Chain identifier normalization and per-provider chain vocabulary.

Every lookup and every stored row is keyed by the canonical chain id: the
lower-cased hex chain id for EVM chains and ``"solana"`` for Solana.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from tokenscan.core.errors import UnsupportedChainError


@dataclass(frozen=True)
class ChainDescriptor:
    """Canonical chain with the identifier each provider expects for it."""

    chain_id: str
    name: str
    symbol: str
    is_evm: bool
    provider_ids: Dict[str, str] = field(default_factory=dict)

    def provider_id(self, provider: str) -> Optional[str]:
        """Provider-specific chain id, or None when the provider lacks this chain."""
        return self.provider_ids.get(provider)


SUPPORTED_CHAINS: Dict[str, ChainDescriptor] = {
    "0x1": ChainDescriptor(
        chain_id="0x1",
        name="Ethereum",
        symbol="ETH",
        is_evm=True,
        provider_ids={
            "moralis": "0x1",
            "goplus": "1",
            "webacy": "eth",
            "coingecko": "ethereum",
            "coinmarketcap": "ethereum",
            "defillama": "Ethereum",
        },
    ),
    "0x38": ChainDescriptor(
        chain_id="0x38",
        name="BNB Chain",
        symbol="BNB",
        is_evm=True,
        provider_ids={
            "moralis": "0x38",
            "goplus": "56",
            "webacy": "bsc",
            "coingecko": "binance-smart-chain",
            "coinmarketcap": "bnb",
            "defillama": "BSC",
        },
    ),
    "0x89": ChainDescriptor(
        chain_id="0x89",
        name="Polygon",
        symbol="MATIC",
        is_evm=True,
        provider_ids={
            "moralis": "0x89",
            "goplus": "137",
            "webacy": "pol",
            "coingecko": "polygon-pos",
            "coinmarketcap": "polygon",
            "defillama": "Polygon",
        },
    ),
    "0xa4b1": ChainDescriptor(
        chain_id="0xa4b1",
        name="Arbitrum",
        symbol="ETH",
        is_evm=True,
        provider_ids={
            "moralis": "0xa4b1",
            "goplus": "42161",
            "webacy": "arb",
            "coingecko": "arbitrum-one",
            "coinmarketcap": "arbitrum",
            "defillama": "Arbitrum",
        },
    ),
    "0xa": ChainDescriptor(
        chain_id="0xa",
        name="Optimism",
        symbol="ETH",
        is_evm=True,
        provider_ids={
            "moralis": "0xa",
            "goplus": "10",
            "webacy": "opt",
            "coingecko": "optimistic-ethereum",
            "coinmarketcap": "optimism",
            "defillama": "Optimism",
        },
    ),
    "0x2105": ChainDescriptor(
        chain_id="0x2105",
        name="Base",
        symbol="ETH",
        is_evm=True,
        provider_ids={
            "moralis": "0x2105",
            "goplus": "8453",
            "webacy": "base",
            "coingecko": "base",
            "coinmarketcap": "base",
            "defillama": "Base",
        },
    ),
    "solana": ChainDescriptor(
        chain_id="solana",
        name="Solana",
        symbol="SOL",
        is_evm=False,
        provider_ids={
            "webacy": "sol",
            "coingecko": "solana",
            "coinmarketcap": "solana",
            "defillama": "Solana",
        },
    ),
}

# Decimal ids and aliases; hex ids map to themselves after lower-casing.
_CHAIN_ALIASES: Dict[str, str] = {
    "1": "0x1",
    "eth": "0x1",
    "ethereum": "0x1",
    "mainnet": "0x1",
    "56": "0x38",
    "bsc": "0x38",
    "bnb": "0x38",
    "binance": "0x38",
    "137": "0x89",
    "polygon": "0x89",
    "matic": "0x89",
    "42161": "0xa4b1",
    "arbitrum": "0xa4b1",
    "arb": "0xa4b1",
    "10": "0xa",
    "optimism": "0xa",
    "op": "0xa",
    "8453": "0x2105",
    "base": "0x2105",
    "solana": "solana",
    "sol": "solana",
}


def normalize_chain_id(value: object) -> str:
    """Map a hex id, numeric string or alias to the canonical chain id.

    Unknown input is returned stripped but otherwise unchanged so callers can
    detect unsupported chains. ``normalize_chain_id`` is idempotent.
    """
    raw = str(value if value is not None else "").strip()
    lowered = raw.lower()
    if lowered.startswith("0x"):
        # "0x01" and "0x1" are the same chain
        try:
            return hex(int(lowered, 16))
        except ValueError:
            return raw
    return _CHAIN_ALIASES.get(lowered, raw)


def resolve_chain(chain_id: str) -> Optional[ChainDescriptor]:
    """Descriptor for a canonical chain id, or None when unsupported."""
    return SUPPORTED_CHAINS.get(chain_id)


def require_chain(value: object) -> ChainDescriptor:
    """Normalize and resolve, raising UnsupportedChainError on unknown chains."""
    canonical = normalize_chain_id(value)
    descriptor = resolve_chain(canonical)
    if descriptor is None:
        raise UnsupportedChainError(f"Unsupported chain: {value!r}")
    return descriptor
