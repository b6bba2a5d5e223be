"""Per-field acceptance rules applied while resolving provider values.

A gate returns the (possibly cleaned) value to keep, or ``None`` to reject
it and let the next provider in the chain try.
"""

from __future__ import annotations

import html
import math
import re
from typing import Any, Callable, Dict, Optional

from tokenscan.core.validation import DISCORD_URL_RE, TELEGRAM_URL_RE
from tokenscan.providers.base import twitter_handle as extract_twitter_handle

Gate = Callable[[Any], Any]

MIN_DESCRIPTION_LENGTH = 40
TAGLINE_MAX_LENGTH = 100

PLACEHOLDER_NAMES = frozenset({"unknown", "???", "n/a", "na", "none", "null", "undefined", "token"})

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?](?:\s|$)")

TEMPLATED_DESCRIPTION_PATTERNS = [
    re.compile(r"^.{1,80}\([^)]{1,20}\) is a cryptocurrency (?:launched|and operates)", re.IGNORECASE),
    re.compile(r"^.{1,80} is a (?:cryptocurrency|token) (?:on|built on|deployed on) the .{1,40} (?:platform|blockchain)\.?$", re.IGNORECASE),
    re.compile(r"^no description", re.IGNORECASE),
    re.compile(r"^(?:tbd|tba|n/?a|coming soon|description coming soon)\.?$", re.IGNORECASE),
    re.compile(r"^the last known price of .{1,80} is", re.IGNORECASE),
]

HYPE_PHRASES = (
    "to the moon",
    "100x",
    "1000x",
    "next gem",
    "next big thing",
    "don't miss",
    "dont miss",
    "get rich",
    "join the revolution",
    "the future of finance",
)

GITHUB_URL_RE = re.compile(r"^https?://(?:www\.)?github\.com/[A-Za-z0-9_.-]+(?:/[A-Za-z0-9_.-]+)?/?$", re.IGNORECASE)
HTTP_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
TWITTER_HANDLE_RE = re.compile(r"^\w{1,15}$")

# Numeric fields where a provider-reported 0 is a real observation.
ZERO_PLAUSIBLE = frozenset(
    {
        "price_change_24h",
        "volume_24h_usd",
        "total_liquidity_usd",
        "tvl_usd",
        "cex_listings",
        "buy_tax",
        "sell_tax",
        "github_stars",
        "github_forks",
        "github_contributors",
        "github_commits_30d",
        "webacy_risk_score",
        "gini_coefficient",
    }
)
NEGATIVE_PLAUSIBLE = frozenset({"price_change_24h"})


# -----------------------------------------------------------------------------
# Text
# -----------------------------------------------------------------------------
def clean_description(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = html.unescape(_TAG_RE.sub(" ", value))
    return _WHITESPACE_RE.sub(" ", text).strip() or None


def is_templated(text: str) -> bool:
    return any(pattern.search(text) for pattern in TEMPLATED_DESCRIPTION_PATTERNS)


def is_tagline(text: str) -> bool:
    lowered = text.lower()
    if any(phrase in lowered for phrase in HYPE_PHRASES):
        return True
    sentences = [part for part in _SENTENCE_END_RE.split(text) if part.strip()]
    return len(sentences) <= 1 and len(text) < TAGLINE_MAX_LENGTH


def description_gate(value: Any) -> Optional[str]:
    text = clean_description(value)
    if not text or len(text) < MIN_DESCRIPTION_LENGTH:
        return None
    if is_templated(text) or is_tagline(text):
        return None
    return text


def identity_gate(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.lower() in PLACEHOLDER_NAMES:
        return None
    return text


def label_gate(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


# -----------------------------------------------------------------------------
# URLs and handles
# -----------------------------------------------------------------------------
def _url_gate(pattern: re.Pattern) -> Gate:
    def gate(value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        url = value.strip()
        return url if pattern.match(url) else None

    return gate


http_url_gate = _url_gate(HTTP_URL_RE)
discord_url_gate = _url_gate(DISCORD_URL_RE)
telegram_url_gate = _url_gate(TELEGRAM_URL_RE)
github_url_gate = _url_gate(GITHUB_URL_RE)


def twitter_handle_gate(value: Any) -> Optional[str]:
    handle = extract_twitter_handle(value)
    if not handle or not TWITTER_HANDLE_RE.match(handle):
        return None
    return handle


# -----------------------------------------------------------------------------
# Numbers and flags
# -----------------------------------------------------------------------------
def numeric_gate(field_name: str) -> Gate:
    """Rejects non-finite values, negatives and implausible zeros for ``field_name``."""
    allow_zero = field_name in ZERO_PLAUSIBLE
    allow_negative = field_name in NEGATIVE_PLAUSIBLE

    def gate(value: Any) -> Optional[float]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value):
            return None
        if value < 0 and not allow_negative:
            return None
        if value == 0 and not allow_zero:
            return None
        return value

    return gate


def bool_gate(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def list_gate(value: Any) -> Optional[list]:
    return value if isinstance(value, list) else None


def passthrough_gate(value: Any) -> Any:
    return value


GATES: Dict[str, Gate] = {
    "name": identity_gate,
    "symbol": identity_gate,
    "description": description_gate,
    "logo_url": http_url_gate,
    "website_url": http_url_gate,
    "twitter_handle": twitter_handle_gate,
    "github_url": github_url_gate,
    "discord_url": discord_url_gate,
    "telegram_url": telegram_url_gate,
    "audit_status": label_gate,
    "liquidity_lock_info": label_gate,
    "webacy_severity": label_gate,
    "concentration_bucket": label_gate,
    "github_language": label_gate,
    "coingecko_id": label_gate,
    "webacy_flags": list_gate,
    "major_pairs": list_gate,
    "github_last_push": passthrough_gate,
}

NUMERIC_FIELDS = (
    "price_usd",
    "price_change_24h",
    "market_cap_usd",
    "volume_24h_usd",
    "total_supply",
    "buy_tax",
    "sell_tax",
    "webacy_risk_score",
    "gini_coefficient",
    "total_holders",
    "total_liquidity_usd",
    "tvl_usd",
    "cex_listings",
    "twitter_followers",
    "discord_members",
    "telegram_members",
    "github_stars",
    "github_forks",
    "github_contributors",
    "github_commits_30d",
)
GATES.update({name: numeric_gate(name) for name in NUMERIC_FIELDS})


def gate_for(field_name: str) -> Gate:
    """Gate of a merged field; unlisted fields are booleans."""
    return GATES.get(field_name, bool_gate)
