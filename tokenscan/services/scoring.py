"""Category and overall scores from a merged token record.

Every function here is pure: the only input is the record (and, for time
based rules, ``record.fetched_at``), and the same record always yields the
same scores. Each category score is an integer clamped to [0, 100], or
``None`` when the record carries no evidence for that category.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from tokenscan.schemas.records import CategoryScores, MergedTokenRecord

SECURITY_EVIDENCE = (
    "ownership_renounced",
    "can_mint",
    "honeypot_detected",
    "freeze_authority",
    "audit_status",
    "contract_verified",
    "is_blacklisted",
    "buy_tax",
    "sell_tax",
)
MARKET_EVIDENCE = ("price_usd", "market_cap_usd", "volume_24h_usd", "total_liquidity_usd", "tvl_usd")
TOKENOMICS_EVIDENCE = MARKET_EVIDENCE + ("total_supply", "concentration_bucket", "total_holders")
COMMUNITY_EVIDENCE = (
    "twitter_handle",
    "discord_url",
    "telegram_url",
    "twitter_followers",
    "discord_members",
    "telegram_members",
)

CONCENTRATION_ADJUSTMENT = {"Low": 15, "Medium": 10, "High": 0, "Very High": -10}
DISTRIBUTION_LABELS = {"Low": "Excellent", "Medium": "Good", "High": "Fair", "Very High": "Poor"}

# Share of the enhanced tokenomics adjustment each source backs (sums to 100)
CONFIDENCE_WEIGHTS = (
    ("total_supply", 20),
    ("total_liquidity_usd", 25),
    ("concentration_bucket", 30),
    ("verified_contract", 15),
    ("price_usd", 10),
)

_LOCK_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(day|month|year)s?", re.IGNORECASE)
_LOCK_MULTIPLIERS = {"day": 1, "month": 30, "year": 365}


def clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, round(value))))


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _tiered(value: Optional[float], tiers: tuple) -> int:
    """Points of the first ``(threshold, points)`` tier that ``value`` exceeds."""
    if value is None:
        return 0
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def score_security(record: MergedTokenRecord) -> Optional[int]:
    if not record.has_any(SECURITY_EVIDENCE):
        return None

    score = 50
    if record.ownership_renounced is True:
        score += 15
    if record.contract_verified is True:
        score += 10
    if record.audit_status == "verified":
        score += 10
    if record.can_mint is False:
        score += 10
    if record.honeypot_detected is True:
        score -= 40
    if record.freeze_authority is True:
        score -= 20
    if record.is_blacklisted is True:
        score -= 15
    for tax in (record.buy_tax, record.sell_tax):
        if tax:
            score -= min(tax * 100, 10)
    return clamp(score)


def score_liquidity(record: MergedTokenRecord) -> Optional[int]:
    if not record.has_any(MARKET_EVIDENCE):
        return None

    score = 30
    score += _tiered(record.volume_24h_usd, ((1_000_000, 25), (100_000, 15), (10_000, 5)))
    score += _tiered(record.market_cap_usd, ((100_000_000, 20), (10_000_000, 10), (1_000_000, 5)))
    return clamp(score)


def tokenomics_confidence(record: MergedTokenRecord) -> int:
    """Percentage of the enhanced tokenomics sources that reported."""
    return sum(weight for name, weight in CONFIDENCE_WEIGHTS if getattr(record, name) is not None)


def score_tokenomics(record: MergedTokenRecord) -> Optional[int]:
    if not record.has_any(TOKENOMICS_EVIDENCE):
        return None

    score = 40.0
    supply = record.total_supply
    if supply is not None:
        if supply < 1e9:
            score += 15
        elif supply > 1e12:
            score -= 10
    if record.verified_contract is True:
        score += 10
    if record.possible_spam is True:
        score -= 20
    change = record.price_change_24h
    if change is not None:
        if abs(change) < 5:
            score += 10
        elif abs(change) > 20:
            score -= 5

    enhanced = CONCENTRATION_ADJUSTMENT.get(record.concentration_bucket or "", 0)
    enhanced += _tiered(record.total_liquidity_usd, ((1_000_000, 10), (100_000, 5), (10_000, 2)))
    score += enhanced * tokenomics_confidence(record) / 100
    return clamp(score)


def score_community(record: MergedTokenRecord) -> Optional[int]:
    if not record.has_any(COMMUNITY_EVIDENCE):
        return None

    score = 20
    score += _tiered(record.twitter_followers, ((99_999, 25), (49_999, 20), (9_999, 15), (999, 10), (0, 5)))
    score += _tiered(record.discord_members, ((49_999, 20), (9_999, 15), (4_999, 10), (999, 8), (0, 5)))
    score += _tiered(record.telegram_members, ((49_999, 15), (9_999, 12), (4_999, 8), (999, 6), (0, 3)))

    platforms = sum(1 for link in (record.twitter_handle, record.discord_url, record.telegram_url) if link)
    score += {3: 20, 2: 10, 1: 5}.get(platforms, 0)
    return clamp(score)


def score_development(record: MergedTokenRecord) -> int:
    """0 unless GitHub resolved a repository; repository activity otherwise.

    A ``github_url`` alone does not count: dead links and failed lookups
    leave the GitHub fields empty.
    """
    if record.github_stars is None and record.github_last_push is None:
        return 0

    score = 20
    score += _tiered(record.github_commits_30d, ((20, 40), (10, 30), (5, 20), (0, 10)))

    stars = record.github_stars or 0
    forks = record.github_forks or 0
    if stars > 1000 or forks > 100:
        score += 20
    elif stars > 100 or forks > 20:
        score += 15
    elif stars > 10 or forks > 5:
        score += 10
    elif stars > 0 or forks > 0:
        score += 5

    score += _tiered(record.github_contributors, ((20, 10), (5, 6), (0, 3)))

    if record.github_last_push is not None:
        days = (_aware(record.fetched_at) - _aware(record.github_last_push)).days
        if days < 7:
            score += 15
        elif days < 30:
            score += 12
        elif days < 90:
            score += 8
        elif days < 180:
            score += 4
    if record.github_archived is True:
        score -= 20
    return clamp(score)


def score_categories(record: MergedTokenRecord) -> CategoryScores:
    return CategoryScores(
        security=score_security(record),
        tokenomics=score_tokenomics(record),
        liquidity=score_liquidity(record),
        community=score_community(record),
        development=score_development(record),
    )


def overall_score(scores: CategoryScores) -> int:
    """Mean of the available category scores; 0 when none is available."""
    available = scores.available()
    if not available:
        return 0
    return clamp(sum(available) / len(available))


def parse_lock_days(is_locked: Optional[bool], lock_info: Optional[str]) -> int:
    """Best-effort lock horizon in days from free text such as "Locked for 6 months"."""
    if not is_locked:
        return 0
    match = _LOCK_RE.search(lock_info or "")
    if not match:
        return 1
    return max(1, int(float(match.group(1)) * _LOCK_MULTIPLIERS[match.group(2).lower()]))


def distribution_label(concentration_bucket: Optional[str]) -> str:
    return DISTRIBUTION_LABELS.get(concentration_bucket or "", "Unknown")
