"""Input canonicalization for scan requests and shared link formats."""

import re

from tokenscan.core.errors import ValidationError

EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")

DISCORD_URL_RE = re.compile(
    r"^https?://(?:www\.)?(?:discord\.gg|discord\.com/invite|discordapp\.com/invite)/[A-Za-z0-9-]+/?$",
    re.IGNORECASE,
)
TELEGRAM_URL_RE = re.compile(
    r"^https?://(?:www\.)?(?:t\.me|telegram\.me|telegram\.dog)/(?:joinchat/|\+|s/)?[A-Za-z0-9_]{3,}/?$",
    re.IGNORECASE,
)


def canonicalize_address(value: object) -> str:
    """Strip and lower-case an EVM token address, raising ValidationError if malformed.

    Idempotent and case-insensitive: any casing of the same address yields the
    same canonical string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Token address is required")

    address = value.strip().lower()
    if not EVM_ADDRESS_RE.match(address):
        raise ValidationError("Invalid token address format (expected 0x followed by 40 hex characters)")
    return address


def is_valid_address(value: object) -> bool:
    try:
        canonicalize_address(value)
    except ValidationError:
        return False
    return True
