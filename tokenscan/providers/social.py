"""Community size adapters (phase 3): Twitter via Apify, Discord invites, Telegram."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

from tokenscan.providers.base import BaseProvider, ProviderQuery, safe_int

_DISCORD_INVITE_RE = re.compile(
    r"(?:discord\.gg|discord(?:app)?\.com/invite)/([A-Za-z0-9-]+)", re.IGNORECASE
)
_TELEGRAM_NAME_RE = re.compile(r"(?:t\.me|telegram\.me|telegram\.dog)/(?:s/)?([A-Za-z0-9_]{3,})/?$", re.IGNORECASE)


def discord_invite_code(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    match = _DISCORD_INVITE_RE.search(url)
    return match.group(1) if match else None


def telegram_chat_name(url: Optional[str]) -> Optional[str]:
    """Public channel or group username; private ``joinchat``/``+`` links have none."""
    if not url or "joinchat" in url or "/+" in url:
        return None
    match = _TELEGRAM_NAME_RE.search(url)
    return match.group(1) if match else None


class ApifyTwitterProvider(BaseProvider):
    """Follower count through a synchronous Apify Twitter actor run."""

    name = "apify_twitter"
    phase = 3
    fields = frozenset({"twitter_followers"})

    actor_url = "https://api.apify.com/v2/acts/practicaltools~cheap-simple-twitter-api/run-sync-get-dataset-items"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        handle = query.record.twitter_handle if query.record else None
        if not handle:
            return None

        data = await self._post_json(
            client,
            self.actor_url,
            payload={"endpoint": "user/info", "parameters": {"userName": handle}},
            params={"token": self.api_key},
        )
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None
        return {"twitter_followers": safe_int(data[0].get("followers"))}


class DiscordProvider(BaseProvider):
    """Approximate member count from the public invite endpoint."""

    name = "discord"
    phase = 3
    fields = frozenset({"discord_members"})

    base_url = "https://discord.com/api/v9"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        code = discord_invite_code(query.record.discord_url if query.record else None)
        if not code:
            return None

        data = await self._get_json(client, f"{self.base_url}/invites/{code}", params={"with_counts": "true"})
        if not isinstance(data, dict):
            return None
        return {"discord_members": safe_int(data.get("approximate_member_count"))}


class TelegramProvider(BaseProvider):
    """Member count of a public channel or group through the Bot API."""

    name = "telegram"
    phase = 3
    fields = frozenset({"telegram_members"})

    base_url = "https://api.telegram.org"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chat = telegram_chat_name(query.record.telegram_url if query.record else None)
        if not chat:
            return None

        resp = await client.get(
            f"{self.base_url}/bot{self.api_key}/getChatMemberCount",
            params={"chat_id": f"@{chat}"},
            timeout=self.timeout,
        )
        # Bot API answers 400 "chat not found" for unknown usernames
        if resp.status_code == 400:
            return None
        data = self._decode(resp)
        if not isinstance(data, dict) or not data.get("ok"):
            return None
        return {"telegram_members": safe_int(data.get("result"))}
