"""Abstract provider interface for token data adapters."""

from __future__ import annotations

import math
import re
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, FrozenSet, Optional

import httpx

from tokenscan.core.chains import ChainDescriptor
from tokenscan.core.config import settings
from tokenscan.core.errors import ProviderError
from tokenscan.core.logging import get_logger
from tokenscan.schemas.records import MergedTokenRecord, TokenIdentity

log = get_logger("providers")


class ProviderStatus(str, Enum):
    SUCCESS = "success"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass
class ProviderQuery:
    """What an adapter is asked about.

    ``record`` is the record resolved from earlier phases; phase 1 adapters
    ignore it, later phases read handles and urls from it.
    """

    identity: TokenIdentity
    chain: ChainDescriptor
    record: Optional[MergedTokenRecord] = None
    request_id: str = "-"

    @property
    def address(self) -> str:
        return self.identity.address


@dataclass
class ProviderResult:
    """Outcome of exactly one adapter call."""

    provider: str
    status: ProviderStatus
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status is ProviderStatus.SUCCESS

    @classmethod
    def success(cls, provider: str, fields: Dict[str, Any], latency_ms: int = 0) -> "ProviderResult":
        return cls(provider=provider, status=ProviderStatus.SUCCESS, fields=fields, latency_ms=latency_ms)

    @classmethod
    def no_data(cls, provider: str, latency_ms: int = 0) -> "ProviderResult":
        return cls(provider=provider, status=ProviderStatus.NO_DATA, latency_ms=latency_ms)

    @classmethod
    def failure(cls, provider: str, error: str, latency_ms: int = 0) -> "ProviderResult":
        return cls(provider=provider, status=ProviderStatus.ERROR, error=error, latency_ms=latency_ms)


class BaseProvider(ABC):
    """Base class for every external data source.

    Subclasses implement ``_fetch`` and return a dict of logical fields, or
    ``None`` when the provider has nothing for the token. ``fetch`` never
    raises: every exception becomes an Error result here.
    """

    name: str
    phase: int = 1
    fields: FrozenSet[str] = frozenset()
    # Key into ChainDescriptor.provider_ids; None means chain-agnostic
    chain_key: Optional[str] = None

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS

    async def fetch(self, query: ProviderQuery, client: Optional[httpx.AsyncClient] = None) -> ProviderResult:
        started = time.perf_counter()
        try:
            async with self._client_scope(client) as http:
                raw = await self._fetch(query, http)
        except Exception as exc:  # noqa: BLE001
            latency = self._elapsed_ms(started)
            log.bind(request_id=query.request_id).warning(
                f"Provider={self.name} token={query.identity} failed after {latency}ms: {exc}"
            )
            return ProviderResult.failure(self.name, f"{type(exc).__name__}: {exc}", latency)

        latency = self._elapsed_ms(started)
        values = {key: value for key, value in (raw or {}).items() if key in self.fields and value is not None}
        if not values:
            log.bind(request_id=query.request_id).debug(f"Provider={self.name} token={query.identity} no data")
            return ProviderResult.no_data(self.name, latency)

        log.bind(request_id=query.request_id).debug(
            f"Provider={self.name} token={query.identity} fields={sorted(values)} latency={latency}ms"
        )
        return ProviderResult.success(self.name, values, latency)

    @abstractmethod
    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        """Perform the provider round trip and map its payload to logical fields."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def chain_param(self, query: ProviderQuery) -> Optional[str]:
        if self.chain_key is None:
            return query.chain.chain_id
        return query.chain.provider_id(self.chain_key)

    @asynccontextmanager
    async def _client_scope(self, client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as own_client:
            yield own_client

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        resp = await client.get(url, params=params, headers=headers, timeout=self.timeout)
        return self._decode(resp)

    async def _post_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: Any,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        resp = await client.post(url, json=payload, params=params, headers=headers, timeout=self.timeout)
        return self._decode(resp)

    def _decode(self, resp: httpx.Response) -> Any:
        """JSON body, ``None`` for 404 (token unknown), ProviderError otherwise."""
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise ProviderError(
                f"HTTP {resp.status_code} from {resp.request.url.host}",
                provider=self.name,
                status_code=resp.status_code,
            )
        if not resp.content.strip():
            raise ProviderError("Empty response body", provider=self.name, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError("Invalid JSON response", provider=self.name, status_code=resp.status_code) from exc

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)


# -----------------------------------------------------------------------------
# Payload coercion
# -----------------------------------------------------------------------------
def safe_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    return result if math.isfinite(result) else None


def safe_int(value: Any) -> Optional[int]:
    number = safe_float(value)
    return int(number) if number is not None else None


def flag(value: Any) -> Optional[bool]:
    """GoPlus-style "0"/"1" strings (and real booleans) to bool; anything else is unknown."""
    if isinstance(value, bool):
        return value
    if value in ("1", 1):
        return True
    if value in ("0", 0):
        return False
    return None


def clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


_TWITTER_URL_RE = re.compile(r"^(?:https?://)?(?:www\.|mobile\.)?(?:twitter|x)\.com/@?([^/?#]+)", re.IGNORECASE)


def twitter_handle(value: Any) -> Optional[str]:
    """A bare handle from ``@handle``, ``handle`` or a twitter.com / x.com URL."""
    text = clean_text(value)
    if not text:
        return None
    match = _TWITTER_URL_RE.match(text)
    if match:
        text = match.group(1)
    return text.lstrip("@") or None


def first_url(value: Any) -> Optional[str]:
    """Providers send links either as a string or a list of strings."""
    if isinstance(value, (list, tuple)):
        return next((clean_text(item) for item in value if clean_text(item)), None)
    return clean_text(value)


def first_matching_url(value: Any, pattern: re.Pattern) -> Optional[str]:
    """First link matching ``pattern``; later links are tried when earlier ones are malformed."""
    candidates = value if isinstance(value, (list, tuple)) else [value]
    for item in candidates:
        url = clean_text(item)
        if url and pattern.match(url):
            return url
    return None
