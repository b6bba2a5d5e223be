"""Shared fixtures: a throwaway SQLite database and scriptable fake providers."""

import asyncio
import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="tokenscan-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'tokenscan.db'}"
os.environ["LOG_DIR"] = str(_TMP / "logs")
os.environ["MIGRATE_ON_STARTUP"] = "false"
os.environ["REFRESH_ENABLED"] = "false"
os.environ["SLACK_WEBHOOK_URL"] = ""

import pytest  # noqa: E402

from tokenscan.core.chains import require_chain  # noqa: E402
from tokenscan.core.db import SessionLocal, engine  # noqa: E402
from tokenscan.models import Base  # noqa: E402
from tokenscan.providers.base import BaseProvider, ProviderQuery  # noqa: E402
from tokenscan.providers.health import provider_health  # noqa: E402
from tokenscan.schemas.records import TokenIdentity  # noqa: E402
from tokenscan.services.persistence import ScanRepository  # noqa: E402

PENDLE = "0x808507121b80c02388fad14726482e061b8da827"


class FakeProvider(BaseProvider):
    """Provider returning canned fields, raising, or hanging on demand."""

    def __init__(self, name, values=None, phase=1, error=None, delay=0.0, fields=None):
        super().__init__(timeout=5.0)
        self.name = name
        self.phase = phase
        self.values = values
        self.error = error
        self.delay = delay
        self.fields = frozenset(fields if fields is not None else (values or {}))
        self.calls = []

    async def _fetch(self, query: ProviderQuery, client):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.values


@pytest.fixture(autouse=True)
def database():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def reset_provider_health():
    provider_health.reset()
    yield
    provider_health.reset()


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def repository():
    return ScanRepository(SessionLocal)


@pytest.fixture
def ethereum():
    return require_chain("0x1")


@pytest.fixture
def pendle_identity():
    return TokenIdentity(PENDLE, "0x1")


@pytest.fixture
def pendle_providers():
    """Only metadata and price answer; every other provider has nothing."""
    return [
        FakeProvider("moralis_metadata", {"name": "Pendle", "symbol": "PENDLE"}),
        FakeProvider(
            "coingecko",
            {"price_usd": 2.50, "price_change_24h": 5.0, "volume_24h_usd": 2_000_000, "market_cap_usd": 150_000_000},
        ),
        FakeProvider("goplus", None, fields={"honeypot_detected"}),
        FakeProvider("moralis_holders", None, phase=2, fields={"total_holders"}),
        FakeProvider("github", None, phase=3, fields={"github_stars"}),
    ]
