"""API endpoint tests"""

import pytest
from fastapi.testclient import TestClient

from tokenscan.api.deps import get_refresh_service, get_scan_service
from tokenscan.main import app
from tokenscan.services.refresh_service import RefreshService
from tokenscan.services.scan_service import ScanService

from conftest import PENDLE


@pytest.fixture
def scan_service(pendle_providers, repository):
    return ScanService(providers=pendle_providers, repository=repository, deadline_seconds=5.0)


@pytest.fixture
def client(scan_service, repository):
    app.dependency_overrides[get_scan_service] = lambda: scan_service
    app.dependency_overrides[get_refresh_service] = lambda: RefreshService(
        scan_service=scan_service, repository=repository, delay_seconds=0
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestScanEndpoint:
    """Test POST /scan"""

    def test_scan_success(self, client):
        response = client.post("/scan", json={"token_address": PENDLE, "user_id": "user-1"}, headers={"X-Request-ID": "req-42"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["request_id"] == "req-42"
        assert body["overall_score"] == 38
        assert body["category_scores"]["liquidity"] == 75
        assert body["token"]["name"] == "Pendle"
        assert body["from_cache"] is False

    def test_invalid_address_is_400(self, client, pendle_providers):
        response = client.post("/scan", json={"token_address": "not-an-address"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert all(not provider.calls for provider in pendle_providers)

    def test_unsupported_chain_is_400(self, client):
        response = client.post("/scan", json={"token_address": PENDLE, "chain_id": "0xfa"})
        assert response.status_code == 400
        assert response.json()["code"] == "UNSUPPORTED_CHAIN"

    def test_missing_body_field_is_422(self, client):
        response = client.post("/scan", json={"chain_id": "0x1"})
        assert response.status_code == 422

    def test_no_data_is_500(self, client, pendle_providers):
        for provider in pendle_providers:
            provider.values = None
        response = client.post("/scan", json={"token_address": PENDLE})
        assert response.status_code == 500
        assert response.json()["code"] == "NO_DATA"


class TestCachedEndpoint:
    """Test GET /scan/{chain_id}/{token_address}"""

    def test_not_scanned_is_404(self, client):
        response = client.get(f"/scan/0x1/{PENDLE}")
        assert response.status_code == 404

    def test_bad_address_is_400(self, client):
        response = client.get("/scan/0x1/0x123")
        assert response.status_code == 400

    def test_returns_snapshot(self, client):
        client.post("/scan", json={"token_address": PENDLE})

        response = client.get(f"/scan/eth/{PENDLE.upper().replace('0X', '0x')}")

        assert response.status_code == 200
        body = response.json()
        assert body["chain_id"] == "0x1"
        assert body["overall_score"] == 38
        assert body["category_scores"]["liquidity"] == 75
        assert set(body["categories"]) == {"security", "tokenomics", "liquidity", "community", "development"}
        assert body["provenance"]["name"] == "moralis_metadata"


class TestHealthEndpoints:
    """Test health endpoints"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"database": "ok", "last_scan_at": None}

    def test_ready(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_provider_health_after_scan(self, client):
        client.post("/scan", json={"token_address": PENDLE})

        response = client.get("/health/providers")

        assert response.status_code == 200
        by_name = {item["provider"]: item for item in response.json()}
        assert by_name["coingecko"]["successful_requests"] == 1
        assert by_name["goplus"]["no_data_requests"] == 1
        assert by_name["goplus"]["status"] == "healthy"


class TestStatsEndpoint:
    """Test GET /stats"""

    def test_counts_and_recent(self, client):
        client.post("/scan", json={"token_address": PENDLE, "user_id": "user-1"})
        client.post("/scan", json={"token_address": PENDLE})

        response = client.get("/stats", params={"token_address": PENDLE.upper().replace("0X", "0x")})

        assert response.status_code == 200
        body = response.json()
        assert body["total_scans"] == 2
        assert body["anonymous_scans"] == 1
        assert body["attributed_scans"] == 1
        assert body["cached_tokens"] == 1
        assert len(body["recent_scans"]) == 2
        assert {scan["from_cache"] for scan in body["recent_scans"]} == {False, True}

    def test_limit_validation(self, client):
        assert client.get("/stats", params={"limit": 0}).status_code == 422


class TestRefreshEndpoint:
    """Test POST /refresh/run-all"""

    def test_refreshes_cached_tokens(self, client, pendle_providers):
        client.post("/scan", json={"token_address": PENDLE})
        calls_before = len(pendle_providers[0].calls)

        response = client.post("/refresh/run-all")

        assert response.status_code == 200
        assert response.json() == {"success": True, "total": 1, "refreshed": 1, "failed": 0, "errors": []}
        assert len(pendle_providers[0].calls) == calls_before + 1

    def test_empty_cache(self, client):
        response = client.post("/refresh/run-all", params={"limit": 5})
        assert response.json()["total"] == 0
