"""Integration tests for the exchange HTTP API."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from exchange.api.endpoints import get_exchange
from exchange.api.main import app
from exchange.config import PoolConfig, RegistryConfig
from exchange.service import Exchange
from tests.helpers import ALICE, BOB

BIG = str(10**24)


@pytest.fixture
def exchange() -> Exchange:
    return Exchange(registry_config=RegistryConfig(), pool_config=PoolConfig())


@pytest.fixture
def client(exchange: Exchange) -> Iterator[TestClient]:
    """Test client bound to a fresh exchange."""
    app.dependency_overrides[get_exchange] = lambda: exchange
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def asset_id(client: TestClient) -> str:
    """An asset with a pool; ALICE and BOB are funded and have approved it."""
    asset = client.post("/assets", json={"symbol": "TKN"}).json()["address"]
    pool_id = client.post("/pools", json={"assetId": asset}).json()["poolId"]
    for account in (ALICE, BOB):
        client.post(f"/accounts/{account}/fund", json={"amount": BIG})
        client.post(f"/assets/{asset}/mint", json={"to": account, "amount": BIG})
        client.post(
            f"/assets/{asset}/approve",
            json={"owner": account, "spender": pool_id, "amount": BIG},
        )
    return asset


@pytest.fixture
def seeded_asset_id(client: TestClient, asset_id: str) -> str:
    """The worked example pool: 10 native against 10,000 asset."""
    response = client.post(
        f"/pools/{asset_id}/deposit",
        json={"sender": ALICE, "nativeAmount": "10", "assetAmount": "10000"},
    )
    assert response.status_code == 200
    return asset_id


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAccountsAndAssets:
    """Tests for account funding and asset management."""

    def test_fund_and_read(self, client):
        client.post(f"/accounts/{ALICE}/fund", json={"amount": "500"})

        response = client.get(f"/accounts/{ALICE}")
        assert response.json() == {"owner": ALICE, "balance": "500"}

    def test_create_asset(self, client):
        response = client.post("/assets", json={"symbol": "TKN"})

        assert response.status_code == 201
        assert response.json()["symbol"] == "TKN"
        assert response.json()["address"].startswith("0x")

    def test_mint_and_balance(self, client):
        asset = client.post("/assets", json={"symbol": "TKN"}).json()["address"]
        client.post(f"/assets/{asset}/mint", json={"to": BOB, "amount": "42"})

        response = client.get(f"/assets/{asset}/balances/{BOB}")
        assert response.json()["balance"] == "42"

    def test_approve_reports_allowance(self, client):
        asset = client.post("/assets", json={"symbol": "TKN"}).json()["address"]

        response = client.post(
            f"/assets/{asset}/approve", json={"owner": ALICE, "spender": BOB, "amount": "7"}
        )
        assert response.json() == {"owner": ALICE, "spender": BOB, "allowance": "7"}

    def test_unknown_asset_is_client_error(self, client):
        response = client.post(f"/assets/0x{'12' * 20}/mint", json={"to": BOB, "amount": "1"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_asset"

    def test_malformed_amount_rejected(self, client):
        response = client.post(f"/accounts/{ALICE}/fund", json={"amount": "-5"})

        assert response.status_code == 422


class TestPools:
    """Tests for pool creation and lookup."""

    def test_create_pool(self, client, exchange, asset_id):
        pool = client.get(f"/pools/{asset_id}").json()

        assert pool["assetId"] == asset_id
        assert pool["creatorId"] == exchange.registry.address
        assert pool["nativeReserve"] == "0"
        assert pool["totalShares"] == "0"

    def test_duplicate_pool_conflict(self, client, asset_id):
        response = client.post("/pools", json={"assetId": asset_id})

        assert response.status_code == 409
        assert response.json()["error"] == "pool_already_exists"

    def test_null_asset_rejected(self, client):
        response = client.post("/pools", json={"assetId": "0x" + "00" * 20})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_asset"

    def test_missing_pool_404(self, client):
        response = client.get(f"/pools/0x{'34' * 20}")

        assert response.status_code == 404
        assert response.json()["error"] == "pool_not_found"
        assert "detail" in response.json()

    def test_trading_on_missing_pool_404(self, client):
        response = client.post(
            f"/pools/0x{'35' * 20}/withdraw", json={"sender": ALICE, "shares": "1"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "pool_not_found"

    def test_list_pools(self, client, asset_id):
        pools = client.get("/pools").json()

        assert [p["assetId"] for p in pools] == [asset_id]


class TestTrading:
    """Tests for liquidity and swap routes."""

    def test_deposit_sets_reserves(self, client, seeded_asset_id):
        pool = client.get(f"/pools/{seeded_asset_id}").json()

        assert pool["nativeReserve"] == "10"
        assert pool["assetReserve"] == "10000"
        assert pool["totalShares"] == "10"

    def test_quote(self, client, seeded_asset_id):
        response = client.get(
            f"/pools/{seeded_asset_id}/quote", params={"side": "sellNative", "amount": 1}
        )

        assert response.json() == {"side": "sellNative", "amountIn": "1", "amountOut": "906"}

    def test_quote_zero_rejected(self, client, seeded_asset_id):
        response = client.get(
            f"/pools/{seeded_asset_id}/quote", params={"side": "sellNative", "amount": 0}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_quote_input"

    def test_swap_native_for_asset(self, client, seeded_asset_id):
        response = client.post(
            f"/pools/{seeded_asset_id}/swap/native-for-asset",
            json={"sender": BOB, "nativeAmount": "1", "minAssetAmount": "906"},
        )

        assert response.status_code == 200
        assert response.json() == {"amountIn": "1", "amountOut": "906"}

        pool = client.get(f"/pools/{seeded_asset_id}").json()
        assert (pool["nativeReserve"], pool["assetReserve"]) == ("11", "9094")

    def test_slippage_rejected_without_effect(self, client, seeded_asset_id):
        response = client.post(
            f"/pools/{seeded_asset_id}/swap/native-for-asset",
            json={"sender": BOB, "nativeAmount": "1", "minAssetAmount": "907"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "slippage_exceeded"
        assert client.get(f"/accounts/{BOB}").json()["balance"] == BIG

    def test_swap_asset_for_native(self, client, seeded_asset_id):
        """1,000 asset into (10, 10000) buys floor(0.906) = 0 native."""
        response = client.post(
            f"/pools/{seeded_asset_id}/swap/asset-for-native",
            json={"sender": BOB, "assetAmount": "1000"},
        )

        assert response.json() == {"amountIn": "1000", "amountOut": "0"}

    def test_withdraw(self, client, seeded_asset_id):
        response = client.post(
            f"/pools/{seeded_asset_id}/withdraw", json={"sender": ALICE, "shares": "10"}
        )

        assert response.json() == {"nativeAmount": "10", "assetAmount": "10000"}

    def test_withdraw_too_many_shares(self, client, seeded_asset_id):
        response = client.post(
            f"/pools/{seeded_asset_id}/withdraw", json={"sender": BOB, "shares": "1"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "insufficient_balance"
