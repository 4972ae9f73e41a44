"""Tests for the quote service endpoints."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from swapengine import __version__
from swapengine.api.endpoints import get_engine
from swapengine.api.main import app
from swapengine.constants import WNATIVE
from swapengine.tokens.registry import TokenRegistry
from tests.helpers.constants import ONE, TKA, TKB, TKC, TOKEN_A, TOKEN_B
from tests.helpers.factories import make_engine


@pytest.fixture
def client(chain):
    """Test client backed by an engine over the fake chain."""
    chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)
    engine = make_engine(chain, account=None)
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def quote_body(**overrides):
    body = {"tokenIn": TKA, "tokenOut": TKB, "amount": "1000"}
    body.update(overrides)
    return body


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


class TestQuote:
    def test_available(self, client):
        response = client.post("/quote", json=quote_body())

        assert response.status_code == 200
        data = response.json()
        assert data["available"] is True
        assert data["router"] == "reachswap"
        assert data["amountIn"] == "1000"
        assert data["amountOut"] == "1992"
        assert data["minimumReceived"] == "1982"
        assert data["path"] == [TKA, TKB]
        assert "reason" not in data

    def test_exact_out(self, client):
        data = client.post("/quote", json=quote_body(amount="1992", direction="exact_out")).json()
        assert data["amountIn"] == "1000"
        assert data["maximumInput"] == "1005"

    def test_custom_slippage(self, client):
        data = client.post("/quote", json=quote_body(slippageBps=100)).json()
        assert data["minimumReceived"] == str(1992 * 9900 // 10000)

    def test_unavailable(self, client):
        response = client.post("/quote", json=quote_body(amount="0"))

        assert response.status_code == 200
        data = response.json()
        assert data["available"] is False
        assert data["reason"]
        assert "amountOut" not in data

    def test_no_liquidity_kind(self, client):
        data = client.post("/quote", json=quote_body(amount="2000000", direction="exact_out")).json()
        assert data["available"] is False
        assert data["errorKind"] == "insufficient_liquidity"

    @pytest.mark.parametrize(
        "body",
        [
            quote_body(tokenIn="0x1234"),
            quote_body(amount="-5"),
            quote_body(amount="1.5"),
            quote_body(slippageBps=10_001),
            quote_body(direction="sideways"),
        ],
    )
    def test_invalid_request(self, client, body):
        assert client.post("/quote", json=body).status_code == 422

    def test_unknown_token(self, client):
        response = client.post("/quote", json=quote_body(tokenOut="0x" + "77" * 20))
        assert response.status_code == 400
        assert "No contract" in response.json()["detail"]

    def test_unreadable_token(self, chain, client):
        chain.fail_next("eth_getCode", ConnectionError("connection refused"))
        response = client.post("/quote", json=quote_body(tokenOut=TKC))
        assert response.status_code == 400
        assert "contract code" in response.json()["detail"]


class TestTokens:
    def test_lists_registry(self, chain):
        engine = make_engine(chain)
        engine.registry = TokenRegistry([TOKEN_A])
        app.dependency_overrides[get_engine] = lambda: engine
        try:
            response = TestClient(app).get("/tokens")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json() == [{"address": TKA, "symbol": "TKA", "name": "Token A", "decimals": 18}]

    def test_with_prices(self, chain):
        chain.add_pair("reachswap", WNATIVE, TKA, 4 * ONE, ONE)
        engine = make_engine(chain)
        engine.registry = TokenRegistry([TOKEN_A, TOKEN_B])
        app.dependency_overrides[get_engine] = lambda: engine
        try:
            response = TestClient(app).get("/tokens", params={"prices": "true"})
        finally:
            app.dependency_overrides.clear()

        priced, unpriced = response.json()
        assert Decimal(priced["price"]) == Decimal("0.6")
        assert "price" not in unpriced

    def test_includes_imported(self, client):
        client.post("/quote", json=quote_body())
        symbols = {t["symbol"] for t in client.get("/tokens").json()}
        assert {"TKA", "TKB", "LOOP"} <= symbols


class TestRequestLimits:
    def test_oversized_body_rejected(self, client):
        response = client.post(
            "/quote",
            content=b"{" + b" " * (64 * 1024) + b"}",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 413
