"""
HTTP API tests against a fresh app per test.
"""

from dataclasses import asdict
import inspect

import pytest
from fastapi.testclient import TestClient

from spxpulse.api_server import create_app
from spxpulse.tests.fixtures.market_data import make_multi_timeframe
from spxpulse.tests.fixtures.scalp import pin_squeeze_pipeline

# RSI 25 (3) + SuperTrend (2.5) + EWO (2) + MACD (3) + 2 pts above S1 (2.5) = 13 -> HIGH CALL
HIGH_CALL = {
    "current_price": 5001.0,
    "rsi": 25,
    "adx": 10,
    "supertrend_signal": "BUY",
    "ewo_signal": "BUY",
    "macd_crossover": "BULLISH",
    "pivot_r1": 5030.0,
    "pivot_r2": 5050.0,
    "pivot_s1": 4999.0,
    "pivot_s2": 4980.0,
}


@pytest.fixture
def client():
    return TestClient(create_app())


def candles_payload(**kwargs):
    candles = make_multi_timeframe(**kwargs)
    return {
        "fast": [asdict(c) for c in candles.fast],
        "medium": [asdict(c) for c in candles.medium],
        "slow": [asdict(c) for c in candles.slow],
    }


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_snapshot_creates_pending_signal(client):
    resp = client.post("/api/instruments/spx/snapshot", json=HIGH_CALL)
    assert resp.status_code == 200
    data = resp.json()
    assert data["applied"]
    assert data["symbol"] == "SPX"
    assert data["state"] == "PENDING"
    assert data["signal"]["type"] == "CALL"
    assert data["signal"]["strike_price"] == 5005.0
    assert data["signal"]["estimated_premium"] == pytest.approx(2.4)
    assert data["signal"]["strength"] == "HIGH"
    assert data["score"]["bullish"] == pytest.approx(13.0)
    assert data["payout"]["contracts"] == 0


def test_track_and_close_at_target(client):
    client.post("/api/instruments/SPX/snapshot", json=HIGH_CALL)
    resp = client.post("/api/instruments/SPX/track")
    assert resp.status_code == 200
    assert resp.json()["state"] == "ACTIVE"

    # A dead-zone snapshot leaves the active trade alone; price is past R1.
    resp = client.post("/api/instruments/SPX/snapshot", json={"current_price": 5031.0})
    assert resp.json()["state"] == "PROFIT"


def test_track_without_pending_is_conflict(client):
    assert client.post("/api/instruments/SPX/track").status_code == 409


def test_clear(client):
    client.post("/api/instruments/SPX/snapshot", json=HIGH_CALL)
    data = client.post("/api/instruments/SPX/clear").json()
    assert data["state"] == "NONE"
    assert data["signal"] is None


def test_stale_generation_is_not_applied(client):
    old = client.post("/api/instruments/SPX/requests").json()["generation"]
    new = client.post("/api/instruments/SPX/requests").json()["generation"]
    assert new > old

    stale = client.post("/api/instruments/SPX/snapshot", json={**HIGH_CALL, "generation": old}).json()
    assert not stale["applied"]
    assert stale["state"] == "NONE"

    fresh = client.post("/api/instruments/SPX/snapshot", json={**HIGH_CALL, "generation": new}).json()
    assert fresh["applied"]
    assert fresh["state"] == "PENDING"


def test_instruments_are_isolated(client):
    client.post("/api/instruments/SPX/snapshot", json=HIGH_CALL)
    assert client.get("/api/instruments/NDX/signal").json()["state"] == "NONE"
    assert client.get("/api/instruments/SPX/signal").json()["state"] == "PENDING"


def test_candles_warmup(client):
    data = client.post("/api/instruments/SPX/candles", json=candles_payload(fast_bars=10)).json()
    assert data["applied"]
    assert not data["processed"]
    assert data["reason"] == "warmup"
    assert data["director"]["candle_index"] == 0


def test_invalid_candle_rejected(client):
    payload = candles_payload()
    payload["fast"][-1]["high"] = payload["fast"][-1]["low"] - 1
    assert client.post("/api/instruments/SPX/candles", json=payload).status_code == 422


def test_candles_alert_lands_in_history(client, monkeypatch):
    pin_squeeze_pipeline(monkeypatch)

    data = client.post("/api/instruments/SPX/candles", json=candles_payload()).json()
    assert data["processed"]
    assert data["alert"]["kind"] == "SQUEEZE_LONG"
    assert data["director"]["director"] == "TREND_UP"

    alerts = client.get("/api/instruments/SPX/alerts", params={"limit": 5}).json()
    assert alerts["count"] == 1
    assert alerts["alerts"][0]["id"] == data["alert"]["id"]

    # Same latest bar again is a no-op.
    again = client.post("/api/instruments/SPX/candles", json=candles_payload()).json()
    assert again["reason"] == "duplicate"
    assert client.get("/api/instruments/SPX/alerts").json()["count"] == 1


def test_alerts_limit_validated(client):
    assert client.get("/api/instruments/SPX/alerts", params={"limit": 0}).status_code == 422
    assert client.get("/api/instruments/SPX/alerts", params={"limit": 51}).status_code == 422


def test_director_view(client):
    data = client.get("/api/instruments/SPX/director").json()
    assert data["director"] == "CHOP"
    assert data["trap_active"] is False
    assert data["last_alert_direction"] is None


def test_instrument_routes_run_in_threadpool():
    routes = [r for r in create_app().routes if getattr(r, "path", "").startswith("/api/instruments/")]
    assert {r.path for r in routes} >= {
        "/api/instruments/{symbol}/snapshot",
        "/api/instruments/{symbol}/candles",
    }
    assert not any(inspect.iscoroutinefunction(r.endpoint) for r in routes)
