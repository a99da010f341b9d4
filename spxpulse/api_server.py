"""
FastAPI server for SPX Pulse.

Read-only projections of per-instrument signal, lifecycle and alert state,
plus tick endpoints the data layer posts snapshots and candles to.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
import logging

from spxpulse import __version__
from spxpulse.engine.orchestrator import InstrumentSession, SessionRegistry
from spxpulse.shared.config.defaults import get_settings
from spxpulse.shared.models.data import Candle, InvalidCandleError, MultiTimeframeCandles
from spxpulse.shared.utils.error_policy import normalize_snapshot

logger = logging.getLogger(__name__)


# Pydantic models for API
class SnapshotRequest(BaseModel):
    """Indicator snapshot posted by the data layer."""
    current_price: float
    rsi: Optional[float] = None
    adx: Optional[float] = None
    supertrend_signal: Optional[str] = None
    ewo_signal: Optional[str] = None
    macd_crossover: Optional[str] = None
    pivot_r1: Optional[float] = None
    pivot_r2: Optional[float] = None
    pivot_s1: Optional[float] = None
    pivot_s2: Optional[float] = None
    generation: Optional[int] = Field(None, description="Request generation from /requests")


class CandleModel(BaseModel):
    timestamp: int = Field(..., description="Bar open time, epoch milliseconds")
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class CandlesRequest(BaseModel):
    """Three parallel series, oldest bar first."""
    fast: List[CandleModel]
    medium: List[CandleModel]
    slow: List[CandleModel]
    generation: Optional[int] = None


def _to_candles(rows: List[CandleModel]) -> List[Candle]:
    return [
        Candle(
            timestamp=row.timestamp,
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
        )
        for row in rows
    ]


def create_app(registry: Optional[SessionRegistry] = None) -> FastAPI:
    """Build the API around a session registry (a fresh one by default)."""
    registry = registry or SessionRegistry()

    app = FastAPI(
        title="SPX Pulse API",
        description="Option signal scoring, trade lifecycle and scalp alerts",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry

    def _session(symbol: str) -> InstrumentSession:
        return registry.get(symbol)

    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "version": __version__, "instruments": registry.symbols()}

    @app.post("/api/instruments/{symbol}/requests")
    def begin_request(symbol: str) -> Dict[str, Any]:
        """Open a new data request generation; older ones become stale."""
        return {"symbol": symbol.upper(), "generation": _session(symbol).begin_request()}

    @app.post("/api/instruments/{symbol}/snapshot")
    def post_snapshot(symbol: str, body: SnapshotRequest) -> Dict[str, Any]:
        session = _session(symbol)
        snapshot = normalize_snapshot(
            current_price=body.current_price,
            rsi=body.rsi,
            adx=body.adx,
            supertrend_signal=body.supertrend_signal,
            ewo_signal=body.ewo_signal,
            macd_crossover=body.macd_crossover,
            pivot_r1=body.pivot_r1,
            pivot_r2=body.pivot_r2,
            pivot_s1=body.pivot_s1,
            pivot_s2=body.pivot_s2,
        )
        outcome = session.apply_snapshot(snapshot, generation=body.generation)
        view = session.signal_view()
        view["applied"] = outcome is not None
        return view

    @app.post("/api/instruments/{symbol}/candles")
    def post_candles(symbol: str, body: CandlesRequest) -> Dict[str, Any]:
        session = _session(symbol)
        try:
            candles = MultiTimeframeCandles(
                fast=_to_candles(body.fast),
                medium=_to_candles(body.medium),
                slow=_to_candles(body.slow),
            )
        except InvalidCandleError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        result = session.apply_candles(candles, generation=body.generation)
        return {
            "applied": result is not None,
            "processed": bool(result and result.processed),
            "reason": result.reason if result else "stale or busy",
            "alert": result.alert.to_dict() if result and result.alert else None,
            "director": session.director_view(),
        }

    @app.post("/api/instruments/{symbol}/track")
    def start_tracking(symbol: str) -> Dict[str, Any]:
        session = _session(symbol)
        started = session.start_tracking()
        if not started:
            raise HTTPException(status_code=409, detail="No pending signal to track")
        return session.signal_view()

    @app.post("/api/instruments/{symbol}/clear")
    def clear_signal(symbol: str) -> Dict[str, Any]:
        session = _session(symbol)
        session.clear_signal()
        return session.signal_view()

    @app.get("/api/instruments/{symbol}/signal")
    def get_signal(symbol: str) -> Dict[str, Any]:
        return _session(symbol).signal_view()

    @app.get("/api/instruments/{symbol}/alerts")
    def get_alerts(symbol: str, limit: int = Query(50, ge=1, le=50)) -> Dict[str, Any]:
        alerts = _session(symbol).alerts(limit)
        return {"symbol": symbol.upper(), "count": len(alerts), "alerts": alerts}

    @app.get("/api/instruments/{symbol}/director")
    def get_director(symbol: str) -> Dict[str, Any]:
        return _session(symbol).director_view()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
