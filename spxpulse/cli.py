"""
SPX Pulse CLI - Command-line interface.

Commands:
- score: score one indicator snapshot and print the planned trade
- replay: run the scalp engine over CSV candle files for three timeframes
- serve: start the HTTP API
"""
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import typer
from loguru import logger

from spxpulse import __version__
from spxpulse.engine.orchestrator import InstrumentSession
from spxpulse.indicators.validation_utils import DataValidationError, validate_ohlcv
from spxpulse.risk.position_sizer import simulate_payout
from spxpulse.shared.config.defaults import get_settings
from spxpulse.shared.models.data import Candle, InvalidCandleError, MultiTimeframeCandles, frame_to_candles
from spxpulse.shared.utils.error_policy import normalize_snapshot
from spxpulse.shared.utils.logging_utils import format_session_summary
from spxpulse.strategy.confluence.scorer import score_snapshot
from spxpulse.strategy.planner.planner_service import plan_trade

app = typer.Typer(help="📈 SPX Pulse - Option signal scoring and scalp alerts")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _load_candles(path: Path) -> List[Candle]:
    df = pd.read_csv(path)
    if 'timestamp' not in df.columns and 'time' in df.columns:
        df = df.rename(columns={'time': 'timestamp'})
    if 'timestamp' not in df.columns:
        raise DataValidationError(f"{path.name}: no timestamp column")
    if 'volume' not in df.columns:
        df['volume'] = 0.0
    df = df.sort_values('timestamp').reset_index(drop=True)
    validate_ohlcv(df)
    return frame_to_candles(df)


@app.command()
def score(
    price: float = typer.Option(..., help="Current underlying price"),
    rsi: Optional[float] = typer.Option(None, help="RSI reading"),
    adx: Optional[float] = typer.Option(None, help="ADX reading"),
    supertrend: str = typer.Option("HOLD", help="SuperTrend signal (BUY/SELL/HOLD)"),
    ewo: str = typer.Option("HOLD", help="EWO signal (BUY/SELL/HOLD)"),
    macd: str = typer.Option("NONE", help="MACD crossover (BULLISH/BEARISH/BUY/SELL/NONE)"),
    r1: Optional[float] = typer.Option(None, help="Pivot R1"),
    r2: Optional[float] = typer.Option(None, help="Pivot R2"),
    s1: Optional[float] = typer.Option(None, help="Pivot S1"),
    s2: Optional[float] = typer.Option(None, help="Pivot S2"),
    budget: Optional[float] = typer.Option(None, help="Budget in dollars for contract sizing"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
):
    """
    🎯 Score one indicator snapshot and plan the option trade.
    """
    snapshot = normalize_snapshot(
        current_price=price, rsi=rsi, adx=adx,
        supertrend_signal=supertrend, ewo_signal=ewo, macd_crossover=macd,
        pivot_r1=r1, pivot_r2=r2, pivot_s1=s1, pivot_s2=s2,
    )
    result = score_snapshot(snapshot)
    signal = plan_trade(result, snapshot)
    budget = budget if budget is not None else get_settings().default_budget
    payout = simulate_payout(signal, budget) if signal else None

    if as_json:
        typer.echo(json.dumps({
            'direction': result.direction.value,
            'strength': result.strength.value,
            'bullish_score': result.bullish_score,
            'bearish_score': result.bearish_score,
            'signal': signal.to_dict() if signal else None,
            'payout': payout.to_dict() if payout else None,
        }, indent=2))
        return

    typer.echo(f"Bullish: {result.bullish_score:.2f} | Bearish: {result.bearish_score:.2f} "
               f"(x{result.trend_multiplier:.1f})")
    if signal is None:
        typer.echo("📭 No signal (dead zone)")
        return

    typer.echo(f"🎯 {signal.type.value} ${signal.strike_price:.0f} [{signal.strength.value}]")
    typer.echo(f"   Premium: ~${signal.estimated_premium:.2f}")
    typer.echo("   Targets: " + " / ".join(f"${t:.2f}" for t in signal.profit_targets))
    typer.echo(f"   Stop: ${signal.stop_loss:.2f}")
    if signal.target_spx_price is not None and signal.stop_spx_price is not None:
        typer.echo(f"   Underlying target {signal.target_spx_price:.2f} | stop {signal.stop_spx_price:.2f}")
    typer.echo(f"   Reason: {signal.reason}")
    typer.echo(f"   Budget ${budget:.0f}: {payout.contracts} contracts, cost ${payout.total_cost:.2f}")


@app.command()
def replay(
    fast: Path = typer.Option(..., exists=True, help="CSV of fast (1m) candles"),
    medium: Path = typer.Option(..., exists=True, help="CSV of medium (2m) candles"),
    slow: Path = typer.Option(..., exists=True, help="CSV of slow (5m) candles"),
    symbol: str = typer.Option("SPX", help="Instrument symbol"),
    log_level: str = typer.Option("WARNING", help="Log level"),
):
    """
    📊 Replay candle CSVs through the scalp engine, one fast bar per tick.

    CSV columns: timestamp (epoch ms), open, high, low, close, volume.
    """
    _configure_logging(log_level)
    try:
        fast_c = _load_candles(fast)
        medium_c = _load_candles(medium)
        slow_c = _load_candles(slow)
    except (DataValidationError, InvalidCandleError, ValueError) as e:
        typer.echo(f"❌ Invalid candle file: {e}")
        raise typer.Exit(code=1)

    medium_ts = np.array([c.timestamp for c in medium_c], dtype=np.int64)
    slow_ts = np.array([c.timestamp for c in slow_c], dtype=np.int64)

    clock = {'ms': 0}
    session = InstrumentSession(symbol, clock_ms=lambda: clock['ms'])
    pushed: List[str] = []
    session.emitter.on_push(lambda alert: pushed.append(alert.id))

    processed = skipped = emitted = 0
    started = time.perf_counter()

    for i, bar in enumerate(fast_c, start=1):
        clock['ms'] = bar.timestamp
        m = int(np.searchsorted(medium_ts, bar.timestamp, side='right'))
        s = int(np.searchsorted(slow_ts, bar.timestamp, side='right'))
        result = session.apply_candles(MultiTimeframeCandles(fast_c[:i], medium_c[:m], slow_c[:s]))

        if result is None or not result.processed:
            skipped += 1
            continue
        processed += 1
        if result.alert is not None:
            emitted += 1
            alert = result.alert
            flag = "📣" if alert.should_push else "  "
            typer.echo(
                f"{flag} {alert.timestamp:%Y-%m-%d %H:%M} {alert.kind.value:<16} "
                f"{alert.confidence:>3}% entry {alert.entry_price:.2f} "
                f"stop {alert.stop_loss:.2f} target {alert.target_price:.2f} | {alert.explanation}"
            )

    typer.echo(format_session_summary(
        symbol=symbol,
        ticks_processed=processed,
        ticks_skipped=skipped,
        alerts_emitted=emitted,
        alerts_pushed=len(pushed),
        duration_sec=time.perf_counter() - started,
        director_state=session.engine.director.state.value,
    ))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default from SPXPULSE_API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default from SPXPULSE_API_PORT)"),
):
    """🌐 Start the HTTP API."""
    import uvicorn
    from spxpulse.api_server import app as api_app

    settings = get_settings()
    _configure_logging(settings.log_level)
    uvicorn.run(
        api_app,
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


@app.command()
def version():
    """Display SPX Pulse version information."""
    typer.echo(f"📈 SPX Pulse v{__version__}")


if __name__ == "__main__":
    app()
