"""
Default configuration for SPX Pulse.

Every threshold, weight and multiplier the scorer, planner and scalp engine
use lives here. These are fixed constants, never derived at runtime.
"""
import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ScoringWeights:
    """Additive weights and tiers for the directional signal scorer."""
    # RSI tiers: (upper bound, points) checked in order for the bullish side;
    # bearish side mirrors against the lower bounds.
    rsi_bullish_tiers: Tuple[Tuple[float, float], ...] = ((30.0, 3.0), (40.0, 2.0), (45.0, 1.0))
    rsi_bearish_tiers: Tuple[Tuple[float, float], ...] = ((70.0, 3.0), (60.0, 2.0), (55.0, 1.0))

    # ADX trend multipliers: (min adx, multiplier), first match wins
    adx_multiplier_tiers: Tuple[Tuple[float, float], ...] = ((30.0, 1.8), (25.0, 1.5), (20.0, 1.2))

    supertrend_weight: float = 2.5
    ewo_weight: float = 2.0
    macd_weight: float = 3.0

    # Pivot proximity: outer level (S2/R2) first, then inner (S1/R1)
    outer_pivot_tiers: Tuple[Tuple[float, float], ...] = ((3.0, 4.0), (8.0, 3.0))
    inner_pivot_tiers: Tuple[Tuple[float, float], ...] = ((3.0, 2.5), (8.0, 1.5))
    reason_pivot_distance: float = 10.0
    reason_rsi_oversold: float = 40.0
    reason_rsi_overbought: float = 60.0

    # Decision rule
    min_score_diff: float = 1.5
    min_total_score: float = 3.0
    high_strength_above: float = 12.0
    medium_strength_above: float = 7.0


@dataclass(frozen=True)
class PlannerConfig:
    """Strike, premium and target parameters for option trade plans."""
    strike_granularity: float = 5.0
    premium_base: float = 4.0
    premium_slope: float = 0.4
    premium_floor: float = 1.5
    volatility_adx_threshold: float = 25.0
    volatility_adjustment: float = 0.5
    premium_min: float = 1.0
    premium_max: float = 6.0
    profit_multipliers: Tuple[float, float, float] = (1.5, 2.0, 3.0)
    stop_multiplier: float = 0.5
    contract_multiplier: int = 100


@dataclass(frozen=True)
class ScalpConfig:
    """Director / Validator / Trigger / Trap / Cooldown tuning."""
    rvol_threshold: float = 1.7
    push_confidence_threshold: int = 72
    cooldown_window_ms: int = 3 * 60 * 1000
    trap_duration_candles: int = 3
    adx_trend_threshold: float = 18.0
    adx_chop_threshold: float = 16.0
    vwap_touch_tolerance: float = 0.001
    vwap_cross_lookback: int = 10
    vwap_cross_limit: int = 3
    director_lock_ms: int = 5 * 60 * 1000
    director_enter_bias: int = 3
    director_hold_bias: int = 2
    strong_bias: int = 4
    trap_rvol: float = 2.0
    trap_range_multiple: float = 1.6
    trap_wick_pct: float = 0.3
    trap_level_tolerance: float = 0.001
    trap_fade_confidence: int = 75
    squeeze_stop_atr: float = 0.5
    squeeze_target_atr: float = 1.0
    fade_stop_atr: float = 0.3
    fade_target_atr: float = 0.8


@dataclass(frozen=True)
class WarmupConfig:
    """Minimum bar counts per timeframe before the scalp engine activates."""
    fast_min_bars: int = 30
    medium_min_bars: int = 20
    slow_min_bars: int = 52


@dataclass(frozen=True)
class WindowSizes:
    """Indicator calculation window sizes."""
    rsi_period: int = 14
    adx_period: int = 14
    atr_period: int = 14
    ewo_fast: int = 5
    ewo_slow: int = 35
    bb_period: int = 20
    bb_std: float = 2.0
    rvol_lookback: int = 20
    # SuperTrend (period, multiplier) per timeframe
    supertrend_slow: Tuple[int, float] = (10, 3.0)
    supertrend_fast: Tuple[int, float] = (7, 2.5)
    ichimoku_tenkan: int = 9
    ichimoku_kijun: int = 26
    ichimoku_senkou_b: int = 52


ALERT_HISTORY_CAPACITY = 50


@dataclass
class Settings:
    """Process-level runtime settings (never alert semantics)."""
    default_symbol: str = "SPX"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    log_level: str = "INFO"
    default_budget: float = 200.0


def get_settings(env: Optional[dict] = None) -> Settings:
    """Build Settings from environment variables."""
    env = os.environ if env is None else env
    try:
        port = int(env.get("SPXPULSE_API_PORT", "8000"))
    except ValueError:
        port = 8000
    try:
        budget = float(env.get("SPXPULSE_DEFAULT_BUDGET", "200"))
    except ValueError:
        budget = 200.0
    return Settings(
        default_symbol=env.get("SPXPULSE_SYMBOL", "SPX"),
        api_host=env.get("SPXPULSE_API_HOST", "127.0.0.1"),
        api_port=port,
        log_level=env.get("SPXPULSE_LOG_LEVEL", "INFO").upper(),
        default_budget=budget,
    )


# Default instances
DEFAULT_SCORING = ScoringWeights()
DEFAULT_PLANNER = PlannerConfig()
DEFAULT_SCALP = ScalpConfig()
DEFAULT_WARMUP = WarmupConfig()
DEFAULT_WINDOWS = WindowSizes()
