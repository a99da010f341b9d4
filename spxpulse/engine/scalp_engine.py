"""
Scalp Alert Engine

Multi-timeframe squeeze / trap-fade alerts for 0DTE index options.

Architecture: Director (slow) -> Validator (medium) -> Trigger (fast)

- Director: persistent bias from six slow-timeframe votes, with entry/exit
  hysteresis and a lock until the next 5-minute boundary.
- Validator: medium-timeframe confirmation that must agree with the Director.
- Trap Mode: volume + range spike that tags a key level and leaves a
  rejection wick; blocks squeezes for a few candles and may confirm a fade.
- Trigger: fast-timeframe entry timing with two-bar hysteresis.
- Cooldown: ledger gate against flapping (see cooldown_manager).

Every step is a pure function of the candle frames and the previous state.
ScalpAlertEngine threads that state across ticks and adds the warm-up and
duplicate-bar guards.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple
import logging
import time

import pandas as pd

from spxpulse.indicators import (
    compute_adx,
    compute_atr,
    compute_bandwidth,
    compute_bollinger_bands,
    compute_ewo,
    compute_ichimoku,
    compute_relative_volume,
    compute_rsi,
    compute_supertrend,
    compute_vwap,
    count_vwap_crosses,
    pivot_points_for_row,
)
from spxpulse.engine.cooldown_manager import CooldownManager, check_gate, observe_retest, record_emission
from spxpulse.shared.config.defaults import (
    DEFAULT_SCALP,
    DEFAULT_WARMUP,
    DEFAULT_WINDOWS,
    ScalpConfig,
    WarmupConfig,
    WindowSizes,
)
from spxpulse.shared.models.data import MultiTimeframeCandles, candles_to_frame
from spxpulse.shared.models.scalp import (
    AlertCooldownState,
    AlertKind,
    DirectorState,
    DirectorTrend,
    ScalpAlert,
    ScalpTickResult,
    TrapModeResult,
    TrapType,
    TriggerResult,
    ValidatorResult,
    ValidatorState,
)
from spxpulse.shared.models.scoring import Direction
from spxpulse.shared.utils.error_policy import NEUTRAL_RSI, safe_divide, sanitize_number
from spxpulse.shared.utils.logging_utils import log_alert, log_rejection, time_operation

logger = logging.getLogger(__name__)

SQUEEZE_HOLD_TIME = "5-15 min"
TRAP_FADE_HOLD_TIME = "3-8 min"
TRAP_FADE_REASON = "Liquidity trap + VWAP reject"


# ==============================================================================
# HELPERS
# ==============================================================================

def _last(series: pd.Series, default: float, back: int = 1) -> float:
    """Value `back` bars from the end, default when missing or NaN."""
    if len(series) < back:
        return default
    return sanitize_number(series.iloc[-back], default)


def _latest_vwap(df: pd.DataFrame) -> float:
    return _last(compute_vwap(df), _last(df['close'], 0.0))


def _near(value: float, level: float, tolerance: float) -> bool:
    return level * (1 - tolerance) <= value <= level * (1 + tolerance)


def _adx_pair(df: pd.DataFrame, windows: WindowSizes) -> Tuple[float, float]:
    """(current, previous) ADX; previous falls back to current."""
    adx = compute_adx(df, windows.adx_period)['adx']
    current = _last(adx, 0.0)
    return current, _last(adx, current, back=2)


def next_lock_boundary(now_ms: int, lock_ms: int) -> int:
    """Start of the next lock period strictly after now_ms."""
    return (now_ms // lock_ms + 1) * lock_ms


# ==============================================================================
# DIRECTOR (slow)
# ==============================================================================

def classify_director_trend(
    bias: int,
    inside_cloud: bool,
    prev_trend: DirectorTrend = DirectorTrend.CHOP,
    config: ScalpConfig = DEFAULT_SCALP,
) -> DirectorTrend:
    """
    Trend state with hysteresis.

    Entering a trend needs |bias| >= director_enter_bias; an existing trend
    holds while the bias stays >= director_hold_bias in its direction.
    Inside the cloud is always CHOP.
    """
    if inside_cloud:
        return DirectorTrend.CHOP
    if prev_trend is DirectorTrend.TREND_UP and bias >= config.director_hold_bias:
        return DirectorTrend.TREND_UP
    if prev_trend is DirectorTrend.TREND_DOWN and bias <= -config.director_hold_bias:
        return DirectorTrend.TREND_DOWN
    if bias >= config.director_enter_bias:
        return DirectorTrend.TREND_UP
    if bias <= -config.director_enter_bias:
        return DirectorTrend.TREND_DOWN
    return DirectorTrend.CHOP


def calculate_director(
    slow: pd.DataFrame,
    now_ms: int,
    prev: Optional[DirectorState] = None,
    config: ScalpConfig = DEFAULT_SCALP,
    warmup: WarmupConfig = DEFAULT_WARMUP,
    windows: WindowSizes = DEFAULT_WINDOWS,
) -> DirectorState:
    """
    Slow-timeframe directional bias.

    Six votes of +1/-1: SuperTrend, close vs VWAP, RSI above 55 / below 45,
    EWO sign with matching slope, ADX >= 18 and rising (bullish only, as a
    strength vote), and price above/below the Ichimoku cloud. Price inside
    the cloud forces CHOP.

    Hysteresis: a new trend needs |bias| >= director_enter_bias, an existing
    trend is kept while the bias stays >= director_hold_bias in its
    direction. The result is locked until the next 5-minute boundary; a
    call before prev.locked_until_ms returns prev unchanged.
    """
    if len(slow) < warmup.slow_min_bars:
        return prev if prev is not None else DirectorState()

    if prev is not None and now_ms < prev.locked_until_ms:
        return prev

    breakdown: Dict[str, int] = {
        'supertrend': 0, 'vwap': 0, 'rsi': 0, 'ewo': 0, 'adx': 0, 'ichimoku': 0,
    }
    price = _last(slow['close'], 0.0)

    st_period, st_mult = windows.supertrend_slow
    st_trend = int(compute_supertrend(slow, st_period, st_mult)['trend'].iloc[-1])
    breakdown['supertrend'] = 1 if st_trend == 1 else -1

    vwap = _latest_vwap(slow)
    if price > vwap:
        breakdown['vwap'] = 1
    elif price < vwap:
        breakdown['vwap'] = -1

    rsi = _last(compute_rsi(slow, windows.rsi_period), NEUTRAL_RSI)
    if rsi > 55:
        breakdown['rsi'] = 1
    elif rsi < 45:
        breakdown['rsi'] = -1

    ewo = compute_ewo(slow, windows.ewo_fast, windows.ewo_slow)
    ewo_now, ewo_prev = _last(ewo, 0.0), _last(ewo, 0.0, back=2)
    if ewo_now > 0 and ewo_now > ewo_prev:
        breakdown['ewo'] = 1
    elif ewo_now < 0 and ewo_now < ewo_prev:
        breakdown['ewo'] = -1

    adx_now, adx_prev = _adx_pair(slow, windows)
    if adx_now >= config.adx_trend_threshold and adx_now > adx_prev:
        breakdown['adx'] = 1

    cloud = compute_ichimoku(
        slow, windows.ichimoku_tenkan, windows.ichimoku_kijun, windows.ichimoku_senkou_b,
    )
    inside_cloud = cloud.inside_cloud
    if not inside_cloud:
        if cloud.price_above_cloud:
            breakdown['ichimoku'] = 1
        elif cloud.price_below_cloud:
            breakdown['ichimoku'] = -1

    bias = sum(breakdown.values())
    prev_trend = prev.state if prev is not None else DirectorTrend.CHOP
    state = classify_director_trend(bias, inside_cloud, prev_trend, config)

    if state is not prev_trend:
        logger.info("Director %s -> %s (bias %+d)", prev_trend.value, state.value, bias)

    return DirectorState(
        state=state,
        bias_score=bias,
        inside_cloud=inside_cloud,
        breakdown=breakdown,
        locked_until_ms=next_lock_boundary(now_ms, config.director_lock_ms),
    )


# ==============================================================================
# VALIDATOR (medium)
# ==============================================================================

def calculate_validator(
    medium: pd.DataFrame,
    director: DirectorState,
    config: ScalpConfig = DEFAULT_SCALP,
    windows: WindowSizes = DEFAULT_WINDOWS,
    min_bars: int = 30,
) -> ValidatorResult:
    """
    Medium-timeframe confirmation.

    Long: close above VWAP, SuperTrend green, RSI >= 52 and rising, EWO
    positive or rising, ADX >= 18 or rising. Short mirrors it. The state is
    BULL/BEAR only when the matching side is valid and the Director trends
    the same way.
    """
    if len(medium) < min_bars:
        return ValidatorResult()

    price = _last(medium['close'], 0.0)
    vwap = _latest_vwap(medium)

    st_period, st_mult = windows.supertrend_fast
    st_trend = int(compute_supertrend(medium, st_period, st_mult)['trend'].iloc[-1])

    rsi = compute_rsi(medium, windows.rsi_period)
    rsi_now, rsi_prev = _last(rsi, NEUTRAL_RSI), _last(rsi, NEUTRAL_RSI, back=2)

    ewo = compute_ewo(medium, windows.ewo_fast, windows.ewo_slow)
    ewo_now, ewo_prev = _last(ewo, 0.0), _last(ewo, 0.0, back=2)
    ewo_rising = ewo_now > ewo_prev

    adx_now, adx_prev = _adx_pair(medium, windows)
    adx_ok = adx_now >= config.adx_trend_threshold or adx_now > adx_prev

    long_conditions = {
        'vwap_position': price > vwap,
        'supertrend': st_trend == 1,
        'rsi': rsi_now >= 52 and rsi_now > rsi_prev,
        'ewo': ewo_now > 0 or ewo_rising,
        'adx': adx_ok,
    }
    short_conditions = {
        'vwap_position': price < vwap,
        'supertrend': st_trend == -1,
        'rsi': rsi_now <= 48 and rsi_now < rsi_prev,
        'ewo': ewo_now < 0 or not ewo_rising,
        'adx': adx_ok,
    }
    long_valid = all(long_conditions.values())
    short_valid = all(short_conditions.values())

    state = ValidatorState.NEUTRAL
    if long_valid and director.state is DirectorTrend.TREND_UP:
        state = ValidatorState.BULL
    elif short_valid and director.state is DirectorTrend.TREND_DOWN:
        state = ValidatorState.BEAR

    conditions = short_conditions if director.state is DirectorTrend.TREND_DOWN else long_conditions
    return ValidatorResult(
        state=state,
        long_valid=long_valid,
        short_valid=short_valid,
        conditions=conditions,
    )


# ==============================================================================
# CHOP FILTER
# ==============================================================================

def is_chop_condition(
    fast: pd.DataFrame,
    medium: pd.DataFrame,
    slow: pd.DataFrame,
    director: DirectorState,
    config: ScalpConfig = DEFAULT_SCALP,
    windows: WindowSizes = DEFAULT_WINDOWS,
) -> Tuple[bool, str]:
    """
    Noise filter. Returns (is_chop, reason).

    Chop when price sits in the slow cloud, ADX is below 16 and falling on
    the slow or medium frame, fast closes crossed VWAP 3+ times in the last
    10 bars, or Bollinger bands are tight (< 1% wide) with price pinned to
    VWAP.
    """
    if director.inside_cloud:
        return True, "Price inside slow Ichimoku cloud"

    for label, frame in (("slow", slow), ("medium", medium)):
        if len(frame) < 20:
            continue
        adx_now, adx_prev = _adx_pair(frame, windows)
        if adx_now < config.adx_chop_threshold and adx_now < adx_prev:
            return True, f"ADX < {config.adx_chop_threshold:.0f} and falling on {label}"

    if len(fast) >= config.vwap_cross_lookback:
        vwap = _latest_vwap(fast)
        crosses = count_vwap_crosses(fast['close'].iloc[-config.vwap_cross_lookback:], vwap)
        if crosses >= config.vwap_cross_limit:
            return True, f"VWAP crossed {crosses} times in last {config.vwap_cross_lookback} bars"

    if len(fast) >= windows.bb_period:
        bandwidth = _last(compute_bandwidth(fast, windows.bb_period, windows.bb_std), 0.0)
        vwap = _latest_vwap(fast)
        price = _last(fast['close'], 0.0)
        near_vwap = safe_divide(abs(price - vwap), vwap, default=1.0) < config.vwap_touch_tolerance
        if 0 < bandwidth < 0.01 and near_vwap:
            return True, "Tight Bollinger bands with VWAP oscillation"

    return False, ""


# ==============================================================================
# TRAP MODE (fast)
# ==============================================================================

def detect_trap_mode(
    fast: pd.DataFrame,
    candle_index: int,
    prev: Optional[TrapModeResult] = None,
    config: ScalpConfig = DEFAULT_SCALP,
    windows: WindowSizes = DEFAULT_WINDOWS,
) -> TrapModeResult:
    """
    Liquidity-wick trap detection on the latest fast bar.

    Requires RVOL >= 2 against the previous 20 bars, a range >= 1.6x the
    average range, a high or low within 0.1% of a key level (previous bar
    pivots R1-R3/S1-S3 or the Bollinger bands), and a >= 30% rejection wick
    closing against it. An active trap is returned unchanged until
    candle_index reaches expires_at_candle.
    """
    if prev is not None and prev.active and candle_index < prev.expires_at_candle:
        return prev

    lookback_len = windows.rvol_lookback
    if len(fast) < lookback_len + 1:
        return TrapModeResult()

    current = fast.iloc[-1]
    lookback = fast.iloc[-(lookback_len + 1):-1]

    avg_volume = float(lookback['volume'].mean())
    avg_range = float((lookback['high'] - lookback['low']).mean())

    candle_range = float(current['high'] - current['low'])
    rvol = safe_divide(float(current['volume']), avg_volume, default=1.0)
    volume_spike = rvol >= config.trap_rvol
    range_spike = avg_range > 0 and candle_range >= avg_range * config.trap_range_multiple

    upper_wick = float(current['high'] - max(current['open'], current['close']))
    lower_wick = float(min(current['open'], current['close']) - current['low'])
    upper_wick_pct = safe_divide(upper_wick, candle_range)
    lower_wick_pct = safe_divide(lower_wick, candle_range)

    pivots = pivot_points_for_row(lookback, -1)
    upper, _, lower = compute_bollinger_bands(
        fast.iloc[-(lookback_len + 1):], windows.bb_period, windows.bb_std,
    )
    levels = pivots.as_list() + [_last(upper, 0.0), _last(lower, 0.0)]
    tol = config.trap_level_tolerance
    tags_level = any(
        level > 0 and (_near(float(current['high']), level, tol) or _near(float(current['low']), level, tol))
        for level in levels
    )

    if not (volume_spike and range_spike and tags_level):
        return TrapModeResult()

    trap_type = None
    if upper_wick_pct >= config.trap_wick_pct and current['close'] < current['open']:
        trap_type = TrapType.UP_WICK
    elif lower_wick_pct >= config.trap_wick_pct and current['close'] > current['open']:
        trap_type = TrapType.DOWN_WICK

    if trap_type is None:
        return TrapModeResult()

    logger.info("Trap mode %s at candle %d (RVOL %.1f)", trap_type.value, candle_index, rvol)
    return TrapModeResult(
        active=True,
        type=trap_type,
        expires_at_candle=candle_index + config.trap_duration_candles,
        wick_high=float(current['high']),
        wick_low=float(current['low']),
    )


def check_trap_fade_confirmation(
    fast: pd.DataFrame,
    trap: TrapModeResult,
    vwap: float,
    windows: WindowSizes = DEFAULT_WINDOWS,
) -> Tuple[bool, Direction, str]:
    """
    Confirm a fade of an active trap. Returns (confirmed, direction, reason).

    UP_WICK -> PUT: last two closes below VWAP, lower high, RSI < 50, red close.
    DOWN_WICK -> CALL: last two closes above VWAP, higher low, RSI >= 50, green close.
    """
    if not trap.active or trap.wick_high is None or len(fast) < 2:
        return False, Direction.NONE, ""

    current = fast.iloc[-1]
    prev = fast.iloc[-2]
    rsi = _last(compute_rsi(fast, windows.rsi_period), NEUTRAL_RSI) if len(fast) > windows.rsi_period else NEUTRAL_RSI

    if trap.type is TrapType.UP_WICK:
        if (
            current['close'] < vwap and prev['close'] < vwap
            and current['high'] < prev['high']
            and rsi < 50
            and current['close'] < current['open']
        ):
            return True, Direction.PUT, TRAP_FADE_REASON

    if trap.type is TrapType.DOWN_WICK:
        if (
            current['close'] > vwap and prev['close'] > vwap
            and current['low'] > prev['low']
            and rsi >= 50
            and current['close'] > current['open']
        ):
            return True, Direction.CALL, TRAP_FADE_REASON

    return False, Direction.NONE, ""


# ==============================================================================
# TRIGGER (fast)
# ==============================================================================

def calculate_trigger(
    fast: pd.DataFrame,
    director: DirectorState,
    validator: ValidatorResult,
    trap: TrapModeResult,
    config: ScalpConfig = DEFAULT_SCALP,
    windows: WindowSizes = DEFAULT_WINDOWS,
    min_bars: int = 30,
) -> TriggerResult:
    """
    Fast-timeframe entry trigger.

    Required for a long: two closes above VWAP, two green SuperTrend bars,
    RVOL >= 1.7, ADX >= 18 and not falling, RSI >= 52 and rising, EWO > 0
    and rising, price outside the slow cloud, Director TREND_UP and the
    Validator long side valid. Shorts mirror it. Pivot and Bollinger
    confirmations only add confidence.
    """
    if len(fast) < min_bars or trap.active:
        return TriggerResult()

    price = _last(fast['close'], 0.0)
    prev_close = _last(fast['close'], 0.0, back=2)
    vwap = _latest_vwap(fast)

    st_period, st_mult = windows.supertrend_fast
    st_last2 = compute_supertrend(fast, st_period, st_mult)['trend'].iloc[-2:].tolist()

    rvol = _last(compute_relative_volume(fast, windows.rvol_lookback), 1.0)
    adx_now, adx_prev = _adx_pair(fast, windows)
    adx_ok = adx_now >= config.adx_trend_threshold and adx_now >= adx_prev

    rsi = compute_rsi(fast, windows.rsi_period)
    rsi_now, rsi_prev = _last(rsi, NEUTRAL_RSI), _last(rsi, NEUTRAL_RSI, back=2)

    ewo = compute_ewo(fast, windows.ewo_fast, windows.ewo_slow)
    ewo_now, ewo_prev = _last(ewo, 0.0), _last(ewo, 0.0, back=2)
    ewo_rising = ewo_now > ewo_prev

    not_in_cloud = not director.inside_cloud

    pivots = pivot_points_for_row(fast, -2)
    pivot_long = price > pivots.r1 or (price > pivots.s1 and price > vwap)
    pivot_short = price < pivots.s1 or (price < pivots.r1 and price < vwap)

    upper, middle, lower = compute_bollinger_bands(fast, windows.bb_period, windows.bb_std)
    width_now = _last(upper, 0.0) - _last(lower, 0.0)
    width_prev = _last(upper, 0.0, back=5) - _last(lower, 0.0, back=5)
    expanding = width_now > width_prev * 1.1
    bb_middle = _last(middle, 0.0)

    long_conditions = {
        'vwap_hysteresis': prev_close > vwap and price > vwap,
        'st_hysteresis': all(t == 1 for t in st_last2),
        'rvol': rvol >= config.rvol_threshold,
        'adx': adx_ok,
        'rsi': rsi_now > rsi_prev and rsi_now >= 52,
        'ewo': ewo_now > 0 and ewo_rising,
        'not_in_cloud': not_in_cloud,
        'pivot_confirm': pivot_long,
        'boll_confirm': expanding and price > bb_middle,
    }
    short_conditions = {
        'vwap_hysteresis': prev_close < vwap and price < vwap,
        'st_hysteresis': all(t == -1 for t in st_last2),
        'rvol': rvol >= config.rvol_threshold,
        'adx': adx_ok,
        'rsi': rsi_now < rsi_prev and rsi_now <= 48,
        'ewo': ewo_now < 0 and not ewo_rising,
        'not_in_cloud': not_in_cloud,
        'pivot_confirm': pivot_short,
        'boll_confirm': expanding and price < bb_middle,
    }
    required = ('vwap_hysteresis', 'st_hysteresis', 'rvol', 'adx', 'rsi', 'ewo', 'not_in_cloud')

    if (
        director.state is DirectorTrend.TREND_UP
        and validator.long_valid
        and all(long_conditions[k] for k in required)
    ):
        return TriggerResult(valid=True, direction=Direction.CALL, conditions=long_conditions)

    if (
        director.state is DirectorTrend.TREND_DOWN
        and validator.short_valid
        and all(short_conditions[k] for k in required)
    ):
        return TriggerResult(valid=True, direction=Direction.PUT, conditions=short_conditions)

    conditions = short_conditions if director.state is DirectorTrend.TREND_DOWN else long_conditions
    return TriggerResult(valid=False, direction=Direction.NONE, conditions=conditions)


# ==============================================================================
# CONFIDENCE
# ==============================================================================

def calculate_confidence(
    director: DirectorState,
    validator: ValidatorResult,
    trigger: TriggerResult,
    rvol: float,
    adx_rising: bool,
    adx_value: float,
    config: ScalpConfig = DEFAULT_SCALP,
) -> int:
    """Additive 0-100 confidence for a squeeze alert."""
    conditions = trigger.conditions
    score = 0
    if abs(director.bias_score) >= config.strong_bias:
        score += 20
    if validator.state is not ValidatorState.NEUTRAL:
        score += 15
    if conditions.get('vwap_hysteresis'):
        score += 15
    if rvol >= config.rvol_threshold:
        score += 10
    if adx_rising or adx_value >= config.adx_trend_threshold:
        score += 10
    if conditions.get('rsi'):
        score += 10
    if conditions.get('ewo'):
        score += 5
    if conditions.get('pivot_confirm'):
        score += 5
    if conditions.get('boll_confirm'):
        score += 5
    return min(score, 100)


# ==============================================================================
# ALERT GENERATION
# ==============================================================================

def _build_alert(
    kind: AlertKind,
    direction: Direction,
    now_ms: int,
    confidence: int,
    should_push: bool,
    director: DirectorState,
    validator: ValidatorState,
    validator_label: str,
    trigger_reason: str,
    entry: float,
    stop: float,
    target: float,
    hold_time: str,
) -> ScalpAlert:
    prefix = "trap-fade" if kind in (AlertKind.TRAP_FADE_LONG, AlertKind.TRAP_FADE_SHORT) else "squeeze"
    return ScalpAlert(
        id=f"{prefix}-{direction.value}-{now_ms}",
        kind=kind,
        direction=direction,
        explanation=f"Director: {director.state.value} | Validator: {validator_label} | Trigger: {trigger_reason}",
        confidence=confidence,
        should_push=should_push,
        timestamp=datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc),
        director=director.state,
        validator=validator,
        trigger_reason=trigger_reason,
        entry_price=entry,
        stop_loss=stop,
        target_price=target,
        hold_time=hold_time,
    )


def generate_scalp_alert(
    fast: pd.DataFrame,
    medium: pd.DataFrame,
    slow: pd.DataFrame,
    prev_director: Optional[DirectorState],
    prev_trap: Optional[TrapModeResult],
    cooldown: AlertCooldownState,
    candle_index: int,
    now_ms: int,
    alerts_allowed: bool = True,
    symbol: str = "SPX",
    config: ScalpConfig = DEFAULT_SCALP,
    warmup: WarmupConfig = DEFAULT_WARMUP,
    windows: WindowSizes = DEFAULT_WINDOWS,
) -> ScalpTickResult:
    """
    One full engine evaluation over already warmed-up frames.

    Args:
        fast, medium, slow: OHLCV frames for the three timeframes
        prev_director: Director state from the previous tick (hysteresis seed)
        prev_trap: Trap state from the previous tick
        cooldown: Current cooldown ledger
        candle_index: Index of the latest fast bar
        now_ms: Evaluation time in epoch milliseconds
        alerts_allowed: External gate for push side effects

    Returns:
        ScalpTickResult with the new states and an optional alert
    """
    director = calculate_director(slow, now_ms, prev_director, config, warmup, windows)
    validator = calculate_validator(medium, director, config, windows)
    trap = detect_trap_mode(fast, candle_index, prev_trap, config, windows)
    is_chop, chop_reason = is_chop_condition(fast, medium, slow, director, config, windows)

    vwap = _latest_vwap(fast)
    price = _last(fast['close'], 0.0)
    touched = safe_divide(abs(price - vwap), vwap, default=1.0) < config.vwap_touch_tolerance
    cooldown = observe_retest(cooldown, touched)

    def _result(alert: Optional[ScalpAlert] = None, ledger: AlertCooldownState = cooldown, reason: str = "") -> ScalpTickResult:
        return ScalpTickResult(
            director=director,
            trap=trap,
            cooldown=ledger,
            validator=validator,
            alert=alert,
            reason=reason,
        )

    atr = _last(compute_atr(fast, windows.atr_period), 1.0) or 1.0

    if trap.active:
        confirmed, direction, fade_reason = check_trap_fade_confirmation(fast, trap, vwap, windows)
        if not confirmed:
            return _result(reason=f"Trap mode {trap.type.value}: squeezes blocked")

        allowed, gate_reason = check_gate(direction, cooldown, now_ms, config)
        if not allowed:
            log_rejection(symbol, "COOLDOWN", gate_reason, {'direction': direction.value, 'kind': 'trap_fade'})
            return _result(reason=gate_reason)

        if direction is Direction.CALL:
            kind = AlertKind.TRAP_FADE_LONG
            stop = (trap.wick_low if trap.wick_low is not None else price) - atr * config.fade_stop_atr
            target = price + atr * config.fade_target_atr
        else:
            kind = AlertKind.TRAP_FADE_SHORT
            stop = (trap.wick_high if trap.wick_high is not None else price) + atr * config.fade_stop_atr
            target = price - atr * config.fade_target_atr

        confidence = config.trap_fade_confidence
        alert = _build_alert(
            kind, direction, now_ms, confidence,
            confidence >= config.push_confidence_threshold and alerts_allowed,
            director, ValidatorState.NEUTRAL, "n/a", fade_reason,
            price, stop, target, TRAP_FADE_HOLD_TIME,
        )
        log_alert(symbol, direction.value, confidence, alert.explanation, alert.should_push)
        return _result(alert, record_emission(cooldown, direction, now_ms))

    if is_chop or director.state is DirectorTrend.CHOP:
        reason = chop_reason or "Director CHOP"
        log_rejection(symbol, "CHOP", reason, {'bias': director.bias_score})
        return _result(reason=reason)

    trigger = calculate_trigger(fast, director, validator, trap, config, windows)
    if not trigger.valid:
        return _result(reason="No trigger")

    allowed, gate_reason = check_gate(trigger.direction, cooldown, now_ms, config)
    if not allowed:
        log_rejection(symbol, "COOLDOWN", gate_reason, {'direction': trigger.direction.value, 'kind': 'squeeze'})
        return _result(reason=gate_reason)

    rvol = _last(compute_relative_volume(fast, windows.rvol_lookback), 1.0)
    adx_now, adx_prev = _adx_pair(fast, windows)
    confidence = calculate_confidence(
        director, validator, trigger, rvol, adx_now > adx_prev, adx_now, config,
    )

    if trigger.direction is Direction.CALL:
        kind = AlertKind.SQUEEZE_LONG
        stop = price - atr * config.squeeze_stop_atr
        target = price + atr * config.squeeze_target_atr
        trigger_reason = f"VWAP hold + RVOL {rvol:.1f}x"
    else:
        kind = AlertKind.SQUEEZE_SHORT
        stop = price + atr * config.squeeze_stop_atr
        target = price - atr * config.squeeze_target_atr
        trigger_reason = f"VWAP loss + RVOL {rvol:.1f}x"

    alert = _build_alert(
        kind, trigger.direction, now_ms, confidence,
        confidence >= config.push_confidence_threshold and alerts_allowed,
        director, validator.state, validator.state.value, trigger_reason,
        price, stop, target, SQUEEZE_HOLD_TIME,
    )
    log_alert(symbol, trigger.direction.value, confidence, alert.explanation, alert.should_push)
    return _result(alert, record_emission(cooldown, trigger.direction, now_ms))


# ==============================================================================
# STATEFUL ENGINE
# ==============================================================================

def _now_ms() -> int:
    return int(time.time() * 1000)


def _always() -> bool:
    return True


class ScalpAlertEngine:
    """
    Per-instrument scalp engine.

    Owns the Director, Trap and cooldown state plus the candle index and the
    last processed fast timestamp. Not thread-safe; InstrumentSession
    serializes access.
    """

    def __init__(
        self,
        symbol: str = "SPX",
        config: ScalpConfig = DEFAULT_SCALP,
        warmup: WarmupConfig = DEFAULT_WARMUP,
        windows: WindowSizes = DEFAULT_WINDOWS,
        alerts_allowed: Callable[[], bool] = _always,
        clock_ms: Callable[[], int] = _now_ms,
    ):
        self.symbol = symbol
        self.config = config
        self.warmup = warmup
        self.windows = windows
        self._alerts_allowed = alerts_allowed
        self._clock_ms = clock_ms
        self.cooldown = CooldownManager(config)
        self.reset()

    def reset(self) -> None:
        """Back to the initial state."""
        self.director = DirectorState()
        self.trap = TrapModeResult()
        self.validator = ValidatorResult()
        self.cooldown.clear_cooldown()
        self.candle_index = 0
        self.last_processed_timestamp: Optional[int] = None

    def _unchanged(self, reason: str) -> ScalpTickResult:
        return ScalpTickResult(
            director=self.director,
            trap=self.trap,
            cooldown=self.cooldown.state,
            validator=self.validator,
            processed=False,
            reason=reason,
        )

    def _gate_open(self) -> bool:
        try:
            return bool(self._alerts_allowed())
        except Exception as e:
            logger.warning("alerts_allowed predicate failed, treating as closed: %s", e)
            return False

    def process_candles(self, candles: MultiTimeframeCandles) -> ScalpTickResult:
        """
        Run one tick over the latest candle series.

        Returns the previous state unchanged (processed=False) while any
        series is shorter than its warm-up minimum, or when the latest fast
        bar was already processed.
        """
        if (
            len(candles.fast) < self.warmup.fast_min_bars
            or len(candles.medium) < self.warmup.medium_min_bars
            or len(candles.slow) < self.warmup.slow_min_bars
        ):
            logger.debug(
                "%s warm-up: fast=%d medium=%d slow=%d",
                self.symbol, len(candles.fast), len(candles.medium), len(candles.slow),
            )
            return self._unchanged("warmup")

        latest_ts = candles.latest_fast_timestamp
        if latest_ts == self.last_processed_timestamp:
            return self._unchanged("duplicate")

        return self.process_frames(
            candles_to_frame(candles.fast),
            candles_to_frame(candles.medium),
            candles_to_frame(candles.slow),
            latest_ts,
        )

    def process_frames(
        self,
        fast: pd.DataFrame,
        medium: pd.DataFrame,
        slow: pd.DataFrame,
        latest_ts: Optional[int] = None,
    ) -> ScalpTickResult:
        """Tick over DataFrames; same guards as process_candles."""
        if (
            len(fast) < self.warmup.fast_min_bars
            or len(medium) < self.warmup.medium_min_bars
            or len(slow) < self.warmup.slow_min_bars
        ):
            return self._unchanged("warmup")

        if latest_ts is None:
            latest_ts = int(fast['timestamp'].iloc[-1])
        if latest_ts == self.last_processed_timestamp:
            return self._unchanged("duplicate")

        self.candle_index += 1
        with time_operation("scalp_tick", self.symbol):
            result = generate_scalp_alert(
                fast, medium, slow,
                self.director, self.trap, self.cooldown.state,
                self.candle_index, self._clock_ms(),
                alerts_allowed=self._gate_open(),
                symbol=self.symbol,
                config=self.config,
                warmup=self.warmup,
                windows=self.windows,
            )

        self.director = result.director
        self.trap = result.trap
        self.validator = result.validator
        self.cooldown.state = result.cooldown
        self.last_processed_timestamp = latest_ts
        return result

    def get_state_summary(self) -> dict:
        """Read-only projection for display."""
        last = self.cooldown.state.last_alert_direction
        return {
            'symbol': self.symbol,
            'director': self.director.state.value,
            'bias_score': self.director.bias_score,
            'inside_cloud': self.director.inside_cloud,
            'trap_active': self.trap.active,
            'trap_type': self.trap.type.value if self.trap.type else None,
            'cooldown_active': self.cooldown.is_active(self._clock_ms()),
            'last_alert_direction': last.value if last else None,
            'candle_index': self.candle_index,
        }
