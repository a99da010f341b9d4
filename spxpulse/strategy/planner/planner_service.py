"""
Trade Planner Service Module

Turns an actionable SignalScore into a concrete option TradeSignal:
strike, premium estimate, premium profit targets and stop, plus the
underlying reference levels that decide the lifecycle outcome.

Pure and deterministic: identical inputs produce identical plans (apart
from the timestamp, which callers may pin).
"""

from datetime import datetime, timezone
from typing import Optional, Tuple
import math

from loguru import logger

from spxpulse.shared.config.defaults import PlannerConfig, DEFAULT_PLANNER
from spxpulse.shared.models.indicators import IndicatorSnapshot
from spxpulse.shared.models.planner import TradeSignal
from spxpulse.shared.models.scoring import Direction, SignalScore
from spxpulse.shared.utils.error_policy import sanitize_number


def calculate_strike(direction: Direction, price: float, config: PlannerConfig = DEFAULT_PLANNER) -> float:
    """CALL rounds up, PUT rounds down to the strike granularity."""
    step = config.strike_granularity
    if direction is Direction.CALL:
        return float(math.ceil(price / step) * step)
    return float(math.floor(price / step) * step)


def estimate_premium(
    strike: float,
    price: float,
    adx: float,
    config: PlannerConfig = DEFAULT_PLANNER,
) -> float:
    """
    Rough per-share premium for a near-the-money 0DTE option.

    base = max(1.5, 4 - 0.4 * |strike - price|), +0.5 when ADX > 25,
    clamped to [1, 6].
    """
    distance = abs(strike - price)
    base = max(config.premium_floor, config.premium_base - config.premium_slope * distance)
    volatility_adj = config.volatility_adjustment if adx > config.volatility_adx_threshold else 0.0
    return max(config.premium_min, min(config.premium_max, base + volatility_adj))


def reference_levels(
    direction: Direction,
    snapshot: IndicatorSnapshot,
) -> Tuple[Optional[float], Optional[float]]:
    """(target, stop) underlying levels: CALL targets R1 and stops at S1, PUT the inverse."""
    if direction is Direction.CALL:
        return snapshot.pivot_r1, snapshot.pivot_s1
    return snapshot.pivot_s1, snapshot.pivot_r1


def plan_trade(
    score: SignalScore,
    snapshot: IndicatorSnapshot,
    config: PlannerConfig = DEFAULT_PLANNER,
    now: Optional[datetime] = None,
) -> Optional[TradeSignal]:
    """
    Build a TradeSignal for an actionable score.

    Args:
        score: Scorer output; NONE direction yields None
        snapshot: Snapshot the score was computed from (price, ADX, pivots)
        config: Planner constants
        now: Timestamp to stamp on the plan (defaults to current UTC time)

    Returns:
        TradeSignal, or None when the score is not actionable or the price
        is unusable.
    """
    if not score.is_actionable:
        return None

    price = sanitize_number(snapshot.current_price, None)
    if price is None or price <= 0:
        logger.debug("No plan: unusable current price {}", snapshot.current_price)
        return None

    adx = sanitize_number(snapshot.adx, 0.0)
    strike = calculate_strike(score.direction, price, config)
    premium = estimate_premium(strike, price, adx, config)
    target_level, stop_level = reference_levels(score.direction, snapshot)
    t1, t2, t3 = (premium * m for m in config.profit_multipliers)

    signal = TradeSignal(
        type=score.direction,
        strike_price=strike,
        entry_price=price,
        estimated_premium=premium,
        profit_target1=t1,
        profit_target2=t2,
        profit_target3=t3,
        stop_loss=premium * config.stop_multiplier,
        target_spx_price=target_level,
        stop_spx_price=stop_level,
        reason=score.reason,
        strength=score.strength,
        timestamp=now or datetime.now(timezone.utc),
    )
    logger.debug(
        "Planned {} {} strike={} premium={:.2f} strength={}",
        signal.type.value, price, strike, premium, signal.strength.value,
    )
    return signal
