"""
Confluence Scorer Module

Additive weighted scoring of a single IndicatorSnapshot into a directional
option recommendation.

Evaluates the snapshot across:
- RSI tiers (oversold adds bullish points, overbought adds bearish points)
- SuperTrend, EWO and MACD crossover votes
- Proximity of price to S1/S2 (bullish) or R1/R2 (bearish) pivots
- ADX trend multiplier applied to both side totals

The result is a SignalScore: direction CALL/PUT with a strength tier, or
NONE inside the dead zone. Scoring is pure and never raises; malformed
readings are neutralised first.
"""

from typing import Dict, List, Sequence, Tuple
import logging

from spxpulse.shared.config.defaults import ScoringWeights, DEFAULT_SCORING
from spxpulse.shared.models.indicators import Crossover, IndicatorSnapshot, SignalVote
from spxpulse.shared.models.scoring import Direction, SignalScore, Strength
from spxpulse.shared.utils.error_policy import sanitize_snapshot

logger = logging.getLogger(__name__)


# ==============================================================================
# COMPONENT SCORES
# ==============================================================================

def _tier_points_below(value: float, tiers: Sequence[Tuple[float, float]]) -> float:
    """Points of the first tier whose threshold value is strictly below."""
    for threshold, points in tiers:
        if value < threshold:
            return points
    return 0.0


def _tier_points_above(value: float, tiers: Sequence[Tuple[float, float]]) -> float:
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0.0


def get_trend_multiplier(adx: float, weights: ScoringWeights = DEFAULT_SCORING) -> float:
    """
    ADX trend multiplier.

    Tiers are checked strongest first with inclusive lower bounds:
    ADX >= 30 -> 1.8, >= 25 -> 1.5, >= 20 -> 1.2, otherwise 1.0.
    """
    for threshold, multiplier in weights.adx_multiplier_tiers:
        if adx >= threshold:
            return multiplier
    return 1.0


def _pivot_proximity(outer_distance: float, inner_distance: float, weights: ScoringWeights) -> float:
    # Outer level (S2/R2) wins over the inner level (S1/R1).
    for limit, points in weights.outer_pivot_tiers:
        if outer_distance < limit:
            return points
    for limit, points in weights.inner_pivot_tiers:
        if inner_distance < limit:
            return points
    return 0.0


def score_components(
    snapshot: IndicatorSnapshot,
    weights: ScoringWeights = DEFAULT_SCORING,
) -> Dict[str, float]:
    """
    Raw per-component contributions before the trend multiplier.

    Keys are prefixed with the side they count toward
    ("bull_rsi", "bear_macd", ...); components that did not fire are 0.
    """
    bull_st = weights.supertrend_weight if snapshot.supertrend_signal is SignalVote.BUY else 0.0
    bear_st = weights.supertrend_weight if snapshot.supertrend_signal is SignalVote.SELL else 0.0
    bull_ewo = weights.ewo_weight if snapshot.ewo_signal is SignalVote.BUY else 0.0
    bear_ewo = weights.ewo_weight if snapshot.ewo_signal is SignalVote.SELL else 0.0
    bull_macd = weights.macd_weight if snapshot.macd_crossover is Crossover.BULLISH else 0.0
    bear_macd = weights.macd_weight if snapshot.macd_crossover is Crossover.BEARISH else 0.0

    return {
        'bull_rsi': _tier_points_below(snapshot.rsi, weights.rsi_bullish_tiers),
        'bull_supertrend': bull_st,
        'bull_ewo': bull_ewo,
        'bull_macd': bull_macd,
        'bull_pivot': _pivot_proximity(snapshot.dist_to_s2, snapshot.dist_to_s1, weights),
        'bear_rsi': _tier_points_above(snapshot.rsi, weights.rsi_bearish_tiers),
        'bear_supertrend': bear_st,
        'bear_ewo': bear_ewo,
        'bear_macd': bear_macd,
        'bear_pivot': _pivot_proximity(snapshot.dist_to_r2, snapshot.dist_to_r1, weights),
    }


def classify_strength(total: float, weights: ScoringWeights = DEFAULT_SCORING) -> Strength:
    """HIGH above 12, MEDIUM above 7, else LOW. Boundaries are exclusive."""
    if total > weights.high_strength_above:
        return Strength.HIGH
    if total > weights.medium_strength_above:
        return Strength.MEDIUM
    return Strength.LOW


def build_reasons(
    snapshot: IndicatorSnapshot,
    direction: Direction,
    weights: ScoringWeights = DEFAULT_SCORING,
) -> List[str]:
    """Human-readable sub-conditions that support the chosen direction."""
    reasons: List[str] = []
    near = weights.reason_pivot_distance

    if direction is Direction.CALL:
        if snapshot.rsi < weights.reason_rsi_oversold:
            reasons.append(f"RSI {snapshot.rsi:.0f} oversold")
        if snapshot.supertrend_signal is SignalVote.BUY:
            reasons.append("SuperTrend bullish")
        if snapshot.macd_crossover is Crossover.BULLISH:
            reasons.append("MACD crossing up")
        if snapshot.dist_to_s1 < near or snapshot.dist_to_s2 < near:
            level = "S2" if snapshot.dist_to_s2 < snapshot.dist_to_s1 else "S1"
            reasons.append(f"Near {level} support")
    elif direction is Direction.PUT:
        if snapshot.rsi > weights.reason_rsi_overbought:
            reasons.append(f"RSI {snapshot.rsi:.0f} overbought")
        if snapshot.supertrend_signal is SignalVote.SELL:
            reasons.append("SuperTrend bearish")
        if snapshot.macd_crossover is Crossover.BEARISH:
            reasons.append("MACD crossing down")
        if snapshot.dist_to_r1 < near or snapshot.dist_to_r2 < near:
            level = "R2" if snapshot.dist_to_r2 < snapshot.dist_to_r1 else "R1"
            reasons.append(f"Near {level} resistance")

    return reasons


# ==============================================================================
# MAIN SCORER
# ==============================================================================

def score_snapshot(
    snapshot: IndicatorSnapshot,
    weights: ScoringWeights = DEFAULT_SCORING,
) -> SignalScore:
    """
    Score one snapshot into a directional recommendation.

    Args:
        snapshot: Indicator readings for the current tick
        weights: Scoring constants

    Returns:
        SignalScore with direction NONE when |bullish - bearish| < 1.5 or
        the larger side is below 3 after the trend multiplier, and NONE
        with zero scores when the price is missing or not positive.
    """
    snapshot = sanitize_snapshot(snapshot)
    if snapshot.current_price <= 0:
        logger.debug("No usable price (%r); scoring as no signal", snapshot.current_price)
        return SignalScore(bullish_score=0.0, bearish_score=0.0, direction=Direction.NONE)

    breakdown = score_components(snapshot, weights)

    multiplier = get_trend_multiplier(snapshot.adx, weights)
    bullish = sum(v for k, v in breakdown.items() if k.startswith('bull_')) * multiplier
    bearish = sum(v for k, v in breakdown.items() if k.startswith('bear_')) * multiplier

    diff = bullish - bearish
    total = max(bullish, bearish)

    if abs(diff) < weights.min_score_diff or total < weights.min_total_score:
        logger.debug(
            "Dead zone: bullish=%.2f bearish=%.2f diff=%.2f total=%.2f",
            bullish, bearish, diff, total,
        )
        return SignalScore(
            bullish_score=bullish,
            bearish_score=bearish,
            direction=Direction.NONE,
            trend_multiplier=multiplier,
            breakdown=breakdown,
        )

    direction = Direction.CALL if diff > 0 else Direction.PUT
    strength = classify_strength(total, weights)

    return SignalScore(
        bullish_score=bullish,
        bearish_score=bearish,
        direction=direction,
        strength=strength,
        trend_multiplier=multiplier,
        reasons=build_reasons(snapshot, direction, weights),
        breakdown=breakdown,
    )
