"""
Helpers that pin the scalp engine's decision steps for deterministic alerts.
"""

from spxpulse.engine import scalp_engine
from spxpulse.shared.models.scalp import (
    DirectorState,
    DirectorTrend,
    TrapModeResult,
    TriggerResult,
    ValidatorResult,
    ValidatorState,
)
from spxpulse.shared.models.scoring import Direction

ALL_CONDITIONS = {
    'vwap_hysteresis': True, 'st_hysteresis': True, 'rvol': True, 'adx': True,
    'rsi': True, 'ewo': True, 'not_in_cloud': True, 'pivot_confirm': True,
    'boll_confirm': True,
}


def pin_squeeze_pipeline(monkeypatch, locked_until_ms: int = 0) -> DirectorState:
    """Force a TREND_UP director, BULL validator and a valid CALL trigger."""
    up = DirectorState(state=DirectorTrend.TREND_UP, bias_score=4, locked_until_ms=locked_until_ms)
    monkeypatch.setattr(scalp_engine, "calculate_director", lambda *a, **k: up)
    monkeypatch.setattr(scalp_engine, "calculate_validator",
                        lambda *a, **k: ValidatorResult(state=ValidatorState.BULL, long_valid=True))
    monkeypatch.setattr(scalp_engine, "detect_trap_mode", lambda *a, **k: TrapModeResult())
    monkeypatch.setattr(scalp_engine, "is_chop_condition", lambda *a, **k: (False, ""))
    monkeypatch.setattr(scalp_engine, "calculate_trigger",
                        lambda *a, **k: TriggerResult(valid=True, direction=Direction.CALL,
                                                      conditions=ALL_CONDITIONS))
    return up
