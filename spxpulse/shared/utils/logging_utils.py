"""
Logging utilities for the signal and alert pipeline.

Provides consistent, structured logging helpers for suppressed signals,
tick timing and session summaries.
"""

import time
from typing import Any, Dict, Optional
from loguru import logger


def log_rejection(
    symbol: str,
    stage: str,
    reason: str,
    diagnostics: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log a suppressed signal or alert with diagnostic context.

    Args:
        symbol: Instrument symbol
        stage: Pipeline stage where suppression occurred (e.g. "COOLDOWN", "CHOP")
        reason: Human-readable suppression reason
        diagnostics: Detailed diagnostic data
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    log_func(f"🚫 SUPPRESSED: {symbol} at {stage}")
    log_func(f"   └─ Reason: {reason}")

    if diagnostics:
        log_func("   └─ Diagnostics:")
        for key, value in diagnostics.items():
            if isinstance(value, float):
                log_func(f"      • {key}: {value:.4f}")
            else:
                log_func(f"      • {key}: {value}")


def log_alert(symbol: str, direction: str, confidence: int, explanation: str, pushed: bool) -> None:
    """Log an emitted alert on one line."""
    push_tag = " 📣" if pushed else ""
    logger.info(f"🎯 [{symbol}] {direction} alert ({confidence}%){push_tag}: {explanation}")


def log_timing(
    operation_name: str,
    duration_ms: float,
    symbol: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log timing information for performance monitoring.

    Args:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds
        symbol: Optional symbol context
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    symbol_str = f" [{symbol}]" if symbol else ""

    if duration_ms < 50:
        emoji = "⚡"
    elif duration_ms < 500:
        emoji = "⏱️"
    else:
        emoji = "🐌"

    log_func(f"{emoji} {operation_name}{symbol_str}: {duration_ms:.0f}ms")


def format_session_summary(
    symbol: str,
    ticks_processed: int,
    ticks_skipped: int,
    alerts_emitted: int,
    alerts_pushed: int,
    duration_sec: float,
    director_state: Optional[str] = None,
) -> str:
    """
    Format a replay/session summary.

    Returns:
        Multi-line summary string
    """
    alert_rate = (alerts_emitted / ticks_processed * 100) if ticks_processed > 0 else 0

    lines = [
        "=" * 60,
        f"📊 SESSION SUMMARY: {symbol}",
        "=" * 60,
        f"Ticks Processed:   {ticks_processed}",
        f"Ticks Skipped:     {ticks_skipped}",
        f"✅ Alerts Emitted:  {alerts_emitted} ({alert_rate:.1f}% of ticks)",
        f"📣 Alerts Pushed:   {alerts_pushed}",
        f"⏱️  Duration:        {duration_sec:.2f}s",
    ]
    if director_state:
        lines.append(f"Director:          {director_state}")
    lines.append("=" * 60)

    return "\n".join(lines)


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, symbol: Optional[str] = None):
        self.operation_name = operation_name
        self.symbol = symbol
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        log_timing(self.operation_name, self.duration_ms, self.symbol)
        return False  # Don't suppress exceptions


def time_operation(operation_name: str, symbol: Optional[str] = None) -> TimingContext:
    """
    Context manager for timing operations.

    Usage:
        with time_operation("scalp_tick", "SPX"):
            ...
    """
    return TimingContext(operation_name, symbol)
