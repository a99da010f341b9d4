"""
Price Level Indicators

- Classic floor-trader pivot points from a single reference bar
- Ichimoku cloud (Tenkan, Kijun, Senkou A/B) boundaries
"""

from dataclasses import dataclass
from typing import List, Optional
import pandas as pd

from spxpulse.indicators.validation_utils import require_columns, require_rows


@dataclass(frozen=True)
class PivotLevels:
    """Standard pivot point levels."""
    pivot: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float

    def as_list(self) -> List[float]:
        return [self.r1, self.r2, self.r3, self.s1, self.s2, self.s3]


def compute_pivot_points(high: float, low: float, close: float) -> PivotLevels:
    """
    Compute classic pivot points from one bar's high/low/close.

    P = (H + L + C) / 3; R1 = 2P - L; S1 = 2P - H; R2 = P + (H - L);
    S2 = P - (H - L); R3 = H + 2(P - L); S3 = L - 2(H - P).
    """
    pivot = (high + low + close) / 3
    return PivotLevels(
        pivot=pivot,
        r1=2 * pivot - low,
        r2=pivot + (high - low),
        r3=high + 2 * (pivot - low),
        s1=2 * pivot - high,
        s2=pivot - (high - low),
        s3=low - 2 * (high - pivot),
    )


def pivot_points_for_row(df: pd.DataFrame, position: int = -1) -> Optional[PivotLevels]:
    """Pivot points from the bar at iloc position, None when out of range."""
    if len(df) == 0 or abs(position) > len(df):
        return None
    row = df.iloc[position]
    return compute_pivot_points(float(row['high']), float(row['low']), float(row['close']))


@dataclass(frozen=True)
class IchimokuCloud:
    """Current Ichimoku state."""
    tenkan: float
    kijun: float
    span_a: float
    span_b: float
    cloud_top: float
    cloud_bottom: float
    price: float

    @property
    def price_above_cloud(self) -> bool:
        return self.price > self.cloud_top

    @property
    def price_below_cloud(self) -> bool:
        return self.price < self.cloud_bottom

    @property
    def inside_cloud(self) -> bool:
        return self.cloud_bottom <= self.price <= self.cloud_top


def _midpoint(df: pd.DataFrame, period: int) -> pd.Series:
    return (df['high'].rolling(window=period).max() + df['low'].rolling(window=period).min()) / 2


def compute_ichimoku(
    df: pd.DataFrame,
    tenkan_period: int = 9,
    kijun_period: int = 26,
    senkou_b_period: int = 52,
) -> IchimokuCloud:
    """
    Compute the current Ichimoku cloud.

    Span A is (Tenkan + Kijun) / 2 and Span B the senkou_b_period
    midpoint, both read at the latest bar.

    Raises:
        ValueError: If df has fewer than senkou_b_period rows
    """
    require_columns(df, ['high', 'low', 'close'], "Ichimoku")
    require_rows(df, senkou_b_period, "Ichimoku")

    tenkan = float(_midpoint(df, tenkan_period).iloc[-1])
    kijun = float(_midpoint(df, kijun_period).iloc[-1])
    span_a = (tenkan + kijun) / 2
    span_b = float(_midpoint(df, senkou_b_period).iloc[-1])

    return IchimokuCloud(
        tenkan=tenkan,
        kijun=kijun,
        span_a=span_a,
        span_b=span_b,
        cloud_top=max(span_a, span_b),
        cloud_bottom=min(span_a, span_b),
        price=float(df['close'].iloc[-1]),
    )
