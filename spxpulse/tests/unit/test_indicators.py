"""
Tests for the indicator library.
"""

import numpy as np
import pandas as pd
import pytest

from spxpulse.indicators import (
    compute_adx,
    compute_atr,
    compute_bandwidth,
    compute_bollinger_bands,
    compute_ewo,
    compute_ichimoku,
    compute_pivot_points,
    compute_relative_volume,
    compute_rsi,
    compute_supertrend,
    compute_vwap,
    count_vwap_crosses,
    pivot_points_for_row,
)
from spxpulse.indicators.validation_utils import DataValidationError, ohlcv_errors, validate_ohlcv
from spxpulse.shared.models.data import candles_to_frame
from spxpulse.tests.fixtures.market_data import SLOW_MS, generate_trend_candles


def frame_from_closes(closes, volume=1000.0):
    closes = pd.Series(closes, dtype=float)
    return pd.DataFrame({
        'open': closes,
        'high': closes + 0.5,
        'low': closes - 0.5,
        'close': closes,
        'volume': volume,
    })


@pytest.fixture
def uptrend():
    return candles_to_frame(generate_trend_candles(80, drift=0.001, interval_ms=SLOW_MS))


@pytest.fixture
def downtrend():
    return candles_to_frame(generate_trend_candles(80, drift=-0.001, interval_ms=SLOW_MS))


class TestRSI:
    def test_requires_period_plus_one_rows(self):
        with pytest.raises(ValueError, match="RSI"):
            compute_rsi(frame_from_closes(range(14)), 14)

    def test_bounds(self, uptrend):
        rsi = compute_rsi(uptrend)
        assert rsi.between(0, 100).all()

    def test_all_gains_reads_100(self):
        assert compute_rsi(frame_from_closes(range(100, 120)))[19] == 100.0

    def test_flat_reads_neutral(self):
        assert compute_rsi(frame_from_closes([100.0] * 20))[19] == 50.0


def test_ewo_sign_follows_trend(uptrend, downtrend):
    assert compute_ewo(uptrend).iloc[-1] > 0
    assert compute_ewo(downtrend).iloc[-1] < 0


def test_adx_columns_and_no_nan(uptrend):
    adx = compute_adx(uptrend)
    assert list(adx.columns) == ['adx', 'plus_di', 'minus_di']
    assert not adx.isna().any().any()
    assert adx['plus_di'].iloc[-1] > adx['minus_di'].iloc[-1]


def test_atr_positive(uptrend):
    assert (compute_atr(uptrend) > 0).all()


class TestBollinger:
    def test_band_ordering(self, uptrend):
        upper, middle, lower = compute_bollinger_bands(uptrend)
        valid = middle.dropna().index
        assert (upper[valid] >= middle[valid]).all()
        assert (middle[valid] >= lower[valid]).all()

    def test_flat_prices_collapse_bands(self):
        upper, middle, lower = compute_bollinger_bands(frame_from_closes([100.0] * 20))
        assert (upper.iloc[-1], middle.iloc[-1], lower.iloc[-1]) == pytest.approx((100.0, 100.0, 100.0))
        assert compute_bandwidth(frame_from_closes([100.0] * 20)).iloc[-1] == pytest.approx(0.0, abs=1e-9)

    def test_requires_full_window(self):
        with pytest.raises(ValueError):
            compute_bollinger_bands(frame_from_closes(range(19)))


class TestSuperTrend:
    def test_uptrend_is_green(self, uptrend):
        assert compute_supertrend(uptrend, 10, 3.0)['trend'].iloc[-1] == 1

    def test_downtrend_flips_red_once(self, downtrend):
        st = compute_supertrend(downtrend, 10, 3.0)
        assert st['trend'].iloc[-1] == -1
        assert (st['signal'] == "SELL").sum() >= 1

    def test_reversal_emits_buy(self):
        closes = list(np.linspace(110, 100, 30)) + list(np.linspace(100, 115, 30))
        st = compute_supertrend(frame_from_closes(closes), 7, 2.5)
        assert st['trend'].iloc[-1] == 1
        assert "BUY" in set(st['signal'])


class TestVWAP:
    def test_weights_by_volume(self):
        df = pd.DataFrame({
            'high': [10.0, 20.0], 'low': [10.0, 20.0], 'close': [10.0, 20.0], 'volume': [1.0, 3.0],
        })
        assert compute_vwap(df).iloc[-1] == pytest.approx(17.5)

    def test_zero_volume_falls_back_to_close(self):
        vwap = compute_vwap(frame_from_closes([100.0, 101.0, 102.0], volume=0.0))
        assert list(vwap) == [100.0, 101.0, 102.0]


def test_relative_volume_defaults_and_spike():
    volumes = [1000.0] * 20 + [3000.0]
    df = frame_from_closes([100.0] * 21)
    df['volume'] = volumes
    rvol = compute_relative_volume(df, 20)
    assert rvol.iloc[0] == 1.0
    assert rvol.iloc[-1] == pytest.approx(3.0)


def test_relative_volume_zero_average_reads_one():
    rvol = compute_relative_volume(frame_from_closes([100.0] * 25, volume=0.0), 20)
    assert (rvol == 1.0).all()


def test_count_vwap_crosses():
    assert count_vwap_crosses(pd.Series([99.0, 101.0, 99.0, 101.0]), 100.0) == 3
    assert count_vwap_crosses(pd.Series([101.0, 102.0]), 100.0) == 0
    assert count_vwap_crosses(pd.Series([101.0]), 100.0) == 0


def test_pivot_points():
    levels = compute_pivot_points(high=110.0, low=90.0, close=100.0)
    assert levels.pivot == pytest.approx(100.0)
    assert (levels.r1, levels.s1) == pytest.approx((110.0, 90.0))
    assert (levels.r2, levels.s2) == pytest.approx((120.0, 80.0))
    assert (levels.r3, levels.s3) == pytest.approx((130.0, 70.0))
    assert levels.as_list() == [levels.r1, levels.r2, levels.r3, levels.s1, levels.s2, levels.s3]


def test_pivot_points_for_row_out_of_range():
    df = frame_from_closes([100.0, 101.0])
    assert pivot_points_for_row(df, -3) is None
    assert pivot_points_for_row(df.iloc[:0]) is None
    assert pivot_points_for_row(df, -2).pivot == pytest.approx(100.0)


class TestIchimoku:
    def test_uptrend_above_cloud(self, uptrend):
        cloud = compute_ichimoku(uptrend)
        assert cloud.price_above_cloud
        assert not cloud.inside_cloud

    def test_downtrend_below_cloud(self, downtrend):
        assert compute_ichimoku(downtrend).price_below_cloud

    def test_flat_market_inside_cloud(self):
        flat = frame_from_closes([100.0] * 60)
        assert compute_ichimoku(flat).inside_cloud

    def test_requires_senkou_b_rows(self, uptrend):
        with pytest.raises(ValueError, match="Ichimoku"):
            compute_ichimoku(uptrend.iloc[:51])


def test_validate_ohlcv_rejects_inverted_candle():
    df = frame_from_closes([100.0, 101.0])
    df.loc[1, 'high'] = 90.0
    with pytest.raises(DataValidationError):
        validate_ohlcv(df)


def test_validate_ohlcv_missing_columns():
    assert not validate_ohlcv(pd.DataFrame({'close': [1.0]}), raise_on_error=False)
    assert ohlcv_errors(pd.DataFrame({'close': [1.0]})) == [
        "Missing required columns: ['open', 'high', 'low', 'volume']"
    ]


def test_validate_ohlcv_clean_frame():
    assert validate_ohlcv(frame_from_closes([100.0, 101.0]))


def test_ohlcv_errors_timestamps_and_volume():
    df = frame_from_closes([100.0, 101.0, 102.0])
    df['timestamp'] = [3, 2, 4]
    df.loc[0, 'volume'] = -5.0
    assert ohlcv_errors(df, min_rows=5) == [
        'Need 5 candles, got 3',
        '1 candles with negative volume',
        'Timestamps are not strictly increasing',
    ]
