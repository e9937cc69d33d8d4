"""Tests for momentum indicators (RSI, KDJ)."""

from datetime import date, timedelta
from decimal import Decimal

import numpy as np
import pytest
from stocktraining.indicators.base_indicator import Bar, IndicatorResult, InvalidInputError
from stocktraining.indicators.momentum_indicators import KDJIndicator, RSIIndicator


def make_bars(closes, highs=None, lows=None):
    start = date(2024, 1, 1)
    highs = highs or closes
    lows = lows or closes
    bars = []
    for i, (close, high, low) in enumerate(zip(closes, highs, lows)):
        bars.append(Bar(
            ts_code="000001.SZ",
            trade_date=(start + timedelta(days=i)).strftime("%Y%m%d"),
            open=Decimal(str(close)),
            high=Decimal(str(high)),
            low=Decimal(str(low)),
            close=Decimal(str(close)),
        ))
    return bars


@pytest.fixture
def random_walk_bars():
    """Create a random OHLC walk for property tests."""
    np.random.seed(42)
    n = 100
    close = 100 + np.cumsum(np.random.randn(n) * 2)
    high = close + np.random.rand(n) * 2
    low = close - np.random.rand(n) * 2
    return make_bars(
        [f"{c:.2f}" for c in close],
        [f"{h:.2f}" for h in high],
        [f"{l:.2f}" for l in low],
    )


class TestRSIIndicator:
    """Tests for Relative Strength Index indicator."""

    def test_rsi_name(self):
        """Test RSI indicator name includes period."""
        assert RSIIndicator(period=6).name == "RSI_6"

    def test_rsi_required_fields(self):
        assert "close" in RSIIndicator().required_fields

    def test_rsi_invalid_period(self):
        with pytest.raises(InvalidInputError):
            RSIIndicator(period=0)

    def test_rsi_hand_calculated(self):
        result = RSIIndicator(period=2)(make_bars([10, 11, 10.5, 11.5, 11]))

        assert isinstance(result, IndicatorResult)
        assert result.values == (
            Decimal(50),
            None,
            Decimal("66.6667"),
            Decimal("85.7143"),
            Decimal("54.5455"),
        )

    def test_rsi_first_value_is_fifty(self, random_walk_bars):
        for period in (6, 12, 24):
            assert RSIIndicator(period=period)(random_walk_bars).values[0] == 50

    def test_rsi_gap_before_seed_is_undefined(self, random_walk_bars):
        values = RSIIndicator(period=6)(random_walk_bars).values
        assert values[1:6] == (None,) * 5
        assert all(v is not None for v in values[6:])

    def test_rsi_short_series_has_only_first_value(self):
        values = RSIIndicator(period=6)(make_bars([10, 11, 12, 13, 14, 15])).values
        assert values == (Decimal(50), None, None, None, None, None)

    def test_rsi_values_between_0_and_100(self, random_walk_bars):
        for period in (6, 12, 24):
            values = RSIIndicator(period=period)(random_walk_bars).values
            defined = [v for v in values if v is not None]
            assert all(0 <= v <= 100 for v in defined)

    def test_rsi_uptrend_is_100(self):
        """Steady rise never records a loss, so RSI stays at 100."""
        closes = [Decimal("10") + Decimal("0.25") * i for i in range(50)]
        values = RSIIndicator(period=6)(make_bars(closes)).values
        assert all(v == 100 for v in values[6:])

    def test_rsi_flat_prices_is_100(self):
        values = RSIIndicator(period=6)(make_bars([8.8] * 30)).values
        assert values[0] == 50
        assert all(v == 100 for v in values[6:])

    def test_rsi_downtrend_is_zero(self):
        values = RSIIndicator(period=6)(make_bars([50 - i for i in range(30)])).values
        assert all(v == 0 for v in values[6:])

    def test_rsi_empty_input(self):
        assert RSIIndicator()([]).values == ()


class TestKDJIndicator:
    """Tests for KDJ Stochastic indicator."""

    def test_kdj_name(self):
        assert KDJIndicator().name == "KDJ"

    def test_kdj_required_fields(self):
        required = KDJIndicator().required_fields
        assert "high" in required
        assert "low" in required
        assert "close" in required

    def test_kdj_default_period(self):
        assert KDJIndicator().period == 9

    def test_kdj_returns_k_d_j(self, random_walk_bars):
        result = KDJIndicator()(random_walk_bars)

        assert "k" in result.params
        assert "d" in result.params
        assert "j" in result.params
        assert len(result.params["j"]) == len(random_walk_bars)

    def test_kdj_hand_calculated(self):
        bars = make_bars(
            closes=[9, 10.5, 11, 11],
            highs=[10, 11, 12, 11.5],
            lows=[8, 9, 10, 10.5],
        )
        result = KDJIndicator(period=3)(bars)

        assert result.params["rsv"][1:] == (
            Decimal("83.3333"), Decimal("75.0000"), Decimal("66.6667")
        )
        assert result.params["k"][:3] == (Decimal(50), Decimal("61.1111"), Decimal("65.7407"))
        assert result.params["d"][:3] == (Decimal(50), Decimal("53.7037"), Decimal("57.7160"))
        assert result.params["j"][:3] == (Decimal(50), Decimal("75.9259"), Decimal("81.7901"))

    def test_kdj_window_is_truncated_at_series_start(self):
        bars = make_bars(closes=[9, 10], highs=[10, 11], lows=[8, 9])
        # window of bar 1 is bars 0..1 even though period is 9
        assert KDJIndicator(period=9)(bars).params["rsv"][1] == Decimal("66.6667")

    def test_kdj_j_equals_3k_minus_2d(self, random_walk_bars):
        result = KDJIndicator()(random_walk_bars)
        for k, d, j in zip(result.params["k"], result.params["d"], result.params["j"]):
            assert j == 3 * k - 2 * d

    def test_kdj_first_values_are_fifty(self, random_walk_bars):
        result = KDJIndicator()(random_walk_bars[:1])
        assert result.params["k"] == (Decimal(50),)
        assert result.params["d"] == (Decimal(50),)
        assert result.params["j"] == (Decimal(50),)

    def test_kdj_flat_range_stays_at_fifty(self):
        result = KDJIndicator()(make_bars([7.7] * 15))
        assert set(result.params["rsv"]) == {Decimal(50)}
        assert set(result.params["k"]) == {Decimal(50)}
        assert set(result.params["d"]) == {Decimal(50)}

    def test_kdj_k_depends_on_full_history(self):
        base = make_bars(closes=[10, 12, 11, 13, 12, 14], highs=[11, 13, 12, 14, 13, 15],
                         lows=[9, 11, 10, 12, 11, 13])
        changed = make_bars(closes=[10, 9, 11, 13, 12, 14], highs=[11, 13, 12, 14, 13, 15],
                            lows=[9, 8, 10, 12, 11, 13])
        # bar 1 is outside the period-2 window of bar 5, but K still differs
        k_base = KDJIndicator(period=2)(base).params["k"][5]
        k_changed = KDJIndicator(period=2)(changed).params["k"][5]
        assert k_base != k_changed

    def test_kdj_empty_input(self):
        result = KDJIndicator()([])
        assert result.values == ()
        assert result.params["d"] == ()
