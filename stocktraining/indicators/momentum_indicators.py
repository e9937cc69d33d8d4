"""Momentum-based technical indicators computed on exact decimals."""

from decimal import Decimal
from typing import Sequence

from .base_indicator import (
    Bar,
    BaseIndicator,
    IndicatorResult,
    divide,
    require_positive_int,
)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
NEUTRAL = Decimal(50)


def relative_strength_index(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    """RSI from smoothed averages; zero average loss pins RSI at 100."""
    if avg_loss == 0:
        return _HUNDRED
    rs = divide(avg_gain, avg_loss)
    return _HUNDRED - divide(_HUNDRED, 1 + rs)


class RSIIndicator(BaseIndicator):
    """Relative Strength Index indicator (Wilder smoothing).

    RSI measures the speed and magnitude of price changes:
    - RSI > 70: Overbought (potential reversal down)
    - RSI < 30: Oversold (potential reversal up)
    - RSI 30-70: Neutral zone

    The first value is fixed at 50. Averages are seeded at index `period`
    from the simple mean of the first `period` changes; positions
    1..period-1 have no value.
    """

    def __init__(self, period: int = 14):
        """Initialize RSI indicator.

        Args:
            period: Number of periods for calculation (default: 14)
        """
        self.period = require_positive_int(period, "period")

    @property
    def name(self) -> str:
        return f"RSI_{self.period}"

    @property
    def required_fields(self) -> list[str]:
        return ["close"]

    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate RSI.

        Args:
            bars: Bars with close prices

        Returns:
            IndicatorResult with RSI values (0-100)
        """
        period = self.period
        size = len(bars)
        values = [None] * size
        if size:
            values[0] = NEUTRAL

        if size > period:
            changes = [bars[i].close - bars[i - 1].close for i in range(1, size)]
            gains = [c if c > 0 else _ZERO for c in changes]
            losses = [-c if c < 0 else _ZERO for c in changes]

            avg_gain = divide(sum(gains[:period], _ZERO), period)
            avg_loss = divide(sum(losses[:period], _ZERO), period)
            values[period] = relative_strength_index(avg_gain, avg_loss)

            # changes[i - 1] is the move into bar i
            for i in range(period + 1, size):
                avg_gain = divide(avg_gain * (period - 1) + gains[i - 1], period)
                avg_loss = divide(avg_loss * (period - 1) + losses[i - 1], period)
                values[i] = relative_strength_index(avg_gain, avg_loss)

        return IndicatorResult(
            name=self.name,
            values=tuple(values),
            params={"period": period}
        )


class KDJIndicator(BaseIndicator):
    """KDJ Stochastic indicator (Chinese market variant).

    KDJ is based on Stochastic Oscillator with additional J line:
    - K: RSV smoothed with weight 1/3
    - D: K smoothed with weight 1/3
    - J: 3K - 2D (more sensitive, can exceed 0-100)

    K, D and J all start at 50. The high/low window is truncated at the
    start of the series rather than left undefined.
    """

    def __init__(self, period: int = 9):
        """Initialize KDJ indicator.

        Args:
            period: RSV lookback window (default: 9)
        """
        self.period = require_positive_int(period, "period")

    @property
    def name(self) -> str:
        return "KDJ"

    @property
    def required_fields(self) -> list[str]:
        return ["high", "low", "close"]

    def raw_stochastic_values(self, bars: Sequence[Bar]) -> tuple:
        """RSV per bar: close position within the window's high-low range.

        A flat window (highest high equals lowest low) yields 50.
        """
        rsv = []
        for i, bar in enumerate(bars):
            window = bars[max(0, i - self.period + 1):i + 1]
            highest = max(b.high for b in window)
            lowest = min(b.low for b in window)
            if highest == lowest:
                rsv.append(NEUTRAL)
            else:
                rsv.append(divide((bar.close - lowest) * _HUNDRED, highest - lowest))
        return tuple(rsv)

    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate K, D, J values.

        Args:
            bars: Bars with high, low and close prices

        Returns:
            IndicatorResult with K as values, D and J in params
        """
        rsv = self.raw_stochastic_values(bars)
        k, d, j = [], [], []
        for i, raw in enumerate(rsv):
            if i == 0:
                k_value = d_value = j_value = NEUTRAL
            else:
                k_value = divide(2 * k[-1] + raw, 3)
                d_value = divide(2 * d[-1] + k_value, 3)
                j_value = 3 * k_value - 2 * d_value
            k.append(k_value)
            d.append(d_value)
            j.append(j_value)

        k = tuple(k)
        return IndicatorResult(
            name=self.name,
            values=k,
            params={
                "period": self.period,
                "rsv": rsv,
                "k": k,
                "d": tuple(d),
                "j": tuple(j)
            }
        )
