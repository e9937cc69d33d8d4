"""Trend-following technical indicators computed on exact decimals."""

from decimal import Decimal
from typing import Sequence

from .base_indicator import (
    Bar,
    BaseIndicator,
    IndicatorResult,
    divide,
    engine_context,
    require_positive_int,
)

_ZERO = Decimal(0)
_ONE = Decimal(1)
_TWO = Decimal(2)


class MAIndicator(BaseIndicator):
    """Simple Moving Average indicator.

    SMA smooths price data by calculating the average over a fixed window.
    Only full windows are averaged: the first period-1 values are None.
    """

    def __init__(self, period: int = 20):
        """Initialize MA indicator.

        Args:
            period: Number of periods for calculation (default: 20)
        """
        self.period = require_positive_int(period, "period")

    @property
    def name(self) -> str:
        return f"MA_{self.period}"

    @property
    def required_fields(self) -> list[str]:
        return ["close"]

    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate Simple Moving Average.

        Args:
            bars: Bars with close prices

        Returns:
            IndicatorResult with MA values rounded to 4 digits
        """
        period = self.period
        values = []
        window_sum = _ZERO
        for i, bar in enumerate(bars):
            window_sum += bar.close
            if i >= period:
                window_sum -= bars[i - period].close
            values.append(divide(window_sum, period) if i >= period - 1 else None)

        return IndicatorResult(
            name=self.name,
            values=tuple(values),
            params={"period": period}
        )


def smoothing_factor(period: int) -> Decimal:
    """EMA weight 2/(period+1)."""
    return engine_context().divide(_TWO, Decimal(period + 1))


def ema_step(value: Decimal, previous: Decimal, factor: Decimal) -> Decimal:
    """One EMA update: value*k + previous*(1-k)."""
    ctx = engine_context()
    return ctx.add(
        ctx.multiply(value, factor),
        ctx.multiply(previous, ctx.subtract(_ONE, factor)),
    )


class MACDIndicator(BaseIndicator):
    """Moving Average Convergence Divergence indicator.

    MACD shows the relationship between two EMAs and includes:
    - MACD line: Difference between fast and slow EMAs
    - Signal line: EMA of MACD line
    - Histogram: Difference between MACD and signal

    Both EMAs are seeded with the first close, so MACD, signal and
    histogram start at 0. Values are not rounded.
    """

    def __init__(
        self,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9
    ):
        """Initialize MACD indicator.

        Args:
            fast_period: Fast EMA period (default: 12)
            slow_period: Slow EMA period (default: 26)
            signal_period: Signal line EMA period (default: 9)
        """
        self.fast_period = require_positive_int(fast_period, "fast_period")
        self.slow_period = require_positive_int(slow_period, "slow_period")
        self.signal_period = require_positive_int(signal_period, "signal_period")

    @property
    def name(self) -> str:
        return "MACD"

    @property
    def required_fields(self) -> list[str]:
        return ["close"]

    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate MACD, signal line, and histogram.

        Args:
            bars: Bars with close prices

        Returns:
            IndicatorResult with MACD line as values and
            signal/histogram in params
        """
        ctx = engine_context()
        fast_k = smoothing_factor(self.fast_period)
        slow_k = smoothing_factor(self.slow_period)
        signal_k = smoothing_factor(self.signal_period)

        macd, signal, histogram = [], [], []
        ema_fast = ema_slow = None
        for i, bar in enumerate(bars):
            if i == 0:
                ema_fast = ema_slow = bar.close
                macd_value = signal_value = _ZERO
            else:
                ema_fast = ema_step(bar.close, ema_fast, fast_k)
                ema_slow = ema_step(bar.close, ema_slow, slow_k)
                macd_value = ctx.subtract(ema_fast, ema_slow)
                signal_value = ema_step(macd_value, signal[-1], signal_k)
            macd.append(macd_value)
            signal.append(signal_value)
            histogram.append(ctx.subtract(macd_value, signal_value))

        macd, signal, histogram = tuple(macd), tuple(signal), tuple(histogram)
        return IndicatorResult(
            name=self.name,
            values=macd,
            params={
                "fast_period": self.fast_period,
                "slow_period": self.slow_period,
                "signal_period": self.signal_period,
                "macd": macd,
                "signal": signal,
                "histogram": histogram
            }
        )
