"""Volatility indicators computed on exact decimals."""

from decimal import Decimal
from typing import Sequence, Union

from .base_indicator import (
    Bar,
    BaseIndicator,
    IndicatorResult,
    InvalidInputError,
    divide,
    engine_context,
    require_positive_int,
    to_decimal,
)

SAMPLE_DDOF = 1
POPULATION_DDOF = 0


def standard_deviation(values: Sequence[Decimal], ddof: int = SAMPLE_DDOF) -> Decimal:
    """Standard deviation of values with divisor len(values) - ddof.

    Returns 0 when the divisor is not positive (e.g. one value, sample ddof).
    """
    ctx = engine_context()
    n = len(values)
    if n - ddof <= 0:
        return Decimal(0)
    mean = ctx.divide(sum(values, Decimal(0)), Decimal(n))
    deviations = [ctx.subtract(v, mean) for v in values]
    squares = sum((ctx.multiply(dev, dev) for dev in deviations), Decimal(0))
    variance = ctx.divide(squares, Decimal(n - ddof))
    return ctx.sqrt(variance)


class BollingerBandsIndicator(BaseIndicator):
    """Bollinger Bands indicator.

    Bands are built around a simple moving average:
    - Middle: SMA of close over the period
    - Upper: Middle + multiplier * standard deviation
    - Lower: Middle - multiplier * standard deviation

    ddof selects the deviation convention: 1 for sample (n-1, default),
    0 for population. Before a full window is available all three bands
    equal the close. Only the middle band is rounded to 4 digits; upper
    and lower carry the full-precision width.
    """

    def __init__(
        self,
        period: int = 20,
        multiplier: Union[Decimal, float, str] = Decimal("2.0"),
        ddof: int = SAMPLE_DDOF,
    ):
        """Initialize Bollinger Bands indicator.

        Args:
            period: Number of periods for calculation (default: 20)
            multiplier: Standard deviation multiplier (default: 2.0)
            ddof: Delta degrees of freedom of the deviation (default: 1)
        """
        self.period = require_positive_int(period, "period")
        self.multiplier = to_decimal(multiplier)
        if self.multiplier < 0:
            raise InvalidInputError(f"multiplier must not be negative, got {multiplier!r}")
        if ddof not in (SAMPLE_DDOF, POPULATION_DDOF):
            raise InvalidInputError(f"ddof must be 0 or 1, got {ddof!r}")
        self.ddof = ddof

    @property
    def name(self) -> str:
        return f"BOLL_{self.period}"

    @property
    def required_fields(self) -> list[str]:
        return ["close"]

    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate middle, upper and lower bands.

        Args:
            bars: Bars with close prices

        Returns:
            IndicatorResult with middle band as values and
            upper/lower in params
        """
        ctx = engine_context()
        period = self.period
        closes = [bar.close for bar in bars]
        middle, upper, lower = [], [], []
        for i, close in enumerate(closes):
            if i < period - 1:
                middle.append(close)
                upper.append(close)
                lower.append(close)
                continue

            window = closes[i - period + 1:i + 1]
            mid = divide(sum(window, Decimal(0)), period)
            width = ctx.multiply(
                standard_deviation(window, self.ddof), self.multiplier
            )
            middle.append(mid)
            upper.append(ctx.add(mid, width))
            lower.append(ctx.subtract(mid, width))

        middle = tuple(middle)
        return IndicatorResult(
            name=self.name,
            values=middle,
            params={
                "period": period,
                "multiplier": self.multiplier,
                "ddof": self.ddof,
                "middle": middle,
                "upper": tuple(upper),
                "lower": tuple(lower)
            }
        )
