"""Base class, shared containers and decimal helpers for all technical indicators."""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import Optional, Sequence


# Settings for all indicator arithmetic, independent of the caller's
# thread-local decimal context. Operations run on per-thread copies
# from engine_context(); this instance is only copied.
DECIMAL_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

_local = threading.local()

SCALE = 4
_QUANTUM = Decimal(1).scaleb(-SCALE)
_SCALE_FACTOR = Decimal(10) ** SCALE


def engine_context() -> Context:
    """Per-thread copy of DECIMAL_CONTEXT used by all indicator arithmetic."""
    ctx = getattr(_local, "context", None)
    if ctx is None:
        ctx = _local.context = DECIMAL_CONTEXT.copy()
    return ctx


class IndicatorError(Exception):
    """Base error for the indicator engine."""
    pass


class InvalidInputError(IndicatorError, ValueError):
    """Malformed bars or indicator parameters.

    Attributes:
        index: Position of the first offending bar, None for parameter errors
    """

    def __init__(self, message: str, index: Optional[int] = None):
        if index is not None:
            message = f"bar {index}: {message}"
        super().__init__(message)
        self.index = index


class IndicatorLengthError(IndicatorError):
    """An indicator series is not index-aligned with its input bars."""
    pass


@dataclass(frozen=True)
class Bar:
    """One trading day of a single instrument (tushare daily layout).

    Prices and volumes are exact decimals. trade_date is YYYYMMDD.
    """
    ts_code: str
    trade_date: str
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    pre_close: Optional[Decimal] = None
    change: Optional[Decimal] = None
    pct_chg: Optional[Decimal] = None
    vol: Optional[Decimal] = None
    amount: Optional[Decimal] = None


@dataclass
class IndicatorResult:
    """Container for indicator calculation results.

    Attributes:
        name: Indicator identifier (e.g., 'MA_20', 'MACD')
        values: Primary series, one entry per input bar, None where undefined
        params: Parameters used for calculation plus any secondary series
    """
    name: str
    values: tuple
    params: dict = field(default_factory=dict)


def quantize(value: Decimal) -> Decimal:
    """Round to 4 fractional digits, half-up."""
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP, context=engine_context())


def divide(dividend: Decimal, divisor) -> Decimal:
    """Divide and round the exact quotient to 4 fractional digits, half-up.

    The quotient is rounded once, so results match a scale-4 HALF_UP
    division of arbitrary-precision decimals.
    """
    ctx = engine_context()
    divisor = Decimal(divisor)
    scaled = ctx.multiply(dividend, _SCALE_FACTOR)
    quotient, remainder = ctx.divmod(scaled, divisor)
    if ctx.multiply(2, remainder.copy_abs()) >= divisor.copy_abs():
        same_sign = (scaled < 0) == (divisor < 0)
        quotient = ctx.add(quotient, 1 if same_sign else -1)
    if quotient.is_zero():
        quotient = quotient.copy_abs()
    return quotient.scaleb(-SCALE, context=ctx)


def to_decimal(value) -> Decimal:
    """Convert a number to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def require_positive_int(value, label: str) -> int:
    """Validate an indicator period.

    Raises:
        InvalidInputError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidInputError(f"{label} must be a positive integer, got {value!r}")
    return value


class BaseIndicator(ABC):
    """Abstract base class for all technical indicators.

    Subclasses must implement:
        - name: Property returning indicator name
        - required_fields: Property returning list of required Bar fields
        - calculate: Method performing the actual calculation

    Usage:
        indicator = ConcreteIndicator()
        result = indicator(bars)  # Validates and calculates
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return indicator name."""
        pass

    @property
    @abstractmethod
    def required_fields(self) -> list[str]:
        """Return list of required Bar fields."""
        pass

    @abstractmethod
    def calculate(self, bars: Sequence[Bar]) -> IndicatorResult:
        """Calculate indicator values.

        Args:
            bars: Bars in ascending trade date order

        Returns:
            IndicatorResult with one value per bar
        """
        pass

    def validate_data(self, bars: Sequence[Bar]) -> None:
        """Fail fast on the first malformed bar.

        An empty sequence is valid and yields an empty result.

        Args:
            bars: Input bars to validate

        Raises:
            InvalidInputError: If a required field is missing or trade
                dates are not strictly ascending
        """
        previous_date = None
        for index, bar in enumerate(bars):
            missing = [name for name in self.required_fields
                       if getattr(bar, name, None) is None]
            if missing:
                raise InvalidInputError(f"missing required fields: {missing}", index)

            if previous_date is not None and bar.trade_date <= previous_date:
                raise InvalidInputError(
                    f"trade_date {bar.trade_date} does not follow {previous_date}",
                    index,
                )
            previous_date = bar.trade_date

    def __call__(self, bars: Optional[Sequence[Bar]]) -> IndicatorResult:
        """Validate bars and calculate indicator.

        Args:
            bars: Bar sequence, None is treated as empty

        Returns:
            IndicatorResult with calculated values
        """
        bars = list(bars or ())
        self.validate_data(bars)
        with localcontext(DECIMAL_CONTEXT):
            return self.calculate(bars)
