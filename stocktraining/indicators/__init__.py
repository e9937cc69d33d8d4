"""Technical indicator calculation module.

Provides decimal-exact technical indicators over daily bars:
- Trend indicators: MA, MACD
- Momentum indicators: RSI, KDJ
- Volatility indicators: Bollinger Bands
- Unified calculator producing one record per trading day
"""

from .base_indicator import (
    Bar,
    BaseIndicator,
    IndicatorError,
    IndicatorLengthError,
    IndicatorResult,
    InvalidInputError,
)
from .trend_indicators import MAIndicator, MACDIndicator
from .momentum_indicators import RSIIndicator, KDJIndicator
from .volatility_indicators import BollingerBandsIndicator
from .indicator_calculator import IndicatorCalculator, IndicatorConfig, IndicatorRecord

__all__ = [
    # Base
    "Bar",
    "BaseIndicator",
    "IndicatorResult",
    "IndicatorError",
    "InvalidInputError",
    "IndicatorLengthError",
    # Trend
    "MAIndicator",
    "MACDIndicator",
    # Momentum
    "RSIIndicator",
    "KDJIndicator",
    # Volatility
    "BollingerBandsIndicator",
    # Calculator
    "IndicatorCalculator",
    "IndicatorConfig",
    "IndicatorRecord",
]
