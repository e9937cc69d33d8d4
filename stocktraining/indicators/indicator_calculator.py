"""Unified indicator calculator merging all indicators into per-day records."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from stocktraining.utils.logger import get_logger

from .base_indicator import (
    Bar,
    BaseIndicator,
    IndicatorLengthError,
    IndicatorResult,
    InvalidInputError,
    require_positive_int,
    to_decimal,
)
from .momentum_indicators import KDJIndicator, RSIIndicator
from .trend_indicators import MACDIndicator, MAIndicator
from .volatility_indicators import SAMPLE_DDOF, BollingerBandsIndicator

logger = get_logger(__name__)


def parse_periods(value: Any) -> list[int]:
    """Parse a period list given as "5,10,20", a single int or a list.

    Duplicates are dropped and the result is sorted.

    Raises:
        InvalidInputError: If any entry is not a positive integer
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
        try:
            value = [int(part) for part in items]
        except ValueError:
            raise InvalidInputError(f"invalid period list: {value!r}")
    elif isinstance(value, int):
        value = [value]
    return sorted(set(require_positive_int(p, "period") for p in value))


@dataclass
class IndicatorConfig:
    """Configuration for indicator calculation.

    Period list fields produce one series per period, e.g.
    rsi_periods=[6, 12] fills both RSI_6 and RSI_12.
    """
    ma_periods: list[int] = field(default_factory=lambda: [5, 10, 20, 60])
    macd_params: tuple[int, int, int] = (12, 26, 9)
    rsi_periods: list[int] = field(default_factory=lambda: [6, 12, 24])
    kdj_period: int = 9
    bollinger_period: int = 20
    bollinger_multiplier: Decimal = Decimal("2.0")
    bollinger_ddof: int = SAMPLE_DDOF
    macd_enabled: bool = True
    rsi_enabled: bool = True
    kdj_enabled: bool = True
    bollinger_enabled: bool = True
    max_workers: int = 1

    def __post_init__(self):
        require_positive_int(self.max_workers, "max_workers")

    @staticmethod
    def from_config(config) -> "IndicatorConfig":
        """Build config from the `indicators` section of the app config.

        Missing keys keep their defaults.

        Args:
            config: utils.config.Config instance
        """
        defaults = IndicatorConfig()
        fast, slow, signal = defaults.macd_params

        def get(key: str, default: Any) -> Any:
            return config.get(f"indicators.{key}", default)

        return IndicatorConfig(
            ma_periods=parse_periods(get("ma.periods", defaults.ma_periods)),
            macd_params=(
                get("macd.fast", fast),
                get("macd.slow", slow),
                get("macd.signal", signal),
            ),
            rsi_periods=parse_periods(get("rsi.periods", defaults.rsi_periods)),
            kdj_period=get("kdj.period", defaults.kdj_period),
            bollinger_period=get("bollinger.period", defaults.bollinger_period),
            bollinger_multiplier=to_decimal(
                get("bollinger.multiplier", defaults.bollinger_multiplier)
            ),
            bollinger_ddof=get("bollinger.ddof", defaults.bollinger_ddof),
            macd_enabled=bool(get("macd.enabled", True)),
            rsi_enabled=bool(get("rsi.enabled", True)),
            kdj_enabled=bool(get("kdj.enabled", True)),
            bollinger_enabled=bool(get("bollinger.enabled", True)),
            max_workers=get("max_workers", defaults.max_workers),
        )


@dataclass
class IndicatorRecord:
    """All indicator values of one trading day.

    Every value is None when its lookback is insufficient or its
    indicator family was not calculated.
    """
    ts_code: str
    trade_date: str
    ma_values: Dict[int, Decimal] = field(default_factory=dict)
    macd: Optional[Decimal] = None
    macd_signal: Optional[Decimal] = None
    macd_hist: Optional[Decimal] = None
    rsi_values: Dict[int, Decimal] = field(default_factory=dict)
    k: Optional[Decimal] = None
    d: Optional[Decimal] = None
    j: Optional[Decimal] = None
    boll_upper: Optional[Decimal] = None
    boll_middle: Optional[Decimal] = None
    boll_lower: Optional[Decimal] = None


class IndicatorCalculator:
    """Unified calculator for all technical indicators.

    Each indicator runs independently over the same bars; the results are
    joined by position into one IndicatorRecord per bar.
    """

    AVAILABLE_INDICATORS = ["ma", "macd", "rsi", "kdj", "boll"]

    def __init__(self, config: Optional[IndicatorConfig] = None):
        self.config = config or IndicatorConfig()

    def get_indicator_names(self) -> list[str]:
        return self.AVAILABLE_INDICATORS.copy()

    def enabled_indicators(self) -> list[str]:
        """Indicator families selected by the config."""
        enabled = {
            "ma": bool(self.config.ma_periods),
            "macd": self.config.macd_enabled,
            "rsi": self.config.rsi_enabled and bool(self.config.rsi_periods),
            "kdj": self.config.kdj_enabled,
            "boll": self.config.bollinger_enabled,
        }
        return [name for name in self.AVAILABLE_INDICATORS if enabled[name]]

    def build_indicators(self, indicators: Sequence[str]) -> List[Tuple[str, BaseIndicator]]:
        """Instantiate (family, indicator) pairs for the requested families.

        Raises:
            InvalidInputError: Unknown family or invalid parameters
        """
        cfg = self.config
        built = []
        for family in indicators:
            if family == "ma":
                built.extend(("ma", MAIndicator(period=p)) for p in cfg.ma_periods)
            elif family == "macd":
                fast, slow, signal = cfg.macd_params
                built.append(("macd", MACDIndicator(
                    fast_period=fast, slow_period=slow, signal_period=signal
                )))
            elif family == "rsi":
                built.extend(("rsi", RSIIndicator(period=p)) for p in cfg.rsi_periods)
            elif family == "kdj":
                built.append(("kdj", KDJIndicator(period=cfg.kdj_period)))
            elif family == "boll":
                built.append(("boll", BollingerBandsIndicator(
                    period=cfg.bollinger_period,
                    multiplier=cfg.bollinger_multiplier,
                    ddof=cfg.bollinger_ddof,
                )))
            else:
                raise InvalidInputError(f"unknown indicator: {family!r}")
        return built

    def calculate_all(self, bars: Optional[Sequence[Bar]]) -> list[IndicatorRecord]:
        return self.calculate_subset(bars, indicators=self.enabled_indicators())

    def calculate_subset(
        self,
        bars: Optional[Sequence[Bar]],
        indicators: Sequence[str]
    ) -> list[IndicatorRecord]:
        bars = list(bars or ())
        if not bars:
            logger.warning("No bars supplied, returning empty indicator list")
            return []

        pairs = self.build_indicators(indicators)
        logger.debug(
            f"Calculating {[ind.name for _, ind in pairs]} over {len(bars)} bars "
            f"({bars[0].trade_date} - {bars[-1].trade_date})"
        )
        results = self._run(pairs, bars)

        records = [
            IndicatorRecord(ts_code=bar.ts_code, trade_date=bar.trade_date)
            for bar in bars
        ]
        for (family, indicator), result in zip(pairs, results):
            self._check_length(result, len(bars))
            getattr(self, f"_add_{family}")(indicator, result, records)
        return records

    def _run(self, pairs: List[Tuple[str, BaseIndicator]], bars: list[Bar]) -> list[IndicatorResult]:
        """Run indicators serially or on a thread pool, preserving order."""
        workers = self.config.max_workers
        if workers <= 1 or len(pairs) <= 1:
            return [indicator(bars) for _, indicator in pairs]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(indicator, bars) for _, indicator in pairs]
            return [future.result() for future in futures]

    @staticmethod
    def _check_length(result: IndicatorResult, expected: int) -> None:
        series = [("values", result.values)]
        series.extend(
            (key, value) for key, value in result.params.items()
            if isinstance(value, tuple)
        )
        for key, values in series:
            if len(values) != expected:
                raise IndicatorLengthError(
                    f"{result.name}.{key} has {len(values)} values, expected {expected}"
                )

    def _add_ma(self, indicator: MAIndicator, result: IndicatorResult,
                records: list[IndicatorRecord]) -> None:
        for record, value in zip(records, result.values):
            if value is not None:
                record.ma_values[indicator.period] = value

    def _add_macd(self, indicator: MACDIndicator, result: IndicatorResult,
                  records: list[IndicatorRecord]) -> None:
        series = zip(result.params["macd"], result.params["signal"], result.params["histogram"])
        for record, (macd, signal, hist) in zip(records, series):
            record.macd = macd
            record.macd_signal = signal
            record.macd_hist = hist

    def _add_rsi(self, indicator: RSIIndicator, result: IndicatorResult,
                 records: list[IndicatorRecord]) -> None:
        for record, value in zip(records, result.values):
            if value is not None:
                record.rsi_values[indicator.period] = value

    def _add_kdj(self, indicator: KDJIndicator, result: IndicatorResult,
                 records: list[IndicatorRecord]) -> None:
        series = zip(result.params["k"], result.params["d"], result.params["j"])
        for record, (k, d, j) in zip(records, series):
            record.k, record.d, record.j = k, d, j

    def _add_boll(self, indicator: BollingerBandsIndicator, result: IndicatorResult,
                  records: list[IndicatorRecord]) -> None:
        series = zip(result.params["upper"], result.params["middle"], result.params["lower"])
        for record, (upper, middle, lower) in zip(records, series):
            record.boll_upper = upper
            record.boll_middle = middle
            record.boll_lower = lower
