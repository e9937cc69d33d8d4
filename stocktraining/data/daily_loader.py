"""日线数据加载与指标结果导出

读取tushare格式的单只股票日线CSV，转换为Bar序列；
把指标计算结果转换为DataFrame，便于保存或展示。
"""
import os
from typing import Iterable, Optional

import pandas as pd

from stocktraining.indicators.base_indicator import Bar, to_decimal
from stocktraining.indicators.indicator_calculator import IndicatorRecord
from stocktraining.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ["ts_code", "trade_date", "open", "high", "low", "close"]
OPTIONAL_COLUMNS = ["pre_close", "change", "pct_chg", "vol", "amount"]


class DataLoadError(Exception):
    """日线数据加载错误"""
    pass


def normalize_date(value: str) -> str:
    """统一日期格式为YYYYMMDD，接受 2024-01-02 或 20240102"""
    text = str(value).strip().replace("-", "")
    if len(text) != 8 or not text.isdigit():
        raise DataLoadError(f"无效日期: {value}")
    return text


def load_daily_csv(file_path: str) -> pd.DataFrame:
    """读取单只股票的日线CSV

    所有列按字符串读取，价格在转换为Bar时直接解析为Decimal，避免浮点误差。

    Args:
        file_path: CSV文件路径

    Returns:
        日线数据DataFrame

    Raises:
        DataLoadError: 文件不存在或无法解析
    """
    if not os.path.exists(file_path):
        raise DataLoadError(f"数据文件不存在: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"读取数据文件失败 {file_path}: {e}")

    logger.debug(f"读取 {file_path}: {len(df)} 条记录")
    return df


def _cell(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def bars_from_dataframe(df: pd.DataFrame) -> list[Bar]:
    """把tushare日线DataFrame按行转换为Bar，保持原有行顺序

    Args:
        df: 包含ts_code, trade_date, open, high, low, close等列的DataFrame

    Returns:
        Bar列表

    Raises:
        DataLoadError: 缺少必需列或价格无法解析
    """
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise DataLoadError(f"缺少必需列: {sorted(missing)}")

    bars = []
    for position, row in enumerate(df.to_dict("records")):
        values = {}
        for column in REQUIRED_COLUMNS[2:] + OPTIONAL_COLUMNS:
            raw = _cell(row.get(column))
            if raw is None:
                if column in REQUIRED_COLUMNS:
                    raise DataLoadError(f"第{position}行缺少 {column}")
                values[column] = None
                continue
            try:
                value = to_decimal(raw)
            except ArithmeticError:
                raise DataLoadError(f"第{position}行 {column} 无法解析: {raw}")
            if not value.is_finite():
                raise DataLoadError(f"第{position}行 {column} 不是有效数值: {raw}")
            values[column] = value

        bars.append(Bar(
            ts_code=str(row["ts_code"]),
            trade_date=normalize_date(row["trade_date"]),
            **values,
        ))
    return bars


def prepare_bars(
    df: pd.DataFrame,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> list[Bar]:
    """排序（从旧到新）并按日期范围过滤，返回Bar序列

    Args:
        df: 日线数据
        start_date: 开始日期（含），None表示不限
        end_date: 结束日期（含），None表示不限

    Returns:
        按交易日期升序排列的Bar列表
    """
    bars = sorted(bars_from_dataframe(df), key=lambda bar: bar.trade_date)

    if start_date:
        start = normalize_date(start_date)
        bars = [bar for bar in bars if bar.trade_date >= start]
    if end_date:
        end = normalize_date(end_date)
        bars = [bar for bar in bars if bar.trade_date <= end]

    return bars


def load_bars(
    file_path: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> list[Bar]:
    """读取CSV并准备好可直接用于指标计算的Bar序列"""
    return prepare_bars(load_daily_csv(file_path), start_date, end_date)


def records_to_dataframe(records: Iterable[IndicatorRecord]) -> pd.DataFrame:
    """把指标记录转换为DataFrame

    列名带参数，如 MA_5, RSI_6；未定义的值为None。

    Args:
        records: IndicatorCalculator.calculate_all() 的结果

    Returns:
        每个交易日一行的DataFrame
    """
    records = list(records)
    ma_periods = sorted({p for r in records for p in r.ma_values})
    rsi_periods = sorted({p for r in records for p in r.rsi_values})

    rows = []
    for record in records:
        row = {"ts_code": record.ts_code, "trade_date": record.trade_date}
        for period in ma_periods:
            row[f"MA_{period}"] = record.ma_values.get(period)
        row["MACD"] = record.macd
        row["MACD_signal"] = record.macd_signal
        row["MACD_hist"] = record.macd_hist
        for period in rsi_periods:
            row[f"RSI_{period}"] = record.rsi_values.get(period)
        row["KDJ_K"] = record.k
        row["KDJ_D"] = record.d
        row["KDJ_J"] = record.j
        row["BOLL_upper"] = record.boll_upper
        row["BOLL_middle"] = record.boll_middle
        row["BOLL_lower"] = record.boll_lower
        rows.append(row)

    columns = (
        ["ts_code", "trade_date"]
        + [f"MA_{p}" for p in ma_periods]
        + ["MACD", "MACD_signal", "MACD_hist"]
        + [f"RSI_{p}" for p in rsi_periods]
        + ["KDJ_K", "KDJ_D", "KDJ_J", "BOLL_upper", "BOLL_middle", "BOLL_lower"]
    )
    return pd.DataFrame(rows, columns=columns)
