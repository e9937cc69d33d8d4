"""stocktraining 主入口：计算单只股票的技术指标"""
import argparse
import os
import sys
from typing import Optional, Sequence

from stocktraining.data.daily_loader import DataLoadError, load_bars, records_to_dataframe
from stocktraining.indicators import IndicatorCalculator, IndicatorConfig, IndicatorError
from stocktraining.utils.config import DEFAULT_CONFIG_PATH, Config, ConfigError
from stocktraining.utils.logger import get_logger, setup_logger


def init_system(config_path: str):
    """加载配置并设置日志

    默认配置文件不存在时使用空配置（全部取默认值）。

    Args:
        config_path: 配置文件路径

    Returns:
        (config, calculator)

    Raises:
        ConfigError: 指定的配置文件不存在或格式错误
    """
    if config_path == DEFAULT_CONFIG_PATH and not os.path.exists(config_path):
        config = Config(None)
    else:
        config = Config(config_path)

    setup_logger(
        log_file=config.get("logging.file", "logs/stocktraining.log"),
        level=config.get("logging.level", "INFO"),
    )
    calculator = IndicatorCalculator(IndicatorConfig.from_config(config))
    return config, calculator


def cmd_indicators(args) -> int:
    """计算指标并输出CSV"""
    config, calculator = init_system(args.config)
    logger = get_logger(__name__)

    daily_dir = config.get("data.daily_dir", "data/daily")
    csv_path = args.csv or os.path.join(daily_dir, f"{args.ts_code}.csv")

    try:
        bars = load_bars(csv_path, args.start, args.end)
    except DataLoadError as e:
        logger.error(f"加载 {args.ts_code} 日线数据失败: {e}")
        return 1

    if not bars:
        logger.error(f"{args.ts_code} 在指定日期范围内没有数据")
        return 1

    logger.info(
        f"计算 {args.ts_code} 技术指标: {len(bars)} 个交易日 "
        f"({bars[0].trade_date} - {bars[-1].trade_date})"
    )
    try:
        records = calculator.calculate_all(bars)
    except IndicatorError as e:
        logger.error(f"指标计算失败: {e}")
        return 1

    df = records_to_dataframe(records)
    if args.output:
        output_dir = os.path.dirname(args.output)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        df.to_csv(args.output, index=False)
        logger.info(f"指标已保存到 {args.output}")
    else:
        print(df.tail(args.tail).to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="stocktraining - 股票技术指标计算")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="配置文件路径"
    )

    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    ind_parser = subparsers.add_parser("indicators", help="计算技术指标")
    ind_parser.add_argument("ts_code", help="股票代码，如 000001.SZ")
    ind_parser.add_argument("--csv", help="日线CSV路径，默认 {data.daily_dir}/{ts_code}.csv")
    ind_parser.add_argument("--start", help="开始日期 (YYYYMMDD)")
    ind_parser.add_argument("--end", help="结束日期 (YYYYMMDD)")
    ind_parser.add_argument("--output", help="输出CSV路径，不指定则打印最后几行")
    ind_parser.add_argument("--tail", type=int, default=10, help="打印的行数")
    ind_parser.set_defaults(func=cmd_indicators)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (ConfigError, IndicatorError) as e:
        print(f"配置错误: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
