"""日志配置模块，基于loguru"""
import sys
from typing import Optional

from loguru import logger


# 移除默认的stderr handler，未调用setup_logger时不输出日志
logger.remove()

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"

_handler_ids: list[int] = []


def setup_logger(
    log_file: Optional[str] = "logs/stocktraining.log",
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "30 days",
    console: bool = True,
) -> None:
    """配置日志系统，重复调用时替换之前的handler

    Args:
        log_file: 日志文件路径，None表示不写文件
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        rotation: 日志轮转大小
        retention: 日志保留时间
        console: 是否输出到stderr
    """
    while _handler_ids:
        logger.remove(_handler_ids.pop())

    # 未bind name的日志（如第三方库）使用模块名
    logger.configure(extra={"name": "stocktraining"})

    if console:
        _handler_ids.append(logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT))

    if log_file:
        _handler_ids.append(logger.add(
            log_file,
            level=level,
            format=_FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        ))


def get_logger(name: str):
    """获取命名logger

    Args:
        name: 模块名称

    Returns:
        绑定了模块名的logger
    """
    return logger.bind(name=name)
