"""配置文件加载和管理模块"""
import os
from typing import Any, Optional
import yaml


DEFAULT_CONFIG_PATH = "config/config.yaml"


class ConfigError(Exception):
    """配置相关错误"""
    pass


class Config:
    """配置管理器

    支持YAML格式配置文件，提供点分隔的嵌套key访问。
    config_path为None时得到空配置，所有key返回默认值。

    Example:
        config = Config("config/config.yaml")
        periods = config.get("indicators.ma.periods", "5,10,20,60")
        daily_dir = config.get("data.daily_dir", "data/daily")
    """

    def __init__(self, config_path: Optional[str] = DEFAULT_CONFIG_PATH):
        """初始化配置

        Args:
            config_path: 配置文件路径

        Raises:
            ConfigError: 文件不存在或格式错误
        """
        self._config_path = config_path
        self._data = {}

        if config_path is None:
            return

        if not os.path.exists(config_path):
            raise ConfigError(f"配置文件不存在: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                self._data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"配置文件格式错误: {e}")

        if not isinstance(self._data, dict):
            raise ConfigError(f"配置文件顶层必须是映射: {config_path}")

    @property
    def path(self) -> Optional[str]:
        return self._config_path

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """获取配置值

        支持点分隔的嵌套key，如 "indicators.rsi.periods"

        Args:
            key: 配置key，支持点分隔
            default: 默认值

        Returns:
            配置值或默认值
        """
        value = self._data

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        """支持字典式访问"""
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value
