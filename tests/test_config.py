import pytest
import yaml
from stocktraining.utils.config import Config, ConfigError


class TestConfig:
    def test_load_valid_config(self, tmp_path):
        """测试加载有效配置文件"""
        config_content = {
            "data": {"daily_dir": "data/daily"},
            "logging": {"level": "DEBUG"},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config_content))

        config = Config(str(config_file))

        assert config.get("data.daily_dir") == "data/daily"
        assert config.get("logging.level") == "DEBUG"
        assert config.path == str(config_file)

    def test_get_nested_key(self, tmp_path):
        """测试获取嵌套配置"""
        config_content = {
            "indicators": {
                "rsi": {"enabled": True, "periods": [6, 12, 24]},
            }
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config_content))

        config = Config(str(config_file))

        assert config.get("indicators.rsi.enabled") is True
        assert config.get("indicators.rsi.periods") == [6, 12, 24]
        assert config.get("indicators.rsi") == {"enabled": True, "periods": [6, 12, 24]}

    def test_get_with_default(self, tmp_path):
        """测试获取不存在的key返回默认值"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"data": {"daily_dir": "x"}}))

        config = Config(str(config_file))

        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("nonexistent.key") is None
        assert config.get("data.daily_dir.deeper", 1) == 1

    def test_getitem(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"kdj": {"period": 9}}))

        config = Config(str(config_file))

        assert config["kdj.period"] == 9
        with pytest.raises(KeyError):
            config["kdj.missing"]

    def test_empty_config(self):
        """测试无配置文件时全部返回默认值"""
        config = Config(None)
        assert config.get("indicators.kdj.period", 9) == 9
        assert config.path is None

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert Config(str(config_file)).get("anything", "x") == "x"

    def test_missing_file_raises_error(self):
        """测试文件不存在抛出异常"""
        with pytest.raises(ConfigError):
            Config("/nonexistent/path/config.yaml")

    def test_invalid_yaml_raises_error(self, tmp_path):
        """测试无效YAML格式抛出异常"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_non_mapping_yaml_raises_error(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))
