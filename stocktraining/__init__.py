"""stocktraining - 单只股票日线技术指标计算"""

__version__ = "0.1.0"
