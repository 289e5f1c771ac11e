"""
mlsamples

表格数据机器学习样例：加载分隔文本数据、拟合特征转换链、训练、评估、保存/加载模型和预测。
"""

from .errors import ConfigError, InsufficientData, MissingColumn, MLSamplesError, PersistenceError, SchemaMismatch

__version__ = "0.1.0"

__all__ = [
    "MLSamplesError",
    "ConfigError",
    "SchemaMismatch",
    "MissingColumn",
    "InsufficientData",
    "PersistenceError",
    "__version__",
]
