"""
异常类型

pipeline 各阶段检测到的错误都同步抛给调用方，不做自动重试。
"""

from __future__ import annotations


class MLSamplesError(Exception):
    """所有 mlsamples 异常的基类。"""


class ConfigError(MLSamplesError):
    """pipeline 配置文件缺失字段或取值非法。"""


class SchemaMismatch(MLSamplesError):
    """加载数据时列索引越界或取值无法解析为声明的类型。"""

    def __init__(self, message: str, column: str | None = None, line: int | None = None):
        self.column = column
        self.line = line
        location = []
        if column is not None:
            location.append(f"column '{column}'")
        if line is not None:
            location.append(f"line {line}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class MissingColumn(MLSamplesError):
    """转换步骤或评估引用了数据集中不存在的列。"""

    def __init__(self, column: str, available: list[str] | None = None):
        self.column = column
        self.available = list(available) if available is not None else []
        message = f"Column '{column}' not found"
        if self.available:
            message += f"; available columns: {', '.join(self.available)}"
        super().__init__(message)


class InsufficientData(MLSamplesError):
    """数据行数（或类别数）不足以训练或评估。"""


class PersistenceError(MLSamplesError):
    """模型保存/加载时的 I/O 错误或文件损坏。"""


__all__ = [
    "MLSamplesError",
    "ConfigError",
    "SchemaMismatch",
    "MissingColumn",
    "InsufficientData",
    "PersistenceError",
]
