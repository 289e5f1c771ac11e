"""
数据模块

提供：
- Schema / Column: 列定义
- Dataset: 内存列式数据集
- load_dataset / dump_dataset: 分隔文本文件读写
"""
from .dataset import Dataset
from .loader import dump_dataset, load_dataset, resolve_separator
from .schema import COLUMN_KINDS, Column, Schema

__all__ = [
    "Column",
    "Schema",
    "COLUMN_KINDS",
    "Dataset",
    "load_dataset",
    "dump_dataset",
    "resolve_separator",
]
