"""
数据 Schema 模块

提供：
- Column: 列定义（名称、语义类型、源列索引）
- Schema: 有序、不可变的列定义集合
- 按语义类型解析 / 格式化单个取值
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

import numpy as np

from ..errors import ConfigError, SchemaMismatch

COLUMN_KINDS = ("text", "float", "boolean", "category")

_TRUE_TOKENS = {"1", "true"}
_FALSE_TOKENS = {"0", "false"}


@dataclass(frozen=True)
class Column:
    """列定义。

    Attributes:
        name (str): 字段名
        kind (str): 语义类型（'text', 'float', 'boolean', 'category'）
        index (int): 在分隔文件中的源列索引（从 0 开始）
    """

    name: str
    kind: str
    index: int

    def __post_init__(self):
        if self.kind not in COLUMN_KINDS:
            raise ConfigError(f"Unknown column type '{self.kind}' for column '{self.name}'. Must be one of {COLUMN_KINDS}")
        if self.index < 0:
            raise ConfigError(f"Column index must be non-negative, got {self.index} for column '{self.name}'")

    @property
    def dtype(self):
        """该列在 Dataset 中的 numpy dtype。"""
        if self.kind == "float":
            return np.float64
        if self.kind == "boolean":
            return np.bool_
        return object

    def parse(self, token: str, line: int | None = None) -> Any:
        """将文本 token 解析为声明的类型。

        Raises:
            SchemaMismatch: 无法解析时
        """
        if self.kind == "float":
            token = token.strip()
            if token == "":
                return math.nan
            try:
                return float(token)
            except ValueError:
                raise SchemaMismatch(f"Cannot parse '{token}' as float", column=self.name, line=line) from None
        if self.kind == "boolean":
            lowered = token.strip().lower()
            if lowered in _TRUE_TOKENS:
                return True
            if lowered in _FALSE_TOKENS:
                return False
            raise SchemaMismatch(f"Cannot parse '{token}' as boolean", column=self.name, line=line)
        return token

    def coerce(self, value: Any) -> Any:
        """将 Python 值（已类型化或文本）转换为声明的类型。"""
        if isinstance(value, str):
            return self.parse(value)
        if self.kind == "float":
            try:
                return float(value)
            except (TypeError, ValueError):
                raise SchemaMismatch(f"Cannot convert {value!r} to float", column=self.name) from None
        if self.kind == "boolean":
            if isinstance(value, (bool, np.bool_)):
                return bool(value)
            if isinstance(value, (int, float, np.integer, np.floating)) and value in (0, 1):
                return bool(value)
            raise SchemaMismatch(f"Cannot convert {value!r} to boolean", column=self.name)
        if value is None:
            return ""
        return str(value)

    def format(self, value: Any) -> str:
        """将取值格式化为规范的文本形式（与 parse 互逆）。"""
        if self.kind == "float":
            value = float(value)
            if math.isnan(value):
                return ""
            if value.is_integer() and abs(value) < 1e16:
                return str(int(value))
            return repr(value)
        if self.kind == "boolean":
            return "1" if value else "0"
        return str(value)


class Schema:
    """有序、不可变的列定义集合。"""

    def __init__(self, columns: Iterable[Column]):
        columns = tuple(columns)
        names = [c.name for c in columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate column names in schema: {duplicates}")
        self._columns = columns
        self._by_name = {c.name: c for c in columns}

    @classmethod
    def from_config(cls, columns_config: list[dict[str, Any]]) -> Schema:
        """从配置列表构建 Schema。

        Args:
            columns_config: 形如 ``[{"name": "x", "type": "float", "index": 0}, ...]`` 的列表，
                省略 index 时使用列表位置。
        """
        if not columns_config:
            raise ConfigError("Schema must declare at least one column")
        columns = []
        for position, col in enumerate(columns_config):
            if "name" not in col:
                raise ConfigError(f"Column definition at position {position} is missing 'name'")
            columns.append(
                Column(
                    name=str(col["name"]),
                    kind=str(col.get("type", "float")),
                    index=int(col.get("index", position)),
                )
            )
        return cls(columns)

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._columns]

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> Column:
        return self._by_name[name]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Schema) and self._columns == other._columns

    def __hash__(self) -> int:
        return hash(self._columns)

    def __repr__(self) -> str:
        return f"Schema({list(self._columns)!r})"

    def get(self, name: str) -> Column | None:
        return self._by_name.get(name)

    def subset(self, names: Iterable[str]) -> Schema:
        """按原顺序保留给定名称的列。"""
        keep = set(names)
        return Schema(c for c in self._columns if c.name in keep)

    def to_config(self) -> list[dict[str, Any]]:
        return [{"name": c.name, "type": c.kind, "index": c.index} for c in self._columns]
