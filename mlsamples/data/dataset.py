"""
内存列式数据集

Dataset 保存若干等长的 numpy 列：
- 标量列：一维数组（float / bool / object[str]）
- 向量列：二维 float 数组（由特征转换步骤产生）

Dataset 按约定不可变，所有变换操作都返回新的实例。
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

import numpy as np

from ..errors import MissingColumn, SchemaMismatch
from .schema import Schema


class Dataset:
    """有序、有限的行集合，按列存储。"""

    def __init__(self, columns: Mapping[str, np.ndarray], schema: Schema | None = None):
        """
        初始化数据集。

        Args:
            columns: 列名 -> numpy 数组（第一维为行）
            schema: 源数据 Schema（由加载器或 from_records 提供）
        """
        self._columns: dict[str, np.ndarray] = {}
        num_rows = None
        for name, values in columns.items():
            values = np.asarray(values)
            if values.ndim == 0:
                raise ValueError(f"Column '{name}' must be at least one-dimensional")
            if num_rows is None:
                num_rows = values.shape[0]
            elif values.shape[0] != num_rows:
                raise ValueError(f"Column '{name}' has {values.shape[0]} rows, expected {num_rows}")
            self._columns[name] = values
        self._num_rows = num_rows or 0
        self.schema = schema

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], schema: Schema) -> Dataset:
        """从行记录（字典）构建数据集。

        只有出现在第一条记录中的 schema 列会被保留，缺少的列（例如推理时的标签列）
        不会被构建；之后引用它们的步骤会抛出 MissingColumn。

        Raises:
            SchemaMismatch: 记录之间字段不一致或取值无法转换
        """
        records = list(records)
        if not records:
            return cls({c.name: np.empty(0, dtype=c.dtype) for c in schema}, schema=schema)

        present = [c for c in schema if c.name in records[0]]
        columns: dict[str, list[Any]] = {c.name: [] for c in present}
        for i, record in enumerate(records):
            for col in present:
                if col.name not in record:
                    raise SchemaMismatch(f"Record {i} is missing field", column=col.name)
                columns[col.name].append(col.coerce(record[col.name]))

        arrays = {c.name: np.array(columns[c.name], dtype=c.dtype) for c in present}
        return cls(arrays, schema=schema.subset(arrays.keys()))

    def __len__(self) -> int:
        return self._num_rows

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __repr__(self) -> str:
        return f"Dataset(rows={self._num_rows}, columns={self.column_names})"

    @property
    def column_names(self) -> list[str]:
        return list(self._columns.keys())

    @property
    def is_empty(self) -> bool:
        return self._num_rows == 0

    def column(self, name: str) -> np.ndarray:
        """获取列。

        Raises:
            MissingColumn: 列不存在时
        """
        if name not in self._columns:
            raise MissingColumn(name, self.column_names)
        return self._columns[name]

    def width(self, name: str) -> int:
        """列的特征宽度（标量列为 1，向量列为第二维大小）。"""
        values = self.column(name)
        return 1 if values.ndim == 1 else int(np.prod(values.shape[1:]))

    def with_column(self, name: str, values: np.ndarray) -> Dataset:
        """返回添加（或替换）一列后的新数据集。"""
        columns = dict(self._columns)
        columns[name] = values
        return Dataset(columns, schema=self.schema)

    def take(self, indices: Iterable[int]) -> Dataset:
        """按行索引选取子集（保持给定顺序）。"""
        indices = np.asarray(list(indices), dtype=np.int64)
        return Dataset({k: v[indices] for k, v in self._columns.items()}, schema=self.schema)

    def split(self, test_fraction: float = 0.2, seed: int = 0) -> tuple[Dataset, Dataset]:
        """随机划分为互不相交的训练集和测试集。

        Args:
            test_fraction: 测试集比例，取值 (0, 1)
            seed: 随机种子

        Returns:
            (训练集, 测试集)，各自保持原始行顺序
        """
        if not 0.0 < test_fraction < 1.0:
            raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")

        rng = np.random.default_rng(seed)
        permutation = rng.permutation(self._num_rows)
        num_test = int(round(self._num_rows * test_fraction))
        test_idx = np.sort(permutation[:num_test])
        train_idx = np.sort(permutation[num_test:])
        return self.take(train_idx), self.take(test_idx)

    def row(self, index: int) -> dict[str, Any]:
        """获取单行记录（标量取值转换为 Python 原生类型）。"""
        if not -self._num_rows <= index < self._num_rows:
            raise IndexError(f"Row index {index} out of range for dataset with {self._num_rows} rows")
        record = {}
        for name, values in self._columns.items():
            value = values[index]
            record[name] = value.tolist() if isinstance(value, np.ndarray) else _to_python(value)
        return record

    def rows(self) -> Iterator[dict[str, Any]]:
        """按顺序逐行迭代。"""
        for i in range(self._num_rows):
            yield self.row(i)

    def select(self, names: Iterable[str]) -> Dataset:
        """只保留给定列。"""
        names = list(names)
        return Dataset({n: self.column(n) for n in names}, schema=self.schema.subset(names) if self.schema else None)


def _to_python(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value
