"""
分隔文本文件加载器

按 Schema 将逗号/制表符分隔的文件读入 Dataset，并支持写回规范格式。
"""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np
import pandas as pd

from ..errors import SchemaMismatch
from .dataset import Dataset
from .logger import _logger
from .schema import Schema

_SEPARATOR_ALIASES = {"comma": ",", "tab": "\t", "\\t": "\t", "semicolon": ";", "space": " "}


def resolve_separator(separator: str) -> str:
    """解析分隔符别名（'tab', 'comma', '\\t' 等）。"""
    resolved = _SEPARATOR_ALIASES.get(separator, separator)
    if len(resolved) != 1:
        raise ValueError(f"Separator must be a single character, got {separator!r}")
    return resolved


def load_dataset(
    path: str | Path,
    schema: Schema,
    separator: str = ",",
    has_header: bool = False,
    allow_quoting: bool = True,
) -> Dataset:
    """从分隔文本文件加载数据集。

    Args:
        path: 文件路径
        schema: 列定义（名称、类型、源列索引）
        separator: 字段分隔符
        has_header: 第一行是否为表头（表头行被跳过）
        allow_quoting: 是否允许使用双引号包裹字段

    Returns:
        Dataset: 按 schema 类型化的列式数据集

    Raises:
        FileNotFoundError: 文件不存在
        SchemaMismatch: 列索引越界、行字段数不一致或取值无法解析
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    sep = resolve_separator(separator)
    try:
        frame = pd.read_csv(
            path,
            sep=sep,
            header=0 if has_header else None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            quoting=csv.QUOTE_MINIMAL if allow_quoting else csv.QUOTE_NONE,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        frame = pd.DataFrame()
    except pd.errors.ParserError as e:
        raise SchemaMismatch(f"Malformed delimited file {path}: {e}") from e

    # 文件第一条数据对应的行号（从 1 开始）
    first_line = 2 if has_header else 1
    num_fields = frame.shape[1]

    columns = {}
    for col in schema:
        if frame.shape[0] > 0 and col.index >= num_fields:
            raise SchemaMismatch(
                f"Column index {col.index} out of range; file has {num_fields} fields",
                column=col.name,
            )
        if frame.shape[0] == 0:
            columns[col.name] = np.empty(0, dtype=col.dtype)
            continue
        tokens = frame.iloc[:, col.index].tolist()
        values = []
        for i, token in enumerate(tokens):
            # 字段数不足的行会被 pandas 填充为 NaN
            if not isinstance(token, str):
                raise SchemaMismatch("Missing field", column=col.name, line=first_line + i)
            values.append(col.parse(token, line=first_line + i))
        columns[col.name] = np.array(values, dtype=col.dtype)

    dataset = Dataset(columns, schema=schema)
    _logger.info(f"Loaded {len(dataset)} rows with {len(schema)} columns from {path}")
    return dataset


def dump_dataset(
    dataset: Dataset,
    path: str | Path,
    separator: str = ",",
    has_header: bool = False,
    allow_quoting: bool = True,
) -> None:
    """将数据集按 schema 写回分隔文本文件（规范格式）。

    每列写在其声明的 index 位置，schema 未声明的位置写空字段，
    因此每行有 max(index) + 1 个字段，重新加载时得到相同的数据。
    float 取值按最短可往返形式输出（整数值不带小数点，NaN 输出为空），
    boolean 输出为 1/0。

    Args:
        dataset: 带 schema 的数据集
        path: 输出文件路径
        separator: 字段分隔符
        has_header: 是否写表头（未声明位置的表头为空）
        allow_quoting: 是否允许用双引号包裹字段；为 False 时字段原样写出

    Raises:
        SchemaMismatch: allow_quoting 为 False 时某个取值无法不加引号地表示
            （包含分隔符或换行，或单列的行为空）
    """
    if dataset.schema is None:
        raise ValueError("Dataset has no schema; cannot serialize")

    path = Path(path)
    sep = resolve_separator(separator)
    columns = list(dataset.schema)
    width = max((c.index for c in columns), default=-1) + 1

    rows = []
    if has_header:
        header = [""] * width
        for col in columns:
            header[col.index] = col.name
        rows.append(header)
    formatted = {c.name: [c.format(v) for v in dataset.column(c.name)] for c in columns}
    for i in range(len(dataset)):
        row = [""] * width
        for col in columns:
            row[col.index] = formatted[col.name][i]
        rows.append(row)

    if not allow_quoting:
        first_line = 2 if has_header else 1
        for i, row in enumerate(rows[1:] if has_header else rows):
            _check_unquoted(row, columns, sep, line=first_line + i)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        if allow_quoting:
            # csv 写出器把单个空字段的行写成 ""，重新加载时不会被当作空行跳过
            pd.DataFrame(rows).to_csv(f, sep=sep, header=False, index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
        else:
            for row in rows:
                f.write(sep.join(row) + "\n")
    _logger.info(f"Wrote {len(dataset)} rows to {path}")


def _check_unquoted(row, columns, separator, line):
    """检查一行在不加引号时能否被原样读回。"""
    if len(row) == 1 and row[0] == "":
        raise SchemaMismatch("Empty single-field row cannot be written without quoting", column=columns[0].name, line=line)
    for col in columns:
        value = row[col.index]
        if separator in value or "\n" in value or "\r" in value:
            raise SchemaMismatch(
                f"Value {value!r} contains the separator or a line break and cannot be written without quoting",
                column=col.name,
                line=line,
            )
