"""
特征转换链模块

提供：
- TransformChain: 有序的转换步骤列表
  - 顺序检查（每个步骤的输入必须由数据集或之前的步骤提供）
  - fit: 在训练数据上依次拟合并应用每个步骤
  - apply: 只使用已拟合的状态转换数据
  - output_spec: 特征列名称与宽度（用于 PipelineState 和 metadata）
"""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np
import yaml

from ...errors import MissingColumn
from ..dataset import Dataset
from ..logger import _logger
from .steps import Concatenate, TransformStep, build_step


class TransformChain:
    """
    特征转换链

    步骤按调用方给定的顺序执行，顺序是有意义的：
    concatenate 必须位于产生其输入列的步骤之后。
    """

    def __init__(self, steps: Iterable[TransformStep], feature_column: str = "Features"):
        """初始化转换链。

        Args:
            steps: 转换步骤列表
            feature_column: 作为模型输入的最终特征列名
        """
        self.steps: list[TransformStep] = list(steps)
        self.feature_column = feature_column
        self._fitted = False

    @classmethod
    def from_config(cls, step_defs: list[dict[str, Any]], feature_column: str = "Features") -> TransformChain:
        """从配置列表构建转换链。"""
        return cls([build_step(d) for d in step_defs], feature_column=feature_column)

    @classmethod
    def from_yaml(cls, yaml_path: str, feature_column: str = "Features") -> TransformChain:
        """从 YAML 文件（``features:`` 列表）构建转换链。"""
        with open(yaml_path) as f:
            config = yaml.safe_load(f) or {}
        return cls.from_config(config.get("features", []), feature_column=config.get("feature_column", feature_column))

    @property
    def is_fitted(self) -> bool:
        return self._fitted

    def check_order(self, available: Iterable[str]) -> None:
        """检查每个步骤的输入是否可用。

        Args:
            available: 数据集中已有的列名

        Raises:
            MissingColumn: 某个步骤引用了既不在数据集中、也不由之前步骤产生的列
        """
        columns = list(available)
        for step in self.steps:
            for name in step.inputs:
                if name not in columns:
                    raise MissingColumn(name, columns)
            if step.output not in columns:
                columns.append(step.output)
        if self.feature_column not in columns:
            raise MissingColumn(self.feature_column, columns)

    def fit(self, dataset: Dataset) -> TransformChain:
        """在训练数据上拟合所有步骤（只能调用一次）。

        每个步骤拟合后立即应用，使后续步骤能看到它的输出。

        Args:
            dataset: 训练数据集

        Returns:
            TransformChain: self
        """
        if self._fitted:
            raise ValueError("TransformChain is already fitted; build a new chain to refit")
        self.check_order(dataset.column_names)

        current = dataset
        for step in self.steps:
            try:
                current = step.fit_apply(current)
            except Exception as e:
                _logger.error(f"Failed to fit step '{step.op}' -> '{step.output}': {e}")
                raise
        self._fitted = True
        _logger.info(f"TransformChain fitted: {len(self.steps)} steps, feature width {self.feature_width}")
        return self

    def steps_for(self, targets: Iterable[str]) -> list[TransformStep]:
        """产生给定列所需的步骤（保持原有顺序）。

        例如推理时只需要产生特征列的步骤，标签相关的步骤（copy / map_value_to_key）被跳过。
        """
        needed = set(targets)
        selected = []
        for step in reversed(self.steps):
            if step.output in needed:
                selected.append(step)
                needed.discard(step.output)
                needed.update(step.inputs)
        return list(reversed(selected))

    def produces(self, name: str) -> bool:
        return any(step.output == name for step in self.steps)

    def source_columns(self, targets: Iterable[str]) -> list[str]:
        """计算给定列所需的原始输入列。"""
        targets = list(targets)
        produced: set[str] = set()
        sources: list[str] = []
        for step in self.steps_for(targets):
            for name in step.inputs:
                if name not in produced and name not in sources:
                    sources.append(name)
            produced.add(step.output)
        for name in targets:
            if name not in produced and name not in sources:
                sources.append(name)
        return sources

    def apply(self, dataset: Dataset, targets: Iterable[str] | None = None) -> Dataset:
        """应用已拟合的转换，返回包含输出列的新数据集。

        Args:
            dataset: 输入数据集
            targets: 只计算这些列所需的步骤；为 None 时执行全部步骤
        """
        if not self._fitted:
            raise ValueError("TransformChain not fitted. Call fit() first.")
        steps = self.steps if targets is None else self.steps_for(targets)
        current = dataset
        for step in steps:
            current = step.apply(current)
        return current

    def feature_matrix(self, dataset: Dataset) -> np.ndarray:
        """应用转换并返回 (行数, 特征宽度) 的特征矩阵。"""
        transformed = self.apply(dataset, targets=[self.feature_column])
        matrix = np.asarray(transformed.column(self.feature_column), dtype=np.float64)
        return matrix.reshape(len(transformed), -1)

    def _final_step(self) -> TransformStep:
        for step in reversed(self.steps):
            if step.output == self.feature_column:
                return step
        raise MissingColumn(self.feature_column, [s.output for s in self.steps])

    @property
    def feature_width(self) -> int:
        """特征向量宽度（拟合后可用）。"""
        return self._final_step().width

    def feature_names(self) -> list[str]:
        """特征向量每一维的名称。"""
        step = self._final_step()
        if not isinstance(step, Concatenate):
            return step.feature_names()
        names = []
        by_output = {s.output: s for s in self.steps if s is not step}
        for name, width in zip(step.inputs, step.input_widths):
            producer = by_output.get(name)
            if producer is not None and producer.is_fitted:
                names.extend(producer.feature_names())
            elif width == 1:
                names.append(name)
            else:
                names.extend(f"{name}.{i}" for i in range(width))
        return names

    def output_spec(self) -> dict[str, Any]:
        """获取输出规范。

        Returns:
            dict: 形如::

                {
                    "features": {"column": "Features", "dim": 12},
                    "steps": [{"op": "one_hot", "input": "VendorId", "output": "VendorId", "dim": 3}, ...],
                }
        """
        spec = {
            "features": {"column": self.feature_column},
            "steps": [],
        }
        for step in self.steps:
            step_spec = step.describe()
            if step.is_fitted:
                step_spec["dim"] = step.width
            spec["steps"].append(step_spec)
        if self._fitted:
            spec["features"]["dim"] = self.feature_width
        return spec

    def describe(self) -> list[dict[str, Any]]:
        """步骤定义列表（与 from_config 互逆）。"""
        return [step.describe() for step in self.steps]

    def visualize(self) -> str:
        """文本形式展示转换链。"""
        lines = []
        lines.append("=" * 60)
        lines.append("Transform Chain")
        lines.append("=" * 60)
        lines.append(f"Total steps: {len(self.steps)}")
        lines.append(f"Fitted: {self._fitted}")
        lines.append("")
        for i, step in enumerate(self.steps, 1):
            width = f" (dim={step.width})" if step.is_fitted else ""
            lines.append(f"  {i}. {step.op}: {', '.join(step.inputs)} -> {step.output}{width}")
        lines.append("")
        lines.append(f"Feature column: {self.feature_column}")
        lines.append("=" * 60)
        return "\n".join(lines)
