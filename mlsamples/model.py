"""
模型

Model 把训练好的估计器、已拟合的转换链、标签映射和元数据打包为一个不可变对象，
训练、评估、预测和持久化都围绕它进行。

标签处理：
- ``label_column`` 可以是原始列，也可以是转换链产生的列（如 copy / map_value_to_key 的输出）
- regression: 标签转换为 float
- binary: 布尔标签转换为 0/1
- multiclass: 使用 MapValueToKey 把标签取值映射为整数 key（转换链中已有则复用，否则单独拟合）
- clustering: 不需要标签
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .config import logger
from .data import Dataset, Schema
from .data.features import MapValueToKey, TransformChain
from .errors import ConfigError, InsufficientData
from .models import TASK_TYPES, Trainer


@dataclass(frozen=True)
class Model:
    """训练好的模型（只读）。

    Attributes:
        task: 任务类型
        chain: 已拟合的转换链
        estimator: 已拟合的 scikit-learn 估计器
        schema: 训练数据的 Schema
        label_column: 标签列名（聚类任务可为 None）
        label_mapping: 多分类任务的标签 key 表
        metadata: 训练元数据（PipelineState、超参数、行数等）
    """

    task: str
    chain: TransformChain
    estimator: Any
    schema: Schema
    label_column: str | None = None
    label_mapping: MapValueToKey | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.task not in TASK_TYPES:
            raise ConfigError(f"task must be one of {TASK_TYPES}, got '{self.task}'")
        if not self.chain.is_fitted:
            raise ValueError("Model requires a fitted TransformChain")
        if self.task == "multiclass" and self.label_mapping is None:
            raise ValueError("Multiclass model requires a label mapping")

    @property
    def feature_column(self) -> str:
        return self.chain.feature_column

    @property
    def feature_width(self) -> int:
        return self.chain.feature_width

    @property
    def labels(self) -> list[Any]:
        """多分类任务的标签取值（按 key 顺序）。"""
        return list(self.label_mapping.values) if self.label_mapping is not None else []

    def features(self, dataset: Dataset) -> np.ndarray:
        return self.chain.feature_matrix(dataset)

    def has_labels(self, dataset: Dataset) -> bool:
        """数据集是否包含（或可以由转换链产生）标签列。"""
        if self.label_column is None:
            return False
        return all(name in dataset for name in self.chain.source_columns([self.label_column]))

    def raw_labels(self, dataset: Dataset) -> np.ndarray:
        """标签列的原始取值（多分类时为 key 映射之前的取值）。

        Raises:
            MissingColumn: 标签列不存在时
        """
        if self.label_column is None:
            raise ValueError(f"{self.task} model has no label column")
        source = self.label_column
        if self.label_mapping is not None and self.chain.produces(self.label_column):
            source = self.label_mapping.inputs[0]
        if source not in dataset and self.chain.produces(source):
            dataset = self.chain.apply(dataset, targets=[source])
        return dataset.column(source)

    def encode_labels(self, dataset: Dataset) -> np.ndarray:
        """把数据集中的标签转换为估计器使用的形式。"""
        values = self.raw_labels(dataset)
        if self.task == "regression":
            return np.asarray(values, dtype=np.float64)
        if self.task == "binary":
            return _binary_labels(values)
        if self.task == "multiclass":
            return self.label_mapping.to_keys(values)
        raise ValueError(f"{self.task} model has no labels to encode")

    def decode_labels(self, keys) -> list[Any]:
        """key -> 原始标签取值。"""
        return self.label_mapping.to_values(keys)


def _binary_labels(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values)
    if values.dtype == np.bool_:
        return values.astype(np.int64)
    if values.dtype.kind in "if":
        unique = set(np.unique(values).tolist())
        if unique <= {0, 1}:
            return values.astype(np.int64)
    raise ValueError(f"Binary labels must be boolean or 0/1, got dtype {values.dtype}")


def train_model(
    task: str,
    chain: TransformChain,
    trainer: Trainer,
    dataset: Dataset,
    label_column: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Model:
    """拟合转换链并训练估计器。

    Args:
        task: 任务类型
        chain: 未拟合的转换链
        trainer: 训练器（task 必须与 task 一致）
        dataset: 训练数据集
        label_column: 标签列名（聚类任务可为 None；若给出则仅用于评估）
        metadata: 附加元数据

    Returns:
        Model: 训练好的模型

    Raises:
        InsufficientData: 训练集为空或行数不足
        MissingColumn: 转换链或标签引用了不存在的列
    """
    if trainer.task != task:
        raise ConfigError(f"Trainer '{type(trainer).__name__}' is for {trainer.task}, not {task}")
    if dataset.is_empty:
        raise InsufficientData("Training dataset is empty")
    if label_column is None and task != "clustering":
        raise ConfigError(f"A label column is required for {task}")

    chain.fit(dataset)
    transformed = chain.apply(dataset)

    label_mapping = None
    labels = None
    if task != "clustering":
        if task == "multiclass":
            label_mapping = _label_mapping(chain, transformed, label_column)
        # 临时模型只用于标签编码，estimator 尚未训练
        draft = Model(task, chain, None, dataset.schema, label_column, label_mapping)
        labels = draft.encode_labels(transformed)

    features = chain.feature_matrix(dataset)
    estimator = trainer.fit(features, labels)

    model_metadata = {
        "trainer": type(trainer).__name__,
        "hyperparameters": trainer.get_params(),
        "num_rows": len(dataset),
        "feature_width": chain.feature_width,
        **(metadata or {}),
    }
    if label_mapping is not None:
        model_metadata["label_keys"] = list(label_mapping.values)
    logger.info(f"Model trained: task={task}, rows={len(dataset)}, feature_width={chain.feature_width}")
    return Model(task, chain, estimator, dataset.schema, label_column, label_mapping, model_metadata)


def _label_mapping(chain: TransformChain, transformed: Dataset, label_column: str) -> MapValueToKey:
    for step in chain.steps:
        if isinstance(step, MapValueToKey) and step.output == label_column:
            return step
    mapping = MapValueToKey(label_column, label_column)
    mapping.fit(transformed)
    return mapping
