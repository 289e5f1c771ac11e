"""
训练器基类

定义任务相关的训练器接口：
- 每个训练器声明 task（regression / binary / multiclass / clustering）
- 超参数使用显式的 dataclass
- fit() 每次从头训练，给定 seed 时结果确定
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from typing import Any

import numpy as np

from ..config import logger
from ..errors import ConfigError, InsufficientData

TASK_TYPES = ("regression", "binary", "multiclass", "clustering")


@dataclass(frozen=True)
class TreeHyperparameters:
    """提升树超参数。

    Attributes:
        num_trees: 树的数量
        num_leaves: 每棵树的最大叶子数
        min_leaf_size: 叶子节点的最少样本数
        learning_rate: 学习率
        seed: 随机种子
    """

    num_trees: int = 100
    num_leaves: int = 20
    min_leaf_size: int = 10
    learning_rate: float = 0.2
    seed: int = 0

    def __post_init__(self):
        if self.num_trees < 1:
            raise ConfigError(f"num_trees must be >= 1, got {self.num_trees}")
        if self.num_leaves < 2:
            raise ConfigError(f"num_leaves must be >= 2, got {self.num_leaves}")
        if self.min_leaf_size < 1:
            raise ConfigError(f"min_leaf_size must be >= 1, got {self.min_leaf_size}")


@dataclass(frozen=True)
class LinearHyperparameters:
    """线性（最大熵）分类器超参数。"""

    l2_regularization: float = 1.0
    max_iterations: int = 1000
    seed: int = 0

    def __post_init__(self):
        if self.l2_regularization <= 0:
            raise ConfigError(f"l2_regularization must be > 0, got {self.l2_regularization}")


@dataclass(frozen=True)
class KMeansHyperparameters:
    """k-means 超参数。"""

    num_clusters: int = 3
    max_iterations: int = 300
    num_init: int = 10
    seed: int = 0

    def __post_init__(self):
        if self.num_clusters < 1:
            raise ConfigError(f"num_clusters must be >= 1, got {self.num_clusters}")


class Trainer(ABC):
    """
    训练器基类

    子类需要设置 task、hyperparameters_class，并实现 _build_estimator()。
    返回的估计器是 scikit-learn 估计器，作为 Model 的一部分被持久化。
    """

    task: str = ""
    hyperparameters_class: type = TreeHyperparameters
    requires_labels: bool = True

    def __init__(self, hyperparameters: Any | None = None, **params):
        """
        初始化训练器。

        Args:
            hyperparameters: 超参数 dataclass 实例；为 None 时由 params 构造
            **params: 超参数字段（未知字段抛出 ConfigError）
        """
        if hyperparameters is None:
            known = {f.name for f in fields(self.hyperparameters_class)}
            unknown = sorted(set(params) - known)
            if unknown:
                raise ConfigError(f"Unknown hyperparameters for {type(self).__name__}: {unknown}. Known: {sorted(known)}")
            hyperparameters = self.hyperparameters_class(**params)
        elif params:
            raise ValueError("Pass either a hyperparameters object or keyword params, not both")
        self.hyperparameters = hyperparameters

    @property
    def min_rows(self) -> int:
        """训练所需的最少行数。"""
        return 2

    def get_params(self) -> dict[str, Any]:
        return asdict(self.hyperparameters)

    def fit(self, features: np.ndarray, labels: np.ndarray | None = None) -> Any:
        """
        训练模型（每次从头训练）。

        Args:
            features: (行数, 特征宽度) 特征矩阵
            labels: 标签数组（聚类任务可为 None）

        Returns:
            已拟合的 scikit-learn 估计器

        Raises:
            InsufficientData: 行数少于 min_rows，或分类任务类别数不足
        """
        features = np.asarray(features, dtype=np.float64)
        if features.ndim != 2:
            raise ValueError(f"features must be a 2-D matrix, got shape {features.shape}")
        num_rows = features.shape[0]
        if num_rows < self.min_rows:
            raise InsufficientData(f"{type(self).__name__} needs at least {self.min_rows} rows, got {num_rows}")
        if self.requires_labels:
            if labels is None:
                raise ValueError(f"{type(self).__name__} requires labels")
            labels = np.asarray(labels)
            if labels.shape[0] != num_rows:
                raise ValueError(f"features have {num_rows} rows but labels have {labels.shape[0]}")
        self._check_labels(labels)

        estimator = self._build_estimator()
        logger.info(f"Training {type(self).__name__} on {num_rows} rows x {features.shape[1]} features with {self.get_params()}")
        start = time.time()
        if self.requires_labels:
            estimator.fit(features, labels)
        else:
            estimator.fit(features)
        logger.info(f"Training finished in {time.time() - start:.2f}s")
        return estimator

    def _check_labels(self, labels: np.ndarray | None) -> None:
        pass

    @abstractmethod
    def _build_estimator(self) -> Any:
        """构建未拟合的估计器。"""
        pass
