"""
Evaluator 类

提供评估功能，支持：
- 回归任务（R²、RMS、MAE、MSE）
- 二分类任务（准确率、AUC、F1、精确率、召回率、对数损失）
- 多分类任务（micro/macro 准确率、对数损失、对数损失下降率）
- 聚类任务（平均距离、Davies-Bouldin 指数、归一化互信息）

评估是模型和数据集的纯函数，不修改任何一方。
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Union

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    davies_bouldin_score,
    f1_score,
    log_loss,
    mean_absolute_error,
    mean_squared_error,
    normalized_mutual_info_score,
    precision_score,
    r2_score,
    recall_score,
    roc_auc_score,
)

from ..config import logger
from ..data import Dataset
from ..data.features import MapValueToKey
from ..data.logger import warn_n_times
from ..errors import ConfigError, InsufficientData
from ..model import Model
from ..models import TASK_TYPES


@dataclass(frozen=True)
class RegressionMetrics:
    r_squared: float
    rms: float
    mean_absolute_error: float
    mean_squared_error: float
    num_rows: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BinaryMetrics:
    accuracy: float
    auc: float
    f1_score: float
    precision: float
    recall: float
    log_loss: float
    num_rows: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MulticlassMetrics:
    """多分类指标。

    Attributes:
        micro_accuracy: 所有样本的准确率
        macro_accuracy: 各类别召回率的平均值
        log_loss: 对数损失
        log_loss_reduction: 相对于先验分布的对数损失下降率
        num_rows: 参与评估的行数
        excluded_rows: 标签未在训练集中出现而被排除的行数
    """

    micro_accuracy: float
    macro_accuracy: float
    log_loss: float
    log_loss_reduction: float
    num_rows: int
    excluded_rows: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClusteringMetrics:
    average_distance: float
    davies_bouldin_index: float
    normalized_mutual_information: float | None
    num_rows: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


Metrics = Union[RegressionMetrics, BinaryMetrics, MulticlassMetrics, ClusteringMetrics]


class Evaluator:
    """
    评估器

    Usage:
        metrics = Evaluator("regression").evaluate(model, test_dataset)
    """

    def __init__(self, task_type: str):
        """
        初始化评估器。

        Args:
            task_type: 任务类型（'regression', 'binary', 'multiclass', 'clustering'）
        """
        if task_type not in TASK_TYPES:
            raise ConfigError(f"task_type must be one of {TASK_TYPES}, got '{task_type}'")
        self.task_type = task_type

    def evaluate(self, model: Model, dataset: Dataset) -> Metrics:
        """
        评估模型。

        Args:
            model: 训练好的模型
            dataset: 评估数据集（必须包含标签列，聚类任务除外）

        Returns:
            任务对应的指标对象

        Raises:
            InsufficientData: 数据集为空
            MissingColumn: 缺少标签列或特征输入列
        """
        if model.task != self.task_type:
            raise ConfigError(f"Evaluator for {self.task_type} cannot evaluate a {model.task} model")
        if dataset.is_empty:
            raise InsufficientData("Cannot evaluate on an empty dataset")

        if self.task_type == "regression":
            metrics = self._evaluate_regression(model, dataset)
        elif self.task_type == "binary":
            metrics = self._evaluate_binary(model, dataset)
        elif self.task_type == "multiclass":
            metrics = self._evaluate_multiclass(model, dataset)
        else:
            metrics = self._evaluate_clustering(model, dataset)

        logger.info(f"Evaluated {self.task_type} model on {len(dataset)} rows: {metrics.as_dict()}")
        return metrics

    def _evaluate_regression(self, model: Model, dataset: Dataset) -> RegressionMetrics:
        labels = model.encode_labels(dataset)
        predictions = model.estimator.predict(model.features(dataset))
        mse = float(mean_squared_error(labels, predictions))
        r2 = float(r2_score(labels, predictions)) if len(labels) > 1 else math.nan
        return RegressionMetrics(
            r_squared=r2,
            rms=math.sqrt(mse),
            mean_absolute_error=float(mean_absolute_error(labels, predictions)),
            mean_squared_error=mse,
            num_rows=len(labels),
        )

    def _evaluate_binary(self, model: Model, dataset: Dataset) -> BinaryMetrics:
        labels = model.encode_labels(dataset)
        features = model.features(dataset)
        probabilities = model.estimator.predict_proba(features)[:, 1]
        predictions = model.estimator.predict(features)

        if len(np.unique(labels)) < 2:
            warn_n_times("AUC is undefined when the evaluation set contains a single class")
            auc = math.nan
        else:
            auc = float(roc_auc_score(labels, probabilities))

        return BinaryMetrics(
            accuracy=float(accuracy_score(labels, predictions)),
            auc=auc,
            f1_score=float(f1_score(labels, predictions, zero_division=0)),
            precision=float(precision_score(labels, predictions, zero_division=0)),
            recall=float(recall_score(labels, predictions, zero_division=0)),
            log_loss=float(log_loss(labels, probabilities, labels=[0, 1])),
            num_rows=len(labels),
        )

    def _evaluate_multiclass(self, model: Model, dataset: Dataset) -> MulticlassMetrics:
        keys = model.encode_labels(dataset)
        known = keys != MapValueToKey.MISSING_KEY
        excluded = int(np.sum(~known))
        if excluded:
            logger.warning(f"Excluding {excluded} rows whose label was not seen during training")
        if not np.any(known):
            raise InsufficientData("No evaluation rows have a label seen during training")
        if excluded:
            dataset = dataset.take(np.flatnonzero(known))
            keys = keys[known]

        classes = model.estimator.classes_
        probabilities = model.estimator.predict_proba(model.features(dataset))
        predictions = classes[np.argmax(probabilities, axis=1)]
        loss = float(log_loss(keys, probabilities, labels=classes))

        # 先验：评估集标签分布的熵
        _, counts = np.unique(keys, return_counts=True)
        prior = counts / counts.sum()
        prior_loss = float(-np.sum(prior * np.log(prior)))
        reduction = (prior_loss - loss) / prior_loss if prior_loss > 0 else math.nan

        return MulticlassMetrics(
            micro_accuracy=float(accuracy_score(keys, predictions)),
            macro_accuracy=float(balanced_accuracy_score(keys, predictions)),
            log_loss=loss,
            log_loss_reduction=float(reduction),
            num_rows=len(keys),
            excluded_rows=excluded,
        )

    def _evaluate_clustering(self, model: Model, dataset: Dataset) -> ClusteringMetrics:
        features = model.features(dataset)
        assigned = model.estimator.predict(features)
        distances = model.estimator.transform(features) ** 2
        average_distance = float(np.mean(np.min(distances, axis=1)))

        num_assigned = len(np.unique(assigned))
        if 2 <= num_assigned <= len(assigned) - 1:
            dbi = float(davies_bouldin_score(features, assigned))
        else:
            warn_n_times(
                f"Davies-Bouldin index is undefined for {num_assigned} clusters over {len(assigned)} rows",
                key="undefined-davies-bouldin",
            )
            dbi = math.nan

        nmi = None
        if model.has_labels(dataset):
            truth = model.raw_labels(dataset)
            nmi = float(normalized_mutual_info_score(np.asarray(truth).astype(str), assigned))

        return ClusteringMetrics(
            average_distance=average_distance,
            davies_bouldin_index=dbi,
            normalized_mutual_information=nmi,
            num_rows=len(assigned),
        )
