"""
Predictor 类

提供预测功能：
- predict: 单行预测
- predict_batch: 批量预测（惰性生成器，逐行执行，保持输入顺序）

每一行都经过同样的转换链和估计器，批量预测的结果与逐行调用 predict 完全一致。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Mapping, Union

import numpy as np

from ..data import Dataset
from ..model import Model


@dataclass(frozen=True)
class RegressionPrediction:
    score: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BinaryPrediction:
    """二分类预测。

    Attributes:
        predicted_label: 预测标签
        probability: 正类概率
        score: 原始分数（log-odds）
    """

    predicted_label: bool
    probability: float
    score: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MulticlassPrediction:
    """多分类预测。

    Attributes:
        predicted_label: 预测标签（原始取值）
        scores: 各类别概率，与 labels 一一对应
        labels: 类别取值（按 key 顺序）
    """

    predicted_label: Any
    scores: tuple[float, ...]
    labels: tuple[Any, ...]

    def as_dict(self) -> dict[str, Any]:
        return {"predicted_label": self.predicted_label, "scores": list(self.scores), "labels": list(self.labels)}


@dataclass(frozen=True)
class ClusterPrediction:
    """聚类预测。

    Attributes:
        cluster_id: 所属簇编号（从 0 开始）
        distances: 到各簇中心的欧氏距离平方
    """

    cluster_id: int
    distances: tuple[float, ...]

    def as_dict(self) -> dict[str, Any]:
        return {"cluster_id": self.cluster_id, "distances": list(self.distances)}


PredictionResult = Union[RegressionPrediction, BinaryPrediction, MulticlassPrediction, ClusterPrediction]


class Predictor:
    """
    预测器

    Usage:
        predictor = Predictor(model)
        result = predictor.predict({"VendorId": "VTS", ...})
        for result in predictor.predict_batch(dataset):
            ...
    """

    def __init__(self, model: Model):
        """
        初始化预测器。

        Args:
            model: 训练好的模型
        """
        self.model = model

    def predict(self, row: Mapping[str, Any]) -> PredictionResult:
        """
        单行预测。

        Args:
            row: 列名 -> 取值（文本或已类型化的值，标签列可以缺省）

        Returns:
            任务对应的预测结果

        Raises:
            MissingColumn: 缺少转换链需要的列
            SchemaMismatch: 取值无法转换为声明的类型
        """
        dataset = Dataset.from_records([row], self.model.schema)
        return self._predict_one(dataset)

    def predict_batch(self, rows: Dataset | Iterable[Mapping[str, Any]]) -> Iterator[PredictionResult]:
        """
        批量预测（惰性、逐行）。

        Args:
            rows: 数据集，或行记录的可迭代对象

        Yields:
            按输入顺序的预测结果
        """
        if isinstance(rows, Dataset):
            for i in range(len(rows)):
                yield self._predict_one(rows.take([i]))
        else:
            for row in rows:
                yield self.predict(row)

    def _predict_one(self, dataset: Dataset) -> PredictionResult:
        model = self.model
        features = model.features(dataset)
        task = model.task

        if task == "regression":
            return RegressionPrediction(score=float(model.estimator.predict(features)[0]))

        if task == "binary":
            probability = float(model.estimator.predict_proba(features)[0, 1])
            score = float(np.ravel(model.estimator.decision_function(features))[0])
            predicted = bool(model.estimator.predict(features)[0])
            return BinaryPrediction(predicted_label=predicted, probability=probability, score=score)

        if task == "multiclass":
            probabilities = model.estimator.predict_proba(features)[0]
            # 按 key 顺序排列各类别概率
            scores = np.zeros(len(model.labels), dtype=np.float64)
            scores[model.estimator.classes_] = probabilities
            predicted_key = int(model.estimator.classes_[np.argmax(probabilities)])
            return MulticlassPrediction(
                predicted_label=model.decode_labels([predicted_key])[0],
                scores=tuple(float(s) for s in scores),
                labels=tuple(model.labels),
            )

        distances = model.estimator.transform(features)[0] ** 2
        cluster_id = int(model.estimator.predict(features)[0])
        return ClusterPrediction(cluster_id=cluster_id, distances=tuple(float(d) for d in distances))
