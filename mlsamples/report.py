"""
控制台报告

以样例的风格输出评估指标和预测结果。所有输出都经过 logger，
返回生成的文本行以便调用方复用（例如写入文件或测试）。
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from .config import logger
from .engine import (
    BinaryMetrics,
    BinaryPrediction,
    ClusteringMetrics,
    ClusterPrediction,
    Metrics,
    MulticlassMetrics,
    MulticlassPrediction,
    PredictionResult,
    RegressionMetrics,
    RegressionPrediction,
)


def _fmt(value: float | None, digits: int = 3) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:.{digits}f}"


def _pct(value: float) -> str:
    if math.isnan(value):
        return "n/a"
    return f"{value:.2%}"


def metrics_lines(name: str, metrics: Metrics) -> list[str]:
    """把指标格式化为报告文本行。"""
    lines = ["*" * 80]
    if isinstance(metrics, RegressionMetrics):
        lines.append(f"*       Metrics for {name} regression model")
        lines.append("*" + "-" * 79)
        lines.append(f"*       R2 Score:      {_fmt(metrics.r_squared, 2)}")
        lines.append(f"*       RMS loss:      {_fmt(metrics.rms, 2)}")
        lines.append(f"*       MAE:           {_fmt(metrics.mean_absolute_error, 2)}")
    elif isinstance(metrics, BinaryMetrics):
        lines.append(f"*       Metrics for {name} binary classification model")
        lines.append("*" + "-" * 79)
        lines.append(f"*       Accuracy:      {_pct(metrics.accuracy)}")
        lines.append(f"*       Auc:           {_pct(metrics.auc)}")
        lines.append(f"*       F1Score:       {_pct(metrics.f1_score)}")
        lines.append(f"*       LogLoss:       {_fmt(metrics.log_loss)}")
    elif isinstance(metrics, MulticlassMetrics):
        lines.append(f"*       Metrics for {name} multi-class classification model")
        lines.append("*" + "-" * 79)
        lines.append(f"*       MicroAccuracy:    {_fmt(metrics.micro_accuracy)}")
        lines.append(f"*       MacroAccuracy:    {_fmt(metrics.macro_accuracy)}")
        lines.append(f"*       LogLoss:          {_fmt(metrics.log_loss)}")
        lines.append(f"*       LogLossReduction: {_fmt(metrics.log_loss_reduction)}")
    elif isinstance(metrics, ClusteringMetrics):
        lines.append(f"*       Metrics for {name} clustering model")
        lines.append("*" + "-" * 79)
        lines.append(f"*       AverageDistance:     {_fmt(metrics.average_distance)}")
        lines.append(f"*       DaviesBouldinIndex:  {_fmt(metrics.davies_bouldin_index)}")
        lines.append(f"*       NMI:                 {_fmt(metrics.normalized_mutual_information)}")
    else:
        raise TypeError(f"Unsupported metrics type: {type(metrics).__name__}")
    lines.append(f"*       Rows evaluated: {metrics.num_rows}")
    lines.append("*" * 80)
    return lines


def prediction_line(prediction: PredictionResult, row: Mapping[str, Any] | None = None, text_column: str | None = None) -> str:
    """把单个预测结果格式化为一行文本。

    Args:
        prediction: 预测结果
        row: 输入行（给出 text_column 时用于回显输入文本）
        text_column: 需要回显的输入列
    """
    prefix = ""
    if row is not None and text_column and text_column in row:
        prefix = f"{text_column}: {row[text_column]} | "

    if isinstance(prediction, RegressionPrediction):
        return f"{prefix}Predicted score: {prediction.score:.4f}"
    if isinstance(prediction, BinaryPrediction):
        sentiment = "Positive" if prediction.predicted_label else "Negative"
        return f"{prefix}Prediction: {sentiment} | Probability: {prediction.probability:.4f}"
    if isinstance(prediction, MulticlassPrediction):
        return f"{prefix}Predicted label: {prediction.predicted_label} | Score: {max(prediction.scores):.4f}"
    if isinstance(prediction, ClusterPrediction):
        distances = " ".join(f"{d:.4f}" for d in prediction.distances)
        return f"{prefix}Predicted cluster: {prediction.cluster_id} | Distances: {distances}"
    raise TypeError(f"Unsupported prediction type: {type(prediction).__name__}")


def report_metrics(name: str, metrics: Metrics) -> list[str]:
    lines = metrics_lines(name, metrics)
    for line in lines:
        logger.info(line)
    return lines


def report_predictions(title: str, predictions: list[PredictionResult], rows: list[Mapping[str, Any]] | None = None, text_column: str | None = None) -> list[str]:
    """输出一组预测结果。"""
    lines = [f"=============== {title} ==============="]
    for i, prediction in enumerate(predictions):
        row = rows[i] if rows is not None and i < len(rows) else None
        lines.append(prediction_line(prediction, row, text_column))
    lines.append("=============== End of predictions ===============")
    for line in lines:
        logger.info(line)
    return lines
