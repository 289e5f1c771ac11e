"""
Engine 模块

提供：
- Evaluator: 评估器
- Predictor: 预测器
- 指标与预测结果类型
"""
from .evaluator import BinaryMetrics, ClusteringMetrics, Evaluator, Metrics, MulticlassMetrics, RegressionMetrics
from .predictor import (
    BinaryPrediction,
    ClusterPrediction,
    MulticlassPrediction,
    PredictionResult,
    Predictor,
    RegressionPrediction,
)

__all__ = [
    "Evaluator",
    "Predictor",
    "Metrics",
    "RegressionMetrics",
    "BinaryMetrics",
    "MulticlassMetrics",
    "ClusteringMetrics",
    "PredictionResult",
    "RegressionPrediction",
    "BinaryPrediction",
    "MulticlassPrediction",
    "ClusterPrediction",
]
