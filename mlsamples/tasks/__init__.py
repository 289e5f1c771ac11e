"""
Tasks 子系统

包含：
- run: 完整样例（训练、评估、保存、重新加载、预测）
- train: 训练任务
- evaluate: 评估任务
- predict: 预测任务
- inspect: 检查任务（数据/特征检查）
"""
from .evaluate import evaluate_task
from .inspect import inspect_task
from .predict import predict_task
from .run import RunResult, run_task
from .train import TrainResult, train_task

__all__ = ["run_task", "train_task", "evaluate_task", "predict_task", "inspect_task", "RunResult", "TrainResult"]
