"""
训练器模块

提供：
- Trainer: 训练器基类
- 超参数 dataclass
- 训练器注册表
- 具体训练器（提升树、最大熵多分类、k-means）
"""

from .base import TASK_TYPES, KMeansHyperparameters, LinearHyperparameters, Trainer, TreeHyperparameters
from .clustering import KMeansTrainer
from .linear import MaximumEntropyMulticlassTrainer
from .registry import get_trainer, list_trainers, register_trainer
from .trees import FastTreeBinaryTrainer, FastTreeRegressionTrainer

__all__ = [
    "Trainer",
    "TASK_TYPES",
    "TreeHyperparameters",
    "LinearHyperparameters",
    "KMeansHyperparameters",
    "FastTreeRegressionTrainer",
    "FastTreeBinaryTrainer",
    "MaximumEntropyMulticlassTrainer",
    "KMeansTrainer",
    "get_trainer",
    "list_trainers",
    "register_trainer",
]
