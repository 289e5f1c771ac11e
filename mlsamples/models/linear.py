"""
线性多分类训练器

maximum_entropy_multiclass: L2 正则化的多项逻辑回归（最大熵模型），
标签为 MapValueToKey 产生的整数 key。
"""

from __future__ import annotations

import numpy as np
from sklearn.linear_model import LogisticRegression

from ..errors import InsufficientData
from .base import LinearHyperparameters, Trainer
from .registry import register_trainer


@register_trainer("maximum_entropy_multiclass")
class MaximumEntropyMulticlassTrainer(Trainer):
    """多项逻辑回归。"""

    task = "multiclass"
    hyperparameters_class = LinearHyperparameters

    def _check_labels(self, labels):
        if np.any(labels < 0):
            raise ValueError("Multiclass labels must be non-negative keys")
        classes = np.unique(labels)
        if len(classes) < 2:
            raise InsufficientData(f"Multiclass classification needs at least 2 distinct labels, got {len(classes)}")

    def _build_estimator(self):
        hp = self.hyperparameters
        return LogisticRegression(
            C=1.0 / hp.l2_regularization,
            max_iter=hp.max_iterations,
            random_state=hp.seed,
        )
