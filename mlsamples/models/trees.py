"""
提升树训练器

- fast_tree_regression: 梯度提升回归树
- fast_tree_binary: 梯度提升二分类树
"""

from __future__ import annotations

import numpy as np
from sklearn.ensemble import GradientBoostingClassifier, GradientBoostingRegressor

from ..errors import InsufficientData
from .base import Trainer, TreeHyperparameters
from .registry import register_trainer


@register_trainer("fast_tree_regression")
class FastTreeRegressionTrainer(Trainer):
    """梯度提升回归树（最小二乘损失）。"""

    task = "regression"
    hyperparameters_class = TreeHyperparameters

    def _build_estimator(self):
        hp = self.hyperparameters
        return GradientBoostingRegressor(
            n_estimators=hp.num_trees,
            max_leaf_nodes=hp.num_leaves,
            min_samples_leaf=hp.min_leaf_size,
            learning_rate=hp.learning_rate,
            random_state=hp.seed,
        )


@register_trainer("fast_tree_binary")
class FastTreeBinaryTrainer(Trainer):
    """梯度提升二分类树（对数损失），标签为 0/1。"""

    task = "binary"
    hyperparameters_class = TreeHyperparameters

    def _check_labels(self, labels):
        classes = np.unique(labels)
        if len(classes) < 2:
            raise InsufficientData(f"Binary classification needs both classes in the training labels, got {classes.tolist()}")
        if not set(classes.tolist()) <= {0, 1}:
            raise ValueError(f"Binary labels must be 0/1, got {classes.tolist()}")

    def _build_estimator(self):
        hp = self.hyperparameters
        return GradientBoostingClassifier(
            n_estimators=hp.num_trees,
            max_leaf_nodes=hp.num_leaves,
            min_samples_leaf=hp.min_leaf_size,
            learning_rate=hp.learning_rate,
            random_state=hp.seed,
        )
