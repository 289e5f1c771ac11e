"""
聚类训练器

kmeans: k-means 聚类，预测时输出簇编号和到各簇中心的欧氏距离平方。
"""

from __future__ import annotations

from sklearn.cluster import KMeans

from .base import KMeansHyperparameters, Trainer
from .registry import register_trainer


@register_trainer("kmeans")
class KMeansTrainer(Trainer):
    """k-means 聚类（k-means++ 初始化）。"""

    task = "clustering"
    hyperparameters_class = KMeansHyperparameters
    requires_labels = False

    @property
    def min_rows(self) -> int:
        return max(2, self.hyperparameters.num_clusters)

    def _build_estimator(self):
        hp = self.hyperparameters
        return KMeans(
            n_clusters=hp.num_clusters,
            max_iter=hp.max_iterations,
            n_init=hp.num_init,
            random_state=hp.seed,
        )
