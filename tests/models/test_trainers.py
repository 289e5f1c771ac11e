"""
测试训练器

测试：
1. 注册表（名称、工厂函数、未知名称）
2. 超参数校验（未知字段、非法取值）
3. 每个训练器的训练结果和确定性
4. 行数 / 类别数不足时抛出 InsufficientData
"""

import numpy as np
import pytest

from mlsamples.errors import ConfigError, InsufficientData
from mlsamples.models import (
    FastTreeBinaryTrainer,
    FastTreeRegressionTrainer,
    KMeansTrainer,
    MaximumEntropyMulticlassTrainer,
    Trainer,
    TreeHyperparameters,
    get_trainer,
    list_trainers,
    register_trainer,
)
from mlsamples.models.registry import TrainerRegistry


@pytest.fixture
def regression_data():
    rng = np.random.default_rng(0)
    features = rng.uniform(0, 10, size=(60, 3))
    labels = 2.0 * features[:, 0] + features[:, 1]
    return features, labels


@pytest.fixture
def blob_data():
    rng = np.random.default_rng(1)
    centers = np.array([[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
    features = np.vstack([c + rng.normal(0, 0.3, size=(20, 2)) for c in centers])
    labels = np.repeat([0, 1, 2], 20)
    return features, labels


def test_registry():
    """测试训练器注册表。"""
    print("=" * 60)
    print("测试训练器注册表")
    print("=" * 60)

    names = list_trainers()
    for name in ("fast_tree_regression", "fast_tree_binary", "maximum_entropy_multiclass", "kmeans"):
        assert name in names

    trainer = get_trainer("fast_tree_regression", num_trees=5)
    assert isinstance(trainer, FastTreeRegressionTrainer)
    assert trainer.hyperparameters.num_trees == 5
    assert trainer.task == "regression"

    assert get_trainer("kmeans").task == "clustering"
    assert get_trainer("maximum_entropy_multiclass").task == "multiclass"
    assert get_trainer("fast_tree_binary").task == "binary"

    with pytest.raises(ValueError):
        get_trainer("sdca_regression")

    print(f"  已注册: {names}")
    print("✓ 注册表测试通过\n")


def test_register_custom_trainer():
    @register_trainer("constant_regression")
    class ConstantTrainer(Trainer):
        task = "regression"

        def _build_estimator(self):
            from sklearn.dummy import DummyRegressor

            return DummyRegressor()

    try:
        assert "constant_regression" in list_trainers()
        assert isinstance(get_trainer("constant_regression"), ConstantTrainer)
        with pytest.raises(TypeError):
            TrainerRegistry().register("bad", object)
    finally:
        TrainerRegistry().unregister("constant_regression")
    assert "constant_regression" not in list_trainers()


def test_hyperparameter_validation():
    with pytest.raises(ConfigError):
        FastTreeRegressionTrainer(num_tress=10)
    with pytest.raises(ConfigError):
        FastTreeRegressionTrainer(num_leaves=1)
    with pytest.raises(ConfigError):
        MaximumEntropyMulticlassTrainer(l2_regularization=0.0)
    with pytest.raises(ConfigError):
        KMeansTrainer(num_clusters=0)
    with pytest.raises(ValueError):
        FastTreeRegressionTrainer(TreeHyperparameters(), num_trees=3)

    trainer = FastTreeBinaryTrainer(TreeHyperparameters(num_trees=7))
    assert trainer.get_params()["num_trees"] == 7


def test_fast_tree_regression(regression_data):
    """测试提升树回归，相同 seed 结果一致。"""
    print("=" * 60)
    print("测试 fast_tree_regression")
    print("=" * 60)

    features, labels = regression_data
    trainer = FastTreeRegressionTrainer(num_trees=30, num_leaves=8, min_leaf_size=2, seed=3)
    estimator = trainer.fit(features, labels)
    predictions = estimator.predict(features)
    assert predictions.shape == (60,)
    assert np.mean(np.abs(predictions - labels)) < np.std(labels)

    again = FastTreeRegressionTrainer(num_trees=30, num_leaves=8, min_leaf_size=2, seed=3).fit(features, labels)
    assert np.array_equal(again.predict(features), predictions)

    print("✓ fast_tree_regression 测试通过\n")


def test_fast_tree_binary(regression_data):
    features, values = regression_data
    labels = (values > np.median(values)).astype(np.int64)
    estimator = FastTreeBinaryTrainer(num_trees=20, num_leaves=4, min_leaf_size=2).fit(features, labels)
    assert list(estimator.classes_) == [0, 1]
    assert estimator.predict_proba(features).shape == (60, 2)

    with pytest.raises(InsufficientData):
        FastTreeBinaryTrainer().fit(features, np.ones(60, dtype=np.int64))
    with pytest.raises(ValueError):
        FastTreeBinaryTrainer().fit(features, np.arange(60) % 3)


def test_maximum_entropy_multiclass(blob_data):
    features, labels = blob_data
    estimator = MaximumEntropyMulticlassTrainer(l2_regularization=0.1).fit(features, labels)
    assert list(estimator.classes_) == [0, 1, 2]
    assert np.mean(estimator.predict(features) == labels) > 0.9

    with pytest.raises(InsufficientData):
        MaximumEntropyMulticlassTrainer().fit(features, np.zeros(60, dtype=np.int64))
    with pytest.raises(ValueError):
        MaximumEntropyMulticlassTrainer().fit(features, labels - 1)


def test_kmeans(blob_data):
    """测试 k-means，相同 seed 的簇分配一致。"""
    features, _ = blob_data
    trainer = KMeansTrainer(num_clusters=3, seed=0)
    assert trainer.min_rows == 3

    estimator = trainer.fit(features)
    assert estimator.cluster_centers_.shape == (3, 2)
    assigned = estimator.predict(features)
    assert len(np.unique(assigned)) == 3

    again = KMeansTrainer(num_clusters=3, seed=0).fit(features)
    assert np.array_equal(again.predict(features), assigned)

    with pytest.raises(InsufficientData):
        KMeansTrainer(num_clusters=5).fit(features[:4])


def test_insufficient_rows():
    with pytest.raises(InsufficientData):
        FastTreeRegressionTrainer().fit(np.ones((1, 2)), np.ones(1))
    with pytest.raises(InsufficientData):
        FastTreeRegressionTrainer().fit(np.empty((0, 2)), np.empty(0))
    with pytest.raises(ValueError):
        FastTreeRegressionTrainer().fit(np.ones((3, 2)), np.ones(2))
    with pytest.raises(ValueError):
        FastTreeRegressionTrainer().fit(np.ones(3), np.ones(3))
