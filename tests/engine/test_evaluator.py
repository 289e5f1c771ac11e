"""
测试 Evaluator

测试：
1. 四种任务的指标
2. 未定义的指标（单一类别的 AUC、单行的 R²）
3. 多分类：排除训练时未见过的标签
4. 错误：空数据集、缺少标签列、任务不一致
"""

import math

import numpy as np
import pytest

from mlsamples.data import Dataset
from mlsamples.engine import BinaryMetrics, ClusteringMetrics, Evaluator, MulticlassMetrics, RegressionMetrics
from mlsamples.errors import ConfigError, InsufficientData, MissingColumn


def test_regression_metrics(taxi_trained):
    """测试回归指标。"""
    print("=" * 60)
    print("测试回归指标")
    print("=" * 60)

    _, model, test = taxi_trained
    metrics = Evaluator("regression").evaluate(model, test)

    assert isinstance(metrics, RegressionMetrics)
    assert metrics.num_rows == len(test) == 20
    assert math.isclose(metrics.rms, math.sqrt(metrics.mean_squared_error))
    assert metrics.mean_absolute_error >= 0.0
    assert metrics.r_squared <= 1.0
    assert set(metrics.as_dict()) == {"r_squared", "rms", "mean_absolute_error", "mean_squared_error", "num_rows"}

    # 评估不修改模型和数据集
    assert Evaluator("regression").evaluate(model, test) == metrics
    assert "Label" not in test

    print(f"  {metrics.as_dict()}")
    print("✓ 回归指标测试通过\n")


def test_regression_single_row_r_squared_undefined(taxi_trained):
    _, model, test = taxi_trained
    metrics = Evaluator("regression").evaluate(model, test.take([0]))
    assert metrics.num_rows == 1
    assert math.isnan(metrics.r_squared)
    assert metrics.rms >= 0.0


def test_binary_metrics(sentiment_trained):
    """测试二分类指标。"""
    print("=" * 60)
    print("测试二分类指标")
    print("=" * 60)

    _, model, test = sentiment_trained
    metrics = Evaluator("binary").evaluate(model, test)

    assert isinstance(metrics, BinaryMetrics)
    assert metrics.num_rows == 15
    for value in (metrics.accuracy, metrics.auc, metrics.f1_score, metrics.precision, metrics.recall):
        assert 0.0 <= value <= 1.0
    assert metrics.log_loss >= 0.0

    print(f"  {metrics.as_dict()}")
    print("✓ 二分类指标测试通过\n")


def test_binary_auc_undefined_for_single_class(sentiment_trained):
    _, model, test = sentiment_trained
    positives = test.take(np.flatnonzero(test.column("Sentiment")))
    metrics = Evaluator("binary").evaluate(model, positives)
    assert math.isnan(metrics.auc)
    assert 0.0 <= metrics.accuracy <= 1.0


def test_multiclass_metrics(issue_trained):
    """测试多分类指标。"""
    print("=" * 60)
    print("测试多分类指标")
    print("=" * 60)

    _, model, test = issue_trained
    metrics = Evaluator("multiclass").evaluate(model, test)

    assert isinstance(metrics, MulticlassMetrics)
    assert metrics.num_rows == 9
    assert metrics.excluded_rows == 0
    assert metrics.micro_accuracy >= 0.6
    assert 0.0 <= metrics.macro_accuracy <= 1.0
    assert metrics.log_loss >= 0.0
    assert metrics.log_loss_reduction <= 1.0

    print(f"  {metrics.as_dict()}")
    print("✓ 多分类指标测试通过\n")


def test_multiclass_excludes_unseen_labels(issue_trained):
    _, model, test = issue_trained
    records = list(test.rows())
    records.append({"ID": "999", "Area": "area-System.Threading", "Title": "deadlock", "Description": "The lock hangs"})
    dataset = Dataset.from_records(records, model.schema)

    metrics = Evaluator("multiclass").evaluate(model, dataset)
    assert metrics.excluded_rows == 1
    assert metrics.num_rows == len(test)

    only_unseen = Dataset.from_records(records[-1:], model.schema)
    with pytest.raises(InsufficientData):
        Evaluator("multiclass").evaluate(model, only_unseen)


def test_clustering_metrics(iris_trained):
    """测试聚类指标。"""
    print("=" * 60)
    print("测试聚类指标")
    print("=" * 60)

    _, model, test = iris_trained
    metrics = Evaluator("clustering").evaluate(model, test)

    assert isinstance(metrics, ClusteringMetrics)
    assert metrics.num_rows == 12
    assert metrics.average_distance >= 0.0
    assert metrics.normalized_mutual_information is not None
    assert 0.0 <= metrics.normalized_mutual_information <= 1.0

    # 没有标签列时不计算 NMI
    unlabeled = test.select(["SepalLength", "SepalWidth", "PetalLength", "PetalWidth"])
    assert Evaluator("clustering").evaluate(model, unlabeled).normalized_mutual_information is None

    print(f"  {metrics.as_dict()}")
    print("✓ 聚类指标测试通过\n")


def test_clustering_single_row_davies_bouldin_undefined(iris_trained):
    _, model, test = iris_trained
    metrics = Evaluator("clustering").evaluate(model, test.take([0]))
    assert math.isnan(metrics.davies_bouldin_index)


def test_evaluate_errors(taxi_trained):
    _, model, test = taxi_trained

    with pytest.raises(InsufficientData):
        Evaluator("regression").evaluate(model, test.take([]))

    without_label = test.select([n for n in test.column_names if n != "FareAmount"])
    with pytest.raises(MissingColumn):
        Evaluator("regression").evaluate(model, without_label)

    with pytest.raises(ConfigError):
        Evaluator("binary").evaluate(model, test)
    with pytest.raises(ConfigError):
        Evaluator("ranking")
