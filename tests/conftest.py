"""
pytest 配置和共享 fixtures

所有数据文件都在临时目录中按固定种子合成，配置文件使用与 configs/ 相同的格式。
"""

import os
import shutil
import sys
import tempfile
from pathlib import Path

# 添加项目根目录到路径（以便 conftest 可以导入项目模块）
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.environ["PYTHONPATH"] = str(project_root) + os.pathsep + os.environ.get("PYTHONPATH", "")

import numpy as np  # noqa: E402
import pytest  # noqa: E402
import yaml  # noqa: E402

from mlsamples.data import Schema  # noqa: E402
from mlsamples.pipeline import PipelineOrchestrator  # noqa: E402

TAXI_COLUMNS = [
    {"name": "VendorId", "type": "category", "index": 0},
    {"name": "RateCode", "type": "category", "index": 1},
    {"name": "PassengerCount", "type": "float", "index": 2},
    {"name": "TripTime", "type": "float", "index": 3},
    {"name": "TripDistance", "type": "float", "index": 4},
    {"name": "PaymentType", "type": "category", "index": 5},
    {"name": "FareAmount", "type": "float", "index": 6},
]

SENTIMENT_COLUMNS = [
    {"name": "SentimentText", "type": "text", "index": 0},
    {"name": "Sentiment", "type": "boolean", "index": 1},
]

ISSUE_COLUMNS = [
    {"name": "ID", "type": "text", "index": 0},
    {"name": "Area", "type": "category", "index": 1},
    {"name": "Title", "type": "text", "index": 2},
    {"name": "Description", "type": "text", "index": 3},
]

IRIS_COLUMNS = [
    {"name": "SepalLength", "type": "float", "index": 0},
    {"name": "SepalWidth", "type": "float", "index": 1},
    {"name": "PetalLength", "type": "float", "index": 2},
    {"name": "PetalWidth", "type": "float", "index": 3},
    {"name": "FlowerType", "type": "category", "index": 4},
]

_POSITIVE = ["great", "love", "delicious", "amazing", "wonderful", "friendly"]
_NEGATIVE = ["bad", "horrible", "awful", "terrible", "cold", "rude"]
_NOUNS = ["food", "service", "steak", "spaghetti", "place", "staff"]

_ISSUE_AREAS = {
    "area-System.Net": (["socket", "http", "connection", "dns"], "Request fails when the {} times out"),
    "area-System.IO": (["file", "stream", "path", "directory"], "Reading the {} throws an exception"),
    "area-Infrastructure": (["build", "ci", "pipeline", "package"], "The {} job is broken on linux"),
}


def write_yaml(path, config):
    """把配置字典写成 YAML 文件。"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config, f, sort_keys=False)
    return path


def write_lines(path, lines):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for line in lines:
            f.write(line + "\n")
    return path


def taxi_lines(num_rows, seed):
    rng = np.random.default_rng(seed)
    lines = []
    for _ in range(num_rows):
        vendor = ["VTS", "CMT"][rng.integers(0, 2)]
        rate = ["1", "2"][rng.integers(0, 2)]
        passengers = int(rng.integers(1, 5))
        time = int(rng.integers(100, 2000))
        distance = round(float(rng.uniform(0.5, 10.0)), 2)
        payment = ["CRD", "CSH"][rng.integers(0, 2)]
        fare = round(2.5 + 2.0 * distance + 0.01 * time + (3.0 if rate == "2" else 0.0), 2)
        lines.append(f"{vendor},{rate},{passengers},{time},{distance},{payment},{fare}")
    return lines


def sentiment_lines(num_rows):
    lines = []
    for i in range(num_rows):
        noun = _NOUNS[i % len(_NOUNS)]
        if i % 2 == 0:
            lines.append(f"The {noun} was {_POSITIVE[i % len(_POSITIVE)]}\t1")
        else:
            lines.append(f"The {noun} was {_NEGATIVE[i % len(_NEGATIVE)]}\t0")
    return lines


def issue_lines(num_rows, start_id=0):
    lines = ["ID\tArea\tTitle\tDescription"]
    areas = list(_ISSUE_AREAS)
    for i in range(num_rows):
        area = areas[i % len(areas)]
        words, template = _ISSUE_AREAS[area]
        word = words[i % len(words)]
        lines.append(f"{start_id + i}\t{area}\t{word} {words[(i + 1) % len(words)]} problem\t{template.format(word)}")
    return lines


def iris_lines(num_rows_per_class, seed):
    rng = np.random.default_rng(seed)
    centers = {
        "Iris-setosa": (5.0, 3.4, 1.5, 0.2),
        "Iris-versicolor": (5.9, 2.8, 4.3, 1.3),
        "Iris-virginica": (6.6, 3.0, 5.6, 2.0),
    }
    lines = []
    for name, center in centers.items():
        for _ in range(num_rows_per_class):
            values = [round(float(c + rng.normal(0, 0.1)), 2) for c in center]
            lines.append(",".join(str(v) for v in values) + f",{name}")
    return lines


@pytest.fixture
def temp_dir():
    """创建临时目录。"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def taxi_schema():
    return Schema.from_config(TAXI_COLUMNS)


@pytest.fixture
def iris_schema():
    return Schema.from_config(IRIS_COLUMNS)


@pytest.fixture
def taxi_files(temp_dir):
    """出租车费用训练/测试文件（带表头的 CSV）。"""
    header = "vendor_id,rate_code,passenger_count,trip_time_in_secs,trip_distance,payment_type,fare_amount"
    train = write_lines(temp_dir / "data" / "taxi-fare-train.csv", [header] + taxi_lines(80, seed=1))
    test = write_lines(temp_dir / "data" / "taxi-fare-test.csv", [header] + taxi_lines(20, seed=2))
    return train, test


@pytest.fixture
def sentiment_file(temp_dir):
    """情感分析数据（无表头的 TSV）。"""
    return write_lines(temp_dir / "data" / "yelp_labelled.txt", sentiment_lines(60))


@pytest.fixture
def issue_files(temp_dir):
    """GitHub issue 训练/测试文件（带表头的 TSV）。"""
    train = write_lines(temp_dir / "data" / "issues_train.tsv", issue_lines(36))
    test = write_lines(temp_dir / "data" / "issues_test.tsv", issue_lines(9, start_id=100))
    return train, test


@pytest.fixture
def iris_file(temp_dir):
    """鸢尾花数据（无表头的 CSV）。"""
    return write_lines(temp_dir / "data" / "iris.data", iris_lines(20, seed=3))


@pytest.fixture
def taxi_config(temp_dir, taxi_files):
    """回归样例配置（写入 temp_dir/configs，数据路径相对于配置文件）。"""
    config = {
        "name": "taxi_fare",
        "task": "regression",
        "seed": 0,
        "data": {
            "train_path": "../data/taxi-fare-train.csv",
            "test_path": "../data/taxi-fare-test.csv",
            "separator": ",",
            "has_header": True,
            "columns": TAXI_COLUMNS,
        },
        "label": "Label",
        "features": [
            {"op": "copy", "input": "FareAmount", "output": "Label"},
            {"op": "one_hot", "input": "VendorId"},
            {"op": "one_hot", "input": "RateCode"},
            {"op": "one_hot", "input": "PaymentType"},
            {
                "op": "concatenate",
                "inputs": ["VendorId", "RateCode", "PassengerCount", "TripTime", "TripDistance", "PaymentType"],
                "output": "Features",
            },
        ],
        "trainer": {"name": "fast_tree_regression", "params": {"num_trees": 20, "num_leaves": 4, "min_leaf_size": 2}},
        "model_path": "../models/taxi_fare.joblib",
        "samples": [
            {"VendorId": "VTS", "RateCode": "1", "PassengerCount": 1, "TripTime": 1140, "TripDistance": 3.75, "PaymentType": "CRD"},
            {"VendorId": "CMT", "RateCode": "3", "PassengerCount": 2, "TripTime": 1140, "TripDistance": 1.75, "PaymentType": "CRD"},
        ],
    }
    return write_yaml(temp_dir / "configs" / "taxi_fare.yaml", config)


@pytest.fixture
def sentiment_config(temp_dir, sentiment_file):
    """二分类样例配置。"""
    config = {
        "name": "sentiment",
        "task": "binary",
        "seed": 0,
        "data": {
            "train_path": "../data/yelp_labelled.txt",
            "test_fraction": 0.25,
            "separator": "tab",
            "has_header": False,
            "allow_quoting": False,
            "columns": SENTIMENT_COLUMNS,
        },
        "label": "Sentiment",
        "display_column": "SentimentText",
        "features": [{"op": "featurize_text", "input": "SentimentText", "output": "Features"}],
        "trainer": {"name": "fast_tree_binary", "params": {"num_trees": 20, "num_leaves": 4, "min_leaf_size": 2}},
        "model_path": "../models/sentiment.joblib",
        "samples": [
            {"SentimentText": "This was a very bad steak"},
            {"SentimentText": "This was a horrible meal"},
            {"SentimentText": "I love this spaghetti"},
        ],
    }
    return write_yaml(temp_dir / "configs" / "sentiment.yaml", config)


@pytest.fixture
def issue_config(temp_dir, issue_files):
    """多分类样例配置。"""
    config = {
        "name": "issue_classification",
        "task": "multiclass",
        "seed": 0,
        "data": {
            "train_path": "../data/issues_train.tsv",
            "test_path": "../data/issues_test.tsv",
            "separator": "tab",
            "has_header": True,
            "columns": ISSUE_COLUMNS,
        },
        "label": "Label",
        "display_column": "Title",
        "features": [
            {"op": "featurize_text", "input": "Title", "output": "TitleFeaturized"},
            {"op": "featurize_text", "input": "Description", "output": "DescriptionFeaturized"},
            {"op": "concatenate", "inputs": ["TitleFeaturized", "DescriptionFeaturized"], "output": "Features"},
            {"op": "map_value_to_key", "input": "Area", "output": "Label"},
        ],
        "trainer": {"name": "maximum_entropy_multiclass", "params": {"l2_regularization": 0.1, "max_iterations": 500}},
        "model_path": "../models/issue_classification.joblib",
        "samples": [
            {"Title": "socket http problem", "Description": "Request fails when the socket times out"},
            {"Title": "file stream problem", "Description": "Reading the file throws an exception"},
        ],
    }
    return write_yaml(temp_dir / "configs" / "issue_classification.yaml", config)


@pytest.fixture
def iris_config(temp_dir, iris_file):
    """聚类样例配置。"""
    config = {
        "name": "iris_clustering",
        "task": "clustering",
        "seed": 0,
        "data": {
            "train_path": "../data/iris.data",
            "test_fraction": 0.2,
            "separator": ",",
            "has_header": False,
            "columns": IRIS_COLUMNS,
        },
        "label": "Label",
        "features": [
            {"op": "map_value_to_key", "input": "FlowerType", "output": "Label"},
            {"op": "concatenate", "inputs": ["SepalLength", "SepalWidth", "PetalLength", "PetalWidth"], "output": "Features"},
        ],
        "trainer": {"name": "kmeans", "params": {"num_clusters": 3}},
        "model_path": "../models/iris_clustering.joblib",
        "samples": [
            {"SepalLength": 5.1, "SepalWidth": 3.5, "PetalLength": 1.4, "PetalWidth": 0.2},
            {"SepalLength": 6.7, "SepalWidth": 3.0, "PetalLength": 5.7, "PetalWidth": 2.1},
        ],
    }
    return write_yaml(temp_dir / "configs" / "iris_clustering.yaml", config)


def _trained(config_path):
    orchestrator = PipelineOrchestrator(config_path)
    train_dataset, test_dataset = orchestrator.load_data()
    model = orchestrator.train(train_dataset)
    return orchestrator, model, test_dataset


@pytest.fixture
def taxi_trained(taxi_config):
    """(orchestrator, 训练好的回归模型, 测试集)"""
    return _trained(taxi_config)


@pytest.fixture
def sentiment_trained(sentiment_config):
    return _trained(sentiment_config)


@pytest.fixture
def issue_trained(issue_config):
    return _trained(issue_config)


@pytest.fixture
def iris_trained(iris_config):
    return _trained(iris_config)
