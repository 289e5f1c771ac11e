"""
Pipeline 配置

每个样例由一个 YAML 文件描述（见 configs/）：

    name: taxi_fare
    task: regression
    seed: 0
    data:
      train_path: data/taxi-fare-train.csv
      test_path: data/taxi-fare-test.csv
      separator: ","
      has_header: true
      columns:
        - {name: VendorId, type: category, index: 0}
    label: Label
    features:
      - {op: copy, input: FareAmount, output: Label}
      - {op: one_hot, input: VendorId}
      - {op: concatenate, inputs: [VendorId, ...], output: Features}
    trainer:
      name: fast_tree_regression
      params: {num_trees: 100}
    model_path: models/taxi_fare.joblib
    samples:
      - {VendorId: VTS, ...}
    tracking:
      enabled: false

相对路径以配置文件所在目录为基准解析。
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config import MODELS_DIR, logger
from ..data import Schema, resolve_separator
from ..errors import ConfigError
from ..models import TASK_TYPES

__all__ = ["PipelineConfig", "DataSettings", "TrainerSettings", "TrackingSettings"]


def _resolve_path(value: str | Path | None, base_dir: Path | None) -> Path | None:
    if value is None or value == "":
        return None
    path = Path(value).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _require_mapping(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class DataSettings:
    """数据配置。

    Attributes:
        train_path: 训练数据文件
        test_path: 测试数据文件（为 None 时按 test_fraction 从训练数据划分）
        test_fraction: 测试集比例
        separator: 分隔符
        has_header: 文件是否带表头
        allow_quoting: 是否允许带引号的字段
        schema: 列定义
    """

    train_path: Path
    schema: Schema
    test_path: Path | None = None
    test_fraction: float = 0.2
    separator: str = ","
    has_header: bool = False
    allow_quoting: bool = True

    @classmethod
    def from_dict(cls, config: dict[str, Any], base_dir: Path | None = None) -> DataSettings:
        config = _require_mapping(config, "data")
        if not config.get("train_path"):
            raise ConfigError("data.train_path must be specified")
        columns = config.get("columns")
        if not columns or not isinstance(columns, list):
            raise ConfigError("data.columns must be a non-empty list")
        test_fraction = float(config.get("test_fraction", 0.2))
        if not 0.0 < test_fraction < 1.0:
            raise ConfigError(f"data.test_fraction must be in (0, 1), got {test_fraction}")
        try:
            schema = Schema.from_config(columns)
            separator = resolve_separator(str(config.get("separator", ",")))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid data settings: {e}") from e
        return cls(
            train_path=_resolve_path(config["train_path"], base_dir),
            schema=schema,
            test_path=_resolve_path(config.get("test_path"), base_dir),
            test_fraction=test_fraction,
            separator=separator,
            has_header=bool(config.get("has_header", False)),
            allow_quoting=bool(config.get("allow_quoting", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "train_path": str(self.train_path),
            "test_path": str(self.test_path) if self.test_path else None,
            "test_fraction": self.test_fraction,
            "separator": self.separator,
            "has_header": self.has_header,
            "allow_quoting": self.allow_quoting,
            "columns": self.schema.to_config(),
        }


@dataclass
class TrainerSettings:
    """训练器配置（名称 + 超参数）。"""

    name: str
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> TrainerSettings:
        config = _require_mapping(config, "trainer")
        if not config.get("name"):
            raise ConfigError("trainer.name must be specified")
        return cls(name=str(config["name"]), params=dict(_require_mapping(config.get("params"), "trainer.params")))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "params": dict(self.params)}


@dataclass
class TrackingSettings:
    """MLflow 跟踪配置。"""

    enabled: bool = False
    experiment_name: str | None = None
    tracking_uri: str | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any] | None) -> TrackingSettings:
        config = _require_mapping(config, "tracking")
        return cls(
            enabled=bool(config.get("enabled", False)),
            experiment_name=config.get("experiment_name"),
            tracking_uri=config.get("tracking_uri"),
        )


@dataclass
class PipelineConfig:
    """一个样例的完整配置。"""

    name: str
    task: str
    data: DataSettings
    trainer: TrainerSettings
    features: list[dict[str, Any]]
    label: str | None = None
    feature_column: str = "Features"
    display_column: str | None = None
    seed: int = 0
    model_path: Path | None = None
    samples: list[dict[str, Any]] = field(default_factory=list)
    tracking: TrackingSettings = field(default_factory=TrackingSettings)
    config_path: Path | None = None

    def __post_init__(self):
        if self.task not in TASK_TYPES:
            raise ConfigError(f"task must be one of {TASK_TYPES}, got '{self.task}'")
        if self.task != "clustering" and not self.label:
            raise ConfigError(f"'label' must be specified for {self.task} task")
        if not self.features:
            raise ConfigError("'features' must be a non-empty list of transform steps")
        for i, step in enumerate(self.features):
            if not isinstance(step, dict) or "op" not in step:
                raise ConfigError(f"features[{i}] must be a mapping with an 'op' key, got {step!r}")
        if self.model_path is None:
            self.model_path = MODELS_DIR / f"{self.name}.joblib"

    @classmethod
    def from_dict(cls, config: dict[str, Any], base_dir: str | Path | None = None) -> PipelineConfig:
        """从字典构建配置。

        Args:
            config: 配置字典（YAML 解析结果）
            base_dir: 相对路径的基准目录

        Raises:
            ConfigError: 配置缺失或格式错误
        """
        config = _require_mapping(config, "config")
        base_dir = Path(base_dir) if base_dir is not None else None
        for key in ("name", "task", "data", "trainer"):
            if key not in config:
                raise ConfigError(f"'{key}' must be specified in pipeline config")

        samples = config.get("samples") or []
        if not isinstance(samples, list) or not all(isinstance(s, dict) for s in samples):
            raise ConfigError("'samples' must be a list of mappings")
        features = config.get("features") or []
        if not isinstance(features, list):
            raise ConfigError("'features' must be a list")

        try:
            seed = int(config.get("seed", 0))
        except (TypeError, ValueError):
            raise ConfigError(f"seed must be an integer, got {config.get('seed')!r}") from None

        return cls(
            name=str(config["name"]),
            task=str(config["task"]),
            data=DataSettings.from_dict(config["data"], base_dir),
            trainer=TrainerSettings.from_dict(config["trainer"]),
            features=copy.deepcopy(features),
            label=config.get("label"),
            feature_column=str(config.get("feature_column", "Features")),
            display_column=config.get("display_column"),
            seed=seed,
            model_path=_resolve_path(config.get("model_path"), base_dir),
            samples=copy.deepcopy(samples),
            tracking=TrackingSettings.from_dict(config.get("tracking")),
        )

    @classmethod
    def load(cls, path: str | Path) -> PipelineConfig:
        """从 YAML 文件加载配置。

        Raises:
            FileNotFoundError: 文件不存在
            ConfigError: YAML 无法解析或内容无效
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pipeline config not found: {path}")
        with open(path) as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            raise ConfigError(f"Pipeline config is empty: {path}")

        config = cls.from_dict(raw, base_dir=path.parent.absolute())
        config.config_path = path
        logger.info(f"Loaded pipeline config '{config.name}' from {path}")
        return config

    def trainer_params(self) -> dict[str, Any]:
        """训练器超参数（未指定 seed 时使用全局 seed）。"""
        params = dict(self.trainer.params)
        params.setdefault("seed", self.seed)
        return params

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "task": self.task,
            "seed": self.seed,
            "data": self.data.to_dict(),
            "label": self.label,
            "feature_column": self.feature_column,
            "display_column": self.display_column,
            "features": copy.deepcopy(self.features),
            "trainer": self.trainer.to_dict(),
            "model_path": str(self.model_path) if self.model_path else None,
            "samples": copy.deepcopy(self.samples),
            "tracking": {
                "enabled": self.tracking.enabled,
                "experiment_name": self.tracking.experiment_name,
                "tracking_uri": self.tracking.tracking_uri,
            },
        }
