"""
Pipeline Orchestrator

统一入口，协调整个 ML pipeline。
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any

from ..config import logger
from ..data import Dataset, dump_dataset, load_dataset
from ..data.features import TransformChain
from ..engine import Evaluator, Metrics, Predictor
from ..errors import ConfigError, InsufficientData
from ..model import Model, train_model
from ..models import Trainer, get_trainer
from ..persistence import load_model, save_model
from ..utils import set_seeds
from .config import PipelineConfig
from .state import PipelineState


class PipelineOrchestrator:
    """
    Pipeline 编排器，负责协调整个 ML pipeline 的生命周期。

    作为样例的统一入口点，PipelineOrchestrator 负责：
    - 加载和解析样例 YAML 配置
    - 加载训练/测试数据（测试文件缺省时按比例划分）
    - 构建转换链和训练器，训练模型
    - 验证并记录 PipelineState（写入模型元数据）
    - 评估、保存、加载模型，创建预测器

    典型使用流程：
    1. load_data(): 加载训练集和测试集
    2. train(): 拟合转换链并训练模型
    3. evaluate(): 在测试集上计算指标
    4. save_model() / load_model(): 持久化
    5. predictor(): 单行 / 批量预测
    """

    def __init__(self, config: PipelineConfig | str | Path):
        """
        初始化 Pipeline 编排器。

        Args:
            config: PipelineConfig，或样例 YAML 配置文件路径
        """
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.load(config)
        self.config = config
        self.pipeline_state: PipelineState | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> PipelineOrchestrator:
        return cls(PipelineConfig.load(path))

    def load_data(self) -> tuple[Dataset, Dataset]:
        """
        加载训练集和测试集。

        配置了 test_path 时分别加载两个文件；否则从训练文件按 test_fraction 随机划分
        （使用配置中的 seed）。

        Returns:
            (训练数据集, 测试数据集)
        """
        data = self.config.data
        train = load_dataset(data.train_path, data.schema, data.separator, data.has_header, data.allow_quoting)

        if data.test_path is not None:
            test = load_dataset(data.test_path, data.schema, data.separator, data.has_header, data.allow_quoting)
        elif train.is_empty:
            test = train
        else:
            train, test = train.split(test_fraction=data.test_fraction, seed=self.config.seed)
            logger.info(f"Split {len(train) + len(test)} rows into {len(train)} train / {len(test)} test (test_fraction={data.test_fraction})")

        logger.info(f"Data loaded: train={len(train)} rows, test={len(test)} rows")
        return train, test

    def load_file(self, path: str | Path) -> Dataset:
        """按配置的 schema 和格式加载任意数据文件（例如批量预测的输入）。"""
        data = self.config.data
        return load_dataset(path, data.schema, data.separator, data.has_header, data.allow_quoting)

    def dump_file(self, dataset: Dataset, path: str | Path) -> None:
        """按配置的格式把数据集写回分隔文本文件（可被 load_file 原样读回）。"""
        data = self.config.data
        dump_dataset(dataset, path, data.separator, data.has_header, data.allow_quoting)

    def build_chain(self) -> TransformChain:
        """按配置构建（未拟合的）转换链。"""
        try:
            return TransformChain.from_config(self.config.features, feature_column=self.config.feature_column)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    def build_trainer(self) -> Trainer:
        """按配置构建训练器（未指定 seed 时使用全局 seed）。"""
        try:
            trainer = get_trainer(self.config.trainer.name, **self.config.trainer_params())
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e
        if trainer.task != self.config.task:
            raise ConfigError(f"Trainer '{self.config.trainer.name}' is for {trainer.task}, but the pipeline task is {self.config.task}")
        return trainer

    def train(self, dataset: Dataset) -> Model:
        """
        拟合转换链并训练模型。

        Args:
            dataset: 训练数据集

        Returns:
            Model: 训练好的模型（元数据中包含 PipelineState）

        Raises:
            InsufficientData: 训练集为空或行数不足
            ConfigError: PipelineState 验证失败
        """
        if dataset.is_empty:
            raise InsufficientData("Training dataset is empty")

        set_seeds(self.config.seed)
        chain = self.build_chain()
        trainer = self.build_trainer()

        logger.info(f"Training '{self.config.name}' ({self.config.task}) with {self.config.trainer.name}")
        model = train_model(
            self.config.task,
            chain,
            trainer,
            dataset,
            label_column=self.config.label,
            metadata={"name": self.config.name},
        )

        self.pipeline_state = PipelineState.from_components(
            chain=model.chain,
            trainer_config={"name": self.config.trainer.name, "params": trainer.get_params()},
            task_type=self.config.task,
            label_column=self.config.label,
            label_keys=model.labels,
            pipeline_config_path=str(self.config.config_path) if self.config.config_path else None,
        )
        is_valid, errors = self.pipeline_state.validate()
        if not is_valid:
            error_msg = "Pipeline configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigError(error_msg)
        logger.info(f"Pipeline state: {self.pipeline_state.get_model_info()}")

        return dataclasses.replace(model, metadata={**model.metadata, "pipeline_state": self.pipeline_state.to_dict()})

    def evaluate(self, model: Model, dataset: Dataset) -> Metrics:
        """在给定数据集上评估模型。"""
        return Evaluator(model.task).evaluate(model, dataset)

    def save_model(self, model: Model, path: str | Path | None = None) -> Path:
        """保存模型（缺省使用配置中的 model_path）。"""
        return save_model(model, path or self.config.model_path)

    def load_model(self, path: str | Path | None = None) -> Model:
        """加载模型（缺省使用配置中的 model_path）。"""
        model = load_model(path or self.config.model_path)
        if model.task != self.config.task:
            logger.warning(f"Loaded a {model.task} model but the pipeline task is {self.config.task}")
        return model

    def predictor(self, model: Model) -> Predictor:
        return Predictor(model)

    def sample_rows(self) -> list[dict[str, Any]]:
        """配置中用于预测演示的样例行。"""
        return [dict(row) for row in self.config.samples]

    def get_pipeline_state(self) -> PipelineState | None:
        return self.pipeline_state
