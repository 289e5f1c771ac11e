"""
训练任务

- 加载数据、拟合转换链、训练模型
- 测试集非空时评估
- 保存模型（及 JSON 元数据）
- 可选的 MLflow 实验跟踪
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import logger
from ..engine import Metrics
from ..experiment import MLflowTracker
from ..model import Model
from ..pipeline import PipelineConfig, PipelineOrchestrator
from ..report import report_metrics


@dataclass
class TrainResult:
    model: Model
    model_path: Path
    metrics: Metrics | None
    num_train_rows: int
    num_test_rows: int

    def summary(self) -> dict[str, Any]:
        return {
            "model_path": str(self.model_path),
            "metrics": self.metrics.as_dict() if self.metrics is not None else None,
            "num_train_rows": self.num_train_rows,
            "num_test_rows": self.num_test_rows,
        }


def make_tracker(config: PipelineConfig) -> MLflowTracker | None:
    """配置启用跟踪时创建 MLflowTracker。"""
    if not config.tracking.enabled:
        return None
    return MLflowTracker(
        experiment_name=config.tracking.experiment_name or config.name,
        tracking_uri=config.tracking.tracking_uri,
    )


def train_and_save(
    orchestrator: PipelineOrchestrator,
    model_path: str | Path | None = None,
    tracker: MLflowTracker | None = None,
) -> TrainResult:
    """训练、评估并保存模型（run 和 train 任务共用）。"""
    config = orchestrator.config

    logger.info("Loading data...")
    train_dataset, test_dataset = orchestrator.load_data()

    logger.info("Training model...")
    model = orchestrator.train(train_dataset)

    metrics = None
    if test_dataset.is_empty:
        logger.warning("Test dataset is empty, skipping evaluation")
    else:
        logger.info("Evaluating model...")
        metrics = orchestrator.evaluate(model, test_dataset)
        report_metrics(config.name, metrics)

    saved_path = orchestrator.save_model(model, model_path)
    logger.info(f"The model is saved to {saved_path}")

    if tracker is not None:
        tracker.log_params(
            {
                "task": config.task,
                "trainer": {"name": config.trainer.name, **model.metadata.get("hyperparameters", {})},
                "num_train_rows": len(train_dataset),
                "num_test_rows": len(test_dataset),
                "feature_width": model.feature_width,
            }
        )
        if metrics is not None:
            tracker.log_metrics(metrics.as_dict())
        tracker.log_artifact(saved_path, artifact_path="model")

    return TrainResult(
        model=model,
        model_path=Path(saved_path),
        metrics=metrics,
        num_train_rows=len(train_dataset),
        num_test_rows=len(test_dataset),
    )


def train_task(config: PipelineConfig | str | Path, model_path: str | None = None) -> TrainResult:
    """
    训练任务入口。

    Args:
        config: PipelineConfig 或样例 YAML 路径
        model_path: 覆盖配置中的模型保存路径

    Returns:
        TrainResult
    """
    logger.info("=" * 80)
    logger.info("Train Task")
    logger.info("=" * 80)

    orchestrator = PipelineOrchestrator(config)
    tracker = make_tracker(orchestrator.config)
    run_context = tracker.start_run(run_name=orchestrator.config.name) if tracker is not None else nullcontext()
    with run_context:
        result = train_and_save(orchestrator, model_path=model_path, tracker=tracker)

    logger.info("Training completed!")
    return result
