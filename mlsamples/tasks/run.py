"""
完整样例任务

按样例的固定流程执行：
1. 加载数据，训练并评估模型
2. 保存模型
3. 用内存中的模型对第一条样例行做单行预测
4. 重新加载保存的模型，对所有样例行做批量预测
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import logger
from ..engine import Metrics, PredictionResult
from ..pipeline import PipelineConfig, PipelineOrchestrator
from ..report import report_predictions
from .train import make_tracker, train_and_save


@dataclass
class RunResult:
    name: str
    task: str
    model_path: Path
    metrics: Metrics | None
    single_prediction: PredictionResult | None = None
    batch_predictions: list[PredictionResult] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "task": self.task,
            "model_path": str(self.model_path),
            "metrics": self.metrics.as_dict() if self.metrics is not None else None,
            "single_prediction": self.single_prediction.as_dict() if self.single_prediction is not None else None,
            "batch_predictions": [p.as_dict() for p in self.batch_predictions],
        }


def run_task(config: PipelineConfig | str | Path, model_path: str | None = None) -> RunResult:
    """
    运行完整样例。

    Args:
        config: PipelineConfig 或样例 YAML 路径
        model_path: 覆盖配置中的模型保存路径

    Returns:
        RunResult
    """
    logger.info("=" * 80)
    logger.info("Run Task")
    logger.info("=" * 80)

    orchestrator = PipelineOrchestrator(config)
    config = orchestrator.config
    tracker = make_tracker(config)
    run_context = tracker.start_run(run_name=config.name) if tracker is not None else nullcontext()
    with run_context:
        trained = train_and_save(orchestrator, model_path=model_path, tracker=tracker)

    samples = orchestrator.sample_rows()
    result = RunResult(name=config.name, task=config.task, model_path=trained.model_path, metrics=trained.metrics)
    if not samples:
        logger.warning("No samples configured, skipping prediction demo")
        return result

    # 单行预测（内存中的模型）
    result.single_prediction = orchestrator.predictor(trained.model).predict(samples[0])
    report_predictions("Single Prediction", [result.single_prediction], samples[:1], config.display_column)

    # 批量预测（重新加载的模型）
    loaded = orchestrator.load_model(trained.model_path)
    result.batch_predictions = list(orchestrator.predictor(loaded).predict_batch(samples))
    report_predictions("Prediction Test of loaded model with multiple samples", result.batch_predictions, samples, config.display_column)

    logger.info(f"Sample '{config.name}' completed!")
    return result
