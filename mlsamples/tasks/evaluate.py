"""
评估任务

加载已保存的模型，在测试集（test_path 或按相同 seed 划分出的测试部分）上计算指标。
"""

from __future__ import annotations

from pathlib import Path

from ..config import logger
from ..engine import Metrics
from ..pipeline import PipelineConfig, PipelineOrchestrator
from ..report import report_metrics


def evaluate_task(config: PipelineConfig | str | Path, model_path: str | None = None) -> Metrics:
    """
    评估任务主函数。

    Args:
        config: PipelineConfig 或样例 YAML 路径
        model_path: 模型文件路径（缺省使用配置中的 model_path）

    Returns:
        评估指标

    Raises:
        InsufficientData: 测试集为空
        PersistenceError: 模型无法加载
    """
    logger.info("=" * 80)
    logger.info("Evaluate Task")
    logger.info("=" * 80)

    orchestrator = PipelineOrchestrator(config)
    model = orchestrator.load_model(model_path)
    _, test_dataset = orchestrator.load_data()

    metrics = orchestrator.evaluate(model, test_dataset)
    report_metrics(orchestrator.config.name, metrics)

    logger.info("Evaluation completed!")
    return metrics
