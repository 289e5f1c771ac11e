"""
预测任务

支持：
- 对分隔文本文件中的每一行做批量预测
- 未给出输入文件时，对配置中的样例行做预测
- 结果保存为 JSON
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..config import logger
from ..pipeline import PipelineConfig, PipelineOrchestrator
from ..report import report_predictions
from ..utils import save_dict


def predict_task(
    config: PipelineConfig | str | Path,
    model_path: str | None = None,
    input_path: str | None = None,
    output_path: str | None = None,
) -> list[dict[str, Any]]:
    """
    预测任务主函数。

    Args:
        config: PipelineConfig 或样例 YAML 路径
        model_path: 模型文件路径（缺省使用配置中的 model_path）
        input_path: 输入数据文件（按配置的 schema 和格式解析），缺省使用配置中的 samples
        output_path: 输出 JSON 文件路径（可选）

    Returns:
        预测结果列表（每个元素包含 row 序号和预测字段）
    """
    logger.info("=" * 80)
    logger.info("Prediction Task")
    logger.info("=" * 80)

    orchestrator = PipelineOrchestrator(config)
    config = orchestrator.config

    logger.info(f"Loading model from {model_path or config.model_path}...")
    model = orchestrator.load_model(model_path)
    predictor = orchestrator.predictor(model)

    if input_path is not None:
        dataset = orchestrator.load_file(input_path)
        logger.info(f"Running predictions on {len(dataset)} rows from {input_path}...")
        predictions = list(predictor.predict_batch(dataset))
        rows = None
    else:
        rows = orchestrator.sample_rows()
        if not rows:
            logger.warning("No input file given and no samples configured; nothing to predict")
        logger.info(f"Running predictions on {len(rows)} configured samples...")
        predictions = list(predictor.predict_batch(rows))

    report_predictions("Batch Prediction", predictions, rows, config.display_column)
    results = [{"row": i, **prediction.as_dict()} for i, prediction in enumerate(predictions)]

    if output_path:
        save_dict(results, output_path)
        logger.info(f"Predictions saved to {output_path}")

    logger.info(f"Prediction completed: {len(results)} rows")
    return results
