"""
检查任务

支持：
- 数据检查（行数、每列的统计信息）
- 特征检查（在训练集上拟合转换链，输出特征名称和宽度）
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from ..config import logger
from ..data import Dataset
from ..pipeline import PipelineConfig, PipelineOrchestrator
from ..utils import save_dict


def _column_summary(dataset: Dataset) -> dict[str, dict[str, Any]]:
    summary = {}
    for column in dataset.schema or []:
        if column.name not in dataset:
            continue
        values = dataset.column(column.name)
        stats: dict[str, Any] = {"type": column.kind, "index": column.index}
        if len(values) == 0:
            summary[column.name] = stats
            continue
        if column.kind == "float":
            finite = values[~np.isnan(values)]
            stats["missing"] = int(len(values) - len(finite))
            if len(finite):
                stats.update(min=float(finite.min()), max=float(finite.max()), mean=float(finite.mean()), std=float(finite.std()))
        elif column.kind == "boolean":
            stats["true"] = int(values.sum())
            stats["false"] = int(len(values) - values.sum())
        else:
            unique, counts = np.unique(values.astype(str), return_counts=True)
            order = np.argsort(-counts, kind="stable")[:5]
            stats["unique"] = int(len(unique))
            stats["top"] = {str(unique[i]): int(counts[i]) for i in order}
        summary[column.name] = stats
    return summary


def inspect_task(
    config: PipelineConfig | str | Path,
    output_path: str | None = None,
    inspect_data: bool = True,
    inspect_features: bool = True,
) -> dict[str, Any]:
    """
    检查任务主函数。

    Args:
        config: PipelineConfig 或样例 YAML 路径
        output_path: 输出 JSON 文件路径（可选）
        inspect_data: 是否检查数据
        inspect_features: 是否检查特征

    Returns:
        检查结果字典
    """
    logger.info("=" * 80)
    logger.info("Inspect Task")
    logger.info("=" * 80)

    orchestrator = PipelineOrchestrator(config)
    train_dataset, test_dataset = orchestrator.load_data()

    results: dict[str, Any] = {"name": orchestrator.config.name, "task": orchestrator.config.task}

    if inspect_data:
        logger.info("Inspecting data...")
        data_stats = {
            "num_train_rows": len(train_dataset),
            "num_test_rows": len(test_dataset),
            "columns": _column_summary(train_dataset),
        }
        results["data"] = data_stats
        logger.info(f"Data inspection completed: {len(train_dataset)} train rows, {len(test_dataset)} test rows")
        for name, stats in data_stats["columns"].items():
            logger.info(f"  {name}: {stats}")

    if inspect_features:
        logger.info("Inspecting features...")
        chain = orchestrator.build_chain()
        if train_dataset.is_empty:
            logger.warning("Training dataset is empty, reporting unfitted feature chain")
        else:
            chain.fit(train_dataset)
        feature_stats = chain.output_spec()
        if chain.is_fitted:
            feature_stats["feature_names"] = chain.feature_names()
        results["features"] = feature_stats
        logger.info(chain.visualize())

    if output_path:
        save_dict(results, output_path)
        logger.info(f"Inspection results saved to {output_path}")

    logger.info("Inspection completed!")
    return results
