"""
模型持久化

- save_model / load_model: 单个 joblib 文件，包含估计器、已拟合的转换链、标签映射和元数据
- save_model_metadata / load_model_metadata: 模型旁边的 JSON 元数据（便于不加载模型时查看）

文件内容::

    {"format": "mlsamples-model", "version": 1, "model": Model}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import joblib

from .config import logger
from .errors import PersistenceError
from .model import Model
from .utils import load_dict, save_dict

__all__ = ["save_model", "load_model", "save_model_metadata", "load_model_metadata", "metadata_path_for"]

MODEL_FORMAT = "mlsamples-model"
MODEL_FORMAT_VERSION = 1


def metadata_path_for(model_path: str | Path) -> Path:
    """模型文件对应的元数据文件路径（``taxi_fare.joblib`` -> ``taxi_fare.metadata.json``）。"""
    model_path = Path(model_path)
    return model_path.with_suffix(".metadata.json")


def save_model(model: Model, path: str | Path, write_metadata: bool = True) -> Path:
    """
    保存模型到 joblib 文件。

    Args:
        model: 训练好的模型
        path: 保存路径（父目录不存在时自动创建）
        write_metadata: 是否同时写出 JSON 元数据

    Returns:
        Path: 模型文件路径

    Raises:
        PersistenceError: 写入失败时
    """
    path = Path(path)
    payload = {"format": MODEL_FORMAT, "version": MODEL_FORMAT_VERSION, "model": model}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(payload, path)
    except Exception as e:
        raise PersistenceError(f"Failed to save model to {path}: {e}") from e
    logger.info(f"Model saved to {path}")

    if write_metadata:
        save_model_metadata(
            metadata_path_for(path),
            feature_spec=model.chain.output_spec(),
            task_type=model.task,
            label_column=model.label_column,
            **model.metadata,
        )
    return path


def load_model(path: str | Path) -> Model:
    """
    从 joblib 文件加载模型。

    Args:
        path: 模型文件路径

    Returns:
        Model: 加载的模型

    Raises:
        PersistenceError: 文件不存在、损坏或不是本项目保存的模型
    """
    path = Path(path)
    if not path.exists():
        raise PersistenceError(f"Model file not found: {path}")
    try:
        payload = joblib.load(path)
    except Exception as e:
        raise PersistenceError(f"Failed to load model from {path}: {e}") from e

    if not isinstance(payload, dict) or payload.get("format") != MODEL_FORMAT:
        raise PersistenceError(f"{path} is not a saved mlsamples model")
    if payload.get("version") != MODEL_FORMAT_VERSION:
        raise PersistenceError(f"Unsupported model format version {payload.get('version')} in {path}, expected {MODEL_FORMAT_VERSION}")
    model = payload.get("model")
    if not isinstance(model, Model):
        raise PersistenceError(f"{path} does not contain a Model, got {type(model).__name__}")

    logger.info(f"Model loaded from {path} (task={model.task})")
    return model


def save_model_metadata(
    metadata_path: str | Path,
    feature_spec: dict[str, Any],
    task_type: str,
    **kwargs,
) -> None:
    """
    保存模型元数据到 JSON 文件。

    Args:
        metadata_path: 元数据文件路径
        feature_spec: 特征规范（来自 TransformChain.output_spec()）
        task_type: 任务类型
        **kwargs: 其他元数据（如 hyperparameters, label_keys, pipeline_state 等）
    """
    metadata = {
        "feature_spec": feature_spec,
        "task_type": task_type,
        **kwargs,
    }
    try:
        save_dict(metadata, str(metadata_path))
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to write model metadata to {metadata_path}: {e}") from e
    logger.info(f"Model metadata saved to {metadata_path}")


def load_model_metadata(metadata_path: str | Path) -> dict[str, Any]:
    """
    从 JSON 文件加载模型元数据。

    Raises:
        PersistenceError: 文件不存在或无法解析
    """
    metadata_path = Path(metadata_path)
    if not metadata_path.exists():
        raise PersistenceError(f"Metadata file not found: {metadata_path}")
    try:
        metadata = load_dict(str(metadata_path))
    except ValueError as e:
        raise PersistenceError(f"Invalid model metadata in {metadata_path}: {e}") from e
    logger.info(f"Model metadata loaded from {metadata_path}")
    return metadata
