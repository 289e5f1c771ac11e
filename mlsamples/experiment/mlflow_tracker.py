"""
MLflow 跟踪器

记录一次样例运行的参数、评估指标和模型文件。
MLflow 记录失败只产生警告，不影响训练结果。
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from ..config import MLFLOW_TRACKING_URI, logger


class MLflowTracker:
    """
    MLflow 跟踪器

    Usage:
        tracker = MLflowTracker(experiment_name="taxi_fare")
        with tracker.start_run(run_name="taxi_fare"):
            tracker.log_params({"task": "regression", "trainer.num_trees": 100})
            tracker.log_metrics(metrics.as_dict())
            tracker.log_artifact("models/taxi_fare.joblib", "model")
    """

    def __init__(self, experiment_name: Optional[str] = None, tracking_uri: Optional[str] = None):
        """
        初始化 MLflow 跟踪器。

        Args:
            experiment_name: 实验名称
            tracking_uri: MLflow tracking URI（为 None 时使用全局配置）
        """
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri or MLFLOW_TRACKING_URI
        self.mlflow = None
        self.run_id: Optional[str] = None

        try:
            import mlflow

            self.mlflow = mlflow
            if self.tracking_uri:
                self.mlflow.set_tracking_uri(self.tracking_uri)
        except ImportError:
            logger.warning("MLflow not available, tracking will be disabled")

    @property
    def enabled(self) -> bool:
        return self.mlflow is not None

    @contextmanager
    def start_run(self, run_name: Optional[str] = None) -> Iterator[Optional[str]]:
        """
        开启一个 MLflow run（上下文管理器，退出时结束 run）。

        Yields:
            run ID（MLflow 不可用或启动失败时为 None）
        """
        if self.mlflow is None:
            yield None
            return

        started = False
        try:
            if self.experiment_name:
                self.mlflow.set_experiment(self.experiment_name)
            run = self.mlflow.start_run(run_name=run_name)
            self.run_id = run.info.run_id
            started = True
            logger.info(f"MLflow run started: {self.run_id}")
        except Exception as e:
            logger.warning(f"Failed to start MLflow run: {e}")

        try:
            yield self.run_id
        finally:
            if started:
                self.mlflow.end_run()
                logger.info(f"MLflow run ended: {self.run_id}")

    def log_params(self, params: dict[str, Any]) -> None:
        """记录参数（嵌套字典会被扁平化）。"""
        if self.mlflow is None:
            return
        try:
            flat = self._flatten_dict(params)
            self.mlflow.log_params(flat)
            logger.info(f"Logged {len(flat)} parameters to MLflow")
        except Exception as e:
            logger.warning(f"Failed to log params to MLflow: {e}")

    def log_metrics(self, metrics: dict[str, Any], step: Optional[int] = None) -> None:
        """记录指标（只记录有限的数值）。"""
        if self.mlflow is None:
            return
        filtered = {}
        for k, v in metrics.items():
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                continue
            if math.isfinite(v):
                filtered[k] = float(v)
        if not filtered:
            return
        try:
            self.mlflow.log_metrics(filtered, step=step)
        except Exception as e:
            logger.warning(f"Failed to log metrics to MLflow: {e}")

    def log_artifact(self, path: str | Path, artifact_path: Optional[str] = None) -> None:
        """记录文件 artifact（文件不存在时跳过）。"""
        if self.mlflow is None:
            return
        if not Path(path).exists():
            logger.warning(f"Artifact not found, skipping: {path}")
            return
        try:
            self.mlflow.log_artifact(str(path), artifact_path=artifact_path)
            logger.info(f"Logged artifact: {path}")
        except Exception as e:
            logger.warning(f"Failed to log artifact: {e}")

    def _flatten_dict(self, d: dict[str, Any], parent_key: str = "", sep: str = ".") -> dict[str, Any]:
        """扁平化嵌套字典。"""
        items = []
        for k, v in d.items():
            new_key = f"{parent_key}{sep}{k}" if parent_key else k
            if isinstance(v, dict):
                items.extend(self._flatten_dict(v, new_key, sep=sep).items())
            else:
                # MLflow 参数必须是字符串
                items.append((new_key, str(v)))
        return dict(items)
