"""
实验跟踪模块

提供：
- MLflowTracker: MLflow 实验跟踪
"""
from .mlflow_tracker import MLflowTracker

__all__ = ["MLflowTracker"]
