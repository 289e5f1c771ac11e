"""
Pipeline Orchestrator

统一入口，协调整个 ML pipeline：
- 加载配置（data / features / trainer）
- 加载数据集
- 拟合转换链并训练模型
- 评估、保存、加载和预测
"""

from .config import DataSettings, PipelineConfig, TrackingSettings, TrainerSettings
from .orchestrator import PipelineOrchestrator
from .state import PipelineState

__all__ = ["PipelineOrchestrator", "PipelineConfig", "PipelineState", "DataSettings", "TrainerSettings", "TrackingSettings"]
