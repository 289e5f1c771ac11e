"""
Pipeline State

记录一次训练的完整状态（任务、特征规范、训练器配置、标签 key），
训练时做一致性检查，并作为元数据随模型保存。
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from ..config import logger
from ..data.features import TransformChain
from ..models import TASK_TYPES, list_trainers


@dataclass
class PipelineState:
    """
    Pipeline 状态

    包含 pipeline 的完整状态信息，用于：
    - 配置一致性验证
    - 状态持久化（写入模型元数据）
    - 训练/评估/预测时使用同一状态
    """

    feature_spec: dict[str, Any]
    trainer_config: dict[str, Any]
    task_type: str
    label_column: str | None = None
    label_keys: list[Any] = field(default_factory=list)
    pipeline_config_path: str | None = None

    def validate(self) -> tuple[bool, list[str]]:
        """
        验证配置一致性。

        Returns:
            tuple[bool, list[str]]: (是否有效, 错误列表)
        """
        errors = []

        # 验证 feature_spec
        if not self.feature_spec:
            errors.append("feature_spec is empty")
        else:
            features = self.feature_spec.get("features", {})
            if not features.get("column"):
                errors.append("feature_spec must name the feature column")
            if features.get("dim", 0) < 1:
                errors.append(f"feature width must be >= 1, got {features.get('dim')}")

        # 验证 trainer_config
        if not self.trainer_config:
            errors.append("trainer_config is empty")
        else:
            if "name" not in self.trainer_config:
                errors.append("trainer_config must contain 'name'")
            elif self.trainer_config["name"] not in list_trainers():
                errors.append(f"Unknown trainer '{self.trainer_config['name']}'. Available: {list_trainers()}")
            if "params" not in self.trainer_config:
                errors.append("trainer_config must contain 'params'")

        # 验证 task_type
        if self.task_type not in TASK_TYPES:
            errors.append(f"task_type must be one of {list(TASK_TYPES)}, got {self.task_type}")

        # 验证标签
        if self.task_type != "clustering" and not self.label_column:
            errors.append(f"label_column is required for {self.task_type}")
        if self.task_type == "multiclass" and self.label_keys and len(self.label_keys) < 2:
            errors.append(f"multiclass needs at least 2 label keys, got {len(self.label_keys)}")
        if self.task_type != "multiclass" and self.label_keys:
            logger.warning(f"label_keys are ignored for task_type={self.task_type}")

        is_valid = len(errors) == 0
        return is_valid, errors

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """
        保存状态到文件。

        Args:
            path: 保存路径
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Pipeline state saved to {path}")

    @classmethod
    def load(cls, path: str | Path) -> PipelineState:
        """
        从文件加载状态。

        Args:
            path: 文件路径

        Returns:
            PipelineState: 加载的状态
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pipeline state file not found: {path}")

        with open(path) as f:
            state_dict = json.load(f)

        return cls(**state_dict)

    @classmethod
    def from_components(
        cls,
        chain: TransformChain,
        trainer_config: dict[str, Any],
        task_type: str,
        label_column: str | None = None,
        label_keys: list[Any] | None = None,
        pipeline_config_path: str | None = None,
    ) -> PipelineState:
        """
        从已拟合的组件创建 PipelineState。

        Args:
            chain: 已拟合的转换链
            trainer_config: 训练器配置（name + params）
            task_type: 任务类型
            label_column: 标签列
            label_keys: 多分类任务的标签取值（按 key 顺序）
            pipeline_config_path: Pipeline 配置文件路径

        Returns:
            PipelineState: 创建的状态
        """
        if not chain.is_fitted:
            raise ValueError("TransformChain must be fitted before creating a PipelineState")

        return cls(
            feature_spec=chain.output_spec(),
            trainer_config=trainer_config,
            task_type=task_type,
            label_column=label_column,
            label_keys=list(label_keys or []),
            pipeline_config_path=pipeline_config_path,
        )

    def get_model_info(self) -> dict[str, Any]:
        """获取模型信息摘要。"""
        return {
            "trainer": self.trainer_config.get("name", "unknown"),
            "task_type": self.task_type,
            "feature_column": self.feature_spec.get("features", {}).get("column"),
            "feature_dim": self.feature_spec.get("features", {}).get("dim"),
            "num_steps": len(self.feature_spec.get("steps", [])),
            "label_column": self.label_column,
            "num_label_keys": len(self.label_keys),
        }
