"""
特征模块

提供：
- TransformStep 及其实现（copy / one_hot / featurize_text / concatenate / map_value_to_key）
- TransformChain: 有序转换链
"""
from .chain import TransformChain
from .steps import (
    STEP_TYPES,
    Concatenate,
    CopyColumn,
    FeaturizeText,
    MapValueToKey,
    OneHotEncode,
    TransformStep,
    build_step,
)

__all__ = [
    "TransformChain",
    "TransformStep",
    "CopyColumn",
    "OneHotEncode",
    "FeaturizeText",
    "Concatenate",
    "MapValueToKey",
    "STEP_TYPES",
    "build_step",
]
