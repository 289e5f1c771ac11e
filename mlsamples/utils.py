"""
工具函数模块

提供：
- 随机种子设置
- 字典 I/O（JSON）
"""

import json
import math
import os
import random
from pathlib import Path
from typing import Any

import numpy as np

__all__ = ["set_seeds", "load_dict", "save_dict", "NumpyEncoder", "nan_to_none"]


def set_seeds(seed: int = 42):
    """设置随机种子以确保可复现性。"""
    random.seed(seed)
    np.random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)


class NumpyEncoder(json.JSONEncoder):
    """JSON 编码器，处理 numpy 类型和路径。"""

    def default(self, obj):
        if isinstance(obj, (np.integer, np.floating, np.bool_)):
            return nan_to_none(obj.item())
        if isinstance(obj, np.ndarray):
            return nan_to_none(obj.tolist())
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def nan_to_none(obj: Any) -> Any:
    """把嵌套结构中的 NaN / inf 替换为 None（JSON 中的 null）。"""
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: nan_to_none(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [nan_to_none(v) for v in obj]
    return obj


def load_dict(path: str) -> dict:
    """从 JSON 文件加载字典。

    Args:
        path: 文件路径

    Returns:
        Dict: 加载的 JSON 数据
    """
    with open(path) as fp:
        d = json.load(fp)
    return d


def save_dict(d: Any, path: str, cls: Any = NumpyEncoder, sortkeys: bool = False) -> None:
    """
    将字典保存到指定位置。

    Args:
        d: 要保存的数据
        path: 保存位置
        cls: 用于编码数据的编码器。默认为 NumpyEncoder
        sortkeys: 是否按字母顺序排序键。默认为 False
    """
    directory = os.path.dirname(str(path))
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
    with open(path, "w") as fp:
        json.dump(nan_to_none(d), indent=2, fp=fp, cls=cls, sort_keys=sortkeys, allow_nan=False)
        fp.write("\n")
