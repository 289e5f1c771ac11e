"""
训练器注册表

提供训练器注册和发现机制，支持动态注册训练器。
"""

from typing import Dict, Optional, Type

from .base import Trainer


class TrainerRegistry:
    """
    训练器注册表（单例）

    用于注册和发现训练器类。
    """

    _instance = None
    _registry: Dict[str, Type[Trainer]] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, name: str, trainer_class: Type[Trainer]):
        """
        注册训练器类。

        Args:
            name: 训练器名称（用于查找）
            trainer_class: 训练器类（必须是 Trainer 的子类）
        """
        if not issubclass(trainer_class, Trainer):
            raise TypeError(f"Trainer class must be a subclass of Trainer, got {trainer_class}")
        self._registry[name] = trainer_class

    def get(self, name: str) -> Optional[Type[Trainer]]:
        """
        获取训练器类。

        Args:
            name: 训练器名称

        Returns:
            训练器类，如果不存在则返回 None
        """
        return self._registry.get(name)

    def list_trainers(self) -> list:
        """列出所有注册的训练器名称。"""
        return list(self._registry.keys())

    def unregister(self, name: str):
        """取消注册训练器。"""
        self._registry.pop(name, None)


# 全局注册表实例
_registry = TrainerRegistry()


def register_trainer(name: str):
    """
    装饰器：注册训练器类。

    Usage:
        @register_trainer('fast_tree_regression')
        class FastTreeRegressionTrainer(Trainer):
            ...
    """

    def decorator(trainer_class: Type[Trainer]):
        _registry.register(name, trainer_class)
        return trainer_class

    return decorator


def get_trainer(trainer_name: str, **kwargs) -> Trainer:
    """
    训练器工厂函数：根据名称创建训练器实例。

    Args:
        trainer_name: 训练器名称（必须在注册表中）
        **kwargs: 超参数

    Returns:
        训练器实例

    Raises:
        ValueError: 如果训练器名称不存在
    """
    trainer_class = _registry.get(trainer_name)
    if trainer_class is None:
        available = ", ".join(_registry.list_trainers())
        raise ValueError(f"Trainer '{trainer_name}' not found in registry. Available trainers: {available}")
    return trainer_class(**kwargs)


def list_trainers() -> list:
    return _registry.list_trainers()
