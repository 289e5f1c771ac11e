"""
数据模块日志
"""
from ..config import logger as base_logger

_logger = base_logger.getChild("data")

_warning_counter = {}


def warn_n_times(msg, n=10, logger=_logger, key=None):
    """限制警告消息的显示次数。

    Args:
        msg (str): 警告消息。
        n (int): 最多显示次数。默认为 10。
        logger: 日志记录器。
        key (str): 计数键。消息中带有变化的取值时，传入固定的键，
            使同一类警告共享一个计数（计数表不随取值增长）。默认使用消息本身。
    """
    if key is None:
        key = msg
    count = _warning_counter.get(key, 0)
    if count < n:
        logger.warning(msg)
    _warning_counter[key] = count + 1
