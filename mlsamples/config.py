"""
全局配置模块

提供：
- 目录管理
- 日志配置
"""
import logging
import logging.config
import os
import sys
from pathlib import Path

# 目录配置
ROOT_DIR = Path(__file__).parent.parent.absolute()
LOGS_DIR = Path(os.environ.get("MLSAMPLES_LOGS_DIR", Path(ROOT_DIR, "logs")))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# 默认模型输出目录（配置文件未指定 model_path 时使用）
MODELS_DIR = Path(os.environ.get("MLSAMPLES_MODELS_DIR", Path(ROOT_DIR, "models")))

# MLflow tracking URI（未设置时使用 MLflow 默认的 ./mlruns）
MLFLOW_TRACKING_URI = os.environ.get("MLSAMPLES_MLFLOW_TRACKING_URI")

# 日志配置
logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "minimal": {"format": "%(message)s"},
        "detailed": {
            "format": "%(levelname)s %(asctime)s [%(name)s:%(filename)s:%(funcName)s:%(lineno)d]\n%(message)s\n"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "minimal",
            "level": logging.DEBUG,
        },
        "info": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": Path(LOGS_DIR, "info.log"),
            "maxBytes": 10485760,  # 10 MB
            "backupCount": 10,
            "formatter": "detailed",
            "level": logging.INFO,
        },
        "error": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": Path(LOGS_DIR, "error.log"),
            "maxBytes": 10485760,  # 10 MB
            "backupCount": 10,
            "formatter": "detailed",
            "level": logging.ERROR,
        },
    },
    "loggers": {
        "mlsamples": {
            "handlers": ["console", "info", "error"],
            "level": logging.INFO,
            "propagate": True,
        },
    },
}

# 初始化日志
logging.config.dictConfig(logging_config)
logger = logging.getLogger("mlsamples")

__all__ = ["logger", "LOGS_DIR", "MODELS_DIR", "ROOT_DIR", "MLFLOW_TRACKING_URI"]
