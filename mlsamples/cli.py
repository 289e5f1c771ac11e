"""
mlsamples CLI

使用 Typer 实现命令行接口。所有路径来自样例 YAML 配置，命令行选项只覆盖路径。
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Optional

import typer

from .config import logger
from .errors import MLSamplesError
from .models import list_trainers
from .tasks import evaluate_task, inspect_task, predict_task, run_task, train_task
from .utils import save_dict

# 初始化 Typer CLI app
app = typer.Typer(help="mlsamples: 表格数据机器学习样例（回归、二分类、多分类、聚类）")

ConfigOption = Annotated[str, typer.Option("-c", "--config", help="样例 YAML 配置文件路径")]
ModelOption = Annotated[Optional[str], typer.Option("-m", "--model", help="模型文件路径（覆盖配置）")]


@contextmanager
def _handle_errors():
    """把已知错误转换为日志和退出码 1。"""
    try:
        yield
    except (MLSamplesError, FileNotFoundError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1) from e


def _check_config(config: str) -> None:
    if not Path(config).exists():
        logger.error(f"Pipeline config file not found: {config}")
        raise typer.Exit(1)


@app.command()
def run(
    config: ConfigOption,
    model_path: ModelOption = None,
) -> None:
    """运行完整样例：训练、评估、保存、重新加载并预测。

    示例:
        mlsamples run -c configs/taxi_fare.yaml
    """
    logger.info("=" * 80)
    logger.info("mlsamples Run Command")
    logger.info("=" * 80)
    _check_config(config)
    with _handle_errors():
        run_task(config, model_path=model_path)


@app.command()
def train(
    config: ConfigOption,
    model_path: ModelOption = None,
) -> None:
    """训练并保存模型。

    示例:
        mlsamples train -c configs/sentiment.yaml -m models/sentiment.joblib
    """
    logger.info("=" * 80)
    logger.info("mlsamples Train Command")
    logger.info("=" * 80)
    _check_config(config)
    with _handle_errors():
        train_task(config, model_path=model_path)


@app.command()
def evaluate(
    config: ConfigOption,
    model_path: ModelOption = None,
    output_path: Annotated[Optional[str], typer.Option("-o", "--output", help="指标输出 JSON 文件")] = None,
) -> None:
    """在测试集上评估已保存的模型。

    示例:
        mlsamples evaluate -c configs/issue_classification.yaml
    """
    logger.info("=" * 80)
    logger.info("mlsamples Evaluate Command")
    logger.info("=" * 80)
    _check_config(config)
    with _handle_errors():
        metrics = evaluate_task(config, model_path=model_path)
    if output_path:
        save_dict(metrics.as_dict(), output_path)
        logger.info(f"Metrics saved to {output_path}")


@app.command()
def predict(
    config: ConfigOption,
    model_path: ModelOption = None,
    input_path: Annotated[Optional[str], typer.Option("-i", "--input", help="输入数据文件（缺省使用配置中的 samples）")] = None,
    output_path: Annotated[Optional[str], typer.Option("-o", "--output", help="输出 JSON 文件路径")] = None,
) -> None:
    """使用已保存的模型进行批量预测。

    示例:
        mlsamples predict -c configs/iris_clustering.yaml -i data/iris-new.txt -o predictions.json
    """
    logger.info("=" * 80)
    logger.info("mlsamples Predict Command")
    logger.info("=" * 80)
    _check_config(config)
    with _handle_errors():
        predict_task(config, model_path=model_path, input_path=input_path, output_path=output_path)


@app.command()
def inspect(
    config: ConfigOption,
    output_path: Annotated[Optional[str], typer.Option("-o", "--output", help="输出文件路径")] = None,
    inspect_data: Annotated[bool, typer.Option("--inspect-data/--no-inspect-data", help="是否检查数据")] = True,
    inspect_features: Annotated[bool, typer.Option("--inspect-features/--no-inspect-features", help="是否检查特征")] = True,
) -> None:
    """检查数据和特征。

    示例:
        mlsamples inspect -c configs/taxi_fare.yaml -o inspection.json
    """
    logger.info("=" * 80)
    logger.info("mlsamples Inspect Command")
    logger.info("=" * 80)
    _check_config(config)
    with _handle_errors():
        inspect_task(config, output_path=output_path, inspect_data=inspect_data, inspect_features=inspect_features)


@app.command()
def trainers() -> None:
    """列出可用的训练器。"""
    for name in list_trainers():
        typer.echo(name)


def main():
    """CLI 入口点。"""
    app()


if __name__ == "__main__":
    main()
