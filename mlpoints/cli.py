#!filepath: mlpoints/cli.py

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich import print

from mlpoints import __version__
from mlpoints.config.app_config import AppConfig
from mlpoints.utils.errors import PointsError, UserInputError
from mlpoints.utils.logger import init_logging

app = typer.Typer(help="mlpoints: sparse multi-label points CLI")


def _load_config(
        config: Optional[Path],
        labels_0_based: Optional[bool],
        binary: Optional[bool],
        workers: Optional[int],
) -> AppConfig:
    cfg = AppConfig.load(str(config) if config else None)
    init_logging(cfg.log)

    points = cfg.points.model_copy(
        update={
            k: v
            for k, v in {"labels_0_based": labels_0_based, "binary_problem": binary}.items()
            if v is not None
        }
    )
    parallel = cfg.parallel.model_copy(update={"max_workers": workers}) if workers else cfg.parallel
    return cfg.model_copy(update={"points": points, "parallel": parallel})


ConfigOpt = typer.Option(None, "--config", help="YAML 配置文件（默认 base.yml）")
Labels0Opt = typer.Option(None, "--labels-0-based/--labels-1-based", help="label id 是否 0-based")
BinaryOpt = typer.Option(None, "--binary/--multilabel", help="binary 问题（+1 / -1）")
WorkersOpt = typer.Option(None, "--workers", min=1, help="并行 worker 数")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def stats(
        data_file: Path,
        config: Optional[Path] = ConfigOpt,
        labels_0_based: Optional[bool] = Labels0Opt,
        binary: Optional[bool] = BinaryOpt,
        workers: Optional[int] = WorkersOpt,
):
    """
    打印集合统计（documents / labels / features）
    """
    from mlpoints.workflows.offline_points import describe

    cfg = _load_config(config, labels_0_based, binary, workers)
    with _user_errors():
        info = describe(data_file, cfg)
    for k, v in info.items():
        print(f"[blue]{k}[/blue]: {v}")


@app.command()
def index(
        data_file: Path,
        out_dir: Path,
        config: Optional[Path] = ConfigOpt,
        labels_0_based: Optional[bool] = Labels0Opt,
        binary: Optional[bool] = BinaryOpt,
        workers: Optional[int] = WorkersOpt,
):
    """
    构建 label / feature 倒排索引并写 parquet
    """
    from mlpoints.workflows.offline_points import build_indices

    cfg = _load_config(config, labels_0_based, binary, workers)
    print(f"[green]Building indices for {data_file}[/green]")
    with _user_errors():
        paths = build_indices(data_file, out_dir, cfg)
    for name, path in paths.items():
        print(f"{name}: {path}")


@app.command()
def classify(
        data_file: Path,
        model_file: Path,
        out_file: Path,
        config: Optional[Path] = ConfigOpt,
        labels_0_based: Optional[bool] = Labels0Opt,
        binary: Optional[bool] = BinaryOpt,
        workers: Optional[int] = WorkersOpt,
):
    """
    用线性模型（JSON）对每个 point 分类，结果写 parquet
    """
    from mlpoints.workflows.offline_points import classify_file

    cfg = _load_config(config, labels_0_based, binary, workers)
    print(f"[green]Classifying {data_file} with {model_file}[/green]")
    with _user_errors():
        path = classify_file(data_file, model_file, out_file, cfg)
    print(f"results: {path}")


@contextmanager
def _user_errors():
    """领域错误：打印一行信息 + 非 0 退出码，不打印 traceback。"""
    try:
        yield
    except PointsError as e:
        kind = "input" if isinstance(e, UserInputError) else type(e).__name__
        print(f"[red]{kind} error:[/red] {e}")
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()

# python -m mlpoints.cli index data/train.svm out/
