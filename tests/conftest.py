# tests/conftest.py
from __future__ import annotations

import multiprocessing
from pathlib import Path

import pytest
from loguru import logger

from mlpoints.config import ParallelConfig, PointsConfig
from mlpoints.data.libsvm import load_libsvm


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture(scope="session", autouse=True)
def _set_start_method():
    multiprocessing.set_start_method("spawn", force=True)


# ============================================================
# 稀疏文本样例
# ============================================================
@pytest.fixture
def example_lines() -> list[str]:
    """两行多标签样例（labels 1-based）"""
    return ["1,2 1:0.5 3:1.0", "2 2:0.3"]


@pytest.fixture
def sequential() -> ParallelConfig:
    return ParallelConfig(max_workers=1)


@pytest.fixture
def example_points(example_lines, sequential):
    return load_libsvm(example_lines, PointsConfig(), parallel=sequential)


@pytest.fixture
def write_lines(tmp_path: Path):
    def _write(name: str, lines: list[str]) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
