#!filepath: mlpoints/workflows/offline_points.py
from __future__ import annotations

from pathlib import Path

from mlpoints.classifier.linear import LinearModel, linear_classifier
from mlpoints.classifier.pipeline import ClassificationPipeline
from mlpoints.config.app_config import AppConfig
from mlpoints.data import stats
from mlpoints.data.libsvm import load_libsvm
from mlpoints.data.point import points_to_table
from mlpoints.index.builder import IndexBuilder, feature_index_to_table, label_index_to_table
from mlpoints.utils.errors import UserInputError
from mlpoints.utils.logger import logs
from mlpoints.utils.parquet_utils import ParquetAtomicWriter

LABEL_INDEX_FILE = "label_index.parquet"
FEATURE_INDEX_FILE = "feature_index.parquet"


def describe(data_file: str | Path, cfg: AppConfig) -> dict:
    """集合统计：points / labels / features。"""
    points = load_libsvm(data_file, cfg.points, parallel=cfg.parallel)
    if not points:
        raise UserInputError(f"no points in {data_file}")
    return {
        "documents": stats.num_documents(points),
        "labels": stats.num_labels(points),
        "features": stats.num_features(points),
    }


def build_indices(data_file: str | Path, out_dir: str | Path, cfg: AppConfig) -> dict[str, Path]:
    """
    离线索引 workflow：
      load → label index + feature index → parquet（两个文件都算完后才写）
    """
    out_dir = Path(out_dir)
    logs.info(f"[Workflow] ====== build_indices {data_file} ======")

    points = load_libsvm(data_file, cfg.points, parallel=cfg.parallel)

    builder = IndexBuilder(cfg.parallel)
    label_table = label_index_to_table(builder.build_label_index(points))
    feature_table = feature_index_to_table(builder.build_feature_index(points))

    return {
        "labels": ParquetAtomicWriter.write_table(label_table, out_dir / LABEL_INDEX_FILE),
        "features": ParquetAtomicWriter.write_table(feature_table, out_dir / FEATURE_INDEX_FILE),
    }


def classify_file(
        data_file: str | Path,
        model_file: str | Path,
        out_file: str | Path,
        cfg: AppConfig,
) -> Path:
    """
    离线分类 workflow：
      load（num_features 与模型维度对齐）→ 表 → ClassificationPipeline → parquet
    """
    logs.info(f"[Workflow] ====== classify_file {data_file} ======")

    model = LinearModel.load(model_file)
    model_dim = model.dense[1].shape[1]

    points = load_libsvm(data_file, cfg.points, parallel=cfg.parallel)
    num_features = max(model_dim, points[0].num_features if points else 1)

    table = points_to_table(points, column=cfg.points.input_column)
    pipeline = ClassificationPipeline(
        linear_classifier,
        num_features=num_features,
        state=model,
        config=cfg.points,
        parallel=cfg.parallel,
    )
    result = pipeline.transform(table)
    return ParquetAtomicWriter.write_table(result, Path(out_file))
