# mlpoints/data/point.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

import numpy as np
import pyarrow as pa

from mlpoints.utils.errors import SchemaError

# ============================
# Structured-record 字段名（顺序固定）
# ============================
POINT_ID = "pointID"
FEATURES = "features"
WEIGHTS = "weights"
LABELS = "labels"
SCORES = "scores"
POSITIVE_THRESHOLDS = "positiveThresholds"


# ==================================================
# Value objects
# ==================================================
@dataclass(frozen=True, slots=True)
class MultilabelPoint:
    """
    一个稀疏、多标签的 point（构造后不可变）

    - features: 0-based 特征下标
    - weights:  与 features 位置一一对应
    - labels:   label 集合（排序去重后存储，允许为空）
    """

    point_id: int
    num_features: int
    features: tuple[int, ...]
    weights: tuple[float, ...]
    labels: tuple[int, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "features", tuple(int(f) for f in self.features))
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        object.__setattr__(self, "labels", tuple(sorted({int(l) for l in self.labels})))

        if self.num_features <= 0:
            raise ValueError(f"num_features must be > 0, got {self.num_features}")
        if len(self.features) != len(self.weights):
            raise ValueError(
                f"point {self.point_id}: {len(self.features)} features "
                f"vs {len(self.weights)} weights"
            )
        if self.labels and self.labels[0] < 0:
            raise ValueError(f"point {self.point_id}: negative label {self.labels[0]}")

    # --------------------------------------------------
    @property
    def label_set(self) -> frozenset[int]:
        return frozenset(self.labels)

    def nonzero(self) -> Iterator[tuple[int, float]]:
        for idx, w in zip(self.features, self.weights):
            if w != 0.0:
                yield idx, w

    def check_features(self) -> "MultilabelPoint":
        """
        校验特征下标：严格递增（唯一）、>= 0、< num_features。
        解析器本身不做该校验，由已知 num_features 的调用方触发。
        """
        prev = -1
        for idx in self.features:
            if idx < 0:
                raise ValueError(f"point {self.point_id}: negative feature index {idx}")
            if idx <= prev:
                raise ValueError(
                    f"point {self.point_id}: feature indices must be strictly "
                    f"increasing, got {idx} after {prev}"
                )
            prev = idx
        if prev >= self.num_features:
            raise ValueError(
                f"point {self.point_id}: feature index {prev} out of range "
                f"(num_features={self.num_features})"
            )
        return self

    def to_dense(self) -> np.ndarray:
        dense = np.zeros(self.num_features, dtype=np.float64)
        if self.features:
            dense[list(self.features)] = self.weights
        return dense


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """单个 point 的分类结果；三个序列等长、位置对应。"""

    point_id: int
    labels: tuple[int, ...]
    scores: tuple[float, ...]
    positive_thresholds: tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, "labels", tuple(int(l) for l in self.labels))
        object.__setattr__(self, "scores", tuple(float(s) for s in self.scores))
        object.__setattr__(
            self, "positive_thresholds", tuple(float(t) for t in self.positive_thresholds)
        )
        if not (len(self.labels) == len(self.scores) == len(self.positive_thresholds)):
            raise ValueError(
                f"result {self.point_id}: labels/scores/positive_thresholds "
                f"length mismatch ({len(self.labels)}/{len(self.scores)}/"
                f"{len(self.positive_thresholds)})"
            )

    def positive_labels(self) -> list[int]:
        return [
            label
            for label, score, thr in zip(self.labels, self.scores, self.positive_thresholds)
            if score >= thr
        ]


@dataclass(frozen=True, slots=True)
class LabelDocuments:
    label_id: int
    documents: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class FeatureDocuments:
    """documents 与 labels 位置一一对应（labels[i] 是 documents[i] 的 label 集合）。"""

    feature_id: int
    documents: tuple[int, ...]
    labels: tuple[tuple[int, ...], ...]

    def __post_init__(self):
        if len(self.documents) != len(self.labels):
            raise ValueError(
                f"feature {self.feature_id}: {len(self.documents)} documents "
                f"vs {len(self.labels)} label sets"
            )


# ==================================================
# Arrow types
# ==================================================
def _list_of(value_type: pa.DataType) -> pa.DataType:
    return pa.list_(pa.field("item", value_type, nullable=False))


def point_type() -> pa.StructType:
    return pa.struct(
        [
            pa.field(POINT_ID, pa.int32(), nullable=False),
            pa.field(FEATURES, _list_of(pa.int32()), nullable=False),
            pa.field(WEIGHTS, _list_of(pa.float64()), nullable=False),
            pa.field(LABELS, _list_of(pa.int32()), nullable=False),
        ]
    )


def results_type() -> pa.StructType:
    return pa.struct(
        [
            pa.field(POINT_ID, pa.int32(), nullable=False),
            pa.field(LABELS, _list_of(pa.int32()), nullable=False),
            pa.field(SCORES, _list_of(pa.float64()), nullable=False),
            pa.field(POSITIVE_THRESHOLDS, _list_of(pa.float64()), nullable=False),
        ]
    )


def _is_list_of(dt: pa.DataType, predicate) -> bool:
    if not (pa.types.is_list(dt) or pa.types.is_large_list(dt)):
        return False
    return predicate(dt.value_type)


def _check_struct(dt: pa.DataType, required: Mapping[str, Any], what: str) -> None:
    if not pa.types.is_struct(dt):
        raise SchemaError(f"{what} column must be a struct, got {dt}")

    fields = {dt.field(i).name: dt.field(i).type for i in range(dt.num_fields)}
    for name, predicate in required.items():
        if name not in fields:
            raise SchemaError(f"{what} struct is missing field {name!r}")
        if not predicate(fields[name]):
            raise SchemaError(f"{what} struct field {name!r} has wrong type {fields[name]}")


def check_point_type(dt: pa.DataType) -> None:
    """结构匹配（而非类型完全相等）：int 宽度、list / large_list 都接受。"""
    _check_struct(
        dt,
        {
            POINT_ID: pa.types.is_integer,
            FEATURES: lambda t: _is_list_of(t, pa.types.is_integer),
            WEIGHTS: lambda t: _is_list_of(t, pa.types.is_floating),
            LABELS: lambda t: _is_list_of(t, pa.types.is_integer),
        },
        "point",
    )


def check_results_type(dt: pa.DataType) -> None:
    _check_struct(
        dt,
        {
            POINT_ID: pa.types.is_integer,
            LABELS: lambda t: _is_list_of(t, pa.types.is_integer),
            SCORES: lambda t: _is_list_of(t, pa.types.is_floating),
            POSITIVE_THRESHOLDS: lambda t: _is_list_of(t, pa.types.is_floating),
        },
        "classification results",
    )


# ==================================================
# struct <-> value object
# ==================================================
def point_to_struct(point: MultilabelPoint) -> dict:
    return {
        POINT_ID: point.point_id,
        FEATURES: list(point.features),
        WEIGHTS: list(point.weights),
        LABELS: list(point.labels),
    }


def point_from_struct(value: Mapping[str, Any], num_features: int) -> MultilabelPoint:
    return MultilabelPoint(
        point_id=value[POINT_ID],
        num_features=num_features,
        features=value[FEATURES],
        weights=value[WEIGHTS],
        labels=value[LABELS],
    )


def result_to_struct(result: ClassificationResult) -> dict:
    return {
        POINT_ID: result.point_id,
        LABELS: list(result.labels),
        SCORES: list(result.scores),
        POSITIVE_THRESHOLDS: list(result.positive_thresholds),
    }


def result_from_struct(value: Mapping[str, Any]) -> ClassificationResult:
    return ClassificationResult(
        point_id=value[POINT_ID],
        labels=value[LABELS],
        scores=value[SCORES],
        positive_thresholds=value[POSITIVE_THRESHOLDS],
    )


# ==================================================
# Table helpers
# ==================================================
def points_to_table(points: Iterable[MultilabelPoint], column: str = "points") -> pa.Table:
    structs = [point_to_struct(p) for p in points]
    schema = pa.schema([pa.field(column, point_type(), nullable=False)])
    return pa.Table.from_pydict({column: structs}, schema=schema)


def points_from_table(table: pa.Table, column: str, num_features: int) -> list[MultilabelPoint]:
    if column not in table.column_names:
        raise SchemaError(f"column {column!r} not found in {table.column_names}")
    check_point_type(table.schema.field(column).type)
    return [point_from_struct(v, num_features) for v in table[column].to_pylist()]


def results_from_table(table: pa.Table, column: str) -> list[ClassificationResult]:
    if column not in table.column_names:
        raise SchemaError(f"column {column!r} not found in {table.column_names}")
    check_results_type(table.schema.field(column).type)
    return [result_from_struct(v) for v in table[column].to_pylist()]
