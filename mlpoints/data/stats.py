# mlpoints/data/stats.py
from __future__ import annotations

from typing import Sequence

import pyarrow as pa
import pyarrow.compute as pc

from mlpoints.data.point import FEATURES, MultilabelPoint, check_point_type
from mlpoints.utils.errors import SchemaError


def num_documents(points: Sequence[MultilabelPoint]) -> int:
    return len(points)


def num_labels(points: Sequence[MultilabelPoint]) -> int:
    """最大 label id + 1；没有任何 label 时为 0。"""
    max_label = max((p.labels[-1] for p in points if p.labels), default=-1)
    return max_label + 1


def num_features(points: Sequence[MultilabelPoint]) -> int:
    """同一集合内所有 point 的 num_features 相同，取第一个。"""
    if not points:
        raise ValueError("empty collection has no num_features")
    return points[0].num_features


def num_features_from_table(table: pa.Table, column: str) -> int:
    """
    从 struct 列推导特征数：最大 0-based 下标 + 1
    （与 libsvm.compute_num_features 的语义一致：最大下标落在 num_features - 1）。
    """
    if column not in table.column_names:
        raise SchemaError(f"column {column!r} not found in {table.column_names}")
    check_point_type(table.schema.field(column).type)

    if table.num_rows == 0:
        return 0

    field_idx = table.schema.field(column).type.get_field_index(FEATURES)
    features = pc.list_flatten(pc.struct_field(table[column], [field_idx]))
    max_idx = pc.max(features).as_py()
    return 0 if max_idx is None else int(max_idx) + 1
