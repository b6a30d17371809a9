# mlpoints/index/builder.py
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import pyarrow as pa

from mlpoints.config.parallel_config import ParallelConfig
from mlpoints.data.point import FeatureDocuments, LabelDocuments, MultilabelPoint
from mlpoints.parallel import ParallelExecutor, ParallelKind, Partition, split_partitions
from mlpoints.utils.logger import logs

# 部分聚合（一个分片的结果）
LabelPartial = Dict[int, List[int]]
FeaturePartial = Dict[int, FeatureDocuments]


# ==================================================
# emit / merge（纯函数）
# ==================================================
def label_pairs(point: MultilabelPoint) -> list[tuple[int, list[int]]]:
    """每个 label 发出一个 (label, [point_id])；空 label 集合不发出任何东西。"""
    return [(label, [point.point_id]) for label in point.labels]


def merge_documents(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """拼接后排序：结合律 + 交换律成立，结果与合并顺序无关。"""
    return sorted([*a, *b])


def feature_pairs(point: MultilabelPoint) -> list[tuple[int, FeatureDocuments]]:
    """
    每个非零特征发出一个 (feature, {documents:[id], labels:[label set]})。
    解析器不校验重复下标：同一 point 内重复的下标只发出一次。
    """
    seen: set[int] = set()
    pairs: list[tuple[int, FeatureDocuments]] = []
    for idx, _ in point.nonzero():
        if idx in seen:
            continue
        seen.add(idx)
        pairs.append((idx, FeatureDocuments(idx, (point.point_id,), (point.labels,))))
    return pairs


def merge_feature_documents(a: FeatureDocuments, b: FeatureDocuments) -> FeatureDocuments:
    """两个平行序列按同样的相对顺序拼接，位置对应关系保持不变。"""
    if a.feature_id != b.feature_id:
        raise ValueError(f"cannot merge feature {a.feature_id} with feature {b.feature_id}")
    return FeatureDocuments(a.feature_id, a.documents + b.documents, a.labels + b.labels)


# ==================================================
# 分片内聚合 + 分片间合并
# ==================================================
def partial_label_index(points: Sequence[MultilabelPoint]) -> LabelPartial:
    acc: LabelPartial = {}
    for point in points:
        for label, docs in label_pairs(point):
            acc.setdefault(label, []).extend(docs)
    for docs in acc.values():
        docs.sort()
    return acc


def combine_label_indices(a: LabelPartial, b: LabelPartial) -> LabelPartial:
    out: LabelPartial = {}
    for label in a.keys() | b.keys():
        out[label] = merge_documents(a.get(label, ()), b.get(label, ()))
    return out


def partial_feature_index(points: Sequence[MultilabelPoint]) -> FeaturePartial:
    # 分片内按 feature 收集，结束时再转成 FeatureDocuments
    docs: Dict[int, List[int]] = {}
    labels: Dict[int, List[Tuple[int, ...]]] = {}
    for point in points:
        for idx, emitted in feature_pairs(point):
            docs.setdefault(idx, []).extend(emitted.documents)
            labels.setdefault(idx, []).extend(emitted.labels)
    return {idx: FeatureDocuments(idx, tuple(docs[idx]), tuple(labels[idx])) for idx in docs}


def combine_feature_indices(a: FeaturePartial, b: FeaturePartial) -> FeaturePartial:
    out: FeaturePartial = dict(a)
    for idx, entry in b.items():
        out[idx] = merge_feature_documents(out[idx], entry) if idx in out else entry
    return out


def _label_partition(part: Partition[MultilabelPoint]) -> LabelPartial:
    return partial_label_index(part.items)


def _feature_partition(part: Partition[MultilabelPoint]) -> FeaturePartial:
    return partial_feature_index(part.items)


# ==================================================
# IndexBuilder
# ==================================================
class IndexBuilder:
    """
    IndexBuilder（Aggregate Engine）

    语义：
      - label   → 携带该 label 的 point id（升序、无重复）
      - feature → 含该特征的 point id + 各自的 label 集合（位置对应）

    约束：
      - 分片在 worker 内独立聚合，分片间用纯的 combine 函数合并
      - 合并顺序不确定，结果不依赖分片方式 / 合并顺序
      - 不涉及 I/O
    """

    def __init__(self, parallel: ParallelConfig | None = None):
        self.parallel = parallel or ParallelConfig()

    def _partitions(self, points: Sequence[MultilabelPoint]) -> list[Partition[MultilabelPoint]]:
        return split_partitions(points, self.parallel.num_partitions or self.parallel.max_workers)

    # --------------------------------------------------
    @logs.catch(msg="building label index")
    def build_label_index(self, points: Sequence[MultilabelPoint]) -> list[LabelDocuments]:
        merged = ParallelExecutor.map_reduce(
            kind=ParallelKind.PARTITION,
            items=self._partitions(points),
            handler=_label_partition,
            merge=combine_label_indices,
            initial={},
            max_workers=self.parallel.max_workers,
        )
        entries = [LabelDocuments(label, tuple(docs)) for label, docs in sorted(merged.items())]
        logs.info(f"[IndexBuilder] label index labels={len(entries)} points={len(points)}")
        return entries

    @logs.catch(msg="building feature index")
    def build_feature_index(self, points: Sequence[MultilabelPoint]) -> list[FeatureDocuments]:
        merged = ParallelExecutor.map_reduce(
            kind=ParallelKind.PARTITION,
            items=self._partitions(points),
            handler=_feature_partition,
            merge=combine_feature_indices,
            initial={},
            max_workers=self.parallel.max_workers,
        )
        entries = [merged[idx] for idx in sorted(merged)]
        logs.info(f"[IndexBuilder] feature index features={len(entries)} points={len(points)}")
        return entries


def build_label_index(
        points: Sequence[MultilabelPoint],
        parallel: ParallelConfig | None = None,
) -> list[LabelDocuments]:
    return IndexBuilder(parallel).build_label_index(points)


def build_feature_index(
        points: Sequence[MultilabelPoint],
        parallel: ParallelConfig | None = None,
) -> list[FeatureDocuments]:
    return IndexBuilder(parallel).build_feature_index(points)


# ==================================================
# Arrow 输出
# ==================================================
LABEL_ID = "labelID"
FEATURE_ID = "featureID"
DOCUMENTS = "documents"
DOC_LABELS = "labels"


def label_index_schema() -> pa.Schema:
    return pa.schema(
        [
            pa.field(LABEL_ID, pa.int32(), nullable=False),
            pa.field(DOCUMENTS, pa.list_(pa.int32()), nullable=False),
        ]
    )


def feature_index_schema() -> pa.Schema:
    return pa.schema(
        [
            pa.field(FEATURE_ID, pa.int32(), nullable=False),
            pa.field(DOCUMENTS, pa.list_(pa.int32()), nullable=False),
            pa.field(DOC_LABELS, pa.list_(pa.list_(pa.int32())), nullable=False),
        ]
    )


def label_index_to_table(entries: Sequence[LabelDocuments]) -> pa.Table:
    return pa.Table.from_pylist(
        [{LABEL_ID: e.label_id, DOCUMENTS: list(e.documents)} for e in entries],
        schema=label_index_schema(),
    )


def feature_index_to_table(entries: Sequence[FeatureDocuments]) -> pa.Table:
    return pa.Table.from_pylist(
        [
            {
                FEATURE_ID: e.feature_id,
                DOCUMENTS: list(e.documents),
                DOC_LABELS: [list(labels) for labels in e.labels],
            }
            for e in entries
        ],
        schema=feature_index_schema(),
    )
