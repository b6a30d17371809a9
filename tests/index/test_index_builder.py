from __future__ import annotations

import random

import pytest

from mlpoints.config import ParallelConfig
from mlpoints.data.point import FeatureDocuments, LabelDocuments, MultilabelPoint
from mlpoints.index.builder import (
    IndexBuilder,
    build_feature_index,
    build_label_index,
    combine_feature_indices,
    combine_label_indices,
    feature_index_to_table,
    feature_pairs,
    label_index_to_table,
    label_pairs,
    merge_documents,
    merge_feature_documents,
    partial_feature_index,
    partial_label_index,
)


def make_points(n: int = 23) -> list[MultilabelPoint]:
    rng = random.Random(7)
    points = []
    for i in range(n):
        features = tuple(sorted(rng.sample(range(12), 3)))
        weights = tuple(float(rng.choice([0, 1, 2])) for _ in features)
        labels = tuple(rng.sample(range(5), rng.randint(0, 3)))
        points.append(MultilabelPoint(i, 12, features, weights, labels))
    return points


def canonical_features(entries: list[FeatureDocuments]):
    """documents 在 feature index 中不保证顺序：按 (doc, labels) 对比较。"""
    return {e.feature_id: sorted(zip(e.documents, e.labels)) for e in entries}


# ============================================================
# 1. 样例
# ============================================================
def test_label_index_example(example_points, sequential):
    assert build_label_index(example_points, sequential) == [
        LabelDocuments(0, (0,)),
        LabelDocuments(1, (0, 1)),
    ]


def test_feature_index_example(example_points, sequential):
    assert build_feature_index(example_points, sequential) == [
        FeatureDocuments(0, (0,), ((0, 1),)),
        FeatureDocuments(1, (1,), ((1,),)),
        FeatureDocuments(2, (0,), ((0, 1),)),
    ]


# ============================================================
# 2. 边界
# ============================================================
def test_point_without_labels_not_in_label_index(sequential):
    points = [
        MultilabelPoint(0, 2, (0,), (1.0,), ()),
        MultilabelPoint(1, 2, (1,), (1.0,), (3,)),
    ]
    assert build_label_index(points, sequential) == [LabelDocuments(3, (1,))]

    # 但仍出现在 feature index 中，label 集合为空
    features = build_feature_index(points, sequential)
    assert features[0] == FeatureDocuments(0, (0,), ((),))


def test_zero_weight_feature_is_not_indexed(sequential):
    points = [MultilabelPoint(0, 3, (0, 2), (0.0, 1.0), (0,))]
    assert [e.feature_id for e in build_feature_index(points, sequential)] == [2]


def test_repeated_feature_index_listed_once(sequential):
    # 未校验的解析结果可能含重复下标
    points = [
        MultilabelPoint(0, 3, (1, 1), (1.0, 2.0), (0,)),
        MultilabelPoint(1, 3, (1,), (1.0,), ()),
    ]

    assert build_feature_index(points, sequential) == [
        FeatureDocuments(1, (0, 1), ((0,), ())),
    ]
    assert feature_pairs(points[0]) == [(1, FeatureDocuments(1, (0,), ((0,),)))]


def test_empty_collection(sequential):
    assert build_label_index([], sequential) == []
    assert build_feature_index([], sequential) == []


# ============================================================
# 3. 与分片方式 / 合并顺序无关
# ============================================================
@pytest.mark.parametrize("partitions", [1, 2, 3, 5])
def test_label_index_partition_invariant(partitions):
    points = make_points()
    expected = build_label_index(points, ParallelConfig(max_workers=1))
    builder = IndexBuilder(ParallelConfig(max_workers=1, num_partitions=partitions))

    assert builder.build_label_index(points) == expected


@pytest.mark.parametrize("partitions", [1, 2, 3, 5])
def test_feature_index_partition_invariant(partitions):
    points = make_points()
    expected = build_feature_index(points, ParallelConfig(max_workers=1))
    builder = IndexBuilder(ParallelConfig(max_workers=1, num_partitions=partitions))

    assert canonical_features(builder.build_feature_index(points)) == canonical_features(expected)


def test_combine_order_does_not_matter():
    points = make_points()
    chunks = [points[i:i + 4] for i in range(0, len(points), 4)]

    label_partials = [partial_label_index(c) for c in chunks]
    feature_partials = [partial_feature_index(c) for c in chunks]

    def fold(combine, partials):
        acc = {}
        for p in partials:
            acc = combine(acc, p)
        return acc

    labels_fwd = fold(combine_label_indices, label_partials)
    features_fwd = fold(combine_feature_indices, feature_partials)

    rng = random.Random(3)
    for _ in range(5):
        rng.shuffle(label_partials)
        rng.shuffle(feature_partials)
        assert fold(combine_label_indices, label_partials) == labels_fwd

        shuffled = fold(combine_feature_indices, feature_partials)
        assert shuffled.keys() == features_fwd.keys()
        for idx, entry in shuffled.items():
            ref = features_fwd[idx]
            assert sorted(zip(entry.documents, entry.labels)) == sorted(zip(ref.documents, ref.labels))


def test_parallel_build_matches_sequential():
    points = make_points(40)
    seq = IndexBuilder(ParallelConfig(max_workers=1))
    par = IndexBuilder(ParallelConfig(max_workers=2, num_partitions=4))

    assert par.build_label_index(points) == seq.build_label_index(points)
    assert canonical_features(par.build_feature_index(points)) == canonical_features(
        seq.build_feature_index(points)
    )


# ============================================================
# 4. emit / merge 函数
# ============================================================
def test_label_pairs():
    p = MultilabelPoint(4, 2, (0,), (1.0,), (2, 0))
    assert label_pairs(p) == [(0, [4]), (2, [4])]
    assert label_pairs(MultilabelPoint(4, 2, (0,), (1.0,), ())) == []


def test_merge_documents_commutative_and_associative():
    a, b, c = [5, 1], [3], [4, 2]
    assert merge_documents(a, b) == merge_documents(b, a)
    assert merge_documents(merge_documents(a, b), c) == merge_documents(a, merge_documents(b, c))
    assert merge_documents(a, merge_documents(b, c)) == [1, 2, 3, 4, 5]


def test_feature_pairs_and_merge():
    p = MultilabelPoint(1, 4, (0, 3), (2.0, 0.0), (1,))
    q = MultilabelPoint(2, 4, (0,), (1.0,), (0, 2))

    [(idx, first)] = feature_pairs(p)
    [(_, second)] = feature_pairs(q)
    merged = merge_feature_documents(first, second)

    assert idx == 0
    assert merged.documents == (1, 2)
    assert merged.labels == ((1,), (0, 2))


def test_merge_feature_documents_rejects_different_features():
    with pytest.raises(ValueError):
        merge_feature_documents(FeatureDocuments(0, (), ()), FeatureDocuments(1, (), ()))


# ============================================================
# 5. Arrow 输出
# ============================================================
def test_index_tables(example_points, sequential):
    labels = label_index_to_table(build_label_index(example_points, sequential))
    features = feature_index_to_table(build_feature_index(example_points, sequential))

    assert labels.to_pylist() == [
        {"labelID": 0, "documents": [0]},
        {"labelID": 1, "documents": [0, 1]},
    ]
    assert features.column("featureID").to_pylist() == [0, 1, 2]
    assert features.column("labels").to_pylist() == [[[0, 1]], [[1]], [[0, 1]]]
    assert all(not f.nullable for f in features.schema)
