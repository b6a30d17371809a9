# mlpoints/data/libsvm.py
"""
LibSVM 风格稀疏文本格式

    <label-spec> <idx1>:<w1> <idx2>:<w2> ... [# comment]

- label-spec: 逗号分隔的整数（多标签）或单个带符号数（binary）
- 特征下标外部 1-based，内部 0-based
"""
from __future__ import annotations

import dataclasses
from enum import Enum
from pathlib import Path
from typing import Iterable

from mlpoints.config.parallel_config import ParallelConfig
from mlpoints.config.points_config import EmptyLinePolicy, ErrorPolicy, PointsConfig
from mlpoints.data.datasource import LibSvmSource, read_lines
from mlpoints.data.point import MultilabelPoint
from mlpoints.parallel import Broadcast, ParallelExecutor, ParallelKind, Partition, split_partitions
from mlpoints.utils.errors import InvalidLabel, ParseError
from mlpoints.utils.logger import logs

COMMENT = "#"


class IdAssignment(str, Enum):
    # id = 文件中非空行的行号（跨多次处理稳定，跳过的行留下空洞）
    ROW = "row"
    # id = 被接受的 point 的稠密序号，按分片局部编号再加偏移（只在一次执行内稳定）
    PARTITION = "partition"


# ============================
# 单行
# ============================
def _to_int(token: str, what: str, line_no: int | None, line: str | None) -> int:
    try:
        return int(float(token))
    except (ValueError, OverflowError):
        raise ParseError(f"malformed {what} {token!r}", line_no=line_no, line=line) from None


def _parse_labels(
        spec: str,
        *,
        labels_0_based: bool,
        binary_problem: bool,
        line_no: int | None,
        line: str | None,
) -> tuple[int, ...]:
    tokens = spec.split(",")

    if binary_problem:
        if len(tokens) > 1:
            raise InvalidLabel(
                "in a binary problem only one label value (+1 or -1) is allowed per point",
                line_no=line_no,
                line=line,
            )
        value = _to_int(tokens[0], "label", line_no, line)
        return (0,) if value > 0 else ()

    labels = []
    for token in tokens:
        value = _to_int(token, "label", line_no, line)
        label = value if labels_0_based else value - 1
        if label < 0:
            raise InvalidLabel(
                f"negative label id {label} from {token!r}: check binary_problem "
                f"and labels_0_based settings",
                line_no=line_no,
                line=line,
            )
        labels.append(label)
    return tuple(labels)


def _iter_feature_tokens(fields: list[str]) -> Iterable[str]:
    for token in fields:
        if token.startswith(COMMENT):
            break
        yield token


def _split_feature(token: str, line_no: int | None, line: str | None) -> tuple[int, float]:
    idx, sep, weight = token.partition(":")
    if not sep:
        raise ParseError(f"malformed feature token {token!r}", line_no=line_no, line=line)
    try:
        return int(idx), float(weight)
    except ValueError:
        raise ParseError(f"malformed feature token {token!r}", line_no=line_no, line=line) from None


def parse_line(
        line: str,
        point_id: int,
        num_features: int,
        *,
        labels_0_based: bool = False,
        binary_problem: bool = False,
        line_no: int | None = None,
) -> MultilabelPoint:
    """
    解析一行非空稀疏文本为 MultilabelPoint。

    不校验特征下标的重复 / 越界（由知道 num_features 的调用方校验）。
    """
    fields = line.split()
    if not fields:
        raise ParseError("empty line", line_no=line_no, line=line)

    labels = _parse_labels(
        fields[0],
        labels_0_based=labels_0_based,
        binary_problem=binary_problem,
        line_no=line_no,
        line=line,
    )

    features: list[int] = []
    weights: list[float] = []
    for token in _iter_feature_tokens(fields[1:]):
        idx, weight = _split_feature(token, line_no, line)
        features.append(idx - 1)
        weights.append(weight)

    return MultilabelPoint(
        point_id=point_id,
        num_features=num_features,
        features=tuple(features),
        weights=tuple(weights),
        labels=labels,
    )


def max_feature_id(line: str) -> int:
    """单行最大 1-based 特征下标；无特征为 0，空行为 -1。"""
    fields = line.split()
    if not fields:
        return -1
    return max(
        (_split_feature(token, None, line)[0] for token in _iter_feature_tokens(fields[1:])),
        default=0,
    )


def encode_line(
        point: MultilabelPoint,
        *,
        labels_0_based: bool = False,
        binary_problem: bool = False,
) -> str:
    """parse_line 的逆操作。"""
    if binary_problem:
        spec = "+1" if 0 in point.labels else "-1"
    else:
        if not point.labels:
            raise ValueError(
                f"point {point.point_id}: empty label set cannot be encoded in multi-label mode"
            )
        offset = 0 if labels_0_based else 1
        spec = ",".join(str(label + offset) for label in point.labels)

    feats = [f"{idx + 1}:{weight!r}" for idx, weight in zip(point.features, point.weights)]
    return " ".join([spec, *feats])


# ============================
# 全集合：num_features
# ============================
def _line_max_feature(line: str) -> int:
    try:
        return max_feature_id(line)
    except ParseError:
        # 格式错误的行由解析阶段按 parse_errors 策略处理（带行号）
        return -1


def _partition_max_feature(part: Partition[str]) -> int:
    return max((_line_max_feature(line) for line in part.items), default=-1)


def compute_num_features(lines: list[str], parallel: ParallelConfig | None = None) -> int:
    """
    扫描整个集合，取最大 1-based 特征下标（不减 1）。
    作为每个 point 的 num_features：最大下标落在 0-based 的 num_features - 1。
    """
    parallel = parallel or ParallelConfig()
    parts = split_partitions(lines, parallel.num_partitions or parallel.max_workers)
    result = ParallelExecutor.map_reduce(
        kind=ParallelKind.PARTITION,
        items=parts,
        handler=_partition_max_feature,
        merge=max,
        initial=-1,
        max_workers=parallel.max_workers,
    )
    return max(result, 0)


# ============================
# 全集合：加载
# ============================
def _parse_partition(part: Partition[tuple[int, int, str]], shared: Broadcast) -> list[MultilabelPoint]:
    """
    worker：解析一个分片。
    - ROW 模式：id = 行号
    - PARTITION 模式：id = 分片内被接受 point 的局部序号（driver 再加偏移）
    """
    cfg: PointsConfig = shared.value["config"]
    ids: IdAssignment = shared.value["ids"]
    validate: bool = shared.value["validate"]

    points: list[MultilabelPoint] = []
    for row_id, line_no, line in part.items:
        point_id = row_id if ids is IdAssignment.ROW else len(points)
        try:
            point = parse_line(
                line,
                point_id,
                shared.num_features,
                labels_0_based=cfg.labels_0_based,
                binary_problem=cfg.binary_problem,
                line_no=line_no,
            )
            if validate:
                try:
                    point.check_features()
                except ValueError as e:
                    raise ParseError(str(e), line_no=line_no, line=line) from e
        except ParseError as e:
            if cfg.parse_errors is ErrorPolicy.FAIL:
                raise
            logs.warning(f"[LibSvm] skip line: {e}")
            continue
        points.append(point)
    return points


def _non_empty_rows(lines: Iterable[str], policy: EmptyLinePolicy) -> list[tuple[int, int, str]]:
    """(row_id, line_no, line)：row_id 只数非空行，line_no 是物理行号。"""
    rows: list[tuple[int, int, str]] = []
    for line_no, line in enumerate(lines):
        if not line.strip():
            if policy is EmptyLinePolicy.REJECT:
                raise ParseError("empty line", line_no=line_no, line=line)
            continue
        rows.append((len(rows), line_no, line))
    return rows


@logs.catch(msg="loading LibSVM data")
def load_libsvm(
        source: str | Path | LibSvmSource | Iterable[str],
        config: PointsConfig | None = None,
        *,
        ids: IdAssignment = IdAssignment.ROW,
        num_features: int | None = None,
        validate: bool = False,
        parallel: ParallelConfig | None = None,
) -> list[MultilabelPoint]:
    """
    加载 LibSVM 格式数据。

    - source: 文件路径 / LibSvmSource / 行的可迭代对象
    - num_features: 已知特征数（例如与训练集一致）时直接使用，否则扫描全集合计算
    - validate: 按 num_features 校验特征下标（重复 / 越界 → ParseError）
    - 空行按 config.empty_lines 处理；格式错误按 config.parse_errors 处理
    """
    config = config or PointsConfig()
    parallel = parallel or ParallelConfig()

    if isinstance(source, (str, Path)):
        lines = read_lines(source)
    elif isinstance(source, LibSvmSource):
        lines = list(source.iter_lines())
    else:
        lines = list(source)

    rows = _non_empty_rows(lines, config.empty_lines)
    if not rows:
        logs.warning("[LibSvm] no points in source")
        return []

    if num_features is None:
        num_features = compute_num_features([line for _, _, line in rows], parallel)
    # 只有 label、没有任何特征的集合：num_features 仍需 > 0
    num_features = max(num_features, 1)

    shared = Broadcast.of(
        num_features,
        {"config": config, "ids": IdAssignment(ids), "validate": validate},
    )
    parts = split_partitions(rows, parallel.num_partitions or parallel.max_workers)

    per_partition = ParallelExecutor.map(
        kind=ParallelKind.PARTITION,
        items=parts,
        handler=_parse_partition,
        shared=shared,
        max_workers=parallel.max_workers,
    )

    points: list[MultilabelPoint] = []
    for chunk in per_partition:
        if IdAssignment(ids) is IdAssignment.PARTITION:
            offset = len(points)
            chunk = [dataclasses.replace(p, point_id=p.point_id + offset) for p in chunk]
        points.extend(chunk)

    skipped = len(rows) - len(points)
    logs.info(
        f"[LibSvm] loaded points={len(points)} skipped={skipped} "
        f"num_features={num_features} partitions={len(parts)}"
    )
    return points
