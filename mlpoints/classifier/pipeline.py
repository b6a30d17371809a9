# mlpoints/classifier/pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable

import pyarrow as pa

from mlpoints.config.parallel_config import ParallelConfig
from mlpoints.config.points_config import ErrorPolicy, PointsConfig
from mlpoints.data.point import (
    POINT_ID,
    ClassificationResult,
    MultilabelPoint,
    check_point_type,
    point_from_struct,
    result_to_struct,
    results_type,
)
from mlpoints.parallel import Broadcast, ParallelExecutor, ParallelKind, split_partitions
from mlpoints.utils.errors import ClassificationError, SchemaError
from mlpoints.utils.logger import logs

# (point, 只读 broadcast) -> 分类结果；必须是可 pickle 的模块级函数 / 对象
Classifier = Callable[[MultilabelPoint, Broadcast], ClassificationResult]


@dataclass(frozen=True)
class _ApplyOptions:
    input_column: str
    output_column: str
    errors: ErrorPolicy


def _classify_one(
        value: Any,
        classifier: Classifier,
        shared: Broadcast,
) -> ClassificationResult:
    if value is None:
        raise ClassificationError("null point record")

    try:
        point = point_from_struct(value, shared.num_features)
    except (KeyError, TypeError, ValueError) as e:
        point_id = value.get(POINT_ID) if isinstance(value, dict) else None
        raise ClassificationError(
            f"malformed point record {point_id}: {e}",
            point_id=point_id,
        ) from e

    try:
        result = classifier(point, shared)
    except Exception as e:
        raise ClassificationError(
            f"classifier failed on point {point.point_id}: {e}",
            point_id=point.point_id,
        ) from e

    if not isinstance(result, ClassificationResult):
        raise ClassificationError(
            f"classifier returned {type(result).__name__} for point {point.point_id}",
            point_id=point.point_id,
        )
    if result.point_id != point.point_id:
        raise ClassificationError(
            f"classifier returned result for point {result.point_id}, "
            f"expected {point.point_id}",
            point_id=point.point_id,
        )
    return result


def _apply_partition(
        batch: pa.Table,
        *,
        classifier: Classifier,
        opts: _ApplyOptions,
        shared: Broadcast,
) -> pa.Table:
    """
    worker：对一个分片逐条分类，追加输出列。
    其他列原样保留（不重建），字段顺序不变。
    """
    results: list[dict] = []
    keep: list[bool] = []

    for value in batch[opts.input_column].to_pylist():
        try:
            result = _classify_one(value, classifier, shared)
        except ClassificationError as e:
            if opts.errors is ErrorPolicy.FAIL:
                raise
            logs.warning(f"[ClassificationPipeline] drop record: {e}")
            keep.append(False)
            continue
        keep.append(True)
        results.append(result_to_struct(result))

    if not all(keep):
        batch = batch.filter(pa.array(keep, type=pa.bool_()))

    column = pa.array(results, type=results_type())
    return batch.append_column(
        pa.field(opts.output_column, results_type(), nullable=False),
        column,
    )


class ClassificationPipeline:
    """
    ClassificationPipeline（对每个 point 分类，扩展 schema）

    流程：
      1. validate        输入列存在且结构匹配 point 编码；输出列名不得已存在
      2. extend schema   输入 schema + 一个 non-nullable 结果列
      3. broadcast       num_features + 模型状态，每次 transform 构造一次
      4. apply           分片并行：decode → classifier → encode
      5. emit            全部分片成功后才拼出新表；输入表不变

    错误：
      - SchemaError 在任何分片处理前抛出
      - 分类失败默认 fail-fast（config.classification_errors）
    """

    def __init__(
            self,
            classifier: Classifier,
            num_features: int,
            state: Any = None,
            config: PointsConfig | None = None,
            parallel: ParallelConfig | None = None,
    ):
        if num_features <= 0:
            raise ValueError(f"num_features must be > 0, got {num_features}")
        self.classifier = classifier
        self.num_features = num_features
        self.state = state
        self.config = config or PointsConfig()
        self.parallel = parallel or ParallelConfig()

    @property
    def input_column(self) -> str:
        return self.config.input_column

    @property
    def output_column(self) -> str:
        return self.config.output_column

    # --------------------------------------------------
    # schema
    # --------------------------------------------------
    def validate(self, schema: pa.Schema) -> None:
        matches = schema.get_all_field_indices(self.input_column)
        if not matches:
            raise SchemaError(
                f"input column {self.input_column!r} not found in schema {schema.names}"
            )
        if len(matches) > 1:
            raise SchemaError(f"input column {self.input_column!r} is ambiguous")

        check_point_type(schema.field(matches[0]).type)

        if self.output_column in schema.names:
            raise SchemaError(
                f"output column {self.output_column!r} already exists in this schema"
            )

    def transform_schema(self, schema: pa.Schema) -> pa.Schema:
        self.validate(schema)
        return schema.append(pa.field(self.output_column, results_type(), nullable=False))

    # --------------------------------------------------
    # transform
    # --------------------------------------------------
    @logs.catch(msg="classification pipeline failed")
    def transform(self, table: pa.Table) -> pa.Table:
        out_schema = self.transform_schema(table.schema)

        shared = Broadcast.of(self.num_features, self.state)
        opts = _ApplyOptions(
            input_column=self.input_column,
            output_column=self.output_column,
            errors=self.config.classification_errors,
        )

        parts = split_partitions(
            range(table.num_rows),
            self.parallel.num_partitions or self.parallel.max_workers,
        )
        batches = [table.slice(part.start, len(part)) for part in parts]

        outputs = ParallelExecutor.map(
            kind=ParallelKind.PARTITION,
            items=batches,
            handler=partial(_apply_partition, classifier=self.classifier, opts=opts),
            shared=shared,
            max_workers=self.parallel.max_workers,
        )

        if not outputs:
            return out_schema.empty_table()

        result = pa.concat_tables(outputs)
        dropped = table.num_rows - result.num_rows
        logs.info(
            f"[ClassificationPipeline] classified rows={result.num_rows} "
            f"dropped={dropped} partitions={len(parts)}"
        )
        return result
