#!filepath: mlpoints/config/points_config.py
from enum import Enum

from pydantic import BaseModel, model_validator

DEFAULT_INPUT_COLUMN = "points"
DEFAULT_OUTPUT_COLUMN = "results"


class ErrorPolicy(str, Enum):
    FAIL = "fail"  # 第一条错误即中止整个 pass
    SKIP = "skip"  # 丢弃该行 / 记录，记 warning


class EmptyLinePolicy(str, Enum):
    SKIP = "skip"
    REJECT = "reject"


class PointsConfig(BaseModel):
    """
    Point 数据面的配置：
      - 列名（ClassificationPipeline）
      - 稀疏文本格式解析选项
      - 错误策略（默认 fail-fast）
    """

    input_column: str = DEFAULT_INPUT_COLUMN
    output_column: str = DEFAULT_OUTPUT_COLUMN

    labels_0_based: bool = False
    binary_problem: bool = False

    parse_errors: ErrorPolicy = ErrorPolicy.FAIL
    classification_errors: ErrorPolicy = ErrorPolicy.FAIL
    empty_lines: EmptyLinePolicy = EmptyLinePolicy.SKIP

    @model_validator(mode="after")
    def _check_columns(self) -> "PointsConfig":
        if not self.input_column or not self.output_column:
            raise ValueError("input_column / output_column must be non-empty")
        if self.input_column == self.output_column:
            raise ValueError(
                f"output_column must differ from input_column: {self.input_column!r}"
            )
        return self
