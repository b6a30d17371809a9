# mlpoints/classifier/linear.py
from __future__ import annotations

import json
from functools import cached_property
from pathlib import Path
from typing import Dict, List

import numpy as np
from pydantic import BaseModel, Field

from mlpoints.data.point import ClassificationResult, MultilabelPoint
from mlpoints.parallel import Broadcast
from mlpoints.utils.errors import UserInputError
from mlpoints.utils.filesystem import FileSystem


class LinearModel(BaseModel):
    """
    每个 label 一个线性打分器（已训练好的参数，只做推理）

    score(label) = <weights[label], x> + bias[label]
    positive 当 score >= thresholds[label]
    """

    weights: Dict[int, List[float]]
    bias: Dict[int, float] = Field(default_factory=dict)
    thresholds: Dict[int, float] = Field(default_factory=dict)
    default_threshold: float = 0.0

    @classmethod
    def load(cls, path: str | Path) -> "LinearModel":
        path = Path(path)
        if not path.is_file():
            raise UserInputError(f"model file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    def save(self, path: str | Path) -> None:
        FileSystem.safe_write(path, self.model_dump_json(indent=2).encode("utf-8"))

    @cached_property
    def dense(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """(labels, W[L, D], bias[L], thresholds[L])，label 升序。"""
        labels = np.array(sorted(self.weights), dtype=np.int64)
        dim = max((len(w) for w in self.weights.values()), default=0)

        matrix = np.zeros((len(labels), dim), dtype=np.float64)
        for row, label in enumerate(labels):
            w = self.weights[int(label)]
            matrix[row, : len(w)] = w

        bias = np.array([self.bias.get(int(l), 0.0) for l in labels], dtype=np.float64)
        thresholds = np.array(
            [self.thresholds.get(int(l), self.default_threshold) for l in labels],
            dtype=np.float64,
        )
        return labels, matrix, bias, thresholds


def linear_classifier(point: MultilabelPoint, shared: Broadcast) -> ClassificationResult:
    """对模型中的每个 label 打分（label 升序）；模型来自只读 broadcast。"""
    model: LinearModel = shared.value
    labels, matrix, bias, thresholds = model.dense

    idx = np.fromiter(point.features, dtype=np.int64, count=len(point.features))
    values = np.fromiter(point.weights, dtype=np.float64, count=len(point.weights))

    # 未校验的输入可能带负下标（外部 0:w）；与超出 W 维度的特征一样贡献为 0
    known = (idx >= 0) & (idx < matrix.shape[1])
    scores = matrix[:, idx[known]] @ values[known] + bias

    return ClassificationResult(
        point_id=point.point_id,
        labels=labels.tolist(),
        scores=scores.tolist(),
        positive_thresholds=thresholds.tolist(),
    )
