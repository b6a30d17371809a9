from __future__ import annotations

import numpy as np
import pytest

from mlpoints.classifier.linear import LinearModel, linear_classifier
from mlpoints.data.libsvm import parse_line
from mlpoints.data.point import MultilabelPoint
from mlpoints.parallel import Broadcast
from mlpoints.utils.errors import UserInputError


@pytest.fixture
def model() -> LinearModel:
    return LinearModel(
        weights={1: [0, 1], 0: [1, 0, 2]},
        bias={1: -0.5},
        thresholds={0: 1.0},
    )


def test_dense_view(model):
    labels, matrix, bias, thresholds = model.dense

    assert labels.tolist() == [0, 1]
    np.testing.assert_allclose(matrix, [[1, 0, 2], [0, 1, 0]])
    np.testing.assert_allclose(bias, [0.0, -0.5])
    np.testing.assert_allclose(thresholds, [1.0, 0.0])


def test_linear_classifier_scores(model):
    point = MultilabelPoint(5, 3, (0, 2), (0.5, 1.0), (0,))

    result = linear_classifier(point, Broadcast.of(3, model))

    assert result.point_id == 5
    assert result.labels == (0, 1)
    assert result.scores == pytest.approx((2.5, -0.5))
    assert result.positive_thresholds == (1.0, 0.0)
    assert result.positive_labels() == [0]


def test_linear_classifier_ignores_unknown_features(model):
    point = MultilabelPoint(1, 10, (1, 9), (2.0, 100.0), ())

    result = linear_classifier(point, Broadcast.of(10, model))

    assert result.scores == pytest.approx((0.0, 1.5))


def test_linear_classifier_without_features(model):
    result = linear_classifier(MultilabelPoint(0, 3, (), (), ()), Broadcast.of(3, model))
    assert result.scores == pytest.approx((0.0, -0.5))


def test_model_save_load(tmp_path, model):
    path = tmp_path / "models" / "linear.json"
    model.save(path)

    loaded = LinearModel.load(path)

    assert loaded.weights == {0: [1.0, 0.0, 2.0], 1: [0.0, 1.0]}
    assert loaded.bias == model.bias
    assert loaded.thresholds == model.thresholds
    assert loaded.default_threshold == 0.0


def test_model_load_missing(tmp_path):
    with pytest.raises(UserInputError):
        LinearModel.load(tmp_path / "none.json")


def test_linear_classifier_ignores_negative_indices():
    # 外部下标 0 解析成 -1（解析器不校验），不能回绕到最后一列
    point = parse_line("1 0:1.0", point_id=0, num_features=3)
    model = LinearModel(weights={0: [0, 0, 5]})

    result = linear_classifier(point, Broadcast.of(3, model))

    assert point.features == (-1,)
    assert result.scores == pytest.approx((0.0,))
