from .point import (
    ClassificationResult,
    FeatureDocuments,
    LabelDocuments,
    MultilabelPoint,
    point_type,
    results_type,
    points_to_table,
    points_from_table,
    results_from_table,
)
from .libsvm import IdAssignment, compute_num_features, encode_line, load_libsvm, parse_line
from .datasource import LibSvmSource

__all__ = [
    "ClassificationResult",
    "FeatureDocuments",
    "LabelDocuments",
    "MultilabelPoint",
    "point_type",
    "results_type",
    "points_to_table",
    "points_from_table",
    "results_from_table",
    "IdAssignment",
    "compute_num_features",
    "encode_line",
    "load_libsvm",
    "parse_line",
    "LibSvmSource",
]
