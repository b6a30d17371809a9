from .builder import (
    IndexBuilder,
    build_feature_index,
    build_label_index,
    feature_index_to_table,
    label_index_to_table,
)

__all__ = [
    "IndexBuilder",
    "build_feature_index",
    "build_label_index",
    "feature_index_to_table",
    "label_index_to_table",
]
