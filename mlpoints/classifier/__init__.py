from .pipeline import ClassificationPipeline, Classifier
from .linear import LinearModel, linear_classifier

__all__ = [
    "ClassificationPipeline",
    "Classifier",
    "LinearModel",
    "linear_classifier",
]
