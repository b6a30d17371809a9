from .app_config import AppConfig
from .log_config import LogConfig
from .points_config import PointsConfig, ErrorPolicy, EmptyLinePolicy
from .parallel_config import ParallelConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "PointsConfig",
    "ErrorPolicy",
    "EmptyLinePolicy",
    "ParallelConfig",
]
