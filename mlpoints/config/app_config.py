#!filepath: mlpoints/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .parallel_config import ParallelConfig
from .points_config import PointsConfig

DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "base.yml")
WORKERS_ENV = "MLPOINTS_WORKERS"


def project_root() -> str:
    """mlpoints/config/app_config.py → 仓库根目录（.env 所在位置）"""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    points: PointsConfig = Field(default_factory=PointsConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        YAML + .env → AppConfig

        - path 为空时读包内 base.yml（与 cwd 无关）
        - 缺少的 section 使用默认值
        - MLPOINTS_WORKERS（.env 或环境变量）覆盖 parallel.max_workers
        """
        load_dotenv(os.path.join(project_root(), ".env"))

        path = path or DEFAULT_CONFIG
        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        workers = os.getenv(WORKERS_ENV)
        if workers:
            raw.setdefault("parallel", {})["max_workers"] = int(workers)

        return cls(**raw)
