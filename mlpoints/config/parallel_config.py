#!filepath: mlpoints/config/parallel_config.py
from typing import Optional

from pydantic import BaseModel, Field


class ParallelConfig(BaseModel):
    # None → os.cpu_count()
    max_workers: Optional[int] = Field(default=None, ge=1)
    # None → 与 worker 数相同
    num_partitions: Optional[int] = Field(default=None, ge=1)
