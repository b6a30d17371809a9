# mlpoints/parallel/broadcast.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class Broadcast(Generic[V]):
    """
    Broadcast state（一次运行内只读）

    - 每次 run 只构造一次，在任务派发时随 partition 交给 worker
    - 不是全局变量；worker 只读
    - 状态变化时构造新的 Broadcast，而不是原地修改
    """

    num_features: int
    value: V | None = None

    def __post_init__(self):
        if self.num_features <= 0:
            raise ValueError(f"num_features must be > 0, got {self.num_features}")

    @classmethod
    def of(cls, num_features: int, value: Any = None) -> "Broadcast":
        return cls(num_features=int(num_features), value=value)
