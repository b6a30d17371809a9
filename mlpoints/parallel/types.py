# mlpoints/parallel/types.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


class ParallelKind(str, Enum):
    PARTITION = "partition"


@dataclass(frozen=True)
class Partition(Generic[T]):
    """
    一个互不相交的数据分片：
      - index: 分片序号
      - start: 分片第一个元素在整个集合中的位置
      - items: 分片内容（只读）
    """

    index: int
    start: int
    items: Sequence[T]

    def __len__(self) -> int:
        return len(self.items)


def split_partitions(items: Sequence[T], n: int | None) -> list[Partition[T]]:
    """
    将序列切成 n 个连续、互不相交的分片（尺寸差 ≤ 1）。
    n 被截断到 [1, len(items)]；空序列返回 []。
    """
    total = len(items)
    if total == 0:
        return []

    n = max(1, min(n or 1, total))
    size, extra = divmod(total, n)

    parts: list[Partition[T]] = []
    start = 0
    for i in range(n):
        end = start + size + (1 if i < extra else 0)
        parts.append(Partition(index=i, start=start, items=items[start:end]))
        start = end
    return parts
