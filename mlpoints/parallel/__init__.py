from .broadcast import Broadcast
from .executor import ParallelExecutor
from .types import ParallelKind, Partition, split_partitions

__all__ = [
    "Broadcast",
    "ParallelExecutor",
    "ParallelKind",
    "Partition",
    "split_partitions",
]
