# mlpoints/parallel/executor.py
from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from functools import partial, reduce
from typing import Any, Callable, Iterable, TypeVar

from mlpoints.parallel.broadcast import Broadcast
from mlpoints.parallel.types import ParallelKind
from mlpoints.utils.logger import logs

R = TypeVar("R")


class ParallelExecutor:
    """
    ParallelExecutor

    - 统一的 ProcessPoolExecutor 封装（workers == 1 时顺序执行）
    - worker 之间无共享可变状态；shared 为只读 Broadcast，按任务派发一次
    - fail-fast：任一任务失败即取消未开始的任务并抛出
    - 不产生部分结果：失败时不返回任何结果
    """

    @staticmethod
    def map(
            *,
            kind: ParallelKind,
            items: Iterable[Any],
            handler: Callable[..., R],
            shared: Broadcast | None = None,
            max_workers: int | None = None,
    ) -> list[R]:
        """
        对每个 item 执行 handler，结果按 item 顺序返回。
        shared 非空时以关键字参数 shared= 传给 handler。
        """
        items = list(items)
        if not items:
            logs.info(f"[ParallelExecutor] kind={kind.value} no items to process")
            return []

        task = handler if shared is None else partial(handler, shared=shared)
        workers = ParallelExecutor._resolve_workers(items, max_workers)

        logs.info(
            f"[ParallelExecutor] start "
            f"kind={kind.value} total={len(items)} workers={workers}"
        )

        if workers == 1:
            return [task(item) for item in items]

        results: list[Any] = [None] * len(items)
        for idx, result in ParallelExecutor._iter_parallel(items, task, workers):
            results[idx] = result
        return results

    @staticmethod
    def map_reduce(
            *,
            kind: ParallelKind,
            items: Iterable[Any],
            handler: Callable[..., R],
            merge: Callable[[R, R], R],
            initial: R,
            shared: Broadcast | None = None,
            max_workers: int | None = None,
    ) -> R:
        """
        map 后用 merge 折叠部分聚合结果。

        合并顺序 = 任务完成顺序（不确定），因此 merge 必须是纯函数，
        满足结合律 + 交换律。
        """
        items = list(items)
        if not items:
            return initial

        task = handler if shared is None else partial(handler, shared=shared)
        workers = ParallelExecutor._resolve_workers(items, max_workers)

        logs.info(
            f"[ParallelExecutor] map_reduce "
            f"kind={kind.value} total={len(items)} workers={workers}"
        )

        if workers == 1:
            return reduce(merge, (task(item) for item in items), initial)

        acc = initial
        for _, partial_result in ParallelExecutor._iter_parallel(items, task, workers):
            acc = merge(acc, partial_result)
        return acc

    # ---------------- internal ----------------

    @staticmethod
    def _resolve_workers(items: list, max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))

    @staticmethod
    def _iter_parallel(items: list, task: Callable, workers: int):
        """按完成顺序产出 (item_index, result)。"""
        pool = ProcessPoolExecutor(max_workers=workers)
        try:
            futures = {
                pool.submit(task, item): idx
                for idx, item in enumerate(items)
            }
            for fut in as_completed(futures):
                yield futures[fut], fut.result()
        except BaseException:
            logs.error("[ParallelExecutor] task failed -> cancel pending tasks")
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        else:
            pool.shutdown(wait=True)
