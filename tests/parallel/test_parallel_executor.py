from __future__ import annotations

import operator
import os

import pytest

from mlpoints.parallel import Broadcast, ParallelExecutor, ParallelKind


def test_map_with_empty_items_returns_empty():
    called = []

    def handler(x):
        called.append(x)

    assert ParallelExecutor.map(kind=ParallelKind.PARTITION, items=[], handler=handler) == []
    assert called == []


def test_map_sequential_order_preserved():
    called = []

    def handler(x):
        called.append(x)
        return x.upper()

    out = ParallelExecutor.map(
        kind=ParallelKind.PARTITION,
        items=["a", "b", "c"],
        handler=handler,
        max_workers=1,
    )

    assert called == ["a", "b", "c"]
    assert out == ["A", "B", "C"]


def test_map_passes_shared_as_keyword():
    seen = []

    def handler(x, shared):
        seen.append(shared)
        return x * shared.value

    shared = Broadcast.of(4, 10)
    out = ParallelExecutor.map(
        kind=ParallelKind.PARTITION,
        items=[1, 2],
        handler=handler,
        shared=shared,
        max_workers=1,
    )

    assert out == [10, 20]
    assert all(s is shared for s in seen)


def test_map_parallel_results_in_item_order():
    items = [-5, 3, -1, 8, -2, 0]

    out = ParallelExecutor.map(
        kind=ParallelKind.PARTITION,
        items=items,
        handler=abs,
        max_workers=2,
    )

    assert out == [5, 3, 1, 8, 2, 0]


def test_map_parallel_propagates_exception():
    with pytest.raises(ValueError):
        ParallelExecutor.map(
            kind=ParallelKind.PARTITION,
            items=["1", "bad", "3"],
            handler=int,
            max_workers=2,
        )


def test_map_sequential_fails_fast():
    called = []

    def handler(x):
        called.append(x)
        if x == "bad":
            raise RuntimeError("boom")
        return x

    with pytest.raises(RuntimeError):
        ParallelExecutor.map(
            kind=ParallelKind.PARTITION,
            items=["ok1", "bad", "ok2"],
            handler=handler,
            max_workers=1,
        )
    assert called == ["ok1", "bad"]


# ============================================================
# map_reduce
# ============================================================
def test_map_reduce_empty_returns_initial():
    out = ParallelExecutor.map_reduce(
        kind=ParallelKind.PARTITION,
        items=[],
        handler=abs,
        merge=operator.add,
        initial=0,
    )
    assert out == 0


@pytest.mark.parametrize("workers", [1, 2])
def test_map_reduce_sum(workers):
    out = ParallelExecutor.map_reduce(
        kind=ParallelKind.PARTITION,
        items=list(range(-10, 11)),
        handler=abs,
        merge=operator.add,
        initial=0,
        max_workers=workers,
    )
    assert out == 110


def test_map_reduce_parallel_propagates_exception():
    with pytest.raises(ValueError):
        ParallelExecutor.map_reduce(
            kind=ParallelKind.PARTITION,
            items=["1", "x"],
            handler=int,
            merge=max,
            initial=-1,
            max_workers=2,
        )


# ============================================================
# workers
# ============================================================
def test_resolve_workers_caps_by_items():
    assert ParallelExecutor._resolve_workers(["a", "b"], max_workers=10) == 2


def test_resolve_workers_caps_by_cpu():
    cpu = os.cpu_count() or 1
    assert ParallelExecutor._resolve_workers(list(range(100)), max_workers=None) <= cpu


def test_resolve_workers_at_least_one():
    assert ParallelExecutor._resolve_workers(["a"], max_workers=0) == 1
