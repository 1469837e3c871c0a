import threading

import pytest

from thera.concurrent_queue import ConcurrentQueue


def test_fifo_order():
    queue = ConcurrentQueue()
    for value in ("a", "b", "c"):
        queue.push(value)
    assert [queue.pop(), queue.pop(), queue.pop()] == ["a", "b", "c"]


def test_empty_and_len():
    queue = ConcurrentQueue()
    assert queue.empty() is True
    queue.push(1)
    assert queue.empty() is False
    assert len(queue) == 1
    queue.pop()
    assert len(queue) == 0


def test_pop_empty_raises():
    queue = ConcurrentQueue()
    with pytest.raises(IndexError):
        queue.pop()


def test_concurrent_pushes_are_all_kept():
    queue = ConcurrentQueue()

    def worker(offset):
        for index in range(200):
            queue.push(offset + index)

    threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(queue) == 800
    drained = set()
    while not queue.empty():
        drained.add(queue.pop())
    assert drained == {n * 1000 + i for n in range(4) for i in range(200)}