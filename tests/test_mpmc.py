import threading
import time

import pytest

from gazellemq.mpmc import MPMCQueue


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.mark.parametrize("capacity", [0, -1])
def test_capacity_below_one_rejected(capacity):
    with pytest.raises(ValueError):
        MPMCQueue(capacity)


def test_fifo_order():
    q = MPMCQueue(8)
    for word in ["a", "b", "c"]:
        q.push(word)
    assert [q.pop(), q.pop(), q.pop()] == ["a", "b", "c"]


def test_try_push_fails_when_full():
    q = MPMCQueue(2)
    assert q.try_push(1) is True
    assert q.try_push(2) is True
    assert q.try_push(3) is False
    assert len(q) == 2
    assert q.capacity == 2


def test_try_pop_on_empty_returns_none():
    q = MPMCQueue(4)
    assert q.try_pop() is None
    q.push("x")
    assert q.try_pop() == "x"
    assert q.try_pop() is None


def test_size_and_empty_track_contents():
    q = MPMCQueue(4)
    assert q.empty() is True
    assert q.size() == 0
    q.push("m1")
    q.push("m2")
    assert q.size() == 2
    assert q.empty() is False
    q.pop()
    q.pop()
    assert q.empty() is True


def test_none_cannot_be_queued():
    q = MPMCQueue(1)
    with pytest.raises(TypeError):
        q.push(None)
    with pytest.raises(TypeError):
        q.try_push(None)


@pytest.mark.timeout(10)
def test_pop_blocks_until_push_and_size_goes_negative():
    q = MPMCQueue(2)
    received = []
    reader = threading.Thread(target=lambda: received.append(q.pop()))
    reader.start()
    assert _wait_until(lambda: q.size() == -1)
    assert q.empty() is True
    assert len(q) == 0
    q.push("payload")
    reader.join(5)
    assert received == ["payload"]
    assert q.size() == 0


@pytest.mark.timeout(10)
def test_push_blocks_while_full():
    q = MPMCQueue(1)
    q.push("first")
    writer = threading.Thread(target=q.push, args=("second",))
    writer.start()
    assert _wait_until(lambda: q.size() == 2)
    assert len(q) == 1
    assert q.pop() == "first"
    writer.join(5)
    assert q.pop() == "second"


@pytest.mark.timeout(20)
def test_many_producers_many_consumers_deliver_everything():
    q = MPMCQueue(16)
    producers, per_producer = 4, 250
    results = []
    results_lock = threading.Lock()

    def produce(pid):
        for n in range(per_producer):
            q.push((pid, n))

    def consume(count):
        local = [q.pop() for _ in range(count)]
        with results_lock:
            results.extend(local)

    total = producers * per_producer
    consumers = [threading.Thread(target=consume, args=(total // 4,)) for _ in range(4)]
    writers = [threading.Thread(target=produce, args=(p,)) for p in range(producers)]
    for t in consumers + writers:
        t.start()
    for t in consumers + writers:
        t.join(15)

    assert sorted(results) == sorted((p, n) for p in range(producers) for n in range(per_producer))
    assert q.empty() is True


@pytest.mark.timeout(10)
def test_single_producer_order_preserved_for_single_consumer():
    q = MPMCQueue(3)
    items = list(range(100))
    writer = threading.Thread(target=lambda: [q.push(i) for i in items])
    writer.start()
    got = [q.pop() for _ in items]
    writer.join(5)
    assert got == items