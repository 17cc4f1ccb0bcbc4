import threading
import time

from campus_assistant.utils.locks import ReadWriteLock


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    barrier = threading.Barrier(2, timeout=2)
    errors = []

    def reader():
        with lock.read():
            try:
                barrier.wait()
            except threading.BrokenBarrierError as e:
                errors.append(e)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert errors == []


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    entered = threading.Event()

    def reader():
        with lock.read():
            entered.set()

    with lock.write():
        thread = threading.Thread(target=reader)
        thread.start()
        assert not entered.wait(0.2)

    assert entered.wait(2)
    thread.join(timeout=2)


def test_writer_waits_for_active_reader():
    lock = ReadWriteLock()
    entered = threading.Event()

    def writer():
        with lock.write():
            entered.set()

    with lock.read():
        thread = threading.Thread(target=writer)
        thread.start()
        assert not entered.wait(0.2)

    assert entered.wait(2)
    thread.join(timeout=2)


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order = []

    def writer():
        with lock.write():
            order.append("writer")

    def reader():
        with lock.read():
            order.append("reader")

    with lock.read():
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        assert _wait_until(lambda: lock._writers_waiting == 1)

        reader_thread = threading.Thread(target=reader)
        reader_thread.start()
        time.sleep(0.2)
        assert order == []

    writer_thread.join(timeout=2)
    reader_thread.join(timeout=2)
    assert order == ["writer", "reader"]
