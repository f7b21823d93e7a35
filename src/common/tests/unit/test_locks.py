import threading
import time

from src.common.utils.locks import KeyedLock


def test_same_key_is_serialized():
    locks = KeyedLock()
    active = []
    overlaps = []

    def worker():
        with locks.hold((1, "AAPL")):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []


def test_different_keys_do_not_block():
    locks = KeyedLock()
    entered = threading.Event()

    with locks.hold((1, "AAPL")):
        def other():
            with locks.hold((1, "MSFT")):
                entered.set()

        thread = threading.Thread(target=other)
        thread.start()
        assert entered.wait(timeout=1)
        thread.join()


def test_released_keys_are_removed():
    locks = KeyedLock()

    with locks.hold("a"):
        assert len(locks) == 1

    assert len(locks) == 0


def test_lock_released_on_exception():
    locks = KeyedLock()

    try:
        with locks.hold("a"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    acquired = threading.Event()

    def worker():
        with locks.hold("a"):
            acquired.set()

    thread = threading.Thread(target=worker)
    thread.start()
    assert acquired.wait(timeout=1)
    thread.join()
