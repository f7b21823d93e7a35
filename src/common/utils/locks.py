import threading
from contextlib import contextmanager
from typing import Dict, Hashable, List


class KeyedLock:
    """
    키별 상호 배제 락. 같은 키에 대한 작업만 직렬화하고 다른 키는 병렬로 진행된다.
    사용 중인 락이 없으면 항목을 제거하므로 키가 무한히 쌓이지 않는다.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, List] = {}  # key -> [lock, 대기/보유 수]

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def __len__(self):
        with self._guard:
            return len(self._locks)


# 프로세스 전역 매도/삭제 락 (user_id, symbol)
trade_locks = KeyedLock()
