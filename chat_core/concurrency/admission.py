import threading
from contextlib import contextmanager
from typing import Iterator, Optional


class AdmissionGate:
    """限制同时在途的请求数量（0 <= in_flight <= capacity）。

    用法：

        with gate:
            transport.send(envelope)

    with 块无论正常结束还是抛出异常都会 release。
    不保证 FIFO，等待者由 Condition.notify 唤醒。
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = int(capacity)
        self._in_flight = 0
        self._cond = threading.Condition()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def busy(self) -> bool:
        return self._in_flight >= self.capacity

    def acquire(self, blocking: bool = True, timeout: Optional[float] = None) -> bool:
        """占用一个名额。非阻塞或超时未拿到时返回 False。"""

        with self._cond:
            if not blocking:
                if self._in_flight >= self.capacity:
                    return False
            elif not self._cond.wait_for(lambda: self._in_flight < self.capacity, timeout=timeout):
                return False
            self._in_flight += 1
            return True

    def release(self) -> None:
        with self._cond:
            if self._in_flight <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            self._in_flight -= 1
            self._cond.notify()

    @contextmanager
    def slot(self) -> Iterator["AdmissionGate"]:
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    def __enter__(self) -> "AdmissionGate":
        self.acquire()
        return self

    def __exit__(self, *exc) -> bool:
        self.release()
        return False
