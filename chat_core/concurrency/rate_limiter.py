import threading
import time
from typing import Callable, Optional


class RateLimiter:
    """保证同一客户端相邻两次请求之间至少间隔 min_interval 秒。

    - 第一次调用从不等待。
    - 放行调用方时把当前时间记为 last_request_at。
    - 读取状态、决定是否等待、写入时间戳在同一把锁内完成，
      多个线程共享同一个实例时间隔保证依然成立（等待中的线程会排队）。

    clock / sleep 可替换，便于测试。
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = float(min_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None

    @property
    def last_request_at(self) -> Optional[float]:
        return self._last_request_at

    def wait_turn(self) -> float:
        """必要时阻塞，返回实际等待的秒数。"""

        with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                remaining = self.min_interval - (self._clock() - self._last_request_at)
                if remaining > 0:
                    self._sleep(remaining)
                    waited = remaining
            self._last_request_at = self._clock()
            return waited
