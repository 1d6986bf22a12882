"""客户端准入控制：请求间隔（RateLimiter）与在途并发上限（AdmissionGate）。"""

from chat_core.concurrency.admission import AdmissionGate
from chat_core.concurrency.rate_limiter import RateLimiter

__all__ = ["AdmissionGate", "RateLimiter"]
