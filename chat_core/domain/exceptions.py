"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 CLI 层或批量任务层做统一捕获与用户提示。

- NetworkError: 连接失败、超时、读取中断等传输层错误。
- ApiRejected: 服务端返回非 2xx，携带原始 status 与 body。
- MalformedResponse: 服务端返回 2xx，但响应体不符合预期结构。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "API_REJECTED"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 model、trace_id 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。不做自动重试。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="NETWORK_ERROR", message=message, http_status=503, **extra)


class ApiRejected(BusinessError):
    """API 返回非 2xx 时抛出。

    body 为完整的响应文本，仅用于诊断，不按 chat 结构解析。
    """

    def __init__(self, status: int, body: str, **extra):
        self.status = status
        self.body = body
        super().__init__(
            code="API_REJECTED",
            message=f"API error: status {status}, body: {body}",
            http_status=status,
            **extra,
        )


class MalformedResponse(BusinessError):
    """响应成功但内容无法解析为预期结构。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="MALFORMED_RESPONSE", message=message, http_status=502, **extra)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class StreamConsumedError(BusinessError):
    """流式响应只能从头读取一次，重复迭代时抛出。"""

    def __init__(self, message: str = "stream already consumed"):
        super().__init__(code="STREAM_CONSUMED", message=message, http_status=409)


class SessionBusyError(BusinessError):
    """会话中已有未完成的请求，调用方需要等待。"""

    def __init__(self, message: str = "a request is already in flight for this session"):
        super().__init__(code="SESSION_BUSY", message=message, http_status=409)
