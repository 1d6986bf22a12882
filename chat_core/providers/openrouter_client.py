"""OpenRouter Provider 适配器。

本模块负责：

1. 接收统一的 RequestEnvelope。
2. 经过 RateLimiter 排队后，转换为 OpenRouter 的 chat/completions 请求：
   - URL: {base_url}/chat/completions
   - 认证: Authorization: Bearer <api_key>
   - 排行统计: HTTP-Referer / X-Title
   - Accept: application/json 或 text/event-stream（取决于 envelope.stream）
3. 处理网络异常与非 2xx 响应。
4. 非流式：读取并解析整个响应体；流式：直接返回未读取的响应，由调用方逐帧消费。

每次 send() 只发起一次 HTTP 请求，不做自动重试。被拒绝的请求同样占用了
RateLimiter 的一次机会。
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as SchemaError

from chat_core.concurrency.rate_limiter import RateLimiter
from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiRejected, MalformedResponse, NetworkError, ValidationError
from chat_core.domain.models import RequestEnvelope, ResponseEnvelope
from chat_core.domain.wire import ChatCompletion
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.base import CompletedResponse, SendResult, StreamingResponse
from chat_core.providers.registry import OPENROUTER_CONFIG, resolve_model


ACCEPT_JSON = "application/json"
ACCEPT_EVENT_STREAM = "text/event-stream"


class OpenRouterClient:
    """OpenRouter 客户端实现。

    一个实例持有一个 httpx.Client（连接复用）和一个 RateLimiter；
    可以被批量任务的多个线程共享。
    """

    name = "openrouter"

    def __init__(
        self,
        cfg=settings,
        *,
        rate_limiter: Optional[RateLimiter] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        # cfg 里包含 api_key、base_url、超时、请求间隔等配置
        self._settings = cfg
        self._limiter = rate_limiter or RateLimiter(getattr(cfg, "min_request_interval", 0.0))
        self._client = http_client or httpx.Client(timeout=cfg.http_timeout, trust_env=False)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    def send(self, envelope: RequestEnvelope) -> SendResult:
        """执行一次对话调用。

        步骤：
        1. 等待 RateLimiter 放行。
        2. 发送 HTTP 请求，捕获网络错误。
        3. 非 2xx 统一包装为 ApiRejected（附完整 body）。
        4. 按 envelope.stream 返回 CompletedResponse 或 StreamingResponse。
        """

        api_key = getattr(self._settings, "openrouter_api_key", None)
        if not api_key:
            # 配置缺失走 ValidationError，不占用 RateLimiter
            raise ValidationError(code="MISSING_API_KEY", message="OPENROUTER_API_KEY not set")

        self._limiter.wait_turn()
        base = getattr(self._settings, "openrouter_base_url", None) or OPENROUTER_CONFIG.base_url
        request = self._client.build_request(
            "POST",
            f"{base.rstrip('/')}/chat/completions",
            json=self._build_payload(envelope),
            headers=self._build_headers(api_key, envelope.stream),
        )
        log_event(
            logging.INFO,
            "Sending chat request",
            provider=self.name,
            model=envelope.model,
            message_count=len(envelope.messages),
            stream=envelope.stream,
        )
        try:
            resp = self._client.send(request, stream=True)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒、超时等
            log_event(logging.WARNING, "Chat request failed", provider=self.name, error=str(e))
            raise NetworkError(message=str(e)) from e

        if not resp.is_success:
            body = self._read_text(resp)
            log_event(
                logging.WARNING,
                "Chat request rejected",
                provider=self.name,
                status=resp.status_code,
                body_preview=body[:200],
            )
            raise ApiRejected(status=resp.status_code, body=body)

        if envelope.stream:
            return StreamingResponse(resp)
        return CompletedResponse(self._parse_response(self._read_bytes(resp)))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OpenRouterClient":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False

    # ---- 辅助方法 ----

    def _build_payload(self, envelope: RequestEnvelope) -> Dict[str, Any]:
        payload = envelope.to_payload()
        payload["model"] = resolve_model(envelope.model)
        return payload

    def _build_headers(self, api_key: str, stream: bool) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": ACCEPT_EVENT_STREAM if stream else ACCEPT_JSON,
        }
        site_url = getattr(self._settings, "site_url", None)
        site_name = getattr(self._settings, "site_name", None)
        if site_url:
            headers["HTTP-Referer"] = site_url
        if site_name:
            headers["X-Title"] = site_name
        return headers

    @staticmethod
    def _read_bytes(resp: httpx.Response) -> bytes:
        try:
            return resp.read()
        except httpx.RequestError as e:
            raise NetworkError(message=str(e)) from e
        finally:
            resp.close()

    def _read_text(self, resp: httpx.Response) -> str:
        content = self._read_bytes(resp)
        return content.decode(resp.encoding or "utf-8", errors="replace")

    @staticmethod
    def _parse_response(content: bytes) -> ResponseEnvelope:
        """把响应体解析为 ResponseEnvelope，结构不符时抛 MalformedResponse。"""

        try:
            data = json.loads(content)
        except ValueError as e:
            raise MalformedResponse(message=f"response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponse(message="response JSON is not an object")
        try:
            completion = ChatCompletion.model_validate(data)
        except SchemaError as e:
            raise MalformedResponse(message=f"unexpected response shape: {e}") from e
        return completion.to_envelope(raw=data)
