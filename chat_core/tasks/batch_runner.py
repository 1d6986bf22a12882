"""批量并行提交入口。"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from chat_core.concurrency.admission import AdmissionGate
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import Message, RequestEnvelope, Usage
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.base import ChatTransport, StreamingResponse

from .config import BatchConfig


@dataclass
class BatchOutcome:
    """单个 prompt 的结果：reply 与 error 二者必有其一。"""

    index: int
    prompt: str
    reply: Optional[str] = None
    error: Optional[Exception] = None
    usage: Optional[Usage] = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "code", type(self.error).__name__)


def run_batch(
    prompts: Sequence[str],
    transport: ChatTransport,
    config: BatchConfig,
    *,
    gate: Optional[AdmissionGate] = None,
) -> List[BatchOutcome]:
    """并行提交一批互不相关的 prompt，返回与输入顺序一致的结果列表。

    每个 prompt 是独立任务（没有共享历史），所有任务共享同一个
    AdmissionGate，保证同时在途的请求数不超过 max_concurrency。
    单个任务失败只记录在它自己的 BatchOutcome 中，不影响其他任务。
    """

    batch_id = config.ensure_batch_id()
    gate = gate or AdmissionGate(config.max_concurrency)
    if not prompts:
        return []

    start_time = time.time()
    with ThreadPoolExecutor(
        max_workers=config.worker_count(len(prompts)),
        thread_name_prefix="chat-batch",
    ) as pool:
        futures = [
            pool.submit(_run_one, index, prompt, transport, config, gate)
            for index, prompt in enumerate(prompts)
        ]
        outcomes = [f.result() for f in futures]

    failed = sum(1 for o in outcomes if not o.ok)
    log_event(
        logging.INFO,
        "Completed batch",
        batch_id=batch_id,
        total=len(outcomes),
        failed=failed,
        max_concurrency=gate.capacity,
        elapsed_seconds=round(time.time() - start_time, 2),
    )
    return outcomes


def _run_one(
    index: int,
    prompt: str,
    transport: ChatTransport,
    config: BatchConfig,
    gate: AdmissionGate,
) -> BatchOutcome:
    start_time = time.time()
    messages: List[Message] = []
    if config.system_prompt:
        messages.append(Message(role="system", content=config.system_prompt))
    messages.append(Message(role="user", content=prompt))
    envelope = RequestEnvelope(model=config.model, messages=tuple(messages), stream=config.stream)

    try:
        with gate:
            result = transport.send(envelope)
            if isinstance(result, StreamingResponse):
                reply = result.collect()
                usage = result.usage
            else:
                reply = result.text
                usage = result.envelope.usage
    except Exception as exc:  # noqa: BLE001 - 单个任务失败不能影响其他任务
        level = logging.WARNING if isinstance(exc, BusinessError) else logging.ERROR
        log_event(
            level,
            "Batch task failed",
            batch_id=config.batch_id,
            index=index,
            error_code=getattr(exc, "code", type(exc).__name__),
            error=str(exc),
        )
        return BatchOutcome(
            index=index,
            prompt=prompt,
            error=exc,
            elapsed_seconds=time.time() - start_time,
        )
    return BatchOutcome(
        index=index,
        prompt=prompt,
        reply=reply,
        usage=usage,
        elapsed_seconds=time.time() - start_time,
    )
