"""Batch-scoped configuration models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from chat_core.config.settings import settings


MAX_BATCH_WORKERS = 32


@dataclass
class BatchConfig:
    """一次批量提交的设置。

    Attributes:
        model: 每个 prompt 使用的模型（ID 或 registry 别名）。
        max_concurrency: 同时在途的请求上限（AdmissionGate 容量）。
        stream: 是否以流式方式请求，流式时每个任务会读完整个流。
        system_prompt: 可选的 system 消息，各任务各自携带一份。
        batch_id: 可选外部标识；为空时会自动生成。
    """

    model: str
    max_concurrency: int = 4
    stream: bool = False
    system_prompt: Optional[str] = None
    batch_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            self.max_concurrency = 1

    @classmethod
    def from_settings(cls, cfg=settings, **overrides) -> "BatchConfig":
        values = {
            "model": cfg.default_model,
            "max_concurrency": cfg.max_concurrency,
            "stream": cfg.stream,
            "system_prompt": cfg.system_prompt,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def ensure_batch_id(self) -> str:
        """确保 batch_id 存在并返回。"""

        if not self.batch_id:
            self.batch_id = f"batch-{uuid4().hex}"
        return self.batch_id

    def worker_count(self, task_count: int) -> int:
        # 线程数可以多于 gate 容量，真正的并发上限由 gate 控制
        return max(1, min(task_count, MAX_BATCH_WORKERS))
