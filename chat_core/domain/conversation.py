from typing import Iterator, List, Optional, Tuple

from .models import Message


class ConversationState:
    """按提交顺序保存的对话历史，只追加、不删除。

    每次请求都会把完整历史作为上下文重放给模型，因此顺序有意义。
    snapshot() 返回独立的 tuple，之后的 append 不会影响已提交的请求。
    同一个实例只属于一个会话，不在批量任务之间共享。
    """

    def __init__(self, messages: Optional[List[Message]] = None):
        self._messages: List[Message] = list(messages or [])

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
