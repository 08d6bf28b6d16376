from typing import Iterator, List, Optional, Tuple, Dict

from qianwen_chat.domain.models import Message


DEFAULT_MAX_HISTORY_MESSAGES = 10


class ConversationHistory:
    """有容量上限的对话历史。

    超出容量时淘汰最早的非 system 消息（system 消息固定保留），
    其余消息保持原有顺序，从不重排。
    """

    def __init__(self, capacity: int = DEFAULT_MAX_HISTORY_MESSAGES):
        if capacity < 1:
            raise ValueError("history capacity must be >= 1")
        self._capacity = capacity
        self._messages: List[Message] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, message: Message) -> Optional[Message]:
        """追加消息，若触发淘汰则返回被淘汰的消息。"""

        self._messages.append(message)
        if len(self._messages) <= self._capacity:
            return None
        for idx, existing in enumerate(self._messages):
            if existing.role != "system":
                return self._messages.pop(idx)
        # 全部是 system 消息时只能淘汰最早的一条，保证容量上限成立
        return self._messages.pop(0)

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def to_payload(self) -> List[Dict[str, str]]:
        return [m.to_payload() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
