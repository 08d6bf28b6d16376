"""统一的对话与流式数据模型。

本模块定义了会话层与 Provider 适配层之间共享的数据结构：

- Message: 一条对话消息（system/user/assistant），创建后不可变。
- StreamEvent: 从一条 SSE `data:` 行解码出的增量事件。
- StreamSinks: 调用方注册的一组回调（增量、思考过程、加载状态、完成）。
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple


# 通义千问应用接口支持的消息角色
Role = Literal["system", "user", "assistant"]

ROLES: Tuple[str, ...] = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    """一条对话消息，既用于历史记录，也用于请求体。"""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class StreamEvent:
    """单条 SSE 事件解析结果。

    - text: 本次增量文本（不是累计文本）。
    - thoughts: 应用开启思考过程输出时附带的 thought 文本，通常为空。
    """

    text: str
    thoughts: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["StreamEvent"]:
        """从 `{"output": {"text": ...}}` 结构构造事件，结构不符时返回 None。"""

        if not isinstance(payload, dict):
            return None
        output = payload.get("output")
        if not isinstance(output, dict):
            return None
        text = output.get("text")
        if not isinstance(text, str):
            return None
        thoughts: List[str] = []
        for item in output.get("thoughts") or []:
            if isinstance(item, dict) and isinstance(item.get("thought"), str):
                thoughts.append(item["thought"])
        return cls(text=text, thoughts=tuple(thoughts))


def _noop(*_args: Any) -> None:
    return None


FragmentHandler = Callable[[str], None]
ThinkingHandler = Callable[[str], None]
LoadingHandler = Callable[[bool], None]
CompletionHandler = Callable[[Optional[str], Optional[BaseException]], None]


@dataclass
class StreamSinks:
    """一次 send 调用的回调集合。

    - on_fragment: 每收到一段增量文本调用一次。
    - on_thinking: 思考过程回调，目前仅在服务端返回 thoughts 时触发。
    - on_loading: 请求开始时收到 True，结束前收到 False。
    - on_complete: 终止回调，成功时为 (full_text, None)，失败时为 (None, error)。
    """

    on_fragment: FragmentHandler
    on_thinking: ThinkingHandler = field(default=_noop)
    on_loading: LoadingHandler = field(default=_noop)
    on_complete: CompletionHandler = field(default=_noop)
