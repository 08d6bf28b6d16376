"""SSE 流式响应解析器。

每个请求对应一个 SSEStreamParser 实例，状态流转：

    idle --首个字节块--> streaming --(更多字节块)--> streaming
    idle/streaming --close()--> completed（终态，完成回调只触发一次）

解析规则：
- 字节块先追加到缓冲区，只解析以 "\\n" 结尾的完整行，末尾不完整的行留到下一块。
- 每行按 UTF-8 解码并去除首尾空白，空行跳过。
- 以 "data:" 开头的行去掉前缀后按 JSON 解析，读取 output.text 作为增量文本。
- 解码失败、JSON 无效、缺少 output.text 的行按“忽略并继续”策略处理：
  记 debug 日志并计入 ignored_lines，不触发回调，也不终止流。
"""

import json
from typing import Callable, List, Optional

from qianwen_chat.domain.exceptions import BusinessError, NetworkError
from qianwen_chat.domain.models import (
    CompletionHandler,
    FragmentHandler,
    LoadingHandler,
    StreamEvent,
    ThinkingHandler,
)
from qianwen_chat.infrastructure.logging.logger import logger


DATA_PREFIX = "data:"

Deliver = Callable[[Callable[[], None]], None]


def call_now(fn: Callable[[], None]) -> None:
    """默认投递方式：在当前线程立即执行回调。"""

    fn()


class SSEStreamParser:
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"

    def __init__(
        self,
        on_fragment: FragmentHandler,
        on_complete: CompletionHandler,
        on_loading: Optional[LoadingHandler] = None,
        on_thinking: Optional[ThinkingHandler] = None,
        deliver: Optional[Deliver] = None,
    ):
        self._on_fragment = on_fragment
        self._on_complete = on_complete
        self._on_loading = on_loading
        self._on_thinking = on_thinking
        self._deliver = deliver or call_now
        self._state = self.IDLE
        self._buffer = bytearray()
        self._full_text: List[str] = []
        self.fragment_count = 0
        self.ignored_lines = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def full_text(self) -> str:
        return "".join(self._full_text)

    def feed(self, chunk: bytes) -> List[str]:
        """处理一个网络字节块，返回本块解析出的增量文本列表。"""

        if self._state == self.COMPLETED:
            logger.debug("sse.feed_after_complete", extra={"extra": {"bytes": len(chunk)}})
            return []
        self._state = self.STREAMING
        self._buffer.extend(chunk)
        fragments: List[str] = []
        while True:
            idx = self._buffer.find(b"\n")
            if idx < 0:
                break
            raw = bytes(self._buffer[:idx])
            del self._buffer[: idx + 1]
            text = self._handle_line(raw)
            if text is not None:
                fragments.append(text)
        return fragments

    def close(self, error: Optional[BaseException] = None) -> bool:
        """结束流。只有第一次调用生效，返回本次调用是否完成了该流。"""

        if self._state == self.COMPLETED:
            return False
        if error is None and self._buffer:
            # 最后一行可能没有换行符
            self._handle_line(bytes(self._buffer))
        self._state = self.COMPLETED

        if error is not None:
            err = error if isinstance(error, BusinessError) else NetworkError(cause=error)
            logger.info(
                "sse.completed_with_error",
                extra={"extra": {"code": err.code, "fragments": self.fragment_count}},
            )
            result: Optional[str] = None
        else:
            err = None
            result = self.full_text
            logger.info(
                "sse.completed",
                extra={"extra": {"fragments": self.fragment_count, "chars": len(result)}},
            )

        self._buffer = bytearray()
        self._full_text = []

        def finish() -> None:
            if self._on_loading is not None:
                self._on_loading(False)
            self._on_complete(result, err)

        self._deliver(finish)
        return True

    # ---- 单行处理 ----

    def _handle_line(self, raw: bytes) -> Optional[str]:
        try:
            line = raw.decode("utf-8").strip()
        except UnicodeDecodeError:
            self._ignore(raw, "undecodable")
            return None
        if not line or not line.startswith(DATA_PREFIX):
            # 空行、id:/event: 字段以及注释行
            return None
        data_str = line[len(DATA_PREFIX):].strip()
        try:
            payload = json.loads(data_str)
        except json.JSONDecodeError:
            self._ignore(raw, "invalid_json")
            return None
        event = StreamEvent.from_payload(payload)
        if event is None:
            self._ignore(raw, "missing_output_text")
            return None
        self._emit(event)
        return event.text

    def _emit(self, event: StreamEvent) -> None:
        if self._on_thinking is not None:
            for thought in event.thoughts:
                self._deliver(lambda t=thought: self._on_thinking(t))
        self._full_text.append(event.text)
        self.fragment_count += 1
        text = event.text
        self._deliver(lambda: self._on_fragment(text))

    def _ignore(self, raw: bytes, reason: str) -> None:
        self.ignored_lines += 1
        logger.debug(
            "sse.line_ignored",
            extra={"extra": {"reason": reason, "line": raw[:200].decode("utf-8", "replace")}},
        )
