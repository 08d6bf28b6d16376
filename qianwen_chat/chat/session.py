"""会话核心模块。

ChatSession 持有有上限的对话历史，负责：
1. 把新的用户消息写入历史并构造请求消息列表。
2. 调用 CompletionClient 发起流式请求，把字节块交给 SSEStreamParser。
3. 流成功结束后把助手回复写回历史，再通知调用方。

所有回调都经由 deliver 投递。默认在当前线程立即执行；
GUI 场景可以传入把回调转发到 UI 线程的函数，例如 tkinter 的
`lambda fn: root.after(0, fn)`。
"""

import threading
from contextlib import closing
from typing import Optional, Tuple

from qianwen_chat.domain.exceptions import BusinessError
from qianwen_chat.domain.history import DEFAULT_MAX_HISTORY_MESSAGES, ConversationHistory
from qianwen_chat.domain.models import Message, StreamSinks
from qianwen_chat.infrastructure.logging.logger import logger
from qianwen_chat.providers.base import CompletionClient
from qianwen_chat.streaming.parser import Deliver, SSEStreamParser, call_now


class ChatSession:
    def __init__(
        self,
        client: CompletionClient,
        max_history: int = DEFAULT_MAX_HISTORY_MESSAGES,
        deliver: Optional[Deliver] = None,
    ):
        self._client = client
        self._history = ConversationHistory(max_history)
        self._deliver = deliver or call_now

    @property
    def history(self) -> Tuple[Message, ...]:
        return self._history.messages()

    def clear_history(self) -> None:
        self._history.clear()

    def send(self, prompt: str, sinks: StreamSinks) -> None:
        """发送一条用户消息并以流式回调返回结果。

        请求在当前线程执行，直到流结束才返回；结果只通过 sinks 通知。
        构造请求失败时直接 on_complete(None, error)，不会触发 on_loading。
        """

        self._history.append(Message(role="user", content=prompt))
        messages = self._history.messages()
        log_ctx = {"provider": self._client.name, "messages": len(messages)}
        try:
            request = self._client.build_request(messages)
        except BusinessError as e:
            logger.warning("chat.build_failed", extra={"extra": {**log_ctx, "code": e.code}})
            self._deliver(lambda err=e: sinks.on_complete(None, err))
            return

        logger.info("chat.send", extra={"extra": log_ctx})
        self._deliver(lambda: sinks.on_loading(True))

        def on_complete(text: Optional[str], error: Optional[BaseException]) -> None:
            if error is None and text is not None:
                self._history.append(Message(role="assistant", content=text))
            sinks.on_complete(text, error)

        parser = SSEStreamParser(
            on_fragment=sinks.on_fragment,
            on_complete=on_complete,
            on_loading=sinks.on_loading,
            on_thinking=sinks.on_thinking,
            deliver=self._deliver,
        )
        # 只有取下一个字节块的过程属于传输层；feed 中的回调异常照常抛出
        with closing(self._client.stream(request)) as chunks:
            while True:
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except Exception as e:
                    logger.warning("chat.stream_failed", extra={"extra": {**log_ctx, "error": repr(e)}})
                    parser.close(e)
                    return
                parser.feed(chunk)
        parser.close()

    def send_in_background(self, prompt: str, sinks: StreamSinks) -> threading.Thread:
        """在单独的守护线程中执行 send，返回已启动的线程。"""

        worker = threading.Thread(
            target=self.send,
            args=(prompt, sinks),
            name="qianwen-send",
            daemon=True,
        )
        worker.start()
        return worker
