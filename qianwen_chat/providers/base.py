"""Provider 抽象接口。

ChatSession 不直接依赖 httpx，而是依赖此协议：

- build_request(messages): 在任何网络 I/O 之前完成 URL 校验与请求体序列化，
  失败时抛出 InvalidURLError / UnauthorizedError / UnknownError。
- stream(request): 生成器，发起流式请求并逐块产出原始响应字节，调用方负责 close()；
  传输失败抛出 NetworkError，状态码异常抛出 UnauthorizedError / InvalidResponseError。

测试中可以用一个只产出预置字节块的假实现替换真实客户端。
"""

from dataclasses import dataclass
from typing import Dict, Generator, Protocol, Sequence

from qianwen_chat.domain.models import Message


@dataclass(frozen=True)
class PreparedRequest:
    """已构造完成、尚未发送的请求。"""

    url: str
    headers: Dict[str, str]
    body: bytes


class CompletionClient(Protocol):
    """流式 completion 客户端协议。"""

    name: str

    def build_request(self, messages: Sequence[Message]) -> PreparedRequest:
        ...

    def stream(self, request: PreparedRequest) -> Generator[bytes, None, None]:
        """发送请求并逐块产出响应体字节。"""

        ...
