"""通义千问（DashScope 百炼应用）Provider 适配器。

本模块负责：

1. 把会话消息列表转换为 DashScope 应用 completion 接口的请求格式。
2. 在发起网络请求前校验端点 URL、API Key 并序列化请求体。
3. 以 SSE 方式发起请求，逐块返回原始字节，交给 SSEStreamParser 解析。
4. 把 HTTP 状态码与传输层异常映射为统一的业务异常。

接口约定：
- URL: {base_url}/apps/{app_id}/completion
- 认证: Authorization: Bearer <api_key>
- 开启 SSE: X-DashScope-SSE: enable
"""

import json
from typing import Any, Dict, Generator, Sequence

import httpx

from qianwen_chat.config.settings import settings
from qianwen_chat.domain.exceptions import (
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    UnauthorizedError,
    UnknownError,
)
from qianwen_chat.domain.models import Message
from qianwen_chat.infrastructure.logging.logger import logger
from qianwen_chat.providers.base import PreparedRequest
from qianwen_chat.providers.registry import QIANWEN_CONFIG


class QianwenClient:
    """通义千问 Provider 客户端实现。"""

    name = "qianwen"

    def __init__(self, cfg=settings):
        # Settings 里包含 api_key、端点、超时等配置
        self._settings = cfg

    # ---- 请求构造 ----

    def build_request(self, messages: Sequence[Message]) -> PreparedRequest:
        """构造请求；任何失败都发生在网络 I/O 之前。"""

        url = self._resolve_url()
        api_key = getattr(self._settings, "qianwen_api_key", None)
        if not api_key:
            raise UnauthorizedError(code="MISSING_API_KEY", message="QIANWEN_API_KEY not set")
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            **QIANWEN_CONFIG.headers,
        }
        payload = self._build_payload(messages)
        try:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise UnknownError(code="SERIALIZATION_ERROR", message=f"failed to serialize request body: {e}")
        return PreparedRequest(url=url, headers=headers, body=body)

    def _resolve_url(self) -> str:
        raw = getattr(self._settings, "qianwen_endpoint", None)
        if not raw:
            app_id = getattr(self._settings, "qianwen_app_id", None)
            if not app_id:
                raise InvalidURLError(message="QIANWEN_APP_ID not set and no QIANWEN_ENDPOINT configured")
            base = getattr(self._settings, "qianwen_base_url", None) or QIANWEN_CONFIG.base_url
            raw = QIANWEN_CONFIG.completion_url(app_id, base)
        try:
            url = httpx.URL(raw)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidURLError(message=f"invalid endpoint URL {raw!r}: {e}")
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError(message=f"invalid endpoint URL {raw!r}")
        return str(url)

    @staticmethod
    def _build_payload(messages: Sequence[Message]) -> Dict[str, Any]:
        return {
            "input": {"messages": [m.to_payload() for m in messages]},
            "parameters": {"incremental_output": True},
        }

    # ---- 流式请求 ----

    def stream(self, request: PreparedRequest) -> Generator[bytes, None, None]:
        """发起 POST 请求并逐块产出响应体原始字节。"""

        client_kwargs: Dict[str, Any] = {"trust_env": False}
        timeout = getattr(self._settings, "http_timeout", None)
        if timeout:
            client_kwargs["timeout"] = timeout
        logger.info(
            "qianwen.request",
            extra={"extra": {"url": request.url, "body_bytes": len(request.body)}},
        )
        try:
            with httpx.Client(**client_kwargs) as client:
                with client.stream(
                    "POST",
                    request.url,
                    content=request.body,
                    headers=request.headers,
                ) as resp:
                    self._check_status(resp)
                    for chunk in resp.iter_bytes():
                        if chunk:
                            yield chunk
        except (httpx.RequestError, httpx.StreamError) as e:
            # 网络错误：DNS 失败、TLS 握手失败、连接被重置等
            logger.warning("qianwen.network_error", extra={"extra": {"error": repr(e)}})
            raise NetworkError(cause=e)

    @staticmethod
    def _check_status(resp) -> None:
        status = resp.status_code
        if status < 400:
            return
        resp.read()
        text = resp.text
        logger.warning("qianwen.http_error", extra={"extra": {"status": status, "body": text[:500]}})
        if status in (401, 403):
            raise UnauthorizedError(message=text or f"HTTP {status}", http_status=status)
        raise InvalidResponseError(message=text or f"HTTP {status}", http_status=status)
