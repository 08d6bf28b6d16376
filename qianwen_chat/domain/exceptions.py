"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
上层只通过 on_complete(None, error) 收到这些异常，便于 UI 层统一提示。

通义千问相关的错误分类：
- InvalidURLError: 端点配置无效。
- NetworkError: 传输层失败（DNS/TLS/连接重置等），携带原始异常 cause。
- InvalidResponseError: 响应结构无效，例如非 2xx 状态码。
- UnauthorizedError: 认证失败或缺少 API Key。
- UnknownError: 兜底错误（例如请求体序列化失败）。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 url、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class QianwenError(BusinessError):
    """通义千问调用相关错误的公共父类。"""


class InvalidURLError(QianwenError):
    """端点 URL 无法构造或格式无效。"""

    def __init__(self, message: str = "invalid endpoint URL", **extra):
        super().__init__(code="INVALID_URL", message=message, **extra)


class NetworkError(QianwenError):
    """网络层错误，包装底层传输异常。"""

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None, **extra):
        self.cause = cause
        super().__init__(
            code="NETWORK_ERROR",
            message=message or (str(cause) if cause is not None else "network error"),
            **extra,
        )


class InvalidResponseError(QianwenError):
    """服务端返回非 2xx 或顶层结构无法识别。"""

    def __init__(self, message: str = "invalid response", http_status: int = 502, **extra):
        super().__init__(code="INVALID_RESPONSE", message=message, http_status=http_status, **extra)


class UnauthorizedError(QianwenError):
    """认证失败（401/403）或未配置 API Key。"""

    def __init__(self, message: str = "unauthorized", code: str = "UNAUTHORIZED", http_status: int = 401, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class UnknownError(QianwenError):
    """无法归类的错误。"""

    def __init__(self, message: str = "unknown error", code: str = "UNKNOWN", **extra):
        super().__init__(code=code, message=message, http_status=500, **extra)
