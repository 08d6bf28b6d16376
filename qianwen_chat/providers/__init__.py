"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 端点配置 (registry)。
- 提供通义千问的具体实现 (qianwen_client)。
"""

from typing import Optional

from qianwen_chat.config.settings import settings
from qianwen_chat.providers.base import CompletionClient, PreparedRequest
from qianwen_chat.providers.qianwen_client import QianwenClient
from qianwen_chat.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None, cfg=None) -> CompletionClient:
    """根据名称创建 Provider 实例，目前仅支持 qianwen。"""

    get_provider_config(name or "qianwen")
    return QianwenClient(cfg or settings)


__all__ = ["CompletionClient", "PreparedRequest", "QianwenClient", "create_provider"]
