"""对外 API 服务模块。

提供构造 ChatSession 的工厂函数。每次调用都返回独立的会话对象，
各自持有自己的历史与配置，不使用全局单例。
"""

from typing import Optional

from qianwen_chat.chat.session import ChatSession
from qianwen_chat.config.settings import settings
from qianwen_chat.providers import create_provider
from qianwen_chat.providers.base import CompletionClient
from qianwen_chat.streaming.parser import Deliver


def create_chat_session(
    cfg=None,
    client: Optional[CompletionClient] = None,
    deliver: Optional[Deliver] = None,
) -> ChatSession:
    """创建一个新的 ChatSession。

    Args:
        cfg: 配置对象（可选，默认使用全局 settings）
        client: 自定义 CompletionClient（可选，默认按配置创建 QianwenClient）
        deliver: 回调投递函数（可选，默认在当前线程立即执行）

    Returns:
        新建的 ChatSession
    """
    cfg = cfg or settings
    return ChatSession(
        client=client or create_provider("qianwen", cfg),
        max_history=getattr(cfg, "max_history_messages", 10),
        deliver=deliver,
    )
